"""Tests for the loopback mounter and its handle."""

import pytest

from conftest import FakeRunner
from pxe_bootstrap.errors import MountError, UnmountWarning
from pxe_bootstrap.lib.mount import LoopMounter, MountState


@pytest.fixture
def mount_point(tmp_path):
    p = tmp_path / "mnt" / "debian"
    p.mkdir(parents=True)
    return p


def test_mounts_empty_mount_point_read_only(runner, mounter, mount_point, tmp_path):
    iso = tmp_path / "debian.iso"

    handle = mounter.mount(iso, mount_point)

    assert runner.calls == [["mount", "-o", "loop,ro", str(iso), str(mount_point)]]
    assert handle.owned
    assert handle.state is MountState.MOUNTED
    assert (mount_point / "install.amd" / "vmlinuz").exists()

    handle.release()
    assert runner.commands("umount") == [["umount", str(mount_point)]]
    assert handle.state is MountState.UNMOUNTED
    assert list(mount_point.iterdir()) == []


def test_release_is_idempotent(runner, mounter, mount_point, tmp_path):
    handle = mounter.mount(tmp_path / "x.iso", mount_point)
    handle.release()
    handle.release()
    assert len(runner.commands("umount")) == 1


def test_populated_mount_point_is_reused_untouched(runner, mounter, mount_point, tmp_path, caplog):
    (mount_point / "leftover").write_text("x", encoding="utf-8")

    with mounter.mount(tmp_path / "x.iso", mount_point) as handle:
        assert not handle.owned

    assert runner.calls == []
    assert (mount_point / "leftover").exists()
    assert "not a mount point" in caplog.text


def test_mount_failure_carries_command_output(runner, mounter, mount_point, tmp_path):
    runner.fail_mount = True

    with pytest.raises(MountError) as exc:
        mounter.mount(tmp_path / "x.iso", mount_point)

    assert "failed to setup loop device" in str(exc.value)
    assert exc.value.mount_point == str(mount_point)
    assert runner.commands("umount") == []


def test_missing_mount_point(mounter, tmp_path):
    with pytest.raises(MountError, match="failed to check mount point"):
        mounter.mount(tmp_path / "x.iso", tmp_path / "absent")


def test_unmount_failure_is_a_warning(runner, mounter, mount_point, tmp_path, caplog):
    runner.fail_umount = True

    with mounter.mount(tmp_path / "x.iso", mount_point) as handle:
        pass

    assert isinstance(handle.warning, UnmountWarning)
    assert "target is busy" in str(handle.warning)
    assert handle.state is MountState.UNMOUNTED
    assert "failed to unmount" in caplog.text


def test_release_runs_when_block_raises(runner, mounter, mount_point, tmp_path):
    with pytest.raises(RuntimeError):
        with mounter.mount(tmp_path / "x.iso", mount_point):
            raise RuntimeError("copy blew up")

    assert runner.commands("umount") == [["umount", str(mount_point)]]


def test_timeout_is_passed_to_runner(mount_point, tmp_path):
    seen = []

    class Recorder(FakeRunner):
        def __call__(self, argv, *, check=True, timeout=None, logger=None):
            seen.append(timeout)
            return super().__call__(argv, check=check, timeout=timeout, logger=logger)

    m = LoopMounter(runner=Recorder(), timeout=7.5)
    m.mount(tmp_path / "x.iso", mount_point).release()
    assert seen == [7.5, 7.5]


class InterruptedRunner(FakeRunner):
    """Attaches the tree (or not) and is then interrupted inside ``mount``."""

    def __init__(self, attach: bool) -> None:
        super().__init__()
        self.attach = attach

    def __call__(self, argv, *, check=True, timeout=None, logger=None):
        if argv[0] == "mount":
            if self.attach:
                super().__call__(argv, check=check, timeout=timeout, logger=logger)
            else:
                self.calls.append(list(argv))
            raise KeyboardInterrupt
        return super().__call__(argv, check=check, timeout=timeout, logger=logger)


def test_interrupted_mount_is_detached(mount_point, tmp_path, monkeypatch):
    runner = InterruptedRunner(attach=True)
    monkeypatch.setattr("pxe_bootstrap.lib.mount.os.path.ismount", lambda p: str(p) == str(mount_point))

    with pytest.raises(KeyboardInterrupt):
        LoopMounter(runner=runner).mount(tmp_path / "x.iso", mount_point)

    assert runner.commands("umount") == [["umount", str(mount_point)]]
    assert list(mount_point.iterdir()) == []


def test_interrupt_before_attach_leaves_nothing_to_detach(mount_point, tmp_path):
    runner = InterruptedRunner(attach=False)

    with pytest.raises(KeyboardInterrupt):
        LoopMounter(runner=runner).mount(tmp_path / "x.iso", mount_point)

    assert runner.commands("umount") == []
