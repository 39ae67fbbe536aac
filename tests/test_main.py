"""Tests for the pxe-bootstrap command line entry point."""

from pathlib import Path
from unittest.mock import patch

from pxe_bootstrap import main as main_mod
from pxe_bootstrap.main import main, run


def test_empty_target_list_exits_nonzero_without_side_effects(write_config, roots, caplog):
    path = write_config([])

    assert main(["--config", path, "--log", ""]) == 1

    assert "no targets found" in caplog.text
    for key in ("tftpboot_dir", "iso_dir", "mount_dir"):
        assert not Path(roots[key]).exists()


def test_render_only_touches_menus_only(write_config, debian_target, roots):
    path = write_config([debian_target])

    with patch.object(main_mod.Downloader, "fetch") as fetch, patch.object(main_mod.LoopMounter, "mount") as mount:
        assert main(["--config", path, "--log", "", "--render-only"]) == 0

    fetch.assert_not_called()
    mount.assert_not_called()
    assert Path(roots["tftpboot_dir"], "bios/pxelinux.cfg/default").exists()
    assert not Path(roots["iso_dir"]).exists()


def test_target_failure_exits_nonzero(write_config, debian_target, caplog):
    path = write_config([debian_target])

    with patch.object(main_mod.Downloader, "fetch", side_effect=main_mod.TargetError("boom")):
        assert main(["--config", path, "--log", ""]) == 1

    assert "Failed to process target debian-bookworm-12.5: boom" in caplog.text


def test_run_with_injected_collaborators(write_config, debian_target, session, mounter, roots):
    result = run(config_path=write_config([debian_target]), session=session, mounter=mounter)

    assert result.results[0].ok
    assert Path(roots["tftpboot_dir"], "images/debian/bookworm/12.5/initrd").stat().st_size > 0


def test_flags_reach_the_runner(write_config, debian_target):
    path = write_config([debian_target])

    with patch.object(main_mod, "run") as fake_run:
        assert main(["--config", path, "--log", "", "--force", "--keep-going"]) == 0

    fake_run.assert_called_once_with(config_path=path, force=True, keep_going=True, render_only=False)


def test_undecodable_config_exits_nonzero(tmp_path, caplog):
    p = tmp_path / "config.yaml"
    p.write_bytes(b"# \xff\xfe\ntargets: []\n")

    assert main(["--config", str(p), "--log", ""]) == 1
    assert "failed to read config file" in caplog.text
