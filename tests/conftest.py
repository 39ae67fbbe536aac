"""Shared fixtures for pxe-bootstrap tests.

Provides:
- Config roots under tmp_path and a YAML config writer
- FakeSession: a requests-like session serving canned ISO bodies
- FakeRunner: a command runner that simulates loop mounts by populating
  the mount point, so no root privileges or loop devices are needed
"""

import shutil
from pathlib import Path
from typing import Dict, List, Optional

import pytest
import requests
import yaml

from pxe_bootstrap.config import load_config
from pxe_bootstrap.lib.command import CmdResult, CommandError
from pxe_bootstrap.lib.mount import LoopMounter

DEBIAN_URL = "https://example/debian-12.5.iso"

ISO_TREE = {
    "install.amd/vmlinuz": b"debian-kernel",
    "install.amd/initrd.gz": b"debian-initrd",
    "README.txt": b"debian installer",
}


class FakeResponse:
    def __init__(self, url: str, status: int = 200, chunks: Optional[List[bytes]] = None, fail_after: Optional[int] = None):
        self.url = url
        self.status_code = status
        self.chunks = chunks or []
        self.fail_after = fail_after

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error for url: {self.url}", response=None)

    def iter_content(self, chunk_size: int = 1):
        for i, c in enumerate(self.chunks):
            if self.fail_after is not None and i >= self.fail_after:
                raise requests.ConnectionError("connection reset by peer")
            yield c

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


class FakeSession:
    def __init__(self) -> None:
        self.routes: Dict[str, dict] = {}
        self.calls: List[dict] = []

    def serve(self, url: str, body: bytes = b"iso-bytes", *, status: int = 200, fail_after: Optional[int] = None) -> None:
        chunks = [body[i : i + 4] for i in range(0, len(body), 4)] or [b""]
        self.routes[url] = {"status": status, "chunks": chunks, "fail_after": fail_after}

    def get(self, url, stream=False, timeout=None):
        self.calls.append({"url": url, "stream": stream, "timeout": timeout})
        if url not in self.routes:
            raise requests.ConnectionError(f"no route to {url}")
        r = self.routes[url]
        return FakeResponse(url, status=r["status"], chunks=r["chunks"], fail_after=r["fail_after"])


class FakeRunner:
    """Records commands; ``mount`` copies ``tree`` into the mount point."""

    def __init__(self, tree: Optional[Dict[str, bytes]] = None) -> None:
        self.tree = dict(ISO_TREE if tree is None else tree)
        self.calls: List[List[str]] = []
        self.fail_mount = False
        self.fail_umount = False

    def __call__(self, argv, *, check=True, timeout=None, logger=None):
        argv = list(argv)
        self.calls.append(argv)
        if argv[0] == "mount":
            if self.fail_mount:
                raise CommandError(argv, "exit status 32", "mount: /mnt/x: failed to setup loop device")
            mount_point = Path(argv[-1])
            for rel, data in self.tree.items():
                p = mount_point / rel
                p.parent.mkdir(parents=True, exist_ok=True)
                p.write_bytes(data)
        elif argv[0] == "umount":
            if self.fail_umount:
                raise CommandError(argv, "exit status 32", "umount: target is busy")
            mount_point = Path(argv[-1])
            for child in mount_point.iterdir():
                if child.is_dir():
                    shutil.rmtree(child)
                else:
                    child.unlink()
        return CmdResult(argv=argv, returncode=0, output="")

    def commands(self, name: str) -> List[List[str]]:
        return [c for c in self.calls if c[0] == name]


@pytest.fixture
def roots(tmp_path):
    return {
        "tftpboot_dir": str(tmp_path / "tftp"),
        "iso_dir": str(tmp_path / "iso"),
        "mount_dir": str(tmp_path / "mnt"),
        "dnsmasq_dir": str(tmp_path / "dnsmasq.d"),
        "pxe_server_host": "192.168.10.1",
    }


@pytest.fixture
def debian_target():
    return {
        "name": "debian",
        "codename": "bookworm",
        "version": "12.5",
        "iso_file": DEBIAN_URL,
        "boot_files": {"vmlinuz": "install.amd/vmlinuz", "initrd": "install.amd/initrd.gz"},
    }


@pytest.fixture
def write_config(tmp_path, roots):
    def _write(targets, name="config.yaml", **overrides):
        raw = dict(roots)
        raw.update(overrides)
        raw["targets"] = targets
        p = tmp_path / name
        p.write_text(yaml.safe_dump(raw, sort_keys=False), encoding="utf-8")
        return str(p)

    return _write


@pytest.fixture
def make_config(write_config):
    def _make(targets, **overrides):
        return load_config(write_config(targets, **overrides))

    return _make


@pytest.fixture
def session():
    s = FakeSession()
    s.serve(DEBIAN_URL, b"debian-12.5-iso-image")
    return s


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def mounter(runner):
    return LoopMounter(runner=runner)
