from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import Settings, Target


@dataclass(frozen=True)
class ProvisioningPaths:
    """Per-target locations, recomputed from the configured roots every run."""

    settings: Settings
    target: Target

    @property
    def iso_dir(self) -> Path:
        return Path(self.settings.iso_dir, "images", *self.target.path_parts)

    @property
    def iso_file(self) -> Path:
        return self.iso_dir / self.target.iso_filename

    @property
    def tftp_image_dir(self) -> Path:
        return Path(self.settings.tftpboot_dir, "images", *self.target.path_parts)

    @property
    def mount_point(self) -> Path:
        return Path(self.settings.mount_dir, *self.target.path_parts)


@dataclass(frozen=True)
class BootRootPaths:
    settings: Settings

    @property
    def images_dir(self) -> Path:
        return Path(self.settings.tftpboot_dir) / "images"

    @property
    def bios_dir(self) -> Path:
        return Path(self.settings.tftpboot_dir) / "bios"

    @property
    def images_alias(self) -> Path:
        return self.bios_dir / "images"

    @property
    def pxelinux_cfg_dir(self) -> Path:
        return self.bios_dir / "pxelinux.cfg"

    @property
    def pxelinux_default(self) -> Path:
        return self.pxelinux_cfg_dir / "default"

    @property
    def ipxe_dir(self) -> Path:
        return Path(self.settings.tftpboot_dir) / "ipxe"

    @property
    def boot_ipxe(self) -> Path:
        return self.ipxe_dir / "boot.ipxe"
