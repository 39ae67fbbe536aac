from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from pxe_bootstrap.config import Settings
from pxe_bootstrap.templating import render_to_file, template_env

_MAC_RE = re.compile(r"^[0-9A-Fa-f]{2}([:-][0-9A-Fa-f]{2}){5}$")
_HOSTNAME_RE = re.compile(r"^[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?$")
_SEGMENT_RE = re.compile(r"^[^/\\]+$")

HOST_TEMPLATES = {
    "pxelinux_config": "pxelinux_host.cfg.j2",
    "ipxe_config": "ipxe_host.ipxe.j2",
    "dnsmasq_config": "dnsmasq_host.conf.j2",
}


class HostConfigError(ValueError):
    pass


@dataclass(frozen=True)
class HostConfig:
    mac_address: str
    ip_address: str
    hostname: str
    name: str
    codename: str
    iso: str
    version: str = ""

    @classmethod
    def from_json(cls, data: Any) -> "HostConfig":
        if not isinstance(data, dict):
            raise HostConfigError("request body must be a JSON object")

        values: Dict[str, str] = {}
        for key in ("mac_address", "ip_address", "hostname", "name", "codename", "iso"):
            v = data.get(key)
            if not isinstance(v, str) or not v:
                raise HostConfigError(f"missing required field '{key}'")
            values[key] = v
        version = data.get("version") or ""
        if not isinstance(version, str):
            raise HostConfigError("field 'version' must be a string")

        if not _MAC_RE.match(values["mac_address"]):
            raise HostConfigError(f"invalid mac_address: {values['mac_address']}")
        if not _HOSTNAME_RE.match(values["hostname"]):
            raise HostConfigError(f"invalid hostname: {values['hostname']}")
        for key in ("name", "codename", "iso"):
            if not _SEGMENT_RE.match(values[key]) or values[key] in {".", ".."}:
                raise HostConfigError(f"invalid {key}: {values[key]}")
        if version and (not _SEGMENT_RE.match(version) or version in {".", ".."}):
            raise HostConfigError(f"invalid version: {version}")

        return cls(version=version, **values)

    @property
    def image_path(self) -> str:
        parts = [self.name, self.codename]
        if self.version:
            parts.append(self.version)
        return "/".join(parts)

    def iso_path(self, settings: Settings) -> Path:
        return Path(settings.iso_dir, "images", self.image_path, self.iso)

    def check_required_files(self, settings: Settings) -> None:
        p = self.iso_path(settings)
        if not p.is_file():
            raise FileNotFoundError(f"required file not found: {p}")

    def mac_for_filename(self) -> str:
        """dnsmasq stanza name, e.g. ``fixip-web01-AA-BB-CC-DD-EE-FF``."""
        return f"fixip-{self.hostname}-{self.mac_address.replace(':', '-')}"

    def pxelinux_mac_format(self) -> str:
        """PXELinux per-host config name: ARP type ``01`` plus lowercase dashed MAC."""
        return "01-" + self.mac_address.replace(":", "-").lower()

    def ipxe_mac_format(self) -> str:
        return "mac-" + self.mac_address.replace(":", "").replace("-", "").lower()

    def template_data(self, settings: Settings) -> Dict[str, Any]:
        return {
            "name": self.name,
            "codename": self.codename,
            "version": self.version,
            "image_path": self.image_path,
            "iso_file": self.iso,
            "mac_address": self.mac_address,
            "ip_address": self.ip_address,
            "hostname": self.hostname,
            "pxe_server_host": settings.pxe_server_host,
        }


def host_config_paths(host: HostConfig, settings: Settings) -> Dict[str, Path]:
    tftp = Path(settings.tftpboot_dir)
    return {
        "pxelinux_config": tftp / "bios" / "pxelinux.cfg" / host.pxelinux_mac_format(),
        "ipxe_config": tftp / "ipxe" / f"{host.ipxe_mac_format()}.ipxe",
        "dnsmasq_config": Path(settings.dnsmasq_dir) / f"{host.mac_for_filename()}.conf",
    }


def generate_host_configs(host: HostConfig, settings: Settings) -> Dict[str, str]:
    """Write every per-host file; raises RenderError on the first failure."""

    env = template_env(settings.templates_dir)
    data = host.template_data(settings)
    files: Dict[str, str] = {}
    for config_type, dest in host_config_paths(host, settings).items():
        render_to_file(env, HOST_TEMPLATES[config_type], dest, data)
        files[config_type] = str(dest)
    return files
