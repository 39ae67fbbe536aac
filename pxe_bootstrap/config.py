from __future__ import annotations

import json
import logging
import posixpath
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import yaml

from .errors import ConfigLoadError

logger = logging.getLogger(__name__)


DEFAULT_TFTPBOOT_DIR = "/var/www/tftpboot"
DEFAULT_ISO_DIR = "/var/www/iso"
DEFAULT_MOUNT_DIR = "/mnt"
DEFAULT_DNSMASQ_DIR = "/etc/dnsmasq.d"
DEFAULT_PXE_SERVER_HOST = "192.168.10.1"

_LABEL_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]+")


@dataclass(frozen=True)
class BootFiles:
    vmlinuz: str
    initrd: str


@dataclass(frozen=True)
class Target:
    name: str
    codename: str
    iso_file: str
    version: str = ""
    boot_files: Optional[BootFiles] = None

    @property
    def identity(self) -> Tuple[str, str, str]:
        return (self.name, self.codename, self.version)

    @property
    def path_parts(self) -> List[str]:
        parts = [self.name, self.codename]
        if self.version:
            parts.append(self.version)
        return parts

    @property
    def image_path(self) -> str:
        """Relative ``name/codename[/version]`` used in every derived tree."""
        return "/".join(self.path_parts)

    @property
    def iso_filename(self) -> str:
        return posixpath.basename(urlparse(self.iso_file).path)

    @property
    def label(self) -> str:
        return _LABEL_UNSAFE.sub("-", "-".join(self.path_parts))

    @property
    def has_boot_files(self) -> bool:
        return self.boot_files is not None


@dataclass(frozen=True)
class Timeouts:
    download_connect: float = 30.0
    download_read: float = 300.0
    mount: float = 120.0


@dataclass(frozen=True)
class Settings:
    """Filesystem roots and service settings shared by the CLI and the API."""

    tftpboot_dir: str = DEFAULT_TFTPBOOT_DIR
    iso_dir: str = DEFAULT_ISO_DIR
    pxe_server_host: str = DEFAULT_PXE_SERVER_HOST
    mount_dir: str = DEFAULT_MOUNT_DIR
    dnsmasq_dir: str = DEFAULT_DNSMASQ_DIR
    templates_dir: Optional[str] = None
    timeouts: Timeouts = field(default_factory=Timeouts)


@dataclass(frozen=True)
class ProvisionConfig:
    settings: Settings
    targets: Tuple[Target, ...]


def read_config_file(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise ConfigLoadError(f"config file not found: {path}")

    ext = p.suffix.lower().lstrip(".")
    try:
        text = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigLoadError(f"failed to read config file {path}: {e}") from e

    try:
        if ext == "json":
            raw = json.loads(text)
        elif ext in {"yaml", "yml"}:
            raw = yaml.safe_load(text) or {}
        else:
            raise ConfigLoadError(f"config file must be YAML or JSON: {path}")
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigLoadError(f"failed to parse config file {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigLoadError(f"config file must contain a mapping/object: {path}")
    return raw


def _str_field(raw: Dict[str, Any], key: str, *, where: str, required: bool = True) -> str:
    value = raw.get(key)
    if value is None or value == "":
        if required:
            raise ConfigLoadError(f"{where}: missing required field '{key}'")
        return ""
    if isinstance(value, (dict, list)):
        raise ConfigLoadError(f"{where}: field '{key}' must be a string")
    if not isinstance(value, str):
        logger.warning("%s: %s=%r is not a string; quote it in the config to keep its exact form", where, key, value)
    return str(value)


def parse_settings(raw: Dict[str, Any]) -> Settings:
    t = raw.get("timeouts") or {}
    if not isinstance(t, dict):
        raise ConfigLoadError("timeouts must be a mapping")
    try:
        timeouts = Timeouts(**{k: float(v) for k, v in t.items()})
    except (TypeError, ValueError) as e:
        raise ConfigLoadError(f"invalid timeouts: {e}") from e

    return Settings(
        tftpboot_dir=str(raw.get("tftpboot_dir") or DEFAULT_TFTPBOOT_DIR),
        iso_dir=str(raw.get("iso_dir") or DEFAULT_ISO_DIR),
        pxe_server_host=str(raw.get("pxe_server_host") or DEFAULT_PXE_SERVER_HOST),
        mount_dir=str(raw.get("mount_dir") or DEFAULT_MOUNT_DIR),
        dnsmasq_dir=str(raw.get("dnsmasq_dir") or DEFAULT_DNSMASQ_DIR),
        templates_dir=raw.get("templates_dir") or None,
        timeouts=timeouts,
    )


def parse_target(raw: Any, index: int) -> Target:
    where = f"targets[{index}]"
    if not isinstance(raw, dict):
        raise ConfigLoadError(f"{where}: must be a mapping")

    name = _str_field(raw, "name", where=where)
    codename = _str_field(raw, "codename", where=where)
    version = _str_field(raw, "version", where=where, required=False)
    iso_file = _str_field(raw, "iso_file", where=where)

    for part in (name, codename, version):
        if "/" in part or part in {".", ".."}:
            raise ConfigLoadError(f"{where}: identity field {part!r} is not a valid path segment")

    url = urlparse(iso_file)
    if url.scheme not in {"http", "https"} or not posixpath.basename(url.path):
        raise ConfigLoadError(f"{where}: iso_file must be an http(s) URL naming a file, got {iso_file!r}")

    boot_files = None
    bf = raw.get("boot_files")
    if bf:
        if not isinstance(bf, dict):
            raise ConfigLoadError(f"{where}: boot_files must be a mapping")
        vmlinuz = _str_field(bf, "vmlinuz", where=f"{where}.boot_files", required=False)
        initrd = _str_field(bf, "initrd", where=f"{where}.boot_files", required=False)
        if bool(vmlinuz) != bool(initrd):
            raise ConfigLoadError(f"{where}: boot_files needs both 'vmlinuz' and 'initrd'")
        if vmlinuz:
            boot_files = BootFiles(vmlinuz=vmlinuz, initrd=initrd)

    return Target(name=name, codename=codename, version=version, iso_file=iso_file, boot_files=boot_files)


def load_settings(path: str) -> Settings:
    return parse_settings(read_config_file(path))


def load_config(path: str) -> ProvisionConfig:
    """Load and validate the target configuration.

    Raises ConfigLoadError for unreadable, unparseable or invalid files and for
    an empty target list. Nothing is written to disk.
    """

    raw = read_config_file(path)
    settings = parse_settings(raw)

    raw_targets = raw.get("targets") or []
    if not isinstance(raw_targets, list):
        raise ConfigLoadError("targets must be a list")
    if not raw_targets:
        raise ConfigLoadError("no targets found in configuration")

    targets: List[Target] = []
    seen = set()
    labels: Dict[str, Target] = {}
    for i, rt in enumerate(raw_targets):
        t = parse_target(rt, i)
        if t.identity in seen:
            raise ConfigLoadError(f"targets[{i}]: duplicate target {t.image_path}")
        # menu labels are the boot entry keys and must be unique
        other = labels.get(t.label)
        if other is not None:
            raise ConfigLoadError(
                f"targets[{i}]: menu label {t.label} of {t.image_path} clashes with {other.image_path}"
            )
        seen.add(t.identity)
        labels[t.label] = t
        targets.append(t)

    return ProvisionConfig(settings=settings, targets=tuple(targets))
