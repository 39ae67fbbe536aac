from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def manifest_path(iso_file: Path) -> Path:
    """Completion marker written next to a fully downloaded ISO."""
    return iso_file.with_name(f".{iso_file.name}.manifest.json")


def load_manifest(iso_file: Path) -> Optional[Dict[str, Any]]:
    p = manifest_path(iso_file)
    if not p.exists():
        return None

    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable download manifest %s: %s", p, e)
        return None

    if not isinstance(data, dict):
        logger.warning("Ignoring download manifest %s: not an object", p)
        return None
    return data


def save_manifest(iso_file: Path, *, url: str, size: int, sha256: str) -> None:
    p = manifest_path(iso_file)
    tmp = p.with_name(p.name + ".tmp")
    data = {"url": url, "size": size, "sha256": sha256}
    tmp.write_text(json.dumps(data, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    os.replace(tmp, p)


def is_stale(iso_file: Path) -> bool:
    """True when a manifest exists and disagrees with the file on disk.

    An ISO without a manifest was seeded by the operator and counts as complete.
    """

    m = load_manifest(iso_file)
    if m is None:
        return False
    try:
        return int(m.get("size", -1)) != iso_file.stat().st_size
    except (TypeError, ValueError):
        return True
