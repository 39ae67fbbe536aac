from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ISOInfo:
    name: str
    codename: str
    filename: str
    version: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def list_isos(iso_dir: str) -> List[ISOInfo]:
    """Walk ``iso_dir/images`` and infer distro identity from path segments.

    Layout is ``<name>/<codename>[/<version>]/<file>``. Hidden files
    (download manifests, partial downloads) are skipped.
    """

    root = Path(iso_dir) / "images"
    if not root.is_dir():
        raise FileNotFoundError(f"ISO directory not found: {root}")

    def on_error(e: OSError) -> None:
        raise e

    found: List[ISOInfo] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
        parts = Path(dirpath).relative_to(root).parts
        if len(parts) not in (2, 3):
            continue
        for fn in sorted(filenames):
            if fn.startswith("."):
                continue
            info = ISOInfo(
                name=parts[0],
                codename=parts[1],
                version=parts[2] if len(parts) == 3 else "",
                filename=fn,
            )
            logger.info("Found ISO: %s/%s", "/".join(parts), fn)
            found.append(info)

    return found
