from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import List, Optional

from ..config import BootFiles
from ..errors import CopyError

KERNEL_NAME = "vmlinuz"
INITRD_NAME = "initrd"


def resolve_inside(root: Path, rel: str) -> Path:
    """Resolve a path from the config inside ``root``; leading slashes are allowed."""

    candidate = (root / rel.lstrip("/")).resolve()
    try:
        candidate.relative_to(root.resolve())
    except ValueError as e:
        raise CopyError(rel, f"path escapes {root}") from e
    return candidate


def copy_artifacts(
    mount_point: Path,
    dest_dir: Path,
    boot_files: BootFiles,
    *,
    logger: Optional[logging.Logger] = None,
) -> List[Path]:
    """Copy kernel and initrd out of a mounted ISO tree.

    Destinations are always overwritten. The first failing file aborts the
    copy with a CopyError naming its source.
    """

    log = logger or logging.getLogger(__name__)
    mount_point = Path(mount_point)
    dest_dir = Path(dest_dir)

    files = [
        (boot_files.vmlinuz, dest_dir / KERNEL_NAME),
        (boot_files.initrd, dest_dir / INITRD_NAME),
    ]

    copied: List[Path] = []
    for rel, dest in files:
        src = resolve_inside(mount_point, rel)
        log.info("Copying %s to %s", src, dest)
        try:
            if src.stat().st_size == 0:
                raise CopyError(str(src), "source file is empty")
            shutil.copyfile(src, dest)
        except OSError as e:
            raise CopyError(str(src), e) from e
        copied.append(dest)

    return copied
