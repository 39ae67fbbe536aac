from __future__ import annotations

from pathlib import Path

from ..errors import DirectoryError
from ..pipeline import Stage, TargetCtx


def ensure_dir(path: Path, ctx: TargetCtx) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryError(str(path), e) from e
    ctx.logger.info("Created directory: %s", path)


class PrepareDirsStep:
    step_id = "10_prepare_dirs"

    def run(self, ctx: TargetCtx) -> None:
        ensure_dir(ctx.paths.iso_dir, ctx)

        # tftp and mount directories only matter when boot files get extracted
        if ctx.target.has_boot_files:
            ensure_dir(ctx.paths.tftp_image_dir, ctx)
            ensure_dir(ctx.paths.mount_point, ctx)

        ctx.result.reach(Stage.DIRS_READY)
