from __future__ import annotations

from ..lib.assets import copy_artifacts
from ..pipeline import Stage, TargetCtx


class ExtractBootFilesStep:
    """Mount the ISO, copy kernel and initrd out, and always unmount."""

    step_id = "30_extract_boot_files"

    def run(self, ctx: TargetCtx) -> None:
        target = ctx.target
        if target.boot_files is None:
            ctx.logger.info("Skipping mount and copy for %s (boot_files not configured)", target.label)
            ctx.result.reach(Stage.BOOT_FILES_SKIPPED)
            return

        handle = ctx.mounter.mount(ctx.paths.iso_file, ctx.paths.mount_point)
        try:
            ctx.result.reach(Stage.MOUNTED)
            copy_artifacts(
                handle.mount_point,
                ctx.paths.tftp_image_dir,
                target.boot_files,
                logger=ctx.logger,
            )
            ctx.result.reach(Stage.COPIED)
        finally:
            handle.release()
            if handle.warning is not None:
                ctx.result.warnings.append(handle.warning)

        ctx.result.reach(Stage.UNMOUNTED)
