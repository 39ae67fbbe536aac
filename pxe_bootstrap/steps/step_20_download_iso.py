from __future__ import annotations

from ..pipeline import Stage, TargetCtx


class DownloadIsoStep:
    step_id = "20_download_iso"

    def run(self, ctx: TargetCtx) -> None:
        ctx.result.downloaded = ctx.downloader.fetch(
            ctx.target.iso_file,
            ctx.paths.iso_file,
            force=ctx.force,
        )
        ctx.result.reach(Stage.DOWNLOADED)
