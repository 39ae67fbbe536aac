from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from .config import ProvisionConfig, Target
from .errors import PxeBootstrapError, TargetError, UnmountWarning
from .lib.download import Downloader
from .lib.mount import Mounter
from .menus import MenuRenderer
from .paths import ProvisioningPaths


class Stage(enum.Enum):
    INIT = "init"
    DIRS_READY = "dirs_ready"
    DOWNLOADED = "downloaded"
    BOOT_FILES_SKIPPED = "boot_files_skipped"
    MOUNTED = "mounted"
    COPIED = "copied"
    UNMOUNTED = "unmounted"
    DONE = "done"


@dataclass
class TargetResult:
    target: Target
    stages: List[Stage] = field(default_factory=lambda: [Stage.INIT])
    downloaded: bool = False
    warnings: List[UnmountWarning] = field(default_factory=list)
    error: Optional[TargetError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.stages[-1] is Stage.DONE

    def reach(self, stage: Stage) -> None:
        self.stages.append(stage)


@dataclass(frozen=True)
class TargetCtx:
    """Everything a step needs to work on one target."""

    target: Target
    paths: ProvisioningPaths
    downloader: Downloader
    mounter: Mounter
    logger: logging.Logger
    result: TargetResult
    force: bool = False


class Step(Protocol):
    """A single idempotent stage of target processing."""

    step_id: str

    def run(self, ctx: TargetCtx) -> None:
        ...


class TargetProcessor:
    """Run every step for one target, strictly in order, without retries."""

    def __init__(
        self,
        config: ProvisionConfig,
        *,
        steps: Sequence[Step],
        downloader: Downloader,
        mounter: Mounter,
        force: bool = False,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config
        self.steps = list(steps)
        self.downloader = downloader
        self.mounter = mounter
        self.force = force
        self.logger = logger or logging.getLogger(__name__)

    def process(self, target: Target, result: Optional[TargetResult] = None) -> TargetResult:
        result = result or TargetResult(target=target)
        ctx = TargetCtx(
            target=target,
            paths=ProvisioningPaths(self.config.settings, target),
            downloader=self.downloader,
            mounter=self.mounter,
            logger=self.logger,
            result=result,
            force=self.force,
        )

        for step in self.steps:
            self.logger.debug("[%s] running %s", target.label, step.step_id)
            try:
                step.run(ctx)
            except TargetError as e:
                e.target = target
                result.error = e
                raise

        result.reach(Stage.DONE)
        return result


@dataclass(frozen=True)
class RunResult:
    results: List[TargetResult]
    rendered: List[Path]


class ProvisioningRunner:
    """Process every target in declared order, then render the menus once.

    By default the first failing target aborts the run. With ``keep_going``
    the remaining targets are still processed, but menus are only rendered
    when every target succeeded.
    """

    def __init__(
        self,
        config: ProvisionConfig,
        *,
        processor: TargetProcessor,
        renderer: MenuRenderer,
        keep_going: bool = False,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config
        self.processor = processor
        self.renderer = renderer
        self.keep_going = keep_going
        self.logger = logger or logging.getLogger(__name__)

    def run(self) -> RunResult:
        targets = self.config.targets
        results: List[TargetResult] = []

        for i, target in enumerate(targets, start=1):
            self.logger.info(
                "Processing target %d/%d: %s %s %s",
                i,
                len(targets),
                target.name,
                target.codename,
                target.version,
            )
            result = TargetResult(target=target)
            results.append(result)
            try:
                self.processor.process(target, result)
            except TargetError as e:
                if not self.keep_going:
                    raise
                self.logger.error("Failed to process %s", e.describe())

        failed = [r for r in results if not r.ok]
        if failed:
            names = ", ".join(r.target.label for r in failed)
            raise PxeBootstrapError(f"{len(failed)} target(s) failed ({names}); boot menus not rendered")

        return RunResult(results=results, rendered=self.render())

    def render(self) -> List[Path]:
        return self.renderer.render(self.config.targets)
