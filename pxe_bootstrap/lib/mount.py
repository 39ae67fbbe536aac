from __future__ import annotations

import enum
import logging
import os
from pathlib import Path
from typing import Optional, Protocol, Sequence

from ..errors import MountError, UnmountWarning
from .command import CommandError, CommandRunner, run_cmd

DEFAULT_OPTIONS = ("loop", "ro")


class MountState(enum.Enum):
    UNMOUNTED = "unmounted"
    MOUNTING = "mounting"
    MOUNTED = "mounted"
    UNMOUNTING = "unmounting"


def is_dir_empty(path: Path) -> bool:
    with os.scandir(path) as it:
        return next(it, None) is None


class MountHandle:
    """A mounted (or pre-populated) ISO tree.

    Only handles that performed the mount unmount on release. Release is safe
    to call more than once and never raises; a failed unmount is logged and
    kept on ``warning``.
    """

    def __init__(
        self,
        mount_point: Path,
        *,
        owned: bool,
        runner: CommandRunner = run_cmd,
        timeout: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.mount_point = Path(mount_point)
        self.owned = owned
        self.state = MountState.MOUNTED if owned else MountState.UNMOUNTED
        self.warning: Optional[UnmountWarning] = None
        self._runner = runner
        self._timeout = timeout
        self._logger = logger or logging.getLogger(__name__)

    def release(self) -> None:
        if not self.owned or self.state is not MountState.MOUNTED:
            return

        self._logger.info("Unmounting %s", self.mount_point)
        self.state = MountState.UNMOUNTING
        try:
            self._runner(["umount", str(self.mount_point)], timeout=self._timeout, logger=self._logger)
        except CommandError as e:
            self.warning = UnmountWarning(f"failed to unmount {self.mount_point}: {e} {e.output}".strip())
            self._logger.warning("Warning: %s", self.warning)
        finally:
            # no retry: a failed umount is reported once
            self.state = MountState.UNMOUNTED

    def __enter__(self) -> "MountHandle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


class Mounter(Protocol):
    def mount(self, image: Path, mount_point: Path, options: Sequence[str] = DEFAULT_OPTIONS) -> MountHandle:
        ...


class LoopMounter:
    """Attach ISO images read-only through the system ``mount`` command."""

    def __init__(
        self,
        *,
        runner: CommandRunner = run_cmd,
        timeout: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.runner = runner
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    def mount(self, image: Path, mount_point: Path, options: Sequence[str] = DEFAULT_OPTIONS) -> MountHandle:
        mount_point = Path(mount_point)
        try:
            empty = is_dir_empty(mount_point)
        except OSError as e:
            raise MountError(str(image), str(mount_point), f"failed to check mount point: {e}") from e

        if not empty:
            if os.path.ismount(mount_point):
                self.logger.info("Mount point %s is already mounted", mount_point)
            else:
                self.logger.warning(
                    "Mount point %s contains files but is not a mount point; using its contents as-is",
                    mount_point,
                )
            return MountHandle(mount_point, owned=False, logger=self.logger)

        handle = MountHandle(
            mount_point,
            owned=True,
            runner=self.runner,
            timeout=self.timeout,
            logger=self.logger,
        )
        handle.state = MountState.MOUNTING
        self.logger.info("Mounting ISO %s to %s", image, mount_point)
        try:
            self.runner(
                ["mount", "-o", ",".join(options), str(image), str(mount_point)],
                timeout=self.timeout,
                logger=self.logger,
            )
        except CommandError as e:
            handle.state = MountState.UNMOUNTED
            raise MountError(str(image), str(mount_point), e.reason, e.output) from e
        except BaseException:
            # interrupted mid-mount: detach whatever got attached, then re-raise
            if os.path.ismount(mount_point):
                handle.state = MountState.MOUNTED
                handle.release()
            else:
                handle.state = MountState.UNMOUNTED
            raise

        handle.state = MountState.MOUNTED
        return handle
