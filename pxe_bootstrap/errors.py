from __future__ import annotations

from typing import Any, Optional


class PxeBootstrapError(RuntimeError):
    """Base class for every fatal provisioning error."""


class ConfigLoadError(PxeBootstrapError):
    pass


class TargetError(PxeBootstrapError):
    """A failure that aborts processing of a single target.

    The runner fills in ``target`` before the error leaves the pipeline.
    """

    target: Optional[Any] = None

    def describe(self) -> str:
        if self.target is None:
            return str(self)
        return f"target {self.target.label}: {self}"


class DirectoryError(TargetError):
    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(f"failed to create directory {path}: {cause}")
        self.path = path
        self.cause = cause


class DownloadError(TargetError):
    def __init__(self, url: str, cause: Any) -> None:
        super().__init__(f"failed to download {url}: {cause}")
        self.url = url
        self.cause = cause


class MountError(TargetError):
    def __init__(self, image: str, mount_point: str, reason: str, output: str = "") -> None:
        msg = f"failed to mount {image} at {mount_point}: {reason}"
        if output:
            msg += f", output: {output.strip()}"
        super().__init__(msg)
        self.image = image
        self.mount_point = mount_point
        self.output = output


class CopyError(TargetError):
    def __init__(self, source: str, cause: Any) -> None:
        super().__init__(f"failed to copy {source}: {cause}")
        self.source = source
        self.cause = cause


class RenderError(PxeBootstrapError):
    pass


class UnmountWarning(UserWarning):
    """Cleanup failure; logged and recorded, never raised."""
