from .step_10_prepare_dirs import PrepareDirsStep
from .step_20_download_iso import DownloadIsoStep
from .step_30_extract_boot_files import ExtractBootFilesStep

__all__ = [
    "PrepareDirsStep",
    "DownloadIsoStep",
    "ExtractBootFilesStep",
]
