from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

DEFAULT_LOG_PATH = "/var/log/pxe-bootstrap.log"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def configure_logging(
    log_path: Optional[str] = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
    fallback_name: str = "pxe-bootstrap.log",
) -> Optional[str]:
    """Configure root logging once per process.

    Notes:
    - Provisioning usually runs as root and can write to /var/log. When it
      cannot, we fall back to a file in the working directory and keep going.
    - ``log_path=None`` disables the file handler.

    Returns the actual file path being used, if any.
    """

    root = logging.getLogger()
    root.setLevel(level)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(root, "_pxe_bootstrap_configured", False):
        return getattr(root, "_pxe_bootstrap_log_path", log_path)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    handlers: list[logging.Handler] = []

    chosen_path: Optional[str] = None
    if log_path:
        try:
            Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_path))
            chosen_path = log_path
        except OSError:
            fallback = str(Path.cwd() / fallback_name)
            handlers.append(logging.FileHandler(fallback))
            chosen_path = fallback

    if also_console:
        handlers.append(logging.StreamHandler())

    for h in handlers:
        h.setFormatter(fmt)
        root.addHandler(h)

    setattr(root, "_pxe_bootstrap_configured", True)
    setattr(root, "_pxe_bootstrap_log_path", chosen_path)

    logging.getLogger(__name__).info("Logging initialized (requested=%s, actual=%s)", log_path, chosen_path)
    return chosen_path
