from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path
from typing import Optional, Tuple

import requests

from ..errors import DownloadError
from ..manifest import is_stale, manifest_path, save_manifest

CHUNK_SIZE = 1024 * 1024


class Downloader:
    """Fetch remote ISOs, skipping files that are already complete on disk."""

    def __init__(
        self,
        *,
        session: Optional[requests.Session] = None,
        timeout: Tuple[float, float] = (30.0, 300.0),
        chunk_size: int = CHUNK_SIZE,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.logger = logger or logging.getLogger(__name__)

    def fetch(self, url: str, dest: Path, *, force: bool = False) -> bool:
        """Download ``url`` to ``dest``; returns True if a transfer happened.

        Data is streamed into a hidden ``.part`` file beside ``dest`` and
        renamed into place only once the whole body has been written, so an
        interrupted transfer never looks like a finished one.
        """

        dest = Path(dest)
        if dest.exists() and not force:
            if not is_stale(dest):
                self.logger.info("ISO file already exists at %s", dest)
                return False
            self.logger.warning("ISO file %s does not match its download manifest; fetching again", dest)

        part = dest.with_name(f".{dest.name}.part")
        self.logger.info("Downloading ISO from %s", url)

        digest = hashlib.sha256()
        size = 0
        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as resp:
                resp.raise_for_status()
                with part.open("wb") as f:
                    for chunk in resp.iter_content(chunk_size=self.chunk_size):
                        if not chunk:
                            continue
                        f.write(chunk)
                        digest.update(chunk)
                        size += len(chunk)
            os.replace(part, dest)
        except requests.RequestException as e:
            self._discard(part)
            raise DownloadError(url, e) from e
        except OSError as e:
            self._discard(part)
            raise DownloadError(url, f"write to {dest} failed: {e}") from e

        try:
            save_manifest(dest, url=url, size=size, sha256=digest.hexdigest())
        except OSError as e:
            raise DownloadError(url, f"failed to write {manifest_path(dest)}: {e}") from e

        self.logger.info("Downloaded ISO to %s (%d bytes)", dest, size)
        return True

    def _discard(self, part: Path) -> None:
        try:
            part.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning("Could not remove partial download %s: %s", part, e)
