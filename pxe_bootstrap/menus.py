from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .config import Settings, Target
from .errors import RenderError
from .paths import BootRootPaths
from .templating import render_to_file, template_env

PXELINUX_MENU_TEMPLATE = "pxelinux_menu.cfg.j2"
IPXE_MENU_TEMPLATE = "boot.ipxe.j2"


def menu_context(settings: Settings, targets: Sequence[Target]) -> Dict[str, Any]:
    return {"pxe_server_host": settings.pxe_server_host, "targets": list(targets)}


class MenuRenderer:
    """Regenerate the aggregate boot menus and the ``bios/images`` alias."""

    def __init__(self, settings: Settings, *, logger: Optional[logging.Logger] = None) -> None:
        self.settings = settings
        self.paths = BootRootPaths(settings)
        self.env = template_env(settings.templates_dir)
        self.logger = logger or logging.getLogger(__name__)

    def link_images(self) -> Path:
        alias = self.paths.images_alias
        images = self.paths.images_dir
        try:
            alias.parent.mkdir(parents=True, exist_ok=True)
            if alias.is_symlink() or alias.is_file():
                alias.unlink()
            elif alias.exists():
                raise RenderError(f"refusing to replace directory {alias} with a symlink")
            # absolute so a relative tftpboot_dir does not dangle from bios/
            os.symlink(os.path.abspath(images), alias)
        except OSError as e:
            raise RenderError(f"failed to create symlink {alias} -> {images}: {e}") from e

        self.logger.info("Created symlink from %s to %s", images, alias)
        return alias

    def render(self, targets: Sequence[Target]) -> List[Path]:
        """Fully rewrite every menu from ``targets``; returns the files written."""

        self.link_images()

        ctx = menu_context(self.settings, targets)
        written = []
        for template_name, dest in [
            (PXELINUX_MENU_TEMPLATE, self.paths.pxelinux_default),
            (IPXE_MENU_TEMPLATE, self.paths.boot_ipxe),
        ]:
            self.logger.info("Rendering %s to %s", template_name, dest)
            written.append(render_to_file(self.env, template_name, dest, ctx))
            self.logger.info("Generated boot menu at: %s", dest)
        return written
