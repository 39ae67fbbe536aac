from __future__ import annotations

import argparse
import logging
import os

from pxe_bootstrap.config import Settings, load_settings
from pxe_bootstrap.errors import ConfigLoadError
from pxe_bootstrap.logging_utils import configure_logging

from .app import create_app

logger = logging.getLogger(__name__)

CONFIG_ENV = "PXEBOOT_API_CONFIG"
DEFAULT_LOG_PATH = "/var/log/pxeboot-api.log"


def _settings_from_args(args: argparse.Namespace) -> Settings:
    path = args.config or os.environ.get(CONFIG_ENV)
    if not path:
        logger.info("No configuration file given; using built-in defaults")
        return Settings()
    return load_settings(path)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="pxeboot-api")
    p.add_argument("--config", help=f"Configuration file (yaml|json); defaults to ${CONFIG_ENV}")
    p.add_argument("--host", default="0.0.0.0", help="Listen address (default: 0.0.0.0)")
    p.add_argument("--port", type=int, default=8080, help="Listen port (default: 8080)")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to log file ('' for console only)")
    return p


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)

    configure_logging(log_path=args.log or None, fallback_name="pxeboot-api.log")

    try:
        settings = _settings_from_args(args)
    except ConfigLoadError as e:
        logger.error("Failed to load configuration: %s", e)
        return 1

    logger.info("Starting PXEBoot API server")
    logger.info("TFTP Boot Directory: %s", settings.tftpboot_dir)
    logger.info("ISO Directory: %s", settings.iso_dir)
    logger.info("PXE Server Host: %s", settings.pxe_server_host)

    app = create_app(settings)
    logger.info("Server listening on %s:%d", args.host, args.port)
    try:
        app.run(host=args.host, port=args.port)
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
