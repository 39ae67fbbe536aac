from __future__ import annotations

import argparse
import logging
from typing import List, Optional

import requests

from .config import ProvisionConfig, load_config
from .errors import PxeBootstrapError, TargetError
from .lib.download import Downloader
from .lib.mount import LoopMounter, Mounter
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .menus import MenuRenderer
from .pipeline import ProvisioningRunner, RunResult, Step, TargetProcessor
from .steps import DownloadIsoStep, ExtractBootFilesStep, PrepareDirsStep

logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = "config.yaml"


def build_steps() -> List[Step]:
    return [
        PrepareDirsStep(),
        DownloadIsoStep(),
        ExtractBootFilesStep(),
    ]


def build_runner(
    config: ProvisionConfig,
    *,
    force: bool = False,
    keep_going: bool = False,
    session: Optional[requests.Session] = None,
    mounter: Optional[Mounter] = None,
    log: Optional[logging.Logger] = None,
) -> ProvisioningRunner:
    log = log or logger
    timeouts = config.settings.timeouts

    downloader = Downloader(
        session=session,
        timeout=(timeouts.download_connect, timeouts.download_read),
        logger=log,
    )
    if mounter is None:
        mounter = LoopMounter(timeout=timeouts.mount, logger=log)

    processor = TargetProcessor(
        config,
        steps=build_steps(),
        downloader=downloader,
        mounter=mounter,
        force=force,
        logger=log,
    )
    return ProvisioningRunner(
        config,
        processor=processor,
        renderer=MenuRenderer(config.settings, logger=log),
        keep_going=keep_going,
        logger=log,
    )


def run(
    *,
    config_path: str,
    force: bool = False,
    keep_going: bool = False,
    render_only: bool = False,
    session: Optional[requests.Session] = None,
    mounter: Optional[Mounter] = None,
) -> Optional[RunResult]:
    """Load the target list and provision it; raises on any fatal error."""

    logger.info("Reading configuration from: %s", config_path)
    config = load_config(config_path)
    logger.info("Configuration loaded successfully")
    logger.info("Found %d targets to process", len(config.targets))

    runner = build_runner(config, force=force, keep_going=keep_going, session=session, mounter=mounter)

    if render_only:
        runner.render()
        return None

    result = runner.run()
    for r in result.results:
        for w in r.warnings:
            logger.warning("[%s] %s", r.target.label, w)
    logger.info(
        "Provisioned %d targets (%d downloaded)",
        len(result.results),
        sum(1 for r in result.results if r.downloaded),
    )
    return result


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="pxe-bootstrap")
    p.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to configuration file (yaml|json)")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to log file ('' for console only)")
    p.add_argument("--force", action="store_true", help="Re-download ISOs even if present")
    p.add_argument("--keep-going", action="store_true", help="Process remaining targets after a failure")
    p.add_argument("--render-only", action="store_true", help="Only regenerate boot menus and the images symlink")
    p.add_argument("--verbose", "-v", action="store_true")

    args = p.parse_args(argv)

    configure_logging(log_path=args.log or None, level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        run(
            config_path=args.config,
            force=bool(args.force),
            keep_going=bool(args.keep_going),
            render_only=bool(args.render_only),
        )
    except TargetError as e:
        logger.error("Failed to process %s", e.describe())
        return 1
    except PxeBootstrapError as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
