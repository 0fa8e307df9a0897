"""Command-line entry point for the Immich updater."""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

from immich_updater import __version__
from immich_updater.config import check_executable, find_docker, load_settings
from immich_updater.constants import DEFAULT_CONFIG_PATH
from immich_updater.errors import AlreadyRunning, ConfigInvalid, ConfigMissing
from immich_updater.lock import LockFile, handle_termination
from immich_updater.logging import get_logger, setup_logging
from immich_updater.runner import run_update_check

log = get_logger("immich_updater.main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="immich-updater",
        description="Safely update a docker compose Immich deployment to the latest release.",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help=f"settings file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def running_as_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0


def main(argv: list[str] | None = None) -> int:
    """Run one update check and return the process exit code."""
    args = build_parser().parse_args(argv)

    # Console only until the settings name the log file
    setup_logging()

    try:
        settings = load_settings(args.config)
        setup_logging(settings.log_file, settings.log_level)
        docker = check_executable(find_docker())
    except (ConfigMissing, ConfigInvalid) as exc:
        log.error(f"❌ {exc}. Exiting.")
        return exc.exit_code

    if running_as_root() and not settings.allow_root:
        log.error("❌ This script should not be run as root or with sudo.")
        return 1

    assert settings.lock_file is not None
    try:
        with handle_termination(), LockFile(settings.lock_file):
            log.info(f"🔄 Starting Immich update check (PID: {os.getpid()})...")
            log.info(f"📍 Running from: {os.getcwd()}")
            log.info(f"🔧 Using Docker: {docker}")
            outcome = asyncio.run(run_update_check(settings, docker=docker))
    except AlreadyRunning as exc:
        log.error(f"❌ {exc}. Exiting.")
        return exc.exit_code

    log.info("🏁 Update check completed", exit_code=outcome.exit_code)
    return outcome.exit_code


def run() -> None:
    """Console-script wrapper around :func:`main`."""
    sys.exit(main())


if __name__ == "__main__":
    run()
