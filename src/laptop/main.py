"""Command-line entry point for laptop bootstrap."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from laptop.errors import CommandFailure, LaptopError
from laptop.models.config import LaptopPaths, load_config
from laptop.services.orchestrator import build_orchestrator
from laptop.services.stage_store import FileStageStore
from laptop.utils.console import report_failure
from laptop.utils.logging import setup_logger


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="laptop",
        description="Provision a development machine; re-run to resume.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Provisioning plan (JSON); defaults to ~/.laptop/config.json",
    )
    parser.add_argument(
        "--home",
        default=None,
        help="Home directory to provision (defaults to the current user's)",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Log file path; defaults to ~/.laptop/logs/laptop.log",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Forget the saved stage and start from the beginning",
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="Print the saved stage and exit",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Also log to the terminal (otherwise only step narration is shown)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the provisioning state machine.

    Returns:
        Process exit code: 0 on completion, the failing command's exit code
        on CommandFailure, 1 on any other laptop or filesystem error
    """
    args = parse_args(argv)
    paths = LaptopPaths(args.home)

    level = logging.DEBUG if args.verbose else logging.INFO
    try:
        logger = setup_logger(
            "laptop",
            args.log_file or str(paths.log_file),
            level=level,
            console_level=level if args.verbose else None,
        )
    except OSError:
        # The log file is unusable; only the failure line is reported.
        report_failure()
        return 1

    store = FileStageStore(paths.stage_file)
    if args.status:
        print(store.load().value)
        return 0

    logger.info("Laptop bootstrap starting...")
    try:
        config_path = Path(args.config).expanduser() if args.config else paths.config_file
        config = load_config(config_path)
        if args.reset:
            store.reset()
        orchestrator = build_orchestrator(paths, config, store=store)
        executed = asyncio.run(orchestrator.run())
    except CommandFailure as e:
        logger.error(f"Run aborted: {e}")
        report_failure()
        return e.returncode or 1
    except LaptopError as e:
        logger.error(f"Run aborted: {e}")
        report_failure()
        return 1
    except OSError as e:
        logger.error(f"Run aborted: FILESYSTEM_ERROR: {e}")
        report_failure()
        return 1
    except KeyboardInterrupt:
        logger.warning(f"Interrupted, stage left at {store.load().value}")
        report_failure()
        return 130

    logger.info(f"Laptop bootstrap complete: {', '.join(s.value for s in executed)}")
    return 0


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
