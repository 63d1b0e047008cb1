"""Command-line interface for the MinIO bootstrapper.

Provides argument parsing and the main entry point run at container
startup.
"""

import argparse
import dataclasses
import logging
import os
import sys
from typing import Optional

from minio_bootstrap.config import ConfigError, load_from_env
from minio_bootstrap.logging_config import LOG_FORMATS, LOG_LEVELS, configure_logging
from minio_bootstrap.reporters import ConsoleReporter
from minio_bootstrap.runner import BootstrapRunner
from minio_bootstrap.storage import MinioStorageService

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="minio-bootstrap",
        description="Provision a MinIO bucket, user and public-read policy",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress per-step output, show only summary",
    )

    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=os.environ.get("LOG_LEVEL", "INFO"),
        help="Log level (default: $LOG_LEVEL or INFO)",
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default="text",
        help="Log output format (default: text)",
    )

    parser.add_argument(
        "--wait-timeout",
        metavar="SECONDS",
        type=float,
        help="Stop waiting for MinIO or the new user after this many seconds "
             "(default: $MINIO_WAIT_TIMEOUT or wait forever)",
    )

    args = parser.parse_args(argv)
    # argparse does not check defaults against choices
    if args.log_level not in LOG_LEVELS:
        parser.error(f"invalid log level from LOG_LEVEL: {args.log_level!r}")
    return args


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code: 0 when every step succeeded, 1 otherwise
    """
    args = parse_args(argv)
    configure_logging(args.log_level, args.log_format)

    try:
        config = load_from_env()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    if args.wait_timeout is not None:
        if args.wait_timeout <= 0:
            print("Configuration error: --wait-timeout must be positive", file=sys.stderr)
            return 1
        config = dataclasses.replace(config, wait_timeout=args.wait_timeout)

    reporter = ConsoleReporter(quiet=args.quiet)

    with MinioStorageService() as storage:
        runner = BootstrapRunner(config, storage, reporter=reporter)
        result = runner.run()

    if not result.succeeded:
        failed = result.failed_step
        logger.error(
            "MinIO bootstrap failed at step '%s'",
            failed.name if failed else "unknown",
        )
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
