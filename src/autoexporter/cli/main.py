"""
Command-line interface for the autoexporter daemon.

This module provides the main CLI entry point: running the event listener,
tearing sidecars down, and listing or starting the exporters missing from
running containers.
"""

import argparse
import logging
import signal
import sys
import tomllib
from pathlib import Path
from typing import List, Optional

from ..backend import DockerRuntime, ExporterReconciler, StartupPipeline
from ..config import get_config, set_config_path
from ..errors import AutoExporterError
from ..executor import CancelContext
from ..validation import ValidationError, handle_cli_error, validate_enum_choice
from .daemon import ExporterDaemon, build_resolver

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# --- Logging Setup ---
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="autoexporter",
        description="Start and stop Prometheus exporter sidecars next to Docker containers.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to the main config.toml file.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        help=f"Override the configured log level. One of {', '.join(LOG_LEVELS)}.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "listen",
        help="Listen for container events and manage exporters accordingly.",
    )

    cleanup = subparsers.add_parser(
        "cleanup",
        help="Stop and remove one exporter, or all of them when no name is given.",
    )
    cleanup.add_argument("name", nargs="?", help="Name of the exporter container.")
    cleanup.add_argument(
        "--force",
        action="store_true",
        help="Stop exporters even if the container they monitor is still running.",
    )

    missing = subparsers.add_parser(
        "missing",
        help="List the exporters that should be running but aren't.",
    )
    missing.add_argument(
        "--start",
        action="store_true",
        help="Start the missing exporters.",
    )

    return parser


def _apply_log_level(level: str) -> None:
    try:
        level = validate_enum_choice(level, LOG_LEVELS, field_name="log level", case_sensitive=False)
    except ValidationError as e:
        handle_cli_error(
            error=e,
            context="log level validation",
            exit_code=1,
            include_traceback=False,
            logger=logger,
        )
    logging.getLogger().setLevel(level.upper())


def run_listen(app_config, runtime: DockerRuntime) -> int:
    daemon = ExporterDaemon(app_config, runtime)
    shutdown_requested = False

    def global_signal_handler(signum, frame):
        """Handle signals globally to ensure a clean shutdown."""
        nonlocal shutdown_requested
        if shutdown_requested:
            logger.warning("Shutdown already in progress. Please be patient.")
            return

        logger.info(
            f"Signal {signal.strsignal(signum)} received. Initiating graceful shutdown..."
        )
        shutdown_requested = True
        daemon.request_shutdown()

    # Register the global signal handler for SIGINT and SIGTERM.
    signal.signal(signal.SIGINT, global_signal_handler)
    signal.signal(signal.SIGTERM, global_signal_handler)

    if not daemon.run():
        return 1

    logger.info("Daemon stopped")
    return 0


def run_cleanup(app_config, runtime: DockerRuntime, name: Optional[str], force: bool) -> int:
    reconciler = ExporterReconciler.from_config(runtime, build_resolver(app_config), app_config.daemon)
    try:
        if name:
            reconciler.cleanup_exporter(name, force=force)
        else:
            reconciler.cleanup_exporters(force=force)
    except AutoExporterError as e:
        logger.error(f"Cleanup failed: {e}")
        return 1
    except Exception as e:
        logger.error(f"Cleanup failed: {type(e).__name__}: {e}", exc_info=True)
        return 1
    return 0


def run_missing(app_config, runtime: DockerRuntime, start: bool) -> int:
    reconciler = ExporterReconciler.from_config(runtime, build_resolver(app_config), app_config.daemon)

    if not start:
        for exporter in reconciler.find_missing_exporters():
            print(f"{exporter.name}\t{exporter.image}\t{exporter.monitored_task.name}")
        return 0

    pipeline = StartupPipeline.from_config(runtime, app_config.daemon)
    failures = reconciler.provision_missing(CancelContext(), pipeline)
    for name, error in failures.items():
        logger.error(f"Exporter {name!r} failed to start: {error}")
    return 1 if failures else 0


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line interface for the autoexporter daemon.

    Raises:
        SystemExit: With the exit code of the executed command, or 1 on
            configuration or Docker connection errors.
    """
    args = build_parser().parse_args(argv)

    if args.config:
        set_config_path(args.config)

    # Load application configuration
    try:
        app_config = get_config()
    except (FileNotFoundError, KeyError, ValidationError, tomllib.TOMLDecodeError) as e:
        handle_cli_error(
            error=e,
            context="configuration loading",
            exit_code=1,
            include_traceback=True,
            logger=logger,
        )

    _apply_log_level(args.log_level or app_config.daemon.log_level)

    try:
        runtime = DockerRuntime.from_env()
    except Exception as e:
        handle_cli_error(
            error=e,
            context="connecting to the Docker daemon",
            exit_code=1,
            include_traceback=False,
            logger=logger,
        )

    if args.command == "listen":
        exit_code = run_listen(app_config, runtime)
    elif args.command == "cleanup":
        exit_code = run_cleanup(app_config, runtime, args.name, args.force)
    else:
        exit_code = run_missing(app_config, runtime, args.start)

    sys.exit(exit_code)


if __name__ == "__main__":
    main_cli()
