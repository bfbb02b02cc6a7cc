"""
CLI entry points for the curve watcher.

Commands:
    curvewatch           Start the watcher (runs until Ctrl+C / SIGTERM)
    curvewatch-process   Convert the given CSV files once and exit
    curvewatch-info      Show the resolved configuration
"""

import sys
import signal
import logging
import argparse
import threading
from pathlib import Path
from logging.handlers import TimedRotatingFileHandler
from typing import List, Optional

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s %(levelname)-8s %(name)s - %(message)s'


# =============================================================================
# LOGGING SETUP
# =============================================================================

def setup_logging(log_dir: Path, verbose: bool = False, quiet: bool = False) -> Path:
    """
    Setup logging to console and a daily rotating file.

    Args:
        log_dir: Directory for log files
        verbose: Enable debug logging
        quiet: Suppress info logging (errors only)
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "curvewatch.log"

    # Determine log level
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.INFO

    formatter = logging.Formatter(LOG_FORMAT)

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)

    # File handler (new file every midnight, keep 30 days)
    file_handler = TimedRotatingFileHandler(
        log_file,
        when="midnight",
        backupCount=30,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(logging.DEBUG)  # Always log DEBUG to file

    # Root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    # watchdog is chatty at DEBUG
    logging.getLogger("watchdog").setLevel(logging.INFO)

    return log_file


def _add_common_args(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to config.json (default: $CURVEWATCH_CONFIG or ~/.curvewatch/config.json)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging on the console"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only show errors on the console"
    )


def _load_config_or_exit(config_path: Optional[str]):
    from curvewatch.config import WatcherConfig, ConfigurationError

    try:
        return WatcherConfig.load(config_path)
    except ConfigurationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)


# =============================================================================
# MAIN WATCH COMMAND
# =============================================================================

def main_watch(argv: Optional[List[str]] = None):
    """Start the curve watcher."""
    parser = argparse.ArgumentParser(
        description="Watch a folder for new measurement CSV files and convert them to JSON"
    )
    _add_common_args(parser)
    args = parser.parse_args(argv)

    # Imports here to avoid import errors when showing help
    from curvewatch.config import DEFAULT_LOCK_FILE
    from curvewatch.watcher.instance import SingleInstanceLock, InstanceLockedError
    from curvewatch.watcher.watcher import DirectoryWatcher

    config = _load_config_or_exit(args.config)

    # Setup logging
    try:
        log_dir = config.get_log_dir()
        log_file = setup_logging(log_dir, verbose=args.verbose, quiet=args.quiet)
        logger.info(f"Logging to {log_file}")
    except OSError as e:
        print(f"ERROR: Failed to setup logging: {e}", file=sys.stderr)
        sys.exit(1)

    problems = config.validate()
    if problems:
        logger.error("Configuration is not valid:")
        for problem in problems:
            logger.error(f"  - {problem}")
        print("\nERROR: Fix the configuration and restart (see curvewatch-info).", file=sys.stderr)
        sys.exit(1)

    lock = SingleInstanceLock(DEFAULT_LOCK_FILE)
    try:
        lock.acquire()
    except InstanceLockedError as e:
        logger.error(str(e))
        sys.exit(1)

    try:
        try:
            watcher = DirectoryWatcher(config)
        except OSError as e:
            logger.error(f"Failed to initialize watcher: {e}")
            sys.exit(1)

        print("=" * 70)
        print("curvewatch - Measurement CSV -> JSON")
        print("=" * 70)
        print(f"  Watch folder:   {config.watch_folder}")
        print(f"  Output folder:  {config.output_folder}")
        print(f"  Program filter: {watcher.pipeline.program_filter.describe()}")
        print(f"  Logs:           {log_dir}")
        print()

        logger.info(f"Watch folder: {config.watch_folder}")
        logger.info(f"Output folder: {config.output_folder}")
        logger.info(f"Program filter: {watcher.pipeline.program_filter.describe()}")

        # Setup signal handler for graceful shutdown
        shutdown_event = threading.Event()

        def signal_handler(signum, frame):
            logger.info(f"Received signal {signum}, initiating graceful shutdown...")
            print("\nShutdown requested - finishing current file and stopping...")
            shutdown_event.set()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        try:
            logger.info("Starting watcher - press Ctrl+C to stop")
            watcher.run(shutdown_event)
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        except Exception as e:
            logger.exception(f"Watcher crashed: {e}")
            sys.exit(1)

        _print_summary(watcher.pipeline.summary())
    finally:
        lock.release()


def _print_summary(summary: dict):
    print()
    print("=" * 70)
    print("Final Summary")
    print("=" * 70)
    for outcome, count in summary.items():
        print(f"  {outcome:15s}: {count}")
    print()


# =============================================================================
# PROCESS COMMAND
# =============================================================================

def main_process(argv: Optional[List[str]] = None):
    """
    Convert the given files once, using the same pipeline as the watcher.

    Usage: curvewatch-process FILE [FILE ...]
    """
    parser = argparse.ArgumentParser(
        description="Convert measurement CSV files to JSON without watching"
    )
    parser.add_argument("files", nargs="+", type=Path, help="CSV files to convert")
    _add_common_args(parser)
    args = parser.parse_args(argv)

    from curvewatch.watcher.pipeline import WatchPipeline

    config = _load_config_or_exit(args.config)

    level = logging.DEBUG if args.verbose else (logging.ERROR if args.quiet else logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)

    if config.output_folder is None:
        print("ERROR: output_folder not configured", file=sys.stderr)
        sys.exit(1)

    try:
        pipeline = WatchPipeline(
            output_dir=config.output_folder,
            allowed_programs=config.program_filter,
        )
    except OSError as e:
        print(f"ERROR: Cannot use output folder {config.output_folder}: {e}", file=sys.stderr)
        sys.exit(1)

    results = pipeline.process_many(args.files)

    failed = 0
    for result in results:
        detail = result.output_path or result.message
        print(f"  {result.outcome.value:13s} {result.path}  {detail}")
        if result.outcome.is_failure:
            failed += 1

    print(f"\n{len(results)} file(s), {failed} failed")
    sys.exit(1 if failed else 0)


# =============================================================================
# INFO COMMAND
# =============================================================================

def main_info(argv: Optional[List[str]] = None):
    """Show the resolved configuration and any problems with it."""
    parser = argparse.ArgumentParser(description="Show curvewatch configuration")
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to config.json"
    )
    args = parser.parse_args(argv)

    from curvewatch.config import print_config

    config = _load_config_or_exit(args.config)
    print_config(config)
    sys.exit(1 if config.validate() else 0)
