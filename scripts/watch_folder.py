#!/usr/bin/env python3
"""
ScheduleWatch Folder Watcher Script.

Watches a folder for the production schedule workbook and logs every
parsed batch of scheduled units.
Requires Python 3.11+.

Usage:
    python scripts/watch_folder.py /path/to/schedule/folder
    python scripts/watch_folder.py /path/to/schedule/folder --once
"""

import argparse
import signal
import sys
import threading
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from monitor.service import FolderMonitor
from utils.config import get_settings
from utils.logger import configure_logging, get_logger


configure_logging()
logger = get_logger("watch_folder")


def run_once(monitor: FolderMonitor) -> int:
    """
    Scan the folder a single time and print the batch as JSON.

    Returns:
        Process exit code
    """
    result = monitor.scan_once()

    if result.batch is not None:
        print(result.batch.to_json(indent=2))
        return 0

    if result.failure is not None:
        print(f"Error: {result.failure.reason.value}: {result.failure.message}", file=sys.stderr)
        return 1

    print(f"No data file found in {monitor.folder}", file=sys.stderr)
    return 0


def run_forever(monitor: FolderMonitor) -> int:
    """Watch until interrupted by SIGINT/SIGTERM."""
    stop_requested = threading.Event()

    def _request_stop(signum: int, frame: object) -> None:
        logger.info("shutdown_requested", signal=signum)
        stop_requested.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)

    with monitor:
        while not stop_requested.wait(1.0):
            pass

    return 0


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Watch a folder and parse the schedule workbook on every change"
    )
    parser.add_argument(
        "folder",
        type=Path,
        nargs="?",
        default=None,
        help="Folder to watch (defaults to MONITOR_FOLDER_PATH)",
    )
    parser.add_argument(
        "--sheet",
        default=None,
        help="Worksheet to read (defaults to MONITOR_SHEET_NAME or COMBINED)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        default=False,
        help="Scan a single time, print the records as JSON and exit",
    )

    args = parser.parse_args()

    overrides: dict[str, object] = {}
    if args.folder is not None:
        overrides["folder_path"] = args.folder
    if args.sheet:
        overrides["sheet_name"] = args.sheet
    settings = get_settings().monitor.model_copy(update=overrides)

    if settings.folder_path is None:
        print("Error: no folder given and MONITOR_FOLDER_PATH is not set")
        sys.exit(1)

    if not settings.folder_path.is_dir():
        print(f"Error: Path is not a directory: {settings.folder_path}")
        sys.exit(1)

    monitor = FolderMonitor(settings=settings)

    try:
        code = run_once(monitor) if args.once else run_forever(monitor)
    except KeyboardInterrupt:
        print("\nCancelled by user")
        code = 1
    except Exception as e:
        print(f"Error: {e}")
        code = 1

    sys.exit(code)


if __name__ == "__main__":
    main()
