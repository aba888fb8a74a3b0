"""
ScheduleWatch File Name Helpers.

Name rules shared by the file watcher and data file discovery.
Requires Python 3.11+.
"""

import fnmatch
from pathlib import Path


def is_transient(path: Path | str, marker: str = "~") -> bool:
    """Check if a file name marks another application's lock/backup artifact."""
    return Path(path).name.startswith(marker)


def matches_pattern(path: Path | str, pattern: str) -> bool:
    """Match a file name against a glob, ignoring case."""
    return fnmatch.fnmatchcase(Path(path).name.lower(), pattern.lower())
