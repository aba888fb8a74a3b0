"""
ScheduleWatch Data File Discovery.

Locates the one workbook in the watched folder.
Requires Python 3.11+.
"""

from pathlib import Path

from utils.files import is_transient, matches_pattern


def list_candidates(folder: Path, pattern: str = "*.xlsx", transient_prefix: str = "~") -> list[Path]:
    """
    List qualifying data files, newest first.

    Only regular files directly inside the folder are considered. The
    pattern matches names regardless of case, so SCHEDULE.XLSX qualifies
    for *.xlsx. Files that disappear while being listed are skipped.

    Args:
        folder: Folder to scan
        pattern: Glob for the data file
        transient_prefix: File name prefix of temporary artifacts

    Returns:
        Candidates ordered by modification time (newest first), then name
    """
    stamped: list[tuple[float, str, Path]] = []
    for path in folder.iterdir():
        if not matches_pattern(path, pattern) or is_transient(path, transient_prefix):
            continue
        try:
            if not path.is_file():
                continue
            mtime = path.stat().st_mtime
        except OSError:
            continue
        stamped.append((-mtime, path.name, path))

    stamped.sort()
    return [path for _, _, path in stamped]


def find_data_file(folder: Path, pattern: str = "*.xlsx", transient_prefix: str = "~") -> Path | None:
    """Return the most recently modified qualifying file, or None."""
    candidates = list_candidates(folder, pattern, transient_prefix)
    return candidates[0] if candidates else None
