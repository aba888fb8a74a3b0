"""
ScheduleWatch File Watcher Package.

Folder monitoring that turns file system noise into change signals.
Requires Python 3.11+.
"""

from watcher.file_watcher import FileWatcher, WorkbookEventHandler
from watcher.debouncer import Debouncer

__all__ = ["FileWatcher", "WorkbookEventHandler", "Debouncer"]
