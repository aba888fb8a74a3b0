"""
ScheduleWatch Monitor Package.

Long-running folder monitoring and delivery to the host application.
Requires Python 3.11+.
"""

from monitor.service import FolderMonitor
from monitor.sinks import LogSink

__all__ = ["FolderMonitor", "LogSink"]
