"""
ScheduleWatch Backend Utilities Package.

Configuration, logging and file name rules shared across all backend modules.
Requires Python 3.11+.
"""

from utils.config import LoggingSettings, MonitorSettings, Settings, get_settings
from utils.files import is_transient, matches_pattern
from utils.logger import configure_logging, get_logger, logger, LoggerMixin

__all__ = [
    "Settings",
    "MonitorSettings",
    "LoggingSettings",
    "get_settings",
    "is_transient",
    "matches_pattern",
    "configure_logging",
    "get_logger",
    "logger",
    "LoggerMixin",
]
