"""
ScheduleWatch Configuration Module.

Centralizes all configuration settings using Pydantic Settings.
Requires Python 3.11+.
"""

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file into os.environ at module import time
# This ensures nested BaseSettings classes can read the values
_env_file = Path(__file__).parent.parent / ".env"
if _env_file.exists():
    load_dotenv(_env_file)
else:
    # Try current working directory
    load_dotenv()


class MonitorSettings(BaseSettings):
    """Folder monitor and workbook ingestion settings."""

    model_config = SettingsConfigDict(env_prefix="MONITOR_")

    folder_path: Path | None = Field(default=None, description="Directory to watch")
    sheet_name: str = Field(default="COMBINED", min_length=1)
    file_pattern: str = Field(default="*.xlsx", description="Glob for the data file")
    transient_prefix: str = Field(
        default="~",
        min_length=1,
        description="File name prefix of lock/backup artifacts",
    )
    debounce_window_ms: int = Field(default=500, ge=0, le=60_000)
    max_attempts: int = Field(default=100, ge=1)
    retry_delay_ms: int = Field(default=500, ge=0)
    scan_on_start: bool = Field(default=True)

    @field_validator("folder_path", mode="before")
    @classmethod
    def parse_folder_path(cls, v: str | Path | None) -> Path | None:
        """Treat an empty string as an unset folder."""
        if isinstance(v, str):
            v = v.strip()
            return Path(v).expanduser() if v else None
        return v

    @property
    def debounce_window(self) -> float:
        """Debounce window in seconds."""
        return self.debounce_window_ms / 1000.0

    @property
    def retry_delay(self) -> float:
        """Delay between open attempts in seconds."""
        return self.retry_delay_ms / 1000.0


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO")
    format: str = Field(default="json")  # "json" or "console"


class Settings(BaseSettings):
    """Main application settings aggregating all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="ScheduleWatch")
    app_version: str = Field(default="0.1.0")
    environment: str = Field(default="development")

    # Sub-settings
    monitor: MonitorSettings = Field(default_factory=MonitorSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns singleton instance of Settings for performance.
    """
    return Settings()

