"""
ScheduleWatch Delivery Sinks.

Default host-side consumers of scan outcomes.
Requires Python 3.11+.
"""

from ingest.models import Batch, IngestFailure
from utils.logger import LoggerMixin


class LogSink(LoggerMixin):
    """Publishes batches and failures to the structured log."""

    def __init__(self, include_records: bool = True) -> None:
        """
        Initialize the sink.

        Args:
            include_records: Whether to log the full batch as JSON
        """
        self._include_records = include_records

    def on_batch(self, batch: Batch) -> None:
        """Log a parsed batch."""
        self.log.info(
            "scheduled_units_parsed",
            path=str(batch.source),
            sheet=batch.sheet_name,
            count=len(batch),
            skipped_rows=batch.skipped_rows,
        )
        if self._include_records:
            self.log.info("scheduled_units_json", path=str(batch.source), units=batch.to_json())

    def on_failure(self, failure: IngestFailure) -> None:
        """Log a terminal scan failure."""
        self.log.error("scheduled_units_failed", **failure.to_dict())
