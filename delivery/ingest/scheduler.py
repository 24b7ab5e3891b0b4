"""Minute-resolution trigger for weather ingestion.

The trigger owns no ingestion logic: it is handed a callable and a clock and
decides, once per wall-clock minute, whether the callable should run.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from delivery.ingest.weather_ingestion import utcnow


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestionSchedule:
    """Fire at ``minute`` past midnight and every ``interval_minutes`` after it."""

    minute: int = 15
    interval_minutes: int = 60

    def __post_init__(self) -> None:
        if self.interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")
        if self.minute < 0:
            raise ValueError("minute must not be negative")

    def is_due(self, now: datetime) -> bool:
        now = _as_utc(now)
        minute_of_day = now.hour * 60 + now.minute
        return (minute_of_day - self.minute) % self.interval_minutes == 0


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ScheduledIngestion:
    """Run ``job`` whenever ``schedule`` says the current minute is due."""

    def __init__(
        self,
        job: Callable[[], None],
        schedule: Optional[IngestionSchedule] = None,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.job = job
        self.schedule = schedule or IngestionSchedule()
        self._clock = clock
        self._last_run: Optional[datetime] = None

    def tick(self) -> bool:
        """Run the job if due and not yet run this minute; return whether it ran."""
        now = _as_utc(self._clock()).replace(second=0, microsecond=0)
        if now == self._last_run or not self.schedule.is_due(now):
            return False
        self._last_run = now
        try:
            self.job()
        except Exception:  # noqa: BLE001 - keep the loop alive for the next tick
            logger.exception("Scheduled ingestion failed")
        return True

    def seconds_until_next_minute(self) -> float:
        now = self._clock()
        return 60.0 - now.second - now.microsecond / 1_000_000

    def run_forever(self, stop: threading.Event) -> None:
        logger.info(
            "Weather ingestion scheduled at minute %s every %s minutes",
            self.schedule.minute,
            self.schedule.interval_minutes,
        )
        while not stop.is_set():
            self.tick()
            stop.wait(self.seconds_until_next_minute())
        logger.info("Weather ingestion schedule stopped")


__all__ = ["IngestionSchedule", "ScheduledIngestion"]
