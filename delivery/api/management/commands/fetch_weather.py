"""Management command that ingests weather observations, once or on a schedule."""
from __future__ import annotations

import signal
import threading
from typing import Any

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from delivery.core.models import SqlWeatherStore
from delivery.ingest.scheduler import IngestionSchedule, ScheduledIngestion
from delivery.ingest.weather_ingestion import WeatherIngestionService


def build_ingestion_service() -> WeatherIngestionService:
    return WeatherIngestionService(
        SqlWeatherStore(),
        url=settings.WEATHER_FEED_URL,
        stations=settings.WEATHER_STATIONS,
        timeout=settings.WEATHER_FEED_TIMEOUT,
    )


class Command(BaseCommand):
    help = "Fetch weather observations from the configured feed and store them"

    def add_arguments(self, parser) -> None:  # noqa: D401
        parser.add_argument(
            "--schedule",
            action="store_true",
            help="Keep running and fetch on the configured schedule until interrupted",
        )

    def handle(self, *args: Any, **options: Any) -> None:  # noqa: D401
        service = build_ingestion_service()
        if not options.get("schedule"):
            service.fetch_and_store()
            self.stdout.write("Weather ingestion finished")
            return

        try:
            schedule = IngestionSchedule(
                minute=settings.WEATHER_FETCH_MINUTE,
                interval_minutes=settings.WEATHER_FETCH_INTERVAL_MINUTES,
            )
        except ValueError as exc:
            raise CommandError(f"Invalid ingestion schedule: {exc}") from exc

        stop = threading.Event()

        def _handle_signal(signum, frame):
            self.stdout.write(f"Received signal {signum}, shutting down")
            stop.set()

        signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)

        self.stdout.write(
            f"Fetching weather at minute {schedule.minute} every {schedule.interval_minutes} minutes"
        )
        ScheduledIngestion(service.fetch_and_store, schedule).run_forever(stop)
