"""Periodic ingestion of weather observations into the store."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional
from xml.etree import ElementTree

import requests
from pydantic import ValidationError

from delivery.core.abstractions import WeatherStore
from delivery.ingest.feed import parse_station_readings


logger = logging.getLogger(__name__)

DEFAULT_FEED_URL = "https://www.ilmateenistus.ee/ilma_andmed/xml/observations.php"
DEFAULT_STATIONS = ("Tallinn-Harku", "Tartu-Tõravere", "Pärnu")


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class WeatherIngestionService:
    """Fetch the observations feed and persist readings of the tracked stations."""

    def __init__(
        self,
        store: WeatherStore,
        *,
        url: str = DEFAULT_FEED_URL,
        stations: Iterable[str] = DEFAULT_STATIONS,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.url = url
        self.stations = frozenset(stations)
        self.session = session or requests.Session()
        self.timeout = timeout
        self._clock = clock

    def fetch_and_store(self) -> None:
        """Run one ingestion cycle. Failures are logged, never raised."""
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            readings = parse_station_readings(response.content, self.stations)
        except requests.RequestException as exc:
            logger.warning("Weather feed request to %s failed: %s", self.url, exc)
            return
        except (ElementTree.ParseError, ValidationError) as exc:
            logger.warning("Weather feed from %s could not be parsed: %s", self.url, exc)
            return
        except Exception:  # noqa: BLE001 - ingestion must not break its caller
            logger.exception("Unexpected error while reading weather feed from %s", self.url)
            return

        if not readings:
            logger.info("Weather feed contained none of the tracked stations")
            return

        observed_at = self._clock()
        observations = [reading.to_observation(observed_at) for reading in readings]
        try:
            self.store.add_observations(observations)
        except Exception:  # noqa: BLE001 - a failed cycle is retried on the next tick
            logger.exception("Storing %d weather observations failed", len(observations))
            return
        logger.info(
            "Stored %d weather observations: %s",
            len(observations),
            ", ".join(observation.station_name for observation in observations),
        )


__all__ = ["DEFAULT_FEED_URL", "DEFAULT_STATIONS", "WeatherIngestionService", "utcnow"]
