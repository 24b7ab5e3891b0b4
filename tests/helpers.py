from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Sequence

from delivery.core.abstractions import WeatherObservation


class InMemoryWeatherStore:
    """Store double that mirrors the station matching of the SQL store."""

    def __init__(self, observations: Optional[List[WeatherObservation]] = None) -> None:
        self.observations: List[WeatherObservation] = list(observations or [])
        self.batches: List[List[WeatherObservation]] = []
        self.latest_calls: List[str] = []
        self.closest_calls: List[tuple] = []

    def _matching(self, keyword: str) -> List[WeatherObservation]:
        return [o for o in self.observations if keyword.lower() in o.station_name.lower()]

    def latest_for_station(self, keyword: str) -> Optional[WeatherObservation]:
        self.latest_calls.append(keyword)
        matching = self._matching(keyword)
        return max(matching, key=lambda o: o.observed_at) if matching else None

    def closest_for_station(self, keyword: str, cutoff: datetime) -> Optional[WeatherObservation]:
        self.closest_calls.append((keyword, cutoff))
        matching = [o for o in self._matching(keyword) if o.observed_at <= cutoff]
        return min(matching, key=lambda o: abs(o.observed_at - cutoff)) if matching else None

    def add_observations(self, observations: Sequence[WeatherObservation]) -> None:
        self.batches.append(list(observations))
        self.observations.extend(observations)


def make_observation(
    station_name: str = "Tallinn-Harku",
    *,
    temperature_c: float = 5.0,
    wind_speed_ms: float = 5.0,
    phenomenon: str = "Clear",
    observed_at: Optional[datetime] = None,
    wmo_code: str = "26038",
) -> WeatherObservation:
    return WeatherObservation(
        station_name=station_name,
        wmo_code=wmo_code,
        temperature_c=temperature_c,
        wind_speed_ms=wind_speed_ms,
        phenomenon=phenomenon,
        observed_at=observed_at or datetime(2024, 3, 20, 12, 15, tzinfo=timezone.utc),
    )
