"""Core abstractions for the delivery fee domain."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Protocol, Sequence


class City(str, Enum):
    """Cities served by the courier network."""

    TALLINN = "Tallinn"
    TARTU = "Tartu"
    PARNU = "Pärnu"

    @property
    def station_keyword(self) -> str:
        """Substring that identifies this city's weather station."""
        return self.value

    @classmethod
    def parse(cls, value: str) -> "City":
        return _parse_member(cls, value)


class VehicleType(str, Enum):
    """Vehicle used for a delivery."""

    CAR = "Car"
    SCOOTER = "Scooter"
    BIKE = "Bike"

    @classmethod
    def parse(cls, value: str) -> "VehicleType":
        return _parse_member(cls, value)


def _parse_member(enum_cls, value: str):
    wanted = (value or "").lower()
    for member in enum_cls:
        if member.value.lower() == wanted:
            return member
    raise ValueError(f"{value!r} is not a valid {enum_cls.__name__}")


@dataclass(frozen=True, slots=True)
class WeatherObservation:
    """Single reading of a weather station."""

    station_name: str
    wmo_code: str
    temperature_c: float
    wind_speed_ms: float
    phenomenon: str
    observed_at: datetime
    id: Optional[str] = None


class WeatherStore(Protocol):
    """Persistence boundary for weather observations."""

    def latest_for_station(self, keyword: str) -> Optional[WeatherObservation]:
        """Return the newest observation of a station matching ``keyword``."""
        ...

    def closest_for_station(self, keyword: str, cutoff: datetime) -> Optional[WeatherObservation]:
        """Return the observation at or before ``cutoff`` closest to it."""
        ...

    def add_observations(self, observations: Sequence[WeatherObservation]) -> None:
        """Append a batch of observations."""
        ...
