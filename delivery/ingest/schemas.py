"""Payload schema for station readings taken from the observations feed."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from delivery.core.abstractions import WeatherObservation

__all__ = ["StationReading", "DEFAULT_TEMPERATURE", "DEFAULT_WIND_SPEED", "DEFAULT_PHENOMENON"]

# Substituted when the feed omits a value or sends something unparseable.
DEFAULT_TEMPERATURE = 1.0
DEFAULT_WIND_SPEED = 0.0
DEFAULT_PHENOMENON = "None"


def _float_or(value: Any, default: float) -> float:
    if value is None:
        return default
    try:
        return float(str(value).strip())
    except ValueError:
        return default


class StationReading(BaseModel):
    """One ``<station>`` element of the feed, keyed by its child tag names."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(max_length=128)
    wmocode: str = Field(max_length=128)
    airtemperature: float = DEFAULT_TEMPERATURE
    windspeed: float = DEFAULT_WIND_SPEED
    phenomenon: str = Field(default=DEFAULT_PHENOMENON, max_length=128)

    @field_validator("airtemperature", mode="before")
    @classmethod
    def _temperature_or_default(cls, value: Any) -> float:
        return _float_or(value, DEFAULT_TEMPERATURE)

    @field_validator("windspeed", mode="before")
    @classmethod
    def _wind_speed_or_default(cls, value: Any) -> float:
        return _float_or(value, DEFAULT_WIND_SPEED)

    def to_observation(self, observed_at: datetime) -> WeatherObservation:
        return WeatherObservation(
            station_name=self.name,
            wmo_code=self.wmocode,
            temperature_c=self.airtemperature,
            wind_speed_ms=self.windspeed,
            phenomenon=self.phenomenon,
            observed_at=observed_at,
        )
