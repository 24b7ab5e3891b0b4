"""Delivery fee calculation on top of stored weather observations."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from delivery.core.abstractions import City, VehicleType, WeatherObservation, WeatherStore
from delivery.core.services.fee_rules import base_fee, extra_fee


logger = logging.getLogger(__name__)

# Negative results are error codes, never amounts.
FORBIDDEN = Decimal("-1")
NO_WEATHER_AT_TIME = Decimal("-2")


class DeliveryFeeService:
    """Price a delivery for a city and vehicle type from the weather at hand."""

    def __init__(self, store: WeatherStore) -> None:
        self._store = store

    def calculate_fee(
        self,
        city: City,
        vehicle_type: VehicleType,
        at: Optional[datetime] = None,
    ) -> Decimal:
        """Return the total fee, or ``FORBIDDEN`` / ``NO_WEATHER_AT_TIME``."""
        keyword = city.station_keyword
        observation: Optional[WeatherObservation]
        if at is not None:
            if at.tzinfo is None:
                at = at.replace(tzinfo=timezone.utc)
            observation = self._store.closest_for_station(keyword, at)
            if observation is None:
                logger.info("No weather for %s at or before %s", city.value, at.isoformat())
                return NO_WEATHER_AT_TIME
        else:
            observation = self._store.latest_for_station(keyword)
            if observation is None:
                logger.info("No weather observations stored for %s", city.value)
                return FORBIDDEN

        surcharge = extra_fee(vehicle_type, observation)
        if surcharge.rejected:
            return FORBIDDEN

        base = base_fee(city, vehicle_type)
        if base is None:
            return FORBIDDEN
        return base + surcharge.amount


__all__ = ["DeliveryFeeService", "FORBIDDEN", "NO_WEATHER_AT_TIME"]
