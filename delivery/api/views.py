"""REST API views for delivery fees."""
from __future__ import annotations

import logging
from datetime import datetime, time, timezone
from functools import lru_cache
from typing import Optional

from django.utils.dateparse import parse_date, parse_datetime
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from delivery.core.abstractions import City, VehicleType
from delivery.core.models import SqlWeatherStore
from delivery.core.services.delivery_fee import NO_WEATHER_AT_TIME, DeliveryFeeService


logger = logging.getLogger(__name__)

MISSING_PARAMETERS = "City and vehicle type must be provided."
INVALID_TIME = "Invalid time format."
FORBIDDEN_VEHICLE = "Usage of selected vehicle type is forbidden"
NO_WEATHER_FOR_TIME = "No weather information provided on selected time"
INTERNAL_ERROR = "Internal server error"


@lru_cache(maxsize=1)
def get_delivery_fee_service() -> DeliveryFeeService:
    return DeliveryFeeService(SqlWeatherStore())


def parse_time(value: str) -> datetime:
    """Parse an ISO date-time or plain date into UTC; naive values are taken as UTC."""
    parsed = parse_datetime(value)
    if parsed is None:
        day = parse_date(value)
        if day is None:
            raise ValueError(f"Unrecognised time {value!r}")
        parsed = datetime.combine(day, time.min)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError as exc:
        raise ValueError(f"Time {value!r} is outside the supported range") from exc


def _error(detail: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> Response:
    return Response({"detail": detail}, status=status_code)


class DeliveryFeeView(APIView):
    """Quote the delivery fee for a city and vehicle type."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):  # noqa: D401
        """Return the total fee, or the reason the delivery is refused."""
        try:
            city = City.parse(request.query_params.get("city", ""))
            vehicle_type = VehicleType.parse(request.query_params.get("vehicle_type", ""))
        except ValueError:
            return _error(MISSING_PARAMETERS)

        at: Optional[datetime] = None
        raw_time = request.query_params.get("time")
        if raw_time:
            try:
                at = parse_time(raw_time)
            except ValueError:
                return _error(INVALID_TIME)

        try:
            fee = get_delivery_fee_service().calculate_fee(city, vehicle_type, at)
        except Exception:  # noqa: BLE001 - reported as a generic 500
            logger.exception("Delivery fee calculation failed for %s/%s", city.value, vehicle_type.value)
            return _error(INTERNAL_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR)

        if fee == NO_WEATHER_AT_TIME:
            return _error(NO_WEATHER_FOR_TIME)
        if fee < 0:
            return _error(FORBIDDEN_VEHICLE)
        return Response({"total_fee": fee}, status=status.HTTP_200_OK)
