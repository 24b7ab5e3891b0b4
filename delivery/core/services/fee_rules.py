"""Weather surcharge rules and the regional base fee table.

Every rule looks at a single observation and answers with a :class:`Surcharge`:
an extra amount, a rejection, or an exemption for the vehicle type at hand.
:func:`extra_fee` is the only place that knows which vehicles are exempt from
which rule and how the individual answers combine.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Callable, FrozenSet, Optional, Tuple

from delivery.core.abstractions import City, VehicleType, WeatherObservation

ZERO = Decimal("0")
HALF = Decimal("0.5")
ONE = Decimal("1")

SNOW_MARKERS = ("snow", "sleet")
RAIN_MARKERS = ("rain",)
FORBIDDEN_PHENOMENA = frozenset({"glaze", "hail", "thunder"})


class SurchargeKind(Enum):
    AMOUNT = "amount"
    REJECT = "reject"
    EXEMPT = "exempt"


@dataclass(frozen=True)
class Surcharge:
    kind: SurchargeKind
    amount: Decimal = ZERO

    @classmethod
    def of(cls, amount: Decimal) -> "Surcharge":
        return cls(SurchargeKind.AMOUNT, amount)

    @property
    def rejected(self) -> bool:
        return self.kind is SurchargeKind.REJECT


REJECT = Surcharge(SurchargeKind.REJECT)
EXEMPT = Surcharge(SurchargeKind.EXEMPT)
NO_SURCHARGE = Surcharge.of(ZERO)


def wind_speed_fee(observation: WeatherObservation) -> Surcharge:
    wind_speed = observation.wind_speed_ms
    if wind_speed > 20:
        return REJECT
    if wind_speed >= 10:
        return Surcharge.of(HALF)
    return NO_SURCHARGE


def phenomenon_fee(observation: WeatherObservation) -> Surcharge:
    phenomenon = observation.phenomenon.lower()
    if any(marker in phenomenon for marker in SNOW_MARKERS):
        return Surcharge.of(ONE)
    if any(marker in phenomenon for marker in RAIN_MARKERS):
        return Surcharge.of(HALF)
    # exact match only: "thunderstorm" is not forbidden
    if phenomenon in FORBIDDEN_PHENOMENA:
        return REJECT
    return NO_SURCHARGE


def temperature_fee(observation: WeatherObservation) -> Surcharge:
    temperature = observation.temperature_c
    if temperature < -10:
        return Surcharge.of(ONE)
    if temperature <= 0:
        return Surcharge.of(HALF)
    return NO_SURCHARGE


@dataclass(frozen=True)
class FeeRule:
    name: str
    assess: Callable[[WeatherObservation], Surcharge]
    exempt: FrozenSet[VehicleType] = frozenset()

    def apply(self, vehicle_type: VehicleType, observation: WeatherObservation) -> Surcharge:
        if vehicle_type in self.exempt:
            return EXEMPT
        return self.assess(observation)


RULES: Tuple[FeeRule, ...] = (
    FeeRule("wind_speed", wind_speed_fee, exempt=frozenset({VehicleType.CAR, VehicleType.SCOOTER})),
    FeeRule("phenomenon", phenomenon_fee, exempt=frozenset({VehicleType.CAR})),
    FeeRule("temperature", temperature_fee, exempt=frozenset({VehicleType.CAR})),
)


def extra_fee(
    vehicle_type: VehicleType,
    observation: WeatherObservation,
    rules: Tuple[FeeRule, ...] = RULES,
) -> Surcharge:
    """Combine all rules; any rejection rejects the whole delivery."""
    total = ZERO
    for rule in rules:
        surcharge = rule.apply(vehicle_type, observation)
        if surcharge.rejected:
            return REJECT
        total += surcharge.amount
    return Surcharge.of(total)


BASE_FEES = {
    (City.TALLINN, VehicleType.CAR): Decimal("4"),
    (City.TALLINN, VehicleType.SCOOTER): Decimal("3.5"),
    (City.TALLINN, VehicleType.BIKE): Decimal("3"),
    (City.TARTU, VehicleType.CAR): Decimal("3.5"),
    (City.TARTU, VehicleType.SCOOTER): Decimal("3"),
    (City.TARTU, VehicleType.BIKE): Decimal("2.5"),
    (City.PARNU, VehicleType.CAR): Decimal("3"),
    (City.PARNU, VehicleType.SCOOTER): Decimal("2.5"),
    (City.PARNU, VehicleType.BIKE): Decimal("2"),
}


def base_fee(city: City, vehicle_type: VehicleType) -> Optional[Decimal]:
    return BASE_FEES.get((city, vehicle_type))


__all__ = [
    "BASE_FEES",
    "EXEMPT",
    "FeeRule",
    "REJECT",
    "RULES",
    "Surcharge",
    "SurchargeKind",
    "base_fee",
    "extra_fee",
    "phenomenon_fee",
    "temperature_fee",
    "wind_speed_fee",
]
