"""Parsing of the Estonian Environment Agency observations XML."""
from __future__ import annotations

from typing import Collection, Dict, List, Optional, Union
from xml.etree import ElementTree

from delivery.ingest.schemas import StationReading

READING_FIELDS = ("name", "wmocode", "airtemperature", "windspeed", "phenomenon")


def _element_fields(station: ElementTree.Element) -> Dict[str, Optional[str]]:
    # Missing children fall back to schema defaults, empty ones read as "".
    return {
        tag: station.findtext(tag)
        for tag in READING_FIELDS
        if station.find(tag) is not None
    }


def parse_station_readings(
    document: Union[str, bytes],
    stations: Collection[str],
) -> List[StationReading]:
    """Return readings for the ``stations`` present in ``document``.

    Station names must match exactly; everything else in the feed is ignored.
    Raises :class:`xml.etree.ElementTree.ParseError` for malformed markup and
    :class:`pydantic.ValidationError` for a matched station with bad fields.
    """
    root = ElementTree.fromstring(document)
    readings: List[StationReading] = []
    for station in root.iter("station"):
        if station.findtext("name") not in stations:
            continue
        readings.append(StationReading.model_validate(_element_fields(station)))
    return readings


__all__ = ["parse_station_readings", "READING_FIELDS"]
