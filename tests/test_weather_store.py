from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from delivery.core import models
from tests.helpers import make_observation


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 3, 20, hour, minute, tzinfo=timezone.utc)


def test_latest_for_station_returns_newest(sql_store) -> None:
    sql_store.add_observations(
        [
            make_observation("Tallinn-Harku", wmo_code="1244", observed_at=_at(10)),
            make_observation("Tallinn-Harku", wmo_code="1345", observed_at=_at(12)),
            make_observation("Tartu-Tõravere", wmo_code="26242", observed_at=_at(13)),
        ]
    )

    result = sql_store.latest_for_station("Tallinn")

    assert result is not None
    assert result.wmo_code == "1345"
    assert result.observed_at == _at(12)
    assert result.id


def test_latest_for_unknown_station_is_none(sql_store) -> None:
    assert sql_store.latest_for_station("Tartu") is None


def test_station_match_is_case_insensitive_substring(sql_store) -> None:
    sql_store.add_observations([make_observation("Tartu-Tõravere", wmo_code="26242")])

    assert sql_store.latest_for_station("tartu").station_name == "Tartu-Tõravere"
    assert sql_store.latest_for_station("Pärnu") is None


def test_closest_for_station_picks_latest_not_after_cutoff(sql_store) -> None:
    sql_store.add_observations(
        [
            make_observation("Tartu-Tõravere", observed_at=_at(14, 15)),
            make_observation("Tartu-Tõravere", observed_at=_at(14, 45)),
        ]
    )

    result = sql_store.closest_for_station("tartu", _at(14, 30))

    assert result is not None
    assert result.observed_at == _at(14, 15)


def test_closest_for_station_includes_exact_cutoff(sql_store) -> None:
    sql_store.add_observations([make_observation("Pärnu", observed_at=_at(9))])

    result = sql_store.closest_for_station("Pärnu", _at(9))

    assert result is not None
    assert result.station_name == "Pärnu"


def test_closest_for_station_without_earlier_data_is_none(sql_store) -> None:
    sql_store.add_observations([make_observation("Tallinn-Harku", observed_at=_at(15))])

    assert sql_store.closest_for_station("tallinn", _at(14, 30)) is None


def test_closest_for_station_compares_across_timezones(sql_store) -> None:
    sql_store.add_observations([make_observation("Tallinn-Harku", observed_at=_at(12))])
    tallinn_time = timezone(timedelta(hours=2))

    # 13:30 in Tallinn is 11:30 UTC, before the only observation
    assert sql_store.closest_for_station("Tallinn", datetime(2024, 3, 20, 13, 30, tzinfo=tallinn_time)) is None
    assert sql_store.closest_for_station("Tallinn", datetime(2024, 3, 20, 14, 30, tzinfo=tallinn_time)) is not None


def test_add_observations_appends_duplicates(sql_store) -> None:
    batch = [make_observation("Pärnu", wmo_code="41803")]

    sql_store.add_observations(batch)
    sql_store.add_observations(batch)

    with models.session_scope() as session:
        assert models.count_observations(session) == 2


def test_observation_values_round_trip(sql_store) -> None:
    sql_store.add_observations(
        [
            make_observation(
                "Tartu-Tõravere",
                wmo_code="26242",
                temperature_c=-2.1,
                wind_speed_ms=4.7,
                phenomenon="Light snow shower",
                observed_at=_at(8, 15),
            )
        ]
    )

    result = sql_store.latest_for_station("Tartu")

    assert result.temperature_c == pytest.approx(-2.1)
    assert result.wind_speed_ms == pytest.approx(4.7)
    assert result.phenomenon == "Light snow shower"
    assert result.observed_at.tzinfo is not None


def test_like_wildcards_in_keyword_are_literal(sql_store) -> None:
    sql_store.add_observations([make_observation("Tallinn-Harku")])

    assert sql_store.latest_for_station("%") is None
    assert sql_store.latest_for_station("Tallinn_Harku") is None


def test_unsupported_database_scheme() -> None:
    with pytest.raises(ValueError):
        models.detect_driver("postgres://localhost/weather")


def test_failed_transaction_is_rolled_back(sql_store) -> None:
    with pytest.raises(RuntimeError):
        with models.session_scope() as session:
            models.insert_observations(session, [make_observation("Pärnu")])
            raise RuntimeError("boom")

    assert sql_store.latest_for_station("Pärnu") is None


@pytest.mark.parametrize("url", ["sqlite:///:memory:", "sqlite://"])
def test_in_memory_database_keeps_schema_and_rows(url) -> None:
    models.configure_engine(url)
    store = models.SqlWeatherStore()

    store.add_observations([make_observation("Pärnu", observed_at=_at(9))])

    assert store.latest_for_station("pärnu").station_name == "Pärnu"
    assert store.closest_for_station("Pärnu", _at(10)) is not None
    with models.session_scope() as session:
        assert models.count_observations(session) == 1


def test_in_memory_rollback_keeps_earlier_rows() -> None:
    models.configure_engine("sqlite:///:memory:")
    store = models.SqlWeatherStore()
    store.add_observations([make_observation("Tallinn-Harku")])

    with pytest.raises(RuntimeError):
        with models.session_scope() as session:
            models.insert_observations(session, [make_observation("Pärnu")])
            raise RuntimeError("boom")

    assert store.latest_for_station("Pärnu") is None
    assert store.latest_for_station("Tallinn") is not None
