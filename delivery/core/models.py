"""Lightweight database helpers for storing weather station observations."""
from __future__ import annotations

import os
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, List, Optional, Sequence
from urllib.parse import unquote, urlparse

try:  # Optional import for MySQL support
    import pymysql
    from pymysql.cursors import DictCursor
except ImportError:  # pragma: no cover - pymysql is optional
    pymysql = None  # type: ignore
    DictCursor = None  # type: ignore

from delivery.core.abstractions import WeatherObservation


class DatabaseSession:
    """Minimal DB-API session wrapper with context aware placeholders."""

    def __init__(self, connection, placeholder: str, lock: Optional[threading.RLock] = None):
        self.connection = connection
        self.placeholder = placeholder
        self.lock = lock

    # -- DB-API compatibility -------------------------------------------------
    def _prepare_sql(self, sql: str) -> str:
        if self.placeholder == "?":
            return sql
        return sql.replace("?", self.placeholder)

    def execute(self, sql: str, params: tuple = ()):
        cursor = self.connection.cursor()
        cursor.execute(self._prepare_sql(sql), params)
        return cursor

    def executemany(self, sql: str, rows: Sequence[tuple]) -> None:
        cursor = self.connection.cursor()
        cursor.executemany(self._prepare_sql(sql), rows)
        cursor.close()

    def fetchone(self, sql: str, params: tuple = ()):
        cursor = self.execute(sql, params)
        row = cursor.fetchone()
        cursor.close()
        return row

    def commit(self) -> None:
        self.connection.commit()

    def rollback(self) -> None:
        self.connection.rollback()

    def close(self) -> None:
        if self.lock is None:
            self.connection.close()
        else:
            self.lock.release()


class SessionFactory:
    def __init__(self, url: str, placeholder: str, driver: str):
        self.url = url
        self.placeholder = placeholder
        self.driver = driver
        self._shared_lock = threading.RLock()
        self._shared_connection = None

    @property
    def in_memory(self) -> bool:
        return self.driver == "sqlite" and _sqlite_path(self.url) == ":memory:"

    def __call__(self) -> DatabaseSession:
        if self.in_memory:
            # An in-memory database lives only as long as its connection, so
            # sessions reuse one connection and hold the lock until closed.
            self._shared_lock.acquire()
            if self._shared_connection is None:
                try:
                    self._shared_connection = create_connection(self.url, self.driver)
                except Exception:
                    self._shared_lock.release()
                    raise
            return DatabaseSession(self._shared_connection, self.placeholder, lock=self._shared_lock)
        connection = create_connection(self.url, self.driver)
        return DatabaseSession(connection, self.placeholder)


_engine_lock = threading.Lock()
_database_url: Optional[str] = None
_session_factory: Optional[SessionFactory] = None


# ---------------------------------------------------------------------------

def _default_database_url() -> str:
    return os.getenv("DATABASE_URL", "sqlite:///./delivery.db")


def configure_engine(url: Optional[str] = None) -> str:
    """Configure database access using the provided URL."""

    global _database_url, _session_factory
    with _engine_lock:
        _database_url = url or _default_database_url()
        driver, placeholder = detect_driver(_database_url)
        _session_factory = SessionFactory(_database_url, placeholder, driver)
    run_migrations()
    return _database_url


def detect_driver(url: str) -> tuple[str, str]:
    parsed = urlparse(url)
    if parsed.scheme.startswith("mysql"):
        if pymysql is None:
            raise RuntimeError("PyMySQL is required for MySQL connections")
        return "mysql", "%s"
    if parsed.scheme.startswith("sqlite") or parsed.scheme == "":
        return "sqlite", "?"
    raise ValueError(f"Unsupported database scheme: {parsed.scheme}")


def _sqlite_path(url: str) -> str:
    # sqlite:///relative.db and sqlite:////absolute.db, as in SQLAlchemy URLs
    parsed = urlparse(url)
    path = unquote(parsed.path or parsed.netloc)
    if path.startswith("/"):
        path = path[1:]
    if path in ("", ":memory:"):
        return ":memory:"
    return os.path.abspath(path)


def create_connection(url: str, driver: str):
    parsed = urlparse(url)
    if driver == "sqlite":
        connection = sqlite3.connect(_sqlite_path(url), check_same_thread=False)
        connection.row_factory = sqlite3.Row
        return connection

    if driver == "mysql":
        assert pymysql is not None and DictCursor is not None
        params = {
            "host": parsed.hostname or "localhost",
            "user": parsed.username,
            "password": parsed.password,
            "database": parsed.path.lstrip("/") or None,
            "port": parsed.port or 3306,
            "cursorclass": DictCursor,
            "charset": "utf8mb4",
            "autocommit": False,
        }
        return pymysql.connect(**params)

    raise ValueError(f"Unsupported driver: {driver}")


def get_session_factory() -> SessionFactory:
    global _session_factory
    if _session_factory is None:
        configure_engine()
    assert _session_factory is not None
    return _session_factory


@contextmanager
def session_scope(session_factory: Optional[SessionFactory] = None) -> Iterator[DatabaseSession]:
    factory = session_factory or get_session_factory()
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------

_OBSERVATION_COLUMNS = """
    id VARCHAR(36) NOT NULL PRIMARY KEY,
    station_name VARCHAR(128) NOT NULL,
    wmo_code VARCHAR(128) NOT NULL,
    temperature_c DOUBLE PRECISION NOT NULL,
    wind_speed_ms DOUBLE PRECISION NOT NULL,
    phenomenon VARCHAR(128) NOT NULL,
    observed_at VARCHAR(32) NOT NULL
"""


def run_migrations() -> None:
    factory = get_session_factory()
    session = factory()
    try:
        if factory.driver == "mysql":
            # MySQL has no CREATE INDEX IF NOT EXISTS; declare the index inline.
            session.execute(
                f"""
                CREATE TABLE IF NOT EXISTS weather_observations (
                    {_OBSERVATION_COLUMNS},
                    INDEX idx_weather_observations_observed_at (observed_at)
                ) DEFAULT CHARSET=utf8mb4
                """
            )
        else:
            session.execute(f"CREATE TABLE IF NOT EXISTS weather_observations ({_OBSERVATION_COLUMNS})")
            session.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_weather_observations_observed_at
                ON weather_observations (observed_at)
                """
            )
        session.commit()
    finally:
        session.close()


# ---------------------------------------------------------------------------

def to_utc_iso(value: datetime) -> str:
    """Serialise a timestamp so that text order matches time order."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _station_pattern(keyword: str) -> str:
    escaped = keyword.lower().replace("!", "!!").replace("%", "!%").replace("_", "!_")
    return f"%{escaped}%"


def _observation_from_row(row) -> WeatherObservation:
    return WeatherObservation(
        id=row["id"],
        station_name=row["station_name"],
        wmo_code=row["wmo_code"],
        temperature_c=float(row["temperature_c"]),
        wind_speed_ms=float(row["wind_speed_ms"]),
        phenomenon=row["phenomenon"],
        observed_at=datetime.fromisoformat(row["observed_at"]),
    )


def insert_observations(session: DatabaseSession, observations: Sequence[WeatherObservation]) -> List[str]:
    """Append observations, assigning identifiers to rows that lack one."""
    rows = []
    for observation in observations:
        rows.append(
            (
                observation.id or str(uuid.uuid4()),
                observation.station_name,
                observation.wmo_code,
                observation.temperature_c,
                observation.wind_speed_ms,
                observation.phenomenon,
                to_utc_iso(observation.observed_at),
            )
        )
    if rows:
        session.executemany(
            """
            INSERT INTO weather_observations (
                id, station_name, wmo_code, temperature_c, wind_speed_ms, phenomenon, observed_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            rows,
        )
    return [row[0] for row in rows]


def latest_observation(session: DatabaseSession, keyword: str) -> Optional[WeatherObservation]:
    row = session.fetchone(
        """
        SELECT * FROM weather_observations
        WHERE LOWER(station_name) LIKE ? ESCAPE '!'
        ORDER BY observed_at DESC
        LIMIT 1
        """,
        (_station_pattern(keyword),),
    )
    return _observation_from_row(row) if row else None


def closest_observation_before(
    session: DatabaseSession,
    keyword: str,
    cutoff: datetime,
) -> Optional[WeatherObservation]:
    # Among rows at or before the cutoff the latest one is the closest.
    row = session.fetchone(
        """
        SELECT * FROM weather_observations
        WHERE LOWER(station_name) LIKE ? ESCAPE '!' AND observed_at <= ?
        ORDER BY observed_at DESC
        LIMIT 1
        """,
        (_station_pattern(keyword), to_utc_iso(cutoff)),
    )
    return _observation_from_row(row) if row else None


def count_observations(session: DatabaseSession) -> int:
    row = session.fetchone("SELECT COUNT(*) AS cnt FROM weather_observations")
    if isinstance(row, dict):
        return int(row["cnt"])
    return int(row[0])


class SqlWeatherStore:
    """:class:`~delivery.core.abstractions.WeatherStore` backed by the DB-API layer.

    Without an explicit factory the store resolves the globally configured
    engine on every call, so :func:`configure_engine` can be switched later.
    """

    def __init__(self, session_factory: Optional[SessionFactory] = None) -> None:
        self._session_factory = session_factory

    def latest_for_station(self, keyword: str) -> Optional[WeatherObservation]:
        with session_scope(self._session_factory) as session:
            return latest_observation(session, keyword)

    def closest_for_station(self, keyword: str, cutoff: datetime) -> Optional[WeatherObservation]:
        with session_scope(self._session_factory) as session:
            return closest_observation_before(session, keyword, cutoff)

    def add_observations(self, observations: Sequence[WeatherObservation]) -> None:
        with session_scope(self._session_factory) as session:
            insert_observations(session, observations)

