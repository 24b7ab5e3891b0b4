from __future__ import annotations

import pytest

from delivery.core import models
from tests.helpers import InMemoryWeatherStore


@pytest.fixture()
def memory_store() -> InMemoryWeatherStore:
    return InMemoryWeatherStore()


@pytest.fixture()
def sql_store(tmp_path) -> models.SqlWeatherStore:
    models.configure_engine(f"sqlite:///{tmp_path / 'weather.db'}")
    return models.SqlWeatherStore()
