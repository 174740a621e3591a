"""Root fixtures for all tests."""

import os
from datetime import datetime, timezone
from pathlib import Path

import pytest

from tests.utils.fakes import make_series


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Clear PROMPLOT_* env vars and reset config singleton before each test."""
    for key in list(os.environ.keys()):
        if key.startswith("PROMPLOT_"):
            monkeypatch.delenv(key, raising=False)

    # Reset config singleton
    import promplot.env

    promplot.env._config = None

    yield

    # Reset again after test
    promplot.env._config = None


@pytest.fixture
def base_time():
    """Fixed query end time: 2024-01-15 12:00:00 UTC."""
    return datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def series_factory(base_time):
    """Factory for series with deterministic timestamps ending at base_time."""

    def factory(metric=None, count=24, **kwargs):
        if metric is None:
            metric = {"__name__": "up", "job": "node"}
        return make_series(metric, base_time, count=count, **kwargs)

    return factory


@pytest.fixture
def single_series(series_factory):
    """One series of 24 hourly samples."""
    return [series_factory()]


@pytest.fixture
def multi_series(series_factory):
    """Three series; the last one has no labels and thus no legend text."""
    return [
        series_factory({"__name__": "up", "instance": "a:9100"}),
        series_factory({"__name__": "up", "instance": "b:9100"}),
        series_factory({"__name__": "up"}),
    ]


@pytest.fixture
def project_root():
    """Path to the project root directory."""
    return Path(__file__).parent.parent
