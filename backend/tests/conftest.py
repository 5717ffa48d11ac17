"""Shared fixtures for the energy backend tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# The backend is a flat set of modules; make them importable when pytest
# is launched from any working directory.
TESTS_ROOT = Path(__file__).resolve().parent
for path in (TESTS_ROOT.parent, TESTS_ROOT):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from forecast_cache import ForecastCache, MemoryForecastStore  # noqa: E402
from forecaster import EnergyForecaster  # noqa: E402
from service_energy import EnergyService  # noqa: E402
from summarizer import EnergySummarizer  # noqa: E402

from helpers import NOW  # noqa: E402


@pytest.fixture
def store() -> MemoryForecastStore:
    return MemoryForecastStore()


@pytest.fixture
def cache(store: MemoryForecastStore) -> ForecastCache:
    return ForecastCache(store)


@pytest.fixture
def forecaster(cache: ForecastCache) -> EnergyForecaster:
    return EnergyForecaster(cache)


@pytest.fixture
def summarizer() -> EnergySummarizer:
    return EnergySummarizer()


@pytest.fixture
def service(summarizer: EnergySummarizer, forecaster: EnergyForecaster, cache: ForecastCache) -> EnergyService:
    return EnergyService(summarizer, forecaster, cache, clock=lambda: NOW)
