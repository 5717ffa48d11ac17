"""
Forecast cache: day-keyed waveforms, accuracy numbers and forecasts.

The cache is the only shared mutable state in the engine. Three tables
share one keyspace (ISO `YYYY-MM-DD` day strings):

- `waves`      day -> 24 observed hourly values
- `accuracy`   day -> 1 - mean absolute forecast error
- `forecasts`  day -> serialized `DayEnergyForecast`

Every call runs under one lock. The store is read once at construction
and written through after every mutation. Store failures never reach
callers: a failed load starts the cache empty, a failed write leaves the
in-memory value authoritative for the rest of the process.
"""

import datetime as dt
import logging
import threading
from typing import Any, Dict, List, Optional, Protocol

from errors import CacheStoreError
from models import DayEnergyForecast

logger = logging.getLogger(__name__)

WAVES = "waves"
ACCURACY = "accuracy"
FORECASTS = "forecasts"
TABLES = (WAVES, ACCURACY, FORECASTS)

Snapshot = Dict[str, Dict[str, Any]]


def day_key(day: dt.date | dt.datetime) -> str:
    """Canonical key: the ISO calendar day, time of day dropped."""

    if isinstance(day, dt.datetime):
        day = day.date()
    return day.isoformat()


class ForecastStore(Protocol):
    """Durable medium behind the cache. Implementations raise `CacheStoreError`."""

    def load(self) -> Snapshot:
        """Return `{table: {day_key: json_value}}` for all three tables."""
        ...

    def put(self, table: str, key: str, value: Any) -> None:
        ...

    def delete(self, table: str, key: str) -> None:
        ...

    def clear(self) -> None:
        ...


class MemoryForecastStore:
    """Process-local store with no durability; used by tests and the default config."""

    def __init__(self, initial: Snapshot | None = None):
        self.tables: Snapshot = {t: dict((initial or {}).get(t, {})) for t in TABLES}

    def load(self) -> Snapshot:
        return {t: dict(rows) for t, rows in self.tables.items()}

    def put(self, table: str, key: str, value: Any) -> None:
        self.tables[table][key] = value

    def delete(self, table: str, key: str) -> None:
        self.tables[table].pop(key, None)

    def clear(self) -> None:
        for rows in self.tables.values():
            rows.clear()


class ForecastCache:
    """Thread-safe write-through cache over a `ForecastStore`."""

    def __init__(self, store: ForecastStore | None = None):
        self.store = store if store is not None else MemoryForecastStore()
        self._lock = threading.RLock()
        self._waves: Dict[str, List[float]] = {}
        self._accuracy: Dict[str, float] = {}
        self._forecasts: Dict[str, DayEnergyForecast] = {}
        self._load()

    # ---- persistence -------------------------------------------------

    def _load(self) -> None:
        try:
            snapshot = self.store.load()
        except CacheStoreError as e:
            logger.warning("Forecast store unavailable, starting empty: %s", e)
            return

        self._waves = {k: list(v) for k, v in snapshot.get(WAVES, {}).items()}
        self._accuracy = {k: float(v) for k, v in snapshot.get(ACCURACY, {}).items()}
        for k, v in snapshot.get(FORECASTS, {}).items():
            try:
                self._forecasts[k] = DayEnergyForecast.model_validate(v)
            except ValueError as e:
                logger.warning("Dropping unreadable cached forecast %s: %s", k, e)
        logger.debug(
            "Loaded forecast cache: %d waves, %d accuracy, %d forecasts",
            len(self._waves), len(self._accuracy), len(self._forecasts),
        )

    def _put(self, table: str, key: str, value: Any) -> None:
        try:
            self.store.put(table, key, value)
        except CacheStoreError as e:
            logger.warning("Failed to persist %s/%s, keeping in memory: %s", table, key, e)

    def _delete(self, table: str, key: str) -> None:
        try:
            self.store.delete(table, key)
        except CacheStoreError as e:
            logger.warning("Failed to delete %s/%s from store: %s", table, key, e)

    # ---- waves -------------------------------------------------------

    def wave(self, day: dt.date) -> Optional[List[float]]:
        with self._lock:
            wave = self._waves.get(day_key(day))
            return list(wave) if wave is not None else None

    def save_wave(self, wave: List[float], day: dt.date) -> None:
        key = day_key(day)
        with self._lock:
            self._waves[key] = list(wave)
            self._put(WAVES, key, list(wave))

    # ---- accuracy ----------------------------------------------------

    def accuracy(self, day: dt.date) -> Optional[float]:
        with self._lock:
            return self._accuracy.get(day_key(day))

    def save_accuracy(self, value: float, day: dt.date) -> None:
        key = day_key(day)
        with self._lock:
            self._accuracy[key] = value
            self._put(ACCURACY, key, value)

    def recent_accuracy(self, days: int, today: dt.date | None = None) -> Optional[float]:
        """Average accuracy over the `days` days ending `today`, skipping gaps."""

        today = today or dt.date.today()
        with self._lock:
            vals = [
                self._accuracy[k]
                for k in (day_key(today - dt.timedelta(days=i)) for i in range(days))
                if k in self._accuracy
            ]
        if not vals:
            return None
        return sum(vals) / len(vals)

    # ---- forecasts ---------------------------------------------------

    def forecast(self, day: dt.date) -> Optional[DayEnergyForecast]:
        with self._lock:
            return self._forecasts.get(day_key(day))

    def save_forecast(self, forecast: DayEnergyForecast) -> None:
        """Store `forecast`, or delete the day's entry for the removal sentinel."""

        if forecast.is_removal_sentinel:
            logger.warning(
                "Empty default-heuristic forecast for %s treated as removal",
                forecast.date.isoformat(),
            )
            self.remove_forecast(forecast.date)
            return

        key = day_key(forecast.date)
        with self._lock:
            self._forecasts[key] = forecast
            self._put(FORECASTS, key, forecast.model_dump(mode="json", by_alias=True))

    def remove_forecast(self, day: dt.date) -> None:
        key = day_key(day)
        with self._lock:
            self._forecasts.pop(key, None)
            # The store may hold rows this process never loaded.
            self._delete(FORECASTS, key)

    # ---- housekeeping ------------------------------------------------

    def remove_day(self, day: dt.date) -> None:
        """Drop the wave, accuracy and forecast stored for `day`."""

        key = day_key(day)
        with self._lock:
            for table, rows in ((WAVES, self._waves), (ACCURACY, self._accuracy), (FORECASTS, self._forecasts)):
                rows.pop(key, None)
                self._delete(table, key)

    def clear_all(self) -> None:
        with self._lock:
            self._waves.clear()
            self._accuracy.clear()
            self._forecasts.clear()
            try:
                self.store.clear()
            except CacheStoreError as e:
                logger.warning("Failed to clear forecast store: %s", e)

    def reset(self) -> None:
        self.clear_all()
