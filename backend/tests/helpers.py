"""Builders for health samples, histories and events used across tests."""

from __future__ import annotations

import datetime as dt

from metrics import FULL_CATALOG, MetricKind
from models import CalendarEvent, HealthSample

TODAY = dt.date(2026, 10, 18)
NOW = dt.datetime(2026, 10, 18, 10, 30)

FULL_METRICS = frozenset(FULL_CATALOG)
REQUIRED_ONLY = frozenset({
    MetricKind.STEP_COUNT,
    MetricKind.RESTING_HR,
    MetricKind.ACTIVE_ENERGY_BURNED,
})


def make_sample(day: dt.date, **overrides) -> HealthSample:
    """A fully covered day with the reference values used across tests."""

    fields = dict(
        date=day,
        steps=8000,
        hrv=80,
        resting_hr=55,
        sleep_efficiency=90,
        sleep_latency=15,
        deep_sleep=100,
        rem_sleep=90,
        active_energy=700,
        available_metrics=FULL_METRICS,
        has_samples=True,
    )
    fields.update(overrides)
    return HealthSample(**fields)


def make_history(end: dt.date, days: int, **overrides) -> list[HealthSample]:
    return [
        make_sample(end - dt.timedelta(days=offset), **overrides)
        for offset in reversed(range(days))
    ]


def make_event(title: str, start: dt.datetime, hours: float = 1, delta: float | None = None, **kw) -> CalendarEvent:
    return CalendarEvent(
        title=title,
        start_time=start,
        end_time=start + dt.timedelta(hours=hours),
        energy_delta=delta,
        **kw,
    )
