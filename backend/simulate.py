"""
Synthetic health history for demos and manual testing.

Each day gets full sleep/HRV coverage drawn from clamped normal
distributions around typical adult values.
"""

import datetime as dt
import random
from typing import List

from metrics import MetricKind
from models import HealthSample

SIMULATED_METRICS = frozenset({
    MetricKind.STEP_COUNT,
    MetricKind.RESTING_HR,
    MetricKind.ACTIVE_ENERGY_BURNED,
    MetricKind.HEART_RATE_VARIABILITY,
    MetricKind.SLEEP_EFFICIENCY,
    MetricKind.SLEEP_LATENCY,
    MetricKind.DEEP_SLEEP,
    MetricKind.REM_SLEEP,
})


def clamped_normal(rng: random.Random, mean: float, sd: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, rng.gauss(mean, sd)))


def simulated_history(
    days_back: int = 7, today: dt.date | None = None, seed: int | None = None
) -> List[HealthSample]:
    """`days_back` samples ending `today`, oldest first."""

    today = today or dt.date.today()
    rng = random.Random(seed)

    out = []
    for offset in range(days_back):
        day = today - dt.timedelta(days=offset)
        sleep_hours = clamped_normal(rng, 7.0, 1.5, 4.0, 9.0)
        deep_ratio = clamped_normal(rng, 0.18, 0.08, 0.05, 0.3)
        rem_ratio = clamped_normal(rng, 0.22, 0.08, 0.1, 0.4)
        out.append(HealthSample(
            date=day,
            steps=int(clamped_normal(rng, 8000, 3000, 2000, 13000)),
            hrv=clamped_normal(rng, 65, 20, 20, 120),
            resting_hr=clamped_normal(rng, 62, 10, 45, 90),
            sleep_latency=clamped_normal(rng, 20, 10, 5, 60),
            sleep_efficiency=clamped_normal(rng, 80, 15, 50, 100),
            active_energy=clamped_normal(rng, 800, 250, 400, 1200),
            deep_sleep=sleep_hours * 60 * deep_ratio,
            rem_sleep=sleep_hours * 60 * rem_ratio,
            available_metrics=SIMULATED_METRICS,
            has_samples=True,
        ))
    out.sort(key=lambda h: h.date)
    return out
