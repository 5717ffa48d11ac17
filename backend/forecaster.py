"""
Forecast engine: projects a 24-hour energy waveform for a day.

Pipeline, in order:

1. cache lookup (a stored forecast is returned verbatim)
2. historical baseline from the recent health history
3. profile adjustment of the baseline
4. circadian curve, rotated for wake hour and chronotype
5. event deltas spread over 3-hour windows
6. caffeine dips
7. 5-point weighted smoothing
8. amplitude damping when confidence is low
9. sleep-hour floor when confidence is low or required metrics are missing

The result is persisted through the forecast cache. `None` means no
forecast can be made (no history, or no usable baseline day); callers
degrade to the observed summary.
"""

import datetime as dt
import logging
from typing import List, NamedTuple, Optional, Sequence

from analytics import energy_slice
from forecast_cache import ForecastCache
from metrics import (
    MetricKind,
    activity_score,
    clamp,
    missing_required,
    normalize,
)
from models import (
    HOURS_PER_DAY,
    CalendarEvent,
    Chronotype,
    DayEnergyForecast,
    ForecastSource,
    HealthSample,
    UserProfile,
)
from settings import settings
from summarizer import events_on

logger = logging.getLogger(__name__)

# Typical intraday deviation from baseline, hour 0..23.
CIRCADIAN_CURVE = [
    -0.05, -0.05, -0.05, -0.04, -0.02,
    0.02, 0.06, 0.10, 0.12, 0.10,
    0.08, 0.05, 0.03, 0.00, -0.02,
    -0.04, -0.03, 0.00, 0.08, 0.12,
    0.10, 0.05, 0.00, -0.04,
]
REFERENCE_WAKE_HOUR = 7
CHRONOTYPE_SHIFT = {Chronotype.MORNING: -1, Chronotype.EVENING: 1}

EVENT_WINDOW = ((-1, 0.25), (0, 0.5), (1, 0.25))
SMOOTHING_KERNEL = (1, 2, 3, 2, 1)

CAFFEINE_THRESHOLD_MG = 300
CAFFEINE_DIP = 0.1
SLEEP_FLOOR = 0.2
LOW_CONFIDENCE = 0.5


class EnergyParts(NamedTuple):
    morning: float
    afternoon: float
    evening: float


def base_energy(sample: HealthSample) -> Optional[float]:
    """Weighted composite energy (0..1) for one day, `None` without samples.

    Time in bed stands in for sleep efficiency and average heart rate for
    resting heart rate. A component with neither contributes mid-scale (0.5).
    """

    if not sample.has_samples:
        return None

    if sample.has(MetricKind.SLEEP_EFFICIENCY):
        sleep_eff = normalize(sample.sleep_efficiency, 60, 100)
    elif sample.has(MetricKind.TIME_IN_BED):
        sleep_eff = normalize(sample.time_in_bed, 300, 540)  # minutes
    else:
        sleep_eff = 0.5

    if sample.has(MetricKind.HEART_RATE_VARIABILITY):
        hrv = normalize(sample.hrv, 20, 120)
    else:
        hrv = 0.5

    if sample.has(MetricKind.RESTING_HR):
        rest_inv = 1.0 - normalize(sample.resting_hr, 40, 100)
    elif sample.has(MetricKind.HEART_RATE):
        rest_inv = 1.0 - normalize(sample.heart_rate, 50, 120)
    else:
        rest_inv = 0.5

    deep = sample.deep_sleep if sample.has(MetricKind.DEEP_SLEEP) else 0.0
    rem = sample.rem_sleep if sample.has(MetricKind.REM_SLEEP) else 0.0
    if sample.has(MetricKind.DEEP_SLEEP) or sample.has(MetricKind.REM_SLEEP):
        deep_rem = normalize(deep + rem, 60, 300)
    else:
        deep_rem = 0.5

    if sample.has(MetricKind.STEP_COUNT):
        act = activity_score(sample.steps)
    else:
        act = 0.5

    e = 0.35 * sleep_eff + 0.25 * hrv + 0.15 * rest_inv + 0.15 * deep_rem + 0.10 * act
    return clamp(e)


def historical_base(
    history: Sequence[HealthSample],
    window: int | None = None,
    average_over: int | None = None,
) -> Optional[float]:
    """Mean composite of the last `average_over` valid days among the last `window`."""

    window = window or settings.history_window_days
    average_over = average_over or settings.baseline_window_days

    valid = [b for b in (base_energy(h) for h in history[-window:]) if b is not None]
    if not valid:
        return None
    recent = valid[-average_over:]
    return sum(recent) / len(recent)


def adjust_for_profile(base: float, profile: UserProfile | None) -> float:
    if profile is None:
        return base
    base += (profile.exercise_frequency - 3) * 0.01
    if not profile.meals_regular:
        base -= 0.03
    return clamp(base)


def circadian(profile: UserProfile | None) -> List[float]:
    """The circadian curve rotated so output hour 0 is `offset` hours into it."""

    if profile is None:
        return list(CIRCADIAN_CURVE)
    n = len(CIRCADIAN_CURVE)
    offset = (profile.wake_hour - REFERENCE_WAKE_HOUR) + CHRONOTYPE_SHIFT.get(profile.chronotype, 0)
    return [CIRCADIAN_CURVE[(i + offset) % n] for i in range(n)]


def apply_event_delta(wave: List[float], delta: float, hour: int) -> None:
    """Spread `delta` over hour-1..hour+1; hours off the day are dropped."""

    for offset, weight in EVENT_WINDOW:
        h = hour + offset
        if 0 <= h < len(wave):
            wave[h] = clamp(wave[h] + delta * weight)


def apply_caffeine_dips(wave: List[float], profile: UserProfile | None) -> None:
    if profile is None or profile.caffeine_mg_per_day <= CAFFEINE_THRESHOLD_MG:
        return
    dips = []
    if profile.caffeine_morning:
        dips.append(11)
    if profile.caffeine_afternoon:
        dips.append(18)
    if profile.caffeine_evening:
        dips.append(23)
    for h in dips:
        wave[h] = max(0.0, wave[h] - CAFFEINE_DIP)


def smooth(values: List[float]) -> List[float]:
    """5-point weighted moving average over interior hours; edges unchanged."""

    if len(values) < len(SMOOTHING_KERNEL):
        return list(values)
    total = sum(SMOOTHING_KERNEL)
    out = list(values)
    for i in range(2, len(values) - 2):
        window = values[i - 2:i + 3]
        out[i] = sum(w * v for w, v in zip(SMOOTHING_KERNEL, window)) / total
    return out


def dampen(wave: List[float], base: float, confidence: float) -> List[float]:
    """Pull every hour toward `base` when confidence is low."""

    if confidence >= LOW_CONFIDENCE:
        return wave
    factor = 0.5 + confidence
    return [clamp(base + (v - base) * factor) for v in wave]


def sleep_hours(profile: UserProfile) -> List[int]:
    """Hours in the circular range [sleep hour, wake hour)."""

    hours = []
    h = profile.sleep_hour
    while h != profile.wake_hour:
        hours.append(h)
        h = (h + 1) % HOURS_PER_DAY
    return hours


def apply_sleep_floor(wave: List[float], profile: UserProfile) -> List[float]:
    out = list(wave)
    for h in sleep_hours(profile):
        out[h] = min(out[h], SLEEP_FLOOR)
    return out


def history_confidence(days: int) -> float:
    if days >= 7:
        return 0.8
    if days >= 3:
        return 0.4
    return 0.2


class EnergyForecaster:
    """Builds and caches `DayEnergyForecast` records.

    Pure apart from the cache; distinct dates can be forecast in parallel.
    """

    def __init__(self, cache: ForecastCache):
        self.cache = cache

    def forecast(
        self,
        date: dt.date,
        health_history: Sequence[HealthSample],
        events: Sequence[CalendarEvent],
        profile: UserProfile | None = None,
    ) -> Optional[DayEnergyForecast]:
        cached = self.cache.forecast(date)
        if cached is not None:
            logger.debug("forecast %s served from cache", date.isoformat())
            return cached

        history = sorted((h for h in health_history if h.date <= date), key=lambda h: h.date)
        logger.debug("history days for %s: %d", date.isoformat(), len(history))
        if profile is not None:
            logger.debug("profile for %s: %s", date.isoformat(), profile.debug_summary())
        if not history:
            return None

        sample = next((h for h in history if h.date == date), history[-1])

        base = historical_base(history)
        if base is None:
            logger.info("no usable baseline for %s", date.isoformat())
            return None
        adjusted = adjust_for_profile(base, profile)

        wave = [clamp(adjusted + c) for c in circadian(profile)]
        for e in events_on(date, events):
            if e.energy_delta is not None:
                apply_event_delta(wave, e.energy_delta, e.start_time.hour)
        apply_caffeine_dips(wave, profile)
        wave = smooth(wave)

        confidence = history_confidence(len(history))
        missing = missing_required(sample.available_metrics)

        # The floor goes last so damping cannot lift sleep hours back above it.
        wave = dampen(wave, adjusted, confidence)
        if profile is not None and (confidence < LOW_CONFIDENCE or missing):
            wave = apply_sleep_floor(wave, profile)

        debug_info = None
        if confidence < LOW_CONFIDENCE:
            debug_info = "missing: " + ",".join(m.value for m in missing)

        forecast = DayEnergyForecast(
            date=date,
            values=wave,
            score=sum(wave) / len(wave) * 100,
            confidence_score=confidence,
            missing_metrics=missing,
            source_type=ForecastSource.HISTORICAL_MODEL,
            debug_info=debug_info,
        )
        self.cache.save_forecast(forecast)
        return forecast

    def three_part_energy(
        self,
        date: dt.date,
        health_history: Sequence[HealthSample],
        events: Sequence[CalendarEvent],
        profile: UserProfile | None = None,
    ) -> Optional[EnergyParts]:
        """Morning (06-12), afternoon (12-18) and evening (18-24) averages, 0..100."""

        forecast = self.forecast(date, health_history, events, profile)
        if forecast is None or not forecast.values:
            return None

        def avg(hours: range) -> float:
            vals = energy_slice(forecast.values, hours)
            return sum(vals) / len(vals) * 100

        return EnergyParts(
            morning=avg(range(6, 12)),
            afternoon=avg(range(12, 18)),
            evening=avg(range(18, 24)),
        )
