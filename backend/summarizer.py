"""
Day summarizer: one day's health sample and calendar events in, a
`DayEnergySummary` out.

The summary is observational. It carries mental/physical sub-scores, a
flat waveform with event deltas applied at their start hour, the top
boosters and drainers, and a coverage-driven confidence. Missing data is
never an error: sub-scores fall back to the activity score (or mid-scale
when there is no sample at all) and confidence drops.
"""

import datetime as dt
import logging
from collections import defaultdict
from typing import Callable, Iterable, List, NamedTuple, Optional, Sequence

from metrics import (
    FULL_CATALOG,
    REQUIRED_FOR_BASELINE,
    MetricKind,
    activity_score,
    clamp,
    normalize,
    round_score,
)
from models import HOURS_PER_DAY, CalendarEvent, DayEnergySummary, HealthSample, UserProfile

logger = logging.getLogger(__name__)

LOW_DATA_WARNING = (
    "Limited data used for today's estimate. "
    "Add sleep or HRV data for higher accuracy."
)
DEFAULT_CONFIDENCE = 0.6
MAX_EXPLAINERS = 5
TOP_EVENTS = 3


class ConfidenceRule(NamedTuple):
    applies: Callable[[frozenset], bool]
    confidence: float
    warning: Optional[str]


# Evaluated top to bottom; the first match wins, otherwise DEFAULT_CONFIDENCE.
CONFIDENCE_RULES: List[ConfidenceRule] = [
    ConfidenceRule(lambda a: not REQUIRED_FOR_BASELINE <= a, 0.2, LOW_DATA_WARNING),
    ConfidenceRule(lambda a: len(a) == len(REQUIRED_FOR_BASELINE), 0.4, LOW_DATA_WARNING),
    ConfidenceRule(lambda a: len(a) >= 5, 0.8, None),
]


def assess_confidence(available: frozenset) -> tuple[float, Optional[str]]:
    for rule in CONFIDENCE_RULES:
        if rule.applies(available):
            return rule.confidence, rule.warning
    return DEFAULT_CONFIDENCE, None


def day_window(day: dt.date) -> tuple[dt.datetime, dt.datetime]:
    start = dt.datetime.combine(day, dt.time.min)
    return start, start + dt.timedelta(days=1)


def events_on(day: dt.date, events: Iterable[CalendarEvent]) -> List[CalendarEvent]:
    """Events starting in the half-open [day, day + 1) window."""

    start, end = day_window(day)
    out = []
    for e in events:
        ts = e.start_time
        if ts.tzinfo is not None:
            ts = ts.replace(tzinfo=None)
        if start <= ts < end:
            out.append(e)
    return out


def mental_energy(sample: Optional[HealthSample]) -> float:
    if sample is None:
        return 50.0

    comps = []
    if sample.has(MetricKind.REM_SLEEP):
        comps.append(normalize(sample.rem_sleep, 0, 180))
    if sample.has(MetricKind.SLEEP_LATENCY):
        comps.append(1 - normalize(sample.sleep_latency, 0, 60))
    if sample.has(MetricKind.HEART_RATE_VARIABILITY):
        comps.append(normalize(sample.hrv, 20, 120))
    elif sample.has(MetricKind.RESTING_HR):
        comps.append(1 - normalize(sample.resting_hr, 40, 100))

    if not comps:
        comps.append(activity_score(sample.steps))
    return sum(comps) / len(comps) * 100


def physical_energy(sample: Optional[HealthSample]) -> float:
    if sample is None:
        return 50.0

    comps = []
    if sample.has(MetricKind.DEEP_SLEEP):
        comps.append(normalize(sample.deep_sleep, 0, 120))
    if sample.has(MetricKind.RESTING_HR):
        comps.append(1 - normalize(sample.resting_hr, 40, 100))
    elif sample.has(MetricKind.HEART_RATE_VARIABILITY):
        comps.append(normalize(sample.hrv, 20, 120))
    if sample.has(MetricKind.SLEEP_EFFICIENCY):
        comps.append(normalize(sample.sleep_efficiency, 60, 100))

    if not comps:
        comps.append(activity_score(sample.steps))
    return sum(comps) / len(comps) * 100


def top_events(events: Sequence[CalendarEvent], positive: bool, limit: int = TOP_EVENTS) -> List[str]:
    scored = [e for e in events if e.energy_delta is not None]
    scored.sort(key=lambda e: e.energy_delta, reverse=positive)
    return [e.title for e in scored[:limit]]


class EnergySummarizer:
    """Builds `DayEnergySummary` records.

    Stateless; one instance can be shared across threads.
    """

    def summarize(
        self,
        day: dt.date,
        health_samples: Sequence[HealthSample],
        calendar_events: Sequence[CalendarEvent],
        profile: UserProfile | None = None,
    ) -> DayEnergySummary:
        """Summarize one day.

        Inputs may be unfiltered; they are re-sliced to `day` here.
        `profile` is accepted for interface symmetry with the forecaster
        and does not change the observed summary.
        """

        sample = next((h for h in health_samples if h.date == day), None)
        events = events_on(day, calendar_events)

        mental = mental_energy(sample)
        physical = physical_energy(sample)
        overall = (mental + physical) / 2

        wave = self._waveform(overall / 100, events)

        available = sample.available_metrics if sample is not None else frozenset()
        coverage = len(available) / len(FULL_CATALOG)
        confidence, warning = assess_confidence(available)

        if sample is not None and sample.has(MetricKind.SLEEP_EFFICIENCY):
            sleep_eff = normalize(sample.sleep_efficiency, 60, 100) * 100
        else:
            sleep_eff = 50.0

        debug = f"{len(available)}/{len(FULL_CATALOG)} signals, conf {confidence:.2f}"
        logger.debug("summary %s: %s", day.isoformat(), debug)

        return DayEnergySummary(
            date=day,
            overall_energy_score=round_score(overall),
            mental_energy=round_score(mental),
            physical_energy=round_score(physical),
            sleep_efficiency=sleep_eff,
            coverage_ratio=coverage,
            confidence=confidence,
            warning=warning,
            debug_info=debug,
            hourly_waveform=wave,
            top_boosters=top_events(events, positive=True),
            top_drainers=top_events(events, positive=False),
            explainers=self._explainers(sample, mental, physical, events),
        )

    def summarize_range(
        self,
        health_samples: Sequence[HealthSample],
        calendar_events: Sequence[CalendarEvent],
        profile: UserProfile | None = None,
    ) -> List[DayEnergySummary]:
        """One summary per day present in either input, oldest first."""

        health_by_day = defaultdict(list)
        for h in health_samples:
            health_by_day[h.date].append(h)
        events_by_day = defaultdict(list)
        for e in calendar_events:
            events_by_day[e.start_time.date()].append(e)

        days = sorted(set(health_by_day) | set(events_by_day))
        return [
            self.summarize(d, health_by_day[d], events_by_day[d], profile)
            for d in days
        ]

    def _waveform(self, base: float, events: Sequence[CalendarEvent]) -> List[float]:
        wave = [clamp(base)] * HOURS_PER_DAY
        for e in events:
            if e.energy_delta is None:
                continue
            hr = e.start_time.hour
            wave[hr] = clamp(wave[hr] + e.energy_delta)
        return wave

    def _explainers(
        self,
        sample: Optional[HealthSample],
        mental: float,
        physical: float,
        events: Sequence[CalendarEvent],
    ) -> List[str]:
        out = []
        if sample is not None:
            if sample.has(MetricKind.SLEEP_EFFICIENCY):
                out.append(f"Sleep efficiency {int(sample.sleep_efficiency)} %")
            if sample.has(MetricKind.HEART_RATE_VARIABILITY):
                out.append(f"HRV {int(sample.hrv)} ms")
            if sample.has(MetricKind.RESTING_HR):
                out.append(f"Resting HR {int(sample.resting_hr)} bpm")

        am_meetings = [
            e for e in events
            if "meeting" in e.title.lower() and e.start_time.hour < 12
        ]
        if am_meetings:
            out.append(f"{len(am_meetings)} morning meeting(s)")

        out.append(f"Mental {int(mental)} / Physical {int(physical)}")
        return out[:MAX_EXPLAINERS]
