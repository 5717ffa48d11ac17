"""
Pydantic models used across the backend.

Inputs (`HealthSample`, `CalendarEvent`, `UserProfile`) arrive from the
acquisition and profile collaborators; outputs (`DayEnergySummary`,
`DayEnergyForecast`) are produced by the engines and persisted by the
forecast cache. All of them are frozen: the engines never mutate inputs.

Guidelines:
- JSON uses camelCase aliases (`availableMetrics`, `energyDelta`, ...);
  snake_case names are accepted on input too.
- A `HealthSample` numeric field is only meaningful when its kind is in
  `available_metrics`; zeros are placeholders, not measurements.
"""

import datetime as dt
import math
from enum import Enum
from statistics import fmean
from typing import FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

from metrics import MetricKind, round_score

HOURS_PER_DAY = 24

# Full timestamps sent where only the day or the time of day is kept.
_DATETIME = TypeAdapter(dt.datetime)


class _Model(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )


class HealthSample(_Model):
    """One calendar day of physiological aggregates."""

    date: dt.date
    hrv: float = 0.0  # ms
    resting_hr: float = 0.0  # bpm
    heart_rate: float = 0.0  # bpm
    sleep_efficiency: float = 0.0  # %
    sleep_latency: float = 0.0  # min
    deep_sleep: float = 0.0  # min
    rem_sleep: float = 0.0  # min
    time_in_bed: float = 0.0  # min
    steps: int = 0
    active_energy: float = 0.0  # kcal
    available_metrics: FrozenSet[MetricKind] = frozenset()
    has_samples: bool = True

    @field_validator("date", mode="before")
    @classmethod
    def _truncate_to_day(cls, v):
        if isinstance(v, dt.datetime):
            return v.date()
        if isinstance(v, str) and "T" in v:
            return _DATETIME.validate_python(v).date()
        return v

    def has(self, kind: MetricKind) -> bool:
        return kind in self.available_metrics


class CalendarEvent(_Model):
    """One scheduled item; `energy_delta` > 0 boosts, < 0 drains."""

    title: str
    start_time: dt.datetime
    end_time: dt.datetime
    is_all_day: bool = False
    energy_delta: Optional[float] = Field(default=None, ge=-1.0, le=1.0)

    @property
    def duration(self) -> dt.timedelta:
        return self.end_time - self.start_time


class Chronotype(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


class UserProfile(_Model):
    """Person-level parameters that bias the baseline and circadian curve.

    Only the time of day of `typical_wake_time`/`typical_sleep_time` is kept;
    a full datetime is accepted and truncated.
    """

    caffeine_mg_per_day: int = 0
    caffeine_morning: bool = False
    caffeine_afternoon: bool = False
    caffeine_evening: bool = False
    exercise_frequency: int = 3  # sessions / week
    typical_wake_time: dt.time = dt.time(7, 0)
    typical_sleep_time: dt.time = dt.time(23, 0)
    uses_sleep_aid: bool = False
    screens_before_bed: bool = True
    meals_regular: bool = True
    chronotype: Chronotype = Chronotype.AFTERNOON
    last_updated: Optional[dt.datetime] = None
    notes: Optional[str] = None

    @field_validator("chronotype", mode="before")
    @classmethod
    def _chronotype_name(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
            if v == "intermediate":
                return Chronotype.AFTERNOON
        return v

    @field_validator("typical_wake_time", "typical_sleep_time", mode="before")
    @classmethod
    def _time_of_day(cls, v):
        if isinstance(v, dt.datetime):
            return v.time()
        if isinstance(v, str) and "T" in v:
            return _DATETIME.validate_python(v).time()
        return v

    @classmethod
    def default(cls) -> "UserProfile":
        return cls()

    @property
    def wake_hour(self) -> int:
        return self.typical_wake_time.hour

    @property
    def sleep_hour(self) -> int:
        return self.typical_sleep_time.hour

    def debug_summary(self) -> str:
        return (
            f"Caffeine: {self.caffeine_mg_per_day}mg/day "
            f"(M:{self.caffeine_morning}, A:{self.caffeine_afternoon}, E:{self.caffeine_evening}). "
            f"Wake {self.typical_wake_time:%H:%M}, Sleep {self.typical_sleep_time:%H:%M}, "
            f"Exercise {self.exercise_frequency}x/week, Chronotype {self.chronotype.value}."
        )


def _check_wave(values: List[float], allow_empty: bool = False) -> List[float]:
    if allow_empty and not values:
        return values
    if len(values) != HOURS_PER_DAY:
        raise ValueError(f"waveform must have {HOURS_PER_DAY} values, got {len(values)}")
    for v in values:
        if not math.isfinite(v) or v < 0.0 or v > 1.0:
            raise ValueError(f"waveform value out of range: {v}")
    return values


class DayEnergySummary(_Model):
    """Observed (or blended) energy for one day."""

    date: dt.date
    overall_energy_score: float  # 0..100
    mental_energy: float  # 0..100
    physical_energy: float  # 0..100
    sleep_efficiency: float  # 0..100
    coverage_ratio: float  # 0..1
    confidence: float  # 0..1
    warning: Optional[str] = None
    debug_info: str = ""
    hourly_waveform: List[float]
    top_boosters: List[str] = Field(default_factory=list)
    top_drainers: List[str] = Field(default_factory=list)
    explainers: List[str] = Field(default_factory=list)

    @field_validator("hourly_waveform")
    @classmethod
    def _wave_shape(cls, v):
        return _check_wave(v)

    def with_waveform(self, wave: List[float]) -> "DayEnergySummary":
        """Copy with a new waveform and the overall score recomputed from it."""

        wave = _check_wave(list(wave))
        return self.model_copy(update={
            "hourly_waveform": wave,
            "overall_energy_score": round_score(fmean(wave) * 100),
        })


class ForecastSource(str, Enum):
    HISTORICAL_MODEL = "historicalModel"
    DEFAULT_HEURISTIC = "defaultHeuristic"


class DayEnergyForecast(_Model):
    """Forecasted hourly energy and its metadata for one day."""

    date: dt.date
    values: List[float]
    score: float  # 0..100 daily average
    confidence_score: float  # 0..1
    missing_metrics: List[MetricKind] = Field(default_factory=list)
    source_type: ForecastSource = ForecastSource.HISTORICAL_MODEL
    debug_info: Optional[str] = None

    @field_validator("values")
    @classmethod
    def _values_shape(cls, v):
        return _check_wave(v, allow_empty=True)

    @property
    def is_removal_sentinel(self) -> bool:
        """Empty default-heuristic forecasts mean "no forecast" to the cache."""

        return not self.values and self.source_type == ForecastSource.DEFAULT_HEURISTIC


class DayRequest(_Model):
    """Route input: a target day plus the collaborator data it needs."""

    date: dt.date
    health: List[HealthSample] = Field(default_factory=list)
    events: List[CalendarEvent] = Field(default_factory=list)
    profile: Optional[UserProfile] = None
