"""
Metric catalog and the small math helpers shared by the energy engines.

`MetricKind` values are the wire names reported by the health acquisition
layer. A day's sample carries the set of kinds that were actually
measured; every consumer checks membership before trusting a field.
"""

import math
from enum import Enum
from typing import Iterable, List


class MetricKind(str, Enum):
    STEP_COUNT = "stepCount"
    ACTIVE_ENERGY_BURNED = "activeEnergyBurned"
    HEART_RATE = "heartRate"
    TIME_IN_BED = "timeInBed"
    RESTING_HR = "restingHR"
    HEART_RATE_VARIABILITY = "heartRateVariability"
    EXERCISE_TIME = "exerciseTime"
    VO2_MAX = "vo2Max"
    SLEEP_EFFICIENCY = "sleepEfficiency"
    SLEEP_LATENCY = "sleepLatency"
    DEEP_SLEEP = "deepSleep"
    REM_SLEEP = "remSleep"
    RESPIRATORY_RATE = "respiratoryRate"
    WALKING_HEART_RATE_AVERAGE = "walkingHeartRateAverage"
    OXYGEN_SATURATION = "oxygenSaturation"
    ENVIRONMENTAL_AUDIO_EXPOSURE = "environmentalAudioExposure"
    MENSTRUAL_FLOW = "menstrualFlow"
    MINDFUL_MINUTES = "mindfulMinutes"


FULL_CATALOG: List[MetricKind] = list(MetricKind)

# Minimum needed for any non-fallback estimate.
REQUIRED_FOR_BASELINE = frozenset({
    MetricKind.STEP_COUNT,
    MetricKind.RESTING_HR,
    MetricKind.ACTIVE_ENERGY_BURNED,
})

PERSONAL_STEP_MEAN = 8000
PERSONAL_STEP_SD = 3000


def missing_required(available: Iterable[MetricKind]) -> List[MetricKind]:
    """Required kinds absent from `available`, in catalog order."""

    present = set(available)
    return [k for k in FULL_CATALOG if k in REQUIRED_FOR_BASELINE and k not in present]


def normalize(value: float, lo: float, hi: float) -> float:
    """Min-max normalise into 0..1. A degenerate range maps to mid-scale."""

    if hi <= lo:
        return 0.5
    return max(0.0, min(1.0, (value - lo) / (hi - lo)))


def clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def activity_score(
    steps: float, mean: float = PERSONAL_STEP_MEAN, sd: float = PERSONAL_STEP_SD
) -> float:
    """Gaussian proximity of `steps` to the personal mean (1.0 at the mean)."""

    z = (steps - mean) / sd
    return math.exp(-0.5 * z * z)


def round_score(value: float) -> float:
    """Whole-number score with halves rounded up (62.5 -> 63).

    Scores are non-negative, so flooring `value + 0.5` rounds half away from
    zero; the builtin `round` would send 62.5 to 62.
    """

    return float(math.floor(value + 0.5))
