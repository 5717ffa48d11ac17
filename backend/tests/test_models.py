"""Tests for the metric catalog and the pydantic data model."""

from __future__ import annotations

import datetime as dt

import pytest
from pydantic import ValidationError

from helpers import REQUIRED_ONLY, TODAY, make_sample
from metrics import (
    FULL_CATALOG,
    REQUIRED_FOR_BASELINE,
    MetricKind,
    activity_score,
    missing_required,
    normalize,
    round_score,
)
from models import (
    CalendarEvent,
    Chronotype,
    DayEnergyForecast,
    DayEnergySummary,
    ForecastSource,
    HealthSample,
    UserProfile,
)


def test_catalog_contains_required_kinds():
    assert len(FULL_CATALOG) == 18
    assert REQUIRED_FOR_BASELINE <= set(FULL_CATALOG)


def test_missing_required_is_in_catalog_order():
    assert missing_required([]) == [
        MetricKind.STEP_COUNT,
        MetricKind.ACTIVE_ENERGY_BURNED,
        MetricKind.RESTING_HR,
    ]
    assert missing_required(REQUIRED_ONLY) == []


def test_normalize_clamps_and_handles_degenerate_range():
    assert normalize(80, 60, 100) == pytest.approx(0.5)
    assert normalize(10, 60, 100) == 0.0
    assert normalize(200, 60, 100) == 1.0
    assert normalize(5, 10, 10) == 0.5


def test_round_score_sends_halves_up():
    assert round_score(62.5) == 63
    assert round_score(61.5) == 62
    assert round_score(62.49) == 62
    assert round_score(0.0) == 0


def test_activity_score_peaks_at_personal_mean():
    assert activity_score(8000) == pytest.approx(1.0)
    assert activity_score(11000) == pytest.approx(activity_score(5000))
    assert activity_score(11000) < 1.0


def test_health_sample_parses_camel_case_json():
    sample = HealthSample.model_validate({
        "date": "2026-10-18T06:45:00",
        "restingHr": 58,
        "steps": 4200,
        "availableMetrics": ["stepCount", "restingHR"],
    })

    assert sample.date == TODAY
    assert sample.resting_hr == 58
    assert sample.has(MetricKind.RESTING_HR)
    assert not sample.has(MetricKind.HEART_RATE_VARIABILITY)


def test_utc_timestamps_are_truncated():
    sample = HealthSample.model_validate({"date": "2026-10-18T06:45:00Z"})
    profile = UserProfile(typical_wake_time="2026-10-18T06:15:00Z")

    assert sample.date == TODAY
    assert profile.typical_wake_time == dt.time(6, 15)


def test_health_sample_rejects_unknown_metric():
    with pytest.raises(ValidationError):
        HealthSample(date=TODAY, available_metrics={"bloodSugar"})


def test_health_sample_is_frozen():
    sample = make_sample(TODAY)
    with pytest.raises(ValidationError):
        sample.steps = 1


def test_event_delta_must_be_within_unit_range():
    start = dt.datetime(2026, 10, 18, 9)
    with pytest.raises(ValidationError):
        CalendarEvent(title="x", start_time=start, end_time=start, energy_delta=1.5)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("morning", Chronotype.MORNING),
        ("Evening", Chronotype.EVENING),
        ("intermediate", Chronotype.AFTERNOON),
    ],
)
def test_profile_chronotype_parsing(raw, expected):
    assert UserProfile(chronotype=raw).chronotype == expected


def test_profile_rejects_unknown_chronotype():
    with pytest.raises(ValidationError):
        UserProfile(chronotype="night owl")


def test_profile_keeps_only_time_of_day():
    profile = UserProfile(
        typical_wake_time=dt.datetime(2001, 1, 1, 6, 15),
        typical_sleep_time="1999-05-05T22:30:00",
    )

    assert profile.typical_wake_time == dt.time(6, 15)
    assert profile.wake_hour == 6
    assert profile.sleep_hour == 22


def test_default_profile_and_debug_summary():
    profile = UserProfile.default()

    assert profile.wake_hour == 7
    assert profile.sleep_hour == 23
    assert profile.chronotype == Chronotype.AFTERNOON
    assert "Wake 07:00, Sleep 23:00" in profile.debug_summary()


def _summary(wave):
    return DayEnergySummary(
        date=TODAY,
        overall_energy_score=50,
        mental_energy=50,
        physical_energy=50,
        sleep_efficiency=50,
        coverage_ratio=0,
        confidence=0.2,
        hourly_waveform=wave,
    )


def test_summary_requires_24_bounded_values():
    with pytest.raises(ValidationError):
        _summary([0.5] * 23)
    with pytest.raises(ValidationError):
        _summary([0.5] * 23 + [1.2])


def test_with_waveform_recomputes_overall_score():
    summary = _summary([0.5] * 24)

    updated = summary.with_waveform([0.8] * 12 + [0.4] * 12)

    assert updated.overall_energy_score == 60
    assert updated.mental_energy == summary.mental_energy
    assert summary.hourly_waveform == [0.5] * 24


def test_with_waveform_rounds_half_scores_up():
    updated = _summary([0.5] * 24).with_waveform([0.625] * 24)

    assert updated.overall_energy_score == 63


def test_forecast_removal_sentinel():
    sentinel = DayEnergyForecast(
        date=TODAY, values=[], score=0, confidence_score=0,
        source_type=ForecastSource.DEFAULT_HEURISTIC,
    )
    empty_model = DayEnergyForecast(date=TODAY, values=[], score=0, confidence_score=0)

    assert sentinel.is_removal_sentinel
    assert not empty_model.is_removal_sentinel


def test_forecast_json_uses_wire_names():
    forecast = DayEnergyForecast(
        date=TODAY, values=[0.5] * 24, score=50, confidence_score=0.8,
        missing_metrics=[MetricKind.RESTING_HR],
    )

    data = forecast.model_dump(mode="json", by_alias=True)

    assert data["date"] == "2026-10-18"
    assert data["confidenceScore"] == 0.8
    assert data["missingMetrics"] == ["restingHR"]
    assert data["sourceType"] == "historicalModel"
    assert DayEnergyForecast.model_validate(data) == forecast
