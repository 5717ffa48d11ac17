"""Tests for the blended summary service."""

from __future__ import annotations

import datetime as dt

import pytest

from helpers import NOW, TODAY, make_event, make_history
from metrics import round_score
from models import DayEnergyForecast, UserProfile
from service_energy import DEFAULT_VISIBLE_HOURS, forecast_accuracy

PAST = TODAY - dt.timedelta(days=3)
FUTURE = TODAY + dt.timedelta(days=2)


def _flat_forecast(day: dt.date, value: float) -> DayEnergyForecast:
    return DayEnergyForecast(date=day, values=[value] * 24, score=value * 100, confidence_score=0.8)


def test_forecast_accuracy_formula():
    assert forecast_accuracy([0.5] * 24, [0.5] * 24) == 1.0
    assert forecast_accuracy([0.2] * 12 + [0.8] * 12, [0.5] * 24) == pytest.approx(0.7)


def test_future_day_uses_forecast_wholesale(service, cache):
    history = make_history(TODAY, 10)

    summary = service.blended_summary(FUTURE, history, [])
    forecast = cache.forecast(FUTURE)

    assert summary.hourly_waveform == forecast.values
    assert summary.overall_energy_score == round_score(sum(forecast.values) / 24 * 100)
    assert summary.mental_energy == 50  # no observed sample for that day


def test_today_blends_from_current_hour(service, cache):
    history = make_history(TODAY, 10)
    observed = service.summarize_day(TODAY, history, []).hourly_waveform

    summary = service.blended_summary(TODAY, history, [])
    forecast = cache.forecast(TODAY)

    assert NOW.hour == 10
    assert summary.hourly_waveform[:10] == observed[:10]
    assert summary.hourly_waveform[10:] == forecast.values[10:]
    assert summary.overall_energy_score == round_score(sum(summary.hourly_waveform) / 24 * 100)


def test_past_day_keeps_observed_wave_and_records_accuracy(service, cache):
    history = make_history(TODAY, 10)
    cache.save_forecast(_flat_forecast(PAST, 0.6))
    observed = service.summarize_day(PAST, history, []).hourly_waveform

    summary = service.blended_summary(PAST, history, [])

    assert summary.hourly_waveform == observed
    assert cache.wave(PAST) == observed
    expected = 1 - sum(abs(0.6 - o) for o in observed) / 24
    assert cache.accuracy(PAST) == pytest.approx(expected)


def test_past_day_without_prior_forecast_records_no_accuracy(service, cache):
    history = make_history(TODAY, 10)

    service.blended_summary(PAST, history, [])

    assert cache.accuracy(PAST) is None
    assert cache.forecast(PAST) is not None


def test_second_call_for_past_day_sees_saved_forecast(service, cache):
    history = make_history(TODAY, 10)

    service.blended_summary(PAST, history, [])
    service.blended_summary(PAST, history, [])

    assert cache.accuracy(PAST) is not None


def test_absent_forecast_returns_plain_summary(service, summarizer):
    events = [make_event("Run", dt.datetime(2026, 10, 20, 8), delta=0.3)]

    blended = service.blended_summary(FUTURE, [], events)

    assert blended == summarizer.summarize(FUTURE, [], events)


def test_blended_summary_carries_observed_fields(service):
    history = make_history(TODAY, 10)
    events = [make_event("Yoga", dt.datetime(2026, 10, 20, 7), delta=0.4)]
    plain = service.summarize_day(FUTURE, history, events)

    blended = service.blended_summary(FUTURE, history, events)

    assert blended.top_boosters == plain.top_boosters == ["Yoga"]
    assert blended.explainers == plain.explainers
    assert blended.confidence == plain.confidence
    assert blended.warning == plain.warning


def test_blended_range_and_recent_accuracy(service, cache):
    history = make_history(TODAY, 10)
    cache.save_forecast(_flat_forecast(TODAY - dt.timedelta(days=1), 0.7))

    summaries = service.blended_range(TODAY - dt.timedelta(days=1), TODAY + dt.timedelta(days=1), history, [])

    assert [s.date for s in summaries] == [
        TODAY - dt.timedelta(days=1), TODAY, TODAY + dt.timedelta(days=1),
    ]
    assert service.recent_accuracy(7) == cache.accuracy(TODAY - dt.timedelta(days=1))


def test_forget_day_and_clear_cache(service, cache):
    history = make_history(TODAY, 10)
    service.blended_summary(TODAY, history, [])
    service.blended_summary(FUTURE, history, [])

    service.forget_day(TODAY)
    assert cache.forecast(TODAY) is None
    assert cache.forecast(FUTURE) is not None

    service.clear_cache()
    assert cache.forecast(FUTURE) is None


def test_visible_energy_wraps_sleep_past_midnight(service, cache):
    history = make_history(TODAY, 10)
    profile = UserProfile(typical_wake_time=dt.time(6), typical_sleep_time=dt.time(1))

    visible = service.visible_energy(FUTURE, history, [], profile)
    values = cache.forecast(FUTURE).values

    assert visible.hours == list(range(6, 24)) + [0]
    assert visible.values == values[6:] + values[:1]


def test_visible_energy_defaults_to_daytime_hours(service):
    visible = service.visible_energy(FUTURE, make_history(TODAY, 10), [], UserProfile.default())

    assert visible.hours == list(DEFAULT_VISIBLE_HOURS)
    assert len(visible.values) == len(DEFAULT_VISIBLE_HOURS)
