"""
Service / facade layer.

`EnergyService` is the single entry point used by the HTTP routes. It
combines the observed day summary with the forecast:

- today: hours from the current hour onward come from the forecast
- future days: the forecast replaces the waveform wholesale
- past days: the observed waveform stays, and if a forecast had been
  cached for the day, its accuracy against what was observed is recorded

The summarizer, forecaster and cache are constructed by the caller and
injected, so tests can pass a memory-backed cache and a fixed clock.
"""

import datetime as dt
import logging
from typing import Callable, List, NamedTuple, Optional, Sequence

from analytics import energy_slice, visible_range
from forecast_cache import ForecastCache
from forecaster import EnergyForecaster
from models import (
    HOURS_PER_DAY,
    CalendarEvent,
    DayEnergyForecast,
    DayEnergySummary,
    HealthSample,
    UserProfile,
)
from settings import settings
from summarizer import EnergySummarizer

logger = logging.getLogger(__name__)

# Dashboard hours shown when the profile has no usable wake/sleep window.
DEFAULT_VISIBLE_HOURS = range(7, 19)


class VisibleEnergy(NamedTuple):
    hours: List[int]  # clock hours, 0..23
    values: List[float]


def forecast_accuracy(forecast: Sequence[float], observed: Sequence[float]) -> float:
    """1 - mean absolute difference between forecast and observed hours."""

    diffs = [abs(f - o) for f, o in zip(forecast, observed)]
    return 1.0 - sum(diffs) / len(diffs)


class EnergyService:
    """Business rules for summaries, forecasts and their blend.

    Example usage:
        cache = ForecastCache(MemoryForecastStore())
        svc = EnergyService(EnergySummarizer(), EnergyForecaster(cache), cache)
        svc.blended_summary(date.today(), health, events, profile)
    """

    def __init__(
        self,
        summarizer: EnergySummarizer,
        forecaster: EnergyForecaster,
        cache: ForecastCache,
        clock: Callable[[], dt.datetime] = dt.datetime.now,
    ):
        self.summarizer = summarizer
        self.forecaster = forecaster
        self.cache = cache
        self.clock = clock

    def summarize_day(
        self,
        date: dt.date,
        health: Sequence[HealthSample],
        events: Sequence[CalendarEvent],
        profile: UserProfile | None = None,
    ) -> DayEnergySummary:
        return self.summarizer.summarize(date, health, events, profile)

    def forecast_day(
        self,
        date: dt.date,
        health: Sequence[HealthSample],
        events: Sequence[CalendarEvent],
        profile: UserProfile | None = None,
    ) -> Optional[DayEnergyForecast]:
        return self.forecaster.forecast(date, health, events, profile)

    def blended_summary(
        self,
        date: dt.date,
        health: Sequence[HealthSample],
        events: Sequence[CalendarEvent],
        profile: UserProfile | None = None,
    ) -> DayEnergySummary:
        """Observed summary with its waveform blended against the forecast.

        Steps:
        1. Note any forecast cached for the day before this call.
        2. Summarize; past days also keep their observed wave in the cache.
        3. Forecast; without one the plain summary is returned.
        4. Blend by the day's position relative to now.
        5. Past days with an earlier forecast get an accuracy entry.
        """

        now = self.clock()
        today = now.date()
        previous = self.cache.forecast(date)

        summary = self.summarizer.summarize(date, health, events, profile)
        if date < today:
            self.cache.save_wave(summary.hourly_waveform, date)

        forecast = self.forecaster.forecast(date, health, events, profile)
        if forecast is None:
            logger.info("no forecast for %s, returning observed summary", date.isoformat())
            return summary
        self.cache.save_forecast(forecast)

        if len(forecast.values) != HOURS_PER_DAY:
            return summary

        blended: List[float] = list(summary.hourly_waveform)
        if date == today:
            for h in range(now.hour, HOURS_PER_DAY):
                blended[h] = forecast.values[h]
        elif date > today:
            blended = list(forecast.values)
        elif previous is not None and len(previous.values) == HOURS_PER_DAY:
            acc = forecast_accuracy(previous.values, summary.hourly_waveform)
            self.cache.save_accuracy(acc, date)
            logger.debug("accuracy for %s: %.3f", date.isoformat(), acc)

        return summary.with_waveform(blended)

    def blended_range(
        self,
        start: dt.date,
        end: dt.date,
        health: Sequence[HealthSample],
        events: Sequence[CalendarEvent],
        profile: UserProfile | None = None,
    ) -> List[DayEnergySummary]:
        """Blended summaries for each day in the inclusive range."""

        out = []
        day = start
        while day <= end:
            out.append(self.blended_summary(day, health, events, profile))
            day += dt.timedelta(days=1)
        return out

    def recent_accuracy(self, days: int | None = None) -> Optional[float]:
        return self.cache.recent_accuracy(days or settings.accuracy_days, today=self.clock().date())

    def clear_cache(self) -> None:
        self.cache.clear_all()

    def forget_day(self, day: dt.date) -> None:
        self.cache.remove_day(day)

    def visible_energy(
        self,
        date: dt.date,
        health: Sequence[HealthSample],
        events: Sequence[CalendarEvent],
        profile: UserProfile | None = None,
    ) -> VisibleEnergy:
        """The blended waveform restricted to the profile's waking hours.

        Sleep past midnight wraps around into the early hours of the same
        waveform.
        """

        wave = self.blended_summary(date, health, events, profile).hourly_waveform
        hours = visible_range(profile, DEFAULT_VISIBLE_HOURS)
        return VisibleEnergy(
            hours=[h % HOURS_PER_DAY for h in hours],
            values=energy_slice(wave, hours),
        )
