"""
Rule-based calendar event classifier.

Labels an event Booster, Drainer or Neutral from keywords in its title,
its duration and its start hour, with a confidence in 0.5..1.0.
`score_events` turns the label into the signed `energy_delta` the
engines consume.
"""

from typing import Iterable, List, NamedTuple

from models import CalendarEvent
from settings import settings

BOOSTER = "Booster"
DRAINER = "Drainer"
NEUTRAL = "Neutral"

BOOSTER_KEYWORDS = [
    "gym", "run", "walk", "yoga", "workout", "bike", "hike", "meditate", "therapy",
    "stretch", "nap", "break", "lunch", "outdoors", "social", "friend", "dance",
]

DRAINER_KEYWORDS = [
    "meeting", "call", "sync", "1:1", "review", "status", "check-in", "standup",
    "stand-up", "zoom", "teams", "presentation", "interview", "deadline", "class",
    "lecture", "commute", "doctor", "appointment", "exam", "test",
]

LONG_EVENT_SECONDS = 90 * 60
MARATHON_SECONDS = 3 * 3600


class EventClassification(NamedTuple):
    label: str
    confidence: float


def classify(event: CalendarEvent) -> EventClassification:
    title = event.title.lower()
    duration = event.duration.total_seconds()
    hour = event.start_time.hour

    booster_hits = [k for k in BOOSTER_KEYWORDS if k in title]
    drainer_hits = [k for k in DRAINER_KEYWORDS if k in title]

    if booster_hits:
        score = 0.6 + 0.1 * min(len(booster_hits), 3)
        if duration > LONG_EVENT_SECONDS:
            score -= 0.2
        if hour < 6 or hour > 21:
            score -= 0.1
        return EventClassification(BOOSTER, max(0.5, min(1.0, score)))

    if drainer_hits:
        score = 0.6 + 0.1 * min(len(drainer_hits), 3)
        if duration > LONG_EVENT_SECONDS:
            score += 0.1
        if 13 <= hour <= 17:
            score += 0.1  # afternoon drag
        return EventClassification(DRAINER, max(0.5, min(1.0, score)))

    if duration >= MARATHON_SECONDS:
        return EventClassification(DRAINER, 0.55)

    return EventClassification(NEUTRAL, 0.5)


def energy_delta(result: EventClassification, scale: float) -> float | None:
    if result.label == BOOSTER:
        return result.confidence * scale
    if result.label == DRAINER:
        return -result.confidence * scale
    return None


def score_events(
    events: Iterable[CalendarEvent], scale: float | None = None
) -> List[CalendarEvent]:
    """Copies of `events` with `energy_delta` filled for unscored timed events.

    Events that already carry a delta and all-day events are returned as-is.
    """

    scale = settings.classifier_delta_scale if scale is None else scale
    out = []
    for e in events:
        if e.energy_delta is not None or e.is_all_day:
            out.append(e)
            continue
        delta = energy_delta(classify(e), scale)
        out.append(e.model_copy(update={"energy_delta": delta}))
    return out
