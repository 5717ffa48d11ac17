"""
Read-only views over events and waveforms used by the day/trend screens.
"""

from collections import defaultdict
from typing import Iterable, List, NamedTuple

from models import HOURS_PER_DAY, CalendarEvent, UserProfile

CATEGORY_KEYWORDS = [
    ("Meetings", ("meeting",)),
    ("Calls", ("call",)),
    ("Workout", ("gym", "run")),
    ("Focus Work", ("focus",)),
    ("Meals", ("lunch",)),
    ("Rest", ("sleep",)),
    ("Yoga", ("yoga",)),
]


class EventImpact(NamedTuple):
    category: str
    average_delta: float


def categorize(event: CalendarEvent) -> str:
    title = event.title.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(k in title for k in keywords):
            return category
    return "Other"


def event_impacts(events: Iterable[CalendarEvent]) -> List[EventImpact]:
    """Average `energy_delta` per category, boosters first.

    Categories whose events are all unscored average to 0.
    """

    grouped = defaultdict(list)
    for e in events:
        deltas = grouped[categorize(e)]
        if e.energy_delta is not None:
            deltas.append(e.energy_delta)

    impacts = [
        EventImpact(cat, sum(deltas) / len(deltas) if deltas else 0.0)
        for cat, deltas in grouped.items()
    ]
    impacts.sort(key=lambda i: i.average_delta, reverse=True)
    return impacts


def visible_range(profile: UserProfile | None, default: range) -> range:
    """Wake-to-sleep hours for graphs.

    The stop may exceed 24 when sleep is past midnight; wrap with
    `energy_slice`. The default profile, or equal wake and sleep hours,
    yields `default`.
    """

    if profile is None:
        return default
    wake, sleep = profile.wake_hour, profile.sleep_hour
    if wake == sleep:
        return default
    fallback = UserProfile.default()
    if wake == fallback.wake_hour and sleep == fallback.sleep_hour:
        return default
    if sleep > wake:
        return range(wake, sleep)
    return range(wake, sleep + HOURS_PER_DAY)


def energy_slice(wave: List[float], hours: range) -> List[float]:
    if not wave:
        return []
    return [wave[h % len(wave)] for h in hours]
