"""Resolve what Tofu should be doing right now.

Priority layers, highest first:

1. an event/holiday dated today in the calendar document
2. market mood (hook only, never resolves yet)
3. time of day
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from ..schemas.tofu import CalendarDocument, Event

NEUTRAL_MOOD = "neutral"
HOME_REGION = "hk"


@dataclass(frozen=True)
class TofuContext:
    time: str
    mood: str = NEUTRAL_MOOD
    event: Optional[Event] = None

    def as_dict(self) -> dict:
        return {
            "time": self.time,
            "mood": self.mood,
            "event": self.event.model_dump() if self.event else None,
        }


def resolve_time_period(now: datetime) -> str:
    hour = now.hour
    if 6 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "afternoon"
    if 18 <= hour < 22:
        return "evening"
    return "night"


def today_keys(now: datetime) -> Tuple[str, str]:
    """Return the ``MM-DD`` and ``YYYY-MM-DD`` keys for ``now``."""

    fixed = f"{now.month:02d}-{now.day:02d}"
    return fixed, f"{now.year:04d}-{fixed}"


def _event_matches(event: Event, fixed_key: str, full_key: str) -> bool:
    if event.type == "fixed":
        return event.date == fixed_key
    if event.type == "lunar":
        return event.date == full_key
    return False


def _event_rank(event: Event) -> Tuple[int, int]:
    return (0 if event.region == HOME_REGION else 1, event.priority)


def resolve_today_event(calendar: CalendarDocument, now: datetime) -> Optional[Event]:
    fixed_key, full_key = today_keys(now)
    matches = [e for e in calendar.events if _event_matches(e, fixed_key, full_key)]
    if not matches:
        return None
    # sorted() is stable: equal ranks keep calendar order
    return sorted(matches, key=_event_rank)[0]


def resolve_market_mood(now: Optional[datetime] = None) -> Optional[str]:
    # TODO: derive a mood from an SPX/VIX feed while the US session is open.
    return None


def resolve_context(calendar: CalendarDocument, now: datetime) -> TofuContext:
    event = resolve_today_event(calendar, now)
    mood = resolve_market_mood(now)
    return TofuContext(
        time=resolve_time_period(now),
        mood=mood or NEUTRAL_MOOD,
        event=event,
    )
