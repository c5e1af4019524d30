"""Availability facts derived from a room's occupying events.

Every function here assumes ``room.events`` is ordered by ascending start
time and does not overlap, which is how the Calendar API lists single
events. Nothing is re-sorted. The current instant is always passed in by the
caller.

``None`` is the sentinel for "no known instant".
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from .config import MIN_AVAILABILITY_PERIOD
from .models import Room


def is_available(room: Room, now: datetime) -> bool:
    """Return False only while the soonest event is in progress."""
    if room.events:
        first = room.events[0]
        if first.start <= now < first.end:
            return False
    return True


def next_available(room: Room, now: datetime) -> Optional[datetime]:
    """Return when the room next frees up for at least the minimum period.

    An empty room is available from ``now``. Otherwise the end of the first
    event that is followed by a gap strictly longer than
    ``MIN_AVAILABILITY_PERIOD`` is returned. ``None`` means no such gap exists
    in the fetched events.
    """
    if not room.events:
        return now

    for prev, current in zip(room.events, room.events[1:]):
        if prev.end + MIN_AVAILABILITY_PERIOD < current.start:
            return prev.end
    return None


def available_until(room: Room, now: datetime) -> Optional[datetime]:
    """Return the start of the next event if it has not started yet."""
    if not room.events:
        return None

    first = room.events[0]
    if first.start <= now:
        return None
    return first.start
