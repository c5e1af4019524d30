"""Builds immutable room snapshots from raw calendar events."""

from __future__ import annotations

from typing import Iterable

from .acceptance import accepts
from .models import OccupyingEvent, RawEvent, Room


def build_room(calendar_id: str, room_name: str, raw_events: Iterable[RawEvent]) -> Room:
    """Keep the events that occupy the room, in their listed order."""
    events = tuple(
        OccupyingEvent(start=event.start, end=event.end)
        for event in raw_events
        if accepts(calendar_id, event, room_name)
    )
    return Room(name=room_name, events=events)
