"""Pydantic data models for calendar events and rooms.

``RawEvent`` mirrors the subset of a Google Calendar event the service looks
at. ``OccupyingEvent`` and ``Room`` are the internal representation built on
each refresh; they are frozen so a published room can be shared freely
between threads.
"""

from datetime import datetime
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

PRIVATE_VISIBILITY = "private"
ACCEPTED = "accepted"


class Attendee(BaseModel):
    """A guest on a calendar event, possibly the room itself."""

    model_config = ConfigDict(frozen=True)

    email: str = ""
    display_name: str = ""
    response_status: str = "needsAction"
    resource: bool = False


class RawEvent(BaseModel):
    """An event as listed by the calendar source."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    summary: str = ""
    visibility: str = "default"
    start: datetime
    end: datetime
    attendees: Tuple[Attendee, ...] = ()


class OccupyingEvent(BaseModel):
    """An event that blocks the room."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime


class Room(BaseModel):
    """The events occupying one room, as of a single refresh."""

    model_config = ConfigDict(frozen=True)

    name: str
    events: Tuple[OccupyingEvent, ...] = ()


class RoomSet(BaseModel):
    """A point in time view over every loaded room."""

    model_config = ConfigDict(frozen=True)

    rooms: Dict[str, Room] = Field(default_factory=dict)
    total_rooms: int = 0
    rooms_loaded: int = 0

    @property
    def complete(self) -> bool:
        return self.rooms_loaded >= self.total_rooms

    @property
    def status(self) -> str:
        """``"ok"`` once every registered calendar has loaded, else ``"incomplete"``."""
        return "ok" if self.complete else "incomplete"

    def get(self, name: str) -> Optional[Room]:
        return self.rooms.get(name)
