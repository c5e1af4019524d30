"""Decides whether a calendar event actually occupies a room.

Events are listed from the room's own calendar, so the room normally shows
up among the attendees with its own response. Only an accepted response
books the room. When the room is missing from the attendee list the event is
treated as occupying: a private event cannot be inspected, an event without
attendees was booked straight onto the room's calendar, and any other event
is assumed to win rather than show a booked room as free.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .models import ACCEPTED, PRIVATE_VISIBILITY, Attendee, RawEvent

logger = logging.getLogger(__name__)


def find_room_attendee(calendar_id: str, attendees: Iterable[Attendee]) -> Optional[Attendee]:
    """Return the attendee entry for the room's own calendar, if any."""
    for attendee in attendees:
        if attendee.email == calendar_id:
            return attendee
    return None


def accepts(calendar_id: str, event: RawEvent, room_name: str = "") -> bool:
    """Return True if ``event`` occupies the room owning ``calendar_id``."""
    room = find_room_attendee(calendar_id, event.attendees)
    if room is not None:
        return room.response_status == ACCEPTED

    label = room_name or calendar_id
    if event.visibility == PRIVATE_VISIBILITY:
        logger.info("No visibility of private event %s in %s, assuming it occupies the room", event.id, label)
        return True

    if not event.attendees:
        logger.info(
            "No attendees for event %r in %s, assuming it was booked direct to the room's calendar",
            event.summary,
            label,
        )
        return True

    logger.warning("Unable to find room %s in event %r, assuming it occupies the room", label, event.summary)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Attendees: %s",
            "; ".join(f"{a.display_name} {a.email} {a.response_status}" for a in event.attendees),
        )
    return True
