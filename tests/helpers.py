"""Builders and fakes shared by the meeting room tests."""

import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from meeting_rooms.models import Attendee, OccupyingEvent, RawEvent, Room

DAY = datetime(2024, 3, 4, tzinfo=timezone.utc)


def at(hour: int, minute: int = 0) -> datetime:
    """Return a UTC instant on the test day."""
    return DAY + timedelta(hours=hour, minutes=minute)


def room_with(*spans: Tuple[datetime, datetime], name: str = "Kitchen") -> Room:
    return Room(name=name, events=tuple(OccupyingEvent(start=s, end=e) for s, e in spans))


def raw_event(
    start: datetime,
    end: datetime,
    *,
    attendees: Sequence[Attendee] = (),
    visibility: str = "default",
    summary: str = "Standup",
) -> RawEvent:
    return RawEvent(
        id=f"evt-{start:%H%M}",
        summary=summary,
        visibility=visibility,
        start=start,
        end=end,
        attendees=tuple(attendees),
    )


def room_attendee(email: str, status: str) -> Attendee:
    return Attendee(email=email, display_name="Room", response_status=status, resource=True)


class FakeCalendarSource:
    """In-memory calendar source with per-calendar canned results."""

    def __init__(self, events: Optional[Dict[str, List[RawEvent]]] = None) -> None:
        self.events: Dict[str, List[RawEvent]] = dict(events or {})
        self.failing: Dict[str, Exception] = {}
        self.token_error: Optional[Exception] = None
        self.token_calls = 0
        self.fetches: List[Tuple[str, str, datetime, datetime]] = []
        self._lock = threading.Lock()

    def acquire_token(self) -> str:
        with self._lock:
            self.token_calls += 1
            calls = self.token_calls
        if self.token_error is not None:
            raise self.token_error
        return f"token-{calls}"

    def fetch_events(self, token, calendar_id, time_min, time_max):
        with self._lock:
            self.fetches.append((token, calendar_id, time_min, time_max))
        if calendar_id in self.failing:
            raise self.failing[calendar_id]
        # Like the Calendar API, list events overlapping [time_min, time_max).
        return [e for e in self.events.get(calendar_id, []) if e.end > time_min and e.start < time_max]




def wait_for(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


class BlockingCalendarSource(FakeCalendarSource):
    """Fake source whose fetches for one calendar hang until released."""

    def __init__(self, blocked_calendar: str) -> None:
        super().__init__()
        self.blocked_calendar = blocked_calendar
        self.entered = threading.Event()
        self.release = threading.Event()

    def fetch_events(self, token, calendar_id, time_min, time_max):
        events = super().fetch_events(token, calendar_id, time_min, time_max)
        if calendar_id == self.blocked_calendar:
            self.entered.set()
            self.release.wait(timeout=10)
        return events
