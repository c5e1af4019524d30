"""Exception types raised by the meeting room service.

Only ``ConfigurationError`` is fatal, and only at startup. Everything else is
recovered inside the refresh loop so that stale data keeps being served.
"""

from __future__ import annotations


class MeetingRoomError(Exception):
    """Base class for all service errors."""


class ConfigurationError(MeetingRoomError):
    """The service configuration is malformed or incomplete."""


class AuthenticationFailure(MeetingRoomError):
    """An access token could not be obtained from Google."""


class SourceFetchError(MeetingRoomError):
    """Listing events for one calendar failed."""

    def __init__(self, calendar_id: str, reason: str) -> None:
        super().__init__(f"{calendar_id}: {reason}")
        self.calendar_id = calendar_id
        self.reason = reason


class MalformedEventData(MeetingRoomError):
    """A calendar item could not be interpreted as an event."""
