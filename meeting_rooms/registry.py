"""The static mapping of room names to calendar IDs.

The mapping comes from a single configuration string of the form
``"Name,calendarId;Name,calendarId"``. It is parsed once at startup and never
changes afterwards.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Mapping

from .errors import ConfigurationError

CalendarRegistry = Mapping[str, str]


def parse_calendar_config(config: str) -> CalendarRegistry:
    """Parse the room configuration string into a read-only mapping.

    Empty segments (for example a trailing ``;``) are skipped.

    Raises:
        ConfigurationError: if a segment is not ``name,calendarId`` or a room
            name appears twice.
    """
    calendars: Dict[str, str] = {}
    for segment in (config or "").split(";"):
        segment = segment.strip()
        if not segment:
            continue
        parts = [part.strip() for part in segment.split(",")]
        if len(parts) != 2 or not all(parts):
            raise ConfigurationError(f"Invalid calendar entry {segment!r}, expected 'name,calendarId'")
        name, calendar_id = parts
        if name in calendars:
            raise ConfigurationError(f"Room {name!r} is configured more than once")
        calendars[name] = calendar_id
    return MappingProxyType(calendars)
