"""The shared snapshot of every loaded room.

Rooms are published by concurrent refresh tasks and read by request
handlers. The store keeps an immutable mapping behind a single reference and
replaces the whole mapping on every publish. Readers grab the current
reference without locking and always see a complete mapping of complete,
frozen ``Room`` values. The lock only covers the copy and swap, never the
calendar fetch that produced the room, so slow rooms do not hold up others.

Entries are only ever added or replaced.
"""

from __future__ import annotations

import threading
from types import MappingProxyType
from typing import Mapping, Optional

from .models import Room, RoomSet


class SnapshotStore:
    """Copy-on-write mapping of room name to the latest ``Room``."""

    def __init__(self) -> None:
        self._swap_lock = threading.Lock()
        self._rooms: Mapping[str, Room] = MappingProxyType({})

    def publish(self, room: Room) -> None:
        """Make ``room`` visible, replacing any previous room of that name."""
        with self._swap_lock:
            rooms = dict(self._rooms)
            rooms[room.name] = room
            self._rooms = MappingProxyType(rooms)

    def snapshot(self) -> Mapping[str, Room]:
        """Return a read-only view of every room at this instant."""
        return self._rooms

    def get(self, name: str) -> Optional[Room]:
        return self._rooms.get(name)

    def __len__(self) -> int:
        return len(self._rooms)

    def room_set(self, total_rooms: int) -> RoomSet:
        """Return a consistent ``RoomSet`` built from a single snapshot."""
        rooms = self._rooms
        return RoomSet(rooms=dict(rooms), total_rooms=total_rooms, rooms_loaded=len(rooms))
