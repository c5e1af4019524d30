"""Periodic refresh of every room calendar.

One background thread drives the cycles: a refresh straight away, then one
every ``REFRESH_INTERVAL_SECONDS`` until ``stop`` is called. A cycle obtains
a single access token and hands one task per room to a shared thread pool
without waiting for them, so a slow cycle may still be running when the next
one starts. That is safe because each task publishes a complete room in one
swap. A room still loading from an earlier cycle is not queued again, so each
room has at most one task in the pool.

No failure inside a cycle escapes it. A token failure skips the cycle, a
fetch failure skips that room, and in both cases the store keeps what it had.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from .builder import build_room
from .config import EVENT_WINDOW, REFRESH_INTERVAL_SECONDS
from .errors import AuthenticationFailure, SourceFetchError
from .models import RawEvent
from .registry import CalendarRegistry
from .store import SnapshotStore

logger = logging.getLogger(__name__)


class CalendarSource(Protocol):
    def acquire_token(self) -> str: ...

    def fetch_events(
        self, token: str, calendar_id: str, time_min: datetime, time_max: datetime
    ) -> Sequence[RawEvent]: ...


def _utcnow() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(timezone.utc)


def event_window(now: datetime) -> Tuple[datetime, datetime]:
    """Return the rest of the UTC day from ``now``.

    The Calendar API lists events overlapping the window, so a meeting in
    progress at ``now`` is included and meetings that already ended are not.
    """
    now = now.astimezone(timezone.utc)
    midnight = datetime(now.year, now.month, now.day, tzinfo=timezone.utc)
    return now, midnight + EVENT_WINDOW


class RefreshScheduler:
    """Keeps a ``SnapshotStore`` in step with the room calendars."""

    def __init__(
        self,
        registry: CalendarRegistry,
        source: CalendarSource,
        store: SnapshotStore,
        *,
        interval: float = REFRESH_INTERVAL_SECONDS,
        max_workers: int = 8,
    ) -> None:
        self.registry = registry
        self.source = source
        self.store = store
        self.interval = interval
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="room-refresh")
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._pending_lock = threading.Lock()
        self._pending: Dict[str, Future] = {}

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Run one refresh now, then keep refreshing on every tick."""
        if self._thread is not None:
            raise RuntimeError("scheduler already started")
        self._thread = threading.Thread(target=self._loop, name="room-refresh-ticker", daemon=True)
        self._thread.start()

    def stop(self, wait: bool = False) -> None:
        """Stop ticking. Room refreshes already running are left to finish.

        Args:
            wait: block until in-flight room refreshes complete.
        """
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
        self._executor.shutdown(wait=wait)

    def _loop(self) -> None:
        self.run_cycle()
        while not self._stop.wait(self.interval):
            self.run_cycle()
        logger.debug("Refresh loop stopped")

    def run_cycle(self, now: Optional[datetime] = None) -> List[Future]:
        """Refresh every room once, returning the futures of the rooms scheduled.

        A room whose refresh from an earlier cycle is still queued or running
        is left out, so a slow calendar never has more than one task in the
        pool. Never raises. An empty list means nothing was scheduled.
        """
        logger.debug("Loading events...")
        try:
            token = self.source.acquire_token()
            now = now or _utcnow()
            futures = []
            with self._pending_lock:
                for name, calendar_id in self.registry.items():
                    previous = self._pending.get(name)
                    if previous is not None and not previous.done():
                        logger.warning("Still loading %s from an earlier cycle, skipping", name)
                        continue
                    future = self._executor.submit(self.refresh_room, token, name, calendar_id, now)
                    self._pending[name] = future
                    futures.append(future)
            return futures
        except AuthenticationFailure as exc:
            logger.error("Refresh cycle skipped, could not acquire token: %s", exc)
        except Exception:
            logger.exception("Refresh cycle failed")
        return []

    def refresh_room(self, token: str, name: str, calendar_id: str, now: datetime) -> bool:
        """Fetch, build and publish one room. Returns True if it was published."""
        logger.debug("Start: loading %s", name)
        time_min, time_max = event_window(now)
        try:
            raw_events = self.source.fetch_events(token, calendar_id, time_min, time_max)
            room = build_room(calendar_id, name, raw_events)
        except SourceFetchError as exc:
            logger.error("Error loading %s: %s", name, exc)
            return False
        except Exception:
            logger.exception("Unexpected error loading %s", name)
            return False

        self.store.publish(room)
        logger.debug("Finish: loading %s (%d events)", name, len(room.events))
        return True
