"""FastAPI application serving room availability.

Endpoints:
  - ``/``: API root with links to the room collection.
  - ``/_status``: build version.
  - ``/healthz``: simple health check endpoint.
  - ``/rooms``: every loaded room plus load progress.
  - ``/rooms/{name}``: a single room.

Room data comes from the ``SnapshotStore`` filled by the background
``RefreshScheduler``; handlers only read it. Availability is worked out per
request against the current time, so answers stay correct between
refreshes. The overall status is ``"incomplete"`` until every configured
room has loaded at least once.
"""

from __future__ import annotations

import logging
import re
import secrets
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from starlette.exceptions import HTTPException as StarletteHTTPException

from .availability import available_until, is_available, next_available
from .config import Settings
from .google_client import GoogleCalendarSource, iso_z
from .models import Room
from .registry import CalendarRegistry, parse_calendar_config
from .scheduler import CalendarSource, RefreshScheduler
from .store import SnapshotStore

logger = logging.getLogger(__name__)

ROOM_NAME = re.compile(r"^[a-zA-Z0-9]+$")

router = APIRouter()
basic_auth = HTTPBasic(auto_error=False)


def _utcnow() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(timezone.utc)


def _iso_or_none(dt: Optional[datetime]) -> Optional[str]:
    return iso_z(dt) if dt is not None else None


def present_room(room: Room, now: datetime) -> Dict[str, Any]:
    """Render a room and its availability at ``now`` as JSON-ready data."""
    return {
        "name": room.name,
        "available": is_available(room, now),
        "nextAvailable": _iso_or_none(next_available(room, now)),
        "availableUntil": _iso_or_none(available_until(room, now)),
        "events": [{"start": iso_z(e.start), "end": iso_z(e.end)} for e in room.events],
    }


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> SnapshotStore:
    return request.app.state.store


def get_registry(request: Request) -> CalendarRegistry:
    return request.app.state.registry


def require_auth(
    credentials: Optional[HTTPBasicCredentials] = Depends(basic_auth),
    settings: Settings = Depends(get_settings),
) -> None:
    """Check HTTP Basic credentials against the configured pair, if any."""
    if not settings.auth_username:
        return
    if credentials is not None:
        user_ok = secrets.compare_digest(credentials.username.encode(), settings.auth_username.encode())
        pass_ok = secrets.compare_digest(credentials.password.encode(), settings.auth_password.encode())
        if user_ok and pass_ok:
            return
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": 'Basic realm="meeting-rooms"'},
    )


@router.get("/")
def api_root(request: Request, settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """Return the API root document."""
    return {
        "meta": {"name": "meeting-rooms", "version": settings.version},
        "links": {
            "self": {"href": request.url.path},
            "related": {"href": "/rooms", "meta": {"rel": "jsonapi+root"}},
        },
    }


@router.get("/_status")
def api_status(settings: Settings = Depends(get_settings)) -> Dict[str, str]:
    return {"version": settings.version}


@router.get("/healthz")
def healthz() -> Dict[str, Any]:
    """Health check endpoint for monitoring."""
    return {"ok": True, "time": iso_z(_utcnow())}


@router.get("/rooms", dependencies=[Depends(require_auth)])
def rooms_index(
    store: SnapshotStore = Depends(get_store),
    registry: CalendarRegistry = Depends(get_registry),
) -> Dict[str, Any]:
    """Return every loaded room."""
    room_set = store.room_set(len(registry))
    now = _utcnow()
    return {
        "status": room_set.status,
        "meta": {"totalRooms": room_set.total_rooms, "roomsLoaded": room_set.rooms_loaded},
        "data": {name: present_room(room, now) for name, room in room_set.rooms.items()},
    }


@router.get("/rooms/{name}", dependencies=[Depends(require_auth)])
def rooms_show(
    name: str,
    store: SnapshotStore = Depends(get_store),
    registry: CalendarRegistry = Depends(get_registry),
) -> Dict[str, Any]:
    """Return a single room."""
    room_set = store.room_set(len(registry))
    room = room_set.get(name) if ROOM_NAME.match(name) else None
    if room is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return {"status": room_set.status, "data": present_room(room, _utcnow())}


async def not_found_handler(request: Request, exc: StarletteHTTPException):
    """Render 404s as a JSON error object; defer everything else to FastAPI."""
    if exc.status_code != status.HTTP_404_NOT_FOUND:
        return await http_exception_handler(request, exc)
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={
            "errors": {
                "title": "Not Found",
                "detail": f"<{request.url.path}> not found responding to {request.method}",
                "status": "404",
            }
        },
    )


def create_app(
    settings: Settings,
    source: Optional[CalendarSource] = None,
    *,
    start_scheduler: bool = True,
) -> FastAPI:
    """Build the application and its refresh machinery.

    Raises:
        ConfigurationError: if the room configuration or Google credentials
            are malformed.
    """
    registry = parse_calendar_config(settings.calendars)
    if source is None:
        source = GoogleCalendarSource(settings)
    store = SnapshotStore()
    scheduler = RefreshScheduler(registry, source, store, max_workers=settings.refresh_workers)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if start_scheduler:
            logger.info("Starting refresh of %d rooms", len(registry))
            scheduler.start()
        yield
        await run_in_threadpool(scheduler.stop)

    app = FastAPI(title="Meeting Room Service", version=settings.version, lifespan=lifespan)
    app.state.settings = settings
    app.state.registry = registry
    app.state.store = store
    app.state.scheduler = scheduler

    # CORS is off by default; set ENABLE_CORS=yes to expose the API to other origins.
    if settings.enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET"],
            allow_headers=["*"],
        )

    app.add_exception_handler(StarletteHTTPException, not_found_handler)
    app.include_router(router)
    return app
