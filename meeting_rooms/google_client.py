"""Google Calendar client utilities for the meeting room service.

This module loads service account credentials, exchanges them for an access
token and lists the events on a room calendar. It retries transient API
errors with exponential back-off and converts Google's event resources into
``RawEvent`` models.

The access token is handed back to the caller as a plain string rather than
kept on a shared client, so every room refresh in a cycle reads the same
immutable value. Each request builds its own ``httplib2.Http`` because those
objects are not safe to share between threads.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import time
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import credentials as oauth2_credentials
from google.oauth2 import service_account
from google_auth_httplib2 import AuthorizedHttp, Request
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from pydantic import ValidationError

from .config import Settings
from .errors import AuthenticationFailure, ConfigurationError, MalformedEventData, SourceFetchError
from .models import Attendee, RawEvent

logger = logging.getLogger(__name__)

# Read-only access to room calendars is all the service needs.
SCOPES: Tuple[str, ...] = ("https://www.googleapis.com/auth/calendar.readonly",)
TOKEN_URL = "https://oauth2.googleapis.com/token"

RETRY_STATUSES = (429, 500, 502, 503, 504)


def iso_z(dt: datetime) -> str:
    """Return an RFC3339 timestamp in UTC with a Z suffix."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat().replace("+00:00", "Z")


def parse_rfc3339(s: str) -> datetime:
    """Parse RFC3339 timestamps returned by Google into timezone-aware datetimes."""
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return datetime.fromisoformat(s).astimezone(timezone.utc)


def _parse_event_time(value: Optional[Dict[str, Any]]) -> datetime:
    """Read an event ``start``/``end`` object.

    Timed events carry ``dateTime``; all-day events only carry ``date`` and
    are taken to begin at midnight UTC.
    """
    if not value:
        raise MalformedEventData("missing event time")
    if value.get("dateTime"):
        return parse_rfc3339(value["dateTime"])
    if value.get("date"):
        day = date.fromisoformat(value["date"])
        return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
    raise MalformedEventData(f"unusable event time {value!r}")


def parse_event(item: Dict[str, Any]) -> RawEvent:
    """Convert a Calendar API event resource into a ``RawEvent``.

    Raises:
        MalformedEventData: if the item has no usable start or end, or a
            field of the wrong type.
    """
    try:
        start = _parse_event_time(item.get("start"))
        end = _parse_event_time(item.get("end"))
    except (ValueError, AttributeError, TypeError) as exc:
        raise MalformedEventData(f"event {item.get('id')!r}: {exc}") from exc
    if end < start:
        raise MalformedEventData(f"event {item.get('id')!r} ends before it starts")

    try:
        attendees = tuple(
            Attendee(
                email=a.get("email", ""),
                display_name=a.get("displayName", ""),
                response_status=a.get("responseStatus", "needsAction"),
                resource=bool(a.get("resource", False)),
            )
            for a in item.get("attendees") or []
        )
        return RawEvent(
            id=item.get("id", ""),
            summary=item.get("summary", ""),
            visibility=item.get("visibility", "default"),
            start=start,
            end=end,
            attendees=attendees,
        )
    except (ValidationError, AttributeError, TypeError) as exc:
        raise MalformedEventData(f"event {item.get('id')!r}: {exc}") from exc


class GoogleCalendarSource:
    """Lists room calendar events with a service account.

    ``acquire_token`` is called once per refresh cycle; ``fetch_events`` is
    then called concurrently for every room with that token.
    """

    def __init__(self, settings: Settings) -> None:
        self._sa_info = self._load_sa_info(settings)
        self._timeout = settings.fetch_timeout_seconds

    @staticmethod
    def _load_sa_info(settings: Settings) -> dict:
        """Load the service account key from the configured JSON or key pair.

        ``GOOGLE_SERVICE_ACCOUNT_JSON`` may contain either a JSON string or a
        filesystem path pointing to the JSON key. Without it, the client
        email and base64 encoded private key settings are used.
        """
        raw = settings.google_service_account_json.strip()
        if raw:
            try:
                # Detect inline JSON by looking for a brace at the start.
                if raw.startswith("{"):
                    return json.loads(raw)
                with open(raw, "r", encoding="utf-8") as fh:
                    return json.load(fh)
            except (OSError, ValueError) as exc:
                raise ConfigurationError(f"Unable to load GOOGLE_SERVICE_ACCOUNT_JSON: {exc}") from exc

        if not (settings.google_client_id and settings.google_api_key):
            raise ConfigurationError(
                "Set GOOGLE_SERVICE_ACCOUNT_JSON or both MEETING_ROOM_CLIENT_ID and MEETING_ROOM_API_KEY"
            )
        try:
            private_key = base64.b64decode(settings.google_api_key, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise ConfigurationError(f"Error decoding private key: {exc}") from exc
        return {
            "client_email": settings.google_client_id,
            "private_key": private_key,
            "token_uri": TOKEN_URL,
        }

    def acquire_token(self) -> str:
        """Request a fresh access token for the service account.

        Raises:
            AuthenticationFailure: if the key is unusable or Google refuses it.
        """
        logger.info("Requesting new access token")
        try:
            creds = service_account.Credentials.from_service_account_info(self._sa_info, scopes=SCOPES)
            creds.refresh(Request(httplib2.Http(timeout=self._timeout)))
        except (GoogleAuthError, ValueError, OSError) as exc:
            raise AuthenticationFailure(str(exc)) from exc
        logger.info("New access token acquired")
        return creds.token

    def _calendar_service(self, token: str):
        """Build a Calendar service client that sends ``token``."""
        creds = oauth2_credentials.Credentials(token=token)
        http = AuthorizedHttp(creds, http=httplib2.Http(timeout=self._timeout))
        return build("calendar", "v3", http=http, cache_discovery=False)

    def fetch_events(
        self,
        token: str,
        calendar_id: str,
        time_min: datetime,
        time_max: datetime,
        *,
        max_retries: int = 3,
        backoff_seconds: float = 1.0,
    ) -> List[RawEvent]:
        """List the single events on a calendar in ascending start order.

        Args:
            token: access token from ``acquire_token``.
            calendar_id: the room's calendar ID (its resource email).
            time_min: the start time (inclusive) as a timezone-aware datetime.
            time_max: the end time (exclusive) as a timezone-aware datetime.
            max_retries: number of times to retry on transient errors.
            backoff_seconds: initial backoff delay for retries.

        Raises:
            SourceFetchError: if the API call fails after retries.
        """
        try:
            service = self._calendar_service(token)
        except (HttpError, GoogleAuthError, OSError) as exc:
            raise SourceFetchError(calendar_id, str(exc)) from exc

        items: List[Dict[str, Any]] = []
        page_token: Optional[str] = None
        while True:
            request = service.events().list(
                calendarId=calendar_id,
                timeMin=iso_z(time_min),
                timeMax=iso_z(time_max),
                singleEvents=True,
                orderBy="startTime",
                pageToken=page_token,
            )
            response = self._execute(request, calendar_id, max_retries, backoff_seconds)
            items.extend(response.get("items", []))
            page_token = response.get("nextPageToken")
            if not page_token:
                break

        events: List[RawEvent] = []
        for item in items:
            try:
                events.append(parse_event(item))
            except MalformedEventData as exc:
                logger.warning("Skipping malformed event in %s: %s", calendar_id, exc)
        return events

    @staticmethod
    def _execute(request, calendar_id: str, max_retries: int, backoff_seconds: float) -> Dict[str, Any]:
        attempt = 0
        while True:
            try:
                return request.execute()
            except HttpError as exc:
                attempt += 1
                # Retry on 5xx or rate-limit errors.
                status = getattr(exc.resp, "status", None)
                if attempt <= max_retries and status in RETRY_STATUSES:
                    delay = backoff_seconds * (2 ** (attempt - 1))
                    logger.warning(
                        "Events query for %s transient error (status=%s), retrying in %.1fs (attempt %s/%s)",
                        calendar_id,
                        status,
                        delay,
                        attempt,
                        max_retries,
                    )
                    time.sleep(delay)
                    continue
                raise SourceFetchError(calendar_id, str(exc)) from exc
            except (OSError, httplib2.HttpLib2Error) as exc:
                # Socket timeouts land here.
                raise SourceFetchError(calendar_id, str(exc)) from exc
