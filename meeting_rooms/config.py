"""Application configuration settings.

This module defines the ``Settings`` class using ``pydantic-settings`` to
load configuration from environment variables. A ``.env`` file is read first
so local development does not need a long list of exported variables.

The refresh cadence, the minimum usable gap between meetings and the length
of the event window are fixed constants rather than settings.
"""

import logging
import os
from datetime import timedelta

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

load_dotenv(os.getenv("MEETING_ROOM_ENV", ".env"))

REFRESH_INTERVAL_SECONDS = 60
MIN_AVAILABILITY_PERIOD = timedelta(minutes=15)
EVENT_WINDOW = timedelta(days=1)


class Settings(BaseSettings):
    """Configuration values loaded from environment variables.

    Environment variable names map to fields by alias. Every field has a
    default so the module can be imported without a configured environment;
    missing Google credentials are reported when the calendar client is built.
    """

    # Rooms, as "name,calendarId;name,calendarId"
    calendars: str = Field(default="", alias="MEETING_ROOM_CALENDARS")

    # Google authentication. Either a service account JSON key (inline or a
    # path), or the service account email plus a base64 encoded PEM key.
    google_service_account_json: str = Field(default="", alias="GOOGLE_SERVICE_ACCOUNT_JSON")
    google_client_id: str = Field(default="", alias="MEETING_ROOM_CLIENT_ID")
    google_api_key: str = Field(default="", alias="MEETING_ROOM_API_KEY")

    # Credentials for the room endpoints. Auth is off when the user is empty.
    auth_username: str = Field(default="", alias="MEETING_ROOM_AUTH_USER")
    auth_password: str = Field(default="", alias="MEETING_ROOM_AUTH_PASS")

    port: int = Field(default=8080, alias="PORT")
    log_level: str = Field(
        default="ERROR",
        alias="LOG_LEVEL",
        description="Standard logging level name. Unknown values fall back to ERROR.",
    )
    version: str = Field(default="Not Set", alias="VERSION")
    enable_cors: bool = Field(default=False, alias="ENABLE_CORS")

    fetch_timeout_seconds: float = Field(
        default=20.0,
        alias="FETCH_TIMEOUT_SECONDS",
        description="Socket timeout for a single Calendar API request.",
    )
    refresh_workers: int = Field(
        default=8,
        alias="REFRESH_WORKERS",
        description="Number of threads used to refresh rooms concurrently.",
    )

    class Config:
        extra = "ignore"

    def logging_level(self) -> int:
        """Return the numeric logging level, defaulting to ERROR."""
        level = logging.getLevelName(self.log_level.strip().upper())
        if isinstance(level, int):
            return level
        return logging.ERROR


settings = Settings()
