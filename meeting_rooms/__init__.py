# Package initializer for the meeting room availability service.

"""
The ``meeting_rooms`` package polls room calendars and serves their availability.

Modules:

- ``config``: application settings loaded from environment variables.
- ``errors``: exception types shared across the service.
- ``models``: Pydantic data models for events, rooms and room sets.
- ``registry``: parsing of the room name to calendar ID mapping.
- ``acceptance``: decides whether a calendar event actually books a room.
- ``availability``: derives free/busy facts from a room's events.
- ``builder``: turns raw calendar events into a room snapshot.
- ``google_client``: helpers for interacting with the Google Calendar API.
- ``store``: the shared snapshot of every loaded room.
- ``scheduler``: the periodic refresh loop.
- ``api``: the FastAPI application definition.
- ``main``: process entry point.

"""
