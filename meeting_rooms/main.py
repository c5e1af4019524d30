"""Process entry point for the meeting room service.

Configures logging from ``LOG_LEVEL`` and builds the FastAPI application.
Run with ``python -m meeting_rooms.main`` or point uvicorn at
``meeting_rooms.main:app``.
"""

from __future__ import annotations

import logging

from .api import create_app
from .config import settings

logging.basicConfig(
    level=settings.logging_level(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("meeting_rooms")

app = create_app(settings)


if __name__ == "__main__":
    import uvicorn

    logger.info("API is starting up on :%s", settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
