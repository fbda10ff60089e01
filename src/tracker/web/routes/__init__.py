"""Route handlers for Web API."""

from tracker.web.routes.health import router as health_router
from tracker.web.routes.notes import router as notes_router
from tracker.web.routes.subjects import router as subjects_router

__all__ = [
    "health_router",
    "notes_router",
    "subjects_router",
]
