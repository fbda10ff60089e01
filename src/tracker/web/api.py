"""FastAPI application factory.

Main entry point for the Attendance Tracker Web API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tracker.config.app_config import resolve_data_dir
from tracker.core.persistence import open_subject_store
from tracker.web.routes import (
    health_router,
    notes_router,
    subjects_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    data_dir = resolve_data_dir()
    store = open_subject_store(data_dir)
    logger.info(
        "api_startup",
        subjects_found=len(store.subjects),
        state_dir=str((data_dir / "state").absolute()),
    )
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="Attendance Tracker API",
        description="Web API for the personal attendance tracker",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(subjects_router)
    app.include_router(notes_router)

    return app


# Default app instance for uvicorn
app = create_app()
