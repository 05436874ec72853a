"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires all services, registers routers, and runs startup initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from backend.controllers.assignment_controller import router as assignment_router
from backend.controllers.planner_controller import router as planner_router
from backend.controllers.roster_controller import router as roster_router
from backend.repository.data_repository import DataRepository
from backend.services.assignment_service import AssignmentService
from backend.services.planner_service import PlannerWorkflowService
from backend.services.roster_import_service import RosterImportService
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Services are created here and published on app.state; controllers
    resolve them through backend.controllers.dependencies.
    """
    settings = settings or get_settings()

    # --- Repository (SQLite connection factory) ---
    repository = DataRepository(settings)

    # --- Services ---
    assignment_service = AssignmentService(settings=settings)
    import_service = RosterImportService(settings=settings)
    planner_service = PlannerWorkflowService(
        repository=repository,
        assignment_service=assignment_service,
        settings=settings,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(assignment_router)
    app.include_router(roster_router)
    app.include_router(planner_router)

    app.state.repository = repository
    app.state.assignment_service = assignment_service
    app.state.import_service = import_service
    app.state.planner_service = planner_service

    return app


def _startup(app: FastAPI) -> None:
    """Idempotent startup sequence. Safe to re-run on server restarts."""
    repository: DataRepository = app.state.repository

    logger.info("Startup: initializing database schema")
    repository.initialize_database()

    logger.info("Startup complete: system ready")


# Module-level app object for uvicorn
app = create_app()
