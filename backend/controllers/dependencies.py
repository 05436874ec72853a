"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from backend.services.assignment_service import AssignmentService
from backend.services.planner_service import PlannerWorkflowService
from backend.services.roster_import_service import RosterImportService
from backend.utils.config import get_settings


def _service_from_state(request: Request, attribute: str, label: str):
    service = getattr(request.app.state, attribute, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} service is not initialized",
        )
    return service


def get_assignment_service(request: Request) -> AssignmentService:
    service = getattr(request.app.state, "assignment_service", None)
    if service is None:
        service = AssignmentService(settings=get_settings())
        request.app.state.assignment_service = service
    return service


def get_import_service(request: Request) -> RosterImportService:
    service = getattr(request.app.state, "import_service", None)
    if service is None:
        service = RosterImportService(settings=get_settings())
        request.app.state.import_service = service
    return service


def get_planner_service(request: Request) -> PlannerWorkflowService:
    return _service_from_state(request, "planner_service", "Planner")
