"""Controller layer for the planner session and saved history."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from backend.controllers.dependencies import get_planner_service
from backend.controllers.schemas import (
    AssignmentResponse,
    BuildingPayload,
    PersonPayload,
    RoomPayload,
    SessionResponse,
    UnassignedPersonResponse,
    ViolationResponse,
)
from backend.domain.models import UnassignedPerson
from backend.domain.serialization import to_plain
from backend.services.assignment_service import AssignmentValidationError
from backend.services.planner_service import (
    ConfigurationNotFoundError,
    PlannerValidationError,
    PlannerWorkflowService,
    SessionNotFoundError,
)
from backend.utils.config import get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(tags=["planner"])


class SaveSessionRequest(BaseModel):
    building: BuildingPayload
    rooms: list[RoomPayload] = Field(default_factory=list)
    people: list[PersonPayload] = Field(default_factory=list)
    assignments: dict[str, list[str]] = Field(default_factory=dict)
    unassigned: list[UnassignedPersonResponse] = Field(default_factory=list)


class SolveSessionRequest(BaseModel):
    floor_weight: float | None = Field(default=None, ge=0.0)
    bathroom_weight: float | None = Field(default=None, ge=0.0)
    room_style_weight: float | None = Field(default=None, ge=0.0)


class SolveSessionResponse(BaseModel):
    session: SessionResponse
    result: AssignmentResponse


class ReassignRequest(BaseModel):
    person_id: str = Field(min_length=1)
    target_room_id: Optional[str] = None


class ReassignResponse(BaseModel):
    session: SessionResponse
    violations: list[ViolationResponse]


class SaveHistoryRequest(BaseModel):
    name: Optional[str] = Field(default=None, max_length=200)


class ConfigurationSummaryResponse(BaseModel):
    config_id: str
    name: str
    created_at: str
    room_count: int = Field(ge=0)
    person_count: int = Field(ge=0)


class ConfigurationResponse(BaseModel):
    config_id: str
    name: str
    created_at: str
    building: BuildingPayload
    rooms: list[RoomPayload]
    people: list[PersonPayload]
    assignments: dict[str, list[str]]


class HistoryListResponse(BaseModel):
    configurations: list[ConfigurationSummaryResponse]


class HealthResponse(BaseModel):
    status: str
    app_name: str
    app_version: str


def _bad_request(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _not_found(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        app_name=settings.app_name,
        app_version=settings.app_version,
    )


@router.get("/session", response_model=SessionResponse)
async def get_session(
    service: PlannerWorkflowService = Depends(get_planner_service),
) -> SessionResponse:
    try:
        return SessionResponse.from_domain(service.get_session())
    except SessionNotFoundError as exc:
        raise _not_found(exc) from exc


@router.put("/session", response_model=SessionResponse)
async def save_session(
    payload: SaveSessionRequest,
    service: PlannerWorkflowService = Depends(get_planner_service),
) -> SessionResponse:
    try:
        session = service.save_session(
            building=payload.building.to_domain(),
            rooms=[room.to_domain() for room in payload.rooms],
            people=[person.to_domain() for person in payload.people],
            assignments=payload.assignments,
            unassigned=[UnassignedPerson(**item.model_dump()) for item in payload.unassigned],
        )
    except PlannerValidationError as exc:
        raise _bad_request(exc) from exc
    return SessionResponse.from_domain(session)


@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
async def clear_session(
    service: PlannerWorkflowService = Depends(get_planner_service),
) -> None:
    if not service.clear_session():
        raise _not_found(SessionNotFoundError("No current session"))


@router.post("/session/solve", response_model=SolveSessionResponse)
async def solve_session(
    payload: SolveSessionRequest,
    service: PlannerWorkflowService = Depends(get_planner_service),
) -> SolveSessionResponse:
    try:
        session, result = service.solve_session(
            floor_weight=payload.floor_weight,
            bathroom_weight=payload.bathroom_weight,
            room_style_weight=payload.room_style_weight,
        )
    except SessionNotFoundError as exc:
        raise _not_found(exc) from exc
    except AssignmentValidationError as exc:
        raise _bad_request(exc) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected session solve failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute assignment",
        ) from exc
    return SolveSessionResponse(
        session=SessionResponse.from_domain(session),
        result=AssignmentResponse.from_result(result),
    )


@router.post("/session/reassign", response_model=ReassignResponse)
async def reassign(
    payload: ReassignRequest,
    service: PlannerWorkflowService = Depends(get_planner_service),
) -> ReassignResponse:
    try:
        session, violations = service.reassign_person(
            person_id=payload.person_id,
            target_room_id=payload.target_room_id,
        )
    except SessionNotFoundError as exc:
        raise _not_found(exc) from exc
    except PlannerValidationError as exc:
        raise _bad_request(exc) from exc
    return ReassignResponse(
        session=SessionResponse.from_domain(session),
        violations=[ViolationResponse(**to_plain(item)) for item in violations],
    )


@router.get("/history", response_model=HistoryListResponse)
async def list_history(
    service: PlannerWorkflowService = Depends(get_planner_service),
) -> HistoryListResponse:
    return HistoryListResponse(
        configurations=[
            ConfigurationSummaryResponse(**to_plain(item)) for item in service.list_history()
        ]
    )


@router.post(
    "/history",
    response_model=ConfigurationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def save_history(
    payload: SaveHistoryRequest,
    service: PlannerWorkflowService = Depends(get_planner_service),
) -> ConfigurationResponse:
    try:
        configuration = service.save_to_history(payload.name)
    except SessionNotFoundError as exc:
        raise _not_found(exc) from exc
    return ConfigurationResponse(**to_plain(configuration))


@router.get("/history/{config_id}", response_model=ConfigurationResponse)
async def get_history_entry(
    config_id: str,
    service: PlannerWorkflowService = Depends(get_planner_service),
) -> ConfigurationResponse:
    try:
        return ConfigurationResponse(**to_plain(service.get_history_entry(config_id)))
    except ConfigurationNotFoundError as exc:
        raise _not_found(exc) from exc


@router.delete("/history/{config_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_history_entry(
    config_id: str,
    service: PlannerWorkflowService = Depends(get_planner_service),
) -> None:
    try:
        service.delete_history_entry(config_id)
    except ConfigurationNotFoundError as exc:
        raise _not_found(exc) from exc


@router.post("/history/{config_id}/load", response_model=SessionResponse)
async def load_history_entry(
    config_id: str,
    service: PlannerWorkflowService = Depends(get_planner_service),
) -> SessionResponse:
    try:
        return SessionResponse.from_domain(service.load_history_entry(config_id))
    except ConfigurationNotFoundError as exc:
        raise _not_found(exc) from exc
