"""HTTP controller layer for solving and verifying room assignments."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from backend.controllers.dependencies import get_assignment_service
from backend.controllers.schemas import (
    AssignmentResponse,
    PersonPayload,
    RoomPayload,
    ViolationResponse,
)
from backend.domain.serialization import to_plain
from backend.services.assignment_service import AssignmentService, AssignmentValidationError
from backend.services.verification_service import verify_assignment
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["assignment"])


class SolveRequest(BaseModel):
    """Input DTO validated before entering service layer."""

    rooms: list[RoomPayload]
    people: list[PersonPayload]
    floor_weight: float | None = Field(default=None, ge=0.0)
    bathroom_weight: float | None = Field(default=None, ge=0.0)
    room_style_weight: float | None = Field(default=None, ge=0.0)


class VerifyRequest(BaseModel):
    rooms: list[RoomPayload]
    people: list[PersonPayload]
    assignments: dict[str, list[str]]


class VerifyResponse(BaseModel):
    valid: bool
    violations: list[ViolationResponse]


@router.post(
    "/solve",
    response_model=AssignmentResponse,
    status_code=status.HTTP_200_OK,
)
async def solve(
    payload: SolveRequest,
    service: AssignmentService = Depends(get_assignment_service),
) -> AssignmentResponse:
    """Run the deterministic solver on the submitted rooms and people."""
    try:
        result = service.solve(
            rooms=[room.to_domain() for room in payload.rooms],
            people=[person.to_domain() for person in payload.people],
            floor_weight=payload.floor_weight,
            bathroom_weight=payload.bathroom_weight,
            room_style_weight=payload.room_style_weight,
        )
        return AssignmentResponse.from_result(result)
    except AssignmentValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected solve failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute assignment",
        ) from exc


@router.post(
    "/verify",
    response_model=VerifyResponse,
    status_code=status.HTTP_200_OK,
)
async def verify(payload: VerifyRequest) -> VerifyResponse:
    """Check an assignment (typically hand-edited) against every hard constraint."""
    violations = verify_assignment(
        [room.to_domain() for room in payload.rooms],
        [person.to_domain() for person in payload.people],
        payload.assignments,
    )
    return VerifyResponse(
        valid=not violations,
        violations=[ViolationResponse(**to_plain(item)) for item in violations],
    )
