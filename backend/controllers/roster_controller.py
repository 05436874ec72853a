"""Controller layer for room link editing and CSV roster import."""

from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator

from backend.controllers.dependencies import get_import_service
from backend.controllers.schemas import PersonPayload, RoomPayload
from backend.domain.constraints import RoomLinkError
from backend.domain.models import BathroomType
from backend.domain.room_registry import RoomRegistry
from backend.services.roster_import_service import RosterImportError, RosterImportService
from backend.utils.config import get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(tags=["roster"])


class RoomLinkRequest(BaseModel):
    rooms: list[RoomPayload]
    room_id: str = Field(min_length=1)
    relation: Literal["connected_to", "shared_bathroom_with", "bathroom"]
    partner_id: Optional[str] = None
    bathroom: Optional[BathroomType] = None

    @field_validator("bathroom", mode="before")
    @classmethod
    def parse_bathroom(cls, value: object) -> Optional[BathroomType]:
        if value is None:
            return None
        return BathroomType.parse(value)


class BulkAddRoomsRequest(BaseModel):
    rooms: list[RoomPayload] = Field(default_factory=list)
    floor: int
    count: int = Field(ge=1)
    names: list[str] = Field(default_factory=list)
    capacity: int = Field(default=settings.default_room_capacity, gt=0)
    bathroom: BathroomType = BathroomType.SHARED

    @field_validator("bathroom", mode="before")
    @classmethod
    def parse_bathroom(cls, value: object) -> BathroomType:
        return BathroomType.parse(value)


class RoomsResponse(BaseModel):
    rooms: list[RoomPayload]


class CsvImportRequest(BaseModel):
    csv_text: str = Field(min_length=1)


class PeopleResponse(BaseModel):
    people: list[PersonPayload]


def _registry_for(rooms: list[RoomPayload]) -> RoomRegistry:
    return RoomRegistry.from_rooms(room.to_domain() for room in rooms)


@router.post("/rooms/link", response_model=RoomsResponse, status_code=status.HTTP_200_OK)
async def link_rooms(payload: RoomLinkRequest) -> RoomsResponse:
    """Apply one symmetric link change and return the whole updated room list."""
    try:
        registry = _registry_for(payload.rooms)
        if payload.relation == "connected_to":
            registry.set_connection(payload.room_id, payload.partner_id)
        elif payload.relation == "shared_bathroom_with":
            registry.set_shared_bathroom(payload.room_id, payload.partner_id)
        else:
            if payload.bathroom is None:
                raise RoomLinkError("bathroom is required when relation is 'bathroom'")
            registry.set_bathroom(payload.room_id, payload.bathroom)
        registry.validate()
    except RoomLinkError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return RoomsResponse(rooms=[RoomPayload.from_domain(room) for room in registry.to_rooms()])


@router.post("/rooms/bulk_add", response_model=RoomsResponse, status_code=status.HTTP_200_OK)
async def bulk_add_rooms(payload: BulkAddRoomsRequest) -> RoomsResponse:
    try:
        registry = _registry_for(payload.rooms)
        registry.bulk_add_rooms(
            floor=payload.floor,
            count=payload.count,
            capacity=payload.capacity,
            names=payload.names,
            bathroom=payload.bathroom,
            name_prefix=settings.default_room_name_prefix,
        )
    except RoomLinkError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return RoomsResponse(rooms=[RoomPayload.from_domain(room) for room in registry.to_rooms()])


@router.post("/import/rooms", response_model=RoomsResponse, status_code=status.HTTP_200_OK)
async def import_rooms(
    payload: CsvImportRequest,
    service: RosterImportService = Depends(get_import_service),
) -> RoomsResponse:
    try:
        rooms = service.import_rooms(payload.csv_text)
    except RosterImportError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return RoomsResponse(rooms=[RoomPayload.from_domain(room) for room in rooms])


@router.post("/import/people", response_model=PeopleResponse, status_code=status.HTTP_200_OK)
async def import_people(
    payload: CsvImportRequest,
    service: RosterImportService = Depends(get_import_service),
) -> PeopleResponse:
    try:
        people = service.import_people(payload.csv_text)
    except RosterImportError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return PeopleResponse(people=[PersonPayload.from_domain(person) for person in people])
