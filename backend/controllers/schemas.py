"""Pydantic DTOs shared by the HTTP controllers."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from backend.domain.models import (
    AssignmentResult,
    BathroomType,
    BuildingConfig,
    Gender,
    Person,
    PlannerSession,
    Room,
    RoomPreference,
    UnassignmentReason,
)
from backend.domain.serialization import to_plain


class BuildingPayload(BaseModel):
    floors: int = Field(ge=1)
    has_ground_floor: bool = True

    def to_domain(self) -> BuildingConfig:
        return BuildingConfig(floors=self.floors, has_ground_floor=self.has_ground_floor)


class RoomPayload(BaseModel):
    room_id: str = Field(min_length=1)
    floor: int
    name: str = Field(min_length=1)
    capacity: int = Field(gt=0)
    bathroom: BathroomType = BathroomType.SHARED
    connected_to: Optional[str] = None
    shared_bathroom_with: Optional[str] = None

    @field_validator("bathroom", mode="before")
    @classmethod
    def parse_bathroom(cls, value: Any) -> BathroomType:
        return BathroomType.parse(value)

    @field_validator("connected_to", "shared_bathroom_with", mode="before")
    @classmethod
    def blank_link_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def to_domain(self) -> Room:
        return Room(**self.model_dump())

    @classmethod
    def from_domain(cls, room: Room) -> "RoomPayload":
        return cls(**to_plain(room))


class PersonPayload(BaseModel):
    person_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    gender: Gender
    preferred_floor: Optional[int] = None
    room_preference: RoomPreference = RoomPreference.SINGLE
    bathroom_preference: BathroomType = BathroomType.SHARED
    wants_to_be_with: str = ""
    does_not_want_to_be_with: str = ""

    @field_validator("gender", mode="before")
    @classmethod
    def parse_gender(cls, value: Any) -> Gender:
        return Gender.parse(value)

    @field_validator("room_preference", mode="before")
    @classmethod
    def parse_room_preference(cls, value: Any) -> RoomPreference:
        return RoomPreference.parse(value)

    @field_validator("bathroom_preference", mode="before")
    @classmethod
    def parse_bathroom_preference(cls, value: Any) -> BathroomType:
        return BathroomType.parse(value)

    def to_domain(self) -> Person:
        return Person(**self.model_dump())

    @classmethod
    def from_domain(cls, person: Person) -> "PersonPayload":
        return cls(**to_plain(person))


class UnassignedPersonResponse(BaseModel):
    person_id: str
    person_name: str
    reason: UnassignmentReason
    message: str


class PreferenceStatsResponse(BaseModel):
    floor_matched: int = Field(ge=0)
    floor_requested: int = Field(ge=0)
    bathroom_matched: int = Field(ge=0)
    room_style_matched: int = Field(ge=0)
    placed: int = Field(ge=0)


class ResolutionWarningResponse(BaseModel):
    person_id: str
    reference: str
    kind: str


class AssignmentResponse(BaseModel):
    assignments: dict[str, list[str]]
    unassigned: list[UnassignedPersonResponse]
    objective_value: float = Field(ge=0.0)
    preference_stats: PreferenceStatsResponse
    resolution_warnings: list[ResolutionWarningResponse]

    @classmethod
    def from_result(cls, result: AssignmentResult) -> "AssignmentResponse":
        return cls(**to_plain(result))


class ViolationResponse(BaseModel):
    kind: str
    room_id: Optional[str] = None
    person_ids: list[str]
    message: str


class SessionResponse(BaseModel):
    building: BuildingPayload
    rooms: list[RoomPayload]
    people: list[PersonPayload]
    assignments: dict[str, list[str]]
    unassigned: list[UnassignedPersonResponse]
    updated_at: Optional[str] = None

    @classmethod
    def from_domain(cls, session: PlannerSession) -> "SessionResponse":
        return cls(**to_plain(session))
