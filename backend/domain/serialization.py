"""Plain-dict codecs for persisting domain records as JSON."""

from __future__ import annotations

from dataclasses import asdict
from enum import Enum
from typing import Any

from backend.domain.models import (
    BathroomType,
    BuildingConfig,
    Gender,
    Person,
    PlannerSession,
    Room,
    RoomPreference,
    SavedConfiguration,
    UnassignedPerson,
    UnassignmentReason,
)


def to_plain(value: Any) -> Any:
    """``asdict`` output with enums flattened to their values."""
    if hasattr(value, "__dataclass_fields__"):
        value = asdict(value)
    if isinstance(value, dict):
        return {key: to_plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(item) for item in value]
    if isinstance(value, Enum):
        return value.value
    return value


def building_from_dict(data: dict[str, Any]) -> BuildingConfig:
    return BuildingConfig(
        floors=int(data["floors"]),
        has_ground_floor=bool(data.get("has_ground_floor", True)),
    )


def room_from_dict(data: dict[str, Any]) -> Room:
    return Room(
        room_id=str(data["room_id"]),
        floor=int(data["floor"]),
        name=str(data["name"]),
        capacity=int(data["capacity"]),
        bathroom=BathroomType.parse(data.get("bathroom") or BathroomType.SHARED),
        connected_to=data.get("connected_to"),
        shared_bathroom_with=data.get("shared_bathroom_with"),
    )


def person_from_dict(data: dict[str, Any]) -> Person:
    preferred_floor = data.get("preferred_floor")
    return Person(
        person_id=str(data["person_id"]),
        name=str(data["name"]),
        gender=Gender.parse(data["gender"]),
        preferred_floor=int(preferred_floor) if preferred_floor is not None else None,
        room_preference=RoomPreference.parse(data.get("room_preference") or RoomPreference.SINGLE),
        bathroom_preference=BathroomType.parse(
            data.get("bathroom_preference") or BathroomType.SHARED
        ),
        wants_to_be_with=str(data.get("wants_to_be_with") or ""),
        does_not_want_to_be_with=str(data.get("does_not_want_to_be_with") or ""),
    )


def unassigned_from_dict(data: dict[str, Any]) -> UnassignedPerson:
    return UnassignedPerson(
        person_id=str(data["person_id"]),
        person_name=str(data["person_name"]),
        reason=UnassignmentReason(data["reason"]),
        message=str(data.get("message") or ""),
    )


def _assignments_from_dict(data: dict[str, Any]) -> dict[str, list[str]]:
    return {str(room_id): [str(item) for item in people] for room_id, people in data.items()}


def session_from_dict(data: dict[str, Any]) -> PlannerSession:
    return PlannerSession(
        building=building_from_dict(data["building"]),
        rooms=[room_from_dict(item) for item in data.get("rooms", [])],
        people=[person_from_dict(item) for item in data.get("people", [])],
        assignments=_assignments_from_dict(data.get("assignments") or {}),
        unassigned=[unassigned_from_dict(item) for item in data.get("unassigned", [])],
        updated_at=data.get("updated_at"),
    )


def configuration_from_dict(data: dict[str, Any]) -> SavedConfiguration:
    return SavedConfiguration(
        config_id=str(data["config_id"]),
        name=str(data["name"]),
        created_at=str(data["created_at"]),
        building=building_from_dict(data["building"]),
        rooms=[room_from_dict(item) for item in data.get("rooms", [])],
        people=[person_from_dict(item) for item in data.get("people", [])],
        assignments=_assignments_from_dict(data.get("assignments") or {}),
    )
