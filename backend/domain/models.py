"""Domain models for rooms, people and room assignments."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class _LabelledEnum(str, Enum):
    """String enum that also accepts the planner's original Czech labels."""

    @classmethod
    def _aliases(cls) -> dict[str, str]:
        return {}

    @classmethod
    def parse(cls, value: object) -> "_LabelledEnum":
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        if not text:
            raise ValueError(f"{cls.__name__} value must not be empty")
        lookup = {member.value.lower(): member for member in cls}
        lookup.update(
            {alias.lower(): cls(target) for alias, target in cls._aliases().items()}
        )
        try:
            return lookup[text.lower()]
        except KeyError as exc:
            allowed = ", ".join(member.value for member in cls)
            raise ValueError(
                f"Unknown {cls.__name__} '{text}' (expected one of: {allowed})"
            ) from exc


class BathroomType(_LabelledEnum):
    SHARED = "SHARED"
    PRIVATE = "PRIVATE"

    @classmethod
    def _aliases(cls) -> dict[str, str]:
        return {"Společná": "SHARED", "Vlastní": "PRIVATE"}


class Gender(_LabelledEnum):
    MALE = "MALE"
    FEMALE = "FEMALE"

    @classmethod
    def _aliases(cls) -> dict[str, str]:
        return {"Muž": "MALE", "Žena": "FEMALE", "M": "MALE", "F": "FEMALE"}


class RoomPreference(_LabelledEnum):
    SINGLE = "SINGLE"
    CONNECTED = "CONNECTED"

    @classmethod
    def _aliases(cls) -> dict[str, str]:
        return {"Samostatný": "SINGLE", "Spojený": "CONNECTED"}


class UnassignmentReason(str, Enum):
    NO_ROOMS = "NO_ROOMS"
    GROUP_TOO_LARGE = "GROUP_TOO_LARGE"
    CAPACITY_EXHAUSTED = "CAPACITY_EXHAUSTED"
    GENDER_CONFLICT = "GENDER_CONFLICT"
    EXCLUSION_CONFLICT = "EXCLUSION_CONFLICT"
    CONFLICTING_GROUP = "CONFLICTING_GROUP"
    MIXED_GENDER_GROUP = "MIXED_GENDER_GROUP"
    # set by the planner workflow, never by the solver
    MANUALLY_UNASSIGNED = "MANUALLY_UNASSIGNED"
    ROOM_REMOVED = "ROOM_REMOVED"


@dataclass(frozen=True)
class BuildingConfig:
    floors: int
    has_ground_floor: bool = True

    @property
    def floor_numbers(self) -> list[int]:
        start = 0 if self.has_ground_floor else 1
        return list(range(start, self.floors + 1))


@dataclass(frozen=True)
class Room:
    room_id: str
    floor: int
    name: str
    capacity: int
    bathroom: BathroomType = BathroomType.SHARED
    connected_to: Optional[str] = None
    shared_bathroom_with: Optional[str] = None


@dataclass(frozen=True)
class Person:
    person_id: str
    name: str
    gender: Gender
    preferred_floor: Optional[int] = None
    room_preference: RoomPreference = RoomPreference.SINGLE
    bathroom_preference: BathroomType = BathroomType.SHARED
    wants_to_be_with: str = ""
    does_not_want_to_be_with: str = ""


@dataclass(frozen=True)
class UnassignedPerson:
    person_id: str
    person_name: str
    reason: UnassignmentReason
    message: str


@dataclass(frozen=True)
class PreferenceStats:
    floor_matched: int = 0
    floor_requested: int = 0
    bathroom_matched: int = 0
    room_style_matched: int = 0
    placed: int = 0


@dataclass(frozen=True)
class AssignmentResult:
    assignments: dict[str, list[str]]
    unassigned: list[UnassignedPerson]
    objective_value: float
    preference_stats: PreferenceStats = field(default_factory=PreferenceStats)
    resolution_warnings: list["ResolutionWarning"] = field(default_factory=list)


class ResolutionWarningKind(str, Enum):
    UNRESOLVED = "UNRESOLVED"
    AMBIGUOUS = "AMBIGUOUS"
    SELF_REFERENCE = "SELF_REFERENCE"


@dataclass(frozen=True)
class ResolutionWarning:
    person_id: str
    reference: str
    kind: ResolutionWarningKind


@dataclass(frozen=True)
class PlannerSession:
    building: BuildingConfig
    rooms: list[Room]
    people: list[Person]
    assignments: dict[str, list[str]] = field(default_factory=dict)
    unassigned: list[UnassignedPerson] = field(default_factory=list)
    updated_at: Optional[str] = None


@dataclass(frozen=True)
class SavedConfiguration:
    config_id: str
    name: str
    created_at: str
    building: BuildingConfig
    rooms: list[Room]
    people: list[Person]
    assignments: dict[str, list[str]]
