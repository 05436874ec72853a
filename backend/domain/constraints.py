"""Domain-level validation rules for solver configuration and room rosters."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable

from backend.domain.models import BathroomType, Person, Room


class RoomLinkError(ValueError):
    """Raised when room links break symmetry or bathroom rules."""


@dataclass(frozen=True)
class SolverConfig:
    floor_weight: float = 1.0
    bathroom_weight: float = 1.0
    room_style_weight: float = 1.0
    exclusion_covers_bathroom_partner: bool = True


def validate_solver_config(config: SolverConfig) -> None:
    weights = (config.floor_weight, config.bathroom_weight, config.room_style_weight)
    if any(weight < 0.0 for weight in weights):
        raise ValueError("preference weights must be >= 0")


def room_link_problems(rooms: Iterable[Room]) -> list[str]:
    """Return every link invariant violated by ``rooms``; empty when consistent."""
    by_id = {room.room_id: room for room in rooms}
    problems: list[str] = []
    for room in by_id.values():
        for relation in ("connected_to", "shared_bathroom_with"):
            partner_id = getattr(room, relation)
            if partner_id is None:
                continue
            if partner_id == room.room_id:
                problems.append(f"room '{room.room_id}' has {relation} pointing to itself")
                continue
            partner = by_id.get(partner_id)
            if partner is None:
                problems.append(
                    f"room '{room.room_id}' has {relation} pointing to unknown room '{partner_id}'"
                )
                continue
            if getattr(partner, relation) != room.room_id:
                problems.append(
                    f"{relation} is not symmetric between '{room.room_id}' and '{partner_id}'"
                )
        if room.shared_bathroom_with is not None and room.bathroom != BathroomType.SHARED:
            problems.append(
                f"room '{room.room_id}' shares a bathroom but its bathroom type is {room.bathroom.value}"
            )
    return problems


def roster_problems(rooms: list[Room], people: list[Person]) -> list[str]:
    """Structural checks applied before a solve."""
    problems: list[str] = []
    room_counts = Counter(room.room_id for room in rooms)
    problems.extend(
        f"duplicate room id '{room_id}'" for room_id, count in room_counts.items() if count > 1
    )
    person_counts = Counter(person.person_id for person in people)
    problems.extend(
        f"duplicate person id '{person_id}'"
        for person_id, count in person_counts.items()
        if count > 1
    )
    problems.extend(
        f"room '{room.room_id}' capacity must be > 0" for room in rooms if room.capacity <= 0
    )
    problems.extend(room_link_problems(rooms))
    return problems
