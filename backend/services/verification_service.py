"""Re-check hard constraints on an assignment, e.g. after manual edits."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum

from backend.domain.models import Person, Room
from backend.services.relation_service import resolve_relations


class ViolationKind(str, Enum):
    UNKNOWN_ROOM = "UNKNOWN_ROOM"
    UNKNOWN_PERSON = "UNKNOWN_PERSON"
    DUPLICATE_PLACEMENT = "DUPLICATE_PLACEMENT"
    CAPACITY = "CAPACITY"
    ROOM_GENDER = "ROOM_GENDER"
    BATHROOM_GENDER = "BATHROOM_GENDER"
    EXCLUSION = "EXCLUSION"
    INCLUSION = "INCLUSION"


@dataclass(frozen=True)
class ConstraintViolation:
    kind: ViolationKind
    room_id: str | None
    person_ids: tuple[str, ...]
    message: str


def verify_assignment(
    rooms: list[Room],
    people: list[Person],
    assignments: dict[str, list[str]],
) -> list[ConstraintViolation]:
    """Return every hard-constraint violation; an empty list means the assignment is valid."""
    rooms_by_id = {room.room_id: room for room in rooms}
    people_by_id = {person.person_id: person for person in people}
    violations: list[ConstraintViolation] = []

    room_of: dict[str, str] = {}
    placements = Counter(
        person_id for occupants in assignments.values() for person_id in occupants
    )
    for person_id, count in sorted(placements.items()):
        if count > 1:
            violations.append(
                ConstraintViolation(
                    kind=ViolationKind.DUPLICATE_PLACEMENT,
                    room_id=None,
                    person_ids=(person_id,),
                    message=f"Person '{person_id}' is placed in {count} rooms.",
                )
            )

    genders_by_room: dict[str, set] = {}
    for room_id in sorted(assignments):
        occupants = assignments[room_id]
        room = rooms_by_id.get(room_id)
        if room is None:
            violations.append(
                ConstraintViolation(
                    kind=ViolationKind.UNKNOWN_ROOM,
                    room_id=room_id,
                    person_ids=tuple(occupants),
                    message=f"Room '{room_id}' does not exist.",
                )
            )
            continue
        unknown = [person_id for person_id in occupants if person_id not in people_by_id]
        if unknown:
            violations.append(
                ConstraintViolation(
                    kind=ViolationKind.UNKNOWN_PERSON,
                    room_id=room_id,
                    person_ids=tuple(unknown),
                    message=f"Room '{room.name}' lists unknown people.",
                )
            )
        known = [person_id for person_id in occupants if person_id in people_by_id]
        for person_id in known:
            room_of.setdefault(person_id, room_id)
        if len(occupants) > room.capacity:
            violations.append(
                ConstraintViolation(
                    kind=ViolationKind.CAPACITY,
                    room_id=room_id,
                    person_ids=tuple(occupants),
                    message=f"Room '{room.name}' holds {len(occupants)} people but has capacity {room.capacity}.",
                )
            )
        genders = {people_by_id[person_id].gender for person_id in known}
        genders_by_room[room_id] = genders
        if len(genders) > 1:
            violations.append(
                ConstraintViolation(
                    kind=ViolationKind.ROOM_GENDER,
                    room_id=room_id,
                    person_ids=tuple(known),
                    message=f"Room '{room.name}' mixes genders.",
                )
            )

    seen_pairs: set[frozenset[str]] = set()
    for room in rooms:
        partner_id = room.shared_bathroom_with
        if partner_id is None:
            continue
        pair = frozenset((room.room_id, partner_id))
        if pair in seen_pairs:
            continue
        seen_pairs.add(pair)
        combined = genders_by_room.get(room.room_id, set()) | genders_by_room.get(partner_id, set())
        if len(combined) > 1:
            occupants = tuple(assignments.get(room.room_id, [])) + tuple(assignments.get(partner_id, []))
            violations.append(
                ConstraintViolation(
                    kind=ViolationKind.BATHROOM_GENDER,
                    room_id=room.room_id,
                    person_ids=occupants,
                    message=f"Rooms sharing a bathroom with '{room.name}' hold different genders.",
                )
            )

    relations = resolve_relations(people)
    for pair in sorted(relations.apart, key=sorted):
        left, right = sorted(pair)
        if left in room_of and room_of.get(left) == room_of.get(right):
            violations.append(
                ConstraintViolation(
                    kind=ViolationKind.EXCLUSION,
                    room_id=room_of[left],
                    person_ids=(left, right),
                    message=(
                        f"{people_by_id[left].name} and {people_by_id[right].name} "
                        "must not share a room."
                    ),
                )
            )
    for pair in sorted(relations.together, key=sorted):
        left, right = sorted(pair)
        if left in room_of and right in room_of and room_of[left] != room_of[right]:
            violations.append(
                ConstraintViolation(
                    kind=ViolationKind.INCLUSION,
                    room_id=None,
                    person_ids=(left, right),
                    message=(
                        f"{people_by_id[left].name} and {people_by_id[right].name} "
                        "asked to share a room."
                    ),
                )
            )
    return violations
