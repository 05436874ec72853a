"""Deterministic greedy room assignment solver."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from backend.domain.constraints import SolverConfig, roster_problems, validate_solver_config
from backend.domain.models import (
    AssignmentResult,
    Gender,
    Person,
    PreferenceStats,
    Room,
    RoomPreference,
    UnassignedPerson,
    UnassignmentReason,
)
from backend.services.relation_service import RelationGraph, resolve_relations
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class AssignmentValidationError(Exception):
    """Raised when the room or person roster is structurally invalid."""


@dataclass(frozen=True)
class PlacementUnit:
    members: tuple[Person, ...]
    order_key: int

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def member_ids(self) -> frozenset[str]:
        return frozenset(member.person_id for member in self.members)

    @property
    def genders(self) -> set[Gender]:
        return {member.gender for member in self.members}

    @property
    def names(self) -> str:
        return ", ".join(member.name for member in self.members)


@dataclass
class RoomState:
    room: Room
    occupants: list[str] = field(default_factory=list)
    gender: Optional[Gender] = None

    @property
    def remaining(self) -> int:
        return self.room.capacity - len(self.occupants)


class _UnionFind:
    def __init__(self, keys: list[str]) -> None:
        self._parent = {key: key for key in keys}
        self._rank = {key: position for position, key in enumerate(keys)}

    def find(self, key: str) -> str:
        root = key
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[key] != root:
            self._parent[key], key = root, self._parent[key]
        return root

    def union(self, left: str, right: str) -> None:
        left_root, right_root = self.find(left), self.find(right)
        if left_root == right_root:
            return
        # the member that appears first in the input stays the root
        if self._rank[left_root] < self._rank[right_root]:
            self._parent[right_root] = left_root
        else:
            self._parent[left_root] = right_root


def build_placement_units(people: list[Person], relations: RelationGraph) -> list[PlacementUnit]:
    """Group people connected by "wants to be with" edges; units keep input order."""
    position = {person.person_id: index for index, person in enumerate(people)}
    union_find = _UnionFind([person.person_id for person in people])
    for pair in sorted(relations.together, key=lambda item: sorted(position[p] for p in item)):
        left, right = sorted(pair, key=position.__getitem__)
        union_find.union(left, right)

    members_by_root: dict[str, list[Person]] = {}
    for person in people:
        members_by_root.setdefault(union_find.find(person.person_id), []).append(person)

    return [
        PlacementUnit(members=tuple(members), order_key=position[members[0].person_id])
        for members in members_by_root.values()
    ]


def _unassign(unit: PlacementUnit, reason: UnassignmentReason, message: str) -> list[UnassignedPerson]:
    return [
        UnassignedPerson(
            person_id=member.person_id,
            person_name=member.name,
            reason=reason,
            message=message,
        )
        for member in unit.members
    ]


def invalid_group_reason(
    unit: PlacementUnit,
    relations: RelationGraph,
) -> Optional[tuple[UnassignmentReason, str]]:
    """Check a bonded group before any room search."""
    if unit.size == 1:
        return None
    member_ids = unit.member_ids
    for pair in relations.apart:
        if pair <= member_ids:
            return (
                UnassignmentReason.CONFLICTING_GROUP,
                f"The group ({unit.names}) asks to share a room but also contains "
                "a 'does not want to be with' request.",
            )
    if len(unit.genders) > 1:
        return (
            UnassignmentReason.MIXED_GENDER_GROUP,
            f"The group ({unit.names}) asks to share a room but mixes genders.",
        )
    return None


def person_preference_hits(person: Person, room: Room) -> tuple[bool, bool, bool]:
    floor_hit = person.preferred_floor is not None and person.preferred_floor == room.floor
    bathroom_hit = person.bathroom_preference == room.bathroom
    if person.room_preference == RoomPreference.CONNECTED:
        style_hit = room.connected_to is not None
    else:
        style_hit = room.connected_to is None
    return floor_hit, bathroom_hit, style_hit


def preference_score(unit: PlacementUnit, room: Room, config: SolverConfig) -> float:
    score = 0.0
    for member in unit.members:
        floor_hit, bathroom_hit, style_hit = person_preference_hits(member, room)
        score += config.floor_weight * floor_hit
        score += config.bathroom_weight * bathroom_hit
        score += config.room_style_weight * style_hit
    return score


def _partner_state(state: RoomState, states: dict[str, RoomState]) -> Optional[RoomState]:
    partner_id = state.room.shared_bathroom_with
    if partner_id is None:
        return None
    return states.get(partner_id)


def gender_compatible(
    state: RoomState,
    states: dict[str, RoomState],
    gender: Gender,
) -> bool:
    if state.gender not in (None, gender):
        return False
    partner = _partner_state(state, states)
    return partner is None or partner.gender in (None, gender)


def blocking_occupants(
    state: RoomState,
    states: dict[str, RoomState],
    excluded: set[str],
    config: SolverConfig,
) -> list[str]:
    occupants = list(state.occupants)
    partner = _partner_state(state, states)
    if config.exclusion_covers_bathroom_partner and partner is not None:
        occupants.extend(partner.occupants)
    return [person_id for person_id in occupants if person_id in excluded]


def excluded_for_unit(unit: PlacementUnit, relations: RelationGraph) -> set[str]:
    excluded: set[str] = set()
    for member in unit.members:
        excluded |= relations.apart_partners(member.person_id)
    return excluded - unit.member_ids


def select_room(
    unit: PlacementUnit,
    states: dict[str, RoomState],
    excluded: set[str],
    config: SolverConfig,
) -> Optional[RoomState]:
    """Best feasible room: highest score, then tightest fit, then lowest room id."""
    gender = next(iter(unit.genders))
    best: Optional[tuple[tuple[float, int, str], RoomState]] = None
    for room_id in sorted(states):
        state = states[room_id]
        if state.remaining < unit.size:
            continue
        if not gender_compatible(state, states, gender):
            continue
        if blocking_occupants(state, states, excluded, config):
            continue
        key = (-preference_score(unit, state.room, config), state.remaining - unit.size, room_id)
        if best is None or key < best[0]:
            best = (key, state)
    return best[1] if best is not None else None


def diagnose_unplaceable(
    unit: PlacementUnit,
    states: dict[str, RoomState],
    excluded: set[str],
    config: SolverConfig,
    names_by_id: dict[str, str],
) -> tuple[UnassignmentReason, str]:
    """Name the first constraint that rules out every room for this unit."""
    if not states:
        return UnassignmentReason.NO_ROOMS, "No rooms are available."

    largest = max(state.room.capacity for state in states.values())
    if unit.size > largest:
        return (
            UnassignmentReason.GROUP_TOO_LARGE,
            f"The group ({unit.names}) has {unit.size} people who must share a room, "
            f"but the largest room holds {largest}.",
        )

    with_space = [state for state in states.values() if state.remaining >= unit.size]
    if not with_space:
        if unit.size == 1:
            return UnassignmentReason.CAPACITY_EXHAUSTED, "No room has a free bed left."
        return (
            UnassignmentReason.CAPACITY_EXHAUSTED,
            f"No room has {unit.size} free beds left for the group ({unit.names}).",
        )

    gender = next(iter(unit.genders))
    compatible = [state for state in with_space if gender_compatible(state, states, gender)]
    if not compatible:
        return (
            UnassignmentReason.GENDER_CONFLICT,
            "Every room with free space is already used by the other gender "
            "(directly or through a shared bathroom).",
        )

    blockers: set[str] = set()
    for state in compatible:
        blockers.update(blocking_occupants(state, states, excluded, config))
    blocker_names = ", ".join(sorted(names_by_id.get(person_id, person_id) for person_id in blockers))
    subject = "this person" if unit.size == 1 else f"the group ({unit.names})"
    return (
        UnassignmentReason.EXCLUSION_CONFLICT,
        f"Every suitable room already holds someone {subject} must not share with ({blocker_names}).",
    )


def _collect_preference_stats(
    people: list[Person],
    room_of: dict[str, Room],
) -> PreferenceStats:
    floor_matched = floor_requested = bathroom_matched = style_matched = 0
    for person in people:
        room = room_of.get(person.person_id)
        if room is None:
            continue
        floor_hit, bathroom_hit, style_hit = person_preference_hits(person, room)
        floor_requested += person.preferred_floor is not None
        floor_matched += floor_hit
        bathroom_matched += bathroom_hit
        style_matched += style_hit
    return PreferenceStats(
        floor_matched=floor_matched,
        floor_requested=floor_requested,
        bathroom_matched=bathroom_matched,
        room_style_matched=style_matched,
        placed=len(room_of),
    )


def solve_assignment(
    rooms: list[Room],
    people: list[Person],
    config: Optional[SolverConfig] = None,
) -> AssignmentResult:
    """Place people into rooms without ever breaking a hard constraint.

    Bonded groups are placed largest first; each takes the feasible room with
    the best preference score. Anyone who cannot be placed is reported with
    the most specific reason available. Same input, same output.
    """
    config = config or SolverConfig()
    try:
        validate_solver_config(config)
    except ValueError as exc:
        raise AssignmentValidationError(str(exc)) from exc
    problems = roster_problems(rooms, people)
    if problems:
        raise AssignmentValidationError("; ".join(problems))

    relations = resolve_relations(people)
    units = build_placement_units(people, relations)
    units.sort(key=lambda unit: (-unit.size, unit.order_key))

    states = {room.room_id: RoomState(room=room) for room in rooms}
    names_by_id = {person.person_id: person.name for person in people}
    unassigned: list[UnassignedPerson] = []
    objective_value = 0.0

    for unit in units:
        invalid = invalid_group_reason(unit, relations)
        if invalid is not None:
            unassigned.extend(_unassign(unit, *invalid))
            logger.debug("Unit rejected | members=%s | reason=%s", unit.names, invalid[0].value)
            continue

        excluded = excluded_for_unit(unit, relations)
        state = select_room(unit, states, excluded, config)
        if state is None:
            reason, message = diagnose_unplaceable(unit, states, excluded, config, names_by_id)
            unassigned.extend(_unassign(unit, reason, message))
            logger.debug("Unit unplaced | members=%s | reason=%s", unit.names, reason.value)
            continue

        objective_value += preference_score(unit, state.room, config)
        state.occupants.extend(member.person_id for member in unit.members)
        state.gender = next(iter(unit.genders))
        logger.debug("Unit placed | members=%s | room_id=%s", unit.names, state.room.room_id)

    position = {person.person_id: index for index, person in enumerate(people)}
    unassigned.sort(key=lambda item: position[item.person_id])
    assignments = {room.room_id: list(states[room.room_id].occupants) for room in rooms}
    room_of = {
        person_id: state.room for state in states.values() for person_id in state.occupants
    }

    logger.info(
        "Assignment solve completed | rooms=%s | people=%s | placed=%s | unassigned=%s | objective_value=%.3f",
        len(rooms),
        len(people),
        len(room_of),
        len(unassigned),
        objective_value,
    )
    return AssignmentResult(
        assignments=assignments,
        unassigned=unassigned,
        objective_value=objective_value,
        preference_stats=_collect_preference_stats(people, room_of),
        resolution_warnings=list(relations.warnings),
    )


class AssignmentService:
    """Builds the solver configuration from settings and runs solves."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()

    def build_config(
        self,
        *,
        floor_weight: Optional[float] = None,
        bathroom_weight: Optional[float] = None,
        room_style_weight: Optional[float] = None,
    ) -> SolverConfig:
        return SolverConfig(
            floor_weight=(
                floor_weight if floor_weight is not None else self._settings.solver_floor_weight
            ),
            bathroom_weight=(
                bathroom_weight
                if bathroom_weight is not None
                else self._settings.solver_bathroom_weight
            ),
            room_style_weight=(
                room_style_weight
                if room_style_weight is not None
                else self._settings.solver_room_style_weight
            ),
            exclusion_covers_bathroom_partner=self._settings.solver_exclusion_covers_bathroom_partner,
        )

    def solve(
        self,
        *,
        rooms: list[Room],
        people: list[Person],
        floor_weight: Optional[float] = None,
        bathroom_weight: Optional[float] = None,
        room_style_weight: Optional[float] = None,
    ) -> AssignmentResult:
        config = self.build_config(
            floor_weight=floor_weight,
            bathroom_weight=bathroom_weight,
            room_style_weight=room_style_weight,
        )
        return solve_assignment(rooms, people, config)
