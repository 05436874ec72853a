"""Planner workflow: current session, solving, manual moves and named history."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from threading import RLock
from typing import Optional
from uuid import uuid4

from backend.domain.constraints import roster_problems
from backend.domain.models import (
    AssignmentResult,
    BuildingConfig,
    Person,
    PlannerSession,
    Room,
    SavedConfiguration,
    UnassignedPerson,
    UnassignmentReason,
)
from backend.repository.data_repository import ConfigurationSummary, DataRepository
from backend.services.assignment_service import AssignmentService
from backend.services.verification_service import ConstraintViolation, verify_assignment
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class PlannerValidationError(Exception):
    """Raised when planner workflow inputs are invalid."""


class SessionNotFoundError(PlannerValidationError):
    """Raised when an operation needs a current session and none is stored."""


class ConfigurationNotFoundError(Exception):
    """Raised when a history entry id is unknown."""


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _validate_roster(building: BuildingConfig, rooms: list[Room], people: list[Person]) -> None:
    if building.floors < 1:
        raise PlannerValidationError("building must have at least one floor")
    floors = set(building.floor_numbers)
    problems = roster_problems(rooms, people)
    problems.extend(
        f"room '{room.name}' is on floor {room.floor}, which the building does not have"
        for room in rooms
        if room.floor not in floors
    )
    problems.extend(
        f"{person.name} prefers floor {person.preferred_floor}, which the building does not have"
        for person in people
        if person.preferred_floor is not None and person.preferred_floor not in floors
    )
    if problems:
        raise PlannerValidationError("; ".join(problems))


def _reconcile_placements(
    rooms: list[Room],
    people: list[Person],
    assignments: dict[str, list[str]],
    unassigned: list[UnassignedPerson],
) -> tuple[dict[str, list[str]], list[UnassignedPerson]]:
    """Fit stored placements to a (possibly changed) roster.

    Unknown people are dropped everywhere. Occupants of rooms that no longer
    exist move to the unassigned list with ROOM_REMOVED.
    """
    people_by_id = {person.person_id: person for person in people}
    room_ids = {room.room_id for room in rooms}

    kept: dict[str, list[str]] = {}
    orphaned: set[str] = set()
    for room_id, occupants in assignments.items():
        known = [person_id for person_id in occupants if person_id in people_by_id]
        if room_id in room_ids:
            kept[room_id] = known
        else:
            orphaned.update(known)
    placed = {person_id for occupants in kept.values() for person_id in occupants}

    listed: set[str] = set()
    remaining: list[UnassignedPerson] = []
    for item in unassigned:
        if item.person_id in people_by_id and item.person_id not in placed | listed:
            remaining.append(item)
            listed.add(item.person_id)
    remaining.extend(
        UnassignedPerson(
            person_id=person.person_id,
            person_name=person.name,
            reason=UnassignmentReason.ROOM_REMOVED,
            message="Their room was removed from the roster.",
        )
        for person in people
        if person.person_id in orphaned - placed - listed
    )
    return kept, remaining


class PlannerWorkflowService:
    """Coordinates session -> solve -> adjust -> save-to-history flow."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        assignment_service: Optional[AssignmentService] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._assignment_service = assignment_service or AssignmentService(self._settings)
        self._lock = RLock()

    def get_session(self) -> PlannerSession:
        session = self._repository.load_session()
        if session is None:
            raise SessionNotFoundError("No current session. Save a session first.")
        return session

    def has_session(self) -> bool:
        return self._repository.load_session() is not None

    def save_session(
        self,
        *,
        building: BuildingConfig,
        rooms: list[Room],
        people: list[Person],
        assignments: Optional[dict[str, list[str]]] = None,
        unassigned: Optional[list[UnassignedPerson]] = None,
    ) -> PlannerSession:
        _validate_roster(building, rooms, people)
        kept_assignments, kept_unassigned = _reconcile_placements(
            rooms, people, assignments or {}, unassigned or []
        )
        session = PlannerSession(
            building=building,
            rooms=list(rooms),
            people=list(people),
            assignments=kept_assignments,
            unassigned=kept_unassigned,
            updated_at=_utc_now(),
        )
        with self._lock:
            self._repository.save_session(session)
        logger.info(
            "Session saved | rooms=%s | people=%s | assigned_rooms=%s | unassigned=%s",
            len(rooms),
            len(people),
            len(kept_assignments),
            len(kept_unassigned),
        )
        return session

    def clear_session(self) -> bool:
        with self._lock:
            return self._repository.clear_session()

    def solve_session(
        self,
        *,
        floor_weight: Optional[float] = None,
        bathroom_weight: Optional[float] = None,
        room_style_weight: Optional[float] = None,
    ) -> tuple[PlannerSession, AssignmentResult]:
        with self._lock:
            session = self.get_session()
            result = self._assignment_service.solve(
                rooms=session.rooms,
                people=session.people,
                floor_weight=floor_weight,
                bathroom_weight=bathroom_weight,
                room_style_weight=room_style_weight,
            )
            solved = replace(
                session,
                assignments=result.assignments,
                unassigned=result.unassigned,
                updated_at=_utc_now(),
            )
            self._repository.save_session(solved)
        return solved, result

    def reassign_person(
        self,
        *,
        person_id: str,
        target_room_id: Optional[str],
    ) -> tuple[PlannerSession, list[ConstraintViolation]]:
        """Move one person by hand; the move is kept even when it breaks a rule."""
        with self._lock:
            session = self.get_session()
            person = next(
                (item for item in session.people if item.person_id == person_id), None
            )
            if person is None:
                raise PlannerValidationError(f"unknown person '{person_id}'")
            room_ids = {room.room_id for room in session.rooms}
            if target_room_id is not None and target_room_id not in room_ids:
                raise PlannerValidationError(f"unknown room '{target_room_id}'")

            assignments = {
                room_id: [item for item in occupants if item != person_id]
                for room_id, occupants in session.assignments.items()
            }
            unassigned = list(session.unassigned)
            if target_room_id is not None:
                assignments.setdefault(target_room_id, []).append(person_id)
                unassigned = [item for item in unassigned if item.person_id != person_id]
            elif all(item.person_id != person_id for item in unassigned):
                unassigned.append(
                    UnassignedPerson(
                        person_id=person_id,
                        person_name=person.name,
                        reason=UnassignmentReason.MANUALLY_UNASSIGNED,
                        message="Moved out of their room by hand.",
                    )
                )

            moved = replace(
                session,
                assignments=assignments,
                unassigned=unassigned,
                updated_at=_utc_now(),
            )
            self._repository.save_session(moved)

        violations = verify_assignment(moved.rooms, moved.people, moved.assignments)
        logger.info(
            "Manual reassignment | person_id=%s | target_room_id=%s | violations=%s",
            person_id,
            target_room_id,
            len(violations),
        )
        return moved, violations

    def save_to_history(self, name: Optional[str] = None) -> SavedConfiguration:
        with self._lock:
            session = self.get_session()
            created_at = _utc_now()
            resolved_name = (name or "").strip() or f"Configuration {created_at[:10]}"
            configuration = SavedConfiguration(
                config_id=uuid4().hex,
                name=resolved_name,
                created_at=created_at,
                building=session.building,
                rooms=session.rooms,
                people=session.people,
                assignments=session.assignments,
            )
            self._repository.save_configuration(configuration)
        return configuration

    def list_history(self) -> list[ConfigurationSummary]:
        return self._repository.list_configurations()

    def get_history_entry(self, config_id: str) -> SavedConfiguration:
        configuration = self._repository.get_configuration(config_id)
        if configuration is None:
            raise ConfigurationNotFoundError(f"Configuration '{config_id}' not found")
        return configuration

    def delete_history_entry(self, config_id: str) -> None:
        if not self._repository.delete_configuration(config_id):
            raise ConfigurationNotFoundError(f"Configuration '{config_id}' not found")

    def load_history_entry(self, config_id: str) -> PlannerSession:
        configuration = self.get_history_entry(config_id)
        session = PlannerSession(
            building=configuration.building,
            rooms=configuration.rooms,
            people=configuration.people,
            assignments=configuration.assignments,
            updated_at=_utc_now(),
        )
        with self._lock:
            self._repository.save_session(session)
        return session
