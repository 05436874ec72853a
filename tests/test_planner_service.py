from __future__ import annotations

from dataclasses import replace

import pytest

from backend.domain.models import (
    BuildingConfig,
    Gender,
    Person,
    Room,
    UnassignedPerson,
    UnassignmentReason,
)
from backend.repository.data_repository import DataRepository
from backend.services.planner_service import PlannerValidationError, PlannerWorkflowService
from backend.utils.config import get_settings


def _build_planner(tmp_path, filename: str = "planner.db") -> PlannerWorkflowService:
    settings = replace(get_settings(), database_path=tmp_path / filename)
    repository = DataRepository(settings)
    repository.initialize_database()
    return PlannerWorkflowService(repository=repository, settings=settings)


def _listed_once(session) -> None:
    placed = [person_id for occupants in session.assignments.values() for person_id in occupants]
    unplaced = [item.person_id for item in session.unassigned]
    assert sorted(placed + unplaced) == sorted(person.person_id for person in session.people)


ROOMS = [Room("r1", 1, "Left", 2), Room("r2", 1, "Right", 2)]
PEOPLE = [
    Person("p1", "Ann", Gender.FEMALE, wants_to_be_with="Bea"),
    Person("p2", "Bea", Gender.FEMALE),
    Person("p3", "Cid", Gender.MALE),
]


def test_moving_a_placed_person_out_lists_them_as_unassigned(tmp_path) -> None:
    planner = _build_planner(tmp_path)
    planner.save_session(building=BuildingConfig(floors=1), rooms=ROOMS, people=PEOPLE)
    solved, _ = planner.solve_session()
    assert sorted(solved.assignments["r1"]) == ["p1", "p2"]

    moved, violations = planner.reassign_person(person_id="p1", target_room_id=None)

    assert moved.assignments["r1"] == ["p2"]
    assert [(item.person_id, item.reason) for item in moved.unassigned] == [
        ("p1", UnassignmentReason.MANUALLY_UNASSIGNED)
    ]
    assert moved.unassigned[0].person_name == "Ann"
    assert planner.get_session() == moved
    _listed_once(moved)
    assert [violation.kind.value for violation in violations] == []


def test_unassigning_twice_keeps_a_single_entry(tmp_path) -> None:
    planner = _build_planner(tmp_path)
    planner.save_session(building=BuildingConfig(floors=1), rooms=ROOMS, people=PEOPLE)
    planner.solve_session()

    planner.reassign_person(person_id="p3", target_room_id=None)
    moved, _ = planner.reassign_person(person_id="p3", target_room_id=None)

    assert [item.person_id for item in moved.unassigned] == ["p3"]
    _listed_once(moved)

    back, _ = planner.reassign_person(person_id="p3", target_room_id="r2")
    assert back.unassigned == []
    assert back.assignments["r2"] == ["p3"]


def test_saving_a_changed_roster_reconciles_placements(tmp_path) -> None:
    planner = _build_planner(tmp_path)
    planner.save_session(building=BuildingConfig(floors=1), rooms=ROOMS, people=PEOPLE)
    solved, _ = planner.solve_session()
    assert solved.assignments == {"r1": ["p1", "p2"], "r2": ["p3"]}

    people = PEOPLE[:1] + PEOPLE[2:] + [Person("p4", "Dee", Gender.FEMALE)]
    session = planner.save_session(
        building=BuildingConfig(floors=1),
        rooms=[ROOMS[0]],
        people=people,
        assignments=solved.assignments,
        unassigned=[
            UnassignedPerson("p2", "Bea", UnassignmentReason.CAPACITY_EXHAUSTED, "stale"),
            UnassignedPerson("gone", "Nobody", UnassignmentReason.NO_ROOMS, "stale"),
        ],
    )

    assert session.assignments == {"r1": ["p1"]}
    assert [(item.person_id, item.reason) for item in session.unassigned] == [
        ("p3", UnassignmentReason.ROOM_REMOVED)
    ]
    assert planner.get_session().unassigned == session.unassigned


def test_reassign_rejects_unknown_person(tmp_path) -> None:
    planner = _build_planner(tmp_path)
    planner.save_session(building=BuildingConfig(floors=1), rooms=ROOMS, people=PEOPLE)

    with pytest.raises(PlannerValidationError):
        planner.reassign_person(person_id="ghost", target_room_id="r1")
