from __future__ import annotations

from dataclasses import replace

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
from backend.repository.data_repository import DataRepository
from backend.utils.config import get_settings


def _build_repository(tmp_path, filename: str = "repository.db") -> DataRepository:
    settings = replace(get_settings(), database_path=tmp_path / filename)
    repository = DataRepository(settings)
    repository.initialize_database()
    return repository


def _session() -> PlannerSession:
    return PlannerSession(
        building=BuildingConfig(floors=2, has_ground_floor=False),
        rooms=[
            Room("r1", 1, "Modrá", 2, shared_bathroom_with="r2"),
            Room("r2", 1, "Zelená", 2, shared_bathroom_with="r1"),
            Room("r3", 2, "Attic", 1, bathroom=BathroomType.PRIVATE),
        ],
        people=[
            Person("p1", "Ann", Gender.FEMALE, preferred_floor=2, wants_to_be_with="Bea"),
            Person("p2", "Bea", Gender.FEMALE, room_preference=RoomPreference.CONNECTED),
            Person("p3", "Cid", Gender.MALE, does_not_want_to_be_with="Ann"),
        ],
        assignments={"r1": ["p1", "p2"], "r2": [], "r3": []},
        unassigned=[
            UnassignedPerson("p3", "Cid", UnassignmentReason.GENDER_CONFLICT, "blocked")
        ],
        updated_at="2026-01-01T10:00:00+00:00",
    )


def test_initialize_database_is_idempotent(tmp_path) -> None:
    repository = _build_repository(tmp_path)
    repository.initialize_database()

    assert repository.load_session() is None
    assert repository.count_configurations() == 0


def test_session_round_trip_preserves_every_field(tmp_path) -> None:
    repository = _build_repository(tmp_path)
    session = _session()

    repository.save_session(session)

    assert repository.load_session() == session


def test_saving_session_twice_keeps_one_current_session(tmp_path) -> None:
    repository = _build_repository(tmp_path)
    repository.save_session(_session())
    updated = replace(_session(), assignments={"r1": [], "r2": [], "r3": ["p3"]})

    repository.save_session(updated)

    assert repository.load_session().assignments == {"r1": [], "r2": [], "r3": ["p3"]}
    assert repository.clear_session() is True
    assert repository.clear_session() is False


def test_saving_configuration_clears_current_session(tmp_path) -> None:
    repository = _build_repository(tmp_path)
    session = _session()
    repository.save_session(session)
    configuration = SavedConfiguration(
        config_id="cfg-1",
        name="Spring camp",
        created_at="2026-03-01T09:00:00+00:00",
        building=session.building,
        rooms=session.rooms,
        people=session.people,
        assignments=session.assignments,
    )

    repository.save_configuration(configuration)

    assert repository.load_session() is None
    assert repository.get_configuration("cfg-1") == configuration
    summaries = repository.list_configurations()
    assert [(item.config_id, item.room_count, item.person_count) for item in summaries] == [
        ("cfg-1", 3, 3)
    ]


def test_history_is_listed_newest_first_and_can_be_deleted(tmp_path) -> None:
    repository = _build_repository(tmp_path)
    session = _session()
    for config_id, created_at in (("old", "2026-01-01T00:00:00+00:00"), ("new", "2026-02-01T00:00:00+00:00")):
        repository.save_configuration(
            SavedConfiguration(
                config_id=config_id,
                name=config_id,
                created_at=created_at,
                building=session.building,
                rooms=session.rooms,
                people=session.people,
                assignments={},
            )
        )

    assert [item.config_id for item in repository.list_configurations()] == ["new", "old"]
    assert [item.config_id for item in repository.list_configurations(limit=1)] == ["new"]
    assert repository.delete_configuration("old") is True
    assert repository.delete_configuration("old") is False
    assert repository.get_configuration("old") is None
    assert repository.count_configurations() == 1
