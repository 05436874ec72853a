from __future__ import annotations

import pytest

from backend.domain.constraints import RoomLinkError, room_link_problems
from backend.domain.models import BathroomType, Room
from backend.domain.room_registry import RoomRegistry


def _registry() -> RoomRegistry:
    return RoomRegistry(
        [
            Room("a", 1, "A", 2),
            Room("b", 1, "B", 2),
            Room("c", 1, "C", 2),
            Room("d", 2, "D", 3),
        ]
    )


def test_set_connection_links_both_rooms() -> None:
    registry = _registry()
    registry.set_connection("a", "b")

    assert registry.get("a").connected_to == "b"
    assert registry.get("b").connected_to == "a"
    assert room_link_problems(registry.to_rooms()) == []


def test_relinking_clears_previous_partners() -> None:
    registry = _registry()
    registry.set_connection("a", "b")
    registry.set_connection("c", "d")

    registry.set_connection("a", "c")

    assert registry.get("a").connected_to == "c"
    assert registry.get("c").connected_to == "a"
    assert registry.get("b").connected_to is None
    assert registry.get("d").connected_to is None
    assert room_link_problems(registry.to_rooms()) == []


def test_unlinking_clears_both_sides() -> None:
    registry = _registry()
    registry.set_connection("a", "b")
    registry.set_connection("a", None)

    assert registry.get("a").connected_to is None
    assert registry.get("b").connected_to is None


def test_shared_bathroom_forces_shared_type() -> None:
    registry = RoomRegistry(
        [
            Room("a", 1, "A", 2, bathroom=BathroomType.PRIVATE),
            Room("b", 1, "B", 2, bathroom=BathroomType.PRIVATE),
        ]
    )
    registry.set_shared_bathroom("a", "b")

    assert registry.get("a").bathroom == BathroomType.SHARED
    assert registry.get("b").bathroom == BathroomType.SHARED
    assert registry.get("b").shared_bathroom_with == "a"


def test_setting_private_bathroom_drops_shared_partner() -> None:
    registry = _registry()
    registry.set_shared_bathroom("a", "b")
    registry.set_bathroom("a", BathroomType.PRIVATE)

    assert registry.get("a").bathroom == BathroomType.PRIVATE
    assert registry.get("a").shared_bathroom_with is None
    assert registry.get("b").shared_bathroom_with is None
    assert room_link_problems(registry.to_rooms()) == []


def test_self_link_is_rejected() -> None:
    with pytest.raises(RoomLinkError):
        _registry().set_connection("a", "a")


def test_unknown_partner_is_rejected() -> None:
    with pytest.raises(RoomLinkError):
        _registry().set_shared_bathroom("a", "zzz")


def test_remove_room_clears_links_and_reindexes() -> None:
    registry = _registry()
    registry.set_connection("a", "b")
    registry.set_shared_bathroom("c", "b")

    registry.remove_room("b")

    assert "b" not in registry
    assert len(registry) == 3
    assert registry.get("a").connected_to is None
    assert registry.get("c").shared_bathroom_with is None
    assert registry.get("d").name == "D"


def test_bulk_add_fills_missing_names_per_floor() -> None:
    registry = _registry()
    added = registry.bulk_add_rooms(floor=2, count=3, capacity=4, names=["Attic"])

    assert [room.name for room in added] == ["Attic", "Room 3", "Room 4"]
    assert all(room.capacity == 4 and room.floor == 2 for room in added)
    assert len({room.room_id for room in added}) == 3
    assert len(registry) == 7


def test_bulk_add_rejects_more_names_than_rooms() -> None:
    with pytest.raises(RoomLinkError):
        _registry().bulk_add_rooms(floor=1, count=1, capacity=2, names=["x", "y"])


def test_update_room_rejects_non_positive_capacity() -> None:
    with pytest.raises(RoomLinkError):
        _registry().update_room("a", capacity=0)


def test_from_rooms_rejects_broken_links() -> None:
    with pytest.raises(RoomLinkError):
        RoomRegistry.from_rooms([Room("a", 1, "A", 2, connected_to="b"), Room("b", 1, "B", 2)])
