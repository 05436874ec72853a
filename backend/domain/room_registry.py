"""Indexed room arena with invariant-preserving link updates.

Rooms are kept in a list plus an id -> index map. ``connected_to`` and
``shared_bathroom_with`` are symmetric one-partner relations: every update
goes through ``_link`` so a room never ends up pointing at a partner that
does not point back.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Literal, Optional
from uuid import uuid4

from backend.domain.constraints import RoomLinkError, room_link_problems
from backend.domain.models import BathroomType, Room


Relation = Literal["connected_to", "shared_bathroom_with"]
RELATIONS: tuple[Relation, ...] = ("connected_to", "shared_bathroom_with")


def _new_room_id() -> str:
    return uuid4().hex


class RoomRegistry:
    def __init__(self, rooms: Iterable[Room] = ()) -> None:
        self._rooms: list[Room] = []
        self._index: dict[str, int] = {}
        for room in rooms:
            if room.room_id in self._index:
                raise RoomLinkError(f"duplicate room id '{room.room_id}'")
            self._index[room.room_id] = len(self._rooms)
            self._rooms.append(room)

    @classmethod
    def from_rooms(cls, rooms: Iterable[Room]) -> "RoomRegistry":
        """Build a registry and reject rosters whose links are already broken."""
        registry = cls(rooms)
        registry.validate()
        return registry

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._index

    def get(self, room_id: str) -> Room:
        try:
            return self._rooms[self._index[room_id]]
        except KeyError as exc:
            raise RoomLinkError(f"unknown room '{room_id}'") from exc

    def find_by_name(self, name: str) -> list[Room]:
        target = name.strip()
        return [room for room in self._rooms if room.name.strip() == target]

    def to_rooms(self) -> list[Room]:
        return list(self._rooms)

    def validate(self) -> None:
        problems = room_link_problems(self._rooms)
        if problems:
            raise RoomLinkError("; ".join(problems))

    def _put(self, room: Room) -> None:
        self._rooms[self._index[room.room_id]] = room

    def _clear(self, room_id: Optional[str], relation: Relation) -> None:
        if room_id is None or room_id not in self._index:
            return
        self._put(replace(self.get(room_id), **{relation: None}))

    def _link(self, room_id: str, partner_id: Optional[str], relation: Relation) -> None:
        room = self.get(room_id)
        if partner_id == room_id:
            raise RoomLinkError(f"room '{room_id}' cannot be linked to itself")
        partner = self.get(partner_id) if partner_id is not None else None

        self._clear(getattr(room, relation), relation)
        if partner is not None:
            self._clear(getattr(partner, relation), relation)
            self._put(replace(self.get(partner.room_id), **{relation: room_id}))
        self._put(replace(self.get(room_id), **{relation: partner_id}))

    # -- public mutators ---------------------------------------------------

    def add_room(
        self,
        *,
        floor: int,
        capacity: int,
        name: Optional[str] = None,
        bathroom: BathroomType = BathroomType.SHARED,
        room_id: Optional[str] = None,
        name_prefix: str = "Room",
    ) -> Room:
        if capacity <= 0:
            raise RoomLinkError("room capacity must be > 0")
        resolved_id = room_id or _new_room_id()
        if resolved_id in self._index:
            raise RoomLinkError(f"duplicate room id '{resolved_id}'")
        if name is None or not name.strip():
            on_floor = sum(1 for room in self._rooms if room.floor == floor)
            name = f"{name_prefix} {on_floor + 1}"
        room = Room(
            room_id=resolved_id,
            floor=floor,
            name=name.strip(),
            capacity=capacity,
            bathroom=bathroom,
        )
        self._index[room.room_id] = len(self._rooms)
        self._rooms.append(room)
        return room

    def bulk_add_rooms(
        self,
        *,
        floor: int,
        count: int,
        capacity: int,
        names: Optional[list[str]] = None,
        bathroom: BathroomType = BathroomType.SHARED,
        name_prefix: str = "Room",
    ) -> list[Room]:
        """Add ``count`` rooms on one floor; missing or blank names get defaults."""
        if count <= 0:
            raise RoomLinkError("bulk add requires a positive room count")
        supplied = list(names or [])
        if len(supplied) > count:
            raise RoomLinkError("bulk add received more names than rooms")
        supplied.extend([""] * (count - len(supplied)))
        return [
            self.add_room(
                floor=floor,
                capacity=capacity,
                name=name,
                bathroom=bathroom,
                name_prefix=name_prefix,
            )
            for name in supplied
        ]

    def remove_room(self, room_id: str) -> None:
        room = self.get(room_id)
        for relation in RELATIONS:
            self._clear(getattr(room, relation), relation)
        del self._rooms[self._index[room_id]]
        self._index = {item.room_id: position for position, item in enumerate(self._rooms)}

    def set_connection(self, room_id: str, partner_id: Optional[str]) -> None:
        self._link(room_id, partner_id, "connected_to")

    def set_shared_bathroom(self, room_id: str, partner_id: Optional[str]) -> None:
        self._link(room_id, partner_id, "shared_bathroom_with")
        if partner_id is not None:
            for target in (room_id, partner_id):
                self._put(replace(self.get(target), bathroom=BathroomType.SHARED))

    def set_bathroom(self, room_id: str, bathroom: BathroomType) -> None:
        if bathroom == BathroomType.PRIVATE:
            self._link(room_id, None, "shared_bathroom_with")
        self._put(replace(self.get(room_id), bathroom=bathroom))

    def update_room(
        self,
        room_id: str,
        *,
        name: Optional[str] = None,
        floor: Optional[int] = None,
        capacity: Optional[int] = None,
    ) -> Room:
        changes: dict[str, object] = {}
        if name is not None:
            if not name.strip():
                raise RoomLinkError("room name must be non-empty")
            changes["name"] = name.strip()
        if floor is not None:
            changes["floor"] = floor
        if capacity is not None:
            if capacity <= 0:
                raise RoomLinkError("room capacity must be > 0")
            changes["capacity"] = capacity
        updated = replace(self.get(room_id), **changes)
        self._put(updated)
        return updated
