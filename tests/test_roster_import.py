from __future__ import annotations

from dataclasses import replace

import pytest

from backend.domain.constraints import room_link_problems
from backend.domain.models import BathroomType, Gender, RoomPreference
from backend.services.roster_import_service import RosterImportError, RosterImportService
from backend.utils.config import get_settings


ROOMS_CSV = """name,floor,capacity,bathroom,connected_to,shared_bathroom_with
Blue,0,2,Společná,Green,
Green,0,3,SHARED,,Red
Red,1,2,,,
Attic,2,1,PRIVATE,,
"""

PEOPLE_CSV = """Name,Gender,Preferred Floor,Room Preference,Bathroom Preference,Wants To Be With,Does Not Want To Be With
Ann,Žena,1,Spojený,Vlastní,Bea,
Bea,FEMALE,,,,,Cid
Cid,M,0,SINGLE,SHARED,,
"""


def _service(**overrides) -> RosterImportService:
    return RosterImportService(settings=replace(get_settings(), **overrides))


def test_import_rooms_resolves_partner_names_symmetrically() -> None:
    rooms = _service().import_rooms(ROOMS_CSV)
    by_name = {room.name: room for room in rooms}

    assert [room.name for room in rooms] == ["Blue", "Green", "Red", "Attic"]
    assert by_name["Blue"].connected_to == by_name["Green"].room_id
    assert by_name["Green"].connected_to == by_name["Blue"].room_id
    assert by_name["Green"].shared_bathroom_with == by_name["Red"].room_id
    assert by_name["Red"].shared_bathroom_with == by_name["Green"].room_id
    assert by_name["Red"].bathroom == BathroomType.SHARED
    assert by_name["Attic"].bathroom == BathroomType.PRIVATE
    assert room_link_problems(rooms) == []


def test_import_rooms_rejects_unknown_partner() -> None:
    csv_text = "name,floor,capacity,connected_to\nBlue,0,2,Nowhere\n"
    with pytest.raises(RosterImportError, match="unknown"):
        _service().import_rooms(csv_text)


def test_import_rooms_rejects_conflicting_links() -> None:
    csv_text = "name,floor,capacity,connected_to\nA,0,2,B\nB,0,2,C\nC,0,2,\n"
    with pytest.raises(RosterImportError, match="conflicts"):
        _service().import_rooms(csv_text)


def test_import_rooms_reports_line_of_bad_number() -> None:
    csv_text = "name,floor,capacity\nBlue,0,2\nGreen,one,2\n"
    with pytest.raises(RosterImportError, match="line 3"):
        _service().import_rooms(csv_text)


def test_import_rooms_rejects_fractional_capacity() -> None:
    csv_text = "name,floor,capacity\nBlue,0,2.7\n"
    with pytest.raises(RosterImportError, match="line 2: 'capacity' must be a whole number"):
        _service().import_rooms(csv_text)


def test_import_people_rejects_fractional_floor_but_accepts_spreadsheet_integers() -> None:
    with pytest.raises(RosterImportError, match="preferred_floor"):
        _service().import_people("name,gender,preferred_floor\nAnn,F,1.5\n")

    people = _service().import_people("name,gender,preferred_floor\nAnn,F,2.0\n")
    assert people[0].preferred_floor == 2


def test_import_people_normalizes_headers_and_labels() -> None:
    people = _service().import_people(PEOPLE_CSV)

    assert [person.name for person in people] == ["Ann", "Bea", "Cid"]
    ann, bea, cid = people
    assert ann.gender == Gender.FEMALE
    assert ann.preferred_floor == 1
    assert ann.room_preference == RoomPreference.CONNECTED
    assert ann.bathroom_preference == BathroomType.PRIVATE
    assert ann.wants_to_be_with == "Bea"
    assert bea.preferred_floor is None
    assert bea.room_preference == RoomPreference.SINGLE
    assert bea.does_not_want_to_be_with == "Cid"
    assert cid.gender == Gender.MALE
    assert len({person.person_id for person in people}) == 3


def test_import_people_requires_gender_column() -> None:
    with pytest.raises(RosterImportError, match="gender"):
        _service().import_people("name\nAnn\n")


def test_import_people_rejects_unknown_gender_label() -> None:
    with pytest.raises(RosterImportError, match="line 2"):
        _service().import_people("name,gender\nAnn,unknown\n")


def test_import_respects_row_limit() -> None:
    csv_text = "name,gender\nAnn,F\nBea,F\nCat,F\n"
    with pytest.raises(RosterImportError, match="limit"):
        _service(import_max_rows=2).import_people(csv_text)


def test_empty_csv_is_rejected() -> None:
    with pytest.raises(RosterImportError):
        _service().import_people("   ")
