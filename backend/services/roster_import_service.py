"""CSV roster import for rooms and people."""

from __future__ import annotations

import io
from typing import Optional
from uuid import uuid4

import pandas as pd

from backend.domain.constraints import RoomLinkError
from backend.domain.models import BathroomType, Gender, Person, Room, RoomPreference
from backend.domain.room_registry import RoomRegistry
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)

ROOM_REQUIRED_COLUMNS = ("name", "floor", "capacity")
ROOM_OPTIONAL_COLUMNS = ("room_id", "bathroom", "connected_to", "shared_bathroom_with")
PEOPLE_REQUIRED_COLUMNS = ("name", "gender")
PEOPLE_OPTIONAL_COLUMNS = (
    "person_id",
    "preferred_floor",
    "room_preference",
    "bathroom_preference",
    "wants_to_be_with",
    "does_not_want_to_be_with",
)
_EMPTY_MARKERS = ["nan", "NaN", "None", "none", "null"]


class RosterImportError(Exception):
    """Raised when CSV roster content cannot be converted into domain records."""


def _read_table(
    csv_text: str,
    required: tuple[str, ...],
    optional: tuple[str, ...],
    max_rows: int,
) -> pd.DataFrame:
    if not csv_text or not csv_text.strip():
        raise RosterImportError("CSV content is empty")
    try:
        frame = pd.read_csv(io.StringIO(csv_text), dtype=str, keep_default_na=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise RosterImportError(f"CSV could not be parsed: {exc}") from exc

    frame.columns = frame.columns.str.strip().str.lower().str.replace(" ", "_")
    missing = [column for column in required if column not in frame.columns]
    if missing:
        raise RosterImportError(f"CSV is missing required columns: {', '.join(missing)}")
    if len(frame) > max_rows:
        raise RosterImportError(f"CSV has {len(frame)} rows; the limit is {max_rows}")

    for column in optional:
        if column not in frame.columns:
            frame[column] = ""
    for column in required + optional:
        frame[column] = frame[column].fillna("").astype(str).str.strip().replace(_EMPTY_MARKERS, "")
    return frame


def _parse_int(value: str, column: str, line: int, *, allow_empty: bool = False) -> Optional[int]:
    if value == "" and allow_empty:
        return None
    try:
        number = float(value)
    except ValueError as exc:
        raise RosterImportError(f"line {line}: '{column}' must be a whole number, got '{value}'") from exc
    # "2.0" from spreadsheet exports is fine, "2.7" is not
    if not number.is_integer():
        raise RosterImportError(f"line {line}: '{column}' must be a whole number, got '{value}'")
    return int(number)


def _parse_enum(enum_type, value: str, column: str, line: int, default):
    if value == "":
        return default
    try:
        return enum_type.parse(value)
    except ValueError as exc:
        raise RosterImportError(f"line {line}: {exc}") from exc


def _single_room_by_name(registry: RoomRegistry, name: str, line: int) -> Room:
    matches = registry.find_by_name(name)
    if len(matches) != 1:
        problem = "unknown" if not matches else "ambiguous"
        raise RosterImportError(f"line {line}: partner room '{name}' is {problem}")
    return matches[0]


class RosterImportService:
    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()

    def import_rooms(self, csv_text: str) -> list[Room]:
        """Parse rooms; partner columns reference other rows by room name."""
        frame = _read_table(
            csv_text,
            ROOM_REQUIRED_COLUMNS,
            ROOM_OPTIONAL_COLUMNS,
            self._settings.import_max_rows,
        )
        registry = RoomRegistry()
        row_room_ids: list[str] = []
        for position, row in enumerate(frame.to_dict("records")):
            line = position + 2
            if not row["name"]:
                raise RosterImportError(f"line {line}: room name is required")
            floor = _parse_int(row["floor"], "floor", line)
            capacity = _parse_int(row["capacity"], "capacity", line)
            bathroom = _parse_enum(BathroomType, row["bathroom"], "bathroom", line, BathroomType.SHARED)
            try:
                room = registry.add_room(
                    floor=floor,
                    capacity=capacity,
                    name=row["name"],
                    bathroom=bathroom,
                    room_id=row["room_id"] or None,
                )
            except RoomLinkError as exc:
                raise RosterImportError(f"line {line}: {exc}") from exc
            row_room_ids.append(room.room_id)

        declared: list[tuple[int, str, str, str]] = []
        for position, row in enumerate(frame.to_dict("records")):
            line = position + 2
            room_id = row_room_ids[position]
            for relation in ("connected_to", "shared_bathroom_with"):
                if not row[relation]:
                    continue
                partner = _single_room_by_name(registry, row[relation], line)
                try:
                    if relation == "connected_to":
                        registry.set_connection(room_id, partner.room_id)
                    else:
                        registry.set_shared_bathroom(room_id, partner.room_id)
                except RoomLinkError as exc:
                    raise RosterImportError(f"line {line}: {exc}") from exc
                declared.append((line, room_id, relation, partner.room_id))

        for line, room_id, relation, partner_id in declared:
            if getattr(registry.get(room_id), relation) != partner_id:
                raise RosterImportError(
                    f"line {line}: {relation} conflicts with another row's link"
                )

        rooms = registry.to_rooms()
        logger.info("Imported rooms from CSV | rooms=%s | links=%s", len(rooms), len(declared))
        return rooms

    def import_people(self, csv_text: str) -> list[Person]:
        frame = _read_table(
            csv_text,
            PEOPLE_REQUIRED_COLUMNS,
            PEOPLE_OPTIONAL_COLUMNS,
            self._settings.import_max_rows,
        )
        people: list[Person] = []
        seen_ids: set[str] = set()
        for position, row in enumerate(frame.to_dict("records")):
            line = position + 2
            if not row["name"]:
                raise RosterImportError(f"line {line}: person name is required")
            if not row["gender"]:
                raise RosterImportError(f"line {line}: gender is required")
            person_id = row["person_id"] or uuid4().hex
            if person_id in seen_ids:
                raise RosterImportError(f"line {line}: duplicate person_id '{person_id}'")
            seen_ids.add(person_id)
            people.append(
                Person(
                    person_id=person_id,
                    name=row["name"],
                    gender=_parse_enum(Gender, row["gender"], "gender", line, None),
                    preferred_floor=_parse_int(
                        row["preferred_floor"], "preferred_floor", line, allow_empty=True
                    ),
                    room_preference=_parse_enum(
                        RoomPreference,
                        row["room_preference"],
                        "room_preference",
                        line,
                        RoomPreference.SINGLE,
                    ),
                    bathroom_preference=_parse_enum(
                        BathroomType,
                        row["bathroom_preference"],
                        "bathroom_preference",
                        line,
                        BathroomType.SHARED,
                    ),
                    wants_to_be_with=row["wants_to_be_with"],
                    does_not_want_to_be_with=row["does_not_want_to_be_with"],
                )
            )
        logger.info("Imported people from CSV | people=%s", len(people))
        return people
