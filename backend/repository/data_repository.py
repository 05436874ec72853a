"""Repository layer responsible for all database access."""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from backend.domain.models import PlannerSession, SavedConfiguration
from backend.domain.serialization import configuration_from_dict, session_from_dict, to_plain
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)

CURRENT_SESSION_KEY = "current"


@dataclass(frozen=True)
class ConfigurationSummary:
    """History listing projection without the roster payload."""

    config_id: str
    name: str
    created_at: str
    room_count: int
    person_count: int


class DataRepository:
    """Encapsulates SQLite access so business logic stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._db_path)
        connection.row_factory = sqlite3.Row
        return connection

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Sessions (
                        session_key TEXT PRIMARY KEY,
                        payload TEXT NOT NULL,
                        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS SavedConfigurations (
                        id TEXT PRIMARY KEY,
                        name TEXT NOT NULL,
                        created_at TEXT NOT NULL,
                        room_count INTEGER NOT NULL DEFAULT 0,
                        person_count INTEGER NOT NULL DEFAULT 0,
                        payload TEXT NOT NULL
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_saved_configurations_created
                    ON SavedConfigurations(created_at);
                    """
                )
                conn.commit()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    # -- current session ---------------------------------------------------

    def save_session(self, session: PlannerSession) -> None:
        payload = json.dumps(to_plain(session), ensure_ascii=False)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO Sessions (session_key, payload, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(session_key) DO UPDATE SET
                    payload = excluded.payload,
                    updated_at = excluded.updated_at;
                """,
                (CURRENT_SESSION_KEY, payload),
            )
            conn.commit()

    def load_session(self) -> Optional[PlannerSession]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT payload FROM Sessions WHERE session_key = ?;",
                (CURRENT_SESSION_KEY,),
            )
            row = cursor.fetchone()
        if row is None:
            return None
        return session_from_dict(json.loads(row["payload"]))

    def clear_session(self) -> bool:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM Sessions WHERE session_key = ?;", (CURRENT_SESSION_KEY,))
            conn.commit()
            return cursor.rowcount > 0

    # -- named history -----------------------------------------------------

    def save_configuration(self, configuration: SavedConfiguration) -> None:
        """Store a history entry and drop the current session, in one transaction."""
        payload = json.dumps(to_plain(configuration), ensure_ascii=False)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO SavedConfigurations
                    (id, name, created_at, room_count, person_count, payload)
                VALUES (?, ?, ?, ?, ?, ?);
                """,
                (
                    configuration.config_id,
                    configuration.name,
                    configuration.created_at,
                    len(configuration.rooms),
                    len(configuration.people),
                    payload,
                ),
            )
            conn.execute("DELETE FROM Sessions WHERE session_key = ?;", (CURRENT_SESSION_KEY,))
            conn.commit()
        logger.info(
            "Configuration saved | config_id=%s | name=%s",
            configuration.config_id,
            configuration.name,
        )

    def list_configurations(self, limit: Optional[int] = None) -> list[ConfigurationSummary]:
        resolved_limit = limit if limit is not None else self._settings.history_list_limit
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT id, name, created_at, room_count, person_count
                FROM SavedConfigurations
                ORDER BY created_at DESC, id ASC
                LIMIT ?;
                """,
                (resolved_limit,),
            )
            return [
                ConfigurationSummary(
                    config_id=str(row["id"]),
                    name=str(row["name"]),
                    created_at=str(row["created_at"]),
                    room_count=int(row["room_count"]),
                    person_count=int(row["person_count"]),
                )
                for row in cursor.fetchall()
            ]

    def get_configuration(self, config_id: str) -> Optional[SavedConfiguration]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT payload FROM SavedConfigurations WHERE id = ?;",
                (config_id,),
            )
            row = cursor.fetchone()
        if row is None:
            return None
        return configuration_from_dict(json.loads(row["payload"]))

    def delete_configuration(self, config_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM SavedConfigurations WHERE id = ?;", (config_id,))
            conn.commit()
            return cursor.rowcount > 0

    def count_configurations(self) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) AS count FROM SavedConfigurations;")
            return int(cursor.fetchone()["count"])
