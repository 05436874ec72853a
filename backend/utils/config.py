"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[2]
ENV_PREFIX = "ROOMPLAN_"


def _env(name: str, default: str) -> str:
    return os.environ.get(f"{ENV_PREFIX}{name}", default)


def _env_bool(name: str, default: bool) -> bool:
    raw = _env(name, "true" if default else "false")
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    database_path: Path
    solver_floor_weight: float
    solver_bathroom_weight: float
    solver_room_style_weight: float
    solver_exclusion_covers_bathroom_partner: bool
    default_room_capacity: int
    default_room_name_prefix: str
    import_max_rows: int
    history_list_limit: int


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings once per process; tests call ``cache_clear``."""
    return Settings(
        app_name=_env("APP_NAME", "Room Assignment Planner"),
        app_version=_env("APP_VERSION", "1.0.0"),
        log_level=_env("LOG_LEVEL", "INFO"),
        database_path=Path(
            _env("DATABASE_PATH", str(PROJECT_ROOT / "data" / "room_planner.db"))
        ),
        solver_floor_weight=float(_env("SOLVER_FLOOR_WEIGHT", "1.0")),
        solver_bathroom_weight=float(_env("SOLVER_BATHROOM_WEIGHT", "1.0")),
        solver_room_style_weight=float(_env("SOLVER_ROOM_STYLE_WEIGHT", "1.0")),
        solver_exclusion_covers_bathroom_partner=_env_bool(
            "SOLVER_EXCLUSION_COVERS_BATHROOM_PARTNER", True
        ),
        default_room_capacity=int(_env("DEFAULT_ROOM_CAPACITY", "2")),
        default_room_name_prefix=_env("DEFAULT_ROOM_NAME_PREFIX", "Room"),
        import_max_rows=int(_env("IMPORT_MAX_ROWS", "2000")),
        history_list_limit=int(_env("HISTORY_LIST_LIMIT", "200")),
    )
