#!/usr/bin/env python3
"""Validate local room planner environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.domain.models import BuildingConfig, Gender, Person, Room
from backend.repository.data_repository import DataRepository
from backend.services.assignment_service import solve_assignment
from backend.services.planner_service import PlannerWorkflowService
from backend.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="roomplan-env-")

    # CHECK 1: Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable
    package_names = ["fastapi", "uvicorn", "pydantic", "pandas", "httpx", "pytest"]
    import_errors: list[str] = []
    for module_name in package_names:
        try:
            importlib.import_module(module_name)
        except Exception as exc:  # pragma: no cover - runtime guard
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        validation_settings = replace(
            get_settings(),
            database_path=Path(temp_dir) / "roomplan_validation.db",
        )
        repository = DataRepository(validation_settings)

        # CHECK 3: Database initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Database initialization", True)
        except Exception as exc:
            ok, line = _print_result("Database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        rooms = [
            Room(room_id="r1", floor=1, name="Room 1", capacity=2),
            Room(room_id="r2", floor=1, name="Room 2", capacity=2),
        ]
        people = [
            Person(person_id="p1", name="Adam", gender=Gender.MALE),
            Person(person_id="p2", name="Bara", gender=Gender.FEMALE),
            Person(person_id="p3", name="Cyril", gender=Gender.MALE),
            Person(person_id="p4", name="Dana", gender=Gender.FEMALE),
        ]

        # CHECK 4: Solver smoke run
        try:
            result = solve_assignment(rooms, people)
            if result.unassigned:
                raise RuntimeError(f"expected everyone placed, got {len(result.unassigned)} unassigned")
            ok, line = _print_result("Solver smoke run", True, ": 4/4 placed")
        except Exception as exc:
            ok, line = _print_result("Solver smoke run", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5: Session round trip through the repository
        try:
            planner = PlannerWorkflowService(repository=repository, settings=validation_settings)
            planner.save_session(building=BuildingConfig(floors=1), rooms=rooms, people=people)
            planner.solve_session()
            configuration = planner.save_to_history("validation")
            if repository.get_configuration(configuration.config_id) is None:
                raise RuntimeError("saved configuration could not be read back")
            ok, line = _print_result("Session and history persistence", True)
        except Exception as exc:
            ok, line = _print_result("Session and history persistence", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Room Planner Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
