"""Resolve free-text "wants to be with" / "does not want to be with" fields.

Names are matched exactly (after trimming) against the roster. A reference
that matches nobody, matches more than one person, or points back at its
author is ignored and reported as a warning instead of being guessed.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field

from backend.domain.models import Person, ResolutionWarning, ResolutionWarningKind
from backend.utils.logger import get_logger


logger = get_logger(__name__)

Pair = frozenset[str]


@dataclass(frozen=True)
class RelationGraph:
    together: frozenset[Pair] = frozenset()
    apart: frozenset[Pair] = frozenset()
    warnings: tuple[ResolutionWarning, ...] = field(default_factory=tuple)

    def apart_partners(self, person_id: str) -> set[str]:
        partners: set[str] = set()
        for pair in self.apart:
            if person_id in pair:
                partners.update(pair - {person_id})
        return partners


def split_references(raw: str) -> list[str]:
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


def build_name_index(people: list[Person]) -> dict[str, list[str]]:
    index: dict[str, list[str]] = defaultdict(list)
    for person in people:
        index[person.name.strip()].append(person.person_id)
    return dict(index)


def _resolve_field(
    person: Person,
    raw: str,
    name_index: dict[str, list[str]],
    warnings: list[ResolutionWarning],
) -> set[Pair]:
    pairs: set[Pair] = set()
    for reference in split_references(raw):
        matches = name_index.get(reference, [])
        if not matches:
            kind = ResolutionWarningKind.UNRESOLVED
        elif len(matches) > 1:
            kind = ResolutionWarningKind.AMBIGUOUS
        elif matches[0] == person.person_id:
            kind = ResolutionWarningKind.SELF_REFERENCE
        else:
            pairs.add(frozenset((person.person_id, matches[0])))
            continue
        warnings.append(
            ResolutionWarning(person_id=person.person_id, reference=reference, kind=kind)
        )
    return pairs


def resolve_relations(people: list[Person]) -> RelationGraph:
    name_index = build_name_index(people)
    warnings: list[ResolutionWarning] = []
    together: set[Pair] = set()
    apart: set[Pair] = set()
    for person in people:
        together |= _resolve_field(person, person.wants_to_be_with, name_index, warnings)
        apart |= _resolve_field(person, person.does_not_want_to_be_with, name_index, warnings)

    if warnings:
        logger.info(
            "Relation resolution ignored references | count=%s | kinds=%s",
            len(warnings),
            sorted({warning.kind.value for warning in warnings}),
        )
    return RelationGraph(
        together=frozenset(together),
        apart=frozenset(apart),
        warnings=tuple(warnings),
    )
