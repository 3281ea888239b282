"""Badge requirement evaluation.

A badge declares a requirement set: a mapping of requirement kind to a
numeric threshold. Every kind present must be met (``>=``); kinds not
present are skipped. Kinds are registered predicate handlers, so new
criteria are added with ``@register_requirement`` and nothing else.
"""

from __future__ import annotations

import json
import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from skillbank.domain import StatSnapshot
from skillbank.errors import MalformedRequirementsError

StatExtractor = Callable[[StatSnapshot], float]

# Requirement kind -> function deriving the compared value from a snapshot
REQUIREMENT_HANDLERS: dict[str, StatExtractor] = {}

# Keys found in older badge rows
LEGACY_ALIASES: dict[str, str] = {
    "sessions": "total_sessions",
    "rating": "average_rating",
}


def register_requirement(kind: str) -> Callable[[StatExtractor], StatExtractor]:
    """Register a stat extractor under a requirement kind."""

    def decorator(func: StatExtractor) -> StatExtractor:
        if kind in REQUIREMENT_HANDLERS:
            raise ValueError(f"Requirement kind already registered: {kind}")
        REQUIREMENT_HANDLERS[kind] = func
        return func

    return decorator


@register_requirement("total_sessions")
def _total_sessions(snapshot: StatSnapshot) -> float:
    return snapshot.total_sessions


@register_requirement("teaching_sessions")
def _teaching_sessions(snapshot: StatSnapshot) -> float:
    return snapshot.sessions_as_teacher


@register_requirement("learning_sessions")
def _learning_sessions(snapshot: StatSnapshot) -> float:
    return snapshot.sessions_as_student


@register_requirement("average_rating")
def _average_rating(snapshot: StatSnapshot) -> float:
    return snapshot.average_rating


@register_requirement("credits_earned")
def _credits_earned(snapshot: StatSnapshot) -> float:
    return snapshot.credits_earned


@dataclass(frozen=True)
class RequirementSet:
    """Validated requirement set. Keys are always registered kinds."""

    thresholds: Mapping[str, float]

    def __iter__(self):
        return iter(self.thresholds.items())

    def __len__(self) -> int:
        return len(self.thresholds)


def _is_number(value: Any) -> bool:
    # bool is an int subclass; True is not a threshold
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def parse_requirements(raw: Mapping[str, Any] | str | None) -> RequirementSet:
    """Load a stored requirement set, rejecting anything outside the schema.

    Accepts a mapping or its JSON text. ``None`` and empty input load as an
    empty set, which every user satisfies.
    """
    if raw is None or raw == "":
        return RequirementSet(thresholds={})

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise MalformedRequirementsError(f"Requirements are not valid JSON: {exc.msg}") from exc

    if not isinstance(raw, Mapping):
        raise MalformedRequirementsError(
            f"Requirements must be an object, got {type(raw).__name__}"
        )

    thresholds: dict[str, float] = {}
    unknown: list[str] = []
    invalid: list[str] = []

    for key, value in raw.items():
        kind = LEGACY_ALIASES.get(key, key)
        if kind not in REQUIREMENT_HANDLERS:
            unknown.append(str(key))
            continue
        if not _is_number(value) or value < 0:
            invalid.append(str(key))
            continue
        thresholds[kind] = float(value)

    if unknown:
        raise MalformedRequirementsError(
            f"Unknown requirement kinds: {', '.join(sorted(unknown))}", keys=sorted(unknown),
        )
    if invalid:
        raise MalformedRequirementsError(
            f"Thresholds must be non-negative numbers: {', '.join(sorted(invalid))}",
            keys=sorted(invalid),
        )

    return RequirementSet(thresholds=thresholds)


def qualifies(snapshot: StatSnapshot, requirements: RequirementSet) -> bool:
    """Return True when the snapshot meets every requirement in the set."""
    for kind, threshold in requirements:
        if REQUIREMENT_HANDLERS[kind](snapshot) < threshold:
            return False
    return True
