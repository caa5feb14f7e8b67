"""
Migration Pipeline

The sole entry point by which persisted or externally supplied
documents become a State. Nothing downstream may bypass it.

ALGORITHM:
==========
1. Current-version validator matches -> CURRENT
2. Otherwise try legacy validators newest to oldest; on the first match
   fold the sub-chain of steps from that version to the current one,
   oldest step first -> MIGRATED (carrying from_version)
3. Nothing matches -> INVALID

The pipeline never raises: invalidity is a result, not an exception.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from functools import reduce
from typing import Any, Optional

from ..contracts.entities import State
from .migrations import MIGRATION_CHAIN
from .versions import is_valid_state


class MigrationStatus(Enum):
    CURRENT = "current"
    MIGRATED = "migrated"
    INVALID = "invalid"


@dataclass(frozen=True)
class MigrationResult:
    """Outcome of lifting a document to the current schema."""
    status: MigrationStatus
    state: Optional[State] = None
    from_version: Optional[int] = None

    @property
    def is_valid(self) -> bool:
        return self.status != MigrationStatus.INVALID


INVALID = MigrationResult(status=MigrationStatus.INVALID)


def detect_version(data: Any) -> Optional[int]:
    """Newest legacy version whose validator accepts the document."""
    for version, is_valid, _ in reversed(MIGRATION_CHAIN):
        if is_valid(data):
            return version
    return None


def migrate_to_latest(data: Any) -> MigrationResult:
    """Lift an arbitrary document to a current-shape State."""
    if is_valid_state(data):
        return MigrationResult(status=MigrationStatus.CURRENT, state=State.from_dict(data))

    from_version = detect_version(data)
    if from_version is None:
        return INVALID

    steps = [step for version, _, step in MIGRATION_CHAIN if version >= from_version]
    migrated = reduce(lambda doc, step: step(doc), steps, data)

    # Extra keys tolerated by an old shape may be typed fields today
    if not is_valid_state(migrated):
        return INVALID

    return MigrationResult(
        status=MigrationStatus.MIGRATED,
        state=State.from_dict(migrated),
        from_version=from_version
    )
