"""
Base Contracts and Shared Types

These are the foundational types used across all layers.
All types here are IMMUTABLE and represent pure data.
No behavior, no side effects, no dependencies.

BOUNDARY ENFORCEMENT:
=====================
- This module is READ-ONLY from all layers
- Layers may import types but MUST NOT modify this module
- All types are frozen dataclasses for immutability guarantee
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple
from enum import Enum, auto
import hashlib


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for deterministic error handling.
    No silent fallbacks - every error state is enumerated.
    """
    # Structural errors (schema boundary)
    STRUCTURAL_INVALIDITY = auto()

    # Field-level validation errors
    VALIDATION_FAILED = auto()
    TYPE_MISMATCH = auto()

    # Cross-entity invariant violations
    NOT_FOUND = auto()
    DUPLICATE_ID = auto()
    DUPLICATE_NAME = auto()
    REFERENTIAL_INTEGRITY = auto()
    CARDINALITY_EXCEEDED = auto()
    INVALID_STATE_TRANSITION = auto()
    CYCLE_DETECTED = auto()

    # Configuration errors
    INVALID_POLICY = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data, not exceptions - they can be stored and queried.
    """
    code: ErrorCode
    message: str
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def with_context(self, key: str, value: str) -> Error:
        """Return new Error with additional context (immutable)."""
        return Error(
            code=self.code,
            message=self.message,
            context=self.context + ((key, value),)
        )

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class Result:
    """
    Generic result type for operations that can fail.
    Either contains a value OR an error, never both.
    """
    value: Optional[object] = None
    error: Optional[Error] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    @staticmethod
    def success(value: object = None) -> Result:
        return Result(value=value, error=None)

    @staticmethod
    def failure(error: Error) -> Result:
        return Result(value=None, error=error)


def fail(code: ErrorCode, message: str, **context: str) -> Result:
    """Shorthand for a failed Result carrying a single Error."""
    return Result.failure(Error(
        code=code,
        message=message,
        context=tuple(sorted(context.items()))
    ))


OK = Result.success()


# =============================================================================
# TEMPORAL TYPES (Immutable, explicit semantics)
# =============================================================================

EPOCH_ISO = "1970-01-01T00:00:00.000Z"


@dataclass(frozen=True)
class Timestamp:
    """
    Immutable timestamp with explicit semantics.
    All timestamps are UTC, never local time.
    """
    value: datetime

    def __post_init__(self):
        # Ensure UTC timezone
        if self.value.tzinfo is None:
            object.__setattr__(self, 'value', self.value.replace(tzinfo=timezone.utc))

    @staticmethod
    def now() -> Timestamp:
        return Timestamp(value=datetime.now(timezone.utc))

    @staticmethod
    def from_iso(iso_string: str) -> Timestamp:
        dt = datetime.fromisoformat(iso_string.replace('Z', '+00:00'))
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return Timestamp(value=dt)

    def to_iso(self) -> str:
        """Millisecond precision, 'Z' suffix: the persisted document format."""
        utc = self.value.astimezone(timezone.utc)
        return utc.strftime('%Y-%m-%dT%H:%M:%S.') + f"{utc.microsecond // 1000:03d}Z"


def sort_key_for_iso(iso_string: str) -> float:
    """
    Ordering key for persisted ISO strings.

    Unparseable strings sort before every real instant.
    """
    try:
        return Timestamp.from_iso(iso_string).value.timestamp()
    except ValueError:
        return float('-inf')


# =============================================================================
# IDENTITY TYPES (Deterministic, hash-derived)
# =============================================================================

def derive_id(prefix: str, *parts: str) -> str:
    """Generate a deterministic identifier from its seed parts."""
    seed = "|".join(parts)
    digest = hashlib.sha256(seed.encode('utf-8')).hexdigest()[:16]
    return f"{prefix}_{digest}"
