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
from typing import Any, Optional, Tuple
from enum import Enum, auto
import math


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for deterministic error handling.
    No silent fallbacks - every error state is enumerated.
    """
    # Boundary errors
    MALFORMED_PAYLOAD = auto()
    EMPTY_PAYLOAD = auto()
    INVALID_TIMESTAMP = auto()

    # Memory errors
    MOMENT_NOT_FOUND = auto()
    WRITE_ONCE_VIOLATION = auto()
    VERSION_CONFLICT = auto()

    # Collaborator errors
    CONTRACT_VIOLATION = auto()
    PROVENANCE_MISSING = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data, not exceptions - they can be stored and queried.
    """
    code: ErrorCode
    message: str
    timestamp: datetime
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def with_context(self, key: str, value: str) -> Error:
        """Return new Error with additional context (immutable)."""
        return Error(
            code=self.code,
            message=self.message,
            timestamp=self.timestamp,
            context=self.context + ((key, value),)
        )

    def to_dict(self) -> dict:
        return {
            "code": self.code.name,
            "message": self.message,
            "meta": dict(self.context),
        }


@dataclass(frozen=True)
class Result:
    """
    Generic result type for operations that can fail.
    Either contains a value OR an error, never both.
    """
    value: Optional[Any] = None
    error: Optional[Error] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    @staticmethod
    def success(value: Any) -> Result:
        return Result(value=value, error=None)

    @staticmethod
    def failure(error: Error) -> Result:
        return Result(value=None, error=error)


# =============================================================================
# TEMPORAL HELPERS (UTC only)
# =============================================================================

def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_iso_timestamp(raw: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Returns None for anything unparseable. Callers drop such values;
    they are never replaced with a default time.
    """
    if isinstance(raw, datetime):
        return ensure_utc(raw)
    if not isinstance(raw, str) or not raw.strip():
        return None
    text = raw.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return ensure_utc(parsed)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Render a datetime as an ISO string with a trailing Z."""
    if value is None:
        return None
    return ensure_utc(value).isoformat().replace("+00:00", "Z")


# =============================================================================
# NUMERIC HELPERS
# =============================================================================

def clamp(value: float, low: float, high: float) -> float:
    """Clamp to [low, high]. None and NaN collapse to low; infinities saturate."""
    if value is None or math.isnan(value):
        return low
    return max(low, min(high, value))


def clamp01(value: float) -> float:
    return clamp(value, 0.0, 1.0)
