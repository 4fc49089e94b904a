"""
Moment Lifecycle Contract

Describes moment health truthfully using evidence-based scoring.

RULES:
======
- Time is used ONLY as a window for measuring evidence
- No rule may invalidate a moment purely because of age
- Every result carries a plain-language explanation built from numbers
- Refusal (INVALID with a reason) is a result, never an exception
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .base import to_iso


class MomentHealthState(Enum):
    """Three-state lifecycle health."""
    VALID = "VALID"
    WEAK = "WEAK"
    INVALID = "INVALID"


class InvalidReason(Enum):
    """Why a moment was refused. Present only when state is INVALID."""
    CANONICAL_MISSING = "CANONICAL_MISSING"
    NO_EVIDENCE = "NO_EVIDENCE"
    IDENTITY_DRIFT = "IDENTITY_DRIFT"


@dataclass(frozen=True)
class ThresholdConfig:
    """
    Lifecycle thresholds.

    Explicit and versioned. Never mutated after construction; a change
    means a new instance with a new `version`.
    """
    min_sis_existence: float = 0.18
    min_sis_valid: float = 0.55
    # Title-only evidence is noisy; 0.25 is a realistic floor.
    min_ics_single_source: float = 0.25
    # Richer multi-source identity can demand more.
    min_ics_multi_source: float = 0.45
    version: str = "lifecycle_v1"

    def __post_init__(self):
        for name in (
            "min_sis_existence",
            "min_sis_valid",
            "min_ics_single_source",
            "min_ics_multi_source",
        ):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0.0 and 1.0")
        if self.min_sis_existence > self.min_sis_valid:
            raise ValueError("min_sis_existence must not exceed min_sis_valid")
        if not self.version:
            raise ValueError("ThresholdConfig version must be non-empty")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "minSISExistence": self.min_sis_existence,
            "minSISValid": self.min_sis_valid,
            "minICSSingleSource": self.min_ics_single_source,
            "minICSMultiSource": self.min_ics_multi_source,
            "version": self.version,
        }


DEFAULT_THRESHOLDS = ThresholdConfig()


@dataclass(frozen=True)
class HealthExplanation:
    """Plain-language bullets, derived only from computed numbers."""
    signal: Tuple[str, ...] = field(default_factory=tuple)
    identity: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MomentHealth:
    """
    Lifecycle evaluator output. Always fully populated.

    `invalid_reason` is set if and only if `state` is INVALID.
    """
    state: MomentHealthState
    sis: float
    ics: float
    evaluated_at: datetime
    window_label: str
    explain: HealthExplanation
    invalid_reason: Optional[InvalidReason] = None

    def __post_init__(self):
        if not 0.0 <= self.sis <= 1.0:
            raise ValueError("sis must be between 0.0 and 1.0")
        if not 0.0 <= self.ics <= 1.0:
            raise ValueError("ics must be between 0.0 and 1.0")
        if (self.state == MomentHealthState.INVALID) != (self.invalid_reason is not None):
            raise ValueError("invalid_reason must be set exactly when state is INVALID")

    @property
    def is_refusal(self) -> bool:
        return self.state == MomentHealthState.INVALID

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "state": self.state.value,
            "SIS": self.sis,
            "ICS": self.ics,
            "evaluatedAt": to_iso(self.evaluated_at),
            "windowLabel": self.window_label,
            "explain": {
                "signal": list(self.explain.signal),
                "identity": list(self.explain.identity),
            },
        }
        if self.invalid_reason is not None:
            payload["invalidReason"] = self.invalid_reason.value
        return payload
