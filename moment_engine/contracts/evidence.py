"""
Evidence Contract

Deterministic evidence primitives derived from a cluster's signals.
Recomputed on every evaluation and never persisted independently.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Optional

from .base import to_iso


@dataclass(frozen=True)
class Evidence:
    """
    Counts, timestamps and velocity for one cluster.

    Optional fields are None when they cannot be derived honestly
    (no valid timestamps, age too short for a stable velocity).
    """
    signal_count: int
    source_count: int
    first_seen_at: Optional[datetime] = None
    last_confirmed_at: Optional[datetime] = None
    age_hours: Optional[float] = None
    recency_mins: Optional[float] = None
    velocity_per_hour: Optional[float] = None
    quality_score: Optional[float] = None

    def __post_init__(self):
        if self.signal_count < 0:
            raise ValueError("signal_count must be non-negative")
        if self.source_count < 0:
            raise ValueError("source_count must be non-negative")

    def with_quality(self, quality_score: float) -> Evidence:
        """Return new Evidence carrying a quality score (immutable)."""
        return replace(self, quality_score=quality_score)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signalCount": self.signal_count,
            "sourceCount": self.source_count,
            "firstSeenAt": to_iso(self.first_seen_at),
            "lastConfirmedAt": to_iso(self.last_confirmed_at),
            "ageHours": self.age_hours,
            "recencyMins": self.recency_mins,
            "velocityPerHour": self.velocity_per_hour,
            "qualityScore": self.quality_score,
        }
