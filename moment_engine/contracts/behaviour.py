"""
Behaviour Version Contract

A behaviour version pins every threshold and weight the engine uses.
Once created it is frozen: any change requires a new version string,
never an in-place edit.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
import hashlib
import json

from .base import to_iso
from .lifecycle import ThresholdConfig, DEFAULT_THRESHOLDS
from .quality import (
    QualificationThresholds,
    QualityWeights,
    DEFAULT_QUALIFICATION_THRESHOLDS,
    DEFAULT_QUALITY_WEIGHTS,
)


AUTHORED_BY_VALUES = ("system", "human")


@dataclass(frozen=True)
class BehaviourVersion:
    behaviour_version: str
    created_at: datetime
    description: str
    authored_by: str = "system"
    quality_thresholds: QualificationThresholds = field(
        default_factory=lambda: DEFAULT_QUALIFICATION_THRESHOLDS
    )
    quality_weights: QualityWeights = field(
        default_factory=lambda: DEFAULT_QUALITY_WEIGHTS
    )
    lifecycle_thresholds: ThresholdConfig = field(
        default_factory=lambda: DEFAULT_THRESHOLDS
    )

    def __post_init__(self):
        if not self.behaviour_version:
            raise ValueError("behaviour_version must be non-empty")
        if self.authored_by not in AUTHORED_BY_VALUES:
            raise ValueError(f"authored_by must be one of {AUTHORED_BY_VALUES}")

    def fingerprint(self) -> str:
        """Deterministic hash of the full persisted shape."""
        payload = {
            "behaviourVersion": self.behaviour_version,
            "createdAt": to_iso(self.created_at),
            "description": self.description,
            "authoredBy": self.authored_by,
            "qualityThresholds": vars(self.quality_thresholds),
            "qualityWeights": vars(self.quality_weights),
            "lifecycleThresholds": self.lifecycle_thresholds.to_dict(),
        }
        encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


DEFAULT_BEHAVIOUR = BehaviourVersion(
    behaviour_version="behaviour_v1.0.0",
    created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    description="Conservative defaults: multi-source evidence, title-tolerant drift.",
)
