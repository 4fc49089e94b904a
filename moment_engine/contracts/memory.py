"""
Moment Memory Record Contract

The durable identity of a qualified moment. Write-once by contract:
identity fields are fixed at qualification time. Only `lifecycle_status`
is re-derived on each evaluation, and only by producing a NEW record.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Tuple

from .base import to_iso


class LifecycleStatus(Enum):
    ACTIVE = "active"
    COOLING = "cooling"
    HISTORICAL = "historical"


@dataclass(frozen=True)
class CanonicalIdentity:
    """
    Deterministic keyword/entity fingerprint fixed at qualification.

    Ground truth for drift comparison. An identity with neither keywords
    nor entities cannot be evaluated against; evaluation must refuse.
    """
    signature_keywords: Tuple[str, ...] = field(default_factory=tuple)
    anchor_entities: Tuple[str, ...] = field(default_factory=tuple)
    identity_basis: str = "declared_keywords"

    @property
    def is_empty(self) -> bool:
        has_keyword = any(isinstance(k, str) and k.strip() for k in self.signature_keywords)
        has_entity = any(isinstance(e, str) and e.strip() for e in self.anchor_entities)
        return not (has_keyword or has_entity)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signatureKeywords": list(self.signature_keywords),
            "anchorEntities": list(self.anchor_entities),
            "identityBasis": self.identity_basis,
        }


@dataclass(frozen=True)
class QualificationSnapshot:
    """Scores the moment had when it passed the quality gate."""
    velocity_score: float
    coherence_score: float
    novelty_score: float
    qualification_threshold: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "velocityScore": self.velocity_score,
            "coherenceScore": self.coherence_score,
            "noveltyScore": self.novelty_score,
            "qualificationThreshold": self.qualification_threshold,
        }


@dataclass(frozen=True)
class MomentSourceRef:
    source: str
    cluster_id: str


@dataclass(frozen=True)
class MomentMemoryRecord:
    """Write-once moment memory."""
    moment_id: str
    name: str
    sources: Tuple[MomentSourceRef, ...]
    qualified_at: datetime
    decay_horizon_hours: float
    lifecycle_status: LifecycleStatus
    qualification: QualificationSnapshot
    behaviour_version: str
    qualification_hash: str
    canonical: CanonicalIdentity = field(default_factory=CanonicalIdentity)

    def __post_init__(self):
        if not self.moment_id or not isinstance(self.moment_id, str):
            raise ValueError("moment_id must be a non-empty string")
        if self.decay_horizon_hours <= 0:
            raise ValueError("decay_horizon_hours must be positive")

    def with_lifecycle_status(self, status: LifecycleStatus) -> MomentMemoryRecord:
        """The only permitted change: a new record with a new status."""
        return replace(self, lifecycle_status=status)

    def identity_fields(self) -> Tuple[Any, ...]:
        """Everything except lifecycle status; must never change once written."""
        return (
            self.moment_id,
            self.name,
            self.sources,
            self.qualified_at,
            self.decay_horizon_hours,
            self.qualification,
            self.behaviour_version,
            self.qualification_hash,
            self.canonical,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "momentId": self.moment_id,
            "name": self.name,
            "sources": [
                {"source": ref.source, "clusterId": ref.cluster_id}
                for ref in self.sources
            ],
            "qualifiedAt": to_iso(self.qualified_at),
            "decayHorizonHours": self.decay_horizon_hours,
            "lifecycleStatus": self.lifecycle_status.value,
            "qualification": self.qualification.to_dict(),
            "behaviourVersion": self.behaviour_version,
            "qualificationHash": self.qualification_hash,
            "canonical": self.canonical.to_dict(),
        }
