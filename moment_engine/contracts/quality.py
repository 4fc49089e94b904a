"""
Moment Quality Contract

Deterministic scoring and qualification shapes that every candidate must
pass BEFORE it can be promoted to a moment.

Purpose:
- Prevent junk / keyword soup from surfacing
- Enforce multi-signal evidence
- Prefer inflection (early) over volume (late)

Pure types and defaults only. No model calls, no side effects.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class MomentMaturity(Enum):
    EMERGING = "emerging"
    FORMING = "forming"
    ESTABLISHED = "established"
    EXPIRED = "expired"


@dataclass(frozen=True)
class MomentQualityScore:
    """Normalised component scores, all in [0, 1]."""
    signal_density: float
    velocity: float
    narrative_coherence: float
    cultural_legibility: float
    overall: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "signalDensity": self.signal_density,
            "velocity": self.velocity,
            "narrativeCoherence": self.narrative_coherence,
            "culturalLegibility": self.cultural_legibility,
            "overall": self.overall,
        }


@dataclass(frozen=True)
class QualityWeights:
    """
    Weights for the overall score. Normalised at use time, so a
    misconfigured sum cannot push the overall score out of [0, 1].
    """
    signal_density: float = 0.28
    velocity: float = 0.22
    narrative_coherence: float = 0.28
    cultural_legibility: float = 0.22

    def __post_init__(self):
        for value in (
            self.signal_density,
            self.velocity,
            self.narrative_coherence,
            self.cultural_legibility,
        ):
            if value < 0:
                raise ValueError("quality weights must be non-negative")

    @property
    def total(self) -> float:
        return (
            self.signal_density
            + self.velocity
            + self.narrative_coherence
            + self.cultural_legibility
        )


@dataclass(frozen=True)
class QualificationThresholds:
    """Hard thresholds for the quality gate."""
    min_overall: float = 0.68

    # Per-pillar minimums so one strong component cannot carry a weak one.
    min_signal_density: float = 0.55
    min_velocity: float = 0.45
    min_narrative_coherence: float = 0.55
    min_cultural_legibility: float = 0.50

    min_unique_sources: int = 2
    min_total_signals: int = 4


DEFAULT_QUALITY_WEIGHTS = QualityWeights()
DEFAULT_QUALIFICATION_THRESHOLDS = QualificationThresholds()


@dataclass(frozen=True)
class CandidateSignal:
    """One signal inside a candidate moment."""
    id: str
    source: str
    created_at: Optional[str] = None
    title: str = ""
    summary: str = ""
    keywords: Tuple[str, ...] = field(default_factory=tuple)
    entities: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MomentCandidate:
    """A clustered concept awaiting qualification."""
    id: str
    signals: Tuple[CandidateSignal, ...] = field(default_factory=tuple)
    title: str = ""
    description: str = ""
    keywords: Tuple[str, ...] = field(default_factory=tuple)
    first_seen_at: Optional[str] = None
    collapsed_from_ids: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.id or not isinstance(self.id, str):
            raise ValueError("MomentCandidate id must be a non-empty string")

    @property
    def declared_keywords(self) -> Tuple[str, ...]:
        """Candidate keywords, falling back to the signals' keywords."""
        if self.keywords:
            return self.keywords
        return tuple(k for s in self.signals for k in s.keywords)


@dataclass(frozen=True)
class MomentExplainability:
    """Provenance payload kept alongside a qualification."""
    unique_sources: Tuple[str, ...]
    total_signals: int
    first_seen_at: Optional[str] = None
    collapsed_from_ids: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MomentQualification:
    """Full result of the quality gate."""
    passed: bool
    score: MomentQualityScore
    # Short deterministic flags, e.g. FAIL_SINGLE_SOURCE
    reasons: Tuple[str, ...]
    explain: MomentExplainability
    maturity: Optional[MomentMaturity] = None
    core_tokens: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pass": self.passed,
            "score": self.score.to_dict(),
            "reasons": list(self.reasons),
            "maturity": self.maturity.value if self.maturity else None,
            "explain": {
                "uniqueSources": list(self.explain.unique_sources),
                "totalSignals": self.explain.total_signals,
                "firstSeenAt": self.explain.first_seen_at,
                "collapsedFromIds": list(self.explain.collapsed_from_ids),
            },
        }
