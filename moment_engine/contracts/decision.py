"""
Decision Surfacing Contract

The decision-surfacing collaborator maps evidence + quality onto action
labels (ACT / WAIT / REFRESH). Its algorithm lives outside this package;
only the interface and the hard rules every implementation must obey are
defined here.

HARD RULES:
===========
- Pure function of its inputs
- Never ACT with WEAK signal strength
- Never ACT on a WEAKENING trajectory
- Insufficient evidence is flagged explicitly, never guessed around
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .base import to_iso
from .evidence import Evidence


class DecisionState(Enum):
    ACT = "ACT"
    WAIT = "WAIT"
    REFRESH = "REFRESH"


class SignalStrength(Enum):
    WEAK = "WEAK"
    MODERATE = "MODERATE"
    STRONG = "STRONG"


class ConfidenceTrajectory(Enum):
    ACCELERATING = "ACCELERATING"
    STABLE = "STABLE"
    WEAKENING = "WEAKENING"
    VOLATILE = "VOLATILE"


@dataclass(frozen=True)
class DecisionInputs:
    signal_count: int
    source_count: int
    quality_score: float
    first_seen_at: Optional[datetime] = None
    last_confirmed_at: Optional[datetime] = None

    @staticmethod
    def from_evidence(evidence: Evidence) -> DecisionInputs:
        return DecisionInputs(
            signal_count=evidence.signal_count,
            source_count=evidence.source_count,
            quality_score=evidence.quality_score if evidence.quality_score is not None else 0.0,
            first_seen_at=evidence.first_seen_at,
            last_confirmed_at=evidence.last_confirmed_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signalCount": self.signal_count,
            "sourceCount": self.source_count,
            "qualityScore": self.quality_score,
            "firstSeenAt": to_iso(self.first_seen_at),
            "lastConfirmedAt": to_iso(self.last_confirmed_at),
        }


@dataclass(frozen=True)
class DecisionSurface:
    decision_state: DecisionState
    signal_strength: SignalStrength
    confidence_trajectory: ConfidenceTrajectory
    rationale: str
    insufficient_evidence: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "decisionState": self.decision_state.value,
            "signalStrength": self.signal_strength.value,
            "confidenceTrajectory": self.confidence_trajectory.value,
            "decisionRationale": self.rationale,
            "insufficientEvidence": self.insufficient_evidence,
        }


class DecisionSurfacer:
    """
    Abstract decision-surfacing collaborator.

    Implementations live outside this package and are injected into the
    engine. They must be pure functions of `inputs`.
    """

    def surface(self, inputs: DecisionInputs) -> DecisionSurface:
        raise NotImplementedError


def check_decision_contract(
    inputs: DecisionInputs,
    surface: DecisionSurface
) -> List[str]:
    """
    Return the list of hard-rule violations (empty when compliant).

    Violations are reported, not repaired: a collaborator that breaks the
    contract must be fixed, not silently downgraded here.
    """
    violations: List[str] = []
    acting = surface.decision_state == DecisionState.ACT

    if acting and surface.signal_strength == SignalStrength.WEAK:
        violations.append("ACT_WITH_WEAK_STRENGTH")
    if acting and surface.confidence_trajectory == ConfidenceTrajectory.WEAKENING:
        violations.append("ACT_WITH_WEAKENING_TRAJECTORY")
    if acting and surface.insufficient_evidence:
        violations.append("ACT_WITH_INSUFFICIENT_EVIDENCE")
    if inputs.signal_count == 0 and not surface.insufficient_evidence:
        violations.append("INSUFFICIENT_EVIDENCE_NOT_FLAGGED")
    if inputs.signal_count == 0 and surface.signal_strength != SignalStrength.WEAK:
        violations.append("STRENGTH_WITHOUT_EVIDENCE")

    return violations
