"""
Quality Scorer
==============

Blends evidence primitives into one bounded quality number in [0, 100].

Each component is squashed into [0, 100] on its own before blending, so
no single input can dominate:
- score:    clamp(avg_score, 0, 300) / 3
- volume:   clamp(log10(1 + volume) * 40, 0, 100)
- velocity: clamp(velocity_per_hour * 15, 0, 100), 0 when unknown

Deterministic to 2 decimal places. No randomness, no side effects.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import math

from ..contracts.base import clamp
from ..contracts.evidence import Evidence
from ..contracts.signals import SignalCluster


SCORE_WEIGHT = 0.55
VOLUME_WEIGHT = 0.30
VELOCITY_WEIGHT = 0.15


@dataclass(frozen=True)
class QualityBreakdown:
    score_component: float
    volume_component: float
    velocity_component: float
    total: float


class QualityScorer:

    def breakdown(
        self,
        avg_score: float,
        total_volume: float,
        velocity_per_hour: Optional[float] = None
    ) -> QualityBreakdown:
        score_component = clamp(avg_score, 0.0, 300.0) / 3.0

        volume = max(0.0, total_volume or 0.0)
        volume_component = clamp(math.log10(1.0 + volume) * 40.0, 0.0, 100.0)

        velocity_component = 0.0
        if velocity_per_hour is not None:
            velocity_component = clamp(velocity_per_hour * 15.0, 0.0, 100.0)

        total = (
            SCORE_WEIGHT * score_component
            + VOLUME_WEIGHT * volume_component
            + VELOCITY_WEIGHT * velocity_component
        )
        return QualityBreakdown(
            score_component=score_component,
            volume_component=volume_component,
            velocity_component=velocity_component,
            total=round(clamp(total, 0.0, 100.0), 2),
        )

    def score(
        self,
        avg_score: float,
        total_volume: float,
        velocity_per_hour: Optional[float] = None
    ) -> float:
        return self.breakdown(avg_score, total_volume, velocity_per_hour).total

    def score_cluster(self, cluster: SignalCluster, evidence: Evidence) -> float:
        """Score a cluster using its average score, summed volume and velocity."""
        return self.score(
            cluster.average_score,
            cluster.total_volume,
            evidence.velocity_per_hour,
        )
