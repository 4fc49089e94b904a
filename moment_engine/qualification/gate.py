"""
Moment Quality Gate
===================

Combines the four quality pillars into a pass/fail qualification with
deterministic reason flags. A candidate that fails never becomes a
moment; the flags exist so regressions are catchable in tests.
"""

from __future__ import annotations
from typing import List, Optional, Sequence, Tuple

from ..contracts.base import clamp01
from ..contracts.quality import (
    DEFAULT_QUALIFICATION_THRESHOLDS,
    DEFAULT_QUALITY_WEIGHTS,
    MomentCandidate,
    MomentExplainability,
    MomentMaturity,
    MomentQualification,
    MomentQualityScore,
    QualificationThresholds,
    QualityWeights,
)
from .density import compute_signal_density
from .legibility import compute_cultural_legibility
from .narrative import compute_narrative_coherence
from .velocity import VelocityOptions, compute_velocity


MAX_PHRASES = 18
MAX_KEYWORDS = 24
MAX_LEGIBILITY_PHRASES = 6
LEGIBILITY_FALLBACK_CHARS = 220


def compute_overall_score(
    signal_density: float,
    velocity: float,
    narrative_coherence: float,
    cultural_legibility: float,
    weights: QualityWeights = DEFAULT_QUALITY_WEIGHTS
) -> float:
    """Weighted overall in [0, 1]; weights are normalised by their sum."""
    total = weights.total
    if total <= 0:
        return 0.0
    score = (
        clamp01(signal_density) * weights.signal_density
        + clamp01(velocity) * weights.velocity
        + clamp01(narrative_coherence) * weights.narrative_coherence
        + clamp01(cultural_legibility) * weights.cultural_legibility
    ) / total
    return clamp01(score)


def evaluate_against_thresholds(
    score: MomentQualityScore,
    unique_sources_count: int,
    total_signals: int,
    thresholds: QualificationThresholds = DEFAULT_QUALIFICATION_THRESHOLDS
) -> Tuple[bool, Tuple[str, ...]]:
    reasons: List[str] = []

    if unique_sources_count < thresholds.min_unique_sources:
        reasons.append("FAIL_SINGLE_SOURCE")
    if total_signals < thresholds.min_total_signals:
        reasons.append("FAIL_LOW_SIGNAL_COUNT")

    if score.signal_density < thresholds.min_signal_density:
        reasons.append("FAIL_LOW_SIGNAL_DENSITY")
    if score.velocity < thresholds.min_velocity:
        reasons.append("FAIL_LOW_VELOCITY")
    if score.narrative_coherence < thresholds.min_narrative_coherence:
        reasons.append("FAIL_LOW_COHERENCE")
    if score.cultural_legibility < thresholds.min_cultural_legibility:
        reasons.append("FAIL_LOW_LEGIBILITY")

    if score.overall < thresholds.min_overall:
        reasons.append("FAIL_LOW_OVERALL")

    return (not reasons, tuple(reasons))


def compute_maturity(velocity_score: float, total_signals: int) -> MomentMaturity:
    v = clamp01(velocity_score)
    if total_signals < 6 and v >= 0.62:
        return MomentMaturity.EMERGING
    if total_signals >= 6 and v >= 0.52:
        return MomentMaturity.FORMING
    if total_signals >= 12 and v < 0.52:
        return MomentMaturity.ESTABLISHED
    if v < 0.35:
        return MomentMaturity.EXPIRED
    return MomentMaturity.FORMING


def extract_phrases(candidate: MomentCandidate) -> Tuple[str, ...]:
    phrases = []
    for text in (candidate.title, candidate.description):
        if text and text.strip():
            phrases.append(text.strip())
    for signal in candidate.signals:
        for text in (signal.title, signal.summary):
            if text and text.strip():
                phrases.append(text.strip())
    return tuple(phrases[:MAX_PHRASES])


def qualify_moment(
    candidate: MomentCandidate,
    weights: QualityWeights = DEFAULT_QUALITY_WEIGHTS,
    thresholds: QualificationThresholds = DEFAULT_QUALIFICATION_THRESHOLDS,
    velocity_options: Optional[VelocityOptions] = None,
    compute_maturity_on_fail: bool = False
) -> MomentQualification:
    """Run the quality gate over one candidate."""
    density = compute_signal_density(candidate.signals)
    velocity = compute_velocity(candidate.signals, velocity_options)

    phrases = extract_phrases(candidate)
    keywords: Sequence[str] = candidate.declared_keywords[:MAX_KEYWORDS]
    narrative = compute_narrative_coherence(phrases, keywords)

    legibility_text = (
        candidate.title.strip()
        or candidate.description.strip()
        or " | ".join(phrases)[:LEGIBILITY_FALLBACK_CHARS]
    )
    legibility = compute_cultural_legibility(legibility_text, phrases[:MAX_LEGIBILITY_PHRASES])

    overall = compute_overall_score(
        density.score, velocity.score, narrative.score, legibility.score, weights
    )
    score = MomentQualityScore(
        signal_density=clamp01(density.score),
        velocity=clamp01(velocity.score),
        narrative_coherence=clamp01(narrative.score),
        cultural_legibility=clamp01(legibility.score),
        overall=overall,
    )

    passed, reasons = evaluate_against_thresholds(
        score, density.unique_sources_count, density.total_signals, thresholds
    )

    maturity = None
    if passed or compute_maturity_on_fail:
        maturity = compute_maturity(velocity.score, density.total_signals)

    return MomentQualification(
        passed=passed,
        score=score,
        reasons=reasons,
        maturity=maturity,
        explain=MomentExplainability(
            unique_sources=density.unique_sources,
            total_signals=density.total_signals,
            first_seen_at=candidate.first_seen_at,
            collapsed_from_ids=candidate.collapsed_from_ids,
        ),
        core_tokens=narrative.core_tokens,
    )
