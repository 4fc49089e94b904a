"""
Moment Lifecycle Evaluator
==========================

Drift-detection state machine. Given a moment's canonical identity and a
fresh window of signals, computes:

- SIS (Signal Integrity Score): how much, and how diverse, the evidence is
- ICS (Identity Continuity Score): how closely the evidence still matches
  the canonical identity

and classifies health as VALID / WEAK / INVALID.

EVALUATION ORDER (short-circuiting):
====================================
1. Canonical identity missing   -> INVALID / CANONICAL_MISSING
2. No signals or SIS too low    -> INVALID / NO_EVIDENCE
3. ICS below mode threshold     -> INVALID / IDENTITY_DRIFT
4. SIS >= min_sis_valid         -> VALID, otherwise WEAK

Single-source evidence (e.g. title-only mode) has low identity bandwidth,
so it is held to a lower ICS floor than multi-source evidence; otherwise
everything would "drift" artificially.

BOUNDARY ENFORCEMENT:
- Never raises for insufficient evidence; refusal is a typed result
- Explanations are built only from the numbers used for the decision
- No wall-clock reads except through the injected clock
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence, Tuple
import math

from ..contracts.base import clamp01, ensure_utc
from ..contracts.lifecycle import (
    DEFAULT_THRESHOLDS,
    HealthExplanation,
    InvalidReason,
    MomentHealth,
    MomentHealthState,
    ThresholdConfig,
)
from ..contracts.memory import LifecycleStatus, MomentMemoryRecord
from ..contracts.signals import MomentSignalContext, SignalItem
from ..temporal.clock import LogicalClock
from .similarity import jaccard, normalize_tokens, union_tokens


VOLUME_SATURATION = 3      # signals for a full volume score
DIVERSITY_SATURATION = 2   # sources for a full diversity score
SIS_VOLUME_WEIGHT = 0.75
SIS_DIVERSITY_WEIGHT = 0.25
ICS_KEYWORD_WEIGHT = 0.6
ICS_ENTITY_WEIGHT = 0.4


@dataclass(frozen=True)
class IdentityContinuity:
    ics: float
    keyword_continuity: float
    entity_continuity: float


def active_sources(signals: Sequence[SignalItem]) -> Tuple[str, ...]:
    """Distinct non-empty sources in first-seen order."""
    seen = {}
    for signal in signals:
        if isinstance(signal.source, str) and signal.source:
            seen.setdefault(signal.source, None)
    return tuple(seen)


def compute_sis(signals: Sequence[SignalItem]) -> float:
    volume_score = clamp01(len(signals) / VOLUME_SATURATION)
    diversity_score = clamp01(len(active_sources(signals)) / DIVERSITY_SATURATION)
    return clamp01(SIS_VOLUME_WEIGHT * volume_score + SIS_DIVERSITY_WEIGHT * diversity_score)


def compute_ics(
    memory: MomentMemoryRecord,
    signals: Sequence[SignalItem]
) -> IdentityContinuity:
    canonical_keywords = normalize_tokens(memory.canonical.signature_keywords)
    canonical_entities = normalize_tokens(memory.canonical.anchor_entities)

    evidence_keywords = union_tokens(s.keywords for s in signals)
    evidence_entities = union_tokens(s.entities for s in signals)

    keyword_continuity = jaccard(canonical_keywords, evidence_keywords)
    entity_continuity = jaccard(canonical_entities, evidence_entities)

    # In title-only mode keywords behave like anchors too.
    ics = clamp01(ICS_KEYWORD_WEIGHT * keyword_continuity + ICS_ENTITY_WEIGHT * entity_continuity)
    return IdentityContinuity(
        ics=ics,
        keyword_continuity=keyword_continuity,
        entity_continuity=entity_continuity,
    )


def has_canonical_identity(memory: MomentMemoryRecord) -> bool:
    return bool(
        normalize_tokens(memory.canonical.signature_keywords)
        or normalize_tokens(memory.canonical.anchor_entities)
    )


def _percent(value: float) -> int:
    # Half-up, so 0.125 -> 13 rather than banker's rounding
    return int(math.floor(value * 100 + 0.5))


class LifecycleEvaluator:
    """
    Evaluate moment health against explicit thresholds.

    Holds only immutable configuration and a clock; safe to share across
    threads.
    """

    def __init__(
        self,
        thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
        clock: Optional[LogicalClock] = None
    ):
        self._thresholds = thresholds
        self._clock = clock or LogicalClock.live()

    @property
    def thresholds(self) -> ThresholdConfig:
        return self._thresholds

    def evaluate(
        self,
        memory: MomentMemoryRecord,
        signal_context: MomentSignalContext,
        thresholds: Optional[ThresholdConfig] = None,
        now: Optional[datetime] = None
    ) -> MomentHealth:
        th = thresholds or self._thresholds
        evaluated_at = ensure_utc(now) if now is not None else self._clock.now()
        window = signal_context.window_label
        signals = tuple(signal_context.signals)

        window_bullets = (
            f"Evidence window: {window}.",
            f"Signals matched to this moment: {len(signals)}.",
        )

        # 1. Refuse without ground truth
        if not has_canonical_identity(memory):
            return MomentHealth(
                state=MomentHealthState.INVALID,
                sis=0.0,
                ics=0.0,
                evaluated_at=evaluated_at,
                window_label=window,
                invalid_reason=InvalidReason.CANONICAL_MISSING,
                explain=HealthExplanation(
                    signal=window_bullets,
                    identity=(
                        "Canonical identity missing (signature keywords and anchor entities empty).",
                        "Refusing lifecycle evaluation to protect credibility.",
                    ),
                ),
            )

        # 2. Signal integrity
        sis = compute_sis(signals)
        if not signals or sis < th.min_sis_existence:
            return MomentHealth(
                state=MomentHealthState.INVALID,
                sis=sis,
                ics=0.0,
                evaluated_at=evaluated_at,
                window_label=window,
                invalid_reason=InvalidReason.NO_EVIDENCE,
                explain=HealthExplanation(
                    signal=window_bullets + (
                        f"SIS below existence minimum ({th.min_sis_existence}).",
                    ),
                    identity=("Identity continuity cannot be evaluated without evidence.",),
                ),
            )

        # 3. Identity continuity
        continuity = compute_ics(memory, signals)
        sources = active_sources(signals)
        single_source = len(sources) <= 1
        min_ics = th.min_ics_single_source if single_source else th.min_ics_multi_source
        mode = "single-source" if single_source else "multi-source"

        signal_bullets = window_bullets + (
            f"Active sources: {len(sources)} ({', '.join(sources)}).",
        )
        continuity_bullets = (
            f"Keyword continuity: {_percent(continuity.keyword_continuity)}%.",
            f"Entity continuity: {_percent(continuity.entity_continuity)}%.",
        )

        # 4. Mode-sensitive drift threshold
        if continuity.ics < min_ics:
            return MomentHealth(
                state=MomentHealthState.INVALID,
                sis=sis,
                ics=continuity.ics,
                evaluated_at=evaluated_at,
                window_label=window,
                invalid_reason=InvalidReason.IDENTITY_DRIFT,
                explain=HealthExplanation(
                    signal=signal_bullets,
                    identity=continuity_bullets + (
                        f"Identity continuity below minimum ({min_ics}) for {mode} mode.",
                    ),
                ),
            )

        # 5. Final health
        state = MomentHealthState.VALID if sis >= th.min_sis_valid else MomentHealthState.WEAK
        strength_bullet = (
            f"SIS meets valid minimum ({th.min_sis_valid})."
            if state == MomentHealthState.VALID
            else f"SIS below valid minimum ({th.min_sis_valid}); evidence is thin."
        )
        return MomentHealth(
            state=state,
            sis=sis,
            ics=continuity.ics,
            evaluated_at=evaluated_at,
            window_label=window,
            explain=HealthExplanation(
                signal=signal_bullets + (strength_bullet,),
                identity=continuity_bullets + (
                    f"Identity continuity within acceptable range for {mode} mode (minimum {min_ics}).",
                ),
            ),
        )


def evaluate_moment_lifecycle(
    memory: MomentMemoryRecord,
    signal_context: MomentSignalContext,
    thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
    now: Optional[datetime] = None,
    clock: Optional[LogicalClock] = None
) -> MomentHealth:
    """Functional entry point; see LifecycleEvaluator.evaluate."""
    return LifecycleEvaluator(thresholds, clock).evaluate(memory, signal_context, now=now)


def lifecycle_status_for(
    health: MomentHealth,
    current: LifecycleStatus
) -> LifecycleStatus:
    """
    Map a health result onto the record's lifecycle status.

    CANONICAL_MISSING is a refusal to judge, so the status is left as is.
    """
    if health.state == MomentHealthState.VALID:
        return LifecycleStatus.ACTIVE
    if health.state == MomentHealthState.WEAK:
        return LifecycleStatus.COOLING
    if health.invalid_reason == InvalidReason.CANONICAL_MISSING:
        return current
    return LifecycleStatus.HISTORICAL
