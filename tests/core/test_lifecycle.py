"""
Lifecycle Evaluator Tests

The evaluator must:
1. Refuse without a canonical identity (CANONICAL_MISSING)
2. Refuse without evidence (NO_EVIDENCE), never guess
3. Detect identity drift with a mode-sensitive threshold
4. Separate VALID from WEAK by signal integrity
5. Explain every result using only computed numbers
"""

import pytest
from datetime import timedelta

from moment_engine.contracts.lifecycle import (
    InvalidReason,
    MomentHealthState,
    ThresholdConfig,
)
from moment_engine.contracts.memory import LifecycleStatus
from moment_engine.core.lifecycle import (
    LifecycleEvaluator,
    compute_ics,
    compute_sis,
    evaluate_moment_lifecycle,
    lifecycle_status_for,
)
from moment_engine.temporal import LogicalClock

from tests.fixtures import (
    DRIFTED_CONTEXT,
    EMPTY_CONTEXT,
    HEALTHY_CONTEXT,
    NOW,
    THIN_CONTEXT,
    item,
    make_context,
    make_memory,
)


@pytest.fixture
def evaluator():
    return LifecycleEvaluator(clock=LogicalClock.fixed(NOW))


# =============================================================================
# SCORES
# =============================================================================

class TestSignalIntegrity:

    def test_saturates_at_three_signals_two_sources(self):
        assert compute_sis(HEALTHY_CONTEXT.signals) == pytest.approx(1.0)

    def test_single_signal(self):
        assert compute_sis(THIN_CONTEXT.signals) == pytest.approx(0.375)

    def test_empty(self):
        assert compute_sis(()) == 0.0

    def test_empty_sources_do_not_add_diversity(self):
        signals = (item("", ["summer"]), item("", ["desk"]))
        assert compute_sis(signals) == pytest.approx(0.75 * 2 / 3)


class TestIdentityContinuity:

    def test_healthy_overlap(self):
        continuity = compute_ics(make_memory(), HEALTHY_CONTEXT.signals)
        assert continuity.keyword_continuity == pytest.approx(0.75)
        assert continuity.entity_continuity == pytest.approx(1.0)
        assert continuity.ics == pytest.approx(0.85)

    def test_tokens_normalised_before_comparison(self):
        signals = (item("reddit", [" SUMMER ", "Desk", "office"], ["SLACK"]),)
        assert compute_ics(make_memory(), signals).ics == pytest.approx(1.0)

    def test_both_entity_sets_empty_count_as_agreement(self):
        memory = make_memory(entities=())
        signals = (item("reddit", ["summer", "desk", "office"]),)
        assert compute_ics(memory, signals).entity_continuity == 1.0

    def test_signal_order_does_not_matter(self):
        forward = compute_ics(make_memory(), HEALTHY_CONTEXT.signals)
        backward = compute_ics(make_memory(), tuple(reversed(HEALTHY_CONTEXT.signals)))
        assert forward == backward


# =============================================================================
# STATE MACHINE
# =============================================================================

class TestLifecycleStates:

    def test_healthy_is_valid(self, evaluator):
        health = evaluator.evaluate(make_memory(), HEALTHY_CONTEXT)

        assert health.state == MomentHealthState.VALID
        assert health.invalid_reason is None
        assert health.sis == pytest.approx(1.0)
        assert health.ics == pytest.approx(0.85)
        assert health.evaluated_at == NOW
        assert health.window_label == "last 24h"

    def test_thin_evidence_is_weak(self, evaluator):
        health = evaluator.evaluate(make_memory(), THIN_CONTEXT)

        assert health.state == MomentHealthState.WEAK
        assert health.invalid_reason is None
        assert health.ics == pytest.approx(0.4)
        assert "SIS below valid minimum (0.55); evidence is thin." in health.explain.signal

    def test_drift_is_invalid(self, evaluator):
        health = evaluator.evaluate(make_memory(), DRIFTED_CONTEXT)

        assert health.state == MomentHealthState.INVALID
        assert health.invalid_reason == InvalidReason.IDENTITY_DRIFT
        assert health.sis == pytest.approx(1.0)
        assert health.ics == 0.0
        assert health.explain.identity[-1] == (
            "Identity continuity below minimum (0.45) for multi-source mode."
        )

    def test_empty_window_is_no_evidence(self, evaluator):
        health = evaluator.evaluate(make_memory(), EMPTY_CONTEXT)

        assert health.state == MomentHealthState.INVALID
        assert health.invalid_reason == InvalidReason.NO_EVIDENCE
        assert health.sis == 0.0
        assert health.ics == 0.0
        assert health.explain.signal == (
            "Evidence window: last 24h.",
            "Signals matched to this moment: 0.",
            "SIS below existence minimum (0.18).",
        )
        assert health.explain.identity == (
            "Identity continuity cannot be evaluated without evidence.",
        )

    def test_sis_below_custom_existence_minimum(self, evaluator):
        thresholds = ThresholdConfig(min_sis_existence=0.3, version="strict")
        context = make_context(item("", ["summer"]))
        health = evaluator.evaluate(make_memory(), context, thresholds=thresholds)

        assert health.invalid_reason == InvalidReason.NO_EVIDENCE
        assert health.sis == pytest.approx(0.25)

    def test_missing_canonical_refuses_even_with_evidence(self, evaluator):
        memory = make_memory(keywords=("", "  "), entities=())
        health = evaluator.evaluate(memory, HEALTHY_CONTEXT)

        assert health.state == MomentHealthState.INVALID
        assert health.invalid_reason == InvalidReason.CANONICAL_MISSING
        assert health.sis == 0.0
        assert health.ics == 0.0
        assert health.explain.identity == (
            "Canonical identity missing (signature keywords and anchor entities empty).",
            "Refusing lifecycle evaluation to protect credibility.",
        )

    def test_entities_alone_are_a_canonical_identity(self, evaluator):
        memory = make_memory(keywords=(), entities=("slack",))
        health = evaluator.evaluate(memory, HEALTHY_CONTEXT)
        assert health.invalid_reason != InvalidReason.CANONICAL_MISSING


class TestModeSensitiveThreshold:
    """ICS of 0.3 passes in single-source mode and drifts in multi-source mode."""

    memory = make_memory(keywords=("summer", "desk"), entities=("slack",))

    def test_single_source_accepts(self, evaluator):
        context = make_context(item("reddit", ["summer"]), item("reddit", ["summer"]))
        health = evaluator.evaluate(self.memory, context)

        assert health.ics == pytest.approx(0.3)
        assert health.state == MomentHealthState.VALID
        assert health.explain.identity[-1] == (
            "Identity continuity within acceptable range for single-source mode (minimum 0.25)."
        )

    def test_multi_source_rejects(self, evaluator):
        context = make_context(item("reddit", ["summer"]), item("hn", ["summer"]))
        health = evaluator.evaluate(self.memory, context)

        assert health.ics == pytest.approx(0.3)
        assert health.invalid_reason == InvalidReason.IDENTITY_DRIFT

    def test_blank_source_does_not_make_multi_source(self, evaluator):
        context = make_context(item("reddit", ["summer"]), item("", ["summer"]))
        health = evaluator.evaluate(self.memory, context)

        assert health.state == MomentHealthState.VALID
        assert "Active sources: 1 (reddit)." in health.explain.signal


class TestExplanations:

    def test_bullets_built_from_numbers(self, evaluator):
        health = evaluator.evaluate(make_memory(), HEALTHY_CONTEXT)

        assert health.explain.signal == (
            "Evidence window: last 24h.",
            "Signals matched to this moment: 3.",
            "Active sources: 3 (reddit, hn, tiktok).",
            "SIS meets valid minimum (0.55).",
        )
        assert health.explain.identity[:2] == (
            "Keyword continuity: 75%.",
            "Entity continuity: 100%.",
        )

    def test_percentages_round_half_up(self, evaluator):
        # 1 shared of 8 keywords = 12.5%
        memory = make_memory(keywords=("a", "b", "c", "d"), entities=())
        context = make_context(item("reddit", ["a", "e", "f", "g", "h"]))
        health = evaluator.evaluate(memory, context)
        assert "Keyword continuity: 13%." in health.explain.identity


# =============================================================================
# DETERMINISM & PURITY
# =============================================================================

class TestDeterminism:

    def test_identical_inputs_identical_outputs(self):
        first = LifecycleEvaluator(clock=LogicalClock.fixed(NOW)).evaluate(make_memory(), HEALTHY_CONTEXT)
        second = LifecycleEvaluator(clock=LogicalClock.fixed(NOW)).evaluate(make_memory(), HEALTHY_CONTEXT)
        assert first == second

    def test_inputs_not_mutated(self, evaluator):
        memory = make_memory()
        before = memory.to_dict()
        evaluator.evaluate(memory, HEALTHY_CONTEXT)
        assert memory.to_dict() == before

    def test_age_alone_never_invalidates(self, evaluator):
        much_later = NOW + timedelta(days=365)
        health = evaluator.evaluate(make_memory(), HEALTHY_CONTEXT, now=much_later)
        assert health.state == MomentHealthState.VALID

    def test_functional_entry_point(self):
        health = evaluate_moment_lifecycle(make_memory(), HEALTHY_CONTEXT, now=NOW)
        assert health.state == MomentHealthState.VALID
        assert health.evaluated_at == NOW


class TestStatusMapping:

    @pytest.mark.parametrize("context, expected", [
        (HEALTHY_CONTEXT, LifecycleStatus.ACTIVE),
        (THIN_CONTEXT, LifecycleStatus.COOLING),
        (DRIFTED_CONTEXT, LifecycleStatus.HISTORICAL),
        (EMPTY_CONTEXT, LifecycleStatus.HISTORICAL),
    ])
    def test_health_maps_to_status(self, evaluator, context, expected):
        health = evaluator.evaluate(make_memory(), context)
        assert lifecycle_status_for(health, LifecycleStatus.ACTIVE) == expected

    def test_canonical_missing_leaves_status_unchanged(self, evaluator):
        memory = make_memory(keywords=(), entities=(), status=LifecycleStatus.COOLING)
        health = evaluator.evaluate(memory, HEALTHY_CONTEXT)
        assert lifecycle_status_for(health, memory.lifecycle_status) == LifecycleStatus.COOLING
