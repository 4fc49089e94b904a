"""
Intelligence and Decision Contract Tests

Boundary guards must never let an empty or untraceable output through,
and decision surfaces must obey the hard rules.
"""

import pytest

from moment_engine.contracts.decision import (
    ConfidenceTrajectory,
    DecisionInputs,
    DecisionState,
    DecisionSurface,
    DecisionSurfacer,
    SignalStrength,
    check_decision_contract,
)
from moment_engine.contracts.evidence import Evidence
from moment_engine.contracts.intelligence import (
    IntelligenceErrorCode,
    IntelligenceProvenance,
    IntelligenceResult,
    ProvenanceError,
    SignalFeed,
    assert_provenance,
    collect_sources,
    require_non_empty,
    require_signals,
)

from tests.fixtures import NOW, make_event


class TestSignalGuards:

    def test_missing_feed_is_unavailable(self):
        result = require_signals(None)
        assert not result.ok
        assert result.error.code == IntelligenceErrorCode.SIGNALS_UNAVAILABLE

    def test_unavailable_feed_reports_sources(self):
        result = require_signals(SignalFeed(available=False, sources=("hn",)))
        assert result.error.code == IntelligenceErrorCode.SIGNALS_UNAVAILABLE
        assert result.to_dict()["error"]["meta"] == {"sources": ["hn"]}

    def test_available_but_empty(self):
        result = require_signals(SignalFeed(available=True, items=(), sources=("reddit",)))
        assert result.error.code == IntelligenceErrorCode.SIGNALS_EMPTY

    def test_usable_feed_passes(self):
        feed = SignalFeed(available=True, items=(make_event("e1"),))
        result = require_signals(feed)
        assert result.ok
        assert result.data is feed

    def test_non_list_output_is_malformed(self):
        result = require_non_empty("not a list", "angles")
        assert result.error.code == IntelligenceErrorCode.INTELLIGENCE_MALFORMED
        assert "angles" in result.error.message

    def test_empty_output_is_blocked(self):
        result = require_non_empty([], "angles")
        assert result.error.code == IntelligenceErrorCode.INTELLIGENCE_EMPTY

    def test_success_dict(self):
        assert IntelligenceResult.success([1]).to_dict() == {"ok": True, "data": [1]}

    def test_collect_sources_first_seen_order(self):
        events = [make_event("a", "reddit"), make_event("b", "hn"), make_event("c", "reddit")]
        assert collect_sources(events) == ("reddit", "hn")


class TestProvenance:

    def test_complete_provenance_passes(self):
        assert_provenance(IntelligenceProvenance("m1", "behaviour_v1.0.0", "abc"))

    @pytest.mark.parametrize("provenance", [
        None,
        IntelligenceProvenance("", "behaviour_v1.0.0", "abc"),
        IntelligenceProvenance("m1", "", "abc"),
        IntelligenceProvenance("m1", "behaviour_v1.0.0", ""),
    ])
    def test_incomplete_provenance_blocked(self, provenance):
        with pytest.raises(ProvenanceError):
            assert_provenance(provenance)


def surface(state, strength, trajectory, insufficient=False):
    return DecisionSurface(
        decision_state=state,
        signal_strength=strength,
        confidence_trajectory=trajectory,
        rationale="fixture",
        insufficient_evidence=insufficient,
    )


class TestDecisionContract:

    def test_inputs_from_evidence(self):
        evidence = Evidence(signal_count=4, source_count=2, first_seen_at=NOW, quality_score=61.5)
        inputs = DecisionInputs.from_evidence(evidence)
        assert inputs.signal_count == 4
        assert inputs.quality_score == 61.5
        assert inputs.to_dict()["firstSeenAt"] == "2026-03-14T18:00:00Z"

    def test_missing_quality_becomes_zero(self):
        inputs = DecisionInputs.from_evidence(Evidence(signal_count=1, source_count=1))
        assert inputs.quality_score == 0.0

    def test_base_surfacer_is_abstract(self):
        with pytest.raises(NotImplementedError):
            DecisionSurfacer().surface(DecisionInputs(1, 1, 50.0))

    def test_compliant_surface(self):
        inputs = DecisionInputs(signal_count=6, source_count=3, quality_score=80.0)
        compliant = surface(DecisionState.ACT, SignalStrength.STRONG, ConfidenceTrajectory.ACCELERATING)
        assert check_decision_contract(inputs, compliant) == []

    def test_act_with_weak_strength(self):
        inputs = DecisionInputs(signal_count=6, source_count=3, quality_score=80.0)
        result = check_decision_contract(
            inputs, surface(DecisionState.ACT, SignalStrength.WEAK, ConfidenceTrajectory.STABLE)
        )
        assert result == ["ACT_WITH_WEAK_STRENGTH"]

    def test_act_while_weakening(self):
        inputs = DecisionInputs(signal_count=6, source_count=3, quality_score=80.0)
        result = check_decision_contract(
            inputs, surface(DecisionState.ACT, SignalStrength.STRONG, ConfidenceTrajectory.WEAKENING)
        )
        assert result == ["ACT_WITH_WEAKENING_TRAJECTORY"]

    def test_act_with_insufficient_evidence(self):
        inputs = DecisionInputs(signal_count=6, source_count=3, quality_score=80.0)
        result = check_decision_contract(
            inputs,
            surface(DecisionState.ACT, SignalStrength.MODERATE, ConfidenceTrajectory.STABLE, True),
        )
        assert result == ["ACT_WITH_INSUFFICIENT_EVIDENCE"]

    def test_zero_signals_must_be_flagged(self):
        inputs = DecisionInputs(signal_count=0, source_count=1, quality_score=0.0)
        result = check_decision_contract(
            inputs, surface(DecisionState.WAIT, SignalStrength.MODERATE, ConfidenceTrajectory.STABLE)
        )
        assert "INSUFFICIENT_EVIDENCE_NOT_FLAGGED" in result
        assert "STRENGTH_WITHOUT_EVIDENCE" in result

    def test_zero_signals_flagged_and_weak_is_compliant(self):
        inputs = DecisionInputs(signal_count=0, source_count=1, quality_score=0.0)
        result = check_decision_contract(
            inputs,
            surface(DecisionState.REFRESH, SignalStrength.WEAK, ConfidenceTrajectory.VOLATILE, True),
        )
        assert result == []
