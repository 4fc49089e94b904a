"""
Engine Orchestration Module

Unified interface that coordinates the layers while keeping their
boundaries intact.

LAYER FLOW:
===========
1. Normalization: payloads -> frozen contracts (callers or the API)
2. Core: SignalCluster -> Evidence + quality + presentation status
3. Qualification: MomentCandidate -> MomentQualification -> memory record
4. Storage: write-once moment memory, lifecycle status write-back
5. Core: memory + fresh evidence window -> MomentHealth
6. Observability: records every step above

DESIGN PRINCIPLES:
==================
1. Layers communicate ONLY through contracts
2. All operations are traceable through observability
3. Presentation status never overrides lifecycle health
4. Failures are returned as data (Result / IntelligenceResult)
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
import logging
import os

from .contracts.base import Error, ErrorCode, Result, ensure_utc
from .contracts.behaviour import BehaviourVersion, DEFAULT_BEHAVIOUR
from .contracts.decision import (
    DecisionInputs,
    DecisionSurfacer,
    check_decision_contract,
)
from .contracts.evidence import Evidence
from .contracts.intelligence import (
    IntelligenceErrorCode,
    IntelligenceProvenance,
    IntelligenceResult,
    IntelligentOutputEnvelope,
    ProvenanceError,
    SignalFeed,
    assert_provenance,
    require_non_empty,
    require_signals,
)
from .contracts.lifecycle import MomentHealth
from .contracts.memory import MomentMemoryRecord
from .contracts.quality import MomentCandidate, MomentQualification
from .contracts.signals import MomentSignalContext, SignalCluster
from .core.classifier import TrendClassification, TrendClassifier
from .core.evidence import EvidenceAggregator
from .core.lifecycle import LifecycleEvaluator, lifecycle_status_for
from .core.quality import QualityScorer
from .core.topology import DEFAULT_COLLAPSE_THRESHOLD, MomentTopology
from .observability import ObservabilityConfig, ObservabilityEngine
from .qualification.gate import qualify_moment
from .qualification.memory_builder import (
    DEFAULT_DECAY_HORIZON_HOURS,
    build_memory_record,
)
from .storage import (
    BehaviourVersionStore,
    InMemoryMomentMemoryStore,
    MomentMemoryStore,
)
from .temporal.clock import LogicalClock


logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass(frozen=True)
class EngineConfig:
    """Unified configuration for the engine."""
    behaviour: BehaviourVersion = DEFAULT_BEHAVIOUR
    decay_horizon_hours: float = DEFAULT_DECAY_HORIZON_HOURS
    max_workers: int = 4
    collapse_threshold: float = DEFAULT_COLLAPSE_THRESHOLD
    log_level: str = "INFO"
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    def __post_init__(self):
        if self.decay_horizon_hours <= 0:
            raise ValueError("decay_horizon_hours must be positive")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if not 0.0 < self.collapse_threshold <= 1.0:
            raise ValueError("collapse_threshold must be in (0, 1]")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> EngineConfig:
        """
        Build a config from MOMENT_ENGINE_* variables.

        Unset variables keep their defaults; unparseable ones raise ValueError.
        """
        env = os.environ if environ is None else environ
        kwargs: Dict[str, Any] = {}

        if env.get("MOMENT_ENGINE_DECAY_HOURS"):
            kwargs["decay_horizon_hours"] = float(env["MOMENT_ENGINE_DECAY_HOURS"])
        if env.get("MOMENT_ENGINE_WORKERS"):
            kwargs["max_workers"] = int(env["MOMENT_ENGINE_WORKERS"])
        if env.get("MOMENT_ENGINE_COLLAPSE_THRESHOLD"):
            kwargs["collapse_threshold"] = float(env["MOMENT_ENGINE_COLLAPSE_THRESHOLD"])
        if env.get("MOMENT_ENGINE_LOG_LEVEL"):
            kwargs["log_level"] = env["MOMENT_ENGINE_LOG_LEVEL"].upper()

        return cls(**kwargs)


# =============================================================================
# RESULT SHAPES
# =============================================================================

@dataclass(frozen=True)
class TrendAssessment:
    """Presentation view of one cluster. Carries no lifecycle authority."""
    cluster_id: str
    label: str
    description: str
    evidence: Evidence
    classification: TrendClassification

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.cluster_id,
            "label": self.label,
            "description": self.description,
            "status": self.classification.status.value,
            "momentumLabel": self.classification.momentum_label,
            "formatLabel": self.classification.format_label,
            "category": self.classification.category,
            "evidence": self.evidence.to_dict(),
        }


@dataclass(frozen=True)
class QualificationOutcome:
    """Gate result for one (possibly collapsed) candidate."""
    candidate: MomentCandidate
    qualification: MomentQualification
    record: Optional[MomentMemoryRecord] = None
    error: Optional[Error] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "candidateId": self.candidate.id,
            "qualification": self.qualification.to_dict(),
            "record": self.record.to_dict() if self.record else None,
            "error": self.error.to_dict() if self.error else None,
        }


# =============================================================================
# ENGINE
# =============================================================================

class MomentIntelligenceEngine:
    """
    Orchestrates assessment, qualification and lifecycle evaluation.

    Core components are stateless; the only shared mutable state is the
    memory store and the observability collectors, both lock-guarded.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        clock: Optional[LogicalClock] = None,
        store: Optional[MomentMemoryStore] = None,
        surfacer: Optional[DecisionSurfacer] = None
    ):
        self._config = config or EngineConfig()
        self._clock = clock or LogicalClock.live()
        self._store = store or InMemoryMomentMemoryStore()
        self._surfacer = surfacer

        self._aggregator = EvidenceAggregator(self._clock)
        self._scorer = QualityScorer()
        self._classifier = TrendClassifier()
        self._evaluator = LifecycleEvaluator(
            self._config.behaviour.lifecycle_thresholds, self._clock
        )
        self._observability = ObservabilityEngine(self._config.observability, self._clock)

        self._behaviours = BehaviourVersionStore()
        registered = self._behaviours.register(self._config.behaviour, self._clock.now())
        if registered.is_failure:
            raise ValueError(registered.error.message)

    # =========================================================================
    # TREND ASSESSMENT (presentation only)
    # =========================================================================

    def assess_cluster(
        self,
        cluster: SignalCluster,
        now: Optional[datetime] = None
    ) -> TrendAssessment:
        evidence = self._aggregator.aggregate(cluster.signals, now)
        quality = self._scorer.score_cluster(cluster, evidence)
        classification = self._classifier.classify(cluster)

        self._observability.record_assessment(
            cluster.id, classification.status.value, quality
        )
        return TrendAssessment(
            cluster_id=cluster.id,
            label=cluster.label,
            description=cluster.description,
            evidence=evidence.with_quality(quality),
            classification=classification,
        )

    def assess_clusters(
        self,
        clusters: Sequence[SignalCluster],
        now: Optional[datetime] = None
    ) -> List[TrendAssessment]:
        now = ensure_utc(now) if now is not None else self._clock.now()
        return [self.assess_cluster(c, now) for c in clusters]

    def assess_feed(
        self,
        feed: Optional[SignalFeed],
        now: Optional[datetime] = None
    ) -> IntelligenceResult:
        """
        Assess a feed of clusters behind the intelligence guards.

        An unavailable or empty feed, or a feed that yields no
        assessments, is a typed failure rather than an empty list.
        """
        guard = require_signals(feed)
        if not guard.ok:
            logger.info("Feed rejected: %s", guard.error.code.value)
            return guard

        clusters = [item for item in feed.items if isinstance(item, SignalCluster)]
        if len(clusters) != len(feed.items):
            return IntelligenceResult.fail(
                IntelligenceErrorCode.INTELLIGENCE_MALFORMED,
                "Feed items must be signal clusters.",
                sources=list(feed.sources),
            )

        assessments = self.assess_clusters(clusters, now)
        return require_non_empty(assessments, "trends")

    # =========================================================================
    # QUALIFICATION
    # =========================================================================

    def collapse_candidates(self, candidates: Sequence[MomentCandidate]) -> List[MomentCandidate]:
        # Fresh topology per call; the graph is per-batch state
        return MomentTopology(self._config.collapse_threshold).collapse(candidates)

    def qualify_candidates(
        self,
        candidates: Sequence[MomentCandidate],
        collapse: bool = True,
        now: Optional[datetime] = None
    ) -> List[QualificationOutcome]:
        """
        Run candidates through the quality gate and persist passing ones.

        Returns one outcome per candidate after collapse.
        """
        now = ensure_utc(now) if now is not None else self._clock.now()
        behaviour = self._config.behaviour
        batch = self.collapse_candidates(candidates) if collapse else list(candidates)

        outcomes = []
        for candidate in batch:
            qualification = qualify_moment(
                candidate,
                weights=behaviour.quality_weights,
                thresholds=behaviour.quality_thresholds,
            )
            self._observability.record_qualification(candidate.id, qualification)

            if not qualification.passed:
                outcomes.append(QualificationOutcome(candidate, qualification))
                continue

            existing = [
                r.canonical for r in self._store.all_records() if r.moment_id != candidate.id
            ]
            built = build_memory_record(
                candidate,
                qualification,
                now=now,
                behaviour=behaviour,
                existing_identities=existing,
                decay_horizon_hours=self._config.decay_horizon_hours,
            )
            if built.is_failure:
                outcomes.append(QualificationOutcome(candidate, qualification, error=built.error))
                continue

            written = self._store.write(built.value, now)
            if written.is_failure:
                self._observability.record_error(written.error, "storage", candidate.id)
                outcomes.append(QualificationOutcome(candidate, qualification, error=written.error))
                continue

            self._observability.log_audit(
                action="write_moment_memory",
                entity_id=written.value.moment_id,
                entity_type="moment",
                layer="storage",
                qualification_hash=written.value.qualification_hash,
            )
            outcomes.append(QualificationOutcome(candidate, qualification, record=written.value))

        logger.info(
            "Qualified %d of %d candidates",
            sum(1 for o in outcomes if o.record is not None), len(outcomes),
        )
        return outcomes

    # =========================================================================
    # MEMORY ACCESS
    # =========================================================================

    def get_moment(self, moment_id: str) -> Result:
        record = self._store.get(moment_id)
        if record is None:
            return Result.failure(Error(
                code=ErrorCode.MOMENT_NOT_FOUND,
                message=f"No moment memory for {moment_id}",
                timestamp=self._clock.now(),
                context=(("moment_id", moment_id),),
            ))
        return Result.success(record)

    def provenance_for(self, moment_id: str) -> IntelligenceResult:
        """Provenance triple for downstream outputs about this moment."""
        record = self._store.get(moment_id)
        if record is None:
            return IntelligenceResult.fail(
                IntelligenceErrorCode.MOMENT_NOT_QUALIFIED,
                "Moment has not passed qualification; outputs are blocked.",
                moment_id=moment_id,
            )
        return IntelligenceResult.success(IntelligenceProvenance(
            moment_id=record.moment_id,
            behaviour_version=record.behaviour_version,
            qualification_hash=record.qualification_hash,
        ))

    def wrap_output(self, moment_id: str, payload: Any) -> IntelligenceResult:
        """Attach provenance to a downstream payload, or refuse it."""
        provenance = self.provenance_for(moment_id)
        if not provenance.ok:
            return provenance
        try:
            assert_provenance(provenance.data)
        except ProvenanceError as exc:
            return IntelligenceResult.fail(
                IntelligenceErrorCode.INTELLIGENCE_MALFORMED, str(exc), moment_id=moment_id
            )
        return IntelligenceResult.success(
            IntelligentOutputEnvelope(provenance=provenance.data, payload=payload)
        )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def evaluate_moment(
        self,
        moment_id: str,
        signal_context: MomentSignalContext,
        now: Optional[datetime] = None
    ) -> Result:
        """
        Evaluate one stored moment against a fresh evidence window and
        write the derived lifecycle status back.

        Returns:
            Result with MomentHealth, or MOMENT_NOT_FOUND
        """
        found = self.get_moment(moment_id)
        if found.is_failure:
            return found
        memory: MomentMemoryRecord = found.value

        health = self._evaluator.evaluate(memory, signal_context, now=now)
        self._observability.record_health(moment_id, health)

        # Written back even when unchanged so the evaluation time advances
        status = lifecycle_status_for(health, memory.lifecycle_status)
        updated = self._store.update_lifecycle(moment_id, status, health.evaluated_at)
        if updated.is_failure:
            self._observability.record_error(updated.error, "storage", moment_id)
            return updated
        if status != memory.lifecycle_status:
            logger.debug(
                "Moment %s: %s -> %s (%s)",
                moment_id, memory.lifecycle_status.value, status.value, health.state.value,
            )

        return Result.success(health)

    def evaluate_many(
        self,
        requests: Sequence[Tuple[str, MomentSignalContext]],
        now: Optional[datetime] = None
    ) -> List[Result]:
        """Evaluate several moments, in parallel when workers > 1. Order is preserved."""
        if self._config.max_workers <= 1 or len(requests) <= 1:
            return [self.evaluate_moment(mid, ctx, now) for mid, ctx in requests]

        with ThreadPoolExecutor(max_workers=self._config.max_workers) as pool:
            futures = [
                pool.submit(self.evaluate_moment, mid, ctx, now)
                for mid, ctx in requests
            ]
            return [f.result() for f in futures]

    # =========================================================================
    # DECISION SURFACING
    # =========================================================================

    def surface_decision(
        self,
        evidence: Evidence,
        surfacer: Optional[DecisionSurfacer] = None
    ) -> Result:
        """
        Delegate to the injected surfacer and enforce the hard rules on
        whatever it returns. Breaches are CONTRACT_VIOLATION errors.
        """
        surfacer = surfacer or self._surfacer
        if surfacer is None:
            return Result.failure(Error(
                code=ErrorCode.CONTRACT_VIOLATION,
                message="No decision surfacer configured",
                timestamp=self._clock.now(),
            ))

        inputs = DecisionInputs.from_evidence(evidence)
        surface = surfacer.surface(inputs)
        violations = check_decision_contract(inputs, surface)
        if violations:
            error = Error(
                code=ErrorCode.CONTRACT_VIOLATION,
                message="Decision surface breaks hard rules",
                timestamp=self._clock.now(),
                context=tuple(("violation", v) for v in violations),
            )
            logger.warning("Decision contract violated: %s", ", ".join(violations))
            self._observability.record_error(error)
            return Result.failure(error)

        return Result.success(surface)

    # =========================================================================
    # LAYER ACCESS (read-only)
    # =========================================================================

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def clock(self) -> LogicalClock:
        return self._clock

    @property
    def store(self) -> MomentMemoryStore:
        return self._store

    @property
    def behaviours(self) -> BehaviourVersionStore:
        return self._behaviours

    @property
    def observability(self) -> ObservabilityEngine:
        return self._observability

    def get_audit_report(self) -> Dict:
        return self._observability.generate_audit_report()
