"""
Test Fixtures

Explicit, versioned fixtures for deterministic testing.
No random generation; every timestamp is fixed.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from moment_engine.contracts.behaviour import BehaviourVersion
from moment_engine.contracts.memory import (
    CanonicalIdentity,
    LifecycleStatus,
    MomentMemoryRecord,
    MomentSourceRef,
    QualificationSnapshot,
)
from moment_engine.contracts.quality import (
    CandidateSignal,
    MomentCandidate,
    QualificationThresholds,
)
from moment_engine.contracts.signals import (
    MomentSignalContext,
    SignalCluster,
    SignalEvent,
    SignalItem,
)


# =============================================================================
# FIXED TIMESTAMPS (deterministic)
# =============================================================================

EPOCH = datetime(2026, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
NOW = datetime(2026, 3, 14, 18, 0, 0, tzinfo=timezone.utc)
QUALIFIED_AT = datetime(2026, 3, 13, 18, 0, 0, tzinfo=timezone.utc)


def iso(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


def hours_before_now(hours: float) -> str:
    return iso(NOW - timedelta(hours=hours))


# =============================================================================
# SIGNAL FIXTURES
# =============================================================================

def make_event(
    event_id: str,
    source: str = "reddit",
    score: float = 100.0,
    timestamp: Optional[str] = None,
    tags: Sequence[str] = (),
    volume: Optional[float] = None
) -> SignalEvent:
    return SignalEvent(
        id=event_id,
        source=source,
        label=f"label {event_id}",
        score=score,
        timestamp=timestamp if timestamp is not None else iso(NOW),
        tags=tuple(tags),
        volume=volume,
    )


def make_cluster(
    cluster_id: str = "cluster_001",
    signals: Sequence[SignalEvent] = (),
    category: Optional[str] = None
) -> SignalCluster:
    return SignalCluster(
        id=cluster_id,
        key=cluster_id,
        label="Desk-bound summer",
        description="Office workers faking a summer from their desks",
        signals=tuple(signals),
        category=category,
    )


def item(
    source: str,
    keywords: Sequence[str] = (),
    entities: Sequence[str] = (),
    text: str = ""
) -> SignalItem:
    return SignalItem(
        source=source,
        text=text or " ".join(keywords),
        keywords=tuple(keywords),
        entities=tuple(entities),
    )


def make_context(*signals: SignalItem, window: str = "last 24h") -> MomentSignalContext:
    return MomentSignalContext(window_label=window, signals=tuple(signals))


# =============================================================================
# MEMORY FIXTURES
# =============================================================================

CANONICAL_KEYWORDS = ("summer", "desk", "office")
CANONICAL_ENTITIES = ("slack",)


def make_memory(
    moment_id: str = "m_desk_summer",
    keywords: Sequence[str] = CANONICAL_KEYWORDS,
    entities: Sequence[str] = CANONICAL_ENTITIES,
    status: LifecycleStatus = LifecycleStatus.ACTIVE
) -> MomentMemoryRecord:
    return MomentMemoryRecord(
        moment_id=moment_id,
        name="Desk-bound summer",
        sources=(MomentSourceRef(source="reddit", cluster_id=moment_id),),
        qualified_at=QUALIFIED_AT,
        decay_horizon_hours=72.0,
        lifecycle_status=status,
        qualification=QualificationSnapshot(
            velocity_score=0.8,
            coherence_score=0.7,
            novelty_score=1.0,
            qualification_threshold=0.68,
        ),
        behaviour_version="behaviour_v1.0.0",
        qualification_hash="hash_" + moment_id,
        canonical=CanonicalIdentity(
            signature_keywords=tuple(keywords),
            anchor_entities=tuple(entities),
        ),
    )


HEALTHY_CONTEXT = make_context(
    item("reddit", ["summer", "office"], ["Slack"]),
    item("hn", ["desk", "vacation"]),
    item("tiktok", ["summer", "desk"], ["slack"]),
)

THIN_CONTEXT = make_context(
    item("reddit", ["summer", "desk"]),
)

DRIFTED_CONTEXT = make_context(
    item("reddit", ["bitcoin", "etf"]),
    item("hn", ["etf", "sec"]),
    item("x", ["halving"]),
)

EMPTY_CONTEXT = make_context()


# =============================================================================
# CANDIDATE FIXTURES
# =============================================================================

def make_candidate_signal(
    signal_id: str,
    source: str,
    hours_ago: float,
    title: str = "",
    keywords: Sequence[str] = (),
    entities: Sequence[str] = ()
) -> CandidateSignal:
    return CandidateSignal(
        id=signal_id,
        source=source,
        created_at=hours_before_now(hours_ago),
        title=title,
        keywords=tuple(keywords),
        entities=tuple(entities),
    )


def make_candidate(
    candidate_id: str = "cand_desk_summer",
    keywords: Sequence[str] = ("summer", "desk", "office", "vacation"),
    sources: Sequence[str] = ("reddit", "hn", "tiktok", "instagram"),
    title: str = "Office workers fake a summer vacation from their desks",
    entities: Sequence[str] = ("Slack",)
) -> MomentCandidate:
    signals = tuple(
        make_candidate_signal(
            f"{candidate_id}_s{i}",
            source,
            hours_ago=0.5 + i * 0.5,
            title="Office workers fake summer vacation from desks",
            entities=entities if i == 0 else (),
        )
        for i, source in enumerate(sources)
    )
    return MomentCandidate(
        id=candidate_id,
        signals=signals,
        title=title,
        keywords=tuple(keywords),
    )


# Pillar minimums at zero so gate outcomes depend only on counts
LENIENT_BEHAVIOUR = BehaviourVersion(
    behaviour_version="behaviour_test_lenient",
    created_at=EPOCH,
    description="Counts-only gate for engine tests",
    quality_thresholds=QualificationThresholds(
        min_overall=0.0,
        min_signal_density=0.0,
        min_velocity=0.0,
        min_narrative_coherence=0.0,
        min_cultural_legibility=0.0,
        min_unique_sources=2,
        min_total_signals=2,
    ),
)
