"""
Moment Memory Builder

Turns a passing qualification into a write-once MomentMemoryRecord.

The canonical identity captured here is the ground truth every later
lifecycle evaluation compares against, so it is derived only from data
present at qualification time:
- signature keywords: declared keywords, else narrative core tokens
- anchor entities: entities carried by the candidate's signals

FENCE POST:
===========
- Failed qualifications never produce a record
- The qualification hash covers every input that shaped the record
"""

from __future__ import annotations
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple
import hashlib
import json

from ..contracts.base import Error, ErrorCode, Result, ensure_utc
from ..contracts.behaviour import BehaviourVersion, DEFAULT_BEHAVIOUR
from ..contracts.memory import (
    CanonicalIdentity,
    LifecycleStatus,
    MomentMemoryRecord,
    MomentSourceRef,
    QualificationSnapshot,
)
from ..contracts.quality import MomentCandidate, MomentQualification
from ..core.similarity import jaccard, normalize_tokens
from .density import canonical_source


DEFAULT_DECAY_HORIZON_HOURS = 72.0
MAX_SIGNATURE_KEYWORDS = 12
MAX_ANCHOR_ENTITIES = 8


def _ordered_unique(values: Iterable[str], limit: int) -> Tuple[str, ...]:
    seen = []
    for value in values:
        if not isinstance(value, str):
            continue
        token = value.strip().lower()
        if token and token not in seen:
            seen.append(token)
        if len(seen) >= limit:
            break
    return tuple(seen)


def derive_canonical_identity(
    candidate: MomentCandidate,
    qualification: MomentQualification
) -> CanonicalIdentity:
    keywords = _ordered_unique(candidate.declared_keywords, MAX_SIGNATURE_KEYWORDS)
    basis = "declared_keywords"
    if not keywords:
        keywords = _ordered_unique(qualification.core_tokens, MAX_SIGNATURE_KEYWORDS)
        basis = "narrative_core_tokens"

    entities = _ordered_unique(
        (e for s in candidate.signals for e in s.entities),
        MAX_ANCHOR_ENTITIES,
    )
    return CanonicalIdentity(
        signature_keywords=keywords,
        anchor_entities=entities,
        identity_basis=basis,
    )


def compute_novelty(
    identity: CanonicalIdentity,
    existing: Sequence[CanonicalIdentity] = ()
) -> float:
    """1 minus the highest keyword overlap with any already-qualified moment."""
    keywords = normalize_tokens(identity.signature_keywords)
    if not existing:
        return 1.0
    closest = max(
        jaccard(keywords, normalize_tokens(other.signature_keywords))
        for other in existing
    )
    return round(1.0 - closest, 6)


def compute_qualification_hash(
    candidate: MomentCandidate,
    qualification: MomentQualification,
    behaviour: BehaviourVersion,
    canonical: CanonicalIdentity
) -> str:
    payload = {
        "candidateId": candidate.id,
        "signalIds": sorted(s.id for s in candidate.signals),
        "collapsedFromIds": sorted(candidate.collapsed_from_ids),
        "score": qualification.score.to_dict(),
        "reasons": list(qualification.reasons),
        "canonical": canonical.to_dict(),
        "behaviourVersion": behaviour.behaviour_version,
        "behaviourFingerprint": behaviour.fingerprint(),
    }
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def _source_refs(candidate: MomentCandidate) -> Tuple[MomentSourceRef, ...]:
    cluster_ids = [candidate.id] + [
        cid for cid in candidate.collapsed_from_ids if cid != candidate.id
    ]
    sources = sorted({
        canonical_source(s.source)
        for s in candidate.signals
        if isinstance(s.source, str) and s.source.strip()
    })
    refs: List[MomentSourceRef] = []
    for cluster_id in cluster_ids:
        for source in sources:
            refs.append(MomentSourceRef(source=source, cluster_id=cluster_id))
    return tuple(refs)


def build_memory_record(
    candidate: MomentCandidate,
    qualification: MomentQualification,
    now: datetime,
    behaviour: BehaviourVersion = DEFAULT_BEHAVIOUR,
    existing_identities: Sequence[CanonicalIdentity] = (),
    decay_horizon_hours: float = DEFAULT_DECAY_HORIZON_HOURS,
    moment_id: Optional[str] = None
) -> Result:
    """
    Build the write-once record for a qualified candidate.

    Returns:
        Result with MomentMemoryRecord, or an Error when the
        qualification did not pass.
    """
    now = ensure_utc(now)
    if not qualification.passed:
        return Result.failure(Error(
            code=ErrorCode.CONTRACT_VIOLATION,
            message="Only passing qualifications can become moment memory",
            timestamp=now,
            context=(
                ("candidate_id", candidate.id),
                ("reasons", ",".join(qualification.reasons)),
            ),
        ))

    canonical = derive_canonical_identity(candidate, qualification)
    novelty = compute_novelty(canonical, existing_identities)

    snapshot = QualificationSnapshot(
        velocity_score=qualification.score.velocity,
        coherence_score=qualification.score.narrative_coherence,
        novelty_score=novelty,
        qualification_threshold=behaviour.quality_thresholds.min_overall,
    )

    name = candidate.title.strip() or candidate.description.strip() or candidate.id

    record = MomentMemoryRecord(
        moment_id=moment_id or candidate.id,
        name=name,
        sources=_source_refs(candidate),
        qualified_at=now,
        decay_horizon_hours=decay_horizon_hours,
        lifecycle_status=LifecycleStatus.ACTIVE,
        qualification=snapshot,
        behaviour_version=behaviour.behaviour_version,
        qualification_hash=compute_qualification_hash(
            candidate, qualification, behaviour, canonical
        ),
        canonical=canonical,
    )
    return Result.success(record)

