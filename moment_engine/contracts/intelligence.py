"""
Intelligence Contract

Boundary-facing result type consumed by downstream generation.
Intelligence must NEVER silently return empty outputs: failures are
typed, carry a machine-readable code, a human message and metadata.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple


class IntelligenceErrorCode(Enum):
    SIGNALS_UNAVAILABLE = "SIGNALS_UNAVAILABLE"
    SIGNALS_EMPTY = "SIGNALS_EMPTY"
    INTELLIGENCE_MALFORMED = "INTELLIGENCE_MALFORMED"
    INTELLIGENCE_EMPTY = "INTELLIGENCE_EMPTY"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    MOMENT_NOT_QUALIFIED = "MOMENT_NOT_QUALIFIED"


@dataclass(frozen=True)
class IntelligenceError:
    code: IntelligenceErrorCode
    message: str
    meta: Tuple[Tuple[str, Any], ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.meta:
            payload["meta"] = dict(self.meta)
        return payload


@dataclass(frozen=True)
class IntelligenceResult:
    """Either `data` (ok) or `error`, never both."""
    ok: bool
    data: Optional[Any] = None
    error: Optional[IntelligenceError] = None

    @staticmethod
    def success(data: Any) -> IntelligenceResult:
        return IntelligenceResult(ok=True, data=data)

    @staticmethod
    def fail(
        code: IntelligenceErrorCode,
        message: str,
        **meta: Any
    ) -> IntelligenceResult:
        return IntelligenceResult(
            ok=False,
            error=IntelligenceError(code=code, message=message, meta=tuple(sorted(meta.items()))),
        )

    def to_dict(self) -> Dict[str, Any]:
        if self.ok:
            return {"ok": True, "data": self.data}
        return {"ok": False, "error": self.error.to_dict()}


@dataclass(frozen=True)
class SignalFeed:
    """Upstream signal availability report."""
    available: bool
    items: Tuple[Any, ...] = field(default_factory=tuple)
    sources: Tuple[str, ...] = field(default_factory=tuple)


def require_signals(feed: Optional[SignalFeed]) -> IntelligenceResult:
    """Signals must be available AND contain at least one usable item."""
    if feed is None or not feed.available:
        sources = list(feed.sources) if feed is not None else []
        return IntelligenceResult.fail(
            IntelligenceErrorCode.SIGNALS_UNAVAILABLE,
            "Signals unavailable (no upstream source is healthy).",
            sources=sources,
        )
    if not feed.items:
        return IntelligenceResult.fail(
            IntelligenceErrorCode.SIGNALS_EMPTY,
            "Signals available but empty (no usable items returned).",
            sources=list(feed.sources),
        )
    return IntelligenceResult.success(feed)


def require_non_empty(items: Any, label: str = "items") -> IntelligenceResult:
    """Downstream outputs must be a non-empty sequence."""
    if not isinstance(items, (list, tuple)):
        return IntelligenceResult.fail(
            IntelligenceErrorCode.INTELLIGENCE_MALFORMED,
            f"Intelligence output malformed: {label} is not a list.",
        )
    if len(items) == 0:
        return IntelligenceResult.fail(
            IntelligenceErrorCode.INTELLIGENCE_EMPTY,
            f"Intelligence returned zero {label} (blocked by contract).",
        )
    return IntelligenceResult.success(tuple(items))


# =============================================================================
# PROVENANCE (every downstream output must be traceable to a moment)
# =============================================================================

class ProvenanceError(ValueError):
    """Raised when an output envelope cannot be traced to a qualified moment."""


@dataclass(frozen=True)
class IntelligenceProvenance:
    moment_id: str
    behaviour_version: str
    qualification_hash: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "momentId": self.moment_id,
            "behaviourVersion": self.behaviour_version,
            "qualificationHash": self.qualification_hash,
        }


@dataclass(frozen=True)
class IntelligentOutputEnvelope:
    provenance: IntelligenceProvenance
    payload: Any


def assert_provenance(provenance: Optional[IntelligenceProvenance]) -> None:
    """Block untraceable outputs."""
    if (
        provenance is None
        or not provenance.moment_id
        or not provenance.behaviour_version
        or not provenance.qualification_hash
    ):
        raise ProvenanceError(
            "Invalid intelligent output: missing provenance "
            "(moment_id, behaviour_version, qualification_hash)"
        )


def collect_sources(items: Sequence[Any]) -> Tuple[str, ...]:
    """Distinct `source` attributes of feed items, in first-seen order."""
    seen = {}
    for item in items:
        source = getattr(item, "source", None)
        if isinstance(source, str) and source:
            seen.setdefault(source, None)
    return tuple(seen)
