"""
Boundary Schemas

Pydantic models for every payload that enters the engine from outside.
Structural problems (missing ids, wrong types for required fields) are
rejected here; token lists are lenient and silently drop entries that
are not usable strings.

Each model converts into the corresponding frozen contract with
`to_contract()`. Nothing past this module sees a pydantic object.
"""

from __future__ import annotations
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..contracts.quality import CandidateSignal, MomentCandidate
from ..contracts.signals import (
    MomentSignalContext,
    SignalCluster,
    SignalEvent,
    SignalItem,
)


DEFAULT_WINDOW_LABEL = "current window"


def _lenient_tokens(value: Any) -> List[str]:
    """Non-lists become empty; non-string and blank entries are dropped."""
    if not isinstance(value, (list, tuple, set, frozenset)):
        return []
    return [v.strip() for v in value if isinstance(v, str) and v.strip()]


class BoundaryModel(BaseModel):
    """Accepts both camelCase and snake_case keys."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# =============================================================================
# TREND ASSESSMENT INPUTS
# =============================================================================

class SignalEventIn(BoundaryModel):
    id: str = Field(min_length=1)
    source: str
    label: str = ""
    score: float = 0.0
    # Kept raw; unparseable values are dropped by the aggregator
    timestamp: str = ""
    tags: List[str] = Field(default_factory=list)
    volume: Optional[float] = None

    @field_validator("tags", mode="before")
    @classmethod
    def lenient_tags(cls, v):
        return _lenient_tokens(v)

    def to_contract(self) -> SignalEvent:
        return SignalEvent(
            id=self.id,
            source=self.source,
            label=self.label,
            score=self.score,
            timestamp=self.timestamp,
            tags=tuple(self.tags),
            volume=self.volume,
        )


class SignalClusterIn(BoundaryModel):
    id: str = Field(min_length=1)
    key: str = ""
    label: str = ""
    description: str = ""
    signals: List[SignalEventIn] = Field(default_factory=list)
    category: Optional[str] = None

    def to_contract(self) -> SignalCluster:
        return SignalCluster(
            id=self.id,
            key=self.key or self.id,
            label=self.label,
            description=self.description,
            signals=tuple(s.to_contract() for s in self.signals),
            category=self.category,
        )


class AssessRequest(BoundaryModel):
    clusters: List[SignalClusterIn]


# =============================================================================
# LIFECYCLE INPUTS
# =============================================================================

class SignalItemIn(BoundaryModel):
    source: str = ""
    text: str = ""
    keywords: List[str] = Field(default_factory=list)
    entities: List[str] = Field(default_factory=list)

    @field_validator("keywords", "entities", mode="before")
    @classmethod
    def lenient_lists(cls, v):
        return _lenient_tokens(v)

    @field_validator("source", "text", mode="before")
    @classmethod
    def coerce_missing_text(cls, v):
        return v if isinstance(v, str) else ""

    def to_contract(self) -> SignalItem:
        return SignalItem(
            source=self.source,
            text=self.text,
            keywords=tuple(self.keywords),
            entities=tuple(self.entities),
        )


class SignalContextIn(BoundaryModel):
    window_label: str = DEFAULT_WINDOW_LABEL
    signals: List[SignalItemIn] = Field(default_factory=list)

    @field_validator("signals", mode="before")
    @classmethod
    def lenient_signals(cls, v):
        # A missing or non-list signal collection is an empty window
        if not isinstance(v, (list, tuple)):
            return []
        return [s for s in v if isinstance(s, (dict, SignalItemIn))]

    def to_contract(self) -> MomentSignalContext:
        return MomentSignalContext(
            window_label=self.window_label or DEFAULT_WINDOW_LABEL,
            signals=tuple(s.to_contract() for s in self.signals),
        )


# =============================================================================
# QUALIFICATION INPUTS
# =============================================================================

class CandidateSignalIn(BoundaryModel):
    id: str = Field(min_length=1)
    source: str
    created_at: Optional[str] = None
    title: str = ""
    summary: str = ""
    keywords: List[str] = Field(default_factory=list)
    entities: List[str] = Field(default_factory=list)

    @field_validator("keywords", "entities", mode="before")
    @classmethod
    def lenient_lists(cls, v):
        return _lenient_tokens(v)

    def to_contract(self) -> CandidateSignal:
        return CandidateSignal(
            id=self.id,
            source=self.source,
            created_at=self.created_at,
            title=self.title,
            summary=self.summary,
            keywords=tuple(self.keywords),
            entities=tuple(self.entities),
        )


class CandidateIn(BoundaryModel):
    id: str = Field(min_length=1)
    signals: List[CandidateSignalIn] = Field(default_factory=list)
    title: str = ""
    description: str = ""
    keywords: List[str] = Field(default_factory=list)
    first_seen_at: Optional[str] = None

    @field_validator("keywords", mode="before")
    @classmethod
    def lenient_keywords(cls, v):
        return _lenient_tokens(v)

    def to_contract(self) -> MomentCandidate:
        return MomentCandidate(
            id=self.id,
            signals=tuple(s.to_contract() for s in self.signals),
            title=self.title,
            description=self.description,
            keywords=tuple(self.keywords),
            first_seen_at=self.first_seen_at,
        )


class QualifyRequest(BoundaryModel):
    candidates: List[CandidateIn]
    collapse: bool = True
