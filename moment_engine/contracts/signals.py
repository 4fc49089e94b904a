"""
Signal Contracts

Raw signal shapes produced by the (external) ingestion collaborator.
The engine only reads these; it never owns or persists them.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple

# Reserved tag namespaces
SUBREDDIT_TAG_PREFIX = "subreddit:"
MARKET_TAG_PREFIX = "market:"
FORMAT_TAG_PREFIX = "format:"


@dataclass(frozen=True)
class SignalEvent:
    """
    A single observed mention from an external platform.

    `timestamp` is kept as the raw ISO string received from upstream.
    Parsing (and dropping of invalid values) is the aggregator's job.
    """
    id: str
    source: str
    label: str
    score: float
    timestamp: str
    tags: Tuple[str, ...] = field(default_factory=tuple)
    volume: Optional[float] = None

    def __post_init__(self):
        if not self.id or not isinstance(self.id, str):
            raise ValueError("SignalEvent id must be a non-empty string")
        if not isinstance(self.source, str):
            raise ValueError("SignalEvent source must be a string")

    def tag_values(self, prefix: str) -> Tuple[str, ...]:
        """Values of tags in a reserved namespace, e.g. `subreddit:`."""
        values = []
        for tag in self.tags:
            if tag.lower().startswith(prefix):
                value = tag[len(prefix):].strip()
                if value:
                    values.append(value)
        return tuple(values)


@dataclass(frozen=True)
class SignalCluster:
    """
    A named grouping of SignalEvents believed to represent one cultural
    concept (a "TrendSignal"). Clustering happens upstream.
    """
    id: str
    key: str
    label: str
    description: str
    signals: Tuple[SignalEvent, ...] = field(default_factory=tuple)
    category: Optional[str] = None

    def __post_init__(self):
        if not self.id or not isinstance(self.id, str):
            raise ValueError("SignalCluster id must be a non-empty string")

    @property
    def all_tags(self) -> Tuple[str, ...]:
        return tuple(tag for signal in self.signals for tag in signal.tags)

    @property
    def average_score(self) -> float:
        if not self.signals:
            return 0.0
        return sum(s.score for s in self.signals) / len(self.signals)

    @property
    def total_volume(self) -> float:
        return sum(s.volume for s in self.signals if s.volume is not None)


@dataclass(frozen=True)
class SignalItem:
    """
    Signal as seen by the lifecycle evaluator.

    In single-source (title-only) mode `text` is usually just a title and
    keywords/entities are harvested from it upstream.
    """
    source: str
    text: str
    keywords: Tuple[str, ...] = field(default_factory=tuple)
    entities: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MomentSignalContext:
    """Fresh evidence window for one moment re-evaluation."""
    window_label: str
    signals: Tuple[SignalItem, ...] = field(default_factory=tuple)
