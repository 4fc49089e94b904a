"""
Trend Classifier
================

Presentation classification of a cluster: a coarse status, a momentum
label, and tag-derived format/category labels.

BOUNDARY ENFORCEMENT:
- Presentation only. Lifecycle health is decided by the
  LifecycleEvaluator and is never read or overridden here.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple

from ..contracts.signals import SignalCluster, FORMAT_TAG_PREFIX, MARKET_TAG_PREFIX


PEAKING_MIN_SCORE = 75.0
EMERGING_MIN_SCORE = 45.0
MAX_MARKETS = 2
MARKET_JOINER = " + "
CATEGORY_JOINER = " · "


class TrendStatus(Enum):
    PEAKING = "Peaking"
    EMERGING = "Emerging"
    STABLE = "Stable"


MOMENTUM_LABELS = {
    TrendStatus.PEAKING: "High velocity • Near peak saturation",
    TrendStatus.EMERGING: "Rising fast • Early but heating up",
    TrendStatus.STABLE: "Consistent presence • Evergreen or niche",
}

# (tag fragments, label), checked in order
FORMAT_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("shorts", "short-form"), "Short-form video"),
    (("thread", "tweet"), "Threaded posts"),
    (("carousel",), "Carousel posts"),
)
DEFAULT_FORMAT_LABEL = "Mixed formats"


@dataclass(frozen=True)
class TrendClassification:
    status: TrendStatus
    momentum_label: str
    format_label: str
    category: Optional[str]
    market_label: Optional[str] = None


class TrendClassifier:

    def classify(self, cluster: SignalCluster) -> TrendClassification:
        tags = cluster.all_tags
        status = self.classify_score(cluster.average_score)
        market_label = derive_market_label(tags)
        return TrendClassification(
            status=status,
            momentum_label=MOMENTUM_LABELS[status],
            format_label=derive_format_label(tags),
            category=merge_category(cluster.category, market_label),
            market_label=market_label,
        )

    @staticmethod
    def classify_score(avg_score: float) -> TrendStatus:
        if avg_score >= PEAKING_MIN_SCORE:
            return TrendStatus.PEAKING
        if avg_score >= EMERGING_MIN_SCORE:
            return TrendStatus.EMERGING
        return TrendStatus.STABLE


def _namespace_values(tags: Iterable[str], prefix: str) -> Tuple[str, ...]:
    values = []
    for tag in tags:
        if isinstance(tag, str) and tag.lower().startswith(prefix):
            value = tag[len(prefix):].strip()
            if value:
                values.append(value)
    return tuple(values)


def derive_format_label(tags: Iterable[str]) -> str:
    """Explicit `format:` tag first, then keyword inference."""
    tags = tuple(tags)
    explicit = sorted({v.lower() for v in _namespace_values(tags, FORMAT_TAG_PREFIX)})
    if explicit:
        return explicit[0].replace("-", " ").replace("_", " ").title()

    lower = [t.lower() for t in tags if isinstance(t, str)]
    for fragments, label in FORMAT_RULES:
        if any(fragment in tag for tag in lower for fragment in fragments):
            return label
    return DEFAULT_FORMAT_LABEL


def derive_market_label(tags: Iterable[str]) -> Optional[str]:
    """Up to two markets, alphabetical, title-cased, joined with ' + '."""
    markets = sorted({v.lower() for v in _namespace_values(tags, MARKET_TAG_PREFIX)})
    if not markets:
        return None
    return MARKET_JOINER.join(m.title() for m in markets[:MAX_MARKETS])


def merge_category(category: Optional[str], market_label: Optional[str]) -> Optional[str]:
    """Idempotent: merging a label that is already present is a no-op."""
    if not market_label:
        return category
    if not category:
        return market_label
    if market_label in (part.strip() for part in category.split(CATEGORY_JOINER)):
        return category
    return f"{category}{CATEGORY_JOINER}{market_label}"
