"""
Signal density: rewards independent sources, penalises single-source
repetition.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from ..contracts.base import clamp01
from ..contracts.quality import CandidateSignal


SOURCE_ALIASES = {
    "hackernews": "hn",
    "hacker-news": "hn",
    "r": "reddit",
    "subreddit": "reddit",
}


@dataclass(frozen=True)
class SignalDensityResult:
    score: float
    unique_sources: Tuple[str, ...]
    total_signals: int
    by_source: Dict[str, int] = field(default_factory=dict)

    @property
    def unique_sources_count(self) -> int:
        return len(self.unique_sources)


def canonical_source(source: str) -> str:
    key = source.strip().lower()
    return SOURCE_ALIASES.get(key, key)


def _dedupe(signals: Sequence[CandidateSignal]) -> List[Tuple[str, str]]:
    seen = set()
    out = []
    for index, signal in enumerate(signals):
        if not isinstance(signal.source, str) or not signal.source.strip():
            continue
        source = canonical_source(signal.source)
        signal_id = signal.id.strip() if signal.id and signal.id.strip() else f"idx:{index}"
        key = (source, signal_id)
        if key in seen:
            continue
        seen.add(key)
        out.append(key)
    return out


def compute_signal_density(signals: Sequence[CandidateSignal]) -> SignalDensityResult:
    normalized = _dedupe(signals)
    total = len(normalized)
    if total == 0:
        return SignalDensityResult(score=0.0, unique_sources=(), total_signals=0)

    by_source: Dict[str, int] = {}
    for source, _ in normalized:
        by_source[source] = by_source.get(source, 0) + 1

    unique_sources = tuple(sorted(by_source))
    diversity = clamp01(len(unique_sources) / total)

    dominance = clamp01(max(by_source.values()) / total)
    penalty_factor = clamp01(1 - (dominance - 0.25))
    bounded_penalty = clamp01(0.25 + 0.75 * penalty_factor)

    return SignalDensityResult(
        score=clamp01(diversity * bounded_penalty),
        unique_sources=unique_sources,
        total_signals=total,
        by_source=by_source,
    )
