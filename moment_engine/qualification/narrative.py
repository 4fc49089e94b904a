"""
Narrative coherence: does the cluster compress into one clean
"what's happening" story, or is it unrelated term soup?

Token-overlap statistics only; no semantic inference.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple
import math
import re

from ..contracts.base import clamp01
from ..core.similarity import jaccard


MAX_CORE_TOKENS = 12

STOPWORDS = frozenset([
    "the", "and", "for", "with", "from", "that", "this", "into", "over", "about",
    "your", "you", "our", "are", "was", "were", "will", "have", "has", "had",
    "not", "but", "all", "any", "can", "how", "why", "what", "when", "where",
    "who", "new", "now", "just", "than", "then", "more", "most", "less", "very",
    "via", "vs", "use", "using", "used", "make", "made", "get", "gets", "got",
])

_SEPARATORS = re.compile(r"[_/\\|]+")
_NON_TOKEN = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class NarrativeResult:
    score: float
    core_tokens: Tuple[str, ...]
    total_tokens: int
    unique_tokens: int
    noise_ratio: float
    avg_pairwise_jaccard: float


def tokenize(text: str) -> List[str]:
    text = _SEPARATORS.sub(" ", text.lower())
    text = _NON_TOKEN.sub(" ", text)
    return [t for t in _WHITESPACE.sub(" ", text).strip().split(" ") if t]


def normalize_token(token: str) -> str:
    """Light suffix stripping so 'agents'/'agent' count as one token."""
    s = (token or "").lower().strip()
    if s.endswith("ing") and len(s) > 5:
        return s[:-3]
    if s.endswith("ed") and len(s) > 4:
        return s[:-2]
    if s.endswith("s") and len(s) > 4:
        return s[:-1]
    return s


def build_token_sets(phrases: Sequence[str]) -> List[FrozenSet[str]]:
    sets = []
    for phrase in phrases:
        if not isinstance(phrase, str) or not phrase:
            continue
        tokens = {
            t for t in (normalize_token(raw) for raw in tokenize(phrase))
            if len(t) >= 3 and t not in STOPWORDS
        }
        if len(tokens) >= 3:
            sets.append(frozenset(tokens))
    return sets


def average_pairwise_jaccard(sets: Sequence[FrozenSet[str]]) -> float:
    n = len(sets)
    if n < 2:
        return 0.0
    total = 0.0
    pairs = 0
    for i in range(n):
        for j in range(i + 1, n):
            total += jaccard(sets[i], sets[j])
            pairs += 1
    return total / pairs


def compute_narrative_coherence(
    phrases: Sequence[str],
    keywords: Optional[Sequence[str]] = None
) -> NarrativeResult:
    token_sets = build_token_sets(phrases)
    if not token_sets:
        return NarrativeResult(
            score=0.0,
            core_tokens=(),
            total_tokens=0,
            unique_tokens=0,
            noise_ratio=1.0,
            avg_pairwise_jaccard=0.0,
        )

    freq: Dict[str, int] = {}
    for token_set in token_sets:
        for token in token_set:
            freq[token] = freq.get(token, 0) + 1

    total_tokens = sum(freq.values())
    unique_tokens = len(freq)
    noise_ratio = unique_tokens / total_tokens if total_tokens else 1.0

    min_occurrences = max(2, math.ceil(len(token_sets) * 0.35))
    # Frequency descending, then alphabetical, so ties are stable
    core_tokens = tuple(
        token for token, count in sorted(freq.items(), key=lambda kv: (-kv[1], kv[0]))
        if count >= min_occurrences
    )[:MAX_CORE_TOKENS]

    avg_jaccard = average_pairwise_jaccard(token_sets)
    overlap_score = clamp01(avg_jaccard)
    compression_score = clamp01(len(core_tokens) / max(4, min(12, unique_tokens)))

    noise_penalty = clamp01(1 - (noise_ratio - 0.35))
    bounded_noise = clamp01(0.25 + 0.75 * noise_penalty)

    keyword_boost = 1.0
    if keywords and core_tokens:
        normalized = {normalize_token(k) for k in keywords if isinstance(k, str)} - {""}
        overlap = len(normalized & set(core_tokens))
        boost = clamp01(overlap / max(3, min(8, len(core_tokens))))
        keyword_boost = 0.90 + 0.10 * boost

    score = clamp01((0.50 * overlap_score + 0.35 * compression_score) * bounded_noise * keyword_boost)

    return NarrativeResult(
        score=score,
        core_tokens=core_tokens,
        total_tokens=total_tokens,
        unique_tokens=unique_tokens,
        noise_ratio=clamp01(noise_ratio),
        avg_pairwise_jaccard=avg_jaccard,
    )
