"""
Cultural legibility: can a strategist understand this quickly?
Penalises jargon-only, acronym-heavy or overly long descriptions.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Sequence
import re

from ..contracts.base import clamp01


MAX_TEXT_CHARS = 240

JARGON = frozenset([
    "llm", "rag", "embedding", "embeddings", "vector", "vectors", "token", "tokens",
    "inference", "fine-tune", "finetune", "finetuning", "latency", "throughput", "gpu",
    "cuda", "transformer", "diffusion", "benchmark", "benchmarks", "api", "sdk",
    "devops", "kubernetes", "microservices", "serverless", "observability", "telemetry",
    "cryptography", "blockchain", "web3", "defi", "nft", "tokenomics",
])

_WORD = re.compile(r"^[A-Za-z0-9-]+$")
_ALL_CAPS = re.compile(r"^[A-Z0-9-]+$")
_HAS_UPPER = re.compile(r"[A-Z]")
_HAS_DIGIT = re.compile(r"\d")
_STRIP = re.compile(r"[^A-Za-z0-9-]")


@dataclass(frozen=True)
class LegibilityResult:
    score: float
    char_len: int
    word_count: int
    avg_word_len: float
    long_word_ratio: float
    all_caps_ratio: float
    digit_ratio: float
    jargon_hits: int
    jargon_ratio: float


def _compact(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()[:MAX_TEXT_CHARS]


def _tokens(text: str) -> List[str]:
    return [t for t in (_STRIP.sub("", raw) for raw in text.split()) if t]


def _is_all_caps(word: str) -> bool:
    return bool(_ALL_CAPS.match(word) and _HAS_UPPER.search(word))


def _length_score(word_count: int, char_len: int) -> float:
    if word_count < 4:
        wc_score = 0.20
    elif word_count < 8:
        wc_score = 0.55
    elif word_count <= 22:
        wc_score = 1.0
    elif word_count <= 30:
        wc_score = 0.75
    else:
        wc_score = 0.45
    char_penalty = 1.0 if char_len <= 160 else clamp01(1 - (char_len - 160) / 200)
    return clamp01(wc_score * (0.70 + 0.30 * char_penalty))


def _jargon_hits(words: Sequence[str]) -> int:
    hits = sum(1 for w in words if w.lower() in JARGON)
    acronyms = sum(1 for w in words if _is_all_caps(w) and len(w) >= 2)
    if acronyms >= 4:
        hits += 2
    if acronyms >= 6:
        hits += 3
    return hits


def compute_cultural_legibility(text: str, phrases: Sequence[str] = ()) -> LegibilityResult:
    parts = [p for p in [(text or "").strip(), *phrases] if p]
    combined = _compact(" | ".join(parts))
    words = [t for t in _tokens(combined) if _WORD.match(t)]

    char_len = len(combined)
    word_count = len(words)
    if word_count == 0:
        return LegibilityResult(
            score=0.0,
            char_len=char_len,
            word_count=0,
            avg_word_len=0.0,
            long_word_ratio=1.0,
            all_caps_ratio=1.0,
            digit_ratio=1.0,
            jargon_hits=0,
            jargon_ratio=0.0,
        )

    avg_word_len = sum(len(w) for w in words) / word_count
    long_word_ratio = sum(1 for w in words if len(w) >= 10) / word_count
    all_caps_ratio = sum(1 for w in words if _is_all_caps(w) and len(w) >= 2) / word_count
    digit_ratio = sum(1 for w in words if _HAS_DIGIT.search(w)) / word_count
    jargon_hits = _jargon_hits(words)
    jargon_ratio = jargon_hits / word_count

    length_score = _length_score(word_count, char_len)
    complexity_penalty = clamp01(1 - (0.65 * long_word_ratio + 0.75 * jargon_ratio))
    soup_penalty = clamp01(1 - (0.70 * all_caps_ratio + 0.40 * digit_ratio))
    vocab_bonus = clamp01(1.15 - avg_word_len / 8)

    score = clamp01(
        (0.45 * length_score + 0.35 * complexity_penalty + 0.20 * soup_penalty)
        * (0.80 + 0.20 * vocab_bonus)
    )

    return LegibilityResult(
        score=score,
        char_len=char_len,
        word_count=word_count,
        avg_word_len=round(avg_word_len, 2),
        long_word_ratio=round(long_word_ratio, 3),
        all_caps_ratio=round(all_caps_ratio, 3),
        digit_ratio=round(digit_ratio, 3),
        jargon_hits=jargon_hits,
        jargon_ratio=round(jargon_ratio, 3),
    )
