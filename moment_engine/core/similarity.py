"""
Set Similarity
==============

Token normalisation and Jaccard similarity shared by the lifecycle
evaluator, the qualification gate and candidate collapse.
"""

from __future__ import annotations
from typing import AbstractSet, Any, FrozenSet, Iterable


def normalize_tokens(raw: Any) -> FrozenSet[str]:
    """
    Lowercase, trimmed, deduplicated token set.

    Anything that is not a list/tuple/set yields an empty set; non-string
    or blank entries are dropped.
    """
    if not isinstance(raw, (list, tuple, set, frozenset)):
        return frozenset()
    return frozenset(
        token.strip().lower()
        for token in raw
        if isinstance(token, str) and token.strip()
    )


def union_tokens(groups: Iterable[Any]) -> FrozenSet[str]:
    """Normalised union of several token collections."""
    merged = set()
    for group in groups:
        merged |= normalize_tokens(group)
    return frozenset(merged)


def jaccard(a: AbstractSet[str], b: AbstractSet[str]) -> float:
    """
    |A ∩ B| / |A ∪ B|.

    Conventions: jaccard(∅, ∅) = 1 (nothing to disagree about);
    jaccard(∅, X) = jaccard(X, ∅) = 0 for non-empty X.
    """
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    intersection = len(a & b)
    union = len(a) + len(b) - intersection
    return intersection / union if union else 0.0
