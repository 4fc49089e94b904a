"""
Core Moment Engine

RESPONSIBILITY: Evidence, quality, presentation classification, lifecycle health
ALLOWED INPUTS: SignalEvent / SignalCluster / SignalItem contracts, memory records
OUTPUTS: Evidence, quality scores, TrendClassification, MomentHealth

WHAT THIS LAYER MUST NOT DO:
============================
- Perform network or storage I/O
- Read wall-clock time except through an injected LogicalClock
- Infer semantic meaning or predict trajectories
- Let presentation status override lifecycle health
- Raise for "insufficient evidence" conditions

BOUNDARY ENFORCEMENT:
=====================
- Every component is a pure function of its explicit inputs
- Thresholds are passed in explicitly; defaults are immutable constants
- No mutable shared state: safe to call from many threads at once
"""

from .classifier import TrendClassifier, TrendClassification, TrendStatus
from .evidence import EvidenceAggregator
from .lifecycle import (
    LifecycleEvaluator,
    evaluate_moment_lifecycle,
    lifecycle_status_for,
    compute_sis,
    compute_ics,
)
from .quality import QualityScorer, QualityBreakdown
from .similarity import jaccard, normalize_tokens
from .topology import MomentTopology

__all__ = [
    'TrendClassifier',
    'TrendClassification',
    'TrendStatus',
    'EvidenceAggregator',
    'LifecycleEvaluator',
    'evaluate_moment_lifecycle',
    'lifecycle_status_for',
    'compute_sis',
    'compute_ics',
    'QualityScorer',
    'QualityBreakdown',
    'jaccard',
    'normalize_tokens',
    'MomentTopology',
]
