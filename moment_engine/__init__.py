"""
Moment Intelligence Engine

Deterministic scoring and lifecycle classification for cultural "moments":
clusters of social-platform signals that are tracked over time. Nothing in
this package generates text or learns from data. Every output is derived by
counting, timestamp arithmetic, set similarity and threshold comparison.

LAYER STRUCTURE:
================

1. CONTRACTS (contracts/)
   - Immutable data shapes shared by every layer
   - Typed error states (errors are data, not exceptions)

2. CORE (core/)
   - EvidenceAggregator: raw signals -> evidence primitives
   - QualityScorer: evidence -> bounded quality number
   - TrendClassifier: presentation status + tag-derived labels
   - LifecycleEvaluator: SIS/ICS drift state machine with refusal paths
   - MUST NOT: perform I/O, read wall-clock time implicitly, mutate inputs

3. QUALIFICATION (qualification/)
   - Quality gate a candidate must pass before it becomes a moment
   - Produces the write-once MomentMemoryRecord

4. NORMALIZATION (normalization/)
   - Schema validation of untrusted payloads at the system boundary

5. STORAGE (storage/)
   - Write-once moment memory, frozen behaviour versions

6. OBSERVABILITY (observability/)
   - Append-only audit log and metrics; never influences decisions

CONSTRAINTS ENFORCED:
=====================
- Immutability-first: all contracts are frozen dataclasses
- Deterministic: identical inputs + identical clock = identical outputs
- Explicit refusal: insufficient evidence is a typed result, never a guess
- Presentation never overrides lifecycle health
"""

__version__ = "0.1.0"
