"""
Qualification Layer
===================

The quality firewall a candidate must pass before it becomes a moment.

Pillars (all deterministic, all in [0, 1]):
- signal density: independent sources, not repetition
- velocity: inflection, not raw volume
- narrative coherence: one story, not keyword soup
- cultural legibility: understandable at a glance

BOUNDARY ENFORCEMENT:
=====================
- Reads contracts and core similarity helpers only
- Never touches storage; the engine persists the records built here
"""

from .density import compute_signal_density, SignalDensityResult
from .velocity import compute_velocity, VelocityOptions, VelocityResult
from .narrative import compute_narrative_coherence, NarrativeResult
from .legibility import compute_cultural_legibility, LegibilityResult
from .gate import (
    qualify_moment,
    compute_overall_score,
    compute_maturity,
    evaluate_against_thresholds,
)
from .memory_builder import (
    build_memory_record,
    derive_canonical_identity,
    compute_novelty,
    compute_qualification_hash,
    DEFAULT_DECAY_HORIZON_HOURS,
)

__all__ = [
    'compute_signal_density',
    'SignalDensityResult',
    'compute_velocity',
    'VelocityOptions',
    'VelocityResult',
    'compute_narrative_coherence',
    'NarrativeResult',
    'compute_cultural_legibility',
    'LegibilityResult',
    'qualify_moment',
    'compute_overall_score',
    'compute_maturity',
    'evaluate_against_thresholds',
    'build_memory_record',
    'derive_canonical_identity',
    'compute_novelty',
    'compute_qualification_hash',
    'DEFAULT_DECAY_HORIZON_HOURS',
]
