"""
Temporal Layer
==============

Injectable time for deterministic evaluation.

INVARIANTS:
- No component reads wall-clock time except through a LogicalClock
- Same clock sequence -> same evidence ages, same evaluated_at stamps
"""

from .clock import LogicalClock, ClockMode, ClockExhausted

__all__ = [
    'LogicalClock',
    'ClockMode',
    'ClockExhausted',
]
