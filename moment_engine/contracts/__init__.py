"""
Contracts Module

Explicit data shapes passed between the layers of the engine. No layer may
import implementation details from another layer; they share only these
types.

DESIGN PRINCIPLES:
==================
1. All contract types are immutable (frozen dataclasses)
2. Insufficient evidence is an explicit state, never an exception
3. Thresholds are explicit values passed into every evaluation
4. All timestamps are timezone-aware UTC
"""
