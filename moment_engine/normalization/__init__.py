"""
Normalization Layer

RESPONSIBILITY: Validate raw payloads and convert them into frozen contracts
ALLOWED INPUTS: JSON-like dicts/lists from the API or callers
OUTPUTS: Result wrapping contract objects, or MALFORMED_PAYLOAD / EMPTY_PAYLOAD

WHAT THIS LAYER MUST NOT DO:
============================
- Score, classify or evaluate anything
- Substitute defaults for missing identifiers
- Replace unparseable timestamps with a made-up time

BOUNDARY ENFORCEMENT:
=====================
This layer ONLY consumes untrusted payloads and produces contracts.
Validation failures are returned as Error data, never raised.
"""

from __future__ import annotations
from datetime import datetime
from typing import Any, Callable
import logging

from pydantic import ValidationError

from ..contracts.base import Error, ErrorCode, Result
from .schemas import (
    AssessRequest,
    CandidateIn,
    QualifyRequest,
    SignalClusterIn,
    SignalContextIn,
)


logger = logging.getLogger(__name__)


def _malformed(exc: Exception, label: str, now: datetime) -> Result:
    if isinstance(exc, ValidationError):
        detail = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
    else:
        detail = str(exc)
    logger.info("Rejected malformed %s payload: %s", label, detail)
    return Result.failure(Error(
        code=ErrorCode.MALFORMED_PAYLOAD,
        message=f"Malformed {label} payload",
        timestamp=now,
        context=(("detail", detail),),
    ))


def _empty(label: str, now: datetime) -> Result:
    return Result.failure(Error(
        code=ErrorCode.EMPTY_PAYLOAD,
        message=f"No {label} supplied",
        timestamp=now,
    ))


def _convert(build: Callable[[], Any], label: str, now: datetime) -> Result:
    try:
        return Result.success(build())
    except (ValidationError, ValueError, TypeError) as exc:
        return _malformed(exc, label, now)


def parse_clusters(payload: Any, now: datetime) -> Result:
    """
    Parse a list of signal clusters (or `{"clusters": [...]}`).

    Returns:
        Result with a tuple of SignalCluster
    """
    if isinstance(payload, dict):
        payload = payload.get("clusters")
    if not isinstance(payload, list):
        return _malformed(TypeError("expected a list of clusters"), "cluster", now)
    if not payload:
        return _empty("clusters", now)
    return _convert(
        lambda: tuple(SignalClusterIn.model_validate(c).to_contract() for c in payload),
        "cluster",
        now,
    )


def parse_signal_context(payload: Any, now: datetime) -> Result:
    """
    Parse a fresh evidence window. An empty window is valid input:
    the evaluator answers it with NO_EVIDENCE, not an error.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        return _malformed(TypeError("expected an object"), "signal context", now)
    return _convert(
        lambda: SignalContextIn.model_validate(payload).to_contract(),
        "signal context",
        now,
    )


def parse_candidates(payload: Any, now: datetime) -> Result:
    """Parse candidates from a list or `{"candidates": [...]}`."""
    if isinstance(payload, dict):
        payload = payload.get("candidates")
    if not isinstance(payload, list):
        return _malformed(TypeError("expected a list of candidates"), "candidate", now)
    if not payload:
        return _empty("candidates", now)
    return _convert(
        lambda: tuple(CandidateIn.model_validate(c).to_contract() for c in payload),
        "candidate",
        now,
    )


__all__ = [
    'parse_clusters',
    'parse_signal_context',
    'parse_candidates',
    'AssessRequest',
    'QualifyRequest',
    'SignalContextIn',
]
