"""
API Mapper
==========

Transforms engine results into response DTOs. Keys are camelCase to
match the wire contract; no value is smoothed or re-derived here.
"""

from typing import Any, Dict, Optional, Sequence

from ..contracts.base import Error, ErrorCode
from ..contracts.intelligence import IntelligenceError, IntelligenceErrorCode
from ..contracts.lifecycle import MomentHealth
from ..contracts.memory import MomentMemoryRecord
from ..engine import QualificationOutcome, TrendAssessment


ERROR_STATUS = {
    ErrorCode.MALFORMED_PAYLOAD: 422,
    ErrorCode.EMPTY_PAYLOAD: 400,
    ErrorCode.INVALID_TIMESTAMP: 400,
    ErrorCode.MOMENT_NOT_FOUND: 404,
    ErrorCode.WRITE_ONCE_VIOLATION: 409,
    ErrorCode.VERSION_CONFLICT: 409,
    ErrorCode.CONTRACT_VIOLATION: 422,
    ErrorCode.PROVENANCE_MISSING: 422,
}

INTELLIGENCE_ERROR_STATUS = {
    IntelligenceErrorCode.SIGNALS_UNAVAILABLE: 503,
    IntelligenceErrorCode.SIGNALS_EMPTY: 422,
    IntelligenceErrorCode.INTELLIGENCE_MALFORMED: 422,
    IntelligenceErrorCode.INTELLIGENCE_EMPTY: 422,
    IntelligenceErrorCode.UPSTREAM_ERROR: 502,
    IntelligenceErrorCode.MOMENT_NOT_QUALIFIED: 404,
}


def map_error(error: Error) -> Dict[str, Any]:
    return {"ok": False, "error": error.to_dict()}


def error_status(error: Error) -> int:
    return ERROR_STATUS.get(error.code, 400)


def map_intelligence_error(error: IntelligenceError) -> Dict[str, Any]:
    return {"ok": False, "error": error.to_dict()}


def intelligence_error_status(error: IntelligenceError) -> int:
    return INTELLIGENCE_ERROR_STATUS.get(error.code, 400)


def map_assessments(assessments: Sequence[TrendAssessment]) -> Dict[str, Any]:
    return {"ok": True, "data": [a.to_dict() for a in assessments]}


def map_outcomes(outcomes: Sequence[QualificationOutcome]) -> Dict[str, Any]:
    return {"ok": True, "data": [o.to_dict() for o in outcomes]}


def map_record(record: MomentMemoryRecord) -> Dict[str, Any]:
    return {"ok": True, "data": record.to_dict()}


def map_health(
    record: Optional[MomentMemoryRecord],
    health: MomentHealth
) -> Dict[str, Any]:
    """
    Merged moment view: the stored record after write-back plus the
    health that produced its status.
    """
    data: Dict[str, Any] = {"health": health.to_dict()}
    if record is not None:
        data["momentId"] = record.moment_id
        data["name"] = record.name
        data["lifecycleStatus"] = record.lifecycle_status.value
        data["behaviourVersion"] = record.behaviour_version
    return {"ok": True, "data": data}
