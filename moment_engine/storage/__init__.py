"""
Moment Memory Storage Layer

RESPONSIBILITY: Write-once persistence of moment memory and behaviour versions
ALLOWED INPUTS: MomentMemoryRecord, BehaviourVersion
OUTPUTS: Stored records, Result values for every write

WHAT THIS LAYER MUST NOT DO:
============================
- Transform or interpret data
- Execute lifecycle or qualification logic
- Modify identity fields of a stored record
- Raise on conflicting writes (conflicts are returned as errors)

BOUNDARY ENFORCEMENT:
=====================
- A record's identity is fixed by its first write
- The only permitted update is the lifecycle status, last write wins
- A behaviour version string maps to exactly one payload forever
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Dict, List, Optional
import logging
import threading

# ONLY import from contracts - never from other layers' implementations
from ..contracts.base import Error, ErrorCode, Result, ensure_utc
from ..contracts.behaviour import BehaviourVersion
from ..contracts.memory import LifecycleStatus, MomentMemoryRecord


logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


# =============================================================================
# STORAGE INTERFACES (Dependency Inversion)
# =============================================================================

class MomentMemoryStore:
    """
    Abstract moment memory interface.

    Implementations can use different storage systems while keeping the
    same write-once semantics.
    """

    def get(self, moment_id: str) -> Optional[MomentMemoryRecord]:
        raise NotImplementedError

    def has(self, moment_id: str) -> bool:
        return self.get(moment_id) is not None

    def write(self, record: MomentMemoryRecord, now: datetime) -> Result:
        """Store a record once. Returns the record actually held."""
        raise NotImplementedError

    def update_lifecycle(
        self,
        moment_id: str,
        status: LifecycleStatus,
        evaluated_at: datetime
    ) -> Result:
        """Apply a re-derived lifecycle status if it is not stale."""
        raise NotImplementedError

    def all_records(self) -> List[MomentMemoryRecord]:
        raise NotImplementedError

    def clear(self):
        raise NotImplementedError


# =============================================================================
# IN-MEMORY STORE (Reference Implementation)
# =============================================================================

class InMemoryMomentMemoryStore(MomentMemoryStore):
    """
    In-memory moment memory guarded by a single lock.

    Each record remembers when its lifecycle status was last evaluated;
    a write-back carrying an older evaluation time is ignored.
    """

    def __init__(self):
        self._records: Dict[str, MomentMemoryRecord] = {}
        self._evaluated_at: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    def get(self, moment_id: str) -> Optional[MomentMemoryRecord]:
        if not moment_id:
            return None
        with self._lock:
            return self._records.get(moment_id)

    def write(self, record: MomentMemoryRecord, now: datetime) -> Result:
        now = ensure_utc(now)
        with self._lock:
            existing = self._records.get(record.moment_id)
            if existing is None:
                self._records[record.moment_id] = record
                self._evaluated_at[record.moment_id] = ensure_utc(record.qualified_at)
                return Result.success(record)

        if existing.identity_fields() == record.identity_fields():
            # Idempotent rewrite; original kept
            return Result.success(existing)

        logger.warning(
            "Rejected rewrite of moment %s (hash %s -> %s)",
            record.moment_id, existing.qualification_hash, record.qualification_hash,
        )
        return Result.failure(Error(
            code=ErrorCode.WRITE_ONCE_VIOLATION,
            message=f"Moment {record.moment_id} already exists with a different identity",
            timestamp=now,
            context=(
                ("moment_id", record.moment_id),
                ("existing_hash", existing.qualification_hash),
                ("attempted_hash", record.qualification_hash),
            ),
        ))

    def update_lifecycle(
        self,
        moment_id: str,
        status: LifecycleStatus,
        evaluated_at: datetime
    ) -> Result:
        evaluated_at = ensure_utc(evaluated_at)
        with self._lock:
            existing = self._records.get(moment_id)
            if existing is None:
                return Result.failure(Error(
                    code=ErrorCode.MOMENT_NOT_FOUND,
                    message=f"No moment memory for {moment_id}",
                    timestamp=evaluated_at,
                    context=(("moment_id", moment_id),),
                ))

            last = self._evaluated_at.get(moment_id, _EPOCH)
            if evaluated_at < last:
                logger.debug(
                    "Ignoring stale lifecycle write for %s (%s < %s)",
                    moment_id, evaluated_at.isoformat(), last.isoformat(),
                )
                return Result.success(existing)

            updated = existing.with_lifecycle_status(status)
            self._records[moment_id] = updated
            self._evaluated_at[moment_id] = evaluated_at
            return Result.success(updated)

    def last_evaluated_at(self, moment_id: str) -> Optional[datetime]:
        with self._lock:
            return self._evaluated_at.get(moment_id)

    def all_records(self) -> List[MomentMemoryRecord]:
        with self._lock:
            return [self._records[k] for k in sorted(self._records)]

    def clear(self):
        with self._lock:
            self._records.clear()
            self._evaluated_at.clear()


# =============================================================================
# BEHAVIOUR VERSION REGISTRY
# =============================================================================

class BehaviourVersionStore:
    """
    Registry of frozen behaviour versions.

    Re-registering an identical payload is a no-op; a different payload
    under an existing version string is a VERSION_CONFLICT.
    """

    def __init__(self):
        self._versions: Dict[str, BehaviourVersion] = {}
        self._lock = threading.Lock()

    def register(self, behaviour: BehaviourVersion, now: datetime) -> Result:
        with self._lock:
            existing = self._versions.get(behaviour.behaviour_version)
            if existing is None:
                self._versions[behaviour.behaviour_version] = behaviour
                return Result.success(behaviour)

        if existing.fingerprint() == behaviour.fingerprint():
            return Result.success(existing)

        logger.warning("Behaviour version %s re-registered with a different payload",
                       behaviour.behaviour_version)
        return Result.failure(Error(
            code=ErrorCode.VERSION_CONFLICT,
            message=(
                f"Behaviour version {behaviour.behaviour_version} is frozen; "
                "changes require a new version string"
            ),
            timestamp=ensure_utc(now),
            context=(("behaviour_version", behaviour.behaviour_version),),
        ))

    def get(self, version: str) -> Optional[BehaviourVersion]:
        with self._lock:
            return self._versions.get(version)

    def versions(self) -> List[str]:
        with self._lock:
            return sorted(self._versions)


__all__ = [
    'MomentMemoryStore',
    'InMemoryMomentMemoryStore',
    'BehaviourVersionStore',
]
