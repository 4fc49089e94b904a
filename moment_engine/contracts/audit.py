"""
Audit Contracts

Immutable records handed to the observability layer. Collectors receive
these by value; nothing downstream can alter what was recorded.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .base import to_iso


class AuditEventType(Enum):
    """Explicit audit event types."""
    NORMALIZATION = "normalization"
    ASSESSMENT = "assessment"
    QUALIFICATION = "qualification"
    LIFECYCLE = "lifecycle"
    STORAGE = "storage"
    ERROR = "error"
    SYSTEM = "system"


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable audit log entry."""
    entry_id: str
    event_type: AuditEventType
    timestamp: datetime
    layer: str  # Which layer generated this
    action: str
    entity_id: Optional[str] = None
    entity_type: Optional[str] = None
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entryId": self.entry_id,
            "eventType": self.event_type.value,
            "timestamp": to_iso(self.timestamp),
            "layer": self.layer,
            "action": self.action,
            "entityId": self.entity_id,
            "entityType": self.entity_type,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class MetricPoint:
    """Immutable metric data point."""
    metric_name: str
    value: float
    timestamp: datetime
    labels: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
