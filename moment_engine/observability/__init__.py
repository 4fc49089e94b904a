"""
Observability & Audit Layer

RESPONSIBILITY: Audit trail and metrics for assessments, qualifications
and lifecycle evaluations
ALLOWED INPUTS: Results produced by the other layers
OUTPUTS: AuditLogEntry lists, MetricPoint series, audit reports

WHAT THIS LAYER MUST NOT DO:
============================
- Modify system behavior
- Filter or interpret events (only record them)
- Make decisions based on logged data
- Read wall-clock time except through the injected LogicalClock

BOUNDARY ENFORCEMENT:
=====================
- Receives immutable contract objects only
- NEVER modifies events or system state
- Provides read-only copies of logs and metrics
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, Dict, List, Optional, Tuple
import hashlib
import threading

from ..contracts.audit import AuditEventType, AuditLogEntry, MetricPoint
from ..contracts.base import Error, to_iso
from ..contracts.lifecycle import MomentHealth
from ..contracts.quality import MomentQualification
from ..temporal.clock import LogicalClock


LAYERS = ("normalization", "core", "qualification", "storage", "engine")

DEFAULT_MAX_ENTRIES = 10_000
DEFAULT_MAX_POINTS = 10_000


# =============================================================================
# LOG COLLECTORS (One per layer)
# =============================================================================

class LogCollector:
    """
    Append-only collector of audit entries for one layer.

    Keeps the most recent `max_entries`; older entries are dropped.
    Collection is lock-guarded so parallel evaluations can share one.
    """

    def __init__(self, layer_name: str, max_entries: int = DEFAULT_MAX_ENTRIES):
        self._layer_name = layer_name
        self._entries: Deque[AuditLogEntry] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def collect(self, entry: AuditLogEntry):
        with self._lock:
            self._entries.append(entry)

    def get_entries(
        self,
        event_type: Optional[AuditEventType] = None,
        entity_id: Optional[str] = None
    ) -> List[AuditLogEntry]:
        """Get entries, optionally filtered."""
        with self._lock:
            entries = list(self._entries)

        if event_type:
            entries = [e for e in entries if e.event_type == event_type]
        if entity_id:
            entries = [e for e in entries if e.entity_id == entity_id]

        return entries

    @property
    def layer_name(self) -> str:
        return self._layer_name

    @property
    def entry_count(self) -> int:
        with self._lock:
            return len(self._entries)


# =============================================================================
# METRICS COLLECTOR
# =============================================================================

class MetricType(Enum):
    """Types of metrics collected."""
    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"


@dataclass(frozen=True)
class MetricDefinition:
    """Definition of a metric to collect."""
    name: str
    metric_type: MetricType
    description: str
    labels: Tuple[str, ...] = field(default_factory=tuple)


DEFAULT_METRICS = (
    MetricDefinition(
        name="lifecycle_evaluations_total",
        metric_type=MetricType.COUNTER,
        description="Lifecycle evaluations performed",
        labels=("state",)
    ),
    MetricDefinition(
        name="lifecycle_refusals_total",
        metric_type=MetricType.COUNTER,
        description="Evaluations that ended INVALID",
        labels=("reason",)
    ),
    MetricDefinition(
        name="signal_integrity_score",
        metric_type=MetricType.HISTOGRAM,
        description="SIS per evaluation"
    ),
    MetricDefinition(
        name="identity_continuity_score",
        metric_type=MetricType.HISTOGRAM,
        description="ICS per evaluation"
    ),
    MetricDefinition(
        name="trend_quality_score",
        metric_type=MetricType.HISTOGRAM,
        description="Presentation quality score per assessed cluster",
        labels=("status",)
    ),
    MetricDefinition(
        name="qualifications_total",
        metric_type=MetricType.COUNTER,
        description="Candidates run through the quality gate",
        labels=("outcome",)
    ),
)


class MetricsCollector:
    """
    Time series of metric points, the most recent `max_points` per metric.

    Timestamps come from the injected clock, never from the system.
    """

    def __init__(
        self,
        clock: Optional[LogicalClock] = None,
        max_points: int = DEFAULT_MAX_POINTS
    ):
        self._clock = clock or LogicalClock.live()
        self._max_points = max_points
        self._metrics: Dict[str, Deque[MetricPoint]] = {}
        self._definitions: Dict[str, MetricDefinition] = {}
        self._lock = threading.Lock()
        for definition in DEFAULT_METRICS:
            self.register_metric(definition)

    def register_metric(self, definition: MetricDefinition):
        with self._lock:
            self._definitions[definition.name] = definition
            self._metrics.setdefault(definition.name, deque(maxlen=self._max_points))

    def definition(self, metric_name: str) -> Optional[MetricDefinition]:
        return self._definitions.get(metric_name)

    def record(
        self,
        metric_name: str,
        value: float,
        labels: Optional[Dict[str, str]] = None
    ):
        """Record a metric data point."""
        label_tuple = tuple(sorted(labels.items())) if labels else ()
        point = MetricPoint(
            metric_name=metric_name,
            value=float(value),
            timestamp=self._clock.now(),
            labels=label_tuple
        )
        with self._lock:
            self._metrics.setdefault(metric_name, deque(maxlen=self._max_points)).append(point)

    def get_metric(self, metric_name: str) -> List[MetricPoint]:
        with self._lock:
            return list(self._metrics.get(metric_name, []))

    def get_latest(self, metric_name: str) -> Optional[MetricPoint]:
        points = self.get_metric(metric_name)
        return points[-1] if points else None

    def total(self, metric_name: str, labels: Optional[Dict[str, str]] = None) -> float:
        """Sum of a counter, optionally restricted to one label set."""
        wanted = tuple(sorted(labels.items())) if labels else None
        return sum(
            p.value for p in self.get_metric(metric_name)
            if wanted is None or p.labels == wanted
        )

    def compute_aggregates(self, metric_name: str) -> Dict[str, float]:
        """Compute aggregate statistics for a metric."""
        points = self.get_metric(metric_name)

        if not points:
            return {}

        values = [p.value for p in points]

        return {
            'count': len(values),
            'sum': sum(values),
            'min': min(values),
            'max': max(values),
            'avg': sum(values) / len(values),
        }


# =============================================================================
# OBSERVABILITY ENGINE (Orchestrates all observability)
# =============================================================================

@dataclass(frozen=True)
class ObservabilityConfig:
    """Configuration for observability engine."""
    enable_metrics: bool = True
    max_entries_per_layer: int = DEFAULT_MAX_ENTRIES
    max_points_per_metric: int = DEFAULT_MAX_POINTS


class ObservabilityEngine:
    """
    Central Observability Engine.

    BOUNDARY ENFORCEMENT:
    - ONLY observes, never modifies
    - Provides read-only access to collected data
    """

    def __init__(
        self,
        config: Optional[ObservabilityConfig] = None,
        clock: Optional[LogicalClock] = None
    ):
        self._config = config or ObservabilityConfig()
        self._clock = clock or LogicalClock.live()
        self._collectors: Dict[str, LogCollector] = {
            layer: LogCollector(layer, self._config.max_entries_per_layer)
            for layer in LAYERS
        }
        self._metrics = (
            MetricsCollector(self._clock, self._config.max_points_per_metric)
            if self._config.enable_metrics else None
        )
        self._sequence = 0
        self._sequence_lock = threading.Lock()

    def _next_entry_id(self, layer: str, action: str) -> str:
        with self._sequence_lock:
            self._sequence += 1
            sequence = self._sequence
        digest = hashlib.sha256(f"{layer}_{action}|{sequence}".encode()).hexdigest()[:16]
        return f"audit_{digest}"

    def collect_audit(self, entry: AuditLogEntry):
        """Collect an audit log entry from any layer."""
        collector = self._collectors.get(entry.layer)
        if collector:
            collector.collect(entry)

    def log_audit(
        self,
        action: str,
        entity_id: Optional[str] = None,
        event_type: AuditEventType = AuditEventType.SYSTEM,
        layer: str = "engine",
        entity_type: Optional[str] = None,
        **metadata: str
    ) -> AuditLogEntry:
        """Helper to log audit entry directly."""
        entry = AuditLogEntry(
            entry_id=self._next_entry_id(layer, action),
            event_type=event_type,
            timestamp=self._clock.now(),
            layer=layer,
            action=action,
            entity_id=entity_id,
            entity_type=entity_type,
            metadata=tuple(sorted((k, str(v)) for k, v in metadata.items())),
        )
        self.collect_audit(entry)
        return entry

    def collect_metric(
        self,
        metric_name: str,
        value: float,
        labels: Optional[Dict[str, str]] = None
    ):
        if self._metrics:
            self._metrics.record(metric_name, value, labels)

    # -------------------------------------------------------------------------
    # Domain recorders
    # -------------------------------------------------------------------------

    def record_health(self, moment_id: str, health: MomentHealth):
        """Audit one lifecycle evaluation and its scores."""
        reason = health.invalid_reason.value if health.invalid_reason else ""
        self.log_audit(
            action="evaluate_lifecycle",
            entity_id=moment_id,
            entity_type="moment",
            event_type=AuditEventType.LIFECYCLE,
            layer="core",
            state=health.state.value,
            invalid_reason=reason,
            sis=f"{health.sis:.4f}",
            ics=f"{health.ics:.4f}",
        )
        self.collect_metric("lifecycle_evaluations_total", 1, {"state": health.state.value})
        if health.is_refusal:
            self.collect_metric("lifecycle_refusals_total", 1, {"reason": reason})
        self.collect_metric("signal_integrity_score", health.sis)
        self.collect_metric("identity_continuity_score", health.ics)

    def record_qualification(self, candidate_id: str, qualification: MomentQualification):
        outcome = "passed" if qualification.passed else "failed"
        self.log_audit(
            action="qualify_candidate",
            entity_id=candidate_id,
            entity_type="candidate",
            event_type=AuditEventType.QUALIFICATION,
            layer="qualification",
            outcome=outcome,
            overall=f"{qualification.score.overall:.4f}",
            reasons=",".join(qualification.reasons),
        )
        self.collect_metric("qualifications_total", 1, {"outcome": outcome})

    def record_assessment(self, cluster_id: str, status: str, quality_score: float):
        self.log_audit(
            action="assess_cluster",
            entity_id=cluster_id,
            entity_type="cluster",
            event_type=AuditEventType.ASSESSMENT,
            layer="core",
            status=status,
            quality=f"{quality_score:.2f}",
        )
        self.collect_metric("trend_quality_score", quality_score, {"status": status})

    def record_error(self, error: Error, layer: str = "engine", entity_id: Optional[str] = None):
        self.log_audit(
            action="error",
            entity_id=entity_id,
            event_type=AuditEventType.ERROR,
            layer=layer,
            code=error.code.name,
            message=error.message,
        )

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    def get_unified_log(self, layers: Optional[List[str]] = None) -> List[AuditLogEntry]:
        """Get unified log from all or specified layers, oldest first."""
        target_layers = layers or list(self._collectors.keys())

        all_entries = []
        for layer_name in target_layers:
            collector = self._collectors.get(layer_name)
            if collector:
                all_entries.extend(collector.get_entries())

        all_entries.sort(key=lambda e: e.timestamp)
        return all_entries

    def get_layer_log(self, layer_name: str) -> List[AuditLogEntry]:
        collector = self._collectors.get(layer_name)
        if not collector:
            return []
        return collector.get_entries()

    def get_metrics(self) -> Optional[MetricsCollector]:
        """Get metrics collector (read-only access)."""
        return self._metrics

    def generate_audit_report(self) -> Dict:
        """Aggregate counts by layer and event type."""
        entries = self.get_unified_log()

        by_layer: Dict[str, int] = {}
        by_type: Dict[str, int] = {}
        for entry in entries:
            by_layer[entry.layer] = by_layer.get(entry.layer, 0) + 1
            by_type[entry.event_type.value] = by_type.get(entry.event_type.value, 0) + 1

        return {
            'total_entries': len(entries),
            'by_layer': by_layer,
            'by_event_type': by_type,
            'time_range': {
                'start': to_iso(entries[0].timestamp) if entries else None,
                'end': to_iso(entries[-1].timestamp) if entries else None,
            },
            'generated_at': to_iso(self._clock.now())
        }


__all__ = [
    'LogCollector',
    'MetricType',
    'MetricDefinition',
    'MetricsCollector',
    'ObservabilityConfig',
    'ObservabilityEngine',
    'DEFAULT_METRICS',
    'LAYERS',
]
