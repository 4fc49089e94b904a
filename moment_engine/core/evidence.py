"""
Evidence Aggregator
===================

Turns a cluster's raw SignalEvents into deterministic evidence
primitives: counts, first/last timestamps, age, recency and velocity.

BOUNDARY ENFORCEMENT:
- Pure function of the signal list and the supplied "now"
- Invalid timestamps are dropped, never defaulted
- No hidden state between calls
"""

from __future__ import annotations
from datetime import datetime
from typing import List, Optional, Sequence

from ..contracts.base import ensure_utc, parse_iso_timestamp
from ..contracts.evidence import Evidence
from ..contracts.signals import SignalEvent, SUBREDDIT_TAG_PREFIX
from ..temporal.clock import LogicalClock


# Below this age the signal_count / age ratio is too unstable to report.
MIN_VELOCITY_AGE_HOURS = 0.25


class EvidenceAggregator:
    """Derive Evidence from a list of SignalEvents."""

    def __init__(self, clock: Optional[LogicalClock] = None):
        self._clock = clock or LogicalClock.live()

    def aggregate(
        self,
        signals: Sequence[SignalEvent],
        now: Optional[datetime] = None
    ) -> Evidence:
        now = ensure_utc(now) if now is not None else self._clock.now()

        signal_count = len(signals)
        source_count = self.count_sources(signals)

        timestamps = self._valid_timestamps(signals)
        if not timestamps:
            return Evidence(signal_count=signal_count, source_count=source_count)

        first_seen = min(timestamps)
        last_confirmed = max(timestamps)

        age_hours = max(0.0, (now - first_seen).total_seconds() / 3600.0)
        recency_mins = max(0.0, (now - last_confirmed).total_seconds() / 60.0)

        velocity = None
        if age_hours >= MIN_VELOCITY_AGE_HOURS:
            velocity = signal_count / age_hours

        return Evidence(
            signal_count=signal_count,
            source_count=source_count,
            first_seen_at=first_seen,
            last_confirmed_at=last_confirmed,
            age_hours=age_hours,
            recency_mins=recency_mins,
            velocity_per_hour=velocity,
        )

    @staticmethod
    def count_sources(signals: Sequence[SignalEvent]) -> int:
        """
        Breadth proxy: the larger of distinct platforms and distinct
        subreddits, never below 1. With a single platform wired, the
        subreddit spread still shows breadth.
        """
        platforms = {s.source.strip().lower() for s in signals if s.source and s.source.strip()}
        subreddits = {
            value.lower()
            for s in signals
            for value in s.tag_values(SUBREDDIT_TAG_PREFIX)
        }
        return max(1, len(platforms), len(subreddits))

    @staticmethod
    def _valid_timestamps(signals: Sequence[SignalEvent]) -> List[datetime]:
        parsed = (parse_iso_timestamp(s.timestamp) for s in signals)
        return [ts for ts in parsed if ts is not None]
