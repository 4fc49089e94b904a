"""
Logical Clock for Deterministic Evaluation
==========================================

Injectable clock. Every "current time" read by the engine goes through
one of these, so an evaluation can be reproduced exactly.

GUARANTEES:
- Same inputs + same clock sequence = identical outputs
- Never reads system time implicitly in fixed or replay mode
- Live ticks are logged only when `record` is set; a recorded session
  can be replayed
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import List, Optional
import json
import threading

from ..contracts.base import ensure_utc


class ClockExhausted(Exception):
    """Raised when replay clock runs out of ticks."""
    pass


class ClockMode(Enum):
    LIVE = "live"
    FIXED = "fixed"
    REPLAY = "replay"


@dataclass
class LogicalClock:
    """
    Injectable clock for deterministic execution.

    MODES:
    ======
    1. LIVE: reads system time (UTC); logs each tick when `record` is set
    2. FIXED: always returns the same instant (tests, batch recomputation)
    3. REPLAY: returns a pre-recorded tick sequence in order

    Safe to share between threads; tick bookkeeping is lock-guarded.
    """
    mode: ClockMode = ClockMode.LIVE
    record: bool = False
    _ticks: List[datetime] = field(default_factory=list)
    _current_index: int = 0
    _fixed: Optional[datetime] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def now(self) -> datetime:
        """Get current logical time."""
        with self._lock:
            if self.mode == ClockMode.FIXED:
                self._current_index += 1
                return self._fixed

            if self.mode == ClockMode.LIVE:
                current = datetime.now(timezone.utc)
                if self.record:
                    self._ticks.append(current)
                self._current_index += 1
                return current

            if self._current_index >= len(self._ticks):
                raise ClockExhausted(
                    f"Replay clock exhausted at index {self._current_index}. "
                    f"Original execution had {len(self._ticks)} ticks."
                )
            tick = self._ticks[self._current_index]
            self._current_index += 1
            return tick

    def tick_count(self) -> int:
        """Number of ticks recorded/consumed."""
        return self._current_index

    @property
    def ticks(self) -> List[datetime]:
        with self._lock:
            return list(self._ticks)

    @classmethod
    def live(cls, record: bool = False) -> LogicalClock:
        return cls(mode=ClockMode.LIVE, record=record)

    @classmethod
    def fixed(cls, instant: datetime) -> LogicalClock:
        return cls(mode=ClockMode.FIXED, _fixed=ensure_utc(instant))

    @classmethod
    def replay(cls, ticks: List[datetime]) -> LogicalClock:
        return cls(mode=ClockMode.REPLAY, _ticks=[ensure_utc(t) for t in ticks])

    @classmethod
    def from_log(cls, tick_log_path: Path) -> LogicalClock:
        """Create clock in REPLAY mode from a recorded log."""
        with open(tick_log_path, 'r') as f:
            data = json.load(f)
        return cls.replay([datetime.fromisoformat(t) for t in data['ticks']])

    def save_log(self, tick_log_path: Path) -> None:
        """Save tick log for future replay."""
        tick_log_path.parent.mkdir(parents=True, exist_ok=True)
        ticks = self.ticks

        data = {
            'version': '1.0',
            'mode': self.mode.value,
            'tick_count': len(ticks),
            'start_time': ticks[0].isoformat() if ticks else None,
            'end_time': ticks[-1].isoformat() if ticks else None,
            'ticks': [t.isoformat() for t in ticks]
        }

        with open(tick_log_path, 'w') as f:
            json.dump(data, f, indent=2)

    def __repr__(self) -> str:
        return f"LogicalClock({self.mode.name}, ticks={len(self._ticks)}, index={self._current_index})"
