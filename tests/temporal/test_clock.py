"""
Logical Clock Tests
"""

import pytest
from datetime import datetime, timedelta

from moment_engine.temporal import ClockExhausted, ClockMode, LogicalClock

from tests.fixtures import NOW


class TestFixedClock:

    def test_always_same_instant(self):
        clock = LogicalClock.fixed(NOW)
        assert clock.now() == clock.now() == NOW
        assert clock.tick_count() == 2

    def test_naive_instant_treated_as_utc(self):
        clock = LogicalClock.fixed(datetime(2026, 3, 14, 18, 0, 0))
        assert clock.now() == NOW


class TestReplayClock:

    def test_ticks_in_order(self):
        ticks = [NOW, NOW + timedelta(minutes=1)]
        clock = LogicalClock.replay(ticks)

        assert clock.mode == ClockMode.REPLAY
        assert [clock.now(), clock.now()] == ticks

    def test_exhausted(self):
        clock = LogicalClock.replay([NOW])
        clock.now()
        with pytest.raises(ClockExhausted):
            clock.now()


class TestLiveClock:

    def test_ticks_recorded_and_replayable(self, tmp_path):
        live = LogicalClock.live(record=True)
        first = live.now()
        second = live.now()
        assert first.tzinfo is not None
        assert live.ticks == [first, second]

        log_path = tmp_path / "clock" / "ticks.json"
        live.save_log(log_path)
        replayed = LogicalClock.from_log(log_path)

        assert replayed.now() == first
        assert replayed.now() == second

    def test_unrecorded_live_clock_keeps_no_ticks(self):
        live = LogicalClock.live()
        for _ in range(100):
            live.now()

        assert live.ticks == []
        assert live.tick_count() == 100
