"""Tests for the injectable clock."""

from datetime import datetime, timedelta, timezone

from dividend_kernel.domain.clock import DeterministicClock, SystemClock


class TestDeterministicClock:
    def test_fixed_until_advanced(self):
        clock = DeterministicClock()
        assert clock.now() == clock.now()

    def test_default_epoch_is_utc(self):
        assert DeterministicClock().now().tzinfo == timezone.utc

    def test_advance(self):
        start = datetime(2024, 6, 1, tzinfo=timezone.utc)
        clock = DeterministicClock(start)
        clock.advance(90)
        assert clock.now() == start + timedelta(seconds=90)

    def test_advance_backwards(self):
        start = datetime(2024, 6, 1, tzinfo=timezone.utc)
        clock = DeterministicClock(start)
        clock.advance(-10)
        assert clock.now() == start - timedelta(seconds=10)

    def test_set_time_resets_offset(self):
        clock = DeterministicClock()
        clock.advance(100)
        target = datetime(2030, 1, 1, tzinfo=timezone.utc)
        clock.set_time(target)
        assert clock.now() == target

    def test_tick_moves_forward(self):
        clock = DeterministicClock()
        before = clock.now()
        assert clock.tick() > before


class TestSystemClock:
    def test_returns_aware_utc(self):
        assert SystemClock().now().tzinfo == timezone.utc
