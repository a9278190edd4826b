"""
Timer Tests
===========

Tests for the 60 Hz delay and sound timers driven by an injected clock.
"""

import pytest

from chip8_vm.emulator.timers import TIMER_HZ, TIMER_PERIOD, Timers

# Just over one timer period
STEP = TIMER_PERIOD * 1.001


@pytest.fixture
def timers(clock):
    return Timers(clock)


class TestValues:
    def test_start_at_zero(self, timers):
        assert timers.delay == 0
        assert timers.sound == 0

    def test_masked_to_8_bits(self, timers):
        timers.delay = 0x1FF
        timers.sound = 0x100
        assert timers.delay == 0xFF
        assert timers.sound == 0

    def test_rate(self):
        assert TIMER_HZ == 60
        assert TIMER_PERIOD == pytest.approx(1 / 60)


class TestUpdate:
    def test_no_decrement_before_period(self, timers, clock):
        timers.delay = 5
        clock.advance(TIMER_PERIOD / 2)
        assert timers.update() is False
        assert timers.delay == 5

    def test_decrement_after_period(self, timers, clock):
        timers.delay = 5
        clock.advance(STEP)
        timers.update()
        assert timers.delay == 4

    def test_one_decrement_per_update(self, timers, clock):
        """A long gap still only loses one count per update."""
        timers.delay = 5
        clock.advance(1.0)
        timers.update()
        assert timers.delay == 4

    def test_repeated_updates_in_same_period(self, timers, clock):
        timers.delay = 5
        clock.advance(STEP)
        timers.update()
        timers.update()
        timers.update()
        assert timers.delay == 4

    def test_explicit_time(self, timers):
        timers.delay = 3
        timers.update(TIMER_PERIOD)
        timers.update(2 * TIMER_PERIOD)
        assert timers.delay == 1
        assert timers.last_update == pytest.approx(2 * TIMER_PERIOD)

    def test_stops_at_zero(self, timers, clock):
        timers.delay = 1
        for _ in range(3):
            clock.advance(STEP)
            timers.update()
        assert timers.delay == 0

    def test_sound_signal(self, timers, clock):
        timers.sound = 2
        results = []
        for _ in range(3):
            clock.advance(STEP)
            results.append(timers.update())
        assert results == [True, True, False]
        assert timers.sound == 0

    def test_one_second_counts_down_sixty(self, timers, clock):
        timers.delay = 60
        for _ in range(60):
            clock.advance(STEP)
            timers.update()
        assert timers.delay == 0

    def test_reset(self, timers, clock):
        timers.delay = 9
        timers.sound = 9
        clock.advance(5.0)
        timers.reset()
        assert timers.delay == 0
        assert timers.sound == 0
        assert timers.last_update == 5.0
