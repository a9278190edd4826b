"""
Delay and Sound Timers
======================

Both timers are 8-bit counters that count down towards zero at 60 Hz of
wall-clock time. The cadence is independent of instruction throughput:
however many instructions run between two updates, a timer loses at
most one count per update, and only once 1/60 s has elapsed.
"""

import time
from dataclasses import dataclass
from typing import Callable, List, Optional

TIMER_HZ = 60
TIMER_PERIOD = 1.0 / TIMER_HZ


@dataclass
class TimerState:
    """Timer values for snapshotting."""
    delay: int = 0
    sound: int = 0


class Timers:
    """
    The delay and sound timers with their 60 Hz update clock.

    Example:
        >>> t = Timers(clock=lambda: 0.0)
        >>> t.delay = 3
        >>> t.update(1 / 60)
        False
        >>> t.delay
        2
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        """
        Args:
            clock: Monotonic time source in seconds (default time.monotonic)
        """
        self._clock = clock or time.monotonic
        self.state = TimerState()
        self._last_update = self._clock()

    @property
    def delay(self) -> int:
        return self.state.delay

    @delay.setter
    def delay(self, value: int) -> None:
        self.state.delay = value & 0xFF

    @property
    def sound(self) -> int:
        return self.state.sound

    @sound.setter
    def sound(self, value: int) -> None:
        self.state.sound = value & 0xFF

    @property
    def last_update(self) -> float:
        return self._last_update

    def now(self) -> float:
        return self._clock()

    def reset(self) -> None:
        self.state = TimerState()
        self._last_update = self._clock()

    def update(self, now: Optional[float] = None) -> bool:
        """
        Decrement both timers if a 60 Hz period has elapsed.

        Args:
            now: Current time in seconds; read from the clock if omitted

        Returns:
            True if a decrement happened while the sound timer was nonzero,
            i.e. the caller should trigger the tone for this period
        """
        if now is None:
            now = self._clock()
        if now - self._last_update < TIMER_PERIOD:
            return False

        self._last_update = now
        sounding = self.state.sound > 0
        if self.state.delay > 0:
            self.state.delay -= 1
        if sounding:
            self.state.sound -= 1
        return sounding

    def get_snapshot_data(self) -> List[int]:
        return [self.state.delay, self.state.sound]

    def apply_snapshot_data(self, data: List[int], offset: int = 0) -> int:
        self.delay = data[offset]
        self.sound = data[offset + 1]
        self._last_update = self._clock()
        return 2
