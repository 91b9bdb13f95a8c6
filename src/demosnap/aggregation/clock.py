"""
Tick-to-time conversion and one-second window boundaries.
"""

import math

from demosnap.core.constants import DEFAULT_ROUND_DURATION, NO_WINDOW


class Clock:
    """
    Converts decoder ticks to elapsed seconds and detects second boundaries.

    ``advance`` is the only thing that opens a new window: it returns the new
    second the first time a tick lands in it and ``None`` for every other
    tick of that second.
    """

    def __init__(self, tick_rate: float, round_duration: float = DEFAULT_ROUND_DURATION):
        if tick_rate <= 0:
            raise ValueError(f"Tick rate must be positive, got {tick_rate}")
        self.tick_rate = tick_rate
        self.round_duration = round_duration
        self.last_processed_second = NO_WINDOW

    def elapsed(self, tick: int) -> float:
        """Seconds since the start of the demo."""
        return tick / self.tick_rate

    def advance(self, tick: int) -> int | None:
        second = math.floor(self.elapsed(tick))
        if second > self.last_processed_second:
            self.last_processed_second = second
            return second
        return None

    def countdown(self, elapsed: float, round_start_time: float) -> float:
        """Remaining round time, clamped at zero and rounded to 2 decimals."""
        remaining = self.round_duration - (elapsed - round_start_time)
        return round(max(0.0, remaining), 2)
