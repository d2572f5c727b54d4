"""
Fixed-cadence pacing for the probe loop.
"""

import time
from typing import Callable


class PacingClock:
    """Keeps successive iteration starts ``interval`` seconds apart.

    The deadline advances additively, so scheduler jitter does not accumulate.
    When an iteration overruns its deadline the cadence is resynchronised to
    the current time instead of trying to catch up.
    """

    def __init__(
        self,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        now = clock()
        self.iteration_start = now
        self.next_deadline = now + interval

    def reset(self) -> None:
        """Restart the cadence from now, e.g. after a new session is opened."""
        now = self._clock()
        self.iteration_start = now
        self.next_deadline = now + self.interval

    def start(self) -> None:
        """Mark the beginning of a measurement."""
        self.iteration_start = self._clock()

    def elapsed(self) -> float:
        """Seconds since the current measurement started."""
        return self._clock() - self.iteration_start

    def wait(self) -> bool:
        """Sleep until the next deadline.

        Returns True if the deadline had already passed (loop timeout).
        """
        now = self._clock()
        if now > self.next_deadline:
            self.next_deadline = now + self.interval
            return True
        self._sleep(self.next_deadline - now)
        self.next_deadline += self.interval
        return False

    def backoff(self) -> None:
        """Sleep one full interval, used before retrying a failed session."""
        self._sleep(self.interval)
        self.next_deadline = self._clock() + self.interval
