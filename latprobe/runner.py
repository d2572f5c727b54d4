"""
Client probe loop: drives a session at a fixed cadence and reports every
iteration to an output sink.
"""

import logging
from typing import Optional

from .core.errors import SessionError
from .core.models import Failure, Latency, Outcome
from .pacing import PacingClock


class ProbeRunner:
    """Runs probe sessions forever, reconnecting after every failure.

    Iterations are strictly sequential: the next one starts only after the
    previous outcome has been rendered and the pacing deadline reached.
    """

    def __init__(self, session, sink, clock: PacingClock):
        self.session = session
        self.sink = sink
        self.clock = clock
        self.logger = logging.getLogger(__name__)

        self.reported = 0
        self._limit: Optional[int] = None

    def run(self, iterations: Optional[int] = None) -> None:
        """Probe until the process stops or ``iterations`` outcomes are reported."""
        self._limit = None if iterations is None else self.reported + iterations
        while not self._done():
            try:
                self.session.open()
            except (SessionError, OSError) as e:
                self._fail(e)
                continue

            self.clock.reset()
            self.sink.reset()
            try:
                self._iterate()
            except (SessionError, OSError) as e:
                self._fail(e)
            finally:
                self.session.close()

    def _iterate(self) -> None:
        while not self._done():
            self.clock.start()
            self.session.exchange()
            self._report(Latency(self.clock.elapsed()))
            if self._done():
                break
            if self.clock.wait():
                self.sink.loop_timeout()

    def _fail(self, cause: BaseException) -> None:
        self.logger.debug(f"Session failed: {cause!r}")
        self._report(Failure(cause))
        if not self._done():
            self.clock.backoff()

    def _report(self, outcome: Outcome) -> None:
        self.sink.render(outcome)
        self.reported += 1

    def _done(self) -> bool:
        return self._limit is not None and self.reported >= self._limit
