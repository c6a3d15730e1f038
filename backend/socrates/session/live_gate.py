import time
from typing import Callable


class LiveFeedbackGate:
    """
    Decides when a live analysis may start.

    Fires when more than `interval_sec` passed since the last fire and no
    other live analysis is in flight. A trigger that arrives while one is in
    flight is dropped, not queued. `generation` is bumped on teardown so a
    task started under an older generation knows its result is stale.
    """

    def __init__(self, interval_sec: float = 5.0, clock: Callable[[], float] = time.monotonic):
        self.interval_sec = max(0.0, float(interval_sec))
        self._clock = clock
        self.last_fired_at = clock()
        self.in_flight = False
        self.generation = 0

    def is_due(self) -> bool:
        return (self._clock() - self.last_fired_at) > self.interval_sec

    def try_acquire(self) -> int | None:
        """Returns the generation token for the new task, or None when skipped."""
        if not self.is_due() or self.in_flight:
            return None
        self.in_flight = True
        self.last_fired_at = self._clock()
        return self.generation

    def release(self, token: int) -> None:
        if token == self.generation:
            self.in_flight = False

    def is_current(self, token: int) -> bool:
        return token == self.generation

    def invalidate(self) -> None:
        self.generation += 1
        self.in_flight = False

    def reset(self) -> None:
        self.last_fired_at = self._clock()
