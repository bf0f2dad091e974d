import time

from .events import Compare, Overwrite, RunStats, Swap


class StatsAccumulator:
    """
    Derives RunStats from the step stream.

    Counters only move through observe(), so they always reconcile with the
    events an observer has seen.
    """

    def __init__(self, clock=time.monotonic):
        self._clock       = clock
        self.comparisons  = 0
        self.swaps        = 0
        self._started_at  = None
        self._elapsed_ms  = 0

    def start(self):
        self.comparisons = 0
        self.swaps       = 0
        self._elapsed_ms = 0
        self._started_at = self._clock()

    def observe(self, event) -> bool:
        """Count one event. Returns True when a counter changed."""
        if isinstance(event, Compare):
            self.comparisons += 1
            return True
        if isinstance(event, (Swap, Overwrite)):
            self.swaps += 1
            return True
        return False

    def finish(self):
        if self._started_at is not None:
            self._elapsed_ms = max(0, int(round((self._clock() - self._started_at) * 1000)))
            self._started_at = None

    def snapshot(self) -> RunStats:
        return RunStats(self.comparisons, self.swaps, self._elapsed_ms)
