import threading


class RunObserver:
    """
    Observation surface of the engine. Subclass and override what you need;
    every hook defaults to a no-op.

    Hooks run synchronously on the thread that produced the notification
    (the run's worker thread for steps and stats). Hand work off to another
    thread if it is slow.
    """

    def on_step(self, event):
        pass

    def on_stats_update(self, stats):
        pass

    def on_state_change(self, state):
        pass

    def on_error(self, error):
        pass


class StepEmitter:
    """Delivers notifications to exactly one observer, in submission order."""

    def __init__(self, observer: RunObserver | None = None):
        self._observer = observer or RunObserver()
        self._lock     = threading.RLock()

    @property
    def observer(self) -> RunObserver:
        return self._observer

    def subscribe(self, observer: RunObserver | None):
        """Replace the active observer. None detaches it."""
        with self._lock:
            self._observer = observer or RunObserver()

    def emit(self, event):
        with self._lock:
            self._observer.on_step(event)

    def emit_stats(self, stats):
        with self._lock:
            self._observer.on_stats_update(stats)

    def emit_state(self, state):
        with self._lock:
            self._observer.on_state_change(state)

    def emit_error(self, error):
        with self._lock:
            self._observer.on_error(error)
