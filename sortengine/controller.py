"""
Run orchestration.

SortRunController is the only entry point a UI calls. It owns the run state
machine (Idle -> Running <-> Paused -> Completed), the working array between
runs, and the restore point taken at start(). Each run executes on a daemon
worker thread that drains the algorithm generator, stopping at the
suspension controller before every instrumented unit of work.
"""
import logging
import random
import threading
from dataclasses import dataclass, field

from . import algorithms
from .array import WorkingArray
from .config import VALUE_HIGH, VALUE_LOW, EngineConfig, check_size
from .emitter import StepEmitter
from .errors import IllegalTransition, RunAborted
from .events import ClearHighlights, Describe, RunState
from .stats import StatsAccumulator
from .suspension import SuspensionController

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """Everything one algorithm invocation touches, handed over by reference."""
    algorithm: algorithms.AlgorithmId
    array: WorkingArray
    stats: StatsAccumulator
    emitter: StepEmitter
    suspension: SuspensionController
    worker: threading.Thread | None = field(default=None, repr=False)


class SortRunController:
    def __init__(self, config=None, observer=None, seed=None, values=None):
        self._config      = (config or EngineConfig()).validate()
        self._rng         = random.Random(seed)
        self._lock        = threading.Lock()
        self._emitter     = StepEmitter(observer)
        self._suspension  = SuspensionController(self._config.step_delay_ms)
        self._stats       = StatsAccumulator()
        self._state       = RunState.IDLE
        self._ctx         = None
        self._error       = None
        self._algorithm   = algorithms.AlgorithmId.BUBBLE
        if values is None:
            values = self._random_values(self._config.size)
        self._array       = WorkingArray(values)
        self._restore     = self._array.snapshot()

    # ---------------------------------------------------------- observation

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def stats(self):
        return self._stats.snapshot()

    @property
    def error(self):
        """The fault that ended the last run, or None."""
        return self._error

    @property
    def algorithm(self) -> algorithms.AlgorithmId:
        return self._algorithm

    @property
    def descriptor(self):
        return algorithms.ALGORITHMS[self._algorithm]

    def array_snapshot(self) -> tuple:
        return self._array.snapshot()

    def subscribe(self, observer):
        self._emitter.subscribe(observer)

    # -------------------------------------------------------------- control

    def configure(self, size=None, step_delay_ms=None) -> EngineConfig:
        """
        Change run settings. A new size regenerates the array and is rejected
        during a run; the step delay may change at any time.
        """
        changes = {}
        if size is not None: changes["size"] = size
        if step_delay_ms is not None: changes["step_delay_ms"] = step_delay_ms
        new_cfg = self._config.replace(**changes)
        with self._lock:
            resize = size is not None and size != self._config.size
            if resize and self._state.in_flight:
                raise IllegalTransition("change the array size", self._state)
            self._config = new_cfg
            self._suspension.step_delay_ms = new_cfg.step_delay_ms
        logger.debug("configured size=%d step_delay_ms=%d", new_cfg.size, new_cfg.step_delay_ms)
        if resize:
            self.regenerate(size)
        return new_cfg

    def regenerate(self, size=None) -> tuple:
        """Replace the array with random values in [VALUE_LOW, VALUE_HIGH)."""
        size = self._config.size if size is None else size
        check_size(size)
        with self._lock:
            self._ensure_idle("regenerate the array")
            if size != self._config.size:
                self._config = self._config.replace(size=size)
            self._install(self._random_values(size))
        logger.info("regenerated array of size %d", size)
        self._emitter.emit_state(self._state)
        return self.array_snapshot()

    def load(self, values) -> tuple:
        """Install caller-supplied values as the working array."""
        values = list(values)
        with self._lock:
            self._ensure_idle("load an array")
            self._install(values)
        logger.info("loaded array of size %d", len(values))
        self._emitter.emit_state(self._state)
        return self.array_snapshot()

    def start(self, algorithm_id=None) -> RunState:
        with self._lock:
            if self._state.in_flight:
                raise IllegalTransition("start a run", self._state)
            key = algorithms.resolve(self._algorithm if algorithm_id is None else algorithm_id)
            prev = self._ctx
        # the finished worker may still be delivering its last notifications
        if prev is not None and prev.worker is not None and prev.worker is not threading.current_thread():
            prev.worker.join()

        with self._lock:
            if self._state.in_flight:
                raise IllegalTransition("start a run", self._state)
            algorithms.check_domain(key, self._array.snapshot())
            self._algorithm = key
            self._restore   = self._array.snapshot()
            self._error     = None
            self._suspension.rearm()
            self._stats     = StatsAccumulator()
            self._stats.start()
            self._ctx = RunContext(key, self._array, self._stats, self._emitter, self._suspension)
            self._state = RunState.RUNNING
            worker = threading.Thread(target=self._drive, args=(self._ctx,),
                                      name=f"sort-{key.value}", daemon=True)
            self._ctx.worker = worker
        logger.info("starting %s on %d values", self.descriptor.display_name, len(self._array))
        self._emitter.emit_stats(self._stats.snapshot())
        self._emitter.emit_state(RunState.RUNNING)
        worker.start()
        return RunState.RUNNING

    def pause_toggle(self) -> RunState:
        with self._lock:
            if self._state is RunState.RUNNING:
                self._suspension.pause()
                self._state = RunState.PAUSED
            elif self._state is RunState.PAUSED:
                self._suspension.resume()
                self._state = RunState.RUNNING
            else:
                return self._state
            state = self._state
        logger.debug("run %s", state.label.lower())
        self._emitter.emit_state(state)
        return state

    def reset(self) -> tuple:
        """
        Restore the array captured at start() and return to Idle.

        From Paused this discards the suspended run; the worker is woken,
        leaves without touching the array again, and is joined first.
        """
        with self._lock:
            if self._state is RunState.RUNNING:
                raise IllegalTransition("reset", self._state)
            ctx, self._ctx = self._ctx, None
            if self._state is RunState.PAUSED:
                self._suspension.abort()
            self._state = RunState.IDLE
        if ctx is not None and ctx.worker is not None:
            ctx.worker.join()
        with self._lock:
            self._array = WorkingArray(self._restore)
            self._stats = StatsAccumulator()
            self._error = None
        logger.info("reset to pre-run array")
        self._emitter.emit_stats(self._stats.snapshot())
        self._emitter.emit_state(RunState.IDLE)
        return self.array_snapshot()

    def wait(self, timeout=None) -> bool:
        """Block until the current run's worker exits. True if it has."""
        ctx = self._ctx
        if ctx is None or ctx.worker is None:
            return True
        ctx.worker.join(timeout)
        return not ctx.worker.is_alive()

    def run(self, algorithm_id=None, timeout=None):
        """start() and wait() in one call; returns the final RunStats."""
        self.start(algorithm_id)
        self.wait(timeout)
        return self.stats

    # ------------------------------------------------------------ internals

    def _ensure_idle(self, action):
        if self._state.in_flight:
            raise IllegalTransition(action, self._state)

    def _install(self, values):
        self._array   = WorkingArray(values)
        self._restore = self._array.snapshot()
        self._stats   = StatsAccumulator()
        self._error   = None
        self._state   = RunState.IDLE

    def _random_values(self, size):
        return [self._rng.randrange(VALUE_LOW, VALUE_HIGH) for _ in range(size)]

    def _publish(self, ctx, event):
        changed = ctx.stats.observe(event)
        ctx.emitter.emit(event)
        if changed:
            ctx.emitter.emit_stats(ctx.stats.snapshot())
        return changed

    def _drive(self, ctx):
        gen = algorithms.get_generator(ctx.algorithm, ctx.array)
        error = None
        try:
            ctx.suspension.await_turn()
            for event in gen:
                if self._publish(ctx, event):
                    ctx.suspension.await_turn()
            # a pause on a trailing mark holds the run before it reports completion
            ctx.suspension.hold()
            self._publish(ctx, Describe(f"{algorithms.ALGORITHMS[ctx.algorithm].display_name} completed!"))
            self._publish(ctx, ClearHighlights())
        except RunAborted:
            gen.close()
            logger.info("aborted %s", ctx.algorithm.value)
            return
        except Exception as e:
            logger.exception("%s failed", ctx.algorithm.value)
            error = e
        try:
            self._finish(ctx, error)
        except RunAborted:
            logger.info("aborted %s", ctx.algorithm.value)

    def _finish(self, ctx, error):
        """Move Running -> Completed, waiting out any pause first."""
        while True:
            ctx.suspension.hold()
            with self._lock:
                if self._ctx is not ctx:
                    return
                if self._state is RunState.RUNNING:
                    ctx.stats.finish()
                    self._error = error
                    self._state = RunState.COMPLETED
                    break
        stats = ctx.stats.snapshot()
        if error is not None:
            self._emitter.emit_error(error)
        else:
            logger.info("completed %s: %d comparisons, %d swaps in %d ms",
                        ctx.algorithm.value, stats.comparisons, stats.swaps, stats.elapsed_ms)
        # an observer hook may already have started the next run
        if self._ctx is ctx:
            self._emitter.emit_stats(stats)
        if self._ctx is ctx:
            self._emitter.emit_state(RunState.COMPLETED)
