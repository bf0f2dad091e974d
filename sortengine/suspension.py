import logging
import threading

from .errors import RunAborted
from .config import check_step_delay

logger = logging.getLogger(__name__)


class SuspensionController:
    """
    The one cooperative suspension point of a run.

    The run calls await_turn() right before each instrumented unit of work.
    While paused the call blocks on a condition variable until resume();
    otherwise it waits out the step delay and returns. A pause that lands
    inside the delay ends it early; after resume() the call returns without
    waiting out the rest. pause() and resume() are idempotent and safe to
    call from any thread.
    """

    def __init__(self, step_delay_ms: int = 0):
        check_step_delay(step_delay_ms)
        self._cond          = threading.Condition()
        self._paused        = False
        self._aborted       = False
        self._step_delay_ms = step_delay_ms

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def step_delay_ms(self) -> int:
        return self._step_delay_ms

    @step_delay_ms.setter
    def step_delay_ms(self, value: int):
        check_step_delay(value)
        with self._cond:
            self._step_delay_ms = value

    def pause(self):
        with self._cond:
            if not self._paused:
                self._paused = True
                logger.debug("suspension paused")
                self._cond.notify_all()

    def resume(self):
        with self._cond:
            if self._paused:
                self._paused = False
                logger.debug("suspension resumed")
                self._cond.notify_all()

    def abort(self):
        """Wake a blocked await_turn() and make it raise RunAborted."""
        with self._cond:
            self._aborted = True
            self._cond.notify_all()

    def rearm(self):
        """Clear pause and abort flags before a new run."""
        with self._cond:
            self._paused  = False
            self._aborted = False

    def _may_proceed(self):
        return self._aborted or not self._paused

    def await_turn(self):
        with self._cond:
            self._cond.wait_for(self._may_proceed)
            if self._step_delay_ms > 0 and not self._aborted:
                # pause() and abort() cut the delay short
                self._cond.wait(self._step_delay_ms / 1000.0)
                self._cond.wait_for(self._may_proceed)
            if self._aborted:
                raise RunAborted()

    def hold(self):
        """Block while paused, ignoring the step delay. Raises RunAborted if aborted."""
        with self._cond:
            self._cond.wait_for(self._may_proceed)
            if self._aborted:
                raise RunAborted()
