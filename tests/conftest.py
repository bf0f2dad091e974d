import threading

import pytest

from sortengine.algorithms import get_generator
from sortengine.array import WorkingArray
from sortengine.emitter import RunObserver
from sortengine.stats import StatsAccumulator


class Tagged(int):
    """An int that remembers where it came from; compares by value only."""

    def __new__(cls, value, tag):
        obj = super().__new__(cls, value)
        obj.tag = tag
        return obj


class RecordingObserver(RunObserver):
    def __init__(self):
        self.steps  = []
        self.stats  = []
        self.states = []
        self.errors = []
        self.done   = threading.Event()

    def on_step(self, event):
        self.steps.append(event)

    def on_stats_update(self, stats):
        self.stats.append(stats)

    def on_state_change(self, state):
        self.states.append(state)

    def on_error(self, error):
        self.errors.append(error)


def drain(key, values):
    """Run an algorithm to completion synchronously; returns (final, events, stats)."""
    arr = WorkingArray(values)
    stats = StatsAccumulator()
    stats.start()
    events = []
    for event in get_generator(key, arr):
        stats.observe(event)
        events.append(event)
    stats.finish()
    return arr.snapshot(), events, stats.snapshot()


@pytest.fixture
def observer():
    return RecordingObserver()
