import threading
import time

import pytest

from conftest import RecordingObserver, drain
from sortengine import algorithms
from sortengine.algorithms import AlgorithmId
from sortengine.config import EngineConfig, VALUE_HIGH, VALUE_LOW
from sortengine.controller import SortRunController
from sortengine.errors import (
    IllegalTransition, IndexOutOfRange, InvalidConfiguration, InvalidDomain,
)
from sortengine.events import ClearHighlights, Compare, Describe, MarkSorted, RunState, RunStats

VALUES = [93, 12, 407, 55, 55, 18, 230, 74, 311, 12, 160, 99, 45, 388, 27, 200]


def make(values=VALUES, delay=0, observer=None, seed=1):
    return SortRunController(EngineConfig(size=20, step_delay_ms=delay),
                             observer=observer, seed=seed, values=values)


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.002)
    return predicate()


@pytest.mark.parametrize("key", list(AlgorithmId))
def test_run_matches_synchronous_drain(key, observer):
    ctl = make(observer=observer)
    stats = ctl.run(key, timeout=10)
    final, events, expected = drain(key, VALUES)

    assert ctl.state is RunState.COMPLETED
    assert ctl.error is None
    assert ctl.array_snapshot() == final == tuple(sorted(VALUES))
    assert (stats.comparisons, stats.swaps) == (expected.comparisons, expected.swaps)
    assert stats.elapsed_ms >= 0
    assert observer.steps[:len(events)] == events
    assert isinstance(observer.steps[-2], Describe)
    assert observer.steps[-2].text.endswith("completed!")
    assert isinstance(observer.steps[-1], ClearHighlights)
    assert observer.states == [RunState.RUNNING, RunState.COMPLETED]


def test_stats_updates_are_monotonic(observer):
    ctl = make(observer=observer)
    ctl.run("heap", timeout=10)
    assert observer.stats[0] == RunStats()
    for a, b in zip(observer.stats, observer.stats[1:]):
        assert b.comparisons >= a.comparisons
        assert b.swaps >= a.swaps
    assert observer.stats[-1] == ctl.stats


def test_empty_array_completes_immediately(observer):
    ctl = make(values=[], observer=observer)
    for key in AlgorithmId:
        stats = ctl.run(key, timeout=5)
        assert ctl.state is RunState.COMPLETED
        assert (stats.comparisons, stats.swaps) == (0, 0)
        assert ctl.array_snapshot() == ()


class PausingObserver(RecordingObserver):
    def __init__(self, pause_at):
        super().__init__()
        self.pause_at   = set(pause_at)
        self.controller = None
        self.paused     = threading.Event()

    def on_step(self, event):
        super().on_step(event)
        if len(self.steps) in self.pause_at:
            self.controller.pause_toggle()
            self.paused.set()


@pytest.mark.parametrize("key", ["bubble", "merge", "quick", "heap", "radix"])
def test_pause_resume_is_deterministic(key):
    values = list(range(300, 10, -10))
    baseline = make(values=values).run(key, timeout=10)
    final = make(values=values)
    final.run(key, timeout=10)

    obs = PausingObserver(pause_at=[1, 7, 20, 33, 60])
    ctl = make(values=values, observer=obs)
    obs.controller = ctl
    ctl.start(key)
    for _ in range(5):
        assert obs.paused.wait(5)
        obs.paused.clear()
        assert ctl.state is RunState.PAUSED
        time.sleep(0.02)
        frozen = ctl.array_snapshot()
        count = len(obs.steps)
        time.sleep(0.02)
        assert ctl.array_snapshot() == frozen
        assert len(obs.steps) == count
        assert ctl.pause_toggle() is RunState.RUNNING
    assert ctl.wait(10)

    assert ctl.state is RunState.COMPLETED
    assert ctl.array_snapshot() == final.array_snapshot()
    assert (ctl.stats.comparisons, ctl.stats.swaps) == (baseline.comparisons, baseline.swaps)
    assert obs.states.count(RunState.PAUSED) == 5


def test_reset_restores_pre_run_array():
    ctl = make()
    before = ctl.array_snapshot()
    ctl.run("quick", timeout=10)
    assert ctl.array_snapshot() != before
    assert ctl.reset() == before
    assert ctl.state is RunState.IDLE
    assert ctl.stats == RunStats()
    assert ctl.reset() == before


def test_restart_from_completed_snapshots_sorted_array():
    ctl = make()
    ctl.run("bubble", timeout=10)
    done = ctl.array_snapshot()
    stats = ctl.run("selection", timeout=10)
    assert stats.swaps == 0
    assert ctl.reset() == done


def test_controls_rejected_while_running(observer):
    ctl = make(values=list(range(100, 10, -1)), delay=20, observer=observer)
    ctl.start("bubble")
    assert ctl.state is RunState.RUNNING
    for call in (ctl.reset, ctl.regenerate, lambda: ctl.start("merge"),
                 lambda: ctl.configure(size=30), lambda: ctl.load([1, 2])):
        with pytest.raises(IllegalTransition):
            call()
    assert ctl.state is RunState.RUNNING

    # delay may change mid-run
    ctl.configure(step_delay_ms=0)
    assert ctl.config.step_delay_ms == 0
    assert ctl.wait(10)
    assert ctl.state is RunState.COMPLETED


def test_reset_from_paused_discards_run(observer):
    values = list(range(100, 10, -1))
    ctl = make(values=values, delay=5, observer=observer)
    ctl.start("insertion")
    assert _wait_for(lambda: len(observer.steps) > 10)
    assert ctl.pause_toggle() is RunState.PAUSED
    with pytest.raises(IllegalTransition):
        ctl.regenerate()
    with pytest.raises(IllegalTransition):
        ctl.configure(size=30)
    assert ctl.reset() == tuple(values)
    assert ctl.state is RunState.IDLE
    assert ctl.wait(1)
    assert observer.states[-1] is RunState.IDLE
    assert RunState.COMPLETED not in observer.states
    # a fresh run still works
    ctl.configure(step_delay_ms=0)
    ctl.run("merge", timeout=10)
    assert ctl.array_snapshot() == tuple(sorted(values))


def test_pause_toggle_is_noop_outside_a_run(observer):
    ctl = make(observer=observer)
    assert ctl.pause_toggle() is RunState.IDLE
    ctl.run("heap", timeout=10)
    assert ctl.pause_toggle() is RunState.COMPLETED
    assert observer.states == [RunState.RUNNING, RunState.COMPLETED]


def test_regenerate_bounds_and_values():
    ctl = SortRunController(seed=3)
    assert len(ctl.array_snapshot()) == ctl.config.size == 50
    values = ctl.regenerate(77)
    assert len(values) == 77
    assert ctl.config.size == 77
    assert all(VALUE_LOW <= v < VALUE_HIGH for v in values)
    for bad in (9, 101, "20", 50.0):
        with pytest.raises(InvalidConfiguration):
            ctl.regenerate(bad)
    assert ctl.array_snapshot() == values


def test_same_seed_same_arrays():
    a, b = SortRunController(seed=42), SortRunController(seed=42)
    assert a.array_snapshot() == b.array_snapshot()
    assert a.regenerate(10) == b.regenerate(10)


def test_configure_validates_and_resizes():
    ctl = make()
    with pytest.raises(InvalidConfiguration):
        ctl.configure(size=5)
    with pytest.raises(InvalidConfiguration):
        ctl.configure(step_delay_ms=-1)
    with pytest.raises(InvalidConfiguration):
        ctl.configure(step_delay_ms=True)
    assert ctl.array_snapshot() == tuple(VALUES)

    cfg = ctl.configure(size=30, step_delay_ms=0)
    assert (cfg.size, cfg.step_delay_ms) == (30, 0)
    assert len(ctl.array_snapshot()) == 30


def test_invalid_domain_leaves_state_alone(observer):
    ctl = make(values=[5, -1, 3], observer=observer)
    for key in ("counting", "radix"):
        with pytest.raises(InvalidDomain):
            ctl.start(key)
    assert ctl.state is RunState.IDLE
    assert ctl.array_snapshot() == (5, -1, 3)
    assert observer.states == []
    ctl.run("bucket", timeout=5)
    assert ctl.array_snapshot() == (-1, 3, 5)


def test_unknown_algorithm_rejected():
    ctl = make()
    with pytest.raises(InvalidConfiguration):
        ctl.start("bogo")
    assert ctl.state is RunState.IDLE


def test_fault_in_run_is_reported_not_raised(monkeypatch, observer):
    def broken(arr):
        yield Describe("about to misbehave")
        arr.swap(0, len(arr))

    monkeypatch.setitem(algorithms._GENERATORS, AlgorithmId.BUBBLE, broken)
    ctl = make(observer=observer)
    ctl.run("bubble", timeout=5)
    assert ctl.state is RunState.COMPLETED
    assert isinstance(ctl.error, IndexOutOfRange)
    assert observer.errors == [ctl.error]
    assert observer.states[-1] is RunState.COMPLETED
    assert ctl.array_snapshot() == tuple(VALUES)
    # the next run clears the error
    monkeypatch.undo()
    ctl.run("merge", timeout=5)
    assert ctl.error is None


def test_subscribe_replaces_observer():
    first, second = RecordingObserver(), RecordingObserver()
    ctl = make(observer=first)
    ctl.subscribe(second)
    ctl.run("selection", timeout=5)
    assert first.steps == []
    assert second.steps


def test_start_without_id_reuses_last_algorithm():
    ctl = make()
    ctl.run("radix", timeout=5)
    ctl.reset()
    ctl.start()
    assert ctl.wait(5)
    assert ctl.algorithm is AlgorithmId.RADIX
    assert ctl.descriptor.display_name == "Radix Sort"


class PauseOnEvent(RecordingObserver):
    def __init__(self, target):
        super().__init__()
        self.target     = target
        self.controller = None
        self.paused     = threading.Event()

    def on_step(self, event):
        super().on_step(event)
        if event == self.target:
            self.controller.pause_toggle()
            self.paused.set()


@pytest.mark.parametrize("target", [MarkSorted(0), ClearHighlights()])
def test_pause_on_trailing_event_holds_completion(target):
    obs = PauseOnEvent(target)
    ctl = make(values=[3, 1, 2], observer=obs)
    obs.controller = ctl
    ctl.start("bubble")
    assert obs.paused.wait(5)
    time.sleep(0.1)
    assert ctl.state is RunState.PAUSED
    assert obs.states == [RunState.RUNNING, RunState.PAUSED]
    assert obs.steps[-1] == target
    assert not ctl.wait(0.05)

    assert ctl.pause_toggle() is RunState.RUNNING
    assert ctl.wait(5)
    assert ctl.state is RunState.COMPLETED
    assert obs.states == [RunState.RUNNING, RunState.PAUSED, RunState.RUNNING, RunState.COMPLETED]
    assert obs.steps[-2].text == "Bubble Sort completed!"
    assert ctl.array_snapshot() == (1, 2, 3)


def test_reset_while_paused_on_trailing_event():
    obs = PauseOnEvent(MarkSorted(0))
    ctl = make(values=[3, 1, 2], observer=obs)
    obs.controller = ctl
    ctl.start("bubble")
    assert obs.paused.wait(5)
    assert ctl.reset() == (3, 1, 2)
    assert ctl.state is RunState.IDLE
    assert RunState.COMPLETED not in obs.states
    assert not any(isinstance(e, Describe) and e.text.endswith("completed!") for e in obs.steps)


class RestartOnError(RecordingObserver):
    def __init__(self):
        super().__init__()
        self.controller = None

    def on_error(self, error):
        super().on_error(error)
        self.controller.start("merge")


def test_restart_from_error_hook_drops_stale_notifications(monkeypatch):
    def broken(arr):
        yield Compare((0, 1))
        arr.swap(0, len(arr))

    monkeypatch.setitem(algorithms._GENERATORS, AlgorithmId.BUBBLE, broken)
    obs = RestartOnError()
    ctl = make(observer=obs)
    obs.controller = ctl
    ctl.start("bubble")
    assert _wait_for(lambda: ctl.algorithm is AlgorithmId.MERGE)
    assert ctl.wait(10)
    assert _wait_for(lambda: obs.states[-1] is RunState.COMPLETED)
    time.sleep(0.05)

    assert obs.states == [RunState.RUNNING, RunState.RUNNING, RunState.COMPLETED]
    assert ctl.state is RunState.COMPLETED
    assert ctl.error is None
    _, _, expected = drain("merge", VALUES)
    assert (ctl.stats.comparisons, ctl.stats.swaps) == (expected.comparisons, expected.swaps)
    assert obs.stats[-1] == ctl.stats
    assert ctl.array_snapshot() == tuple(sorted(VALUES))


def test_each_run_counts_from_zero():
    ctl = make()
    first = ctl.run("bubble", timeout=10)
    ctl.reset()
    second = ctl.run("bubble", timeout=10)
    assert (first.comparisons, first.swaps) == (second.comparisons, second.swaps)
