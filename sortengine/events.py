"""
Step events, run state and run statistics.

Every observable action an algorithm takes is one StepEvent. Events are
delivered once, in the order they were produced, and never retained by the
engine.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union


@dataclass(frozen=True)
class Compare:
    indices: Tuple[int, ...]


@dataclass(frozen=True)
class Swap:
    indices: Tuple[int, int]


@dataclass(frozen=True)
class Overwrite:
    index: int
    value: int


@dataclass(frozen=True)
class MarkSorted:
    index: int


@dataclass(frozen=True)
class MarkPivot:
    index: int


@dataclass(frozen=True)
class Describe:
    text: str


@dataclass(frozen=True)
class ClearHighlights:
    pass


StepEvent = Union[Compare, Swap, Overwrite, MarkSorted, MarkPivot, Describe, ClearHighlights]

# Events that stand for one unit of instrumented work (a comparison or a write)
INSTRUMENTED = (Compare, Swap, Overwrite)


class RunState(Enum):
    IDLE      = "idle"
    RUNNING   = "running"
    PAUSED    = "paused"
    COMPLETED = "completed"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def in_flight(self) -> bool:
        """True while an algorithm invocation owns the working array."""
        return self in (RunState.RUNNING, RunState.PAUSED)


_LABELS = {
    RunState.IDLE:      "Ready",
    RunState.RUNNING:   "Running",
    RunState.PAUSED:    "Paused",
    RunState.COMPLETED: "Completed",
}


@dataclass(frozen=True)
class RunStats:
    comparisons: int = 0
    swaps: int = 0
    elapsed_ms: int = 0


@dataclass(frozen=True)
class AlgorithmDescriptor:
    id: str
    display_name: str
    time_complexity: str
    space_complexity: str
    non_negative_only: bool = False
