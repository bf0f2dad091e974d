"""Instrumented, interruptible sorting engine."""
from .algorithms import ALGORITHMS, AlgorithmId, get_generator
from .array import WorkingArray
from .config import EngineConfig
from .controller import RunContext, SortRunController
from .emitter import RunObserver, StepEmitter
from .errors import (
    IllegalTransition, IndexOutOfRange, InvalidConfiguration, InvalidDomain, SortEngineError,
)
from .events import (
    AlgorithmDescriptor, ClearHighlights, Compare, Describe, MarkPivot, MarkSorted, Overwrite,
    RunState, RunStats, StepEvent, Swap,
)
from .stats import StatsAccumulator
from .suspension import SuspensionController

__version__ = "0.1.0"
