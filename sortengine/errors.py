class SortEngineError(Exception):
    """Base class for every error the engine reports."""


class InvalidConfiguration(SortEngineError, ValueError):
    """Size or step delay outside the allowed bounds, or an unknown algorithm."""


class IndexOutOfRange(SortEngineError, IndexError):
    """An algorithm touched an index outside [0, length)."""

    def __init__(self, index, length):
        super().__init__(f"index {index} out of range for array of length {length}")
        self.index = index
        self.length = length


class InvalidDomain(SortEngineError, ValueError):
    """The selected algorithm cannot sort the current values (e.g. negatives)."""


class IllegalTransition(SortEngineError):
    """A control call is not valid in the current run state."""

    def __init__(self, action, state):
        super().__init__(f"cannot {action} while {state.label.lower()}")
        self.action = action
        self.state = state


class RunAborted(Exception):
    """Raised inside the worker when a suspended run is discarded by reset()."""
