from dataclasses import dataclass, replace as _replace

from .errors import InvalidConfiguration

# ============================================================
# ===================== USER SETTINGS ========================
# ============================================================

MIN_ARRAY_SIZE     = 10
MAX_ARRAY_SIZE     = 100
DEFAULT_ARRAY_SIZE = 50

# Generated values are drawn from [VALUE_LOW, VALUE_HIGH)
VALUE_LOW  = 10
VALUE_HIGH = 410

DEFAULT_STEP_DELAY_MS = 100


@dataclass(frozen=True)
class EngineConfig:
    """
    Run settings shared by the controller and the viewer.

    Attributes
    ----------
    size          : int  — length of generated arrays, in [MIN_ARRAY_SIZE, MAX_ARRAY_SIZE]
    step_delay_ms : int  — pause after every instrumented step, >= 0
    """
    size: int = DEFAULT_ARRAY_SIZE
    step_delay_ms: int = DEFAULT_STEP_DELAY_MS

    def validate(self) -> "EngineConfig":
        check_size(self.size)
        check_step_delay(self.step_delay_ms)
        return self

    def replace(self, **changes) -> "EngineConfig":
        return _replace(self, **changes).validate()


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def check_size(size):
    if not _is_int(size) or not MIN_ARRAY_SIZE <= size <= MAX_ARRAY_SIZE:
        raise InvalidConfiguration(
            f"size must be an integer in [{MIN_ARRAY_SIZE}, {MAX_ARRAY_SIZE}], got {size!r}"
        )


def check_step_delay(step_delay_ms):
    if not _is_int(step_delay_ms) or step_delay_ms < 0:
        raise InvalidConfiguration(
            f"step_delay_ms must be a non-negative integer, got {step_delay_ms!r}"
        )
