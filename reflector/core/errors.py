"""Error taxonomy for struct reflection.

All of these are raised while a type is being described, before any
reflection over an instance exists. A projection never raises them.
"""

from enum import Enum
from typing import Any, Optional


class UnsupportedCause(Enum):
    """Why a type cannot be reflected."""
    UNION = "union types cannot be reflected"
    NOT_A_STRUCTURE = "only ctypes.Structure subclasses can be reflected"
    INHERITANCE = "structures inheriting fields cannot be reflected"
    INCOMPLETE = "structure has no _fields_ declaration"
    BITFIELD = "bit fields cannot be aliased"
    NON_TRIVIAL = "reflected type must be trivial"
    UNSUPPORTED_ALIGNMENT = "no storage unit matches the field alignment"
    UNKNOWN_FIELD = "accessor does not name a field of the type"


def _type_name(target: Any) -> str:
    return getattr(target, '__qualname__', None) or repr(target)


class ReflectionError(Exception):
    """Base class for every reflection failure."""

    def __init__(self, message: str, target: Any = None):
        super().__init__(message)
        self.target = target


class LayoutMismatchError(ReflectionError):
    """Synthesized layout disagrees with the target's real layout."""


class UnsupportedTypeError(ReflectionError):
    """The target type cannot be reflected at all."""

    def __init__(self, target: Any, cause: UnsupportedCause, detail: str = ""):
        message = f"{_type_name(target)}: {cause.value}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message, target)
        self.cause = cause


class AmbiguousFieldTypeError(ReflectionError):
    """Probing observed conflicting candidate types for one field."""

    def __init__(self, target: Any, index: int, recorded: Any, candidate: Any):
        super().__init__(
            f"{_type_name(target)}: field {index} was recorded as "
            f"{_type_name(recorded)} but probed as {_type_name(candidate)}",
            target,
        )
        self.index = index
        self.recorded = recorded
        self.candidate = candidate


class MissingDescriptorError(ReflectionError):
    """Manual-only mode is active and the type has no registered descriptor."""

    def __init__(self, target: Any, reason: Optional[str] = None):
        super().__init__(
            reason or f"no description was found for {_type_name(target)}, "
                      f"so it cannot be reflected in manual-only mode",
            target,
        )
