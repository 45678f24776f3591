"""Automatic field discovery for ctypes structures.

The prober finds how many fields a structure has by constructing it from
an increasing number of placeholder initializers. It then records each
field's type into a write-once latch keyed by ``(type, index)``. Repeated
probing of a type must always latch the same types.
"""

import ctypes
import logging
import threading
from typing import Dict, List, Optional, Tuple, Type

from .descriptor import (
    STRUCTURE_BASES,
    DeclaredField,
    StructuralDescriptor,
    build_descriptor,
    check_structure,
    declared_fields,
)
from .errors import AmbiguousFieldTypeError, UnsupportedCause, UnsupportedTypeError

logger = logging.getLogger(__name__)

# Class members that make a structure non-trivial to construct or destroy.
NON_TRIVIAL_MEMBERS = ('__init__', '__new__', '__del__')

DEFAULT_MAX_ARITY = 256

# Bases a nested aggregate field type may derive from.
AGGREGATE_BASES = STRUCTURE_BASES + (ctypes.Union,)


def _non_trivial_member(aggregate: Type) -> Optional[Tuple[Type, str]]:
    """Find the first class in an aggregate's MRO defining a non-trivial member."""
    for klass in aggregate.__mro__:
        if klass in AGGREGATE_BASES:
            return None
        for member in NON_TRIVIAL_MEMBERS:
            if member in vars(klass):
                return klass, member
    return None


def _element_type(field_type: Type) -> Type:
    while issubclass(field_type, ctypes.Array):
        field_type = field_type._type_
    return field_type


class FieldLatch:
    """Write-once record of discovered field types.

    The first type recorded for a ``(type, index)`` key wins. Recording the
    same type again is a no-op. Recording a different type raises
    :class:`AmbiguousFieldTypeError` instead of replacing the first value.
    """

    def __init__(self):
        self._slots: Dict[Tuple[Type, int], Type] = {}
        self._lock = threading.Lock()

    def record(self, target: Type, index: int, field_type: Type) -> Type:
        """Latch a field type, returning the value that is now recorded."""
        with self._lock:
            recorded = self._slots.setdefault((target, index), field_type)
        if recorded is not field_type:
            raise AmbiguousFieldTypeError(target, index, recorded, field_type)
        return recorded

    def read(self, target: Type, index: int) -> Optional[Type]:
        """Get a recorded field type, or None if nothing was latched."""
        with self._lock:
            return self._slots.get((target, index))

    def recorded(self, target: Type) -> List[Type]:
        """Get every latched type for a target in index order."""
        types = []
        index = 0
        while True:
            field_type = self.read(target, index)
            if field_type is None:
                return types
            types.append(field_type)
            index += 1

    def __contains__(self, key: Tuple[Type, int]) -> bool:
        with self._lock:
            return key in self._slots

    def __len__(self) -> int:
        with self._lock:
            return len(self._slots)

    def clear(self):
        with self._lock:
            self._slots.clear()


def _placeholder(field_type: Type):
    """Zero initializer for a field type.

    Character arrays only accept text or bytes, everything else accepts a
    zero instance of its own type.
    """
    zero = field_type()
    if issubclass(field_type, ctypes.Array) and field_type._type_ in (ctypes.c_char, ctypes.c_wchar):
        return zero.value
    return zero


class _Overflow:
    """Initializer past the last declared field; never converted."""

    def __repr__(self):
        return "<overflow initializer>"


class FieldTypeProber:
    """Discovers the fields of a structure without explicit annotation."""

    def __init__(self, latch: Optional[FieldLatch] = None, max_arity: int = DEFAULT_MAX_ARITY):
        """Initialize the prober.

        Args:
            latch: Latch to record discovered types into
            max_arity: Largest number of initializers to try
        """
        self.latch = latch if latch is not None else FieldLatch()
        self.max_arity = max_arity

    def check_trivial(self, target: Type):
        """Reject structures with custom construction or destruction.

        Struct-typed fields, including array elements, are checked the same
        way, all the way down.
        """
        found = _non_trivial_member(target)
        if found is not None:
            klass, member = found
            raise UnsupportedTypeError(
                target, UnsupportedCause.NON_TRIVIAL, f"{klass.__name__} defines {member}",
            )
        self._check_trivial_fields(target, target, '')

    def _check_trivial_fields(self, target: Type, aggregate: Type, prefix: str):
        for entry in getattr(aggregate, '_fields_', ()):
            name = f"{prefix}{entry[0]}"
            field_type = _element_type(entry[1])
            if not issubclass(field_type, AGGREGATE_BASES):
                continue
            found = _non_trivial_member(field_type)
            if found is not None:
                raise UnsupportedTypeError(
                    target, UnsupportedCause.NON_TRIVIAL,
                    f"field '{name}' is {field_type.__name__}, which defines {found[1]}",
                )
            self._check_trivial_fields(target, field_type, f"{name}.")

    def probe_arity(self, target: Type, candidates: List[DeclaredField]) -> int:
        """Find the largest number of initializers the target accepts.

        Each placeholder is a zero initializer for the candidate field type
        at that position, so a successful construction never changes state.

        Returns:
            The number of fields the target is built from

        Raises:
            UnsupportedTypeError: If a field has no zero initializer or the count is off
        """
        placeholders = []
        for entry in candidates:
            try:
                placeholders.append(_placeholder(entry.field_type))
            except (TypeError, ValueError) as e:
                raise UnsupportedTypeError(
                    target, UnsupportedCause.NON_TRIVIAL,
                    f"field '{entry.name}' cannot be zero-initialized: {e}",
                ) from e
        placeholders.append(_Overflow())

        arity = 0
        for k in range(min(len(placeholders), self.max_arity + 1) + 1):
            try:
                target(*placeholders[:k])
            except (TypeError, ValueError) as e:
                logger.debug(f"{target.__name__} rejected {k} initializers: {e}")
                break
            arity = k
        else:
            raise UnsupportedTypeError(
                target, UnsupportedCause.NON_TRIVIAL,
                f"accepted more than {self.max_arity} initializers",
            )

        if arity != len(candidates):
            raise UnsupportedTypeError(
                target, UnsupportedCause.NON_TRIVIAL,
                f"constructible from {arity} initializers but declares {len(candidates)} fields",
            )
        return arity

    def discover(self, target: Type) -> List[DeclaredField]:
        """Discover the target's fields in declaration order.

        Raises:
            UnsupportedTypeError: If the target cannot be probed
            AmbiguousFieldTypeError: If a field's type conflicts with what was latched
        """
        check_structure(target)
        self.check_trivial(target)

        candidates = declared_fields(target)
        if len(candidates) > self.max_arity:
            raise UnsupportedTypeError(
                target, UnsupportedCause.NON_TRIVIAL,
                f"{len(candidates)} fields exceed the probe limit of {self.max_arity}",
            )

        arity = self.probe_arity(target, candidates)

        discovered = []
        for index, candidate in enumerate(candidates[:arity]):
            real_size = vars(target)[candidate.name].size
            if real_size != ctypes.sizeof(candidate.field_type):
                raise AmbiguousFieldTypeError(
                    target, index, candidate.field_type, f"a {real_size}-byte field",
                )
            field_type = self.latch.record(target, index, candidate.field_type)
            discovered.append(candidate._replace(field_type=field_type))

        logger.debug(f"Probed {target.__name__}: {arity} fields")
        return discovered

    def describe(self, target: Type) -> StructuralDescriptor:
        """Discover the target's fields and build its descriptor."""
        return build_descriptor(target, self.discover(target), source="probe")
