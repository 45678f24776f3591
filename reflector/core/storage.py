"""Aligned storage modeling.

Builds placeholder aggregates whose members mirror the size and alignment
of the reflected fields, so member offsets can be measured without ever
touching a real instance. The placeholders never hold live data.
"""

import ctypes
import logging
from typing import Dict, Optional, Sequence, Tuple, Type

from .errors import LayoutMismatchError, UnsupportedCause, UnsupportedTypeError

logger = logging.getLogger(__name__)

# Layout attributes copied from the target onto the storage aggregate.
LAYOUT_ATTRIBUTES = ('_pack_', '_layout_', '_align_')


def _discover_units() -> Dict[int, Type]:
    """Map each alignment to a ctypes type whose size equals that alignment."""
    units: Dict[int, Type] = {}
    candidates = (
        ctypes.c_uint8, ctypes.c_uint16, ctypes.c_uint32,
        ctypes.c_uint64, ctypes.c_double, ctypes.c_longdouble,
    )
    for unit in candidates:
        align = ctypes.alignment(unit)
        if ctypes.sizeof(unit) == align:
            units.setdefault(align, unit)
    return units


STORAGE_UNITS = _discover_units()


def storage_slot(field_type: Type) -> Type:
    """Create the aligned placeholder for a single field type.

    Args:
        field_type: ctypes type of the field being modeled

    Returns:
        A ctypes array type with the same size and alignment
    """
    size = ctypes.sizeof(field_type)
    align = ctypes.alignment(field_type)

    unit = STORAGE_UNITS.get(align)
    if unit is None:
        raise UnsupportedTypeError(
            field_type, UnsupportedCause.UNSUPPORTED_ALIGNMENT, f"alignment {align}"
        )
    if size % align:
        raise LayoutMismatchError(
            f"{field_type.__name__} size {size} is not a multiple of its alignment {align}",
            field_type,
        )

    # ctypes caches array types, so equal slots share one type object
    return unit * (size // align)


def model_storage(target: Type, slot_types: Sequence[Type]) -> Type:
    """Synthesize the placeholder aggregate for a list of slot types.

    The storage is laid out under the same rules as the target, including
    any packing or explicit alignment the target declares.
    """
    namespace = {
        '_fields_': [(f"_{i}", storage_slot(t)) for i, t in enumerate(slot_types)],
    }
    for attribute in LAYOUT_ATTRIBUTES:
        if attribute in vars(target):
            namespace[attribute] = vars(target)[attribute]

    storage = type(f"{target.__name__}Storage", (ctypes.Structure,), namespace)
    logger.debug(
        f"Synthesized storage for {target.__name__}: {len(slot_types)} slots, "
        f"{ctypes.sizeof(storage)} bytes, alignment {ctypes.alignment(storage)}"
    )
    return storage


def measure_offsets(storage: Type) -> Tuple[int, ...]:
    """Measure each slot's byte offset from one storage instance."""
    if not storage._fields_:
        return ()

    placeholder = storage()
    names = [name for name, _ in storage._fields_]
    base = ctypes.addressof(getattr(placeholder, names[0]))
    return tuple(ctypes.addressof(getattr(placeholder, name)) - base for name in names)


def verify_layout(target: Type, storage: Type, declared_offsets: Optional[Sequence[Optional[int]]] = None,
                  measured_offsets: Sequence[int] = ()):
    """Check that the storage reproduces the target's real layout.

    Args:
        target: Reflected type
        storage: Synthesized storage aggregate
        declared_offsets: Offsets reported by the target's field descriptors, or
            None entries for slots with nothing to compare against
        measured_offsets: Offsets measured on the storage

    Raises:
        LayoutMismatchError: On any size, alignment or offset disagreement
    """
    name = target.__name__
    if ctypes.sizeof(storage) != ctypes.sizeof(target):
        raise LayoutMismatchError(
            f"{name}: reflection storage is {ctypes.sizeof(storage)} bytes "
            f"but the type is {ctypes.sizeof(target)} bytes",
            target,
        )
    if ctypes.alignment(storage) != ctypes.alignment(target):
        raise LayoutMismatchError(
            f"{name}: reflection storage aligns to {ctypes.alignment(storage)} "
            f"but the type aligns to {ctypes.alignment(target)}",
            target,
        )

    if declared_offsets is None:
        return
    for index, (declared, measured) in enumerate(zip(declared_offsets, measured_offsets)):
        if declared is not None and declared != measured:
            raise LayoutMismatchError(
                f"{name}: slot {index} sits at offset {declared} "
                f"but the reflection storage places it at {measured}",
                target,
            )
