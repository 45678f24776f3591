"""Structural descriptors for reflectible types.

A descriptor pairs a target type with the ordered list of its field types
and the offsets measured on a synthesized storage aggregate. Descriptors
are built once per type and validated against the type's real layout.
"""

import ctypes
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Sequence, Tuple, Type

from .errors import UnsupportedCause, UnsupportedTypeError
from .storage import measure_offsets, model_storage, verify_layout

logger = logging.getLogger(__name__)

# Bases every reflectible structure may derive from without inheriting fields.
STRUCTURE_BASES = (ctypes.Structure, ctypes.BigEndianStructure, ctypes.LittleEndianStructure)

# Field types that hold an address; assigning one records a keepalive.
POINTER_TYPES = (ctypes._Pointer, ctypes.c_char_p, ctypes.c_wchar_p, ctypes.c_void_p)


class DeclaredField(NamedTuple):
    """A field as declared on the target, before array flattening."""
    name: str
    field_type: Type
    offset: Optional[int] = None


@dataclass(frozen=True)
class FieldSlot:
    """One reflected slot of a descriptor."""
    index: int
    name: str
    field_type: Type
    offset: int
    size: int
    alignment: int

    @property
    def type_name(self) -> str:
        return getattr(self.field_type, '__name__', str(self.field_type))

    @property
    def is_simple(self) -> bool:
        """Check if the slot holds a simple ctypes value."""
        return issubclass(self.field_type, ctypes._SimpleCData)

    @property
    def is_struct(self) -> bool:
        """Check if the slot holds another structure."""
        return issubclass(self.field_type, ctypes.Structure)

    @property
    def is_pointer(self) -> bool:
        """Check if the slot holds an address whose target must be kept alive."""
        return issubclass(self.field_type, POINTER_TYPES)


def check_structure(target: Any):
    """Reject anything that is not a plain, complete ctypes structure.

    Raises:
        UnsupportedTypeError: With the specific cause
    """
    if isinstance(target, type) and issubclass(target, ctypes.Union):
        raise UnsupportedTypeError(target, UnsupportedCause.UNION)
    if not (isinstance(target, type) and issubclass(target, ctypes.Structure)):
        raise UnsupportedTypeError(target, UnsupportedCause.NOT_A_STRUCTURE)
    if target in STRUCTURE_BASES:
        raise UnsupportedTypeError(target, UnsupportedCause.INCOMPLETE)

    for base in target.__mro__[1:]:
        if base in STRUCTURE_BASES:
            continue
        if issubclass(base, ctypes.Structure) and '_fields_' in vars(base):
            raise UnsupportedTypeError(
                target, UnsupportedCause.INHERITANCE, f"fields inherited from {base.__name__}"
            )

    if '_fields_' not in vars(target):
        raise UnsupportedTypeError(target, UnsupportedCause.INCOMPLETE)

    for entry in target._fields_:
        if len(entry) > 2:
            raise UnsupportedTypeError(
                target, UnsupportedCause.BITFIELD, f"field '{entry[0]}' is {entry[2]} bits wide"
            )


def declared_fields(target: Type) -> List[DeclaredField]:
    """List the target's fields in declaration order.

    The offset comes from the class-level field descriptor, which reports
    where ctypes actually placed the field.
    """
    return [
        DeclaredField(name, field_type, vars(target)[name].offset)
        for name, field_type in target._fields_
    ]


def flatten_field(declared: DeclaredField) -> List[DeclaredField]:
    """Flatten an array field into one entry per innermost element.

    Arrays of arrays are flattened all the way down, so ``c_double * 2 * 3``
    becomes six ``c_double`` entries named ``grid[0][0]`` to ``grid[2][1]``.
    Any other field type is returned unchanged as a single entry.
    """
    if not issubclass(declared.field_type, ctypes.Array):
        return [declared]

    element = declared.field_type._type_
    stride = ctypes.sizeof(element)
    flattened = []
    for k in range(declared.field_type._length_):
        offset = None if declared.offset is None else declared.offset + k * stride
        flattened.extend(flatten_field(DeclaredField(f"{declared.name}[{k}]", element, offset)))
    return flattened


@dataclass(frozen=True, eq=False)
class StructuralDescriptor:
    """Canonical signature of a reflectible type.

    Holds the target type, its reflected slots in declaration order and the
    storage aggregate the offsets were measured on. The layout invariant is
    checked by :func:`build_descriptor`, so any descriptor that exists is
    known to match the target's real size, alignment and offsets.
    """
    target: Type
    slots: Tuple[FieldSlot, ...]
    storage: Type = field(repr=False)
    source: str = "provider"

    @property
    def count(self) -> int:
        return len(self.slots)

    @property
    def field_types(self) -> Tuple[Type, ...]:
        return tuple(slot.field_type for slot in self.slots)

    @property
    def offsets(self) -> Tuple[int, ...]:
        return tuple(slot.offset for slot in self.slots)

    @property
    def size(self) -> int:
        return ctypes.sizeof(self.target)

    @property
    def alignment(self) -> int:
        return ctypes.alignment(self.target)

    def __len__(self) -> int:
        return len(self.slots)

    def __iter__(self) -> Iterator[FieldSlot]:
        return iter(self.slots)

    def slot(self, index: int) -> FieldSlot:
        """Get a slot by index, with tuple-like negative indexing.

        Raises:
            IndexError: If the index is out of range
        """
        count = len(self.slots)
        if not isinstance(index, int) or isinstance(index, bool):
            raise TypeError(f"slot index must be an integer, not {type(index).__name__}")
        if not -count <= index < count:
            raise IndexError(
                f"{self.target.__name__} has {count} reflected fields, index {index} is out of range"
            )
        return self.slots[index]

    def field_type(self, index: int) -> Type:
        """Get the static type of a slot."""
        return self.slot(index).field_type

    def member_offset(self, index: int) -> int:
        """Get the byte offset of a slot from the start of the target."""
        return self.slot(index).offset

    def same_layout(self, other: 'StructuralDescriptor') -> bool:
        """Compare slot count, types and offsets, ignoring the target type."""
        return self.field_types == other.field_types and self.offsets == other.offsets

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StructuralDescriptor):
            return NotImplemented
        return self.target is other.target and self.same_layout(other)

    def __hash__(self) -> int:
        return hash((self.target, self.field_types, self.offsets))

    def to_dict(self) -> Dict[str, Any]:
        """Build a layout report for display."""
        return {
            'type': self.target.__qualname__,
            'module': self.target.__module__,
            'source': self.source,
            'size': self.size,
            'alignment': self.alignment,
            'count': self.count,
            'fields': [
                {
                    'index': slot.index,
                    'name': slot.name,
                    'type': slot.type_name,
                    'offset': slot.offset,
                    'size': slot.size,
                    'alignment': slot.alignment,
                }
                for slot in self.slots
            ],
        }


def build_descriptor(target: Type, fields: Sequence[DeclaredField], source: str) -> StructuralDescriptor:
    """Build and validate the descriptor for a target type.

    Args:
        target: The structure type being described
        fields: Declared fields in declaration order
        source: Mechanism that produced the fields ("probe" or "provider")

    Returns:
        The validated descriptor

    Raises:
        UnsupportedTypeError: If the target cannot be reflected
        LayoutMismatchError: If the fields do not reproduce the target's layout
    """
    check_structure(target)

    flattened: List[DeclaredField] = []
    for declared in fields:
        flattened.extend(flatten_field(declared))

    slot_types = [entry.field_type for entry in flattened]
    storage = model_storage(target, slot_types)
    offsets = measure_offsets(storage)
    verify_layout(target, storage, [entry.offset for entry in flattened], offsets)

    slots = tuple(
        FieldSlot(
            index=index,
            name=entry.name,
            field_type=entry.field_type,
            offset=offset,
            size=ctypes.sizeof(entry.field_type),
            alignment=ctypes.alignment(entry.field_type),
        )
        for index, (entry, offset) in enumerate(zip(flattened, offsets))
    )

    logger.debug(f"Described {target.__name__} via {source}: {len(slots)} slots at {offsets}")
    return StructuralDescriptor(target=target, slots=slots, storage=storage, source=source)
