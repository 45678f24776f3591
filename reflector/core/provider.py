"""Manual descriptor provider.

Describes a structure from an explicit list of field accessors instead of
probing it. Accessors are field names or the class-level field descriptors
(``Point.coords``), given in declaration order.
"""

import logging
from typing import Any, Dict, List, Type

from .descriptor import DeclaredField, StructuralDescriptor, build_descriptor, check_structure, declared_fields
from .errors import UnsupportedCause, UnsupportedTypeError

logger = logging.getLogger(__name__)


def resolve_accessor(target: Type, accessor: Any) -> DeclaredField:
    """Resolve one accessor to the field it identifies.

    Args:
        target: Structure the accessor belongs to
        accessor: Field name or class-level field descriptor

    Returns:
        The declared field with its static type and real offset

    Raises:
        UnsupportedTypeError: If the accessor does not identify a field of target
    """
    fields: Dict[str, DeclaredField] = {entry.name: entry for entry in declared_fields(target)}

    if isinstance(accessor, str):
        if accessor not in fields:
            raise UnsupportedTypeError(
                target, UnsupportedCause.UNKNOWN_FIELD, f"no field named '{accessor}'"
            )
        return fields[accessor]

    for name, entry in fields.items():
        if vars(target)[name] is accessor:
            return entry

    raise UnsupportedTypeError(
        target, UnsupportedCause.UNKNOWN_FIELD, f"{accessor!r} is not a field of this type"
    )


def provide(target: Type, *accessors: Any) -> StructuralDescriptor:
    """Build a descriptor from explicit field accessors.

    Array fields are flattened into one slot per element, the same way
    automatic discovery exposes them.

    Raises:
        UnsupportedTypeError: If the target or an accessor is unusable
        LayoutMismatchError: If the accessors do not reproduce the target's layout
    """
    check_structure(target)

    fields: List[DeclaredField] = []
    seen = set()
    for accessor in accessors:
        entry = resolve_accessor(target, accessor)
        if entry.name in seen:
            raise UnsupportedTypeError(
                target, UnsupportedCause.UNKNOWN_FIELD, f"field '{entry.name}' is listed twice"
            )
        seen.add(entry.name)
        fields.append(entry)

    logger.debug(f"Providing {target.__name__} from {len(fields)} accessors")
    return build_descriptor(target, fields, source="provider")


def provide_all(target: Type) -> StructuralDescriptor:
    """Build a provider descriptor listing every declared field in order."""
    check_structure(target)
    return build_descriptor(target, declared_fields(target), source="provider")
