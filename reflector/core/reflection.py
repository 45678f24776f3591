"""Reflection over structure instances.

A reflection is a sequence of live ctypes views, one per reflected slot,
each aliasing the corresponding field of one instance. Views are created
with ``from_buffer``, so they hold a reference to the instance's buffer and
never outlive it. Nothing is copied: writes through a view are immediately
visible on the instance and on any other reflection over it.
"""

import ctypes
import re
from typing import Any, Iterator, Tuple, Union

from .descriptor import FieldSlot, StructuralDescriptor

_ELEMENT_INDEX = re.compile(r'\[(\d+)\]')


def _assign_field(instance: Any, slot: FieldSlot, value: Any):
    """Assign a slot through the instance's own fields.

    ctypes records the keepalive of an assigned pointer on the object the
    assignment goes through. A ``from_buffer`` view is its own root, so
    pointer slots are written by field name and element index instead.
    """
    name = slot.name.split('[', 1)[0]
    indices = [int(k) for k in _ELEMENT_INDEX.findall(slot.name)]
    if not indices:
        setattr(instance, name, value)
        return

    container = getattr(instance, name)
    for k in indices[:-1]:
        container = container[k]
    container[indices[-1]] = value


class Projector:
    """Maps instances of a described type to views of their fields.

    Stateless apart from the descriptor it was created with.
    """

    def __init__(self, descriptor: StructuralDescriptor):
        self.descriptor = descriptor

    def member_offset(self, index: int) -> int:
        """Byte offset of a slot, computed from the descriptor alone."""
        return self.descriptor.member_offset(index)

    def _check_instance(self, instance: Any):
        if type(instance) is not self.descriptor.target:
            raise TypeError(
                f"cannot reflect a {type(instance).__name__} instance "
                f"with the descriptor of {self.descriptor.target.__name__}"
            )

    def _view(self, instance: Any, slot: FieldSlot):
        return slot.field_type.from_buffer(instance, slot.offset)

    def field_reference(self, instance: Any, index: int):
        """Create a view aliasing a single field of an instance."""
        slot = self.descriptor.slot(index)
        self._check_instance(instance)
        return self._view(instance, slot)

    def construct(self, instance: Any) -> 'Reflection':
        """Create views for every field of an instance."""
        self._check_instance(instance)
        views = tuple(self._view(instance, slot) for slot in self.descriptor.slots)
        return Reflection(instance, self.descriptor, views)


class Reflection:
    """Live references to every reflected field of one instance.

    Supports ``len()``, iteration and unpacking::

        x, y = reflect(point)
        x.value = 10.0          # point.x is now 10.0

    Indexing returns the ctypes view of a slot. Assigning to an index writes
    through to the instance.
    """

    def __init__(self, target: Any, descriptor: StructuralDescriptor, views: Tuple[Any, ...]):
        self._target = target
        self._descriptor = descriptor
        self._views = views

    @property
    def target(self) -> Any:
        """The reflected instance."""
        return self._target

    @property
    def descriptor(self) -> StructuralDescriptor:
        return self._descriptor

    def __len__(self) -> int:
        return len(self._views)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._views)

    def __getitem__(self, index: Union[int, slice]):
        if isinstance(index, slice):
            return self._views[index]
        slot = self._descriptor.slot(index)
        return self._views[slot.index]

    def __setitem__(self, index: int, value: Any):
        slot = self._descriptor.slot(index)
        view = self._views[slot.index]

        if slot.is_pointer:
            _assign_field(self._target, slot, value)
        elif isinstance(value, slot.field_type):
            ctypes.memmove(ctypes.addressof(view), ctypes.addressof(value), slot.size)
        elif slot.is_simple:
            view.value = value
        else:
            raise TypeError(
                f"slot {slot.index} ({slot.name}) holds {slot.type_name}, "
                f"cannot assign {type(value).__name__}"
            )

    def get(self, index: int) -> Any:
        """Read a slot as a Python value when it is simple, or as a view otherwise."""
        slot = self._descriptor.slot(index)
        view = self._views[slot.index]
        return view.value if slot.is_simple else view

    def values(self) -> Tuple[Any, ...]:
        """Read every slot with :meth:`get`."""
        return tuple(self.get(index) for index in range(len(self._views)))

    def names(self) -> Tuple[str, ...]:
        return tuple(slot.name for slot in self._descriptor.slots)

    def __repr__(self) -> str:
        fields = ", ".join(
            f"{slot.name}={self.get(slot.index)!r}" if slot.is_simple else f"{slot.name}=<{slot.type_name}>"
            for slot in self._descriptor.slots
        )
        return f"Reflection<{self._descriptor.target.__name__}>({fields})"
