"""Reflector: struct reflection for ctypes structures.

Describes a structure's fields, automatically or from explicit accessors,
and reflects over instances as live views of their fields::

    class Point(ctypes.Structure):
        _fields_ = [("x", ctypes.c_double), ("y", ctypes.c_double)]

    point = Point(4.0, 5.0)
    x, y = reflect(point)
    x.value = 10.0
    assert point.x == 10.0
"""

__version__ = "1.0.0"

from .config import ReflectorConfig, load_config
from .core import (
    ReflectionError,
    LayoutMismatchError,
    UnsupportedTypeError,
    UnsupportedCause,
    AmbiguousFieldTypeError,
    MissingDescriptorError,
    StructuralDescriptor,
    FieldSlot,
    FieldLatch,
    FieldTypeProber,
    DescriptorRegistry,
    Projector,
    Reflection,
    provide,
)
from .core.registry import (
    configure,
    describe,
    get_registry,
    offset_of,
    reflect,
    reflectable,
    register,
)

__all__ = [
    'ReflectorConfig',
    'load_config',
    'ReflectionError',
    'LayoutMismatchError',
    'UnsupportedTypeError',
    'UnsupportedCause',
    'AmbiguousFieldTypeError',
    'MissingDescriptorError',
    'StructuralDescriptor',
    'FieldSlot',
    'FieldLatch',
    'FieldTypeProber',
    'DescriptorRegistry',
    'Projector',
    'Reflection',
    'provide',
    'configure',
    'describe',
    'get_registry',
    'offset_of',
    'reflect',
    'reflectable',
    'register',
]
