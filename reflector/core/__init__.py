"""Core descriptor, probing and projection modules."""

from .errors import (
    ReflectionError,
    LayoutMismatchError,
    UnsupportedTypeError,
    UnsupportedCause,
    AmbiguousFieldTypeError,
    MissingDescriptorError,
)
from .descriptor import StructuralDescriptor, FieldSlot, build_descriptor
from .prober import FieldLatch, FieldTypeProber
from .provider import provide
from .reflection import Projector, Reflection
from .registry import DescriptorRegistry

__all__ = [
    'ReflectionError',
    'LayoutMismatchError',
    'UnsupportedTypeError',
    'UnsupportedCause',
    'AmbiguousFieldTypeError',
    'MissingDescriptorError',
    'StructuralDescriptor',
    'FieldSlot',
    'build_descriptor',
    'FieldLatch',
    'FieldTypeProber',
    'provide',
    'Projector',
    'Reflection',
    'DescriptorRegistry',
]
