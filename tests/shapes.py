"""Simple shape-like structures for testing."""

import ctypes


class Point(ctypes.Structure):
    """A two-dimensional point stored as a coordinate pair."""
    _fields_ = [("coords", ctypes.c_double * 2)]


class Circle(ctypes.Structure):
    """A circle represented by its center point and radius."""
    _fields_ = [("center", Point), ("radius", ctypes.c_double)]


class Cylinder(ctypes.Structure):
    """A non-rotated cylinder represented by its base circle and height."""
    _fields_ = [("surface", Circle), ("height", ctypes.c_double)]


class Vector(ctypes.Structure):
    _fields_ = [("x", ctypes.c_double), ("y", ctypes.c_double)]


class Line(ctypes.Structure):
    _fields_ = [("a", Vector), ("b", Vector)]


class Triple(ctypes.Structure):
    _fields_ = [("coords", ctypes.c_double * 3)]


class Grid(ctypes.Structure):
    _fields_ = [("cells", ctypes.c_int32 * 2 * 3), ("scale", ctypes.c_float)]


class Mixed(ctypes.Structure):
    """Fields of different sizes, so the layout carries padding."""
    _fields_ = [
        ("flag", ctypes.c_char),
        ("value", ctypes.c_double),
        ("count", ctypes.c_int16),
    ]


class Named(ctypes.Structure):
    _fields_ = [("label", ctypes.c_char * 6), ("id", ctypes.c_uint32)]


class Packed(ctypes.Structure):
    _pack_ = 1
    _layout_ = "ms"
    _fields_ = [("flag", ctypes.c_uint8), ("value", ctypes.c_uint32)]


class Header(ctypes.BigEndianStructure):
    _fields_ = [("magic", ctypes.c_uint32), ("length", ctypes.c_uint16)]


class Number(ctypes.Union):
    _fields_ = [("i", ctypes.c_int64), ("d", ctypes.c_double)]


class Flags(ctypes.Structure):
    _fields_ = [("ready", ctypes.c_uint32, 1), ("mode", ctypes.c_uint32, 3)]


class Tagged(ctypes.Structure):
    """A structure with a custom constructor, only reflectible manually."""
    _fields_ = [("tag", ctypes.c_int32), ("value", ctypes.c_double)]

    def __init__(self, value=0.0):
        super().__init__(7, value)


class NeedsArg(ctypes.Structure):
    _fields_ = [("a", ctypes.c_int32)]

    def __init__(self, a):
        super().__init__(a)


class HoldsTagged(ctypes.Structure):
    """Trivial itself, but holds a field with a custom constructor."""
    _fields_ = [("inner", Tagged), ("count", ctypes.c_int32)]


class HoldsNeedsArg(ctypes.Structure):
    _fields_ = [("inner", NeedsArg)]


class TaggedRow(ctypes.Structure):
    _fields_ = [("items", Tagged * 2)]


class Record(ctypes.Structure):
    """Fields holding addresses, which need keepalives on assignment."""
    _fields_ = [
        ("name", ctypes.c_char_p),
        ("origin", ctypes.POINTER(Vector)),
        ("aliases", ctypes.c_char_p * 2),
    ]


class Vector3(Vector):
    _fields_ = [("z", ctypes.c_double)]


class Incomplete(ctypes.Structure):
    pass


def make_cylinder() -> Cylinder:
    center = Point((ctypes.c_double * 2)(4.0, 5.0))
    return Cylinder(Circle(center, 3.0), 4.5)
