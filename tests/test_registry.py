"""Tests for descriptor resolution and the module-level API."""

import ctypes
import threading

import pytest

import reflector
from reflector.config import ReflectorConfig
from reflector.core.descriptor import StructuralDescriptor
from reflector.core.errors import LayoutMismatchError, MissingDescriptorError, UnsupportedTypeError
from tests.shapes import Circle, HoldsTagged, Mixed, Number, Point, Tagged, Triple, Vector


def test_describe_is_memoized(registry):
    first = registry.describe(Circle)

    assert registry.describe(Circle) is first
    assert registry.is_described(Circle)
    assert registry.get(Circle) is first
    assert first.source == "probe"


def test_describe_with_accessors_registers(registry):
    descriptor = registry.describe(Tagged, "tag", "value")

    assert descriptor.source == "provider"
    assert registry.describe(Tagged) is descriptor
    assert registry.reflect(Tagged(1.5)).values() == (7, 1.5)


def test_registered_descriptor_wins_over_probing(registry):
    registered = registry.register(Vector, "x", "y")

    assert registry.describe(Vector) is registered
    assert len(registry.latch) == 0


def test_equal_registration_is_idempotent(registry):
    probed = registry.describe(Point)
    assert registry.register(Point, "coords") is probed


def test_register_without_accessors_uses_every_field(registry):
    assert registry.register(Mixed).count == 3


def test_conflicting_descriptor_is_refused(registry):
    registered = registry.register(Vector, "x", "y")
    truncated = StructuralDescriptor(target=Vector, slots=registered.slots[:1], storage=registered.storage)

    with pytest.raises(LayoutMismatchError):
        registry._store(truncated)
    assert registry.get(Vector) is registered


def test_manual_only_requires_a_descriptor(manual_registry):
    with pytest.raises(MissingDescriptorError) as excinfo:
        manual_registry.describe(Circle)

    assert excinfo.value.target is Circle
    assert len(manual_registry.latch) == 0


def test_manual_only_reflects_registered_types(manual_registry):
    manual_registry.register(Point, Point.coords)
    manual_registry.register(Circle, Circle.center, Circle.radius)

    circle = Circle(Point((ctypes.c_double * 2)(4.0, 5.0)), 3.0)
    center, radius = manual_registry.reflect(circle)
    x, y = manual_registry.reflect(center)

    assert (x.value, y.value, radius.value) == (4.0, 5.0, 3.0)


def test_manual_only_exposes_flattened_arrays(manual_registry):
    manual_registry.register(Triple, "coords")
    assert len(manual_registry.reflect(Triple())) == 3


def test_reflectable_decorator(registry):
    @registry.reflectable("b", "a")
    class Pair(ctypes.Structure):
        _fields_ = [("b", ctypes.c_int32), ("a", ctypes.c_int32)]

    assert registry.describe(Pair).source == "provider"
    assert registry.reflect(Pair(1, 2)).values() == (1, 2)


def test_union_fails_and_is_not_memoized(registry):
    with pytest.raises(UnsupportedTypeError):
        registry.reflect(Number())
    assert not registry.is_described(Number)


def test_offset_of(registry):
    assert registry.offset_of(Mixed, 1) == Mixed.value.offset
    with pytest.raises(IndexError):
        registry.offset_of(Mixed, 3)


def test_concurrent_first_use_describes_once(registry):
    results = []

    def describe():
        results.append(registry.describe(Mixed))

    threads = [threading.Thread(target=describe) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(results) == 8
    assert all(result is results[0] for result in results)
    assert len(registry.latch) == 3


def test_clear(registry):
    registry.describe(Vector)
    registry.clear()

    assert registry.described_types() == []
    assert len(registry.latch) == 0


def test_module_level_api(default_registry):
    vector = Vector(4.0, 5.0)
    reflection = reflector.reflect(vector)

    reflection[0] = 10.0

    assert vector.x == 10.0
    assert reflector.describe(Vector) is default_registry.get(Vector)
    assert reflector.offset_of(Vector, 1) == 8
    assert reflector.get_registry() is default_registry


def test_module_level_decorator(default_registry):
    @reflector.reflectable()
    class Sample(ctypes.Structure):
        _fields_ = [("value", ctypes.c_uint16)]

    assert default_registry.get(Sample).source == "provider"


def test_configure_switches_to_manual_only(default_registry):
    reflector.configure(ReflectorConfig(manual_only=True))

    with pytest.raises(MissingDescriptorError):
        reflector.reflect(Vector())

    reflector.register(Vector, "x", "y")
    assert len(reflector.reflect(Vector())) == 2


def test_manual_only_forgets_probed_descriptors(registry):
    registry.describe(Vector)
    registered = registry.register(Circle, "center", "radius")

    registry.configure(ReflectorConfig(manual_only=True))

    assert not registry.is_described(Vector)
    assert registry.get(Circle) is registered
    with pytest.raises(MissingDescriptorError):
        registry.reflect(Vector())
    assert len(registry.reflect(Circle())) == 2


def test_configure_drops_probed_descriptors_of_the_shared_registry(default_registry):
    reflector.describe(Point)
    reflector.configure(ReflectorConfig(manual_only=True))

    with pytest.raises(MissingDescriptorError):
        reflector.reflect(Point())


def test_nested_non_trivial_type_needs_manual_description(registry):
    with pytest.raises(UnsupportedTypeError):
        registry.describe(HoldsTagged)
    assert not registry.is_described(HoldsTagged)

    descriptor = registry.describe(HoldsTagged, "inner", "count")
    assert descriptor.source == "provider"
    assert registry.reflect(HoldsTagged(Tagged(2.5), 3)).get(1) == 3
