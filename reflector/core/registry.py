"""Registry of reflectible type descriptors.

Resolves the descriptor of a type from a registered manual description or,
unless manual-only mode is active, by probing the type. Each type is
described once; later lookups return the memoized descriptor.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Type

from ..config import ReflectorConfig, load_config
from .descriptor import StructuralDescriptor
from .errors import LayoutMismatchError, MissingDescriptorError
from .prober import FieldLatch, FieldTypeProber
from .provider import provide, provide_all
from .reflection import Projector, Reflection

logger = logging.getLogger(__name__)


class DescriptorRegistry:
    """Registry of described structure types.

    Probing, latching and memoizing a descriptor happen under one lock, so
    concurrent first uses of a type still describe it exactly once.
    """

    def __init__(self, config: Optional[ReflectorConfig] = None):
        """Initialize the registry.

        Args:
            config: Settings to use, defaults to ReflectorConfig()
        """
        self.config = config if config is not None else ReflectorConfig()
        self.latch = FieldLatch()
        self._descriptors: Dict[Type, StructuralDescriptor] = {}
        self._lock = threading.RLock()

    @property
    def manual_only(self) -> bool:
        return self.config.manual_only

    def configure(self, config: ReflectorConfig):
        """Apply new settings.

        Turning manual-only mode on forgets every probed descriptor, so only
        registered descriptors keep resolving. Latched field types are kept.
        """
        with self._lock:
            self.config = config
            if not config.manual_only:
                return
            probed = [target for target, descriptor in self._descriptors.items()
                      if descriptor.source == "probe"]
            for target in probed:
                del self._descriptors[target]
            if probed:
                logger.info(f"Manual-only mode: dropped {len(probed)} probed descriptors")

    def _store(self, descriptor: StructuralDescriptor) -> StructuralDescriptor:
        existing = self._descriptors.get(descriptor.target)
        if existing is None:
            self._descriptors[descriptor.target] = descriptor
            logger.info(f"Registered {descriptor.target.__name__} ({descriptor.source}, {descriptor.count} fields)")
            return descriptor
        if existing != descriptor:
            raise LayoutMismatchError(
                f"{descriptor.target.__name__} is already described with "
                f"{existing.count} fields at {existing.offsets}, "
                f"refusing {descriptor.count} fields at {descriptor.offsets}",
                descriptor.target,
            )
        return existing

    def register(self, target: Type, *accessors: Any) -> StructuralDescriptor:
        """Register a manual descriptor for a type.

        With no accessors, every declared field is used in order.
        """
        descriptor = provide(target, *accessors) if accessors else provide_all(target)
        with self._lock:
            return self._store(descriptor)

    def reflectable(self, *accessors: Any) -> Callable[[Type], Type]:
        """Class decorator registering a manual descriptor when the class is defined."""
        def decorator(target: Type) -> Type:
            self.register(target, *accessors)
            return target
        return decorator

    def get(self, target: Type) -> Optional[StructuralDescriptor]:
        """Get the descriptor of a type if it was already described."""
        with self._lock:
            return self._descriptors.get(target)

    def is_described(self, target: Type) -> bool:
        with self._lock:
            return target in self._descriptors

    def describe(self, target: Type, *accessors: Any) -> StructuralDescriptor:
        """Get or create the descriptor of a type.

        Args:
            target: Structure type to describe
            *accessors: Manual field accessors; when given, they are registered

        Raises:
            MissingDescriptorError: In manual-only mode, when nothing is registered
        """
        if accessors:
            return self.register(target, *accessors)

        with self._lock:
            descriptor = self._descriptors.get(target)
            if descriptor is not None:
                return descriptor

            if self.manual_only:
                raise MissingDescriptorError(target)

            logger.debug(f"No descriptor registered for {getattr(target, '__name__', target)}, probing")
            prober = FieldTypeProber(self.latch, self.config.max_probe_arity)
            return self._store(prober.describe(target))

    def projector(self, target: Type) -> Projector:
        return Projector(self.describe(target))

    def reflect(self, instance: Any) -> Reflection:
        """Reflect over an instance, describing its type if needed."""
        return self.projector(type(instance)).construct(instance)

    def offset_of(self, target: Type, index: int) -> int:
        """Get a field offset without an instance."""
        return self.describe(target).member_offset(index)

    def described_types(self) -> List[Type]:
        with self._lock:
            return list(self._descriptors)

    def clear(self):
        """Forget every descriptor and latched field type."""
        with self._lock:
            self._descriptors.clear()
            self.latch.clear()


_default_registry: Optional[DescriptorRegistry] = None
_default_lock = threading.Lock()


def get_registry() -> DescriptorRegistry:
    """Get the process-wide registry, loading the configuration on first use."""
    global _default_registry
    with _default_lock:
        if _default_registry is None:
            _default_registry = DescriptorRegistry(load_config())
        return _default_registry


def configure(config: ReflectorConfig) -> DescriptorRegistry:
    """Apply a configuration to the process-wide registry.

    See :meth:`DescriptorRegistry.configure`.
    """
    registry = get_registry()
    registry.configure(config)
    return registry


def reflect(instance: Any) -> Reflection:
    """Reflect over an instance with the process-wide registry."""
    return get_registry().reflect(instance)


def describe(target: Type, *accessors: Any) -> StructuralDescriptor:
    """Describe a type with the process-wide registry."""
    return get_registry().describe(target, *accessors)


def register(target: Type, *accessors: Any) -> StructuralDescriptor:
    """Register a manual descriptor with the process-wide registry."""
    return get_registry().register(target, *accessors)


def reflectable(*accessors: Any) -> Callable[[Type], Type]:
    """Class decorator registering a manual descriptor with the process-wide registry."""
    return get_registry().reflectable(*accessors)


def offset_of(target: Type, index: int) -> int:
    """Get a field offset with the process-wide registry."""
    return get_registry().offset_of(target, index)
