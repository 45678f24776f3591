import pytest

from reflector.config import ReflectorConfig
from reflector.core import registry as registry_module
from reflector.core.registry import DescriptorRegistry


@pytest.fixture()
def registry() -> DescriptorRegistry:
    return DescriptorRegistry(ReflectorConfig())


@pytest.fixture()
def manual_registry() -> DescriptorRegistry:
    return DescriptorRegistry(ReflectorConfig(manual_only=True))


@pytest.fixture()
def default_registry(monkeypatch) -> DescriptorRegistry:
    """Replace the process-wide registry with a fresh one for one test."""
    fresh = DescriptorRegistry(ReflectorConfig())
    monkeypatch.setattr(registry_module, "_default_registry", fresh)
    return fresh
