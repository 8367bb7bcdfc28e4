"""Shared pytest fixtures for propwire tests."""

import pytest

from propwire.container import Container
from propwire.registry import PropertyDependencyRegistry


@pytest.fixture()
def registry() -> PropertyDependencyRegistry:
    """Isolated declaration registry."""
    return PropertyDependencyRegistry()


@pytest.fixture()
def container() -> Container:
    """Container with autoregistration and property injection from the default registry."""
    return Container(property_injection=True)


@pytest.fixture()
def plain_container() -> Container:
    """Container without property injection."""
    return Container()


@pytest.fixture()
def strict_container() -> Container:
    """Container with property injection and autoregistration disabled."""
    return Container(autoregister_concrete_types=False, property_injection=True)
