from __future__ import annotations

import pytest

from propwire.container import Container
from propwire.registry import PropertyDependencyRegistry


@pytest.fixture()
def propwire_registry() -> PropertyDependencyRegistry:
    """Create an isolated property declaration registry.

    Pass it as ``registry=`` to the declaration helpers and to
    ``Container(property_injection=True, registry=...)`` to keep declarations
    made in one test away from the process-wide ``default_registry``.

    Returns:
        A new, empty ``PropertyDependencyRegistry``.

    """
    return PropertyDependencyRegistry()


@pytest.fixture()
def propwire_container() -> Container:
    """Create a per-test container with property injection installed.

    The container reads declarations from ``default_registry``. Override this
    fixture to add registrations shared by a test module.

    Returns:
        A new ``Container`` instance.

    """
    return Container(property_injection=True)
