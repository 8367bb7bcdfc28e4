from __future__ import annotations

import inspect
from typing import Any

from propwire.exceptions import PropwireInvalidRegistrationError


class DependencyRegistrationValidator:
    """Validate registrations before provider specs are created."""

    def validate_concrete_type(self, concrete_type: object) -> None:
        """Validate that a concrete provider is instantiable."""
        if not inspect.isclass(concrete_type):
            msg = f"Concrete provider must be a class, got {concrete_type!r}."
            raise PropwireInvalidRegistrationError(msg)

        if inspect.isabstract(concrete_type):
            msg = f"Concrete provider '{concrete_type.__qualname__}' cannot be an abstract class."
            raise PropwireInvalidRegistrationError(msg)

    def validate_factory(self, factory: object) -> None:
        """Validate that a factory provider is a callable."""
        if not callable(factory):
            msg = f"Factory provider must be callable, got {factory!r}."
            raise PropwireInvalidRegistrationError(msg)

    def validate_provides(self, provides: Any) -> None:
        """Validate that a dependency key can index the registrations."""
        try:
            hash(provides)
        except TypeError as error:
            msg = f"Dependency key must be hashable, got {provides!r}."
            raise PropwireInvalidRegistrationError(msg) from error
