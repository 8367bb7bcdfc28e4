from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, TypeAlias

from propwire.dependencies import ProviderDependency

UserDependency: TypeAlias = Any
"""A dependency key registered or requested from the user's code."""


class Lifetime(Enum):
    """Define cache behavior for provider results."""

    TRANSIENT = auto()
    """Disable caching and build a new value for every resolution call."""

    SINGLETON = auto()
    """Build the value once and reuse it for the container lifetime."""


@dataclass(kw_only=True)
class ProviderSpec:
    """Describe how a single dependency key is produced and cached.

    Exactly one provider source is set: ``instance``, ``concrete_type`` or
    ``factory``. Instance providers have no lifetime and no invocation handler.
    """

    provides: UserDependency
    """The dependency key that this provider supplies."""

    instance: Any = None
    """An optional pre-built value of the provided dependency."""
    has_instance: bool = False
    """True when ``instance`` holds the provided value (which may be ``None``)."""
    concrete_type: type[Any] | None = None
    """An optional class instantiated through constructor injection."""
    factory: Callable[..., Any] | None = None
    """An optional factory function called with injected arguments."""
    dependencies: list[ProviderDependency] = field(default_factory=list)
    """Constructor or factory parameters resolved from the container."""

    lifetime: Lifetime | None = None
    """The lifetime of the provided dependency. ``None`` for instance providers."""


class ProvidersRegistrations:
    """Store provider specs indexed by dependency key.

    Registration keys are unique: adding a spec for an existing dependency key
    replaces the previous spec.
    """

    def __init__(self) -> None:
        self._registrations_by_key: dict[UserDependency, ProviderSpec] = {}

    def add(self, spec: ProviderSpec) -> None:
        """Add a provider specification, replacing any spec for the same key.

        Args:
            spec: Provider specification to register.

        """
        self._registrations_by_key[spec.provides] = spec

    def find_by_key(self, key: UserDependency) -> ProviderSpec | None:
        """Get a provider specification by dependency key, if it exists.

        Args:
            key: Dependency key to look up.

        """
        return self._registrations_by_key.get(key)

    def values(self) -> list[ProviderSpec]:
        """Get all provider specifications."""
        return list(self._registrations_by_key.values())

    def __contains__(self, key: object) -> bool:
        return key in self._registrations_by_key

    def __len__(self) -> int:
        return len(self._registrations_by_key)
