"""Per-class property dependency declarations and their merged descriptors.

Declarations come from two sources: a convention mapping stored on the class
(``__inject_properties__`` by default) and entries recorded by the
declaration helpers in ``propwire.declarations``. Declaration entries win over
convention entries for the same property name, and subclasses override their
bases.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from propwire.defaults import DEFAULT_CONVENTION_ATTRIBUTE
from propwire.exceptions import PropwireInvalidDeclarationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TargetClassDescriptor:
    """Describe what happens to an instance of ``target`` after construction.

    ``properties`` maps property names to dependency keys in resolution order.
    ``post_construct`` is the hook function looked up on ``target``; it is
    called with the instance as its only argument.
    """

    target: type[Any]
    properties: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    post_construct: Callable[[Any], Any] | None = None

    @property
    def has_properties(self) -> bool:
        """Return true when at least one property dependency is declared."""
        return bool(self.properties)

    @property
    def is_empty(self) -> bool:
        """Return true when the descriptor adds nothing to constructor injection."""
        return not self.properties and self.post_construct is None


@dataclass(frozen=True, slots=True)
class _DeferredKey:
    resolve: Callable[[], Any]


@dataclass(slots=True)
class _ClassDeclarations:
    properties: dict[str, Any] = field(default_factory=dict)
    post_construct: str | None = None


class PropertyDependencyRegistry:
    """Collect property declarations and build cached class descriptors.

    Declarations are written while classes are being defined. The first call
    to ``get_descriptor`` for a class freezes that class and its bases: any
    later declaration for them raises ``PropwireInvalidDeclarationError``.
    Cached reads do not take the lock.
    """

    def __init__(self, *, convention_attribute: str = DEFAULT_CONVENTION_ATTRIBUTE) -> None:
        self._convention_attribute = convention_attribute
        self._declarations: dict[type[Any], _ClassDeclarations] = {}
        self._descriptors: dict[type[Any], TargetClassDescriptor] = {}
        self._frozen: set[type[Any]] = set()
        self._lock = threading.RLock()

    @property
    def convention_attribute(self) -> str:
        """Name of the class attribute read as a convention mapping."""
        return self._convention_attribute

    def declare(self, target: type[Any], property_name: str, key: Any) -> None:
        """Record ``{property_name: key}`` for ``target``.

        Re-declaring a property replaces the previous entry.

        Args:
            target: Class that owns the property.
            property_name: Attribute name assigned on instances.
            key: Dependency key resolved through ``container.get``.

        """
        self._store(target, property_name, key)

    def declare_deferred(
        self,
        target: type[Any],
        property_name: str,
        resolve_key: Callable[[], Any],
    ) -> None:
        """Record a property whose key is computed when the descriptor is built.

        Args:
            target: Class that owns the property.
            property_name: Attribute name assigned on instances.
            resolve_key: Zero-argument callable returning the dependency key.

        """
        self._store(target, property_name, _DeferredKey(resolve_key))

    def mark_post_construct(self, target: type[Any], method_name: str) -> None:
        """Record ``method_name`` as the post-construction hook of ``target``.

        Args:
            target: Class that owns the hook.
            method_name: Name of a zero-argument method on ``target``.

        """
        with self._lock:
            self._ensure_not_frozen(target)
            declarations = self._declarations.setdefault(target, _ClassDeclarations())
            current = declarations.post_construct
            if current is not None and current != method_name:
                msg = (
                    f"{target.__qualname__} declares more than one post-construction hook: "
                    f"'{current}' and '{method_name}'."
                )
                raise PropwireInvalidDeclarationError(msg)
            declarations.post_construct = method_name

    def get_descriptor(self, target: type[Any]) -> TargetClassDescriptor:
        """Return the merged descriptor for ``target``, building it on first use.

        Args:
            target: Class whose declarations are requested.

        Raises:
            PropwireInvalidDeclarationError: If a convention mapping is malformed.
            PropwireMissingTypeMetadataError: If a deferred key cannot be inferred.

        """
        descriptor = self._descriptors.get(target)
        if descriptor is not None:
            return descriptor

        with self._lock:
            descriptor = self._descriptors.get(target)
            if descriptor is None:
                descriptor = self._build_descriptor(target)
                self._descriptors[target] = descriptor
                self._frozen.update(target.__mro__)
        return descriptor

    def clear(self) -> None:
        """Drop every declaration and cached descriptor."""
        with self._lock:
            self._declarations.clear()
            self._descriptors.clear()
            self._frozen.clear()

    def _store(self, target: type[Any], property_name: str, key: Any) -> None:
        if not isinstance(property_name, str) or not property_name.isidentifier():
            msg = f"Property name must be an identifier, got {property_name!r}."
            raise PropwireInvalidDeclarationError(msg)
        with self._lock:
            self._ensure_not_frozen(target)
            declarations = self._declarations.setdefault(target, _ClassDeclarations())
            declarations.properties[property_name] = key

    def _ensure_not_frozen(self, target: type[Any]) -> None:
        if target in self._frozen:
            msg = (
                f"Cannot declare injection metadata for {target.__qualname__}: "
                "the class has already been instantiated through a property injection handler."
            )
            raise PropwireInvalidDeclarationError(msg)

    def _build_descriptor(self, target: type[Any]) -> TargetClassDescriptor:
        properties: dict[str, Any] = {}
        hook_name: str | None = None

        for klass in reversed(target.__mro__):
            if klass is object:
                continue
            properties.update(self._convention_properties(klass))
            declarations = self._declarations.get(klass)
            if declarations is None:
                continue
            for property_name, key in declarations.properties.items():
                properties[property_name] = key.resolve() if isinstance(key, _DeferredKey) else key
            if declarations.post_construct is not None:
                hook_name = declarations.post_construct

        post_construct = None
        if hook_name is not None:
            post_construct = getattr(target, hook_name, None)
            if not callable(post_construct):
                msg = (
                    f"Post-construction hook '{hook_name}' of {target.__qualname__} "
                    "is not callable."
                )
                raise PropwireInvalidDeclarationError(msg)

        descriptor = TargetClassDescriptor(
            target=target,
            properties=MappingProxyType(properties),
            post_construct=post_construct,
        )
        if not descriptor.is_empty:
            logger.debug(
                "Built injection descriptor for %s: properties=%s post_construct=%s",
                target.__qualname__,
                list(properties),
                hook_name,
            )
        return descriptor

    def _convention_properties(self, klass: type[Any]) -> Mapping[str, Any]:
        convention = klass.__dict__.get(self._convention_attribute)
        if convention is None:
            return {}
        if not isinstance(convention, Mapping):
            msg = (
                f"{klass.__qualname__}.{self._convention_attribute} must be a mapping of "
                f"property names to dependency keys, got {type(convention).__name__}."
            )
            raise PropwireInvalidDeclarationError(msg)
        for property_name in convention:
            if not isinstance(property_name, str) or not property_name.isidentifier():
                msg = (
                    f"{klass.__qualname__}.{self._convention_attribute} contains an invalid "
                    f"property name {property_name!r}."
                )
                raise PropwireInvalidDeclarationError(msg)
        return convention


default_registry = PropertyDependencyRegistry()
"""Registry used by the declaration helpers and ``install`` unless one is passed."""
