"""Class-definition-time helpers that declare property dependencies.

Examples:
    .. code-block:: python

        from propwire import Inject, inject_property, post_construct


        @inject_property("clock", ClockToken)
        class Widget:
            logger: Logger = Inject()
            cache: Cache = Inject(Annotated[Cache, Component("local")])

            @post_construct
            def ready(self) -> None:
                self.logger.info("widget ready")

"""

from __future__ import annotations

import inspect
import sys
from collections.abc import Callable
from typing import Any, Generic, TypeVar, get_type_hints, overload

from typing_extensions import Self

from propwire.exceptions import PropwireInvalidDeclarationError, PropwireMissingTypeMetadataError
from propwire.registry import PropertyDependencyRegistry, default_registry

T = TypeVar("T")
C = TypeVar("C", bound=type[Any])
F = TypeVar("F", bound=Callable[..., Any])


class _InferKey:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<infer>"


_INFER: Any = _InferKey()


if sys.version_info >= (3, 14):
    import annotationlib

    def _raw_annotations(klass: type[Any]) -> dict[str, Any]:
        return annotationlib.get_annotations(klass, format=annotationlib.Format.FORWARDREF)

else:

    def _raw_annotations(klass: type[Any]) -> dict[str, Any]:
        return inspect.get_annotations(klass)


def declare_property(
    target: type[Any],
    property_name: str,
    key: Any,
    *,
    registry: PropertyDependencyRegistry | None = None,
) -> None:
    """Declare that ``property_name`` on instances of ``target`` is resolved from ``key``.

    Call this while the class is being defined (for example right after the
    class statement). Declarations made after the class has been instantiated
    through a property injection handler are rejected.

    Args:
        target: Class that owns the property.
        property_name: Attribute name assigned on new instances.
        key: Dependency key passed to ``container.get``.
        registry: Registry to record into. Defaults to ``default_registry``.

    Raises:
        PropwireInvalidDeclarationError: If ``target`` is not a class or is frozen.

    """
    _ensure_class(target)
    _registry(registry).declare(target, property_name, key)


def declare_property_auto(
    target: type[Any],
    property_name: str,
    *,
    registry: PropertyDependencyRegistry | None = None,
) -> None:
    """Declare a property dependency keyed by the property's class annotation.

    The annotation is looked up on ``target`` and its bases and evaluated with
    ``typing.get_type_hints(..., include_extras=True)``, so ``Annotated`` keys
    keep their ``Component`` metadata. Annotations that reference names not
    defined yet are evaluated when the class is first instantiated.

    Args:
        target: Class that owns the property.
        property_name: Annotated attribute name assigned on new instances.
        registry: Registry to record into. Defaults to ``default_registry``.

    Raises:
        PropwireMissingTypeMetadataError: If the property has no annotation or the
            annotation cannot be evaluated.
        PropwireInvalidDeclarationError: If ``target`` is not a class or is frozen.

    """
    _ensure_class(target)
    resolved_registry = _registry(registry)
    if _annotation_owner(target, property_name) is None:
        raise PropwireMissingTypeMetadataError(target, property_name)

    try:
        key = _evaluate_annotation(target, property_name)
    except NameError:
        resolved_registry.declare_deferred(
            target,
            property_name,
            lambda: _evaluate_deferred_annotation(target, property_name),
        )
        return
    resolved_registry.declare(target, property_name, key)


def inject_property(
    property_name: str,
    key: Any = _INFER,
    *,
    registry: PropertyDependencyRegistry | None = None,
) -> Callable[[C], C]:
    """Class decorator form of ``declare_property`` and ``declare_property_auto``.

    Args:
        property_name: Attribute name assigned on new instances.
        key: Dependency key. When omitted, the property's annotation is used.
        registry: Registry to record into. Defaults to ``default_registry``.

    """

    def decorator(cls: C) -> C:
        if key is _INFER:
            declare_property_auto(cls, property_name, registry=registry)
        else:
            declare_property(cls, property_name, key, registry=registry)
        return cls

    return decorator


class Inject(Generic[T]):
    """Mark a class attribute for property injection.

    ``logger: Logger = Inject()`` declares ``logger`` keyed by its annotation;
    ``Inject(LoggerToken)`` uses an explicit key. The declaration is recorded
    when the class body finishes executing. Reading the attribute on an
    instance that has not been injected raises ``AttributeError``.

    Do not use on dataclass or attrs fields: those frameworks turn the marker
    into a constructor default.
    """

    __slots__ = ("key", "name", "registry")

    def __init__(
        self,
        key: Any = _INFER,
        *,
        registry: PropertyDependencyRegistry | None = None,
    ) -> None:
        self.key = key
        self.registry = registry
        self.name: str | None = None

    def __set_name__(self, owner: type[Any], name: str) -> None:
        self.name = name
        if self.key is _INFER:
            declare_property_auto(owner, name, registry=self.registry)
        else:
            declare_property(owner, name, self.key, registry=self.registry)

    @overload
    def __get__(self, instance: None, owner: type[Any] | None = None) -> Self: ...

    @overload
    def __get__(self, instance: object, owner: type[Any] | None = None) -> T: ...

    def __get__(self, instance: object | None, owner: type[Any] | None = None) -> Any:
        if instance is None:
            return self
        owner_name = (owner or type(instance)).__qualname__
        msg = f"Property '{self.name}' of {owner_name} has not been injected."
        raise AttributeError(msg)

    def __repr__(self) -> str:
        if self.key is _INFER:
            return "Inject()"
        return f"Inject({self.key!r})"


class _PostConstructMethod:
    __slots__ = ("func", "registry")

    def __init__(
        self,
        func: Callable[..., Any],
        registry: PropertyDependencyRegistry | None,
    ) -> None:
        self.func = func
        self.registry = registry

    def __set_name__(self, owner: type[Any], name: str) -> None:
        _registry(self.registry).mark_post_construct(owner, name)
        # The class keeps the plain function once the hook is recorded.
        setattr(owner, name, self.func)

    def __get__(self, instance: object | None, owner: type[Any] | None = None) -> Any:
        return self.func.__get__(instance, owner)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.func(*args, **kwargs)


@overload
def post_construct(func: F, /) -> F: ...


@overload
def post_construct(*, registry: PropertyDependencyRegistry | None = None) -> Callable[[F], F]: ...


def post_construct(
    func: F | None = None,
    /,
    *,
    registry: PropertyDependencyRegistry | None = None,
) -> F | Callable[[F], F]:
    """Mark a zero-argument method as the class's post-construction hook.

    The hook runs once per instantiation, after constructor injection and after
    every declared property has been assigned. A class may mark at most one
    hook; subclasses inherit it and may override the method by name.

    Args:
        func: Method to mark when used without parentheses.
        registry: Registry to record into. Defaults to ``default_registry``.

    Raises:
        PropwireInvalidDeclarationError: If the class marks a second hook.

    """

    def decorator(method: F) -> F:
        if not callable(method):
            msg = f"@post_construct expects a function, got {method!r}."
            raise PropwireInvalidDeclarationError(msg)
        return _PostConstructMethod(method, registry)  # type: ignore[return-value]

    if func is None:
        return decorator
    return decorator(func)


def _registry(registry: PropertyDependencyRegistry | None) -> PropertyDependencyRegistry:
    return default_registry if registry is None else registry


def _ensure_class(target: object) -> None:
    if not inspect.isclass(target):
        msg = f"Property declarations require a class, got {target!r}."
        raise PropwireInvalidDeclarationError(msg)


def _annotation_owner(target: type[Any], property_name: str) -> type[Any] | None:
    for klass in target.__mro__:
        if klass is object:
            continue
        if property_name in _raw_annotations(klass):
            return klass
    return None


def _evaluate_annotation(target: type[Any], property_name: str) -> Any:
    owner = _annotation_owner(target, property_name)
    if owner is None:
        raise PropwireMissingTypeMetadataError(target, property_name)

    # Only this property's annotation is evaluated; other annotations may
    # reference names that exist for type checkers only.
    holder = type(
        owner.__name__,
        (),
        {
            "__module__": owner.__module__,
            "__annotations__": {property_name: _raw_annotations(owner)[property_name]},
        },
    )
    module = sys.modules.get(owner.__module__)
    try:
        hints = get_type_hints(
            holder,
            globalns=vars(module) if module is not None else {},
            localns=dict(vars(owner)),
            include_extras=True,
        )
    except TypeError as error:
        raise PropwireMissingTypeMetadataError(target, property_name, str(error)) from error
    return hints[property_name]


def _evaluate_deferred_annotation(target: type[Any], property_name: str) -> Any:
    try:
        return _evaluate_annotation(target, property_name)
    except NameError as error:
        raise PropwireMissingTypeMetadataError(target, property_name, str(error)) from error
