"""Invocation handlers and the property injection extension point.

A container builds one invocation handler per target. ``install`` registers a
handler-created callback that wraps each new handler in a
``PropertyInjectingHandler``, which runs the wrapped handler first and then
assigns declared properties and calls the post-construction hook.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Sequence
from inspect import Parameter
from typing import Any, Protocol, runtime_checkable

from propwire.dependencies import ProviderDependency
from propwire.exceptions import (
    PropwireConstructorInjectionError,
    PropwireDependencyNotRegisteredError,
    PropwirePostConstructionError,
    PropwirePropertyResolutionError,
)
from propwire.registry import PropertyDependencyRegistry, TargetClassDescriptor, default_registry

logger = logging.getLogger(__name__)

_USE_DEFAULT: Any = object()


class DependencyGetter(Protocol):
    """Resolve dependency keys to values."""

    def get(self, key: Any) -> Any:
        """Return the value registered for ``key`` or raise when it cannot be resolved."""
        ...


@runtime_checkable
class InvocationHandler(Protocol):
    """Build new instances of a single target."""

    @property
    def target(self) -> Any:
        """Class or factory this handler invokes."""
        ...

    def invoke(self, container: DependencyGetter, dynamic_dependencies: Sequence[Any] = ()) -> Any:
        """Create a new instance, resolving dependencies through ``container``."""
        ...


HandlerCreatedCallback = Callable[[InvocationHandler], InvocationHandler]


class HandlerHookContainer(DependencyGetter, Protocol):
    """Container surface required by ``install``."""

    def set_handler_created_callback(self, callback: HandlerCreatedCallback | None) -> None:
        """Register the callback applied to every newly built invocation handler."""
        ...


class _CallableInvocationHandler:
    """Call a class or factory with arguments resolved from the container.

    ``dynamic_dependencies`` bind positionally to the leading parameters; every
    other annotated parameter is resolved through ``container.get``. Parameters
    with defaults fall back to the default when their key is not registered.
    """

    __slots__ = ("_dependencies", "_positional_names", "_target")

    def __init__(
        self,
        target: Callable[..., Any],
        dependencies: Sequence[ProviderDependency],
    ) -> None:
        self._target = target
        self._dependencies = tuple(dependencies)
        self._positional_names = tuple(
            parameter.name
            for parameter in inspect.signature(target).parameters.values()
            if parameter.kind in (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD)
        )

    @property
    def target(self) -> Any:
        return self._target

    @property
    def dependencies(self) -> tuple[ProviderDependency, ...]:
        """Parameters resolved from the container, in signature order."""
        return self._dependencies

    def invoke(self, container: DependencyGetter, dynamic_dependencies: Sequence[Any] = ()) -> Any:
        args = list(dynamic_dependencies)
        kwargs: dict[str, Any] = {}
        bound_names = set(self._positional_names[: len(args)])

        for dependency in self._dependencies:
            parameter = dependency.parameter
            if parameter.name in bound_names:
                continue
            value = self._resolve_dependency(container, dependency)
            if value is _USE_DEFAULT:
                continue
            if parameter.kind is Parameter.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[parameter.name] = value

        try:
            return self._target(*args, **kwargs)
        except Exception as error:
            raise PropwireConstructorInjectionError(self._target, error) from error

    def _resolve_dependency(
        self,
        container: DependencyGetter,
        dependency: ProviderDependency,
    ) -> Any:
        try:
            return container.get(dependency.provides)
        except PropwireDependencyNotRegisteredError as error:
            if not dependency.is_required:
                return _USE_DEFAULT
            raise PropwireConstructorInjectionError(
                self._target,
                error,
                parameter=dependency.parameter.name,
            ) from error
        except Exception as error:
            raise PropwireConstructorInjectionError(
                self._target,
                error,
                parameter=dependency.parameter.name,
            ) from error

    def __repr__(self) -> str:
        return f"{type(self).__name__}({getattr(self._target, '__qualname__', self._target)!r})"


class ConstructorInvocationHandler(_CallableInvocationHandler):
    """Default handler for concrete classes: plain constructor injection."""

    __slots__ = ()


class FactoryInvocationHandler(_CallableInvocationHandler):
    """Default handler for factory registrations."""

    __slots__ = ()


class PropertyInjectingHandler:
    """Wrap an invocation handler with property injection and a post-construction hook.

    ``invoke`` delegates to the wrapped handler unchanged, then looks up the
    descriptor for the type of the returned instance. Declared properties are
    resolved in declaration order and assigned on the instance; afterwards the
    post-construction hook, if any, is called once. When nothing is declared
    the result is exactly what the wrapped handler returned.

    The handler keeps no per-call state, so concurrent ``invoke`` calls are
    independent.
    """

    __slots__ = ("_inner", "_registry")

    def __init__(
        self,
        inner: InvocationHandler,
        registry: PropertyDependencyRegistry | None = None,
    ) -> None:
        self._inner = inner
        self._registry = default_registry if registry is None else registry

    @property
    def inner(self) -> InvocationHandler:
        """Wrapped handler."""
        return self._inner

    @property
    def target(self) -> Any:
        return self._inner.target

    @property
    def registry(self) -> PropertyDependencyRegistry:
        return self._registry

    def invoke(self, container: DependencyGetter, dynamic_dependencies: Sequence[Any] = ()) -> Any:
        """Create an instance and complete property injection and lifecycle.

        Args:
            container: Container used to resolve property dependency keys.
            dynamic_dependencies: Extra constructor arguments passed verbatim to
                the wrapped handler.

        Raises:
            PropwireConstructorInjectionError: Propagated from the wrapped handler.
            PropwirePropertyResolutionError: If a property dependency cannot be resolved.
            PropwirePostConstructionError: If the post-construction hook raises.

        """
        instance = self._inner.invoke(container, dynamic_dependencies)

        descriptor = self._registry.get_descriptor(type(instance))
        if descriptor.has_properties:
            self._inject_properties(container, instance, descriptor)
        if descriptor.post_construct is not None:
            self._run_post_construct(instance, descriptor)
        return instance

    def _inject_properties(
        self,
        container: DependencyGetter,
        instance: Any,
        descriptor: TargetClassDescriptor,
    ) -> None:
        for property_name, key in descriptor.properties.items():
            try:
                value = container.get(key)
            except Exception as error:
                raise PropwirePropertyResolutionError(
                    descriptor.target,
                    property_name,
                    key,
                ) from error
            setattr(instance, property_name, value)
            logger.debug(
                "Injected property %s.%s from key %r",
                descriptor.target.__qualname__,
                property_name,
                key,
            )

    def _run_post_construct(self, instance: Any, descriptor: TargetClassDescriptor) -> None:
        hook = descriptor.post_construct
        if hook is None:  # pragma: no cover - checked by the caller
            return
        try:
            hook(instance)
        except Exception as error:
            raise PropwirePostConstructionError(descriptor.target, error) from error
        logger.debug("Ran post-construction hook of %s", descriptor.target.__qualname__)

    def __repr__(self) -> str:
        return f"PropertyInjectingHandler({self._inner!r})"


def install(
    container: HandlerHookContainer,
    *,
    registry: PropertyDependencyRegistry | None = None,
) -> None:
    """Enable property injection and post-construction hooks on ``container``.

    Registers a handler-created callback that wraps every newly built handler in
    a ``PropertyInjectingHandler``. Handlers that are already wrapped are kept
    as they are, so installing twice does not wrap twice.

    Args:
        container: Container exposing ``get`` and ``set_handler_created_callback``.
        registry: Registry holding the property declarations. Defaults to
            ``default_registry``.

    """
    resolved_registry = default_registry if registry is None else registry

    def on_handler_created(handler: InvocationHandler) -> InvocationHandler:
        if isinstance(handler, PropertyInjectingHandler):
            return handler
        return PropertyInjectingHandler(handler, resolved_registry)

    container.set_handler_created_callback(on_handler_created)
    logger.info("Installed property injection on %s", type(container).__qualname__)


def uninstall(container: HandlerHookContainer) -> None:
    """Stop wrapping handlers that ``container`` builds from now on.

    Args:
        container: Container previously passed to ``install``.

    """
    container.set_handler_created_callback(None)
