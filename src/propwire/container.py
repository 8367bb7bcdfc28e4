from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from typing import Any, Literal, TypeVar, overload

from propwire._internal.autoregistration import can_autoregister
from propwire._internal.validators import DependencyRegistrationValidator
from propwire.defaults import DEFAULT_AUTOREGISTER_LIFETIME
from propwire.dependencies import ProviderDependenciesExtractor
from propwire.exceptions import (
    PropwireCircularDependencyError,
    PropwireDependencyNotRegisteredError,
    PropwireInvalidRegistrationError,
)
from propwire.handlers import (
    ConstructorInvocationHandler,
    FactoryInvocationHandler,
    HandlerCreatedCallback,
    InvocationHandler,
    install,
)
from propwire.integrations.pydantic_settings import is_pydantic_settings_subclass
from propwire.markers import build_component_key, component_base_key
from propwire.providers import Lifetime, ProviderSpec, ProvidersRegistrations
from propwire.registry import PropertyDependencyRegistry

T = TypeVar("T")
C = TypeVar("C", bound=type[Any])
F = TypeVar("F", bound=Callable[..., Any])

logger = logging.getLogger(__name__)
_MISSING: Any = object()


class Container:
    """Resolve dependency keys through constructor injection.

    Dependency keys are usually concrete types, protocols, strings, or
    ``typing.Annotated`` tokens (for example ``Annotated[Db, Component("ro")]``).
    Eligible concrete classes are registered on first request unless
    ``autoregister_concrete_types`` is disabled.

    Each registered class or factory gets one invocation handler, built on the
    first instantiation. A callback installed with
    ``set_handler_created_callback`` may replace that handler; ``propwire.install``
    uses this hook to add property injection and post-construction hooks.
    """

    def __init__(
        self,
        *,
        autoregister_concrete_types: bool = True,
        autoregister_lifetime: Lifetime = DEFAULT_AUTOREGISTER_LIFETIME,
        property_injection: bool = False,
        registry: PropertyDependencyRegistry | None = None,
    ) -> None:
        """Initialize a container and configure default registration behavior.

        Args:
            autoregister_concrete_types: Register eligible concrete classes on
                first request. Disable for strict mode.
            autoregister_lifetime: Lifetime used for autoregistered classes.
            property_injection: Call ``propwire.install`` on this container.
            registry: Property declaration registry used when
                ``property_injection`` is enabled.

        """
        self._autoregister_concrete_types = autoregister_concrete_types
        self._autoregister_lifetime = autoregister_lifetime
        self._validator = DependencyRegistrationValidator()
        self._dependencies_extractor = ProviderDependenciesExtractor()
        self._registrations = ProvidersRegistrations()
        self._handlers: dict[Any, InvocationHandler] = {}
        self._singletons: dict[Any, Any] = {}
        self._handler_created_callback: HandlerCreatedCallback | None = None
        self._lock = threading.RLock()
        self._resolution_state = threading.local()

        if property_injection:
            install(self, registry=registry)

    def add_instance(
        self,
        instance: object,
        *,
        provides: Any | Literal["infer"] = "infer",
        component: object | None = None,
    ) -> None:
        """Register a pre-built value returned as is for every request.

        Args:
            instance: Value to return.
            provides: Dependency key. ``"infer"`` uses ``type(instance)``.
            component: Optional component marker qualifying the key.

        """
        key = type(instance) if _is_infer(provides) else provides
        key = self._qualify(key, component)
        self._register(ProviderSpec(provides=key, instance=instance, has_instance=True))

    @overload
    def add_concrete(
        self,
        concrete_type: C,
        *,
        provides: Any | Literal["infer"] = "infer",
        component: object | None = None,
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> C: ...

    @overload
    def add_concrete(
        self,
        concrete_type: Literal["from_decorator"] = "from_decorator",
        *,
        provides: Any | Literal["infer"] = "infer",
        component: object | None = None,
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> Callable[[C], C]: ...

    def add_concrete(
        self,
        concrete_type: C | Literal["from_decorator"] = "from_decorator",
        *,
        provides: Any | Literal["infer"] = "infer",
        component: object | None = None,
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> C | Callable[[C], C]:
        """Register a class built through constructor injection.

        Constructor parameters are resolved by their annotations. Unannotated
        parameters are left for dynamic dependencies passed to ``invoke``.

        Args:
            concrete_type: Class to register, or ``"from_decorator"`` to use the
                decorator form.
            provides: Dependency key. ``"infer"`` uses the class itself.
            component: Optional component marker qualifying the key.
            lifetime: ``TRANSIENT`` builds on every request, ``SINGLETON`` once.

        Returns:
            The class in direct form, or a class decorator in decorator form.

        Raises:
            PropwireInvalidRegistrationError: If the class cannot be registered.

        Examples:
            .. code-block:: python

                @container.add_concrete(provides=Repository)
                class SqlRepository(Repository):
                    def __init__(self, engine: Engine) -> None:
                        self.engine = engine

        """

        def decorator(cls: C) -> C:
            self._validator.validate_concrete_type(cls)
            key = self._qualify(cls if _is_infer(provides) else provides, component)
            self._register(
                ProviderSpec(
                    provides=key,
                    concrete_type=cls,
                    dependencies=self._dependencies_extractor.extract_from_concrete_type(cls),
                    lifetime=lifetime,
                ),
            )
            return cls

        if isinstance(concrete_type, str) and concrete_type == "from_decorator":
            return decorator
        return decorator(concrete_type)

    @overload
    def add_factory(
        self,
        factory: F,
        *,
        provides: Any | Literal["infer"] = "infer",
        component: object | None = None,
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> F: ...

    @overload
    def add_factory(
        self,
        factory: Literal["from_decorator"] = "from_decorator",
        *,
        provides: Any | Literal["infer"] = "infer",
        component: object | None = None,
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> Callable[[F], F]: ...

    def add_factory(
        self,
        factory: F | Literal["from_decorator"] = "from_decorator",
        *,
        provides: Any | Literal["infer"] = "infer",
        component: object | None = None,
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> F | Callable[[F], F]:
        """Register a factory whose parameters are injected by annotation.

        Args:
            factory: Callable building the dependency, or ``"from_decorator"``.
            provides: Dependency key. ``"infer"`` uses the return annotation.
            component: Optional component marker qualifying the key.
            lifetime: ``TRANSIENT`` calls the factory on every request,
                ``SINGLETON`` once.

        Raises:
            PropwireInvalidRegistrationError: If the factory is not callable or
                its key cannot be inferred.

        """

        def decorator(func: F) -> F:
            self._validator.validate_factory(func)
            key = provides
            if _is_infer(key):
                key = self._dependencies_extractor.extract_factory_return_type(func)
            self._register(
                ProviderSpec(
                    provides=self._qualify(key, component),
                    factory=func,
                    dependencies=self._dependencies_extractor.extract_from_factory(func),
                    lifetime=lifetime,
                ),
            )
            return func

        if isinstance(factory, str) and factory == "from_decorator":
            return decorator
        return decorator(factory)

    def get(self, key: Any) -> Any:
        """Resolve ``key`` to a value.

        Args:
            key: Dependency key to resolve.

        Raises:
            PropwireDependencyNotRegisteredError: If ``key`` is not registered
                and cannot be autoregistered.
            PropwireCircularDependencyError: If resolving ``key`` requires itself.
            PropwireConstructorInjectionError: If constructor injection fails.

        """
        spec = self._find_or_autoregister(key)
        if spec.has_instance:
            return spec.instance
        if spec.lifetime is not Lifetime.SINGLETON:
            return self._create(spec, ())

        cached = self._singletons.get(spec.provides, _MISSING)
        if cached is not _MISSING:
            return cached
        with self._lock:
            cached = self._singletons.get(spec.provides, _MISSING)
            if cached is _MISSING:
                cached = self._create(spec, ())
                self._singletons[spec.provides] = cached
        return cached

    def resolve(self, key: Any) -> Any:
        """Alias of ``get``."""
        return self.get(key)

    def invoke(self, target: Any, dynamic_dependencies: Sequence[Any] = ()) -> Any:
        """Build a new instance of ``target`` through its invocation handler.

        ``dynamic_dependencies`` bind positionally to the leading constructor or
        factory parameters; the remaining parameters are resolved from the
        container. Singleton caches are neither read nor written.

        Args:
            target: Registered class or factory key, or an eligible class.
            dynamic_dependencies: Extra positional arguments.

        Raises:
            PropwireInvalidRegistrationError: If ``target`` is registered as an instance.

        """
        spec = self._find_or_autoregister(target)
        if spec.has_instance:
            msg = f"Cannot invoke {target!r}: it is registered as an instance."
            raise PropwireInvalidRegistrationError(msg)
        return self._create(spec, dynamic_dependencies)

    def set_handler_created_callback(self, callback: HandlerCreatedCallback | None) -> None:
        """Register the callback that may replace each newly built invocation handler.

        The callback runs once per registration, right after the default
        handler is built, and its return value is used for every later
        instantiation. Handlers built before the call are discarded so the new
        callback applies from the next instantiation on.

        Args:
            callback: ``(handler) -> handler`` callable, or ``None`` to remove it.

        """
        with self._lock:
            self._handler_created_callback = callback
            self._handlers.clear()

    def get_handler(self, key: Any) -> InvocationHandler:
        """Return the (possibly wrapped) invocation handler used for ``key``.

        Args:
            key: Registered dependency key of a class or factory provider.

        """
        spec = self._find_or_autoregister(key)
        if spec.has_instance:
            msg = f"{key!r} is registered as an instance and has no invocation handler."
            raise PropwireInvalidRegistrationError(msg)
        return self._handler_for(spec)

    def _register(self, spec: ProviderSpec) -> None:
        self._validator.validate_provides(spec.provides)
        with self._lock:
            self._registrations.add(spec)
            self._handlers.pop(spec.provides, None)
            self._singletons.pop(spec.provides, None)

    def _qualify(self, key: Any, component: object | None) -> Any:
        if component is None:
            return key
        return build_component_key(key, component)

    def _find_or_autoregister(self, key: Any) -> ProviderSpec:
        try:
            spec = self._registrations.find_by_key(key)
        except TypeError as error:
            raise PropwireDependencyNotRegisteredError(key) from error
        if spec is not None:
            return spec

        with self._lock:
            spec = self._registrations.find_by_key(key)
            if spec is not None:
                return spec
            if not self._autoregister_concrete_types:
                raise PropwireDependencyNotRegisteredError(key)
            if component_base_key(key) is not None:
                raise PropwireDependencyNotRegisteredError(key)
            if is_pydantic_settings_subclass(key):
                self._register(
                    ProviderSpec(provides=key, concrete_type=key, lifetime=Lifetime.SINGLETON),
                )
            elif can_autoregister(key):
                self.add_concrete(key, lifetime=self._autoregister_lifetime)
            else:
                raise PropwireDependencyNotRegisteredError(key)
            logger.debug("Autoregistered %s", getattr(key, "__qualname__", key))
            return self._registrations.find_by_key(key)  # type: ignore[return-value]

    def _create(self, spec: ProviderSpec, dynamic_dependencies: Sequence[Any]) -> Any:
        stack = self._resolution_stack()
        if spec.provides in stack:
            raise PropwireCircularDependencyError((*stack, spec.provides))
        stack.append(spec.provides)
        try:
            return self._handler_for(spec).invoke(self, dynamic_dependencies)
        finally:
            stack.pop()

    def _handler_for(self, spec: ProviderSpec) -> InvocationHandler:
        handler = self._handlers.get(spec.provides)
        if handler is not None:
            return handler

        with self._lock:
            handler = self._handlers.get(spec.provides)
            if handler is None:
                handler = self._build_default_handler(spec)
                callback = self._handler_created_callback
                if callback is not None:
                    handler = callback(handler)
                self._handlers[spec.provides] = handler
        return handler

    def _build_default_handler(self, spec: ProviderSpec) -> InvocationHandler:
        if spec.concrete_type is not None:
            return ConstructorInvocationHandler(spec.concrete_type, spec.dependencies)
        if spec.factory is not None:
            return FactoryInvocationHandler(spec.factory, spec.dependencies)
        msg = f"Registration for {spec.provides!r} has no provider."  # pragma: no cover
        raise PropwireInvalidRegistrationError(msg)  # pragma: no cover

    def _resolution_stack(self) -> list[Any]:
        stack: list[Any] | None = getattr(self._resolution_state, "stack", None)
        if stack is None:
            stack = []
            self._resolution_state.stack = stack
        return stack

    def __repr__(self) -> str:
        return f"Container(registrations={len(self._registrations)})"


def _is_infer(value: object) -> bool:
    return isinstance(value, str) and value == "infer"
