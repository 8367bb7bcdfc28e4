"""Tests for the reference constructor-injection Container."""

from __future__ import annotations

import abc
import datetime
import uuid
from decimal import Decimal
from pathlib import Path
from typing import Annotated, Any, Protocol

import pytest

from propwire import (
    Component,
    Container,
    ConstructorInvocationHandler,
    FactoryInvocationHandler,
    Inject,
    Lifetime,
    PropertyInjectingHandler,
    PropwireCircularDependencyError,
    PropwireConstructorInjectionError,
    PropwireDependencyNotRegisteredError,
    PropwireInvalidRegistrationError,
    PropwirePropertyResolutionError,
    post_construct,
)


class ServiceA:
    pass


class ServiceB:
    def __init__(self, a: ServiceA) -> None:
        self.a = a


class Greeter:
    def __init__(self, name, a: ServiceA, punctuation: str = "!") -> None:  # noqa: ANN001
        self.name = name
        self.a = a
        self.punctuation = punctuation


class _Clock(Protocol):
    def now(self) -> int: ...


class _FixedClock:
    def now(self) -> int:
        return 42


class _AbstractRepo(abc.ABC):
    @abc.abstractmethod
    def get(self) -> str: ...


class _CycleA:
    def __init__(self, b: _CycleB) -> None:
        self.b = b


class _CycleB:
    def __init__(self, a: _CycleA) -> None:
        self.a = a


class _Database:
    def __init__(self, name: str = "primary") -> None:
        self.name = name


ReplicaDb = Annotated[_Database, Component("replica")]


class _Reporter:
    def __init__(self, db: ReplicaDb) -> None:
        self.db = db


class _Exploding:
    def __init__(self) -> None:
        raise ValueError("boom")


class _NeedsExploding:
    def __init__(self, dep: _Exploding) -> None:
        self.dep = dep


class _PropertyCycleA:
    b: _PropertyCycleB = Inject()


class _PropertyCycleB:
    a: _PropertyCycleA = Inject()


class _Service:
    clock: _Clock = Inject()

    def __init__(self, a: ServiceA) -> None:
        self.a = a
        self.ready_clock: int | None = None

    @post_construct
    def ready(self) -> None:
        self.ready_clock = self.clock.now()


class TestRegistration:
    def test_add_instance_returns_same_value(self, container: Container) -> None:
        instance = ServiceA()
        container.add_instance(instance)

        assert container.get(ServiceA) is instance

    def test_add_instance_with_string_key(self, container: Container) -> None:
        container.add_instance({"debug": True}, provides="config")

        assert container.get("config") == {"debug": True}

    def test_add_instance_allows_none(self, container: Container) -> None:
        container.add_instance(None, provides="nothing")

        assert container.get("nothing") is None

    def test_add_concrete_with_provides(self, container: Container) -> None:
        container.add_concrete(_FixedClock, provides=_Clock)

        assert isinstance(container.get(_Clock), _FixedClock)

    def test_add_concrete_decorator_form(self, container: Container) -> None:
        @container.add_concrete(provides=_Clock)
        class DecoratedClock:
            def now(self) -> int:
                return 1

        assert DecoratedClock.__name__ == "DecoratedClock"
        assert container.get(_Clock).now() == 1

    def test_add_concrete_rejects_non_class(self, container: Container) -> None:
        with pytest.raises(PropwireInvalidRegistrationError, match="must be a class"):
            container.add_concrete(lambda: None)  # type: ignore[call-overload]

    def test_add_concrete_rejects_abstract_class(self, container: Container) -> None:
        with pytest.raises(PropwireInvalidRegistrationError, match="abstract"):
            container.add_concrete(_AbstractRepo)

    def test_add_factory_infers_key_from_return_annotation(self, container: Container) -> None:
        def build_database(a: ServiceA) -> _Database:
            assert isinstance(a, ServiceA)
            return _Database("from-factory")

        container.add_factory(build_database)

        assert container.get(_Database).name == "from-factory"
        assert isinstance(container.get_handler(_Database), PropertyInjectingHandler)

    def test_add_factory_without_annotation_needs_provides(self, container: Container) -> None:
        def build():  # noqa: ANN202
            return 1

        with pytest.raises(PropwireInvalidRegistrationError, match="no return annotation"):
            container.add_factory(build)

        container.add_factory(build, provides="one")
        assert container.get("one") == 1

    def test_add_factory_rejects_non_callable(self, container: Container) -> None:
        with pytest.raises(PropwireInvalidRegistrationError, match="callable"):
            container.add_factory(42, provides="answer")  # type: ignore[call-overload]

    def test_unhashable_key_is_rejected(self, container: Container) -> None:
        with pytest.raises(PropwireInvalidRegistrationError, match="hashable"):
            container.add_instance(1, provides=["not", "hashable"])

    def test_reregistration_replaces_provider(self, container: Container) -> None:
        container.add_instance("first", provides="value")
        assert container.get("value") == "first"

        container.add_instance("second", provides="value")

        assert container.get("value") == "second"


class TestComponents:
    def test_component_qualified_keys(self, container: Container) -> None:
        container.add_concrete(_Database, component="replica")
        container.add_instance(_Database("primary-instance"))

        reporter = container.get(_Reporter)

        assert container.get(ReplicaDb) is not container.get(ReplicaDb)
        assert reporter.db.name == "primary"
        assert container.get(_Database).name == "primary-instance"

    def test_unregistered_component_key_is_not_autoregistered(self, container: Container) -> None:
        with pytest.raises(PropwireDependencyNotRegisteredError) as exc_info:
            container.get(ReplicaDb)

        assert exc_info.value.key == ReplicaDb

    def test_component_instance_is_accepted(self, container: Container) -> None:
        container.add_instance(_Database("r"), component=Component("replica"))

        assert container.get(ReplicaDb).name == "r"


class TestResolution:
    def test_constructor_injection(self, container: Container) -> None:
        b = container.get(ServiceB)

        assert isinstance(b, ServiceB)
        assert isinstance(b.a, ServiceA)

    def test_resolve_is_alias_of_get(self, container: Container) -> None:
        assert isinstance(container.resolve(ServiceB), ServiceB)

    def test_transient_by_default(self, container: Container) -> None:
        assert container.get(ServiceA) is not container.get(ServiceA)

    def test_singleton_lifetime(self, container: Container) -> None:
        container.add_concrete(ServiceA, lifetime=Lifetime.SINGLETON)

        assert container.get(ServiceA) is container.get(ServiceA)
        assert container.get(ServiceB).a is container.get(ServiceA)

    def test_autoregister_lifetime(self) -> None:
        container = Container(autoregister_lifetime=Lifetime.SINGLETON)

        assert container.get(ServiceA) is container.get(ServiceA)

    def test_strict_mode(self, strict_container: Container) -> None:
        with pytest.raises(PropwireDependencyNotRegisteredError) as exc_info:
            strict_container.get(ServiceA)

        assert exc_info.value.key is ServiceA
        assert "is not registered" in str(exc_info.value)

    @pytest.mark.parametrize(
        "key",
        [
            int,
            str,
            list[int],
            _Clock,
            _AbstractRepo,
            abc.ABCMeta,
            Decimal,
            Path,
            uuid.UUID,
            datetime.datetime,
            "unknown",
        ],
    )
    def test_ineligible_keys_are_not_autoregistered(self, container: Container, key: Any) -> None:
        with pytest.raises(PropwireDependencyNotRegisteredError):
            container.get(key)

    def test_default_used_when_parameter_not_registered(self, container: Container) -> None:
        greeter = container.invoke(Greeter, ["world"])

        assert greeter.punctuation == "!"

    def test_missing_required_dependency(self, strict_container: Container) -> None:
        strict_container.add_concrete(ServiceB)

        with pytest.raises(PropwireConstructorInjectionError) as exc_info:
            strict_container.get(ServiceB)

        assert exc_info.value.parameter == "a"
        assert exc_info.value.target is ServiceB
        assert isinstance(exc_info.value.cause, PropwireDependencyNotRegisteredError)

    def test_constructor_failure_is_wrapped(self, container: Container) -> None:
        with pytest.raises(PropwireConstructorInjectionError) as exc_info:
            container.get(_Exploding)

        assert exc_info.value.parameter is None
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_nested_constructor_failure_names_parameter(self, container: Container) -> None:
        with pytest.raises(PropwireConstructorInjectionError) as exc_info:
            container.get(_NeedsExploding)

        assert exc_info.value.parameter == "dep"
        assert isinstance(exc_info.value.cause, PropwireConstructorInjectionError)

    def test_constructor_cycle_is_detected(self, container: Container) -> None:
        with pytest.raises(PropwireConstructorInjectionError) as exc_info:
            container.get(_CycleA)

        error: BaseException | None = exc_info.value
        while error is not None and not isinstance(error, PropwireCircularDependencyError):
            error = error.__cause__
        assert isinstance(error, PropwireCircularDependencyError)
        assert error.chain == (_CycleA, _CycleB, _CycleA)

    def test_property_cycle_is_detected(self, container: Container) -> None:
        with pytest.raises(PropwirePropertyResolutionError) as exc_info:
            container.get(_PropertyCycleA)

        assert exc_info.value.property_name == "b"


class TestInvoke:
    def test_dynamic_dependencies_bind_leading_parameters(self, container: Container) -> None:
        greeter = container.invoke(Greeter, ["world", ServiceA(), "?"])

        assert greeter.name == "world"
        assert greeter.punctuation == "?"

    def test_remaining_parameters_are_resolved(self, container: Container) -> None:
        greeter = container.invoke(Greeter, ("world",))

        assert isinstance(greeter.a, ServiceA)

    def test_invoke_bypasses_singleton_cache(self, container: Container) -> None:
        container.add_concrete(ServiceA, lifetime=Lifetime.SINGLETON)

        assert container.invoke(ServiceA) is not container.get(ServiceA)

    def test_invoke_instance_registration_fails(self, container: Container) -> None:
        container.add_instance(ServiceA())

        with pytest.raises(PropwireInvalidRegistrationError):
            container.invoke(ServiceA)

    def test_get_handler_for_instance_registration_fails(self, container: Container) -> None:
        container.add_instance(ServiceA())

        with pytest.raises(PropwireInvalidRegistrationError):
            container.get_handler(ServiceA)


class TestHandlerCreatedCallback:
    def test_callback_runs_once_per_target(self, plain_container: Container) -> None:
        seen: list[Any] = []

        def callback(handler: Any) -> Any:
            seen.append(handler)
            return handler

        plain_container.set_handler_created_callback(callback)
        plain_container.get(ServiceA)
        plain_container.get(ServiceA)
        plain_container.get(ServiceB)

        assert [handler.target for handler in seen] == [ServiceA, ServiceB]
        assert isinstance(seen[0], ConstructorInvocationHandler)

    def test_returned_handler_is_used(self, plain_container: Container) -> None:
        sentinel = object()

        class ReplacingHandler:
            def __init__(self, inner: Any) -> None:
                self.inner = inner
                self.target = inner.target

            def invoke(self, container: Any, dynamic_dependencies: Any = ()) -> Any:
                return sentinel

        plain_container.set_handler_created_callback(ReplacingHandler)

        assert plain_container.get(ServiceA) is sentinel
        assert isinstance(plain_container.get_handler(ServiceA), ReplacingHandler)

    def test_factory_handlers_go_through_callback(self, plain_container: Container) -> None:
        seen: list[Any] = []

        def callback(handler: Any) -> Any:
            seen.append(handler)
            return handler

        plain_container.set_handler_created_callback(callback)
        plain_container.add_factory(lambda: "value", provides="key")
        plain_container.get("key")

        assert isinstance(seen[0], FactoryInvocationHandler)

    def test_instances_never_use_handlers(self, plain_container: Container) -> None:
        seen: list[Any] = []
        plain_container.set_handler_created_callback(
            lambda handler: seen.append(handler) or handler,
        )
        plain_container.add_instance(ServiceA())

        plain_container.get(ServiceA)

        assert seen == []

    def test_removing_callback_restores_default_handlers(self, container: Container) -> None:
        assert isinstance(container.get_handler(ServiceA), PropertyInjectingHandler)

        container.set_handler_created_callback(None)

        assert isinstance(container.get_handler(ServiceA), ConstructorInvocationHandler)


class TestPropertyInjectionIntegration:
    def test_constructor_properties_and_hook(self, container: Container) -> None:
        container.add_concrete(_FixedClock, provides=_Clock)

        service = container.get(_Service)

        assert isinstance(service.a, ServiceA)
        assert isinstance(service.clock, _FixedClock)
        assert service.ready_clock == 42

    def test_properties_on_factory_products(self, container: Container) -> None:
        container.add_concrete(_FixedClock, provides=_Clock)

        def build_service() -> _Service:
            return _Service(ServiceA())

        container.add_factory(build_service, provides="service")

        assert container.get("service").ready_clock == 42

    def test_singleton_properties_are_injected_once(self, container: Container) -> None:
        calls: list[int] = []

        class CountingClock:
            def now(self) -> int:
                calls.append(1)
                return len(calls)

        container.add_concrete(CountingClock, provides=_Clock)
        container.add_concrete(_Service, lifetime=Lifetime.SINGLETON)

        first = container.get(_Service)
        second = container.get(_Service)

        assert first is second
        assert calls == [1]

    def test_missing_property_dependency(self, container: Container) -> None:
        with pytest.raises(PropwirePropertyResolutionError) as exc_info:
            container.get(_Service)

        assert exc_info.value.property_name == "clock"
        assert exc_info.value.key is _Clock

    def test_property_failure_inside_constructor_dependency(self, container: Container) -> None:
        class NeedsService:
            def __init__(self, service: _Service) -> None:
                self.service = service

        with pytest.raises(PropwireConstructorInjectionError) as exc_info:
            container.get(NeedsService)

        assert isinstance(exc_info.value.cause, PropwirePropertyResolutionError)
