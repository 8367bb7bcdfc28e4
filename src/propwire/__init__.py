from propwire.container import Container
from propwire.declarations import (
    Inject,
    declare_property,
    declare_property_auto,
    inject_property,
    post_construct,
)
from propwire.exceptions import (
    PropwireCircularDependencyError,
    PropwireConstructorInjectionError,
    PropwireDependencyNotRegisteredError,
    PropwireError,
    PropwireInvalidDeclarationError,
    PropwireInvalidRegistrationError,
    PropwireMissingTypeMetadataError,
    PropwirePostConstructionError,
    PropwirePropertyResolutionError,
)
from propwire.handlers import (
    ConstructorInvocationHandler,
    FactoryInvocationHandler,
    HandlerHookContainer,
    InvocationHandler,
    PropertyInjectingHandler,
    install,
    uninstall,
)
from propwire.markers import Component
from propwire.providers import Lifetime
from propwire.registry import PropertyDependencyRegistry, TargetClassDescriptor, default_registry

__all__ = [
    "Component",
    "ConstructorInvocationHandler",
    "Container",
    "FactoryInvocationHandler",
    "HandlerHookContainer",
    "Inject",
    "InvocationHandler",
    "Lifetime",
    "PropertyDependencyRegistry",
    "PropertyInjectingHandler",
    "PropwireCircularDependencyError",
    "PropwireConstructorInjectionError",
    "PropwireDependencyNotRegisteredError",
    "PropwireError",
    "PropwireInvalidDeclarationError",
    "PropwireInvalidRegistrationError",
    "PropwireMissingTypeMetadataError",
    "PropwirePostConstructionError",
    "PropwirePropertyResolutionError",
    "TargetClassDescriptor",
    "declare_property",
    "declare_property_auto",
    "default_registry",
    "inject_property",
    "install",
    "post_construct",
    "uninstall",
]
