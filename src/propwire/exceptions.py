from __future__ import annotations

from typing import Any


def _describe_key(key: Any) -> str:
    qualname = getattr(key, "__qualname__", None)
    if isinstance(qualname, str):
        return qualname
    return repr(key)


class PropwireError(Exception):
    """Represent a base class for all propwire-specific failures.

    Catch this type when you want to handle any propwire error path without
    matching each concrete exception class individually.
    """


class PropwireInvalidRegistrationError(PropwireError):
    """Signal invalid registration on the reference container.

    Raised by ``Container.add_instance``, ``Container.add_concrete`` and
    ``Container.add_factory`` when arguments are invalid, for example when a
    concrete provider is not a class or a factory has no return annotation and
    no explicit ``provides`` key.
    """


class PropwireDependencyNotRegisteredError(PropwireError):
    """Signal that a dependency key has no provider.

    Raised by ``Container.get``/``Container.resolve`` when the key is not
    registered and cannot be autoregistered.

    Typical fixes include registering the dependency explicitly or enabling
    autoregistration for eligible concrete types.
    """

    def __init__(self, key: Any) -> None:
        self.key = key
        super().__init__(f"Dependency {_describe_key(key)} is not registered.")


class PropwireCircularDependencyError(PropwireError):
    """Signal a dependency cycle detected while resolving a key.

    The ``chain`` attribute lists the keys in resolution order, ending with the
    key that closed the cycle.
    """

    def __init__(self, chain: tuple[Any, ...]) -> None:
        self.chain = chain
        rendered = " -> ".join(_describe_key(key) for key in chain)
        super().__init__(f"Circular dependency detected: {rendered}.")


class PropwireConstructorInjectionError(PropwireError):
    """Signal that constructor injection failed for a target.

    Raised by the default invocation handler when a constructor parameter
    cannot be resolved or when the constructor itself raises. Property
    injection handlers pass this error through unchanged.
    """

    def __init__(self, target: Any, cause: BaseException, parameter: str | None = None) -> None:
        self.target = target
        self.cause = cause
        self.parameter = parameter
        if parameter is None:
            msg = f"Failed to construct {_describe_key(target)}: {cause!r}."
        else:
            msg = (
                f"Failed to resolve constructor parameter '{parameter}' "
                f"of {_describe_key(target)}: {cause!r}."
            )
        super().__init__(msg)


class PropwirePropertyResolutionError(PropwireError):
    """Signal that a declared property dependency could not be resolved.

    The instance under construction is discarded. ``property_name`` and ``key``
    identify the failing declaration; the container error is available as
    ``__cause__``.

    Typical fixes include registering ``key`` on the container or correcting
    the declaration.
    """

    def __init__(self, target: Any, property_name: str, key: Any) -> None:
        self.target = target
        self.property_name = property_name
        self.key = key
        super().__init__(
            f"Cannot resolve property '{property_name}' of {_describe_key(target)}: "
            f"dependency {_describe_key(key)} could not be resolved.",
        )


class PropwirePostConstructionError(PropwireError):
    """Signal that a post-construction hook raised.

    The instance was fully property-injected but is not returned to the caller.
    The original exception is available as ``cause`` and ``__cause__``.
    """

    def __init__(self, target: Any, cause: BaseException) -> None:
        self.target = target
        self.cause = cause
        super().__init__(
            f"Post-construction hook of {_describe_key(target)} failed: {cause!r}.",
        )


class PropwireMissingTypeMetadataError(PropwireError):
    """Signal that a property dependency key cannot be inferred from type hints.

    Raised by ``declare_property_auto`` and ``Inject()`` when the property has
    no class annotation, or when a deferred annotation cannot be evaluated.

    Typical fixes include annotating the property in the class body or passing
    an explicit key.
    """

    def __init__(self, target: Any, property_name: str, reason: str | None = None) -> None:
        self.target = target
        self.property_name = property_name
        msg = (
            f"Cannot infer dependency key for property '{property_name}' "
            f"of {_describe_key(target)}"
        )
        msg = f"{msg}: {reason}." if reason else f"{msg}: no type annotation found."
        super().__init__(msg)


class PropwireInvalidDeclarationError(PropwireError):
    """Signal a malformed property or lifecycle declaration.

    Raised for convention mappings that are not mappings of property names,
    for declarations made after a class descriptor was already built, and for
    classes that mark more than one post-construction hook.
    """
