from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from inspect import Parameter
from typing import Any, get_type_hints

from propwire.exceptions import PropwireInvalidRegistrationError

_MISSING_ANNOTATION: Any = object()


@dataclass(frozen=True, slots=True)
class ProviderDependency:
    """Represent a dependency key bound to a provider parameter."""

    provides: Any
    parameter: Parameter

    @property
    def is_required(self) -> bool:
        """Return true when the parameter has no default value."""
        return self.parameter.default is Parameter.empty


@dataclass(slots=True)
class ProviderDependenciesExtractor:
    """Extract constructor and factory dependencies from type annotations."""

    def extract_from_concrete_type(self, concrete_type: type[Any]) -> list[ProviderDependency]:
        """Extract constructor dependencies for a concrete class.

        Args:
            concrete_type: Concrete class provider to inspect.

        """
        return self._extract_dependencies(
            provider=concrete_type,
            provider_name=self._provider_name(concrete_type),
        )

    def extract_from_factory(self, factory: Callable[..., Any]) -> list[ProviderDependency]:
        """Extract parameter dependencies for a factory callable.

        Args:
            factory: Factory provider callable to inspect.

        """
        return self._extract_dependencies(
            provider=factory,
            provider_name=self._provider_name(factory),
        )

    def extract_factory_return_type(self, factory: Callable[..., Any]) -> Any:
        """Extract the dependency key a factory provides from its return annotation.

        Args:
            factory: Factory provider callable to inspect.

        """
        try:
            annotations = get_type_hints(factory, include_extras=True)
        except (AttributeError, NameError, TypeError) as error:
            msg = (
                f"Unable to evaluate the return annotation of factory "
                f"'{self._provider_name(factory)}': {error}"
            )
            raise PropwireInvalidRegistrationError(msg) from error

        return_annotation = annotations.get("return", _MISSING_ANNOTATION)
        if return_annotation is _MISSING_ANNOTATION or return_annotation is type(None):
            msg = (
                f"Factory '{self._provider_name(factory)}' has no return annotation. "
                "Annotate the return type or pass an explicit 'provides' key."
            )
            raise PropwireInvalidRegistrationError(msg)
        return return_annotation

    def _extract_dependencies(
        self,
        *,
        provider: Callable[..., Any],
        provider_name: str,
    ) -> list[ProviderDependency]:
        parameters = self._provider_parameters(provider)
        annotations, annotation_error = self._resolved_type_hints(provider)
        dependencies: list[ProviderDependency] = []

        for parameter in parameters:
            if parameter.kind in (Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD):
                continue
            provides = self._resolve_parameter_annotation(
                parameter=parameter,
                annotations=annotations,
                annotation_error=annotation_error,
                provider_name=provider_name,
            )
            if provides is _MISSING_ANNOTATION:
                continue
            dependencies.append(ProviderDependency(provides=provides, parameter=parameter))

        return dependencies

    def _resolve_parameter_annotation(
        self,
        *,
        parameter: Parameter,
        annotations: dict[str, Any],
        annotation_error: Exception | None,
        provider_name: str,
    ) -> Any:
        annotation = annotations.get(parameter.name, _MISSING_ANNOTATION)
        if annotation is not _MISSING_ANNOTATION:
            return annotation

        raw_annotation = parameter.annotation
        if raw_annotation is not Parameter.empty and not isinstance(raw_annotation, str):
            return raw_annotation

        # Unannotated parameters stay free for dynamic dependencies.
        if annotation_error is None:
            return _MISSING_ANNOTATION

        if parameter.default is not Parameter.empty:
            return _MISSING_ANNOTATION

        msg = (
            f"Unable to infer dependency for required parameter '{parameter.name}' "
            f"in provider '{provider_name}'. Original annotation error: {annotation_error}"
        )
        raise PropwireInvalidRegistrationError(msg) from annotation_error

    def _provider_parameters(self, provider: Callable[..., Any]) -> tuple[Parameter, ...]:
        try:
            return tuple(inspect.signature(provider).parameters.values())
        except (TypeError, ValueError) as error:
            msg = f"Unable to inspect the signature of '{self._provider_name(provider)}': {error}"
            raise PropwireInvalidRegistrationError(msg) from error

    def _resolved_type_hints(
        self,
        provider: Callable[..., Any],
    ) -> tuple[dict[str, Any], Exception | None]:
        target = provider.__init__ if inspect.isclass(provider) else provider  # type: ignore[misc]
        try:
            return get_type_hints(target, include_extras=True), None
        except (AttributeError, NameError, TypeError) as error:
            return {}, error

    def _provider_name(self, provider: Callable[..., Any]) -> str:
        return getattr(provider, "__qualname__", repr(provider))
