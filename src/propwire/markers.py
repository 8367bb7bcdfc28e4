from __future__ import annotations

from typing import Annotated, Any, NamedTuple, get_args, get_origin

_ANNOTATED_MARKER_MIN_ARGS = 2


class Component(NamedTuple):
    """Differentiate multiple providers for the same base type.

    Attach ``Component`` metadata to ``typing.Annotated`` so the container
    treats each annotated key as distinct at runtime. Annotated keys work
    everywhere a dependency key is accepted, including property declarations.

    Examples:
        .. code-block:: python

            from typing import Annotated, TypeAlias


            class Database: ...


            ReplicaDb: TypeAlias = Annotated[Database, Component("replica")]


            class Report:
                db: ReplicaDb = Inject()

    """

    value: Any


def build_component_key(base: Any, component: object) -> Any:
    """Return ``Annotated[base, Component(...)]`` for a registration component.

    Args:
        base: Dependency key the component qualifies.
        component: Either a ``Component`` instance or a raw component value.

    """
    marker = component if isinstance(component, Component) else Component(component)
    return Annotated[base, marker]


def component_base_key(key: Any) -> Any | None:
    """Return the base type of a component-qualified key, or ``None``.

    Args:
        key: Dependency key to inspect.

    """
    if get_origin(key) is not Annotated:
        return None
    args = get_args(key)
    if len(args) < _ANNOTATED_MARKER_MIN_ARGS:
        return None  # pragma: no cover - Annotated requires at least 2 args
    if any(isinstance(metadata, Component) for metadata in args[1:]):
        return args[0]
    return None
