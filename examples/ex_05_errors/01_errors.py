"""Error classes raised while injecting properties and running hooks.

Each failure surfaces as one propwire error type; the underlying exception is
kept as ``__cause__``.
"""

from __future__ import annotations

from propwire import (
    Container,
    Inject,
    PropwireInvalidDeclarationError,
    PropwireMissingTypeMetadataError,
    PropwirePostConstructionError,
    PropwirePropertyResolutionError,
    declare_property,
    inject_property,
    post_construct,
)

METRICS_KEY = "metrics"


class Dashboard:
    metrics: object = Inject(METRICS_KEY)


class Cache:
    @post_construct
    def warm_up(self) -> None:
        msg = "cache backend unavailable"
        raise RuntimeError(msg)


def main() -> None:
    container = Container(property_injection=True)

    try:
        container.resolve(Dashboard)
    except PropwirePropertyResolutionError as error:
        print(f"property={error.property_name}")  # => property=metrics
        cause = type(error.__cause__).__name__
    print(f"cause={cause}")  # => cause=PropwireDependencyNotRegisteredError

    try:
        container.resolve(Cache)
    except PropwirePostConstructionError as error:
        hook_error = repr(error.cause)
    print(f"hook={hook_error}")  # => hook=RuntimeError('cache backend unavailable')

    try:

        @inject_property("store")
        class Untyped:
            pass

    except PropwireMissingTypeMetadataError as error:
        missing = type(error).__name__
    print(f"missing={missing}")  # => missing=PropwireMissingTypeMetadataError

    try:
        declare_property(Dashboard, "late", METRICS_KEY)
    except PropwireInvalidDeclarationError as error:
        late = type(error).__name__
    print(f"late={late}")  # => late=PropwireInvalidDeclarationError


if __name__ == "__main__":
    main()
