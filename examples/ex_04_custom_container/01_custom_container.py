"""Custom containers: add property injection to any container with a handler hook.

A container only needs ``get(key)`` and ``set_handler_created_callback``.
``install`` wraps each handler the container builds; ``uninstall`` stops
wrapping handlers built afterwards.
"""

from __future__ import annotations

from typing import Any

from propwire import (
    ConstructorInvocationHandler,
    Inject,
    InvocationHandler,
    PropertyDependencyRegistry,
    install,
    uninstall,
)

registry = PropertyDependencyRegistry()
LOGGER_KEY = "logger"


class ListLogger:
    def __init__(self, prefix: str) -> None:
        self.prefix = prefix
        self.lines: list[str] = []

    def info(self, message: str) -> None:
        self.lines.append(f"{self.prefix} {message}")


class Job:
    logger: ListLogger = Inject(LOGGER_KEY, registry=registry)

    def __init__(self, name: str) -> None:
        self.name = name

    def run(self) -> None:
        self.logger.info(f"running {self.name}")


class MappingContainer:
    """Look up values in a dict and build classes with explicit arguments."""

    def __init__(self, values: dict[Any, Any]) -> None:
        self._values = values
        self._callback: Any = None

    def get(self, key: Any) -> Any:
        return self._values[key]

    def set_handler_created_callback(self, callback: Any) -> None:
        self._callback = callback

    def build(self, cls: type[Any], *args: Any) -> Any:
        handler: InvocationHandler = ConstructorInvocationHandler(cls, ())
        if self._callback is not None:
            handler = self._callback(handler)
        return handler.invoke(self, args)


def main() -> None:
    logger = ListLogger("[jobs]")
    container = MappingContainer({LOGGER_KEY: logger})
    install(container, registry=registry)

    job = container.build(Job, "nightly")
    job.run()
    print(f"log={logger.lines[-1]}")  # => log=[jobs] running nightly

    uninstall(container)
    plain = container.build(Job, "adhoc")
    print(f"injected={'logger' in vars(plain)}")  # => injected=False


if __name__ == "__main__":
    main()
