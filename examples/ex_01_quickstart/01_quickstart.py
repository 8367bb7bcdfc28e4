"""Quickstart: property injection on top of constructor injection.

Constructor parameters are resolved as usual. Attributes marked with
``Inject()`` are filled in right after construction, keyed by their annotation.
"""

from __future__ import annotations

from propwire import Container, Inject


class Clock:
    def now(self) -> str:
        return "12:00"


class Database:
    def __init__(self) -> None:
        self.host = "localhost"


class Greeter:
    clock: Clock = Inject()

    def __init__(self, database: Database) -> None:
        self.database = database

    def greet(self, name: str) -> str:
        return f"[{self.clock.now()}] hello {name}"


def main() -> None:
    container = Container(property_injection=True)
    greeter = container.resolve(Greeter)

    print(greeter.greet("ada"))  # => [12:00] hello ada
    print(f"db_host={greeter.database.host}")  # => db_host=localhost
    print(f"clock_type={type(greeter.clock).__name__}")  # => clock_type=Clock


if __name__ == "__main__":
    main()
