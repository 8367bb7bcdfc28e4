"""Post-construction hooks: run setup once every property is assigned.

The hook sees injected properties, runs once per instantiation, and is
inherited by subclasses, which may override it by name.
"""

from __future__ import annotations

from propwire import Container, Inject, Lifetime, post_construct


class Settings:
    def __init__(self) -> None:
        self.warmup_keys = ["users", "orders"]


class Cache:
    settings: Settings = Inject()

    def __init__(self) -> None:
        self.entries: list[str] = []
        self.warmups = 0

    @post_construct
    def warm_up(self) -> None:
        self.warmups += 1
        self.entries.extend(self.settings.warmup_keys)


class PrefixedCache(Cache):
    def warm_up(self) -> None:
        self.warmups += 1
        self.entries.extend(f"v2:{key}" for key in self.settings.warmup_keys)


def main() -> None:
    container = Container(property_injection=True)
    container.add_concrete(Cache, lifetime=Lifetime.SINGLETON)

    cache = container.resolve(Cache)
    print(f"entries={cache.entries}")  # => entries=['users', 'orders']

    same = container.resolve(Cache)
    print(f"same={same is cache} warmups={cache.warmups}")  # => same=True warmups=1

    prefixed = container.resolve(PrefixedCache)
    print(f"prefixed={prefixed.entries}")  # => prefixed=['v2:users', 'v2:orders']


if __name__ == "__main__":
    main()
