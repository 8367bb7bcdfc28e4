"""Declaration styles: markers, decorators, calls, and the convention mapping.

Every style records into the same registry. For one property name, explicit
declarations beat ``__inject_properties__`` entries, and subclasses override
their bases.
"""

from __future__ import annotations

from typing import Annotated

from propwire import (
    Component,
    Container,
    Inject,
    declare_property,
    default_registry,
    inject_property,
)


class Clock:
    def now(self) -> str:
        return "12:00"


class Cache:
    def __init__(self) -> None:
        self.name = "local"


SETTINGS_KEY = "settings"
ReadCache = Annotated[Cache, Component("read")]


def build_read_cache() -> Cache:
    cache = Cache()
    cache.name = "read-replica"
    return cache


@inject_property("clock")
class Report:
    clock: Clock
    cache: Cache = Inject(ReadCache)
    settings: dict[str, str] = Inject(SETTINGS_KEY)


class AuditReport(Report):
    __inject_properties__ = {"audit_cache": Cache, "cache": Cache}


declare_property(AuditReport, "backup_clock", Clock)


def main() -> None:
    container = Container(property_injection=True)
    container.add_instance({"title": "weekly"}, provides=SETTINGS_KEY)
    container.add_factory(build_read_cache, component=Component("read"))

    report = container.resolve(Report)
    print(f"report_cache={report.cache.name}")  # => report_cache=read-replica
    print(f"report_title={report.settings['title']}")  # => report_title=weekly

    audit = container.resolve(AuditReport)
    print(f"audit_cache={audit.audit_cache.name}")  # => audit_cache=local
    print(f"overridden_cache={audit.cache.name}")  # => overridden_cache=local

    names = ",".join(default_registry.get_descriptor(AuditReport).properties)
    print(f"order={names}")  # => order=cache,settings,clock,audit_cache,backup_clock


if __name__ == "__main__":
    main()
