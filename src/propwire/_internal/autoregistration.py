"""Rules for registering concrete classes the first time they are requested."""

from __future__ import annotations

import inspect
import types
from datetime import date, time, timedelta
from decimal import Decimal
from pathlib import PurePath
from typing import Any, TypeGuard
from uuid import UUID

# Value types are configuration, never services built from the container.
_VALUE_TYPES: tuple[type[Any], ...] = (PurePath, date, time, timedelta, UUID, Decimal)


def can_autoregister(candidate: object) -> TypeGuard[type[Any]]:
    """Return true when ``candidate`` may be built through constructor injection on first request.

    Builtins, metaclasses, abstract classes, protocols, parametrized generics
    and standard-library value types are left to explicit registration.

    Args:
        candidate: Requested dependency key.

    """
    if not inspect.isclass(candidate) or isinstance(candidate, types.GenericAlias):
        return False
    if candidate.__module__ == "builtins" or issubclass(candidate, type):
        return False
    if inspect.isabstract(candidate) or getattr(candidate, "_is_protocol", False):
        return False
    return not issubclass(candidate, _VALUE_TYPES)
