from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

# Request sections FastAPI prefixes onto error locations.
_LOCATION_ROOTS = {"body", "query", "path", "form", "header", "cookie"}


def errors_by_field(errors: Iterable[Mapping[str, Any]]) -> dict[str, list[str]]:
    """Group pydantic/FastAPI error entries into ``{field: [messages]}``."""

    grouped: dict[str, list[str]] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        while loc and loc[0] in _LOCATION_ROOTS:
            loc = loc[1:]
        field = ".".join(loc) or "__root__"
        message = str(error.get("msg", "Invalid value"))
        grouped.setdefault(field, []).append(message)
    return grouped


__all__ = ["errors_by_field"]
