"""Name to dialect lookup. Names are case-insensitive."""

from __future__ import annotations

from typing import Dict

from .base import SQLDialect

_DIALECTS: Dict[str, SQLDialect] = {}


def register(dialect: SQLDialect) -> SQLDialect:
    """Register `dialect` under its `.name`, replacing a dialect of the same name."""
    name = getattr(dialect, "name", None)
    if not isinstance(name, str) or not name:
        raise ValueError("Dialect must define a non-empty .name")
    if not callable(getattr(dialect, "marker", None)):
        raise ValueError(f"Dialect {name!r} must define marker(ordinal)")
    _DIALECTS[name.lower()] = dialect
    return dialect


def get(name: str) -> SQLDialect:
    try:
        return _DIALECTS[(name or "").lower()]
    except KeyError:
        available = ", ".join(sorted(_DIALECTS))
        raise KeyError(f"Unknown dialect '{name}'. Available: {available}") from None


def available() -> Dict[str, SQLDialect]:
    return dict(_DIALECTS)
