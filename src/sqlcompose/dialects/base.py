from __future__ import annotations

from typing import Protocol


class SQLDialect(Protocol):
    name: str
    paramstyle: str        # DB-API style: "numeric_dollar" | "qmark" | "format" | "numeric"
    reuses_markers: bool   # False when each marker occurrence consumes one argument

    def marker(self, ordinal: int) -> str: ...
    def escape_text(self, text: str) -> str: ...
