from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Optional, Union


class TokenKind(str, Enum):
    TEXT = "TEXT"
    STRING_LITERAL = "STRING_LITERAL"
    QUOTED_IDENT = "QUOTED_IDENT"
    LINE_COMMENT = "LINE_COMMENT"
    BLOCK_COMMENT = "BLOCK_COMMENT"
    ORDINAL_PLACEHOLDER = "ORDINAL_PLACEHOLDER"
    NAMED_PLACEHOLDER = "NAMED_PLACEHOLDER"


PLACEHOLDER_KINDS = frozenset({TokenKind.ORDINAL_PLACEHOLDER, TokenKind.NAMED_PLACEHOLDER})


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    start: int
    end: int
    value: Optional[Union[int, str]] = None  # 1-based ordinal or parameter name

    def text(self, source: str) -> str:
        return source[self.start:self.end]

    @property
    def is_placeholder(self) -> bool:
        return self.kind in PLACEHOLDER_KINDS

    def __len__(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class Placeholder:
    """Placeholder occurrence inside a template: `$n` or `:name`."""

    kind: TokenKind
    key: Union[int, str]

    @property
    def is_ordinal(self) -> bool:
        return self.kind == TokenKind.ORDINAL_PLACEHOLDER

    def __str__(self) -> str:
        if self.is_ordinal:
            return f"${self.key}"
        return f":{self.key}"


@dataclass(frozen=True)
class Arg:
    """
    A single argument passed to the driver as-is.

    Wrapping a list in Arg keeps it as one parameter (for example a Postgres
    array) instead of expanding it into `($1, $2, ...)`.
    """

    value: Any

    def is_null(self) -> bool:
        return self.value is None

    def literal(self) -> str:
        """SQL literal text for debug output. Never use it to build executable SQL."""
        return sql_literal(self.value)


def sql_literal(value: Any) -> str:
    if isinstance(value, Arg):
        return value.literal()
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return "'\\x" + bytes(value).hex() + "'"
    if isinstance(value, (date, datetime, time)):
        return "'" + value.isoformat() + "'"
    if isinstance(value, (list, tuple)):
        return "array[" + ", ".join(sql_literal(v) for v in value) + "]"
    return "'" + str(value).replace("'", "''") + "'"
