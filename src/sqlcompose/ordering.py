"""
Structured `order by` clauses and a parser for external ordering input.

External input is a list of strings such as `["name asc", "owner.id desc nulls
last"]`, usually decoded from JSON or a URL query. Paths name fields by their
JSON names and are translated to DB column paths through a record type, which
also acts as a whitelist.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence, Union

from .errors import EmptyOrdPath, InvalidInput, UnknownField
from .expr import Path, RowNumberOver
from .query import Expr, Query
from .records import is_record_type, json_path_map

ORD_PATTERN = re.compile(
    r"^\s*((?:\w+\.)*\w+)(?i:\s+(asc|desc))?(?i:\s+nulls\s+(first|last))?\s*$"
)


class Dir(str, Enum):
    NONE = ""
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, text: Optional[str]) -> Dir:
        key = (text or "").strip().lower()
        for d in cls:
            if d.value == key:
                return d
        raise InvalidInput(
            f"unrecognized order direction: {text!r}",
            details={"direction": text},
            remediation="Use 'asc' or 'desc'.",
        )


class Nulls(str, Enum):
    NONE = ""
    FIRST = "nulls first"
    LAST = "nulls last"

    @classmethod
    def parse(cls, text: Optional[str]) -> Nulls:
        key = " ".join((text or "").lower().split())
        if key in ("first", "last"):
            key = "nulls " + key
        for n in cls:
            if n.value == key:
                return n
        raise InvalidInput(
            f"unrecognized nulls placement: {text!r}",
            details={"nulls": text},
            remediation="Use 'nulls first' or 'nulls last'.",
        )


@dataclass(frozen=True)
class Ord(Expr):
    """One ordering entry: `("a")."b" desc nulls last`."""

    path: Union[str, Sequence[str]]
    dir: Dir = Dir.NONE
    nulls: Nulls = Nulls.NONE

    def __post_init__(self) -> None:
        path = (self.path,) if isinstance(self.path, str) else tuple(self.path)
        if not path or not all(path):
            raise EmptyOrdPath(
                "ordering entry has an empty column path",
                details={"path": list(path)},
            )
        object.__setattr__(self, "path", path)
        object.__setattr__(self, "dir", Dir.parse(self.dir))
        object.__setattr__(self, "nulls", Nulls.parse(self.nulls))

    def append_expr(self, query: Query) -> None:
        query.append(Path(*self.path))
        query.append_spaced(self.dir.value)
        query.append_spaced(self.nulls.value)


class Ords(Expr):
    """
    The `order by` clause. Renders nothing when empty, which keeps it safe to
    append unconditionally. Entries may be any expressions; None is skipped.
    """

    def __init__(self, *items: Optional[Expr]):
        self.items: List[Expr] = []
        self.append(*items)

    def append(self, *items: Optional[Expr]) -> Ords:
        self.items.extend(i for i in items if i is not None)
        return self

    def or_default(self, *items: Optional[Expr]) -> Ords:
        """Use `items` only when no ordering was given."""
        if self.is_empty():
            self.append(*items)
        return self

    def is_empty(self) -> bool:
        return not self.items

    def __len__(self) -> int:
        return len(self.items)

    def append_expr(self, query: Query) -> None:
        for i, item in enumerate(self.items):
            query.append_spaced("order by" if i == 0 else ",")
            query.append(item)

    def row_number_over(self) -> RowNumberOver:
        """`row_number() over (order by ...)`, or `0` when empty."""
        return RowNumberOver(None if self.is_empty() else self)

    def __repr__(self) -> str:
        return f"Ords({', '.join(repr(i) for i in self.items)})"


class OrdsParser:
    """
    Parses external ordering strings against a record type.

    Unknown paths raise UnknownField, or are dropped when `lax` is set. An entry
    without an explicit direction or nulls placement takes the field's
    `ord_dir` / `ord_nulls` metadata, if any.
    """

    def __init__(self, record_type: type, lax: bool = False):
        if not is_record_type(record_type):
            raise InvalidInput(
                f"ordering needs a dataclass record type, got {record_type!r}",
                details={"type": repr(record_type)},
            )
        self.record_type = record_type
        self.lax = lax

    def parse_slice(self, values: Iterable[str]) -> Ords:
        out = Ords()
        for value in values:
            out.append(self.parse_one(value))
        return out

    def parse_json(self, text: Union[str, bytes]) -> Ords:
        try:
            values = json.loads(text)
        except ValueError as e:
            raise InvalidInput(
                "ordering input is not valid JSON",
                details={"error": str(e)},
                cause=e,
            )
        if values is None:
            return Ords()
        if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
            raise InvalidInput(
                "ordering input must be a JSON array of strings",
                details={"type": type(values).__name__},
            )
        return self.parse_slice(values)

    def parse_one(self, text: str) -> Optional[Ord]:
        """Parse one entry. Empty text, and unknown fields in lax mode, give None."""
        if not text:
            return None

        match = ORD_PATTERN.match(text)
        if match is None:
            raise InvalidInput(
                f"{text!r} is not a valid ordering string",
                details={"input": text},
                remediation='Expected "<path> [asc|desc] [nulls first|nulls last]".',
            )

        json_path, dir_text, nulls_text = match.groups()
        entry = json_path_map(self.record_type).get(json_path)
        if entry is None:
            if self.lax:
                return None
            raise UnknownField(
                f"unknown field {json_path!r} in {self.record_type.__name__}",
                details={"field": json_path, "type": self.record_type.__name__},
            )

        field, db_path = entry
        direction = Dir.parse(dir_text or field.ord_dir)
        nulls = Nulls.parse(nulls_text or field.ord_nulls)
        return Ord(db_path, direction, nulls)

    def __repr__(self) -> str:
        return f"OrdsParser({self.record_type.__name__}, lax={self.lax})"


def parse_ords(record_type: type, values: Any, lax: bool = False) -> Ords:
    """Parse a list of strings or JSON text into Ords."""
    parser = OrdsParser(record_type, lax=lax)
    if isinstance(values, (str, bytes)):
        return parser.parse_json(values)
    return parser.parse_slice(values)
