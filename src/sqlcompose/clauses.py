"""
Clauses generated from dataclass records.

Column names come from the `db` metadata of record fields (see `records`).
A `Partial` record limits value-based clauses to the fields marked present.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, List, Optional, Tuple

from .errors import EmptyAssignment
from .expr import AliasedPath, Assign, Ident
from .query import Expr, Query
from .records import iter_record, record_type_of, sql_fields


@lru_cache(maxsize=None)
def type_cols(cls: type) -> str:
    """Comma-separated quoted column names of a record type."""
    return ", ".join(Ident(f.db_name).reify()[0] for f in sql_fields(cls))


def _deep_paths(cls: type, prefix: Tuple[str, ...] = ()) -> List[Tuple[str, ...]]:
    out: List[Tuple[str, ...]] = []
    for f in sql_fields(cls):
        path = prefix + (f.db_name,)
        if f.record_type is not None and sql_fields(f.record_type):
            out.extend(_deep_paths(f.record_type, path))
        else:
            out.append(path)
    return out


@lru_cache(maxsize=None)
def type_cols_deep(cls: type) -> str:
    """Like `type_cols`, but nested records contribute `("a")."b" as "a.b"` entries."""
    return ", ".join(AliasedPath(*path).reify()[0] for path in _deep_paths(cls))


def _record_cols(record: Any, deep: bool) -> str:
    cls = record_type_of(record)
    if cls is None:
        return "*"
    return (type_cols_deep(cls) if deep else type_cols(cls)) or "*"


class Cols(Expr):
    """
    Column list for a select. Takes a record type or instance and ignores its
    values. Renders `*` for anything that is not a record.
    """

    def __init__(self, record: Any):
        self.record = record

    def append_expr(self, query: Query) -> None:
        query.append_spaced(_record_cols(self.record, deep=False))


class ColsDeep(Expr):
    """
    Column list for a select, flattening nested records into aliased paths:
    `"id", ("owner")."id" as "owner.id"`. Renders `*` for non-records.
    """

    def __init__(self, record: Any):
        self.record = record

    def append_expr(self, query: Query) -> None:
        query.append_spaced(_record_cols(self.record, deep=True))


class SelectCols(Expr):
    """
    Selects the record's columns from an arbitrary query:
    `with _ as (<source>) select <cols> from _`. When the record gives no
    columns, the source is appended unwrapped.
    """

    deep = False

    def __init__(self, source: Optional[Expr], record: Any):
        self.source = source
        self.record = record

    def append_expr(self, query: Query) -> None:
        cols = _record_cols(self.record, deep=self.deep)
        if cols == "*":
            query.append(self.source)
            return

        if self.source is not None:
            query.append_spaced("with _ as (")
            query.append(self.source)
            query.append_spaced(")")
        query.append_spaced("select")
        query.append_spaced(cols)
        if self.source is not None:
            query.append_spaced("from _")


class SelectColsDeep(SelectCols):
    """`SelectCols` using `ColsDeep` column lists."""

    deep = True


class StructValues(Expr):
    """Comma-separated values of the present fields: `$1, $2`."""

    def __init__(self, record: Any):
        self.record = record

    def append_expr(self, query: Query) -> None:
        for i, (_, value) in enumerate(iter_record(self.record)):
            if i:
                query.append_spaced(",")
            query.sub_any(value)


class StructInsert(Expr):
    """
    Columns and values for an insert: `("a", "b") values ($1, $2)`.

    None or a record with no present fields renders `default values`.
    """

    def __init__(self, record: Any):
        self.record = record

    def append_expr(self, query: Query) -> None:
        fields = list(iter_record(self.record))
        if not fields:
            query.append_spaced("default values")
            return

        query.append_spaced("(")
        for i, (f, _) in enumerate(fields):
            if i:
                query.append_spaced(",")
            Ident(f.db_name).append_expr(query)
        query.append_spaced(")")
        query.append_spaced("values (")
        for i, (_, value) in enumerate(fields):
            if i:
                query.append_spaced(",")
            query.sub_any(value)
        query.append_spaced(")")


class StructAssign(Expr):
    """
    Assignments for `update ... set`: `"a" = $1, "b" = $2`.

    Raises EmptyAssignment when no field is present, since `set` with nothing
    after it is invalid SQL.
    """

    def __init__(self, record: Any):
        self.record = record

    def append_expr(self, query: Query) -> None:
        empty = True
        for f, value in iter_record(self.record):
            if not empty:
                query.append_spaced(",")
            empty = False
            Assign(f.db_name, value).append_expr(query)

        if empty:
            raise EmptyAssignment(
                "record has no fields to assign",
                details={"record": type(self.record).__name__},
            )
