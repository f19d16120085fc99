"""
Query buffer and the appendable-expression capability.

A Query owns output text and an ordered argument list. Text is kept as chunks
where positional markers are stored as 1-based argument ordinals rather than
rendered strings. This lets a finished Query be spliced into another Query by
offsetting its ordinals, and lets the same Query render for any registered
marker dialect.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional, Tuple, Union

from . import dialects
from .config import get_config
from .types import Arg, sql_literal

Chunk = Union[str, int]

_WHITESPACE = " \t\v\r\n"
# no space is inserted after these
DELIM_START = frozenset(_WHITESPACE + "([{.")
# no space is inserted before these
DELIM_END = frozenset(_WHITESPACE + ",}])")


class Expr(ABC):
    """Anything that can append its SQL text and arguments into a Query, in order."""

    @abstractmethod
    def append_expr(self, query: Query) -> None: ...

    def reify(self, dialect: Optional[str] = None) -> Tuple[str, List[Any]]:
        query = Query()
        self.append_expr(query)
        return query.reify(dialect)

    def __str__(self) -> str:
        return self.reify()[0]


def _resolve_dialect(name: Optional[str]) -> dialects.SQLDialect:
    return dialects.get(name or get_config().dialect)


class Query(Expr):
    def __init__(self, text: Optional[str] = None, args: Any = None, *, dialect: Optional[str] = None):
        self._chunks: List[Chunk] = []
        self._args: List[Any] = []
        self.dialect = dialect
        if text is not None:
            self.append_template(text, args)

    # -- appending -----------------------------------------------------------

    def append(self, expr: Optional[Expr]) -> Query:
        """Append an expression, space-separated from preceding text when needed. None is a no-op."""
        if expr is None:
            return self
        if not isinstance(expr, Expr):
            raise TypeError(f"expected an expression, got {type(expr).__name__}")
        self.space()
        expr.append_expr(self)
        return self

    def append_text(self, text: str) -> Query:
        """Append text verbatim."""
        if text:
            self._chunks.append(text)
        return self

    def append_spaced(self, text: str) -> Query:
        """Append text, inserting a space first unless either side already delimits."""
        if not text:
            return self
        if not self._ends_with_delim() and text[0] not in DELIM_END:
            self._chunks.append(" ")
        self._chunks.append(text)
        return self

    def append_template(self, text: str, args: Any = None, *, check_unused: Optional[bool] = None) -> Query:
        """Build `text` against `args` (list, mapping, record or ArgSource) and append the result."""
        from .expr import StrQ

        StrQ(text, args, check_unused=check_unused).append_expr(self)
        return self

    def space(self) -> Query:
        if not self._ends_with_delim():
            self._chunks.append(" ")
        return self

    def arg(self, value: Any) -> int:
        """Append an argument without a marker and return its 1-based ordinal."""
        if isinstance(value, Arg):
            value = value.value
        self._args.append(value)
        return len(self._args)

    def param(self, ordinal: int) -> Query:
        """Append a positional marker for an existing argument."""
        if not 1 <= ordinal <= len(self._args):
            raise IndexError(f"marker ${ordinal} has no argument (have {len(self._args)})")
        self._chunks.append(ordinal)
        return self

    def any(self, value: Any) -> Query:
        """Append an expression, or a new argument with its marker."""
        if isinstance(value, Expr):
            return self.append(value)
        self.space()
        return self.param(self.arg(value))

    def sub_any(self, value: Any) -> Query:
        """Like `any`, but parenthesizes expressions."""
        if isinstance(value, Expr):
            self.append_spaced("(")
            value.append_expr(self)
            return self.append_text(")")
        return self.any(value)

    def append_expr(self, query: Query) -> None:
        # snapshot first: a query may be appended into itself
        chunks = list(self._chunks)
        args = list(self._args)
        offset = len(query._args)
        query._args.extend(args)
        for chunk in chunks:
            if isinstance(chunk, int):
                query._chunks.append(chunk + offset)
            else:
                query._chunks.append(chunk)

    def clear(self) -> None:
        self._chunks.clear()
        self._args.clear()

    def copy(self) -> Query:
        out = Query(dialect=self.dialect)
        out._chunks = list(self._chunks)
        out._args = list(self._args)
        return out

    # -- reading -------------------------------------------------------------

    @property
    def args(self) -> List[Any]:
        return list(self._args)

    @property
    def markers(self) -> List[int]:
        """Ordinals of all markers in text order, repeats included."""
        return [c for c in self._chunks if isinstance(c, int)]

    def string(self, dialect: Optional[str] = None) -> str:
        d = _resolve_dialect(dialect or self.dialect)
        return "".join(
            d.marker(c) if isinstance(c, int) else d.escape_text(c)
            for c in self._chunks
        )

    def reify(self, dialect: Optional[str] = None) -> Tuple[str, List[Any]]:
        """
        Return `(text, args)` ready for a driver.

        For dialects whose markers are consumed by occurrence (`?`, `%s`), an
        argument referenced by several markers is repeated in `args`.
        """
        d = _resolve_dialect(dialect or self.dialect)
        text = self.string(d.name)
        if d.reuses_markers:
            return text, list(self._args)
        return text, [self._args[i - 1] for i in self.markers]

    def debug_string(self, dialect: Optional[str] = None) -> str:
        return render_debug(*self.reify(dialect))

    def is_empty(self) -> bool:
        return not self._chunks and not self._args

    def _ends_with_delim(self) -> bool:
        if not self._chunks:
            return True
        last = self._chunks[-1]
        if isinstance(last, int):
            return False
        return last[-1] in DELIM_START

    def __str__(self) -> str:
        return self.string()

    def __repr__(self) -> str:
        return f"Query({self.string()!r}, {self._args!r})"


def reify(*exprs: Optional[Expr], dialect: Optional[str] = None) -> Tuple[str, List[Any]]:
    """Append `exprs` into a fresh Query and return its text and args."""
    query = Query()
    for expr in exprs:
        query.append(expr)
    return query.reify(dialect)


def render_debug(text: str, args: Iterable[Any]) -> str:
    """Human-readable rendering of a reified query, for logs. Not executable."""
    rendered = ", ".join(sql_literal(a) for a in args)
    return f"{text} -- args: [{rendered}]"
