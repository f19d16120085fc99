"""
Composable SQL expressions.

Every class here implements `Expr.append_expr(query)`. Values that are not
expressions become arguments with positional markers; expressions append their
own text in place. Words are separated by a single space unless the
neighbouring text already ends or starts with a delimiter.
"""

from __future__ import annotations

from typing import Any, ClassVar, Optional, Sequence

from .args import DictArgs, ListArgs, RecordArgs
from .builder import build
from .config import get_config
from .errors import InvalidInput
from .query import Expr, Query
from .records import Partial, is_record, iter_record
from .template import preparse
from .types import Arg


def _is_null(value: Any) -> bool:
    return value is None or (isinstance(value, Arg) and value.is_null())


def _is_record_like(value: Any) -> bool:
    return is_record(value) or isinstance(value, Partial)


class Str(Expr):
    """Raw SQL text, interpolated as-is."""

    def __init__(self, text: str):
        self.text = text

    def append_expr(self, query: Query) -> None:
        query.append_spaced(self.text)

    def __repr__(self) -> str:
        return f"Str({self.text!r})"


class Ident(Expr):
    """Double-quoted SQL identifier."""

    def __init__(self, name: str):
        if '"' in name:
            raise InvalidInput(
                f"identifier must not contain a double quote: {name!r}",
                details={"identifier": name},
            )
        self.name = name

    def append_expr(self, query: Query) -> None:
        query.space()
        query.append_text(f'"{self.name}"')

    def __repr__(self) -> str:
        return f"Ident({self.name!r})"


class Path(Expr):
    """
    Column path into composite values.

    One element renders as an identifier: `"a"`. Several elements render the
    head in parentheses, as Postgres requires for field access: `("a")."b"."c"`.
    """

    def __init__(self, *parts: str):
        self.parts = tuple(Ident(p) for p in parts)

    def append_expr(self, query: Query) -> None:
        if not self.parts:
            return
        if len(self.parts) == 1:
            self.parts[0].append_expr(query)
            return
        query.append_spaced("(")
        self.parts[0].append_expr(query)
        query.append_text(")")
        for part in self.parts[1:]:
            query.append_text(".")
            part.append_expr(query)

    def __repr__(self) -> str:
        return f"Path{tuple(p.name for p in self.parts)!r}"


class AliasedPath(Expr):
    """
    Path followed by a dotted alias, for select lists over nested records:
    `("a")."b" as "a.b"`. One element renders as a plain identifier.
    """

    def __init__(self, *parts: str):
        self.path = Path(*parts)
        self.alias = Ident(".".join(parts)) if len(parts) > 1 else None

    def append_expr(self, query: Query) -> None:
        self.path.append_expr(query)
        if self.alias is not None:
            query.append_spaced("as")
            self.alias.append_expr(query)

    def __repr__(self) -> str:
        return f"AliasedPath{tuple(p.name for p in self.path.parts)!r}"


class Null(Expr):
    def append_expr(self, query: Query) -> None:
        query.append_spaced("null")


class _Word(Expr):
    word: ClassVar[str] = ""

    def append_expr(self, query: Query) -> None:
        query.append_spaced(self.word)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class IsNull(_Word):
    word = "is null"


class IsNotNull(_Word):
    word = "is not null"


class Star(_Word):
    word = "*"


class SelectStar(_Word):
    word = "select *"


class ReturningStar(_Word):
    word = "returning *"


class Parens(Expr):
    def __init__(self, inner: Optional[Expr] = None):
        self.inner = inner

    def append_expr(self, query: Query) -> None:
        query.append_spaced("(")
        query.append(self.inner)
        query.append_spaced(")")


class Exprs(Expr):
    """Several expressions, space-separated. None entries are skipped."""

    def __init__(self, *items: Optional[Expr]):
        self.items = items

    def append_expr(self, query: Query) -> None:
        for item in self.items:
            query.append(item)


class Prefix(Expr):
    """`prefix expr`. Appends nothing when `expr` is None."""

    def __init__(self, prefix: str, expr: Optional[Expr]):
        self.prefix = prefix
        self.expr = expr

    def append_expr(self, query: Query) -> None:
        if self.expr is None:
            return
        query.append_spaced(self.prefix)
        query.append(self.expr)


class _Keyword(Prefix):
    keyword: ClassVar[str] = ""

    def __init__(self, expr: Optional[Expr]):
        super().__init__(self.keyword, expr)


class Select(_Keyword):
    keyword = "select"


class From(_Keyword):
    keyword = "from"


class Where(_Keyword):
    keyword = "where"


class OrderBy(_Keyword):
    keyword = "order by"


class Update(_Keyword):
    keyword = "update"


class Set(_Keyword):
    keyword = "set"


class InsertInto(_Keyword):
    keyword = "insert into"


class DeleteFrom(_Keyword):
    keyword = "delete from"


class Returning(_Keyword):
    keyword = "returning"


class Eq(Expr):
    """`lhs = rhs`, or `lhs is null` when rhs is null."""

    op = "="
    null_op = "is null"

    def __init__(self, lhs: Any, rhs: Any):
        self.lhs = lhs
        self.rhs = rhs

    def append_expr(self, query: Query) -> None:
        query.sub_any(self.lhs)
        self.append_rhs(query)

    def append_rhs(self, query: Query) -> None:
        if _is_null(self.rhs):
            query.append_spaced(self.null_op)
            return
        query.append_spaced(self.op)
        query.sub_any(self.rhs)


class Neq(Eq):
    """`lhs <> rhs`, or `lhs is not null` when rhs is null."""

    op = "<>"
    null_op = "is not null"


class EqAny(Expr):
    """`lhs = any (rhs)`; rhs is usually an array argument."""

    op = "="

    def __init__(self, lhs: Any, rhs: Any):
        self.lhs = lhs
        self.rhs = rhs

    def append_expr(self, query: Query) -> None:
        query.sub_any(self.lhs)
        query.append_spaced(self.op)
        query.append_spaced("any (")
        query.any(self.rhs)
        query.append_spaced(")")


class NeqAny(EqAny):
    """`lhs <> any (rhs)`."""

    op = "<>"


class Not(Expr):
    def __init__(self, value: Any = None):
        self.value = value

    def append_expr(self, query: Query) -> None:
        query.append_spaced("not")
        query.sub_any(self.value)


class Seq(Expr):
    """
    Values joined by `delim`, with `empty` rendered for None or an empty list.

    A single element is appended as-is; with several, expression elements are
    parenthesized. A single expression value is appended unchanged.
    """

    def __init__(self, empty: str, delim: str, value: Any):
        self.empty = empty
        self.delim = delim
        self.value = value

    def append_expr(self, query: Query) -> None:
        value = self.value
        if isinstance(value, Expr):
            query.append(value)
        elif value is None:
            query.append_spaced(self.empty)
        elif isinstance(value, (list, tuple)):
            self._append_items(query, value)
        else:
            self._append_other(query, value)

    def _append_items(self, query: Query, items: Sequence[Any]) -> None:
        if not items:
            query.append_spaced(self.empty)
            return
        if len(items) == 1:
            query.any(items[0])
            return
        for i, item in enumerate(items):
            if i:
                query.append_spaced(self.delim)
            query.sub_any(item)

    def _append_other(self, query: Query, value: Any) -> None:
        raise InvalidInput(
            f"expected a list of values or an expression, got {type(value).__name__}",
            details={"type": type(value).__name__},
        )


class Comma(Seq):
    def __init__(self, value: Any):
        super().__init__("", ", ", value)


class _Cond(Seq):
    """Seq that also turns a record into column equality conditions."""

    def _append_other(self, query: Query, value: Any) -> None:
        if not _is_record_like(value):
            query.any(value)
            return
        empty = True
        for f, v in iter_record(value):
            if not empty:
                query.append_spaced(self.delim)
            empty = False
            Ident(f.db_name).append_expr(query)
            Eq(None, v).append_rhs(query)
        if empty:
            query.append_spaced(self.empty)


class And(_Cond):
    """
    Conditions joined by `and`:

    - None or empty: `true`
    - an expression: rendered as-is
    - a list: elements joined by `and`
    - a record: `"col" = $n` for each field, joined by `and`
    """

    def __init__(self, value: Any = None):
        super().__init__("true", " and ", value)


class Or(_Cond):
    """Like `And`, joined by `or`, with `false` when empty."""

    def __init__(self, value: Any = None):
        super().__init__("false", " or ", value)


class Ands(And):
    def __init__(self, *items: Any):
        super().__init__(list(items))


class Ors(Or):
    def __init__(self, *items: Any):
        super().__init__(list(items))


class Assign(Expr):
    """`"col" = value`"""

    def __init__(self, column: str, value: Any):
        self.column = Ident(column)
        self.value = value

    def append_expr(self, query: Query) -> None:
        self.column.append_expr(query)
        query.append_spaced("=")
        query.sub_any(self.value)


class Call(Expr):
    """Function call: `name (arg1, arg2)`. Args follow `Comma` rules."""

    def __init__(self, name: str = "", args: Any = None):
        self.name = name
        self.args = args

    def append_expr(self, query: Query) -> None:
        query.append_spaced(self.name)
        Parens(Comma(self.args)).append_expr(query)


class RowNumberOver(Expr):
    """`row_number() over (...)`, or `0` when there is nothing to order by."""

    def __init__(self, expr: Optional[Expr] = None):
        self.expr = expr

    def append_expr(self, query: Query) -> None:
        if self.expr is None:
            query.append_spaced("0")
            return
        query.append_spaced("row_number() over (")
        query.append(self.expr)
        query.append_spaced(")")


class SubQ(Expr):
    """`(expr) as _`. Appends nothing when `expr` is None."""

    def __init__(self, expr: Optional[Expr]):
        self.expr = expr

    def append_expr(self, query: Query) -> None:
        if self.expr is None:
            return
        query.append_spaced("(")
        query.append(self.expr)
        query.append_spaced(") as _")


class StrQ(Expr):
    """
    SQL text with `$n` or `:name` placeholders plus the arguments to fill them.

    The text is tokenized once per process through the template cache. Values
    that are expressions, including other StrQ or Query instances, are spliced
    in with their own arguments renumbered.
    """

    def __init__(self, text: str, args: Any = None, *, check_unused: Optional[bool] = None):
        self.text = text
        self.args = args
        self.check_unused = check_unused

    def append_expr(self, query: Query) -> None:
        check = self.check_unused
        if check is None:
            check = get_config().check_unused
        build(preparse(self.text), self.args, query, check_unused=check)

    def __repr__(self) -> str:
        return f"StrQ({self.text!r}, {self.args!r})"


def ListQ(text: str, *args: Any) -> StrQ:
    return StrQ(text, ListArgs(args))


def DictQ(text: str, args: Optional[dict] = None) -> StrQ:
    return StrQ(text, DictArgs(args or {}))


def RecordQ(text: str, record: Any) -> StrQ:
    return StrQ(text, RecordArgs(record))
