"""
JSON expression language: whitelisted SQL written as Lisp-style JSON lists.

    ["and",
        ["=", "name", ["name", "Alice"]],
        ["<", "owner.createdAt", ["owner.createdAt", "2024-01-01"]]]

renders as

    (("name" = $1) and (("owner")."created_at" < $2))

- A list is a call. Its head is an operator from OPS, or else a field path, in
  which case the list is a cast: `["field", value]` decodes `value` for that
  field and passes it as an argument.
- A bare string is a field path, translated from JSON names to DB columns
  through the record type. Unknown paths raise UnknownField.
- Numbers, booleans and null become arguments.
- Objects are rejected outside of casts.

Empty text renders `true`, so a missing filter matches everything.
"""

from __future__ import annotations

import json
import typing
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Union

from .errors import InvalidInput, UnknownField
from .expr import Path
from .query import Expr, Query
from .records import is_record_type, json_path_map


class Op(str, Enum):
    PREFIX = "prefix"
    POSTFIX = "postfix"
    INFIX = "infix"
    ANY = "any"
    BETWEEN = "between"


# Case- and whitespace-sensitive.
OPS: Dict[str, Op] = {
    "and": Op.INFIX,
    "or": Op.INFIX,
    "not": Op.PREFIX,
    "is null": Op.POSTFIX,
    "is not null": Op.POSTFIX,
    "is true": Op.POSTFIX,
    "is not true": Op.POSTFIX,
    "is false": Op.POSTFIX,
    "is not false": Op.POSTFIX,
    "is unknown": Op.POSTFIX,
    "is not unknown": Op.POSTFIX,
    "is distinct from": Op.INFIX,
    "is not distinct from": Op.INFIX,
    "=": Op.INFIX,
    "~": Op.INFIX,
    "~*": Op.INFIX,
    "~=": Op.INFIX,
    "<>": Op.INFIX,
    "<": Op.INFIX,
    ">": Op.INFIX,
    ">=": Op.INFIX,
    "<=": Op.INFIX,
    "@@": Op.INFIX,
    "any": Op.ANY,
    "between": Op.BETWEEN,
}


class Jel(Expr):
    def __init__(self, record_type: type, text: Union[str, bytes, None] = ""):
        if not is_record_type(record_type):
            raise InvalidInput(
                f"JEL needs a dataclass record type, got {record_type!r}",
                details={"type": repr(record_type)},
            )
        self.record_type = record_type
        self.text = text or ""

    def append_expr(self, query: Query) -> None:
        text = self.text.strip() if isinstance(self.text, str) else self.text.strip().decode("utf-8")
        if not text:
            query.append_spaced("true")
            return
        try:
            node = json.loads(text)
        except ValueError as e:
            raise InvalidInput(
                "JEL input is not valid JSON",
                details={"error": str(e)},
                cause=e,
            )
        self._decode(query, node)

    def _decode(self, query: Query, node: Any) -> None:
        if isinstance(node, dict):
            raise InvalidInput(
                "unexpected object in JEL input",
                details={"input": node},
                remediation="Objects are only allowed as the value of a cast.",
            )
        if isinstance(node, list):
            self._decode_list(query, node)
        elif isinstance(node, str):
            _, db_path = self._field(node)
            query.append(Path(*db_path))
        else:
            query.any(node)

    def _decode_list(self, query: Query, node: List[Any]) -> None:
        if not node:
            raise InvalidInput("JEL lists must have at least one element")
        head, args = node[0], node[1:]
        if not isinstance(head, str):
            raise InvalidInput(
                f"first element of a JEL list must be a string, found {head!r}",
                details={"head": head},
            )

        op = OPS.get(head)
        if op is None:
            self._decode_cast(query, head, args)
        elif op is Op.PREFIX:
            self._arity(head, args, 1)
            query.append_spaced("(")
            query.append_spaced(head)
            self._decode(query, args[0])
            query.append_spaced(")")
        elif op is Op.POSTFIX:
            self._arity(head, args, 1)
            query.append_spaced("(")
            self._decode(query, args[0])
            query.append_spaced(head)
            query.append_spaced(")")
        elif op is Op.INFIX:
            if len(args) < 2:
                raise InvalidInput(
                    f"infix operation {head!r} needs at least 2 arguments, found {len(args)}",
                    details={"op": head, "arguments": len(args)},
                )
            query.append_spaced("(")
            for i, arg in enumerate(args):
                if i:
                    query.append_spaced(head)
                self._decode(query, arg)
            query.append_spaced(")")
        elif op is Op.ANY:
            self._arity(head, args, 2)
            query.append_spaced("(")
            self._decode(query, args[0])
            query.append_spaced("= any (")
            self._decode(query, args[1])
            query.append_spaced("))")
        else:
            self._arity(head, args, 3)
            query.append_spaced("(")
            self._decode(query, args[0])
            query.append_spaced("between")
            self._decode(query, args[1])
            query.append_spaced("and")
            self._decode(query, args[2])
            query.append_spaced(")")

    def _decode_cast(self, query: Query, name: str, args: List[Any]) -> None:
        self._arity(name, args, 1)
        field, _ = self._field(name)
        query.space()
        query.param(query.arg(_coerce(field.type_hint, args[0])))

    def _field(self, json_path: str):
        entry = json_path_map(self.record_type).get(json_path)
        if entry is None:
            raise UnknownField(
                f"unknown field {json_path!r} in {self.record_type.__name__}",
                details={"field": json_path, "type": self.record_type.__name__},
            )
        return entry

    @staticmethod
    def _arity(name: str, args: List[Any], n: int) -> None:
        if len(args) != n:
            raise InvalidInput(
                f"operation {name!r} needs exactly {n} argument(s), found {len(args)}",
                details={"op": name, "arguments": len(args)},
            )

    def __repr__(self) -> str:
        return f"Jel({self.record_type.__name__}, {self.text!r})"


def _coerce(hint: Any, value: Any) -> Any:
    """Decode a JSON value into the type a record field declares, where that is unambiguous."""
    if value is None or hint is None:
        return value
    if typing.get_origin(hint) is Union:
        for arg in typing.get_args(hint):
            if arg is not type(None):
                return _coerce(arg, value)
        return value
    try:
        if hint is datetime and isinstance(value, str):
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        if hint is date and isinstance(value, str):
            return date.fromisoformat(value)
        if hint is time and isinstance(value, str):
            return time.fromisoformat(value)
        if hint is Decimal and isinstance(value, (str, int, float)):
            return Decimal(str(value))
        if hint is float and isinstance(value, int) and not isinstance(value, bool):
            return float(value)
    except (ValueError, ArithmeticError) as e:
        raise InvalidInput(
            f"cannot decode {value!r} as {getattr(hint, '__name__', hint)}",
            details={"value": value},
            cause=e,
        )
    return value
