"""
Record introspection for dataclass-based rows.

A record field maps to SQL through its dataclass metadata:

    @dataclass
    class Person:
        id: int = column("id")
        full_name: str = column("full_name", json="fullName", ord_nulls="last")
        secret: str = column("-")

- "db": column name. Defaults to the attribute name; "-" excludes the field.
- "json": external name used by ordering and JEL input. Defaults to the
  attribute name; "-" hides the field from external input.
- "ord_dir" / "ord_nulls": default direction and nulls placement for the field
  when an ordering string does not specify them.

Descriptors are derived once per type and cached.
"""

from __future__ import annotations

import dataclasses
import typing
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, FrozenSet, Iterable, Iterator, Optional, Tuple, Union

from .errors import InvalidInput

SKIP = "-"


def column(
    db: Optional[str] = None,
    *,
    json: Optional[str] = None,
    ord_dir: Optional[str] = None,
    ord_nulls: Optional[str] = None,
    **kwargs: Any,
) -> Any:
    """`dataclasses.field` with SQL mapping metadata."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    if db is not None:
        metadata["db"] = db
    if json is not None:
        metadata["json"] = json
    if ord_dir is not None:
        metadata["ord_dir"] = ord_dir
    if ord_nulls is not None:
        metadata["ord_nulls"] = ord_nulls
    return dataclasses.field(metadata=metadata, **kwargs)


@dataclass(frozen=True)
class FieldDescriptor:
    attr: str
    db_name: Optional[str]                 # None when excluded from SQL
    json_name: Optional[str]               # None when hidden from external input
    ord_dir: Optional[str] = None
    ord_nulls: Optional[str] = None
    record_type: Optional[type] = None     # nested dataclass type, if any
    type_hint: Any = None

    @property
    def in_sql(self) -> bool:
        return self.db_name is not None


def is_record(value: Any) -> bool:
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def is_record_type(value: Any) -> bool:
    return isinstance(value, type) and dataclasses.is_dataclass(value)


def record_type_of(value: Any) -> Optional[type]:
    if is_record_type(value):
        return value
    if is_record(value):
        return type(value)
    if isinstance(value, Partial):
        return record_type_of(value.value)
    return None


def _nested_type(hint: Any) -> Optional[type]:
    if is_record_type(hint):
        return hint
    if typing.get_origin(hint) is not Union:
        return None
    # Optional[Record]
    for arg in typing.get_args(hint):
        if arg is not type(None) and is_record_type(arg):
            return arg
    return None


def _type_hints(cls: type) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        return {}


def _name(meta: Any, default: str) -> Optional[str]:
    if meta is None:
        return default
    meta = str(meta).split(",")[0].strip()
    if meta == SKIP:
        return None
    return meta or default


@lru_cache(maxsize=None)
def record_fields(cls: type) -> Tuple[FieldDescriptor, ...]:
    if not is_record_type(cls):
        raise InvalidInput(
            f"expected a dataclass record type, got {cls!r}",
            details={"type": repr(cls)},
        )
    hints = _type_hints(cls)
    out = []
    for f in dataclasses.fields(cls):
        out.append(FieldDescriptor(
            attr=f.name,
            db_name=_name(f.metadata.get("db"), f.name),
            json_name=_name(f.metadata.get("json"), f.name),
            ord_dir=f.metadata.get("ord_dir"),
            ord_nulls=f.metadata.get("ord_nulls"),
            record_type=_nested_type(hints.get(f.name, f.type)),
            type_hint=hints.get(f.name),
        ))
    return tuple(out)


def sql_fields(cls: type) -> Tuple[FieldDescriptor, ...]:
    return tuple(f for f in record_fields(cls) if f.in_sql)


@lru_cache(maxsize=None)
def json_path_map(cls: type) -> Dict[str, Tuple[FieldDescriptor, Tuple[str, ...]]]:
    """
    Map dot-separated external (JSON) paths to DB column paths.

    Only fields with both a JSON name and a DB name are reachable. Nested
    records contribute their own paths prefixed by the parent's names.
    """
    out: Dict[str, Tuple[FieldDescriptor, Tuple[str, ...]]] = {}
    for f in record_fields(cls):
        if f.json_name is None or f.db_name is None:
            continue
        out[f.json_name] = (f, (f.db_name,))
        if f.record_type is not None:
            for sub_path, (sub, db_path) in json_path_map(f.record_type).items():
                out[f"{f.json_name}.{sub_path}"] = (sub, (f.db_name,) + db_path)
    return out


@dataclass(frozen=True)
class Partial:
    """
    Sparse view of a record: only fields whose JSON names are in `present` are
    considered set. Used for PATCH-style updates.
    """

    value: Any
    present: FrozenSet[str]

    def __init__(self, value: Any, present: Iterable[str]):
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "present", frozenset(present))

    def allows(self, f: FieldDescriptor) -> bool:
        return f.json_name is not None and f.json_name in self.present


def iter_record(value: Any) -> Iterator[Tuple[FieldDescriptor, Any]]:
    """Yield `(descriptor, value)` for every present SQL field. None yields nothing."""
    if value is None:
        return
    partial = None
    if isinstance(value, Partial):
        partial = value
        value = value.value
        if value is None:
            return
    if not is_record(value):
        raise InvalidInput(
            f"expected a dataclass record, got {type(value).__name__}",
            details={"type": type(value).__name__},
        )
    for f in sql_fields(type(value)):
        if partial is not None and not partial.allows(f):
            continue
        yield f, getattr(value, f.attr)


def record_dict(value: Any) -> Dict[str, Any]:
    """Column name to value for the present SQL fields of a record."""
    return {f.db_name: v for f, v in iter_record(value)}
