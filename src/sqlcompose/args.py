"""
Argument sources consulted by the builder.

A source answers lookups by 1-based ordinal (`$n`) or by name (`:name`), never
both. Which kind it supports decides which placeholder kind a template may use
with it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Iterable, List, Sequence, Tuple

from .errors import InvalidInput
from .records import Partial, is_record, record_dict


class ArgSource(ABC):
    supports_ordinal = False
    supports_named = False

    @abstractmethod
    def __len__(self) -> int: ...

    def is_empty(self) -> bool:
        return len(self) == 0

    def got_ordinal(self, index: int) -> Tuple[Any, bool]:
        return None, False

    def got_named(self, name: str) -> Tuple[Any, bool]:
        return None, False

    def ordinal_keys(self) -> Iterable[int]:
        """Ordinals this source expects a template to reference."""
        return ()

    def named_keys(self) -> Iterable[str]:
        """Names this source expects a template to reference."""
        return ()


class NoArgs(ArgSource):
    """Empty source. Any placeholder resolved against it is missing."""

    supports_ordinal = True
    supports_named = True

    def __len__(self) -> int:
        return 0

    def __repr__(self) -> str:
        return "NoArgs()"


class ListArgs(ArgSource):
    supports_ordinal = True

    def __init__(self, values: Sequence[Any]):
        self._values: List[Any] = list(values)

    def __len__(self) -> int:
        return len(self._values)

    def got_ordinal(self, index: int) -> Tuple[Any, bool]:
        if 1 <= index <= len(self._values):
            return self._values[index - 1], True
        return None, False

    def ordinal_keys(self) -> Iterable[int]:
        return range(1, len(self._values) + 1)

    def __repr__(self) -> str:
        return f"ListArgs({self._values!r})"


class DictArgs(ArgSource):
    supports_named = True

    def __init__(self, values: Mapping):
        bad = [k for k in values if not isinstance(k, str)]
        if bad:
            raise InvalidInput(
                "named argument keys must be strings",
                details={"keys": [repr(k) for k in bad]},
                remediation="Quote numeric keys, or pass a list for $n placeholders.",
            )
        self._values = dict(values)

    def __len__(self) -> int:
        return len(self._values)

    def got_named(self, name: str) -> Tuple[Any, bool]:
        if name in self._values:
            return self._values[name], True
        return None, False

    def named_keys(self) -> Iterable[str]:
        return self._values.keys()

    def __repr__(self) -> str:
        return f"DictArgs({self._values!r})"


class RecordArgs(ArgSource):
    """
    Named arguments taken from a dataclass record, keyed by column name.

    A record usually carries more fields than one query needs, so its names
    are never reported as unused.
    """

    supports_named = True

    def __init__(self, record: Any):
        self.record = record
        self._values = record_dict(record)

    def __len__(self) -> int:
        return len(self._values)

    def got_named(self, name: str) -> Tuple[Any, bool]:
        if name in self._values:
            return self._values[name], True
        return None, False

    def __repr__(self) -> str:
        return f"RecordArgs({self.record!r})"


def to_arg_source(value: Any) -> ArgSource:
    """Coerce a list, tuple, mapping, dataclass record or ArgSource into an ArgSource."""
    if value is None:
        return NoArgs()
    if isinstance(value, ArgSource):
        return value
    if isinstance(value, (list, tuple)):
        return ListArgs(value)
    if isinstance(value, Mapping):
        return DictArgs(value)
    if is_record(value) or isinstance(value, Partial):
        return RecordArgs(value)
    raise InvalidInput(
        f"unsupported argument source: {type(value).__name__}",
        details={"type": type(value).__name__},
        remediation="Pass a list, a mapping or a dataclass record.",
    )
