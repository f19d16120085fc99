"""
Substitution of placeholders in a preparsed Template.

The builder walks template segments in order. Literal text is copied verbatim.
Each placeholder is resolved against the argument source:

- an expression (including a finished Query) appends itself in place,
- a list or tuple expands to `($1, $2, ...)`, or `(null)` when empty,
- anything else becomes one argument with one positional marker.

A placeholder referenced several times reuses the markers written for its first
occurrence. Expressions are appended again at every occurrence.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .args import ArgSource, to_arg_source
from .errors import InvalidPlaceholderUsage, MissingArgument, UnusedArgument
from .query import Expr, Query
from .template import Template
from .types import Placeholder

# matches no rows in `x in (null)` and is valid where `()` is not
EMPTY_LIST = "(null)"


class _ArgTracker:
    """Per-build state: markers already written for each placeholder, and what was used."""

    def __init__(self) -> None:
        self.markers: Dict[Tuple[bool, Any], Tuple[int, ...]] = {}
        self.used_ordinals: set = set()
        self.used_names: set = set()
        # True when the markers came from an expanded list
        self.shapes: Dict[Tuple[bool, Any], bool] = {}

    def reset(self) -> None:
        self.markers.clear()
        self.used_ordinals.clear()
        self.used_names.clear()
        self.shapes.clear()


class _TrackerPool:
    def __init__(self, max_free: int = 32):
        self._free: List[_ArgTracker] = []
        self._max_free = max_free
        self._lock = threading.Lock()

    @contextmanager
    def acquire(self) -> Iterator[_ArgTracker]:
        with self._lock:
            tracker = self._free.pop() if self._free else _ArgTracker()
        try:
            yield tracker
        finally:
            tracker.reset()
            with self._lock:
                if len(self._free) < self._max_free:
                    self._free.append(tracker)


_pool = _TrackerPool()


def build(template: Template, source: Any, query: Query, *, check_unused: bool = True) -> None:
    """
    Append `template` substituted with `source` into `query`.

    On error the state of `query` is unspecified and it should be discarded.
    """
    source = to_arg_source(source)

    if not template.has_params:
        if check_unused and not source.is_empty():
            raise UnusedArgument(
                f"query has no placeholders but {len(source)} argument(s) were given",
                details={"source": template.source, "arguments": len(source)},
            )
        query.append_text(template.source)
        return

    with _pool.acquire() as tracker:
        for seg in template.segments:
            if isinstance(seg, str):
                query.append_text(seg)
            else:
                _substitute(template, seg, source, query, tracker)

        if check_unused:
            _check_unused(template, source, tracker)


def _substitute(
    template: Template,
    ph: Placeholder,
    source: ArgSource,
    query: Query,
    tracker: _ArgTracker,
) -> None:
    key = (ph.is_ordinal, ph.key)
    written = tracker.markers.get(key)
    if written is not None:
        _write_markers(query, written, tracker.shapes[key])
        return

    value = _resolve(template, ph, source)
    if ph.is_ordinal:
        tracker.used_ordinals.add(ph.key)
    else:
        tracker.used_names.add(ph.key)

    if isinstance(value, Expr):
        value.append_expr(query)
        return

    if isinstance(value, (list, tuple)):
        ordinals = _expand_list(value, query)
        if ordinals is not None:
            tracker.markers[key] = ordinals
            tracker.shapes[key] = True
        return

    ordinal = query.arg(value)
    query.param(ordinal)
    tracker.markers[key] = (ordinal,)
    tracker.shapes[key] = False


def _resolve(template: Template, ph: Placeholder, source: ArgSource) -> Any:
    supported = source.supports_ordinal if ph.is_ordinal else source.supports_named
    if not supported and not source.is_empty():
        kind = "ordinal" if ph.is_ordinal else "named"
        raise InvalidPlaceholderUsage(
            f"{kind} placeholder {ph} used with {type(source).__name__}",
            details={"placeholder": str(ph), "source": template.source},
        )

    if ph.is_ordinal:
        value, found = source.got_ordinal(ph.key)
    else:
        value, found = source.got_named(ph.key)
    if not found:
        raise MissingArgument(
            f"no argument for placeholder {ph}",
            details={"placeholder": str(ph), "source": template.source},
        )
    return value


def _expand_list(values: Any, query: Query) -> Optional[Tuple[int, ...]]:
    """
    Write `(m1, m2, ...)` for a list value. Returns the ordinals written, or
    None when the list held expressions and cannot be replayed by marker.
    """
    if not values:
        query.append_text(EMPTY_LIST)
        return ()

    ordinals: List[int] = []
    replayable = True
    query.append_text("(")
    for i, v in enumerate(values):
        if i:
            query.append_text(", ")
        if isinstance(v, Expr):
            v.append_expr(query)
            replayable = False
            continue
        ordinal = query.arg(v)
        query.param(ordinal)
        ordinals.append(ordinal)
    query.append_text(")")
    return tuple(ordinals) if replayable else None


def _write_markers(query: Query, ordinals: Tuple[int, ...], is_list: bool) -> None:
    if not is_list:
        query.param(ordinals[0])
        return
    if not ordinals:
        query.append_text(EMPTY_LIST)
        return
    query.append_text("(")
    for i, ordinal in enumerate(ordinals):
        if i:
            query.append_text(", ")
        query.param(ordinal)
    query.append_text(")")


def _check_unused(template: Template, source: ArgSource, tracker: _ArgTracker) -> None:
    unused_ordinals = sorted(set(source.ordinal_keys()) - tracker.used_ordinals)
    unused_names = sorted(set(source.named_keys()) - tracker.used_names)
    if not unused_ordinals and not unused_names:
        return

    unused = [f"${n}" for n in unused_ordinals] + [f":{n}" for n in unused_names]
    raise UnusedArgument(
        f"unused argument(s): {', '.join(unused)}",
        details={"unused": unused, "source": template.source},
    )
