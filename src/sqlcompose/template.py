"""
Preparsed templates and the process-wide template cache.

Tokenizing is the expensive step for a given SQL string, so each distinct
source is tokenized once and the resulting immutable Template is shared by
every later build.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple, Union

from .tokenizer import tokenize
from .types import Placeholder, Token, TokenKind

logger = logging.getLogger(__name__)

Segment = Union[str, Placeholder]


@dataclass(frozen=True)
class Template:
    source: str
    tokens: Tuple[Token, ...]
    # literal text merged between placeholders; walked by the builder
    segments: Tuple[Segment, ...]
    ordinals: FrozenSet[int]
    names: FrozenSet[str]

    @property
    def has_params(self) -> bool:
        return bool(self.ordinals or self.names)

    @classmethod
    def parse(cls, source: str) -> Template:
        tokens = tuple(tokenize(source))
        segments = []
        ordinals = set()
        names = set()
        pending = []

        for tok in tokens:
            if not tok.is_placeholder:
                pending.append(tok.text(source))
                continue

            if pending:
                segments.append("".join(pending))
                pending = []

            segments.append(Placeholder(tok.kind, tok.value))
            if tok.kind == TokenKind.ORDINAL_PLACEHOLDER:
                ordinals.add(tok.value)
            else:
                names.add(tok.value)

        if pending:
            segments.append("".join(pending))

        return cls(
            source=source,
            tokens=tokens,
            segments=tuple(segments),
            ordinals=frozenset(ordinals),
            names=frozenset(names),
        )


class TemplateCache:
    """
    Thread-safe map from source text to Template.

    Tokenization happens outside the lock: two threads racing on the same new
    source may both tokenize it, but only the first stored Template is
    published and returned to both. With `max_size` set, the least recently
    used entries are evicted.
    """

    def __init__(self, max_size: Optional[int] = None):
        if max_size is not None and max_size < 1:
            raise ValueError("max_size must be >= 1 or None")
        self._max_size = max_size
        self._entries: "OrderedDict[str, Template]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @property
    def max_size(self) -> Optional[int]:
        return self._max_size

    def get_or_tokenize(self, source: str) -> Template:
        with self._lock:
            found = self._entries.get(source)
            if found is not None:
                self.hits += 1
                self._entries.move_to_end(source)
                return found
            self.misses += 1

        logger.debug("template cache miss (%d chars)", len(source))
        template = Template.parse(source)

        with self._lock:
            found = self._entries.get(source)
            if found is not None:
                return found
            self._entries[source] = template
            self._evict()
        return template

    def resize(self, max_size: Optional[int]) -> None:
        if max_size is not None and max_size < 1:
            raise ValueError("max_size must be >= 1 or None")
        with self._lock:
            self._max_size = max_size
            self._evict()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def _evict(self) -> None:
        if self._max_size is None:
            return
        while len(self._entries) > self._max_size:
            source, _ = self._entries.popitem(last=False)
            logger.debug("template cache evicted entry (%d chars)", len(source))

    def __contains__(self, source: object) -> bool:
        with self._lock:
            return source in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


DEFAULT_CACHE_SIZE = 4096

default_cache = TemplateCache(max_size=DEFAULT_CACHE_SIZE)


def preparse(source: str) -> Template:
    """Return the cached Template for `source`, tokenizing it on first use."""
    return default_cache.get_or_tokenize(source)
