"""
Partial SQL tokenizer.

Splits raw SQL into spans that are either copied verbatim or treated as
placeholders. It understands just enough syntax to keep placeholder lookalikes
inside quoted literals, quoted identifiers and comments inert:

- 'string literals' with '' escapes
- "quoted identifiers" and `backtick identifiers` with doubled-delimiter escapes
- -- line comments and /* block comments */ (non-nested)
- the Postgres cast operator ::
- $1 ordinal placeholders and :name named placeholders

It is not a SQL parser and never validates the statement.
"""

from __future__ import annotations

from typing import List, Optional

from .errors import TokenizeError
from .types import Token, TokenKind

ORDINAL_PREFIX = "$"
NAMED_PREFIX = ":"
LINE_COMMENT_PREFIX = "--"
BLOCK_COMMENT_PREFIX = "/*"
BLOCK_COMMENT_SUFFIX = "*/"
DOUBLE_COLON = "::"

_QUOTES = {
    "'": TokenKind.STRING_LITERAL,
    '"': TokenKind.QUOTED_IDENT,
    "`": TokenKind.QUOTED_IDENT,
}

_IDENT_START = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz_")
_DIGITS = frozenset("0123456789")
_IDENT = _IDENT_START | _DIGITS


class Tokenizer:
    """Single-pass cursor over one source string. Use `tokenize` unless you need the class."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.cursor = 0
        self._tokens: List[Token] = []
        self._text_start: Optional[int] = None

    def run(self) -> List[Token]:
        src = self.source
        size = len(src)

        while self.cursor < size:
            ch = src[self.cursor]

            if ch in _QUOTES:
                self._quoted(ch)
            elif src.startswith(LINE_COMMENT_PREFIX, self.cursor):
                self._line_comment()
            elif src.startswith(BLOCK_COMMENT_PREFIX, self.cursor):
                self._block_comment()
            elif src.startswith(DOUBLE_COLON, self.cursor):
                self._text(len(DOUBLE_COLON))
            elif ch == ORDINAL_PREFIX:
                self._ordinal()
            elif ch == NAMED_PREFIX:
                self._named()
            else:
                self._text(1)

        self._flush_text(self.cursor)
        return self._tokens

    # -- spans ---------------------------------------------------------------

    def _text(self, size: int) -> None:
        if self._text_start is None:
            self._text_start = self.cursor
        self.cursor += size

    def _flush_text(self, end: int) -> None:
        if self._text_start is not None and end > self._text_start:
            self._tokens.append(Token(TokenKind.TEXT, self._text_start, end))
        self._text_start = None

    def _emit(self, kind: TokenKind, start: int, value=None) -> None:
        # pending text ends where this span starts
        self._flush_text(start)
        self._tokens.append(Token(kind, start, self.cursor, value))

    def _quoted(self, quote: str) -> None:
        src = self.source
        start = self.cursor
        pos = start + 1

        while True:
            end = src.find(quote, pos)
            if end < 0:
                raise TokenizeError(
                    f"unterminated quoted span: expected closing {quote!r}",
                    details={"offset": start, "delimiter": quote},
                )
            # doubled delimiter is an escaped delimiter
            if src.startswith(quote, end + 1):
                pos = end + 2
                continue
            break

        self.cursor = end + 1
        self._emit(_QUOTES[quote], start)

    def _line_comment(self) -> None:
        src = self.source
        start = self.cursor
        end = len(src)
        for i in range(start + len(LINE_COMMENT_PREFIX), len(src)):
            if src[i] in "\r\n":
                end = i
                break
        self.cursor = end
        self._emit(TokenKind.LINE_COMMENT, start)

    def _block_comment(self) -> None:
        start = self.cursor
        end = self.source.find(BLOCK_COMMENT_SUFFIX, start + len(BLOCK_COMMENT_PREFIX))
        if end < 0:
            raise TokenizeError(
                f"unterminated block comment: expected closing {BLOCK_COMMENT_SUFFIX!r}",
                details={"offset": start, "delimiter": BLOCK_COMMENT_SUFFIX},
            )
        self.cursor = end + len(BLOCK_COMMENT_SUFFIX)
        self._emit(TokenKind.BLOCK_COMMENT, start)

    def _ordinal(self) -> None:
        src = self.source
        start = self.cursor
        pos = start + 1
        while pos < len(src) and src[pos] in _DIGITS:
            pos += 1

        if pos == start + 1:
            self._text(1)
            return

        self.cursor = pos
        self._emit(TokenKind.ORDINAL_PLACEHOLDER, start, int(src[start + 1:pos]))

    def _named(self) -> None:
        src = self.source
        start = self.cursor
        pos = start + 1
        if pos >= len(src) or src[pos] not in _IDENT_START:
            self._text(1)
            return

        pos += 1
        while pos < len(src) and src[pos] in _IDENT:
            pos += 1

        self.cursor = pos
        self._emit(TokenKind.NAMED_PLACEHOLDER, start, src[start + 1:pos])


def tokenize(source: str) -> List[Token]:
    """
    Tokenize raw SQL text.

    The returned spans are contiguous, non-overlapping and reconstruct `source`
    exactly when concatenated. Raises TokenizeError on an unterminated quoted
    span or block comment.
    """
    if not isinstance(source, str):
        raise TypeError(f"SQL source must be str, got {type(source).__name__}")
    return Tokenizer(source).run()
