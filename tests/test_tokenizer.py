import pytest

from sqlcompose.errors import TokenizeError
from sqlcompose.tokenizer import tokenize
from sqlcompose.types import TokenKind


def _kinds(src):
    return [t.kind for t in tokenize(src)]


def _texts(src):
    return [t.text(src) for t in tokenize(src)]


@pytest.mark.parametrize(
    "src",
    [
        "",
        "select 1",
        "select * from t where a = $1 and b = :b",
        "select 'it''s :x', \"a\"\"b\", `c` from t -- :tail",
        "select /* $1 */ :a::text, $ , :1, $a\n-- end\nfrom t",
        "::::",
        ":a:b$1$2",
    ],
)
def test_spans_reconstruct_source(src):
    tokens = tokenize(src)
    assert "".join(t.text(src) for t in tokens) == src
    for prev, cur in zip(tokens, tokens[1:]):
        assert prev.end == cur.start


def test_ordinal_and_named_placeholders():
    src = "select * from t where a = $1 and b = :name"
    tokens = tokenize(src)
    assert [t.kind for t in tokens] == [
        TokenKind.TEXT,
        TokenKind.ORDINAL_PLACEHOLDER,
        TokenKind.TEXT,
        TokenKind.NAMED_PLACEHOLDER,
    ]
    assert tokens[1].value == 1
    assert tokens[3].value == "name"
    assert tokens[3].text(src) == ":name"


def test_text_ends_where_the_next_span_starts():
    tokens = tokenize("select :a, 'x' -- c\n/* d */ $1")
    assert [(t.kind, t.start, t.end) for t in tokens] == [
        (TokenKind.TEXT, 0, 7),
        (TokenKind.NAMED_PLACEHOLDER, 7, 9),
        (TokenKind.TEXT, 9, 11),
        (TokenKind.STRING_LITERAL, 11, 14),
        (TokenKind.TEXT, 14, 15),
        (TokenKind.LINE_COMMENT, 15, 19),
        (TokenKind.TEXT, 19, 20),
        (TokenKind.BLOCK_COMMENT, 20, 27),
        (TokenKind.TEXT, 27, 28),
        (TokenKind.ORDINAL_PLACEHOLDER, 28, 30),
    ]


def test_multi_digit_ordinal():
    tokens = tokenize("$12")
    assert tokens[0].kind == TokenKind.ORDINAL_PLACEHOLDER
    assert tokens[0].value == 12


def test_placeholders_inside_quotes_are_inert():
    src = "select 'it''s :x and $1' from \"a\"\"$2\" join `:b` on c"
    assert _kinds(src) == [
        TokenKind.TEXT,
        TokenKind.STRING_LITERAL,
        TokenKind.TEXT,
        TokenKind.QUOTED_IDENT,
        TokenKind.TEXT,
        TokenKind.QUOTED_IDENT,
        TokenKind.TEXT,
    ]
    assert _texts(src)[1] == "'it''s :x and $1'"
    assert _texts(src)[3] == '"a""$2"'


def test_placeholders_inside_comments_are_inert():
    src = "-- :x\n/* $1 */ select :y"
    tokens = tokenize(src)
    assert [t.kind for t in tokens] == [
        TokenKind.LINE_COMMENT,
        TokenKind.TEXT,
        TokenKind.BLOCK_COMMENT,
        TokenKind.TEXT,
        TokenKind.NAMED_PLACEHOLDER,
    ]
    assert tokens[0].text(src) == "-- :x"
    assert tokens[4].value == "y"


def test_double_colon_cast_is_text():
    src = "select a::text, :b::int"
    tokens = tokenize(src)
    named = [t.value for t in tokens if t.kind == TokenKind.NAMED_PLACEHOLDER]
    assert named == ["b"]


def test_lookalikes_are_plain_text():
    assert _kinds("select $ , :1, $a, : x") == [TokenKind.TEXT]


def test_named_placeholder_is_case_sensitive_identifier():
    tokens = tokenize(":Foo_1 :foo")
    assert [t.value for t in tokens if t.is_placeholder] == ["Foo_1", "foo"]


def test_unterminated_string_literal():
    with pytest.raises(TokenizeError, match="unterminated") as ei:
        tokenize("select 'abc")
    assert ei.value.details["offset"] == 7
    assert ei.value.details["delimiter"] == "'"


def test_unterminated_block_comment():
    with pytest.raises(TokenizeError) as ei:
        tokenize("select /* x")
    assert ei.value.details["offset"] == 7


def test_unterminated_quoted_identifier():
    with pytest.raises(TokenizeError):
        tokenize('select "abc')


def test_rejects_non_str():
    with pytest.raises(TypeError):
        tokenize(b"select 1")
