import pytest

from sqlcompose.config import BuilderConfig, set_config
from sqlcompose.expr import From, Ident, Select, Str
from sqlcompose.query import Query, reify, render_debug


def test_any_appends_argument_and_marker():
    q = Query()
    q.append(Str("select"))
    assert q.any(1) is q
    q.append_spaced(",")
    q.any("x")
    assert q.string() == "select $1, $2"
    assert q.args == [1, "x"]
    assert q.markers == [1, 2]


def test_param_reuses_existing_argument():
    q = Query()
    q.append_text("a = ")
    q.param(q.arg(5))
    q.append_text(" or b = ")
    q.param(1)
    assert q.reify() == ("a = $1 or b = $1", [5])


def test_param_out_of_range():
    q = Query("select $1", [1])
    with pytest.raises(IndexError):
        q.param(2)
    with pytest.raises(IndexError):
        q.param(0)


def test_append_rejects_non_expressions():
    with pytest.raises(TypeError):
        Query().append("select 1")


def test_append_none_is_noop():
    q = Query("select 1")
    q.append(None)
    assert q.string() == "select 1"


def test_spacing_around_delimiters():
    q = Query()
    q.append(Str("count"))
    q.append_spaced("(")
    q.append(Str("x"))
    q.append_spaced(")")
    q.append_spaced(",")
    q.append(Str("y"))
    assert q.string() == "count (x), y"


def test_qmark_dialect_repeats_arguments_per_marker():
    q = Query("select $1, $2, $1", [10, 20])
    assert q.reify() == ("select $1, $2, $1", [10, 20])
    assert q.reify("sqlite") == ("select ?, ?, ?", [10, 20, 10])


def test_numeric_dialect():
    assert Query("select $1, $2, $1", [10, 20]).reify("oracle") == ("select :1, :2, :1", [10, 20])


def test_format_dialect_escapes_percent():
    q = Query("select $1 from t where a like '%x'", ["y"])
    assert q.reify("psycopg") == ("select %s from t where a like '%%x'", ["y"])


def test_query_level_dialect():
    q = Query("select $1", [1], dialect="sqlite")
    assert q.string() == "select ?"
    assert q.string("postgres") == "select $1"


def test_configured_dialect_is_the_default():
    prev = set_config(BuilderConfig(dialect="oracle"))
    try:
        assert Query("select $1", [1]).string() == "select :1"
    finally:
        set_config(prev)


def test_query_appended_into_itself():
    q = Query("($1)", [1])
    q.append_expr(q)
    assert q.reify() == ("($1)($2)", [1, 1])


def test_copy_and_clear():
    q = Query("select $1", [1])
    c = q.copy()
    q.clear()
    assert q.is_empty()
    assert q.string() == ""
    assert c.reify() == ("select $1", [1])


def test_args_property_is_a_copy():
    q = Query("select $1", [1])
    q.args.append(2)
    assert q.args == [1]


def test_debug_string():
    q = Query("select $1, $2", [1, "it's"])
    assert q.debug_string() == "select $1, $2 -- args: [1, 'it''s']"
    assert render_debug("select ?", [None, True]) == "select ? -- args: [null, true]"


def test_module_reify_joins_expressions():
    assert reify(Select(Str("*")), From(Ident("t"))) == ('select * from "t"', [])
    assert reify(None) == ("", [])


def test_str_and_repr():
    q = Query("select $1", [1])
    assert str(q) == "select $1"
    assert repr(q) == "Query('select $1', [1])"
