import threading

import pytest

from sqlcompose.args import DictArgs, ListArgs
from sqlcompose.builder import EMPTY_LIST, build
from sqlcompose.errors import InvalidPlaceholderUsage, MissingArgument, UnusedArgument
from sqlcompose.expr import ListQ, Str, StrQ
from sqlcompose.query import Query
from sqlcompose.template import preparse
from sqlcompose.types import Arg


def render(text, args=None, **kwargs):
    q = Query()
    build(preparse(text), args, q, **kwargs)
    return q.reify()


def test_text_without_placeholders_is_copied_verbatim():
    src = "select 1 from t where x = 'y' -- done"
    assert render(src) == (src, [])


def test_quoted_and_commented_lookalikes_survive():
    src = "select ':v', \"$1\" -- :w\n/* $2 */ from t"
    assert render(src) == (src, [])


def test_ordinal_placeholders():
    assert render("select $1, $2", [10, 20]) == ("select $1, $2", [10, 20])


def test_ordinals_are_renumbered_by_first_use():
    assert render("select $2, $1", [10, 20]) == ("select $1, $2", [20, 10])


def test_named_placeholders():
    text, args = render("select * from t where a = :a and b = :b", {"a": 1, "b": "x"})
    assert text == "select * from t where a = $1 and b = $2"
    assert args == [1, "x"]


def test_repeated_placeholder_reuses_marker():
    assert render("select :v, :v", {"v": 1}) == ("select $1, $1", [1])
    assert render("select $1 + $1", [7]) == ("select $1 + $1", [7])


def test_list_expansion():
    text, args = render("select * from t where id in :ids", {"ids": [10, 20, 30]})
    assert text == "select * from t where id in ($1, $2, $3)"
    assert args == [10, 20, 30]


def test_list_expansion_with_qmark_markers():
    q = Query()
    build(preparse("select * from t where id in :ids"), {"ids": (10, 20, 30)}, q)
    assert q.reify("sqlite") == ("select * from t where id in (?, ?, ?)", [10, 20, 30])


def test_repeated_list_reuses_markers():
    text, args = render("a in :ids or b in :ids", {"ids": [1, 2]})
    assert text == "a in ($1, $2) or b in ($1, $2)"
    assert args == [1, 2]


def test_empty_list_never_matches():
    text, args = render("select * from t where id in :ids", {"ids": []})
    assert text == "select * from t where id in " + EMPTY_LIST
    assert "()" not in text
    assert args == []


def test_arg_wrapper_passes_list_as_one_parameter():
    assert render("select * from t where id = any(:ids)", {"ids": Arg([1, 2])}) == (
        "select * from t where id = any($1)",
        [[1, 2]],
    )


def test_list_elements_may_be_expressions():
    text, args = render("insert into t values :row", {"row": [1, Str("default"), 3]})
    assert text == "insert into t values ($1, default, $2)"
    assert args == [1, 3]


def test_composition_renumbers_nested_arguments():
    inner = StrQ("select * from t where a = :v", {"v": 1})
    outer = StrQ("select * from (:inner) x where b = :v", {"inner": inner, "v": 2})
    assert outer.reify() == (
        "select * from (select * from t where a = $1) x where b = $2",
        [1, 2],
    )


def test_finished_query_is_a_value():
    inner = Query("select id from t where a = :v", {"v": 1})
    text, args = render("select * from u where id in (:inner) and b = :b", {"inner": inner, "b": 2})
    assert text == "select * from u where id in (select id from t where a = $1) and b = $2"
    assert args == [1, 2]


def test_expression_values_are_appended_at_every_occurrence():
    assert render("select :e, :e", {"e": Str("now()")}) == ("select now(), now()", [])
    assert render("select :e, :e", {"e": ListQ("x = $1", 5)}) == ("select x = $1, x = $2", [5, 5])


def test_appending_into_query_with_existing_args():
    q = Query("select $1", [10])
    q.append(StrQ("and :v", {"v": 20}))
    assert q.reify() == ("select $1 and $2", [10, 20])


def test_markers_match_arguments():
    inner = StrQ("a = :a and b in :b", {"a": 1, "b": [2, 3]})
    q = Query()
    build(preparse("select :x, (:inner), :x"), {"x": 0, "inner": inner}, q)
    assert q.string() == "select $1, (a = $2 and b in ($3, $4)), $1"
    assert sorted(set(q.markers)) == list(range(1, len(q.args) + 1))
    assert q.args == [0, 1, 2, 3]


def test_unused_named_argument():
    with pytest.raises(UnusedArgument, match=":w"):
        render("select :v", {"v": 1, "w": 2})
    assert render("select :v", {"v": 1, "w": 2}, check_unused=False) == ("select $1", [1])


def test_unused_ordinal_argument():
    with pytest.raises(UnusedArgument) as ei:
        render("select $1", [1, 2])
    assert ei.value.details["unused"] == ["$2"]


def test_arguments_without_placeholders():
    with pytest.raises(UnusedArgument):
        render("select 1", [1])
    assert render("select 1", [1], check_unused=False) == ("select 1", [])


def test_missing_named_argument():
    with pytest.raises(MissingArgument, match=":v"):
        render("select :v", {"w": 1}, check_unused=False)


def test_missing_ordinal_argument():
    with pytest.raises(MissingArgument, match=r"\$3"):
        render("select $1, $3", [1, 2])


def test_placeholders_without_source():
    with pytest.raises(MissingArgument):
        render("select $1")
    with pytest.raises(MissingArgument):
        render("select :a")


def test_named_placeholder_with_list_source():
    with pytest.raises(InvalidPlaceholderUsage):
        render("select :v", [1])


def test_ordinal_placeholder_with_named_source():
    with pytest.raises(InvalidPlaceholderUsage):
        render("select $1", {"a": 1})


def test_mixed_placeholder_kinds_in_one_template():
    with pytest.raises(InvalidPlaceholderUsage):
        render("select $1, :a", [1])
    with pytest.raises(InvalidPlaceholderUsage):
        render("select :a, $1", {"a": 1})


def test_explicit_arg_sources():
    assert render("select $1", ListArgs([5])) == ("select $1", [5])
    assert render("select :a", DictArgs({"a": 5})) == ("select $1", [5])


def test_concurrent_builds_do_not_share_state():
    template = preparse("select :a, :b, :a")
    results = {}
    errors = []

    def worker(n):
        try:
            for _ in range(100):
                q = Query()
                build(template, {"a": n, "b": -n}, q)
                results[n] = q.reify()
        except Exception as e:  # pragma: no cover
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(1, 9)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()

    assert not errors
    for n in range(1, 9):
        assert results[n] == ("select $1, $2, $1", [n, -n])
