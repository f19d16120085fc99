import threading

import pytest

import sqlcompose.template as template_mod
from sqlcompose.template import Template, TemplateCache, preparse
from sqlcompose.types import Placeholder, TokenKind


def test_template_segments_merge_literal_text():
    t = Template.parse("select :a, 'x' /* c */, :a, $1")
    assert t.segments == (
        "select ",
        Placeholder(TokenKind.NAMED_PLACEHOLDER, "a"),
        ", 'x' /* c */, ",
        Placeholder(TokenKind.NAMED_PLACEHOLDER, "a"),
        ", ",
        Placeholder(TokenKind.ORDINAL_PLACEHOLDER, 1),
    )
    assert t.names == frozenset({"a"})
    assert t.ordinals == frozenset({1})
    assert t.has_params


def test_template_without_params():
    t = Template.parse("select ':a'")
    assert t.segments == ("select ':a'",)
    assert not t.has_params


def test_second_lookup_is_a_hit_without_retokenizing(monkeypatch):
    calls = []
    real = template_mod.tokenize

    def counting(src):
        calls.append(src)
        return real(src)

    monkeypatch.setattr(template_mod, "tokenize", counting)

    cache = TemplateCache()
    src = "select * from t where a = :a"
    t1 = cache.get_or_tokenize(src)
    t2 = cache.get_or_tokenize(src)

    assert t1 is t2
    assert list(t1.tokens) == list(t2.tokens)
    assert calls == [src]
    assert cache.hits == 1
    assert cache.misses == 1


def test_lru_eviction():
    cache = TemplateCache(max_size=2)
    cache.get_or_tokenize("a")
    cache.get_or_tokenize("b")
    cache.get_or_tokenize("a")
    cache.get_or_tokenize("c")

    assert len(cache) == 2
    assert "a" in cache
    assert "b" not in cache
    assert "c" in cache


def test_resize_evicts_and_clear_resets():
    cache = TemplateCache()
    for src in ("a", "b", "c"):
        cache.get_or_tokenize(src)
    cache.get_or_tokenize("c")

    cache.resize(1)
    assert len(cache) == 1
    assert "c" in cache
    assert cache.max_size == 1

    cache.clear()
    assert len(cache) == 0
    assert cache.hits == 0
    assert cache.misses == 0


def test_invalid_max_size():
    with pytest.raises(ValueError):
        TemplateCache(max_size=0)
    with pytest.raises(ValueError):
        TemplateCache().resize(-1)


def test_concurrent_lookups_publish_one_template():
    cache = TemplateCache()
    src = "select :a, :b from t"
    results = []
    lock = threading.Lock()

    def worker():
        for _ in range(50):
            t = cache.get_or_tokenize(src)
            with lock:
                results.append(t)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()

    assert len(cache) == 1
    first = results[0]
    assert all(r is first for r in results)
    assert cache.hits + cache.misses == 400


def test_preparse_uses_default_cache():
    src = "select :only_in_preparse_test"
    assert preparse(src) is preparse(src)
    assert src in template_mod.default_cache
