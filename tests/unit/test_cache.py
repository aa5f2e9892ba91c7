"""Test render cache keys and the thread-safe cache."""

import threading

from latex_text.cache import RenderCache, cache_key, image_cache_key, svg_cache_key
from latex_text.engine import EngineOptions


def test_svg_key_is_stable():
    options = EngineOptions().to_dict()
    assert svg_cache_key("x^2", False, options) == svg_cache_key("x^2", False, dict(options))
    assert svg_cache_key("x^2", False, options).endswith("-svg")


def test_svg_key_depends_on_every_field():
    options = EngineOptions().to_dict()
    key = svg_cache_key("x^2", False, options)
    assert key != svg_cache_key("x^3", False, options)
    assert key != svg_cache_key("x^2", True, options)
    assert key != svg_cache_key("x^2", False, EngineOptions.for_error_mode().to_dict())


def test_key_ignores_field_order():
    assert cache_key("svg", {"a": 1, "b": 2}) == cache_key("svg", {"b": 2, "a": 1})


def test_image_key_depends_on_x_height():
    assert image_cache_key("<svg/>", 8.0) != image_cache_key("<svg/>", 10.0)
    assert image_cache_key("<svg/>", 8.0).endswith("-image")


def test_unencodable_fields_use_fallback_key(caplog):
    key = cache_key("svg", {"text": "x", "options": object()})
    assert key.startswith("options=")
    assert key.endswith("-svg")
    assert "fallback" in caplog.text


def test_get_set_and_stats():
    cache = RenderCache("svg")
    assert cache.get("k") is None
    cache.set("k", "v")
    assert cache.get("k") == "v"
    assert "k" in cache
    assert len(cache) == 1
    assert cache.stats() == {"entries": 1, "hits": 1, "misses": 1}


def test_get_or_compute_computes_once():
    cache = RenderCache()
    calls = []

    def compute():
        calls.append(1)
        return "value"

    assert cache.get_or_compute("k", compute) == "value"
    assert cache.get_or_compute("k", compute) == "value"
    assert len(calls) == 1


def test_get_or_compute_does_not_store_none():
    cache = RenderCache()
    assert cache.get_or_compute("k", lambda: None) is None
    assert "k" not in cache


def test_clear():
    cache = RenderCache()
    cache.set("a", 1)
    cache.clear()
    assert len(cache) == 0
    assert cache.get("a") is None


def test_max_entries_evicts_oldest():
    cache = RenderCache(max_entries=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)
    assert "a" not in cache
    assert cache.get("b") == 2
    assert cache.get("c") == 3


def test_concurrent_access():
    cache = RenderCache()
    errors = []

    def worker(n):
        try:
            for i in range(200):
                key = f"key-{i % 20}"
                cache.set(key, i % 20)
                value = cache.get(key)
                assert value == i % 20
                cache.get_or_compute(f"worker-{n}", lambda: n)
        except AssertionError as e:
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(cache) == 20 + 8
