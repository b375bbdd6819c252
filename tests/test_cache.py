from form_builder_service import cache as cache_mod
from form_builder_service.cache import TTLCache, cache_key, cached


def test_set_get_and_expiry(monkeypatch):
    clock = [1000.0]
    monkeypatch.setattr(cache_mod.time, "time", lambda: clock[0])
    c = TTLCache()
    c.set("a", 1, ttl_sec=10)
    assert c.get("a") == 1
    assert c.has("a")
    clock[0] += 10
    assert c.get("a") is None
    assert len(c) == 0


def test_empty_key_is_ignored():
    c = TTLCache()
    c.set("", "x")
    assert len(c) == 0
    assert c.get("") is None


def test_cleanup_removes_only_expired(monkeypatch):
    clock = [0.0]
    monkeypatch.setattr(cache_mod.time, "time", lambda: clock[0])
    c = TTLCache()
    c.set("short", 1, ttl_sec=5)
    c.set("long", 2, ttl_sec=60)
    clock[0] = 30
    assert c.cleanup() == 1
    assert c.get("long") == 2


def test_cache_key_is_order_independent():
    assert cache_key("p", {"a": 1, "b": [1, 2]}) == cache_key("p", {"b": [1, 2], "a": 1})
    assert cache_key("p", {"a": 1}) != cache_key("p", {"a": 2})
    assert cache_key("ai-form", {"a": 1}).startswith("ai-form:")


def test_cached_calls_once():
    calls = []

    def compute():
        calls.append(1)
        return {"ok": True}

    c = TTLCache()
    assert cached("k", compute, cache=c) == {"ok": True}
    assert cached("k", compute, cache=c) == {"ok": True}
    assert len(calls) == 1
