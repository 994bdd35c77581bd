from cache.smart_cache import MISS, SmartDataCache


def make_cache(clock, timeout=300):
    return SmartDataCache(default_timeout=timeout, clock=clock)


def test_get_returns_value_before_timeout(clock):
    cache = make_cache(clock)
    cache.set("a", [1, 2])
    clock.now[0] += 299
    assert cache.get("a") == [1, 2]


def test_get_misses_once_timeout_elapsed(clock):
    cache = make_cache(clock)
    cache.set("a", 1, timeout=10)
    clock.now[0] += 10
    assert cache.get("a") is MISS
    assert "a" not in cache
    assert len(cache) == 0


def test_none_is_a_hit_not_a_miss(clock):
    cache = make_cache(clock)
    cache.set("empty", None)
    assert cache.get("empty") is None
    assert cache.stats()["hits"] == 1


def test_miss_sentinel_is_falsy():
    assert not MISS


def test_get_or_load_calls_loader_once(clock):
    cache = make_cache(clock)
    calls = []

    def loader():
        calls.append(1)
        return "value"

    assert cache.get_or_load("k", loader) == "value"
    assert cache.get_or_load("k", loader) == "value"
    assert len(calls) == 1


def test_invalidate_with_dependencies_removes_direct_dependents(clock):
    cache = make_cache(clock)
    cache.set("sheet_Riders", "rows")
    cache.set("active_riders_count", 3)
    cache.set("unrelated", "x")
    cache.add_dependency("active_riders_count", "sheet_Riders")

    targeted = cache.invalidate_with_dependencies("sheet_Riders")

    assert targeted == {"sheet_Riders", "active_riders_count"}
    assert cache.get("active_riders_count") is MISS
    assert cache.get("sheet_Riders") is MISS
    assert cache.get("unrelated") == "x"


def test_invalidation_is_one_hop_unless_transitive(clock):
    cache = make_cache(clock)
    for key in ("a", "b", "c"):
        cache.set(key, key)
    cache.add_dependency("b", "a")
    cache.add_dependency("c", "b")

    cache.invalidate_with_dependencies("a")
    assert cache.get("c") == "c"

    cache.set("a", "a")
    cache.set("b", "b")
    targeted = cache.invalidate_with_dependencies("a", transitive=True)
    assert targeted == {"a", "b", "c"}
    assert cache.get("c") is MISS


def test_transitive_invalidation_survives_cycles(clock):
    cache = make_cache(clock)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.add_dependency("b", "a")
    cache.add_dependency("a", "b")
    assert cache.invalidate_with_dependencies("a", transitive=True) == {"a", "b"}


def test_self_dependency_is_ignored(clock):
    cache = make_cache(clock)
    cache.add_dependency("a", "a")
    assert cache.dependents_of("a") == set()


def test_dependencies_outlive_invalidated_values(clock):
    cache = make_cache(clock)
    cache.add_dependency("stats", "sheet_Requests")
    cache.invalidate_with_dependencies("sheet_Requests")
    cache.set("stats", 5)
    cache.invalidate_with_dependencies("sheet_Requests")
    assert cache.get("stats") is MISS


def test_prune_expired_and_clear(clock):
    cache = make_cache(clock)
    cache.set("short", 1, timeout=5)
    cache.set("long", 2, timeout=500)
    clock.now[0] += 6
    assert cache.prune_expired() == 1
    assert len(cache) == 1
    cache.clear()
    assert len(cache) == 0
