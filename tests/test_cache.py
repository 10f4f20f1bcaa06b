from taicai.cache import MemoryCache, SqliteCache


def test_sqlite_cache_starts_empty(tmp_path):
    assert SqliteCache(str(tmp_path / "cache.sqlite")).get() is None


def test_sqlite_cache_overwrites_single_slot(tmp_path):
    path = str(tmp_path / "nested" / "cache.sqlite")
    cache = SqliteCache(path)
    cache.set({"今彩539": [{"period": "1", "numbers": [1, 2, 3, 4, 5]}]})
    cache.set({"大樂透": [{"period": "9", "numbers": [1, 2, 3, 4, 5, 6, 7]}]})

    payload = SqliteCache(path).get()
    assert list(payload["data"]) == ["大樂透"]
    assert payload["data"]["大樂透"][0]["period"] == "9"
    assert payload["saved_at"]


def test_corrupt_payload_is_ignored(tmp_path):
    cache = SqliteCache(str(tmp_path / "cache.sqlite"))
    cache.set({})
    conn = cache.connect()
    conn.execute("UPDATE live_cache SET payload = '{not json' WHERE id = 1")
    conn.commit()
    conn.close()
    assert cache.get() is None


def test_memory_cache():
    cache = MemoryCache()
    assert cache.get() is None
    cache.set({"3星彩": []})
    assert cache.get()["data"] == {"3星彩": []}
