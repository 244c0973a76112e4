import os
import sys
import threading

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.persistence.kv_store import InMemoryKeyValueStore, JsonFileKeyValueStore, StorageQuotaExceeded
from core.persistence.sizing import estimate_size, serialize


def test_quota_rejects_write_and_keeps_previous_state():
    store = InMemoryKeyValueStore(quota_bytes=20)
    store.set("a", "12345")

    with pytest.raises(StorageQuotaExceeded) as excinfo:
        store.set("b", "x" * 20)

    assert excinfo.value.key == "b"
    assert store.get("b") is None
    assert store.used_bytes() == 6


def test_overwrite_only_counts_the_new_value():
    store = InMemoryKeyValueStore(quota_bytes=10)
    store.set("k", "12345678")
    store.set("k", "123456789")
    assert store.get("k") == "123456789"


def test_delete_missing_key_is_noop():
    store = InMemoryKeyValueStore()
    store.delete("missing")
    assert store.keys() == []


def test_json_file_store_persists_between_instances(tmp_path):
    path = tmp_path / "profile" / "store.json"
    store = JsonFileKeyValueStore(str(path))
    store.set("cache_x", '{"v": "привет"}')
    store.set("other", "1")
    store.delete("other")

    reopened = JsonFileKeyValueStore(str(path))
    assert reopened.keys() == ["cache_x"]
    assert reopened.get("cache_x") == '{"v": "привет"}'


def test_json_file_store_starts_empty_on_corrupt_file(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")

    store = JsonFileKeyValueStore(str(path))
    assert store.keys() == []
    store.set("a", "b")
    assert JsonFileKeyValueStore(str(path)).get("a") == "b"


def test_estimate_size_measures_utf8_bytes():
    assert estimate_size("abc") == len(serialize("abc").encode("utf-8"))
    # Cyrillic characters take two bytes each
    assert estimate_size("жж") == 6


def test_estimate_size_rounds_up_for_unserializable_values():
    value = object()
    assert estimate_size(value) == len(str(value)) * 4


def test_json_file_store_survives_concurrent_writers(tmp_path):
    store = JsonFileKeyValueStore(str(tmp_path / "store.json"))
    errors = []

    def writer(worker):
        try:
            for index in range(200):
                store.set(f"w{worker}_{index % 20}", "x" * index)
                if index % 7 == 0:
                    store.delete(f"w{worker}_{(index + 3) % 20}")
        except Exception as e:  # collected for the assertion below
            errors.append(repr(e))

    threads = [threading.Thread(target=writer, args=(worker,)) for worker in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    reopened = JsonFileKeyValueStore(str(tmp_path / "store.json"))
    assert sorted(reopened.keys()) == sorted(store.keys())
    assert all(reopened.get(key) == store.get(key) for key in store.keys())
