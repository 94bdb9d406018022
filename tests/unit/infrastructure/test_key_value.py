from __future__ import annotations

import os
import time

import pytest

from infrastructure.storage.key_value import FileLock, InMemoryKeyValueStore, JsonFileKeyValueStore
from thermacore.domain.exceptions import RepositoryError


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryKeyValueStore()
    return JsonFileKeyValueStore(str(tmp_path / "kv"))


def test_missing_key_returns_none(store):
    assert store.get("absent") is None


def test_set_replaces_value(store):
    store.set("thermacore-settings", '{"volume": 10}')
    store.set("thermacore-settings", '{"volume": 20}')
    assert store.get("thermacore-settings") == '{"volume": 20}'


def test_delete(store):
    store.set("k", "v")
    store.delete("k")
    store.delete("k")
    assert store.get("k") is None


def test_file_store_survives_new_instance(tmp_path):
    directory = str(tmp_path / "kv")
    JsonFileKeyValueStore(directory).set("unresolvedNotifications", "[]")
    assert JsonFileKeyValueStore(directory).get("unresolvedNotifications") == "[]"


def test_file_store_sanitises_keys(tmp_path):
    store = JsonFileKeyValueStore(str(tmp_path))
    store.set("../escape/attempt", "x")
    assert store.get("../escape/attempt") == "x"
    assert sorted(os.listdir(tmp_path)) == [".._escape_attempt.json"]


def test_file_store_leaves_no_temp_or_lock_files(tmp_path):
    store = JsonFileKeyValueStore(str(tmp_path))
    store.set("a", "1")
    assert os.listdir(tmp_path) == ["a.json"]


def test_file_lock_times_out(tmp_path):
    path = str(tmp_path / "x.lock")
    with FileLock(path):
        assert FileLock(path, timeout=0.05, retry=0.01).acquire() is False
    assert not os.path.exists(path)


def test_read_while_writer_holds_lock(tmp_path):
    store = JsonFileKeyValueStore(str(tmp_path), lock_timeout=0.05)
    store.set("a", "1")
    with FileLock(os.path.join(str(tmp_path), "a.json.lock")):
        assert store.get("a") == "1"


def test_leftover_lock_file_is_broken_once_stale(tmp_path):
    store = JsonFileKeyValueStore(str(tmp_path), lock_timeout=0.05, stale_lock_after=10)
    store.set("a", "1")
    lock_path = os.path.join(str(tmp_path), "a.json.lock")
    with open(lock_path, "w"):
        pass
    past = time.time() - 60
    os.utime(lock_path, (past, past))

    assert store.get("a") == "1"
    store.set("a", "2")
    assert store.get("a") == "2"
    assert not os.path.exists(lock_path)


def test_fresh_lock_file_is_respected(tmp_path):
    path = str(tmp_path / "x.lock")
    with open(path, "w"):
        pass
    assert FileLock(path, timeout=0.05, retry=0.01, stale_after=60).acquire() is False
    assert os.path.exists(path)


def test_in_memory_keys():
    store = InMemoryKeyValueStore({"b": "2", "a": "1"})
    assert store.keys() == ["a", "b"]


def test_write_under_held_lock_raises_repository_error(tmp_path):
    store = JsonFileKeyValueStore(str(tmp_path), lock_timeout=0.05)
    with FileLock(os.path.join(str(tmp_path), "a.json.lock")):
        with pytest.raises(RepositoryError):
            store.set("a", "1")
    assert store.get("a") is None
