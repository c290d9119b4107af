"""Tests for the key-value storage file."""

import json
import os

import pytest

from keyforge.storage import Storage, StorageError


def test_get_missing_file(storage: Storage) -> None:
    assert not os.path.exists(storage.filename)
    assert storage.get("anything") is None


def test_set_and_get(storage: Storage) -> None:
    storage.set("key", "value")
    assert os.path.exists(storage.filename)
    assert storage.get("key") == "value"
    assert storage.get("other") is None


def test_keys_are_independent(storage: Storage) -> None:
    storage.set("a", "1")
    storage.set("b", "2")
    storage.set("a", "3")
    assert storage.get("a") == "3"
    assert storage.get("b") == "2"


def test_file_is_json_object(storage: Storage) -> None:
    storage.set("key", "value")
    with open(storage.filename) as f:
        assert json.load(f) == {"key": "value"}


def test_get_malformed_file_raises(storage: Storage) -> None:
    with open(storage.filename, "w") as f:
        f.write("[1, 2")
    with pytest.raises(ValueError):
        storage.get("key")


def test_get_non_object_raises(storage: Storage) -> None:
    with open(storage.filename, "w") as f:
        f.write("[]")
    with pytest.raises(ValueError):
        storage.get("key")


def test_set_replaces_unreadable_file(storage: Storage) -> None:
    with open(storage.filename, "w") as f:
        f.write("garbage")
    storage.set("key", "value")
    assert storage.get("key") == "value"


def test_set_replaces_deeply_nested_file(storage: Storage) -> None:
    with open(storage.filename, "w") as f:
        f.write("[" * 200000 + "]" * 200000)
    storage.set("key", "value")
    assert storage.get("key") == "value"


@pytest.mark.skipif(os.name != "posix", reason="POSIX permissions only")
def test_owner_only_permissions(storage: Storage) -> None:
    storage.set("key", "value")
    assert oct(os.stat(storage.filename).st_mode)[-3:] == "600"


def test_no_temp_files_left(storage: Storage, tmp_path) -> None:
    storage.set("key", "value")
    storage.set("key", "value2")
    assert sorted(os.listdir(tmp_path)) == ["history.json"]


def test_write_failure_raises_storage_error(tmp_path) -> None:
    storage = Storage(str(tmp_path / "missing-dir" / "history.json"))
    with pytest.raises(StorageError):
        storage.set("key", "value")
