from pathlib import Path

import pytest

from quizcore import config, storage as storage_module
from quizcore.database import SqlKeyValueStore
from quizcore.errors import PersistenceFailure
from quizcore.storage import JsonFileStore, MemoryStore, Storage, StorageKeys


class BrokenStore:
    def get(self, key: str) -> str | None:
        raise PersistenceFailure("read", key, "broken")

    def set(self, key: str, value: str) -> None:
        raise PersistenceFailure("write", key, "broken")

    def remove(self, key: str) -> None:
        raise PersistenceFailure("remove", key, "broken")

    def keys(self) -> list[str]:
        raise PersistenceFailure("list", "*", "broken")


def _exercise(store: Storage) -> None:
    assert store.load("missing", {"default": True}) == {"default": True}
    assert store.save("answers", {"1": "A"})
    assert store.load("answers") == {"1": "A"}
    assert store.save("answers", {"1": "B", "2": "C"})
    assert store.load("answers") == {"1": "B", "2": "C"}
    assert store.remove("answers")
    assert store.load("answers") is None


def test_memory_storage() -> None:
    _exercise(Storage(MemoryStore()))


def test_json_file_storage(tmp_path: Path) -> None:
    _exercise(Storage(JsonFileStore(tmp_path / "storage")))


def test_sqlite_storage(tmp_path: Path) -> None:
    store = SqlKeyValueStore(f"sqlite:///{tmp_path / 'quiz.db'}")
    try:
        _exercise(Storage(store))
        store.set("a", "1")
        store.set("b", "2")
        assert sorted(store.keys()) == ["a", "b"]
    finally:
        store.dispose()


def test_sqlite_storage_survives_reopen(tmp_path: Path) -> None:
    url = f"sqlite:///{tmp_path / 'quiz.db'}"
    first = SqlKeyValueStore(url)
    Storage(first).save(StorageKeys.USER_STATS, {"totalExams": 3})
    first.dispose()

    second = SqlKeyValueStore(url)
    try:
        assert Storage(second).load(StorageKeys.USER_STATS) == {"totalExams": 3}
    finally:
        second.dispose()


def test_json_file_store_writes_one_file_per_key(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path)
    store.set("quiz_exam_answers", '{"1":"A"}')
    assert (tmp_path / "quiz_exam_answers.json").read_text(encoding="utf-8") == '{"1":"A"}'
    assert store.keys() == ["quiz_exam_answers"]
    assert JsonFileStore(tmp_path / "missing").keys() == []


def test_json_file_store_rejects_unsafe_keys(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path)
    with pytest.raises(PersistenceFailure):
        store.set("../escape", "x")
    assert Storage(store).save("../escape", "x") is False


def test_storage_falls_back_when_store_fails() -> None:
    broken = Storage(BrokenStore())
    assert broken.save("k", 1) is False
    assert broken.load("k", "fallback") == "fallback"
    assert broken.load_raw("k") is None
    assert broken.save_raw("k", "v") is False
    assert broken.remove("k") is False
    assert broken.is_available() is False
    assert broken.size_bytes() == 0


def test_load_corrupt_value_returns_default() -> None:
    store = Storage(MemoryStore({"k": "{not json"}))
    assert store.load("k", []) == []


def test_save_unserializable_value_returns_false() -> None:
    assert Storage().save("k", object()) is False


def test_clear_exam_data_keeps_other_keys(storage: Storage) -> None:
    for key in StorageKeys.ALL:
        storage.save(key, 1)
    assert storage.clear_exam_data()
    assert storage.load(StorageKeys.PRACTICE_PROGRESS) == 1
    assert storage.load(StorageKeys.USER_STATS) == 1
    assert all(storage.load(key) is None for key in StorageKeys.EXAM)

    storage.clear_all()
    assert storage.store.keys() == []


def test_availability_and_size(storage: Storage) -> None:
    assert storage.is_available()
    assert storage.store.keys() == []
    storage.save_raw("ab", "1234")
    assert storage.size_bytes() == 6


@pytest.mark.parametrize(
    ("size", "text"),
    [(10, "10 bytes"), (2048, "2.00 KB"), (3 * 1024 * 1024, "3.00 MB")],
)
def test_format_size(size: int, text: str) -> None:
    assert storage_module.format_size(size) == text


def test_create_store(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "STORAGE_DIR", tmp_path / "storage")
    monkeypatch.setattr(config, "DATABASE_URL", f"sqlite:///{tmp_path / 'kv.db'}")

    assert isinstance(storage_module.create_store("memory"), MemoryStore)
    json_store = storage_module.create_store("JSON")
    assert isinstance(json_store, JsonFileStore)
    assert json_store.directory == tmp_path / "storage"
    sql_store = storage_module.create_store("sqlite")
    assert isinstance(sql_store, SqlKeyValueStore)
    sql_store.dispose()

    monkeypatch.setattr(config, "STORAGE_BACKEND", "memory")
    assert isinstance(storage_module.create_store(), MemoryStore)
    with pytest.raises(ValueError):
        storage_module.create_store("redis")


def test_json_file_store_undecodable_bytes(tmp_path: Path) -> None:
    (tmp_path / "quiz_practice_progress.json").write_bytes(b'{"1":"\xff"}')
    store = JsonFileStore(tmp_path)
    with pytest.raises(PersistenceFailure):
        store.get(StorageKeys.PRACTICE_PROGRESS)

    storage = Storage(store)
    assert storage.load_raw(StorageKeys.PRACTICE_PROGRESS) is None
    assert storage.load(StorageKeys.PRACTICE_PROGRESS, {}) == {}
    assert storage.size_bytes() == 0
