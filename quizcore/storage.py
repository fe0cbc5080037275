"""Key/value persistence for quiz progress, exam state and user stats."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Protocol

from quizcore import config
from quizcore.errors import PersistenceFailure
from quizcore.utils import compact_dump, json_load, write_text_atomic

log = logging.getLogger(__name__)


class StorageKeys:
    PRACTICE_PROGRESS = "quiz_practice_progress"
    EXAM_ANSWERS = "quiz_exam_answers"
    EXAM_QUESTIONS = "quiz_exam_questions"
    EXAM_START_TIME = "quiz_exam_start_time"
    EXAM_TIME_LEFT = "quiz_exam_time_left"
    USER_STATS = "quiz_user_stats"

    EXAM = (EXAM_ANSWERS, EXAM_QUESTIONS, EXAM_START_TIME, EXAM_TIME_LEFT)
    ALL = (PRACTICE_PROGRESS, *EXAM, USER_STATS)


class KeyValueStore(Protocol):
    """Synchronous string store; a missing key reads as None."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


class MemoryStore:
    """In-process store with no durability."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileStore:
    """One file per key; every write lands in a temp file and replaces the old one."""

    suffix = ".json"

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key) or key.startswith("."):
            raise PersistenceFailure("resolve", key, "invalid key")
        return self.directory / f"{key}{self.suffix}"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceFailure("read", key, exc) from exc

    def set(self, key: str, value: str) -> None:
        try:
            write_text_atomic(self._path(key), value)
        except OSError as exc:
            raise PersistenceFailure("write", key, exc) from exc

    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceFailure("remove", key, exc) from exc

    def keys(self) -> list[str]:
        if not self.directory.exists():
            return []
        return sorted(path.stem for path in self.directory.glob(f"*{self.suffix}"))


def create_store(backend: str | None = None) -> KeyValueStore:
    """Build the store named by ``backend`` (defaults to the configured one)."""
    backend = (backend or config.STORAGE_BACKEND).lower()
    if backend == "memory":
        return MemoryStore()
    if backend == "sqlite":
        from quizcore.database import SqlKeyValueStore

        return SqlKeyValueStore(config.DATABASE_URL)
    if backend == "json":
        return JsonFileStore(config.STORAGE_DIR)
    raise ValueError(f"Unknown storage backend: {backend}")


class Storage:
    """
    JSON values on top of a key/value store.

    Reads fall back to the default and writes report False when the store
    fails, so a quiz keeps working without durability.
    """

    def __init__(self, store: KeyValueStore | None = None):
        self.store = store if store is not None else MemoryStore()

    def save(self, key: str, value: object) -> bool:
        try:
            self.store.set(key, compact_dump(value))
            return True
        except (PersistenceFailure, TypeError, ValueError) as exc:
            log.error("Error saving to storage: %s", exc)
            return False

    def load(self, key: str, default: object = None) -> object:
        try:
            raw = self.store.get(key)
        except PersistenceFailure as exc:
            log.error("Error reading from storage: %s", exc)
            return default
        if raw is None:
            return default
        try:
            return json_load(raw)
        except ValueError as exc:
            log.error("Error decoding stored %s: %s", key, exc)
            return default

    def load_raw(self, key: str) -> str | None:
        try:
            return self.store.get(key)
        except PersistenceFailure as exc:
            log.error("Error reading from storage: %s", exc)
            return None

    def save_raw(self, key: str, value: str) -> bool:
        try:
            self.store.set(key, value)
            return True
        except PersistenceFailure as exc:
            log.error("Error saving to storage: %s", exc)
            return False

    def remove(self, key: str) -> bool:
        try:
            self.store.remove(key)
            return True
        except PersistenceFailure as exc:
            log.error("Error removing from storage: %s", exc)
            return False

    def remove_many(self, keys: Iterable[str]) -> bool:
        results = [self.remove(key) for key in keys]
        return all(results)

    def clear_exam_data(self) -> bool:
        return self.remove_many(StorageKeys.EXAM)

    def clear_all(self) -> bool:
        return self.remove_many(StorageKeys.ALL)

    def is_available(self) -> bool:
        check_key = "__storage_test__"
        try:
            self.store.set(check_key, "test")
            self.store.remove(check_key)
            return True
        except PersistenceFailure as exc:
            log.warning("Storage is not available: %s", exc)
            return False

    def size_bytes(self) -> int:
        """Rough size of everything stored: key plus value lengths."""
        total = 0
        try:
            for key in self.store.keys():
                value = self.store.get(key)
                if value is not None:
                    total += len(key) + len(value)
        except PersistenceFailure as exc:
            log.error("Error measuring storage: %s", exc)
        return total


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} bytes"
    if size < 1024 * 1024:
        return f"{size / 1024:.2f} KB"
    return f"{size / (1024 * 1024):.2f} MB"
