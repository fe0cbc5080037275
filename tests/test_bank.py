import json
from pathlib import Path

import pytest
import requests

from quizcore import bank, config
from quizcore.errors import LoadFailure
from quizcore.models import Question
from tests.conftest import make_question


def _document(*questions: Question) -> dict:
    return {"questions": [question.to_dict() for question in questions]}


def _write(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=None):
        self._payload = payload
        self.status_code = status_code
        self._text = text

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self._text is not None:
            return json.loads(self._text)
        return self._payload


def test_load_from_file(tmp_path: Path) -> None:
    path = _write(tmp_path / "questions.json", _document(make_question(1, "B"), make_question(2, "D")))
    questions = bank.load_question_bank(path)
    assert [q.id for q in questions] == [1, 2]
    assert questions[0].correct_answer == "B"
    assert questions[0].options["A"] == "Option A of 1"


def test_save_then_load(tmp_path: Path) -> None:
    original = [make_question(1, "C"), make_question("q-2", "A")]
    path = tmp_path / "export" / "bank.json"
    bank.save_question_bank(path, original)
    assert bank.load_question_bank(path) == original


def test_load_uses_configured_source(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write(tmp_path / "bank.json", _document(make_question(7)))
    monkeypatch.setattr(config, "QUESTION_BANK_SOURCE", str(path))
    assert [q.id for q in bank.load_question_bank()] == [7]


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(LoadFailure) as excinfo:
        bank.load_question_bank(tmp_path / "missing.json")
    assert excinfo.value.reason == "file not found"
    assert excinfo.value.source.endswith("missing.json")


def test_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(LoadFailure) as excinfo:
        bank.load_question_bank(path)
    assert excinfo.value.reason.startswith("invalid JSON")


@pytest.mark.parametrize(
    "payload",
    [
        {"questions": []},
        {},
        [],
        {"questions": [{"id": 1, "question": "Q", "options": {"A": "x"}, "correctAnswer": "B"}]},
        {"questions": [{"id": 1, "question": "Q", "options": {"E": "x"}, "correctAnswer": "E"}]},
        {"questions": [{"id": 1, "question": "", "options": {"A": "x"}, "correctAnswer": "A"}]},
        {"questions": [{"id": 1, "question": "Q", "options": {}, "correctAnswer": "A"}]},
        {"questions": [{"id": 1, "question": "Q", "options": {"A": "x"}}]},
    ],
)
def test_malformed_banks(tmp_path: Path, payload: object) -> None:
    path = _write(tmp_path / "bank.json", payload)
    with pytest.raises(LoadFailure) as excinfo:
        bank.load_question_bank(path)
    assert excinfo.value.reason.startswith("malformed question bank")


def test_duplicate_ids_rejected() -> None:
    document = _document(make_question(1), make_question(1))
    with pytest.raises(LoadFailure):
        bank.parse_question_bank(document)
    # 1 and "1" collide once ids are used as ledger keys
    document = {"questions": [make_question(1).to_dict(), make_question("1").to_dict()]}
    with pytest.raises(LoadFailure):
        bank.parse_question_bank(document)


def test_load_from_url(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []

    def fake_get(url, timeout=None):
        calls.append((url, timeout))
        return FakeResponse(_document(make_question(3, "C")))

    monkeypatch.setattr(bank.requests, "get", fake_get)
    questions = bank.load_question_bank("https://example.com/questions.json", timeout=5)
    assert [q.id for q in questions] == [3]
    assert calls == [("https://example.com/questions.json", 5)]


def test_url_http_error(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []

    def fake_get(url, timeout=None):
        calls.append(url)
        return FakeResponse(status_code=404)

    monkeypatch.setattr(bank.requests, "get", fake_get)
    with pytest.raises(LoadFailure) as excinfo:
        bank.load_question_bank("http://example.com/questions.json")
    assert "404" in excinfo.value.reason
    # one attempt, no retries
    assert len(calls) == 1


def test_url_connection_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_get(url, timeout=None):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(bank.requests, "get", fake_get)
    with pytest.raises(LoadFailure):
        bank.load_question_bank("http://example.com/questions.json")


def test_url_invalid_json(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(bank.requests, "get", lambda url, timeout=None: FakeResponse(text="<html>"))
    with pytest.raises(LoadFailure) as excinfo:
        bank.load_question_bank("http://example.com/questions.json")
    assert excinfo.value.reason.startswith("invalid JSON")
