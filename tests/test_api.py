from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from api.app import app
from quizcore import bank, config
from tests.conftest import make_question


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def test_get_questions(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, client: TestClient) -> None:
    path = tmp_path / "questions.json"
    bank.save_question_bank(path, [make_question(1, "B"), make_question(2, "C")])
    monkeypatch.setattr(config, "QUESTION_BANK_SOURCE", str(path))

    response = client.get("/api/questions")
    assert response.status_code == 200
    payload = response.json()
    assert payload["count"] == 2
    assert payload["questions"][0] == {
        "id": 1,
        "question": "Question 1?",
        "options": {key: f"Option {key} of 1" for key in "ABCD"},
        "correctAnswer": "B",
    }


def test_get_questions_unavailable(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, client: TestClient) -> None:
    monkeypatch.setattr(config, "QUESTION_BANK_SOURCE", str(tmp_path / "missing.json"))
    response = client.get("/api/questions")
    assert response.status_code == 503
    assert response.json() == {"detail": "Question bank could not be loaded"}


def test_get_questions_malformed(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, client: TestClient) -> None:
    path = tmp_path / "questions.json"
    path.write_text('{"questions": []}', encoding="utf-8")
    monkeypatch.setattr(config, "QUESTION_BANK_SOURCE", str(path))
    assert client.get("/api/questions").status_code == 503


def test_index_served_when_present(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, client: TestClient) -> None:
    (tmp_path / "index.html").write_text("<h1>Quiz</h1>", encoding="utf-8")
    monkeypatch.setattr(config, "STATIC_DIR", tmp_path)
    response = client.get("/")
    assert response.status_code == 200
    assert "<h1>Quiz</h1>" in response.text


def test_index_missing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, client: TestClient) -> None:
    monkeypatch.setattr(config, "STATIC_DIR", tmp_path / "nothing")
    assert client.get("/").status_code == 404


def test_only_get_is_exposed(client: TestClient) -> None:
    assert client.post("/api/questions", json={}).status_code == 405
