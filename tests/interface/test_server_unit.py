from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from leitbox.application.config import AppConfig
from leitbox.application.factory import build_engine
from leitbox.consts import VERSION
from leitbox.infrastructure.adapters.storage import InMemoryCardStorage
from leitbox.server import app, get_engine

DAY_ONE = {
    "dayNumber": 1,
    "sections": [
        {
            "id": "anki-a",
            "type": "anki",
            "title": "Anki Review",
            "sentences": ["I start now. -> Ich beginne jetzt.", "I learn every day. -> Ich lerne jeden Tag."],
            "reps": 1,
            "duration": 600,
        }
    ],
}


@pytest.fixture
def engine(mock_home):
    config = AppConfig(storage_backend="memory", analytics_backend="none")
    return build_engine(config, storage=InMemoryCardStorage())


@pytest.fixture
def client(engine):
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == VERSION


def test_get_version(client):
    response = client.get("/version")
    assert response.status_code == 200
    assert response.json() == {"version": VERSION}


def test_ensure_day_then_list(client):
    response = client.post("/days/1/ensure", json=DAY_ONE)
    assert response.status_code == 200
    assert response.json()["count"] == 2

    again = client.post("/days/1/ensure", json=DAY_ONE)
    assert again.json()["count"] == 2

    cards = client.get("/cards").json()
    assert [card["id"] for card in cards] == ["d1:anki-a:0", "d1:anki-a:1"]
    assert cards[0]["prompt"] == "I start now."
    assert cards[0]["box"] == 1


def test_ensure_day_path_must_match_body(client):
    response = client.post("/days/2/ensure", json=DAY_ONE)

    assert response.status_code == 400
    assert "does not match" in response.json()["detail"]
    assert client.get("/cards").json() == []


def test_ensure_day_rejects_bad_content(client):
    bad = {**DAY_ONE, "sections": [{**DAY_ONE["sections"][0], "type": "karaoke"}]}
    response = client.post("/days/1/ensure", json=bad)
    assert response.status_code == 422


def test_review_card(client):
    response = client.post(
        "/cards/review",
        json={
            "dayNumber": 1,
            "sectionId": "anki-a",
            "sentenceIndex": 0,
            "sentence": "I start now. -> Ich beginne jetzt.",
            "grade": "easy",
            "now": "2026-02-19T10:00:00",
        },
    )

    assert response.status_code == 200
    card = response.json()
    assert card["id"] == "d1:anki-a:0"
    assert card["box"] == 3
    assert card["dueDate"] == "2026-02-26"
    assert card["reviewCount"] == 1
    assert card["successCount"] == 1
    assert card["lastGrade"] == "easy"


def test_review_rejects_unknown_grade(client):
    response = client.post(
        "/cards/review",
        json={"dayNumber": 1, "sectionId": "anki-a", "sentenceIndex": 0, "sentence": "a -> b", "grade": "hard"},
    )
    assert response.status_code == 422


def test_review_rejects_blank_sentence(client):
    response = client.post(
        "/cards/review",
        json={"dayNumber": 1, "sectionId": "anki-a", "sentenceIndex": 0, "sentence": "   ", "grade": "good"},
    )
    assert response.status_code == 400
    assert "no content" in response.json()["detail"]


def test_review_fail(client, engine):
    engine.lifecycle.review_card = AsyncMock(side_effect=Exception("Boom"))

    response = client.post(
        "/cards/review",
        json={"dayNumber": 1, "sectionId": "anki-a", "sentenceIndex": 0, "sentence": "a -> b", "grade": "good"},
    )

    assert response.status_code == 500
    assert "Boom" in response.json()["detail"]


def test_due_cards(client):
    client.post("/days/1/ensure", json=DAY_ONE)

    response = client.get("/cards/due", params={"date": "2100-01-01", "cap": 1})

    assert response.status_code == 200
    assert [card["id"] for card in response.json()] == ["d1:anki-a:0"]

    assert client.get("/cards/due", params={"date": "2000-01-01"}).json() == []


def test_micro_review(client):
    client.post("/days/1/ensure", json=DAY_ONE)

    response = client.get("/micro-review", params={"current_day": 31})

    assert response.status_code == 200
    data = response.json()
    assert data["source"] == "previous_day"
    assert len(data["cards"]) == 2
    assert data["memorySentences"] == ["Ich beginne jetzt.", "Ich lerne jeden Tag."]


def test_micro_review_nothing_eligible(client):
    client.post("/days/1/ensure", json=DAY_ONE)
    data = client.get("/micro-review", params={"current_day": 2}).json()
    assert data == {"cards": [], "memorySentences": [], "source": "none"}


def test_stats(client):
    client.post("/days/1/ensure", json=DAY_ONE)
    client.post(
        "/cards/review",
        json={"dayNumber": 1, "sectionId": "anki-a", "sentenceIndex": 1, "sentence": "x -> y", "grade": "again"},
    )

    response = client.get("/stats", params={"date": "2100-01-01"})

    assert response.status_code == 200
    data = response.json()
    assert data["total_cards"] == 2
    assert data["due_today"] == 2
    assert data["total_reviews"] == 1
    assert data["accuracy_percent"] == 0
    assert data["box_counts"] == {"1": 2}


def test_shutdown_closes_analytics(engine, monkeypatch):
    engine.lifecycle.close = AsyncMock()
    monkeypatch.setattr("leitbox.server._engine", engine)

    with TestClient(app):
        pass

    engine.lifecycle.close.assert_awaited_once()
