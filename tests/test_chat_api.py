import pytest
from fastapi.testclient import TestClient

from filmchat.app import CHAT_FAILURE_REPLY, CHAT_STATUS_HEADER, build_services, create_app
from filmchat.errors import UpstreamError

from conftest import FakeGemini, FakeTmdb
from test_collection import FIGHT_CLUB


@pytest.fixture
def gemini():
    return FakeGemini(configured=False)


@pytest.fixture
def services(settings, seeded_store, fake_tmdb, gemini):
    return build_services(settings, store=seeded_store, tmdb=fake_tmdb, gemini=gemini)


@pytest.fixture
def client(settings, services):
    return TestClient(create_app(settings, services=services))


def test_empty_message(client):
    response = client.post("/api/chat", json={"message": ""})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "error"
    assert body["error"] == "Message is required"
    assert body["response"]
    assert response.headers[CHAT_STATUS_HEADER] == "error"


def test_missing_message_field(client):
    response = client.post("/api/chat", json={})
    assert response.json()["status"] == "error"


def test_similar_request_end_to_end(client, seeded_store):
    response = client.post("/api/chat", json={"message": "show me something similar to Interstellar"})
    body = response.json()
    assert body["status"] == "completed"
    suggestions = body["movieSuggestions"]
    assert len(suggestions) == 6
    assert {"externalId", "title", "rating", "inCollection"} <= set(suggestions[0])
    assert all(s["rating"] > 6.0 for s in suggestions)
    assert response.headers[CHAT_STATUS_HEADER] == "completed"
    # Background logging runs once the response is sent.
    assert [turn.input for turn in seeded_store.list_chat_turns()] == ["show me something similar to Interstellar"]


def test_generation_failure_keeps_suggestions(settings, seeded_store, fake_tmdb):
    services = build_services(
        settings, store=seeded_store, tmdb=fake_tmdb, gemini=FakeGemini(error=UpstreamError("down"))
    )
    body = TestClient(create_app(settings, services=services)).post(
        "/api/chat", json={"message": "films like Interstellar"}
    ).json()
    assert body["status"] == "completed"
    assert body["movieSuggestions"]


def test_pipeline_crash_returns_conversational_error(client, services, monkeypatch):
    def boom(message):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(services.pipeline, "handle_message", boom)
    response = client.post("/api/chat", json={"message": "hi"})
    assert response.status_code == 200
    assert response.json()["response"] == CHAT_FAILURE_REPLY
    assert response.json()["status"] == "error"


def test_list_movies(client):
    body = client.get("/api/movies").json()
    assert body["total"] == 4
    assert body["results"][0]["title"] == "Quiet Drama"


def test_search_movies(client):
    assert client.get("/api/movies/search").status_code == 400
    body = client.get("/api/movies/search", params={"query": "Interstellar"}).json()
    assert body["results"][0]["id"] == 157336
    assert body["total_results"] == 1


def test_search_movies_unconfigured(settings, seeded_store):
    services = build_services(settings, store=seeded_store, tmdb=FakeTmdb(configured=False), gemini=FakeGemini())
    response = TestClient(create_app(settings, services=services)).get(
        "/api/movies/search", params={"query": "Heat"}
    )
    assert response.status_code == 503


def test_check_status(client):
    body = client.post("/api/movies/check-status", json={"tmdbIds": [157336, 42]}).json()
    assert body == {"success": True, "statusMap": {"157336": True, "42": False}}
    assert client.post("/api/movies/check-status", json={}).status_code == 400


def test_add_from_tmdb(client, fake_tmdb):
    fake_tmdb.details[550] = FIGHT_CLUB
    first = client.post("/api/movies/add-from-tmdb", json={"tmdbId": 550}).json()
    assert first["success"] is True
    assert first["movie"]["title"] == "Fight Club"

    second = client.post("/api/movies/add-from-tmdb", json={"tmdbId": 550}).json()
    assert second["success"] is False
    assert second["alreadyExists"] is True

    assert client.post("/api/movies/add-from-tmdb", json={"tmdbId": 404}).status_code == 404
    assert client.post("/api/movies/add-from-tmdb", json={}).status_code == 400


def test_movie_details(client):
    body = client.get("/api/movies/157336/details").json()
    assert body["success"] is True
    assert body["movie"]["personal_note"] == "Bring tissues"
    assert len(body["movie"]["cast"]) == 10
    assert client.get("/api/movies/unknown/details").status_code == 404


def test_delete_movie(client):
    response = client.delete("/api/movies/787699")
    assert response.json()["deletedMovie"]["title"] == "Fresh"
    assert client.delete("/api/movies/787699").status_code == 404


@pytest.mark.parametrize(
    "kwargs",
    [
        {"json": {"message": 42}},
        {"json": ["not", "an", "object"]},
        {"content": b"not json", "headers": {"Content-Type": "application/json"}},
    ],
)
def test_malformed_chat_body_gets_conversational_error(client, kwargs):
    response = client.post("/api/chat", **kwargs)
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "error"
    assert body["response"].startswith("Please ask me about movies!")
    assert body["error"]
    assert response.headers[CHAT_STATUS_HEADER] == "error"


def test_other_routes_keep_validation_errors(client):
    assert client.post("/api/movies/check-status", json={"tmdbIds": "nope"}).status_code == 422


def test_find_something_similar_request(client):
    body = client.post("/api/chat", json={"message": "Find something similar to Interstellar"}).json()
    assert body["status"] == "completed"
    assert [s["title"] for s in body["movieSuggestions"]][:2] == ["Gravity", "The Martian"]


def test_failing_tmdb_without_generation_answers_from_catalog(client, fake_tmdb):
    fake_tmdb.failing = {"search", "similar"}
    response = client.post("/api/chat", json={"message": "Find something similar to Interstellar"})
    body = response.json()
    assert response.status_code == 200
    assert body["status"] == "completed"
    assert "movieSuggestions" not in body
    assert body["response"].startswith("I have 4 movies in the collection!")
