"""
Tests for the REST API.

The service is injected directly; the lifespan (config, factories, scheduler)
does not run.
"""

import pytest
from fastapi.testclient import TestClient

import app as app_module
from nexmind.config import Config
from nexmind.core.embeddings.hashing import HashEmbedder
from nexmind.core.repositories import ChatRepository, GraphRepository, KeyValueNoteRepository, SuggestionRepository
from nexmind.services.brain_report import BrainReportService
from nexmind.services.chat_service import ChatService
from nexmind.services.nlp_pipeline import NlpPipeline
from nexmind.services.note_service import NoteService


@pytest.fixture
def client(monkeypatch, memory_store):
    service = NoteService(
        notes=KeyValueNoteRepository(memory_store),
        graph_repository=GraphRepository(memory_store),
        suggestions=SuggestionRepository(memory_store),
        pipeline=NlpPipeline(),
        embedder=HashEmbedder(),
        config=Config(),
    )
    monkeypatch.setattr(app_module, "service", service)
    monkeypatch.setattr(app_module, "scheduler", None)
    monkeypatch.setattr(app_module, "chat", ChatService(service, ChatRepository(memory_store)))
    monkeypatch.setattr(app_module, "report", BrainReportService(service))
    return TestClient(app_module.app)


def add(client, text: str) -> list[dict]:
    response = client.post("/notes", json={"text": text})
    assert response.status_code == 200
    return response.json()


@pytest.mark.integration
class TestHealth:
    def test_health(self, client):
        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["service_initialized"] is True
        assert data["llm_configured"] is False
        assert data["embedder"] == "HashEmbedder"
        assert data["storage_backend"] == "file"
        assert data["scheduler_running"] is False

    def test_not_initialized(self, monkeypatch):
        monkeypatch.setattr(app_module, "service", None)
        client = TestClient(app_module.app)

        assert client.get("/health").json()["status"] == "initializing"
        assert client.get("/notes").status_code == 503

    def test_root(self, client):
        assert client.get("/").json()["name"] == "NexMind API"


@pytest.mark.integration
class TestNoteEndpoints:
    """Test note CRUD over HTTP."""

    def test_add_splits_input(self, client):
        notes = add(client, "Maria anrufen, Milch kaufen")

        assert [n["content"] for n in notes] == ["Maria anrufen", "Milch kaufen"]
        assert notes[0]["category"] == "person"
        assert notes[0]["has_embedding"] is True
        assert "embedding" not in notes[0]

    def test_add_empty_text(self, client):
        response = client.post("/notes", json={"text": "   "})

        assert response.status_code == 400

    def test_list_filter_and_search(self, client):
        add(client, "Maria anrufen, Ich muss die Steuer machen")

        assert len(client.get("/notes").json()) == 2
        assert [n["content"] for n in client.get("/notes", params={"category": "task"}).json()] == [
            "Ich muss die Steuer machen"
        ]
        assert [n["content"] for n in client.get("/notes", params={"q": "maria"}).json()] == ["Maria anrufen"]

    def test_get_missing(self, client):
        response = client.get("/notes/nt_missing")

        assert response.status_code == 404
        assert "nt_missing" in response.json()["detail"]

    def test_update(self, client):
        (note,) = add(client, "Milch kaufen")

        response = client.put(f"/notes/{note['id']}", json={"content": "Hafermilch kaufen", "category": "task"})

        assert response.status_code == 200
        data = response.json()
        assert data["content"] == "Hafermilch kaufen"
        assert data["status"] == "open"
        assert data["updated_at"] is not None

    def test_delete(self, client):
        (note,) = add(client, "Milch kaufen")

        assert client.delete(f"/notes/{note['id']}").json() == {"deleted": True, "note_id": note["id"]}
        assert client.delete(f"/notes/{note['id']}").status_code == 404

    def test_similar(self, client):
        (first,) = add(client, "Milch kaufen")
        (second,) = add(client, "Milch kaufen")

        similar = client.get(f"/notes/{first['id']}/similar").json()

        assert [s["note_id"] for s in similar] == [second["id"]]
        assert similar[0]["similarity"] == pytest.approx(1.0)


@pytest.mark.integration
class TestTaskEndpoints:
    def test_patch_task(self, client):
        (task,) = add(client, "Ich muss die Steuer machen")

        response = client.patch(
            f"/notes/{task['id']}/task",
            json={"status": "in_progress", "priority": "low", "due_date": "2025-01-10"},
        )

        data = response.json()
        assert data["status"] == "in_progress"
        assert data["priority"] == "low"
        assert data["due_date"] == "2025-01-10"

        cleared = client.patch(f"/notes/{task['id']}/task", json={"clear_due_date": True}).json()
        assert cleared["due_date"] is None

    def test_patch_non_task(self, client):
        (note,) = add(client, "Maria anrufen")

        response = client.patch(f"/notes/{note['id']}/task", json={"status": "done"})

        assert response.status_code == 400

    def test_views(self, client):
        (task,) = add(client, "Ich muss die Steuer machen")
        client.patch(f"/notes/{task['id']}/task", json={"due_date": "2020-01-01"})

        assert [t["id"] for t in client.get("/tasks").json()] == [task["id"]]
        assert [t["id"] for t in client.get("/tasks", params={"view": "overdue"}).json()] == [task["id"]]
        assert client.get("/tasks", params={"view": "today"}).json() == []
        assert client.get("/tasks", params={"priority": "low"}).json() == []

        client.patch(f"/notes/{task['id']}/task", json={"status": "done"})
        assert client.get("/tasks", params={"view": "open"}).json() == []

    def test_invalid_view(self, client):
        assert client.get("/tasks", params={"view": "someday"}).status_code == 422


@pytest.mark.integration
class TestGraphEndpoints:
    def test_graph_and_rebuild(self, client):
        add(client, "Maria anrufen")

        graph = client.get("/graph").json()
        assert {n["type"] for n in graph["nodes"]} == {"note", "person"}

        stats = client.post("/graph/rebuild").json()
        assert stats["total_nodes"] == 2

    def test_top_entities(self, client):
        add(client, "Maria anrufen")

        assert client.get("/graph/entities/person").json() == [{"label": "Maria", "count": 1}]
        assert client.get("/graph/entities/note").status_code == 400


@pytest.mark.integration
class TestSuggestionEndpoints:
    """Test generating and resolving suggestions over HTTP."""

    def test_generate_accept_merge(self, client):
        add(client, "Milch kaufen")
        add(client, "Milch kaufen")

        generated = client.post("/suggestions/generate").json()
        duplicate = next(s for s in generated if s["type"] == "duplicate")

        accepted = client.post(f"/suggestions/{duplicate['id']}/accept").json()

        assert accepted["status"] == "accepted"
        assert len(client.get("/notes").json()) == 1
        assert client.post(f"/suggestions/{duplicate['id']}/accept").status_code == 400

    def test_list_and_reject(self, client):
        add(client, "Milch")
        client.post("/suggestions/generate")

        (pending,) = client.get("/suggestions").json()
        rejected = client.post(f"/suggestions/{pending['id']}/reject").json()

        assert rejected["status"] == "rejected"
        assert client.get("/suggestions", params={"status": "pending"}).json() == []
        assert len(client.get("/suggestions", params={"status": "rejected"}).json()) == 1
        assert [s["status"] for s in client.get("/suggestions").json()] == ["rejected"]

    def test_unknown_suggestion(self, client):
        assert client.post("/suggestions/sug_missing/accept").status_code == 404

    def test_stats(self, client):
        add(client, "Maria anrufen")

        stats = client.get("/stats").json()

        assert stats["notes"]["total"] == 1
        assert stats["graph"]["nodes"]["person"] == 1


@pytest.mark.integration
class TestClassifyEndpoint:
    def test_keyword_classification(self, client):
        data = client.post("/classify", json={"text": "Idee: vielleicht ein Podcast"}).json()

        assert data["category"] == "idea"
        assert data["confidence"] == 0.8
        assert data["confidences"]["task"] == 0.1
        assert client.get("/notes").json() == []

    def test_empty_text(self, client):
        assert client.post("/classify", json={"text": " "}).status_code == 400


@pytest.mark.integration
class TestChatEndpoints:
    """Test the chat flow over HTTP (keyword interpretation, fixed replies)."""

    def test_message_creates_note(self, client):
        data = client.post("/chat", json={"text": "Idee: vielleicht ein Podcast"}).json()

        assert data["command"]["type"] == "normal"
        assert data["reply"]["content"] == "Tolle Idee! Ich habe sie gespeichert. 💡"
        assert data["reply"]["note_ids"] == [data["notes"][0]["id"]]
        assert data["notes"][0]["category"] == "idea"
        assert len(client.get("/notes").json()) == 1

    def test_query_lists_notes(self, client):
        add(client, "Idee: vielleicht ein Podcast")
        add(client, "Maria anrufen")

        data = client.post("/chat", json={"text": "Zeig mir alle Ideen"}).json()

        assert data["command"]["type"] == "query"
        assert data["command"]["action"] == "show_ideas"
        assert [n["content"] for n in data["notes"]] == ["Idee: vielleicht ein Podcast"]
        assert data["reply"]["note_ids"] == []
        assert len(client.get("/notes").json()) == 2

    def test_history_and_clear(self, client):
        (welcome,) = client.get("/chat").json()
        assert welcome["role"] == "assistant"
        assert welcome["content"].startswith("Hallo! Ich bin NexMind.")

        client.post("/chat", json={"text": "Maria anrufen"})
        history = client.get("/chat").json()
        assert [m["role"] for m in history] == ["assistant", "user", "assistant"]

        assert client.delete("/chat").json() == {"deleted": 3}
        assert len(client.get("/chat").json()) == 1

    def test_empty_message(self, client):
        assert client.post("/chat", json={"text": "  "}).status_code == 400


@pytest.mark.integration
class TestEntitiesEndpoint:
    def test_keyword_entities(self, client):
        data = client.post("/entities", json={"text": "Maria wegen der Miete anrufen"}).json()

        assert "Maria" in data["persons"]
        assert data["projects"] == ["Finanzen"]
        assert client.get("/notes").json() == []

    def test_empty_text(self, client):
        assert client.post("/entities", json={"text": ""}).status_code == 400


@pytest.mark.integration
class TestReportEndpoint:
    def test_report_without_llm(self, client):
        add(client, "Maria anrufen")
        add(client, "Idee: vielleicht ein Podcast")

        data = client.get("/report").json()

        assert data["note_count"] == 2
        assert data["source"] == "fallback"
        assert data["week_summary"] == "Du hattest eine produktive Woche! Weiter so!"
        assert {c["category"] for c in data["top_categories"]} == {"person", "idea"}
        assert "Maria" in data["top_entities"]["persons"]
