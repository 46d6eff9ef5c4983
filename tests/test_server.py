"""Tests for the HTTP tool server."""
import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch

from mdrag import server
from mdrag.retrieve import DocumentRetriever
from mdrag.tools import EMPTY_DATABASE_MESSAGE, TOOL_NAME


class StubComponents:
    def __init__(self, store, embedder):
        self.store = store
        self.embedder = embedder
        self.retriever = DocumentRetriever(store, embedder)


@pytest.fixture
def components(store, make_embedder):
    return StubComponents(store, make_embedder(default=(1.0, 0.0)))


@pytest.fixture
def client(components):
    return TestClient(server.create_app(components))


def call(client, arguments, name=TOOL_NAME):
    return client.post(f"/tools/{name}/call", json={"arguments": arguments})


class TestToolServer:

    def test_health(self, client, add_document):
        add_document("/notes/a.md", [("one", [1.0, 0.0]), ("two", [0.0, 1.0])])

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "documents": 1, "chunks": 2}

    def test_lists_rag_data(self, client):
        response = client.get("/tools")

        assert response.status_code == 200
        tools = response.json()
        assert [tool["name"] for tool in tools] == ["rag_data"]
        assert "query" in tools[0]["input_schema"]["properties"]

    def test_call_empty_database(self, client):
        response = call(client, {"query": "anything"})

        assert response.status_code == 200
        body = response.json()
        assert body["is_error"] is False
        assert body["content"] == [{"type": "text", "text": EMPTY_DATABASE_MESSAGE}]

    def test_call_returns_formatted_results(self, client, add_document):
        add_document("/notes/keys.md", [("Rotate keys every 90 days.", [1.0, 0.0]), ("Unrelated", [0.0, 1.0])])

        response = call(client, {"query": "key rotation", "top_k": 1})

        text = response.json()["content"][0]["text"]
        assert "Result #1 | Similarity: 1.0000" in text
        assert "File: keys.md" in text
        assert "Result #2" not in text

    def test_invalid_arguments(self, client):
        response = call(client, {"query": "   "})

        assert response.status_code == 422

    def test_unknown_tool(self, client):
        response = call(client, {"query": "q"}, name="other")

        assert response.status_code == 404

    def test_provider_failure_is_tool_error(self, client, components, add_document):
        add_document("/notes/a.md", [("one", [1.0, 0.0])])
        components.embedder.fail_on = {"broken query"}

        response = call(client, {"query": "broken query"})

        assert response.status_code == 200
        body = response.json()
        assert body["is_error"] is True
        assert body["content"][0]["text"].startswith("Error:")


class TestServerMain:

    def test_runs_uvicorn_with_settings(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite://")
        monkeypatch.setenv("SERVER_PORT", "9123")
        monkeypatch.delenv("RERANKER_ENABLED", raising=False)
        from mdrag.config import load_settings

        with patch.object(server, "get_settings", side_effect=load_settings), \
             patch.object(server, "configure_logging"), \
             patch.object(server.uvicorn, "run") as run:
            assert server.main(["--host", "0.0.0.0"]) == 0

        app = run.call_args.args[0]
        assert app.state.components.store.database_url == "sqlite://"
        assert run.call_args.kwargs["host"] == "0.0.0.0"
        assert run.call_args.kwargs["port"] == 9123
