"""
Tests for the HTTP endpoints.

The pipeline and stores are patched, so these tests cover request
validation, response shapes and error-to-status mapping only.
"""
import json
from unittest.mock import MagicMock, patch

import pytest
from django.test import Client

from apps.rag.errors import (
    MissingCredentialsError,
    NotFoundError,
    ProviderStatusError,
    StoreError,
)
from apps.rag.pipeline import IngestResult, QueryResult
from apps.rag.settings_store import PersistedSettings


DOC_ID = "3f2b8c1e-7d4a-4e8b-9c0d-1a2b3c4d5e6f"


@pytest.fixture
def client():
    return Client()


def post_json(client, url, body):
    return client.post(url, data=json.dumps(body), content_type="application/json")


def query_result(**overrides):
    values = dict(
        reply="Resposta\n\nFontes: a.txt",
        used_model="openai/gpt-4o-mini",
        fallback_used=False,
        sources=["a.txt"],
        context_chunks=1,
    )
    values.update(overrides)
    return QueryResult(**values)


# ============================================================================
# Ask
# ============================================================================

class TestAskView:
    """Tests for POST /api/rag/ask."""

    @patch('apps.rag.views.get_pipeline')
    def test_ask_success(self, mock_get_pipeline, client):
        pipeline = mock_get_pipeline.return_value
        pipeline.query.return_value = query_result()

        response = post_json(client, "/api/rag/ask", {
            "message": "Qual o prazo?",
            "model": "gpt-4",
            "documentId": DOC_ID,
        })

        assert response.status_code == 200
        assert response.json() == {
            "reply": "Resposta\n\nFontes: a.txt",
            "usedModel": "openai/gpt-4o-mini",
            "fallbackUsed": False,
            "sources": ["a.txt"],
        }
        args, kwargs = pipeline.query.call_args
        assert args[0] == "Qual o prazo?"
        assert kwargs["overrides"].model == "gpt-4"
        assert kwargs["document_id"] == DOC_ID
        assert kwargs["mode"] == "chunks"

    @patch('apps.rag.views.get_pipeline')
    def test_ask_document_mode(self, mock_get_pipeline, client):
        pipeline = mock_get_pipeline.return_value
        pipeline.query.return_value = query_result()

        response = post_json(client, "/api/rag/ask", {"message": "Resumo?", "mode": "documents"})

        assert response.status_code == 200
        assert pipeline.query.call_args.kwargs["mode"] == "documents"

    @pytest.mark.parametrize("body", [
        {},
        {"message": ""},
        {"message": "   "},
        {"message": "x" * 4001},
        {"message": "ok", "documentId": "not-a-uuid"},
        {"message": "ok", "mode": "paragraphs"},
    ])
    @patch('apps.rag.views.get_pipeline')
    def test_invalid_body(self, mock_get_pipeline, client, body):
        """Schema failures are 400s and never reach the pipeline."""
        response = post_json(client, "/api/rag/ask", body)

        assert response.status_code == 400
        assert response.json()["kind"] == "validation"
        mock_get_pipeline.assert_not_called()

    @patch('apps.rag.views.get_pipeline')
    def test_invalid_json(self, mock_get_pipeline, client):
        response = client.post("/api/rag/ask", data="{not json", content_type="application/json")

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid JSON"

    @patch('apps.rag.views.get_pipeline')
    def test_provider_status_is_passed_through(self, mock_get_pipeline, client):
        mock_get_pipeline.return_value.query.side_effect = ProviderStatusError(
            "Completion provider failed (429)", status_code=429, detail="rate limited"
        )

        response = post_json(client, "/api/rag/ask", {"message": "oi"})

        assert response.status_code == 429
        assert response.json() == {
            "error": "Completion provider failed (429)",
            "kind": "provider_status",
            "detail": "rate limited",
            "status": 429,
        }

    @patch('apps.rag.views.get_pipeline')
    def test_missing_credentials(self, mock_get_pipeline, client):
        mock_get_pipeline.return_value.query.side_effect = MissingCredentialsError("OPEN_ROUTER_API_KEY missing")

        response = post_json(client, "/api/rag/ask", {"message": "oi"})

        assert response.status_code == 401
        assert response.json()["kind"] == "configuration"

    @patch('apps.rag.views.get_pipeline')
    def test_unexpected_error_is_500(self, mock_get_pipeline, client):
        mock_get_pipeline.return_value.query.side_effect = RuntimeError("boom")

        response = post_json(client, "/api/rag/ask", {"message": "oi"})

        assert response.status_code == 500
        assert "boom" not in response.content.decode()

    def test_get_not_allowed(self, client):
        assert client.get("/api/rag/ask").status_code == 405


class TestRetrieveView:
    """Tests for POST /api/rag/retrieve."""

    @patch('apps.rag.views.get_pipeline')
    def test_returns_raw_rows(self, mock_get_pipeline, client):
        rows = [{"file_name": "a.txt", "content": "x", "similarity": 0.05}]
        mock_get_pipeline.return_value.retrieve.return_value = rows

        response = post_json(client, "/api/rag/retrieve", {"message": "consulta", "matchCount": 3})

        assert response.status_code == 200
        assert response.json() == {"ok": True, "count": 1, "chunks": rows}
        mock_get_pipeline.return_value.retrieve.assert_called_once_with("consulta", match_count=3)

    @pytest.mark.parametrize("body", [{}, {"query": "  "}, {"query": "x", "matchCount": 0}])
    @patch('apps.rag.views.get_pipeline')
    def test_invalid_body(self, mock_get_pipeline, client, body):
        response = post_json(client, "/api/rag/retrieve", body)

        assert response.status_code == 400
        mock_get_pipeline.assert_not_called()


class TestSettingsView:
    """Tests for GET/PUT /api/settings."""

    @patch('apps.rag.views.SettingsStore')
    def test_get_never_returns_key(self, mock_store_class, client):
        mock_store_class.return_value.load.return_value = PersistedSettings(
            api_key="sk-secret", selected_model="", system_prompt="",
        )

        response = client.get("/api/settings")

        assert response.status_code == 200
        data = response.json()
        assert data["hasApiKey"] is True
        assert data["selectedModel"] == "openai/gpt-4o-mini"
        assert data["systemPrompt"]
        assert "sk-secret" not in response.content.decode()

    @patch('apps.rag.views.SettingsStore')
    def test_put_saves(self, mock_store_class, client):
        response = client.put(
            "/api/settings",
            data=json.dumps({"selectedModel": "claude", "systemPrompt": "Seja breve.", "apiKey": "sk-new"}),
            content_type="application/json",
        )

        assert response.status_code == 200
        mock_store_class.return_value.save.assert_called_once_with(
            selected_model="claude", system_prompt="Seja breve.", api_key="sk-new",
        )

    @patch('apps.rag.views.SettingsStore')
    def test_put_requires_fields(self, mock_store_class, client):
        response = client.put("/api/settings", data=json.dumps({}), content_type="application/json")

        assert response.status_code == 400
        mock_store_class.return_value.save.assert_not_called()

    @patch('apps.rag.views.SettingsStore')
    def test_store_failure(self, mock_store_class, client):
        mock_store_class.return_value.load.side_effect = StoreError("Failed to read settings")

        response = client.get("/api/settings")

        assert response.status_code == 500
        assert response.json()["kind"] == "store"


# ============================================================================
# Documents
# ============================================================================

class TestDocumentViews:
    """Tests for the /api/docs endpoints."""

    @patch('apps.docs.views.get_pipeline')
    def test_upload_content(self, mock_get_pipeline, client):
        mock_get_pipeline.return_value.ingest.return_value = IngestResult(
            document_id=DOC_ID, file_name="a.txt", total_chunks=2, embedded_chunks=2,
        )

        response = post_json(client, "/api/docs/upload", {"fileName": "a.txt", "content": "texto"})

        assert response.status_code == 201
        assert response.json()["documentId"] == DOC_ID
        kwargs = mock_get_pipeline.return_value.ingest.call_args.kwargs
        assert kwargs["content"] == "texto"
        assert kwargs["chunks"] is None
        assert kwargs["replace_corpus"] is False

    @patch('apps.docs.views.get_pipeline')
    def test_upload_chunks_with_replace(self, mock_get_pipeline, client):
        mock_get_pipeline.return_value.ingest.return_value = IngestResult(
            document_id=DOC_ID, file_name="a.txt", total_chunks=2, embedded_chunks=2,
        )

        post_json(client, "/api/docs/upload", {
            "fileName": "a.txt", "chunks": ["um", "dois"], "replaceCorpus": True,
        })

        kwargs = mock_get_pipeline.return_value.ingest.call_args.kwargs
        assert kwargs["chunks"] == ["um", "dois"]
        assert kwargs["replace_corpus"] is True

    @pytest.mark.parametrize("body", [
        {"content": "texto"},
        {"fileName": "a.txt"},
        {"fileName": "a.txt", "content": "x", "chunks": ["y"]},
        {"fileName": "a.txt", "chunks": []},
    ])
    @patch('apps.docs.views.get_pipeline')
    def test_upload_invalid(self, mock_get_pipeline, client, body):
        response = post_json(client, "/api/docs/upload", body)

        assert response.status_code == 400
        mock_get_pipeline.assert_not_called()

    @patch('apps.docs.views.get_pipeline')
    def test_reindex(self, mock_get_pipeline, client):
        mock_get_pipeline.return_value.reindex.return_value = IngestResult(
            document_id=DOC_ID, file_name="a.txt", total_chunks=3, embedded_chunks=3,
        )

        response = post_json(client, "/api/docs/reindex", {"id": DOC_ID})

        assert response.status_code == 200
        assert response.json()["totalChunks"] == 3
        mock_get_pipeline.return_value.reindex.assert_called_once_with(DOC_ID)

    @patch('apps.docs.views.get_pipeline')
    def test_reindex_not_found(self, mock_get_pipeline, client):
        mock_get_pipeline.return_value.reindex.side_effect = NotFoundError(f"Document {DOC_ID} not found")

        response = post_json(client, "/api/docs/reindex", {"id": DOC_ID})

        assert response.status_code == 404

    def test_reindex_requires_uuid(self, client):
        assert post_json(client, "/api/docs/reindex", {"id": "abc"}).status_code == 400

    @patch('apps.docs.views.DocumentStore')
    def test_list(self, mock_store_class, client):
        mock_store_class.return_value.list_documents.return_value = [{
            "id": DOC_ID,
            "file_name": "a.txt",
            "content": "texto",
            "chunk_count": 4,
            "created_at": "2024-01-01T00:00:00+00:00",
        }]

        for url in ("/api/docs", "/api/docs/"):
            response = client.get(url)

            assert response.status_code == 200
            assert response.json() == {"documents": [{
                "id": DOC_ID,
                "fileName": "a.txt",
                "chunkCount": 4,
                "contentLength": 5,
                "createdAt": "2024-01-01T00:00:00+00:00",
            }]}

    @patch('apps.docs.views.DocumentStore')
    def test_delete(self, mock_store_class, client):
        mock_store_class.return_value.delete_document.return_value = 3

        response = client.delete(f"/api/docs/{DOC_ID}")

        assert response.status_code == 200
        mock_store_class.return_value.delete_document.assert_called_once_with(DOC_ID)

    @patch('apps.docs.views.DocumentStore')
    def test_delete_missing(self, mock_store_class, client):
        mock_store_class.return_value.delete_document.return_value = 0

        assert client.delete(f"/api/docs/{DOC_ID}").status_code == 404


# ============================================================================
# Conversations and health
# ============================================================================

class TestConversationViews:
    """Tests for /api/conversations and /api/messages."""

    @patch('apps.conversations.views.ConversationStore')
    def test_create_conversation_defaults_to_web(self, mock_store_class, client):
        mock_store_class.return_value.create_conversation.return_value = DOC_ID

        response = post_json(client, "/api/conversations", {})

        assert response.json() == {"id": DOC_ID}
        mock_store_class.return_value.create_conversation.assert_called_once_with(
            platform="web", phone_number=None,
        )

    @patch('apps.conversations.views.ConversationStore')
    def test_append_message(self, mock_store_class, client):
        store = mock_store_class.return_value
        store.conversation_exists.return_value = True
        store.append_message.return_value = "msg-1"

        response = post_json(client, "/api/messages", {
            "conversationId": DOC_ID, "role": "user", "content": "olá",
        })

        assert response.json() == {"id": "msg-1"}
        store.append_message.assert_called_once_with(DOC_ID, "user", "olá")

    @pytest.mark.parametrize("body", [
        {"conversationId": DOC_ID, "role": "robot", "content": "x"},
        {"conversationId": DOC_ID, "role": "user", "content": "   "},
        {"role": "user", "content": "x"},
    ])
    @patch('apps.conversations.views.ConversationStore')
    def test_append_invalid(self, mock_store_class, client, body):
        response = post_json(client, "/api/messages", body)

        assert response.status_code == 400
        mock_store_class.return_value.append_message.assert_not_called()

    @patch('apps.conversations.views.ConversationStore')
    def test_append_unknown_conversation(self, mock_store_class, client):
        mock_store_class.return_value.conversation_exists.return_value = False

        response = post_json(client, "/api/messages", {
            "conversationId": DOC_ID, "role": "user", "content": "olá",
        })

        assert response.status_code == 404

    @patch('apps.conversations.views.ConversationStore')
    def test_list_messages(self, mock_store_class, client):
        mock_store_class.return_value.list_messages.return_value = []

        response = client.get("/api/messages", {"conversationId": DOC_ID})

        assert response.json() == {"messages": []}
        mock_store_class.return_value.list_messages.assert_called_once_with(DOC_ID)

    @pytest.mark.parametrize("params", [{}, {"conversationId": "nope"}])
    def test_list_requires_conversation_id(self, client, params):
        assert client.get("/api/messages", params).status_code == 400


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
