"""
RAG API views.

Provides endpoints for:
- Ask endpoint (full RAG with LLM and model fallback)
- Retrieval debug (raw similarity rows)
- Assistant settings (read / upsert)
"""
import logging

from django.conf import settings
from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from apps.rag.config import DEFAULT_SYSTEM_PROMPT, RequestOverrides
from apps.rag.http import json_errors, parse_json, validate
from apps.rag.pipeline import get_pipeline
from apps.rag.router import DEFAULT_MODEL
from apps.rag.schemas import (
    AskRequestSerializer,
    RetrieveRequestSerializer,
    SettingsUpdateSerializer,
)
from apps.rag.settings_store import SettingsStore

logger = logging.getLogger(__name__)


@method_decorator(csrf_exempt, name='dispatch')
class AskView(View):
    """
    POST /api/rag/ask

    Full RAG pipeline: retrieve + LLM generation.

    Request body:
        {
            "message": "O que diz o contrato?",
            "model": "gpt-4",            // optional
            "systemPrompt": "...",       // optional
            "apiKey": "...",             // optional
            "documentId": "<uuid>",      // optional, single-document mode
            "mode": "documents"          // optional, rank whole documents instead of chunks
        }

    Response:
        {
            "reply": "...\\n\\nFontes: contrato.pdf",
            "usedModel": "openai/gpt-4o-mini",
            "fallbackUsed": false,
            "sources": ["contrato.pdf"]
        }
    """

    @method_decorator(json_errors)
    def post(self, request):
        data = validate(AskRequestSerializer, parse_json(request))

        overrides = RequestOverrides(
            api_key=data.get("apiKey"),
            model=data.get("model"),
            system_prompt=data.get("systemPrompt"),
        )
        document_id = data.get("documentId")

        result = get_pipeline().query(
            data["message"],
            overrides=overrides,
            document_id=str(document_id) if document_id else None,
            mode=data["mode"],
        )

        logger.info(
            f"Answered with {result.used_model} "
            f"(fallback={result.fallback_used}, context_chunks={result.context_chunks})"
        )
        return JsonResponse(result.to_dict())


@method_decorator(csrf_exempt, name='dispatch')
class RetrieveView(View):
    """
    POST /api/rag/retrieve

    Embed a query and return the raw similarity rows, without threshold
    filtering. Used to debug retrieval.

    Request body:
        {"query": "...", "matchCount": 8}
    """

    @method_decorator(json_errors)
    def post(self, request):
        data = validate(RetrieveRequestSerializer, parse_json(request))

        rows = get_pipeline().retrieve(data["text"], match_count=data.get("matchCount"))

        return JsonResponse({"ok": True, "count": len(rows), "chunks": rows})


@method_decorator(csrf_exempt, name='dispatch')
class SettingsView(View):
    """
    GET /api/settings
    PUT /api/settings

    The API key is write-only: GET only reports whether one is stored.
    """

    @method_decorator(json_errors)
    def get(self, request):
        stored = SettingsStore().load()
        return JsonResponse({
            "selectedModel": stored.selected_model or DEFAULT_MODEL,
            "systemPrompt": stored.system_prompt or getattr(
                settings, 'DEFAULT_SYSTEM_PROMPT', DEFAULT_SYSTEM_PROMPT
            ),
            "hasApiKey": stored.has_api_key,
            "updatedAt": stored.updated_at,
        })

    @method_decorator(json_errors)
    def put(self, request):
        data = validate(SettingsUpdateSerializer, parse_json(request))

        SettingsStore().save(
            selected_model=data["selectedModel"],
            system_prompt=data["systemPrompt"],
            api_key=data.get("apiKey"),
        )
        return JsonResponse({"success": True})
