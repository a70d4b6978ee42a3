"""
Document ingestion and management views.

Provides endpoints for:
- POST /api/docs/upload - Ingest a document (raw text or pre-split chunks)
- POST /api/docs/reindex - Rebuild the chunks of a stored document
- GET /api/docs - List documents with their chunk counts
- DELETE /api/docs/<id> - Delete a document and its chunks
"""
import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from apps.docs.store import DocumentStore
from apps.rag.config import RequestOverrides
from apps.rag.errors import NotFoundError
from apps.rag.http import json_errors, parse_json, validate
from apps.rag.pipeline import get_pipeline
from apps.rag.schemas import IngestRequestSerializer, ReindexRequestSerializer

logger = logging.getLogger(__name__)


@csrf_exempt
@require_http_methods(["POST"])
@json_errors
def upload_document(request):
    """
    Ingest a document.

    POST /api/docs/upload

    Request body:
        {
            "fileName": "contrato.txt",
            "content": "...",          // or "chunks": ["...", "..."]
            "replaceCorpus": false     // optional, wipes the corpus first
        }

    Returns:
        {
            "success": true,
            "documentId": "uuid",
            "fileName": "contrato.txt",
            "totalChunks": 3,
            "embeddedChunks": 3
        }
    """
    body = parse_json(request)
    data = validate(IngestRequestSerializer, body)

    logger.info(
        f"Ingest request: {data['fileName']} "
        f"({'chunks' if 'chunks' in data else 'content'}, replace_corpus={data['replaceCorpus']})"
    )

    result = get_pipeline().ingest(
        file_name=data["fileName"],
        content=data.get("content"),
        chunks=data.get("chunks"),
        replace_corpus=data["replaceCorpus"],
        overrides=RequestOverrides(api_key=body.get("apiKey")),
    )
    return JsonResponse(result.to_dict(), status=201)


@csrf_exempt
@require_http_methods(["POST"])
@json_errors
def reindex_document(request):
    """
    Re-chunk and re-embed a stored document.

    POST /api/docs/reindex

    Request body:
        {"id": "uuid"}
    """
    data = validate(ReindexRequestSerializer, parse_json(request))

    result = get_pipeline().reindex(str(data["id"]))
    return JsonResponse(result.to_dict())


@csrf_exempt
@require_http_methods(["GET"])
@json_errors
def list_documents(request):
    """
    List all documents.

    GET /api/docs

    Returns:
        {
            "documents": [
                {
                    "id": "uuid",
                    "fileName": "contrato.txt",
                    "chunkCount": 3,
                    "contentLength": 3512,
                    "createdAt": "2024-01-01T00:00:00+00:00"
                }
            ]
        }
    """
    docs_list = [
        {
            'id': doc['id'],
            'fileName': doc['file_name'],
            'chunkCount': doc['chunk_count'],
            'contentLength': len(doc['content'] or ''),
            'createdAt': doc['created_at'],
        }
        for doc in DocumentStore().list_documents()
    ]
    return JsonResponse({'documents': docs_list})


@csrf_exempt
@require_http_methods(["DELETE"])
@json_errors
def delete_document(request, document_id):
    """
    Delete a document. Its chunks are removed with it.

    DELETE /api/docs/<document_id>
    """
    deleted = DocumentStore().delete_document(str(document_id))
    if not deleted:
        raise NotFoundError(f"Document {document_id} not found")

    return JsonResponse({'success': True, 'id': str(document_id)})
