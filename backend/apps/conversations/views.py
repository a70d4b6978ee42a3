"""
Conversation transcript views.

- POST /api/conversations - Start a conversation
- GET /api/messages?conversationId=<id> - Read a transcript
- POST /api/messages - Append a message
"""
import logging
import uuid

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from apps.conversations.schemas import ConversationCreateSerializer, MessageCreateSerializer
from apps.conversations.store import ConversationStore
from apps.rag.errors import NotFoundError, ValidationError
from apps.rag.http import json_errors, parse_json, validate

logger = logging.getLogger(__name__)


@csrf_exempt
@require_http_methods(["POST"])
@json_errors
def create_conversation(request):
    """
    POST /api/conversations

    Request body:
        {"platform": "web", "phoneNumber": null}

    Returns:
        {"id": "uuid"}
    """
    data = validate(ConversationCreateSerializer, parse_json(request))

    conversation_id = ConversationStore().create_conversation(
        platform=data.get("platform") or 'web',
        phone_number=data.get("phoneNumber"),
    )
    return JsonResponse({'id': conversation_id})


@csrf_exempt
@require_http_methods(["GET", "POST"])
@json_errors
def messages(request):
    store = ConversationStore()

    if request.method == "GET":
        raw_id = (request.GET.get('conversationId') or '').strip()
        if not raw_id:
            raise ValidationError("conversationId is required")
        try:
            conversation_id = str(uuid.UUID(raw_id))
        except ValueError:
            raise ValidationError("conversationId must be a UUID")
        return JsonResponse({'messages': store.list_messages(conversation_id)})

    data = validate(MessageCreateSerializer, parse_json(request))
    conversation_id = str(data["conversationId"])

    if not store.conversation_exists(conversation_id):
        raise NotFoundError(f"Conversation {conversation_id} not found")

    message_id = store.append_message(conversation_id, data["role"], data["content"])
    logger.debug(f"Appended {data['role']} message to {conversation_id}")
    return JsonResponse({'id': message_id})
