"""
Append-only transcript store.
"""
import logging
from typing import Any, Dict, List, Optional

from apps.conversations.models import Conversation, Message
from apps.docs.store import store_operation

logger = logging.getLogger(__name__)


class ConversationStore:

    @store_operation
    def create_conversation(self, platform: str = 'web', phone_number: Optional[str] = None) -> str:
        conversation = Conversation.objects.create(
            platform=platform or 'web',
            phone_number=phone_number or None,
        )
        logger.info(f"Started conversation {conversation.id} on {conversation.platform}")
        return str(conversation.id)

    @store_operation
    def conversation_exists(self, conversation_id: str) -> bool:
        return Conversation.objects.filter(id=conversation_id).exists()

    @store_operation
    def append_message(self, conversation_id: str, role: str, content: str) -> str:
        message = Message.objects.create(
            conversation_id=conversation_id,
            role=role,
            content=content,
        )
        return str(message.id)

    @store_operation
    def list_messages(self, conversation_id: str) -> List[Dict[str, Any]]:
        """Messages of a conversation, oldest first."""
        rows = (
            Message.objects
            .filter(conversation_id=conversation_id)
            .order_by('created_at')
            .values('id', 'conversation_id', 'role', 'content', 'created_at')
        )
        return [
            {
                "id": str(row['id']),
                "conversation_id": str(row['conversation_id']),
                "role": row['role'],
                "content": row['content'],
                "created_at": row['created_at'].isoformat() if row['created_at'] else None,
            }
            for row in rows
        ]
