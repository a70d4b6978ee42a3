"""
Request schemas for the transcript endpoints.
"""
from rest_framework import serializers

from apps.conversations.models import MessageRole


class ConversationCreateSerializer(serializers.Serializer):
    platform = serializers.CharField(required=False, allow_blank=True, max_length=50, default='web')
    phoneNumber = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=50)


class MessageCreateSerializer(serializers.Serializer):
    conversationId = serializers.UUIDField()
    role = serializers.ChoiceField(choices=MessageRole.values)
    content = serializers.CharField(trim_whitespace=False)

    def validate_content(self, value):
        if not value.strip():
            raise serializers.ValidationError("content is required")
        return value
