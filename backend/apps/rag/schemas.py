"""
Request schemas for the HTTP entry points.

Every body is validated here before any store or provider is touched.
"""
from rest_framework import serializers

from apps.rag.pipeline import MAX_QUESTION_LENGTH, MODE_CHUNKS, RETRIEVAL_MODES


class AskRequestSerializer(serializers.Serializer):
    message = serializers.CharField(max_length=MAX_QUESTION_LENGTH, trim_whitespace=True)
    model = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    systemPrompt = serializers.CharField(required=False, allow_blank=True, allow_null=True, trim_whitespace=False)
    apiKey = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    documentId = serializers.UUIDField(required=False, allow_null=True)
    mode = serializers.ChoiceField(choices=RETRIEVAL_MODES, required=False, default=MODE_CHUNKS)


class RetrieveRequestSerializer(serializers.Serializer):
    query = serializers.CharField(required=False, allow_blank=True)
    message = serializers.CharField(required=False, allow_blank=True)
    matchCount = serializers.IntegerField(required=False, min_value=1, max_value=50)

    def validate(self, attrs):
        text = (attrs.get("query") or attrs.get("message") or "").strip()
        if not text:
            raise serializers.ValidationError({"query": "query is required"})
        attrs["text"] = text
        return attrs


class IngestRequestSerializer(serializers.Serializer):
    fileName = serializers.CharField(max_length=255)
    content = serializers.CharField(required=False, trim_whitespace=False)
    chunks = serializers.ListField(
        child=serializers.CharField(allow_blank=True, trim_whitespace=False),
        required=False,
        allow_empty=False,
    )
    replaceCorpus = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        has_content = "content" in attrs
        has_chunks = "chunks" in attrs
        if has_content == has_chunks:
            raise serializers.ValidationError("Provide exactly one of content or chunks")
        return attrs


class ReindexRequestSerializer(serializers.Serializer):
    id = serializers.UUIDField()


class SettingsUpdateSerializer(serializers.Serializer):
    selectedModel = serializers.CharField(allow_blank=True)
    systemPrompt = serializers.CharField(allow_blank=True, trim_whitespace=False)
    apiKey = serializers.CharField(required=False, allow_blank=True, allow_null=True)
