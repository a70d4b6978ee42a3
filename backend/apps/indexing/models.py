"""
Document chunk model for storing text chunks with embeddings.
"""
import uuid
from django.db import models
from pgvector.django import VectorField

from apps.docs.models import Document, EMBEDDING_DIMENSIONS


class DocumentChunk(models.Model):
    """
    A text chunk from a document with its embedding vector.

    ``chunk_index`` is contiguous and zero-based within a document. Chunks
    are never edited in place: reindexing deletes every chunk of the
    document and inserts a fresh set.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Link to parent document
    document = models.ForeignKey(
        Document,
        on_delete=models.CASCADE,
        related_name='chunks',
        help_text="The source document"
    )

    # Chunk ordering (0-indexed)
    chunk_index = models.PositiveIntegerField(
        help_text="Index of this chunk within the document (0-based)"
    )

    # Chunk text content, including any overlap from the previous chunk
    content = models.TextField(
        help_text="The text content of this chunk"
    )

    embedding = VectorField(
        dimensions=EMBEDDING_DIMENSIONS,
        null=True,
        blank=True,
        help_text="Vector embedding of the chunk"
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'document_chunks'
        ordering = ['document', 'chunk_index']
        constraints = [
            models.UniqueConstraint(
                fields=['document', 'chunk_index'],
                name='unique_document_chunk'
            )
        ]
        indexes = [
            models.Index(fields=['document', 'chunk_index'], name='document_chunk_order_idx'),
        ]

    def __str__(self):
        preview = self.content[:50] + '...' if len(self.content) > 50 else self.content
        return f"Chunk {self.chunk_index} of {self.document.file_name}: {preview}"
