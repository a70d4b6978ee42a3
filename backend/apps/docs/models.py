"""
Document model for ragdesk.

A document holds the full normalized text that was ingested and a vector
over the whole text, used for whole-document similarity. Its chunks live
in apps.indexing.
"""
import uuid
from django.db import models
from pgvector.django import VectorField

# Must match the embedding provider's output dimension
EMBEDDING_DIMENSIONS = 1536


class Document(models.Model):
    """
    An ingested document.

    Content is immutable once stored; a changed document is replaced by
    delete + reinsert, never edited in place.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    file_name = models.CharField(
        max_length=255,
        help_text="Original file name"
    )

    content = models.TextField(
        help_text="Full normalized text (the concatenation of its chunks)"
    )

    embedding = VectorField(
        dimensions=EMBEDDING_DIMENSIONS,
        null=True,
        blank=True,
        help_text="Vector over the whole document"
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'documents'
        ordering = ['-created_at']

    def __str__(self):
        return self.file_name
