"""
Document store backed by the Django ORM and pgvector.

Persists documents and chunks, and serves the cosine similarity queries
the retrieval pipeline runs. Every database failure surfaces as
StoreError. No transaction spans a document write and its chunk writes:
a failure between them leaves the partial state in place.
"""
import functools
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from django.db import DatabaseError
from django.db.models import Count
from pgvector.django import CosineDistance

from apps.docs.models import Document
from apps.indexing.models import DocumentChunk
from apps.rag.errors import StoreError

logger = logging.getLogger(__name__)


@dataclass
class ChunkRow:
    """A chunk ready to be inserted."""
    chunk_index: int
    content: str
    embedding: List[float]


def store_operation(func):
    """Re-raise database failures as StoreError with the store's message."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DatabaseError as e:
            logger.error(f"Store operation {func.__name__} failed: {e}")
            raise StoreError(f"{func.__name__} failed: {e}", detail=str(e))
    return wrapper


class DocumentStore:
    """Document and chunk persistence plus similarity search."""

    @store_operation
    def insert_document(
        self,
        file_name: str,
        content: str,
        embedding: Optional[List[float]] = None,
    ) -> str:
        """Insert a document row and return its id."""
        document = Document.objects.create(
            file_name=file_name,
            content=content,
            embedding=embedding,
        )
        logger.info(f"Inserted document {document.id} ({file_name})")
        return str(document.id)

    @store_operation
    def get_document(self, document_id: str) -> Optional[Dict[str, Any]]:
        """Return ``{id, file_name, content}`` or None if missing."""
        row = (
            Document.objects
            .filter(id=document_id)
            .values('id', 'file_name', 'content')
            .first()
        )
        if row is None:
            return None
        row['id'] = str(row['id'])
        return row

    @store_operation
    def list_documents(self) -> List[Dict[str, Any]]:
        """All documents, newest first, with their chunk counts."""
        rows = (
            Document.objects
            .annotate(chunk_count=Count('chunks'))
            .values('id', 'file_name', 'content', 'chunk_count', 'created_at')
        )
        return [
            {
                "id": str(row['id']),
                "file_name": row['file_name'],
                "content": row['content'],
                "chunk_count": row['chunk_count'],
                "created_at": row['created_at'].isoformat() if row['created_at'] else None,
            }
            for row in rows
        ]

    @store_operation
    def delete_document(self, document_id: str) -> int:
        """Delete one document (its chunks cascade). Returns rows deleted."""
        deleted, _ = Document.objects.filter(id=document_id).delete()
        logger.info(f"Deleted document {document_id} ({deleted} rows)")
        return deleted

    @store_operation
    def delete_all_documents(self) -> int:
        deleted, _ = Document.objects.all().delete()
        logger.warning(f"Deleted all documents ({deleted} rows)")
        return deleted

    @store_operation
    def delete_chunks(self, document_id: str) -> int:
        deleted, _ = DocumentChunk.objects.filter(document_id=document_id).delete()
        logger.info(f"Deleted {deleted} chunks of document {document_id}")
        return deleted

    @store_operation
    def delete_all_chunks(self) -> int:
        deleted, _ = DocumentChunk.objects.all().delete()
        logger.warning(f"Deleted all chunks ({deleted} rows)")
        return deleted

    @store_operation
    def insert_chunks(self, document_id: str, rows: Sequence[ChunkRow]) -> int:
        """Insert a fresh set of chunks for a document in one statement."""
        objs = [
            DocumentChunk(
                document_id=document_id,
                chunk_index=row.chunk_index,
                content=row.content,
                embedding=row.embedding,
            )
            for row in rows
        ]
        DocumentChunk.objects.bulk_create(objs)
        logger.info(f"Inserted {len(objs)} chunks for document {document_id}")
        return len(objs)

    @store_operation
    def match_chunks(self, query_embedding: List[float], match_count: int) -> List[Dict[str, Any]]:
        """
        Chunks ranked by cosine similarity to the query, most similar first.

        Each row has ``file_name``, ``content``, ``similarity`` (1 - cosine
        distance), ``document_id`` and ``chunk_index``.
        """
        rows = (
            DocumentChunk.objects
            .filter(embedding__isnull=False)
            .annotate(distance=CosineDistance('embedding', query_embedding))
            .order_by('distance')
            .values('document_id', 'chunk_index', 'content', 'distance', 'document__file_name')
            [:match_count]
        )
        return [
            {
                "document_id": str(row['document_id']),
                "chunk_index": row['chunk_index'],
                "file_name": row['document__file_name'],
                "content": row['content'],
                "similarity": to_similarity(row['distance']),
            }
            for row in rows
        ]

    @store_operation
    def match_documents(self, query_embedding: List[float], match_count: int) -> List[Dict[str, Any]]:
        """Whole documents ranked by cosine similarity, most similar first."""
        rows = (
            Document.objects
            .filter(embedding__isnull=False)
            .annotate(distance=CosineDistance('embedding', query_embedding))
            .order_by('distance')
            .values('id', 'file_name', 'content', 'distance')
            [:match_count]
        )
        return [
            {
                "id": str(row['id']),
                "file_name": row['file_name'],
                "content": row['content'],
                "similarity": to_similarity(row['distance']),
            }
            for row in rows
        ]


def to_similarity(distance) -> Optional[float]:
    """Convert a cosine distance to a similarity score."""
    if distance is None:
        return None
    return 1.0 - float(distance)
