"""
Pipeline coordinator for the two entry flows.

Ingest:  text -> chunker -> bounded embedder -> document store
Query:   question -> embedding -> similarity search -> retriever
         -> model router / completion -> reply + sources footer

Store handles and provider client factories are injected, so the
coordinator holds no shared mutable state between calls.
"""
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from django.conf import settings

from apps.docs.store import ChunkRow, DocumentStore
from apps.indexing.batch import BoundedEmbedder
from apps.indexing.chunker import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    STRATEGY_PARAGRAPH,
    TextChunk,
    chunk_text,
    chunks_from_list,
    normalize_whitespace,
)
from apps.indexing.embedder import EmbeddingClient
from apps.rag.chat import build_messages
from apps.rag.config import PipelineConfig, RequestOverrides, resolve_config
from apps.rag.errors import ConfigurationError, NotFoundError, ValidationError
from apps.rag.llm_client import BaseLLMClient, OpenRouterClient
from apps.rag.retrieval import (
    DEFAULT_MAX_CITED_SOURCES,
    DEFAULT_SIMILARITY_THRESHOLD,
    ContextResult,
    build_context,
    build_document_context,
)
from apps.rag.router import complete_with_fallback
from apps.rag.settings_store import SettingsStore

logger = logging.getLogger(__name__)

MAX_QUESTION_LENGTH = 4000
MIN_REINDEX_CONTENT = 10
DEFAULT_MATCH_COUNT = 8
DEFAULT_DOCUMENT_MATCH_COUNT = 3

MODE_CHUNKS = "chunks"
MODE_DOCUMENTS = "documents"
RETRIEVAL_MODES = (MODE_CHUNKS, MODE_DOCUMENTS)


@dataclass
class PipelineOptions:
    """Tuning knobs for chunking, embedding and retrieval."""
    chunk_strategy: str = STRATEGY_PARAGRAPH
    chunk_size: int = DEFAULT_CHUNK_SIZE
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP
    embed_overlap: bool = True
    embed_concurrency: int = 5
    reindex_max_chunks: int = 20
    match_count: int = DEFAULT_MATCH_COUNT
    document_match_count: int = DEFAULT_DOCUMENT_MATCH_COUNT
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    max_cited_sources: int = DEFAULT_MAX_CITED_SOURCES

    @classmethod
    def from_settings(cls) -> "PipelineOptions":
        return cls(
            chunk_strategy=getattr(settings, 'CHUNK_STRATEGY', STRATEGY_PARAGRAPH),
            chunk_size=getattr(settings, 'CHUNK_SIZE', DEFAULT_CHUNK_SIZE),
            chunk_overlap=getattr(settings, 'CHUNK_OVERLAP', DEFAULT_CHUNK_OVERLAP),
            embed_overlap=getattr(settings, 'EMBED_CHUNK_OVERLAP', True),
            embed_concurrency=getattr(settings, 'EMBED_CONCURRENCY', 5),
            reindex_max_chunks=getattr(settings, 'REINDEX_MAX_CHUNKS', 20),
            match_count=getattr(settings, 'MATCH_COUNT', DEFAULT_MATCH_COUNT),
            document_match_count=getattr(settings, 'DOCUMENT_MATCH_COUNT', DEFAULT_DOCUMENT_MATCH_COUNT),
            similarity_threshold=getattr(settings, 'SIMILARITY_THRESHOLD', DEFAULT_SIMILARITY_THRESHOLD),
            max_cited_sources=getattr(settings, 'MAX_CITED_SOURCES', DEFAULT_MAX_CITED_SOURCES),
        )


@dataclass
class IngestResult:
    document_id: str
    file_name: str
    total_chunks: int
    embedded_chunks: int

    def to_dict(self) -> dict:
        return {
            "success": True,
            "documentId": self.document_id,
            "fileName": self.file_name,
            "totalChunks": self.total_chunks,
            "embeddedChunks": self.embedded_chunks,
        }


@dataclass
class QueryResult:
    reply: str
    used_model: str
    fallback_used: bool
    sources: List[str] = field(default_factory=list)
    context_chunks: int = 0

    def to_dict(self) -> dict:
        return {
            "reply": self.reply,
            "usedModel": self.used_model,
            "fallbackUsed": self.fallback_used,
            "sources": self.sources,
        }


def normalize_question(question: Optional[str]) -> str:
    """
    Trim and validate a user question.

    Raises:
        ValidationError: If the question is empty or too long
    """
    text = (question or "").strip() if isinstance(question, str) else ""
    if not text:
        raise ValidationError("message is required")
    if len(text) > MAX_QUESTION_LENGTH:
        raise ValidationError(f"message too long (max {MAX_QUESTION_LENGTH} characters)")
    return text


def parse_document_id(document_id) -> str:
    """
    Canonical string form of a document id.

    Raises:
        ValidationError: If the id is missing or not a UUID
    """
    if not document_id:
        raise ValidationError("id is required")
    try:
        return str(uuid.UUID(str(document_id)))
    except ValueError:
        raise ValidationError(f"Invalid document id: {document_id}")


class PipelineCoordinator:
    """Composes chunking, embedding, retrieval and routing."""

    def __init__(
        self,
        document_store: Optional[DocumentStore] = None,
        settings_store: Optional[SettingsStore] = None,
        embedding_client_factory: Optional[Callable[[str], Any]] = None,
        llm_client_factory: Optional[Callable[[str], BaseLLMClient]] = None,
        options: Optional[PipelineOptions] = None,
    ):
        self.documents = document_store or DocumentStore()
        self.settings_store = settings_store or SettingsStore()
        self.embedding_client_factory = embedding_client_factory or (
            lambda api_key: EmbeddingClient(api_key=api_key)
        )
        self.llm_client_factory = llm_client_factory or (
            lambda api_key: OpenRouterClient(api_key=api_key)
        )
        self.options = options or PipelineOptions.from_settings()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def resolve(self, overrides: Optional[RequestOverrides] = None) -> PipelineConfig:
        return resolve_config(overrides, self.settings_store.load())

    # ------------------------------------------------------------------
    # Ingest
    # ------------------------------------------------------------------

    def split(self, text: str) -> List[TextChunk]:
        """
        Chunk text with the configured strategy.

        Raises:
            ConfigurationError: If the chunking parameters are invalid
        """
        try:
            return chunk_text(
                text,
                chunk_size=self.options.chunk_size,
                chunk_overlap=self.options.chunk_overlap,
                strategy=self.options.chunk_strategy,
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid chunking configuration: {e}", detail=str(e))

    def _cap(self, chunks: List[TextChunk]) -> List[TextChunk]:
        limit = self.options.reindex_max_chunks
        if limit and len(chunks) > limit:
            logger.warning(f"Reindexing only the first {limit} of {len(chunks)} chunks")
            return chunks[:limit]
        return chunks

    def _embed_chunks(self, client, chunks: List[TextChunk]) -> List[ChunkRow]:
        embedder = BoundedEmbedder(client, self.options.embed_concurrency)
        vectors = embedder.embed_many(
            [c.embedding_input(self.options.embed_overlap) for c in chunks]
        )
        return [
            ChunkRow(chunk_index=c.index, content=c.text, embedding=v)
            for c, v in zip(chunks, vectors)
        ]

    def ingest(
        self,
        file_name: str,
        content: Optional[str] = None,
        chunks: Optional[List[str]] = None,
        replace_corpus: bool = False,
        overrides: Optional[RequestOverrides] = None,
    ) -> IngestResult:
        """
        Ingest one document: chunk, embed, then persist document and chunks.

        Either ``content`` (raw text) or ``chunks`` (pre-split pieces) must
        be given. With ``replace_corpus`` every existing chunk and document
        is deleted first; both deletes complete before any insert.

        Embedding happens before any delete, so a provider failure leaves
        the store untouched. A store failure between the document insert
        and the chunk insert is not rolled back.
        """
        file_name = (file_name or "").strip()
        if not file_name:
            raise ValidationError("fileName is required")
        if (content is None) == (chunks is None):
            raise ValidationError("Provide exactly one of content or chunks")

        if chunks is not None:
            pieces = chunks_from_list(chunks)
            text = "\n\n".join(c.body for c in pieces)
        else:
            text = normalize_whitespace(content)
            pieces = self.split(text)

        if not pieces:
            raise ValidationError("Document has no text content")

        config = self.resolve(overrides)
        client = self.embedding_client_factory(config.api_key)

        document_embedding = client.embed(text)
        rows = self._embed_chunks(client, pieces)

        if replace_corpus:
            self.documents.delete_all_chunks()
            self.documents.delete_all_documents()

        document_id = self.documents.insert_document(file_name, text, document_embedding)
        self.documents.insert_chunks(document_id, rows)

        logger.info(f"Ingested {file_name} as {document_id}: {len(rows)} chunks embedded")
        return IngestResult(
            document_id=document_id,
            file_name=file_name,
            total_chunks=len(pieces),
            embedded_chunks=len(rows),
        )

    def reindex(self, document_id: str) -> IngestResult:
        """
        Rebuild the chunks of a stored document from its content.

        At most ``reindex_max_chunks`` chunks are re-embedded (0 = all).

        Raises:
            ValidationError: If the id is missing or invalid, or the content is too short
            NotFoundError: If the document does not exist
        """
        document_id = parse_document_id(document_id)

        document = self.documents.get_document(document_id)
        if document is None:
            raise NotFoundError(f"Document {document_id} not found")

        content = (document.get("content") or "").strip()
        if len(content) < MIN_REINDEX_CONTENT:
            raise ValidationError("Document has too little content to reindex")

        config = self.resolve()
        client = self.embedding_client_factory(config.api_key)

        pieces = self.split(content)
        selected = self._cap(pieces)
        rows = self._embed_chunks(client, selected)

        self.documents.delete_chunks(document["id"])
        self.documents.insert_chunks(document["id"], rows)

        logger.info(f"Reindexed {document['file_name']}: {len(rows)}/{len(pieces)} chunks")
        return IngestResult(
            document_id=document["id"],
            file_name=document["file_name"],
            total_chunks=len(pieces),
            embedded_chunks=len(rows),
        )

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def retrieve(
        self,
        query: str,
        match_count: Optional[int] = None,
        overrides: Optional[RequestOverrides] = None,
    ) -> List[Dict[str, Any]]:
        """Embed a query and return the raw similarity rows, unfiltered."""
        query = normalize_question(query)
        config = self.resolve(overrides)
        client = self.embedding_client_factory(config.api_key)

        query_embedding = client.embed(query)
        return self.documents.match_chunks(query_embedding, match_count or self.options.match_count)

    def _context_for(
        self,
        question: str,
        config: PipelineConfig,
        document_id: Optional[str],
        mode: str,
    ) -> ContextResult:
        if document_id:
            document_id = parse_document_id(document_id)
            document = self.documents.get_document(document_id)
            if document is None:
                raise NotFoundError(f"Document {document_id} not found")
            logger.info(f"Single-document mode: {document['file_name']}")
            return build_document_context(document)

        client = self.embedding_client_factory(config.api_key)
        query_embedding = client.embed(question)
        if mode == MODE_DOCUMENTS:
            rows = self.documents.match_documents(query_embedding, self.options.document_match_count)
        else:
            rows = self.documents.match_chunks(query_embedding, self.options.match_count)
        return build_context(
            rows,
            similarity_threshold=self.options.similarity_threshold,
            max_cited_sources=self.options.max_cited_sources,
        )

    def query(
        self,
        question: str,
        overrides: Optional[RequestOverrides] = None,
        document_id: Optional[str] = None,
        mode: str = MODE_CHUNKS,
    ) -> QueryResult:
        """
        Answer a question grounded in retrieved context.

        ``mode`` selects what the similarity search ranks: chunks (default)
        or whole documents by their document-level vector. With
        ``document_id`` the search is skipped and the document's full
        content is the only context.
        """
        question = normalize_question(question)
        if mode not in RETRIEVAL_MODES:
            raise ValidationError(f"Unknown retrieval mode: {mode}")
        config = self.resolve(overrides)

        context = self._context_for(question, config, document_id, mode)
        messages = build_messages(config.system_prompt, context.context, question)

        outcome = complete_with_fallback(
            self.llm_client_factory(config.api_key),
            model=config.model,
            fallback_model=config.fallback_model,
            messages=messages,
        )

        return QueryResult(
            reply=outcome.reply + context.sources_footer(),
            used_model=outcome.used_model,
            fallback_used=outcome.fallback_used,
            sources=context.sources,
            context_chunks=len(context.chunks),
        )


def get_pipeline() -> PipelineCoordinator:
    """Build a coordinator wired to the ORM stores and the configured provider."""
    return PipelineCoordinator()
