"""
Retrieval service for RAG queries.

Turns raw similarity-search rows into a grounding context block:
relevance filtering, labeled sections in store order, and a capped list of
distinct source names for the reply footer.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.2
DEFAULT_MAX_CITED_SOURCES = 2

DEFAULT_FILE_NAME = "documento"
NO_CONTEXT = "Sem contexto disponível."
SECTION_SEPARATOR = "\n\n---\n\n"
SOURCES_LABEL = "Fontes"


@dataclass
class RetrievedChunk:
    """A chunk returned by similarity search. Transient, never persisted."""
    file_name: str
    content: str
    similarity: float

    def to_dict(self) -> dict:
        return {
            "file_name": self.file_name,
            "content": self.content,
            "similarity": round(self.similarity, 4),
        }


@dataclass
class ContextResult:
    """Grounding context plus the sources it cites."""
    context: str
    sources: List[str] = field(default_factory=list)
    chunks: List[RetrievedChunk] = field(default_factory=list)

    @property
    def has_context(self) -> bool:
        return bool(self.chunks)

    def sources_footer(self) -> str:
        """Footer appended to the reply, empty when nothing was cited."""
        if not self.sources:
            return ""
        return f"\n\n{SOURCES_LABEL}: {', '.join(self.sources)}"


def to_retrieved_chunk(row: Dict[str, Any]) -> RetrievedChunk:
    """
    Map a raw row with defaults.

    Missing (None) file name -> "documento", missing content -> "",
    non-numeric similarity -> 0. An empty file name stays empty and is
    never cited.
    """
    similarity = row.get("similarity")
    if isinstance(similarity, bool) or not isinstance(similarity, (int, float)):
        similarity = 0.0

    file_name = row.get("file_name")
    if file_name is None:
        file_name = DEFAULT_FILE_NAME

    return RetrievedChunk(
        file_name=file_name,
        content=row.get("content") or "",
        similarity=float(similarity),
    )


def filter_relevant(
    rows: Iterable[Dict[str, Any]],
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> List[RetrievedChunk]:
    """Drop empty rows and rows below the threshold, keeping store order."""
    chunks = [to_retrieved_chunk(row) for row in rows]
    return [
        c for c in chunks
        if c.content.strip() and c.similarity >= similarity_threshold
    ]


def cited_sources(chunks: Iterable[RetrievedChunk], max_sources: int) -> List[str]:
    """Distinct file names in first-seen order, capped at ``max_sources``."""
    seen = []
    for chunk in chunks:
        if chunk.file_name and chunk.file_name not in seen:
            seen.append(chunk.file_name)
    return seen[:max(max_sources, 0)]


def render_section(position: int, chunk: RetrievedChunk) -> str:
    return (
        f"### Trecho {position} — Documento: {chunk.file_name} "
        f"(similaridade: {chunk.similarity:.3f})\n{chunk.content}"
    )


def build_context(
    raw_rows: List[Dict[str, Any]],
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    max_cited_sources: int = DEFAULT_MAX_CITED_SOURCES,
) -> ContextResult:
    """
    Build the grounding context from similarity-search rows.

    Rows are assumed already ranked, most similar first. When nothing
    survives the filter the context is the NO_CONTEXT sentinel, never an
    empty string.

    Args:
        raw_rows: Rows exposing ``content``, ``similarity`` and optionally ``file_name``
        similarity_threshold: Minimum similarity a row needs to be kept
        max_cited_sources: Cap on distinct source names returned

    Returns:
        ContextResult with the context block, cited sources and kept chunks
    """
    raw_rows = raw_rows or []
    chunks = filter_relevant(raw_rows, similarity_threshold)

    logger.info(
        f"Retrieval kept {len(chunks)}/{len(raw_rows)} rows "
        f"(threshold={similarity_threshold})"
    )

    if not chunks:
        return ContextResult(context=NO_CONTEXT)

    context = SECTION_SEPARATOR.join(
        render_section(position, chunk)
        for position, chunk in enumerate(chunks, 1)
    )

    return ContextResult(
        context=context,
        sources=cited_sources(chunks, max_cited_sources),
        chunks=chunks,
    )


def build_document_context(document: Dict[str, Any]) -> ContextResult:
    """
    Use one stored document's full content as the only context.

    No similarity filtering: this is the "ask about this document" mode.
    """
    file_name = document.get("file_name") or DEFAULT_FILE_NAME
    content = (document.get("content") or "").strip()

    if not content:
        return ContextResult(context=NO_CONTEXT)

    chunk = RetrievedChunk(file_name=file_name, content=content, similarity=1.0)
    return ContextResult(
        context=f"### Documento: {file_name}\n{content}",
        sources=[file_name],
        chunks=[chunk],
    )
