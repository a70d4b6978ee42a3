"""
Deterministic text chunking for document indexing.

Chunking is designed to be:
- Deterministic: Same input always produces same chunks
- Idempotent: Re-ingesting a document reproduces the exact chunk sequence
- Overlap-aware: Chunks carry a configurable tail of the previous chunk

Two strategies are available:
- "paragraph": greedy packing of blank-line separated paragraphs
- "window": fixed character windows sliding back by the overlap
"""
import re
import logging
from dataclasses import dataclass
from typing import List

logger = logging.getLogger(__name__)

# Character budgets
DEFAULT_CHUNK_SIZE = 1200  # characters
DEFAULT_CHUNK_OVERLAP = 200  # characters carried over from the previous chunk

STRATEGY_PARAGRAPH = "paragraph"
STRATEGY_WINDOW = "window"
STRATEGIES = (STRATEGY_PARAGRAPH, STRATEGY_WINDOW)

_PARAGRAPH_BREAK = re.compile(r'\n\s*\n')


@dataclass
class TextChunk:
    """
    A chunk of text with its index.

    ``text`` is what gets stored and shown as context. For paragraph chunks
    it is ``overlap + "\\n" + body`` when an overlap was prepended, so
    ``body`` is the chunk's own packed content.
    """
    index: int
    body: str
    overlap: str = ""

    @property
    def text(self) -> str:
        if self.overlap:
            return f"{self.overlap}\n{self.body}"
        return self.body

    @property
    def char_count(self) -> int:
        return len(self.text)

    def embedding_input(self, include_overlap: bool = True) -> str:
        """Text sent to the embedding provider for this chunk."""
        return self.text if include_overlap else self.body


def normalize_whitespace(text: str) -> str:
    """
    Canonical form of a text before chunking.

    NUL bytes are dropped, line endings become ``\\n``, runs of spaces and
    tabs collapse to one space, every line is trimmed (so whitespace-only
    lines count as blank) and blank-line runs shrink to a single blank line.
    """
    if not text:
        return ""

    text = re.sub(r'\r\n?', '\n', text.replace('\x00', ''))
    lines = (re.sub(r'[^\S\n]+', ' ', line).strip() for line in text.split('\n'))
    return re.sub(r'\n{3,}', '\n\n', '\n'.join(lines)).strip()


def split_paragraphs(text: str) -> List[str]:
    """Split normalized text on blank lines, dropping empty units."""
    return [p.strip() for p in _PARAGRAPH_BREAK.split(text) if p.strip()]


def pack_paragraphs(paragraphs: List[str], chunk_size: int) -> List[str]:
    """
    Greedily pack paragraphs into chunks of at most ``chunk_size`` characters.

    A paragraph longer than ``chunk_size`` is never split; it becomes a
    single oversized chunk.
    """
    packed = []
    buffer = ""

    for paragraph in paragraphs:
        candidate = f"{buffer}\n\n{paragraph}" if buffer else paragraph
        if len(candidate) <= chunk_size:
            buffer = candidate
            continue
        if buffer:
            packed.append(buffer)
        buffer = paragraph

    if buffer:
        packed.append(buffer)

    return packed


def chunk_paragraphs(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> List[TextChunk]:
    """
    Split text into paragraph-packed chunks with leading overlap.

    Each chunk except the first is prefixed with the trailing
    ``chunk_overlap`` characters of the previous packed chunk (before its
    own overlap was added), joined by a newline.

    Args:
        text: The text to chunk
        chunk_size: Target size for each chunk in characters
        chunk_overlap: Number of characters carried over from the previous chunk

    Returns:
        List of TextChunk objects
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if chunk_overlap < 0:
        raise ValueError("chunk_overlap cannot be negative")

    text = normalize_whitespace(text)
    if not text:
        logger.warning("Empty text provided for chunking")
        return []

    packed = pack_paragraphs(split_paragraphs(text), chunk_size)

    chunks = []
    for index, body in enumerate(packed):
        overlap = ""
        if index > 0 and chunk_overlap > 0:
            overlap = packed[index - 1][-chunk_overlap:]
        chunks.append(TextChunk(index=index, body=body, overlap=overlap))

    oversized = sum(1 for body in packed if len(body) > chunk_size)
    if oversized:
        logger.debug(f"{oversized} paragraph(s) exceed chunk size {chunk_size}, kept whole")

    logger.info(f"Created {len(chunks)} paragraph chunks from {len(text)} characters")
    return chunks


def chunk_windows(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> List[TextChunk]:
    """
    Split text into fixed character windows with a sliding overlap.

    Windows are ``chunk_size`` characters long; each next window starts
    ``chunk_overlap`` characters before the previous one ended. Slices are
    trimmed and empty slices dropped. The overlap is part of the window
    itself, so ``TextChunk.overlap`` stays empty.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if chunk_overlap < 0 or chunk_overlap >= chunk_size:
        raise ValueError("chunk_overlap must be in [0, chunk_size)")

    text = normalize_whitespace(text)
    if not text:
        logger.warning("Empty text provided for chunking")
        return []

    chunks = []
    start = 0
    while start < len(text):
        end = min(start + chunk_size, len(text))
        piece = text[start:end].strip()
        if piece:
            chunks.append(TextChunk(index=len(chunks), body=piece))
        if end >= len(text):
            break
        start = end - chunk_overlap

    logger.info(f"Created {len(chunks)} window chunks from {len(text)} characters")
    return chunks


def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    strategy: str = STRATEGY_PARAGRAPH,
) -> List[TextChunk]:
    """
    Split text into chunks using the named strategy.

    Raises:
        ValueError: If the strategy is unknown
    """
    if strategy == STRATEGY_PARAGRAPH:
        return chunk_paragraphs(text, chunk_size, chunk_overlap)
    if strategy == STRATEGY_WINDOW:
        return chunk_windows(text, chunk_size, chunk_overlap)
    raise ValueError(f"Unknown chunk strategy: {strategy!r} (expected one of {STRATEGIES})")


def chunks_from_list(pieces: List[str]) -> List[TextChunk]:
    """
    Wrap caller-supplied, already split chunks.

    Each piece is whitespace-normalized; empty pieces are dropped and the
    remaining ones re-indexed contiguously from zero.
    """
    chunks = []
    for piece in pieces:
        body = normalize_whitespace(piece)
        if body:
            chunks.append(TextChunk(index=len(chunks), body=body))
    return chunks
