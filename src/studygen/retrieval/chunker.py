"""
Document chunking for keyword retrieval.

Two strategies:
    - split_text: fixed-size character windows with overlap. O(n) and
      deterministic regardless of document structure.
    - split_paragraphs: blank-line separated paragraphs, used by the chat
      retrieval path.
"""

import re
from dataclasses import dataclass

# Fragments shorter than this are headings, page numbers and other debris.
MIN_PARAGRAPH_LENGTH = 20

# Verbatim prefix returned when a non-empty document yields no paragraphs.
FALLBACK_CHARS = 2000

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


@dataclass(frozen=True)
class Chunk:
    """A slice of a source document."""

    text: str
    """The text content of the chunk."""

    ordinal: int
    """Position of the chunk in the source document, starting at 0."""


def split_text(document: str, size: int, overlap: int) -> list[Chunk]:
    """
    Split a document into overlapping fixed-size windows.

    Each window starts `size - overlap` characters after the previous one.
    The final window may be shorter than `size`. The walk stops as soon as a
    window reaches the end of the document.

    Args:
        document: Source text
        size: Window length in characters
        overlap: Characters shared by consecutive windows

    Returns:
        Chunks in document order; empty list for an empty document

    Raises:
        ValueError: If size <= 0, overlap < 0 or overlap >= size
    """
    if size <= 0:
        raise ValueError(f"size must be positive, got {size}")
    if overlap < 0:
        raise ValueError(f"overlap must be non-negative, got {overlap}")
    if overlap >= size:
        raise ValueError(f"overlap ({overlap}) must be less than size ({size})")

    chunks: list[Chunk] = []
    step = size - overlap
    start = 0
    length = len(document)

    while start < length:
        end = min(start + size, length)
        chunks.append(Chunk(text=document[start:end], ordinal=len(chunks)))
        if end == length:
            break
        start += step

    return chunks


def split_paragraphs(
    document: str,
    min_length: int = MIN_PARAGRAPH_LENGTH,
    fallback_chars: int = FALLBACK_CHARS,
) -> list[Chunk]:
    """
    Split a document on blank lines.

    Paragraphs are stripped and those shorter than `min_length` dropped. If
    nothing survives, the first `fallback_chars` characters of the document
    are returned as a single chunk so retrieval never hands back an empty
    context for a non-empty document.

    Args:
        document: Source text
        min_length: Minimum paragraph length to keep
        fallback_chars: Size of the verbatim fallback chunk

    Returns:
        Paragraph chunks in document order
    """
    if not document:
        return []

    paragraphs = [part.strip() for part in _PARAGRAPH_BREAK.split(document)]
    kept = [p for p in paragraphs if len(p) >= min_length]

    if not kept:
        return [Chunk(text=document[:fallback_chars], ordinal=0)]

    return [Chunk(text=text, ordinal=i) for i, text in enumerate(kept)]
