"""
Keyword relevance scoring over document chunks.

Selects a small context window for a query without calling the generation
service. Scores combine whole-word match counts, distinct term coverage and
a small bonus for chunks near the start of the document, which tend to hold
definitions and overviews. Selected chunks are returned in document order so
the prompt reads as the document does.
"""

import re
import string
from dataclasses import dataclass
from typing import Literal, Optional, Sequence

from studygen.retrieval.chunker import FALLBACK_CHARS, Chunk, split_paragraphs, split_text

MATCH_WEIGHT = 2.0
COVERAGE_WEIGHT = 3.0

# Bonus for ordinal 0, shrinking linearly to nothing by ordinal 100.
POSITION_BONUS = 1.0
POSITION_DECAY = 0.01

CONTEXT_SEPARATOR = "\n\n---\n\n"


@dataclass(frozen=True)
class ScoredChunk:
    """A chunk with its composite relevance score."""

    chunk: Chunk
    score: float


def query_terms(query: str, coarse: bool = False) -> list[str]:
    """
    Extract lowercase search terms from a query.

    Tokens of length <= 2 are dropped (<= 3 when coarse). Repeated words are
    kept, so a word the query stresses counts once per mention in the match
    score.

    Args:
        query: Free-text query
        coarse: Drop 3-letter tokens as well

    Returns:
        Query terms
    """
    min_length = 4 if coarse else 3
    terms: list[str] = []
    for token in query.lower().split():
        token = token.strip(string.punctuation)
        if len(token) >= min_length:
            terms.append(token)
    return terms


def score_chunk(chunk: Chunk, terms: Sequence[str]) -> float:
    """
    Compute the composite relevance score of one chunk.

    Args:
        chunk: Chunk to score
        terms: Query terms from query_terms(), repeats included

    Returns:
        2 x whole-word matches per term occurrence + 3 x distinct terms
        present + position bonus
    """
    lowered = chunk.text.lower()

    matches = 0
    for term in terms:
        matches += len(re.findall(rf"\b{re.escape(term)}\b", lowered))
    present = sum(1 for term in set(terms) if term in lowered)

    position = max(0.0, POSITION_BONUS - chunk.ordinal * POSITION_DECAY)
    return MATCH_WEIGHT * matches + COVERAGE_WEIGHT * present + position


def retrieve(
    query: str,
    chunks: Sequence[Chunk],
    k: int,
    fallback_text: str = "",
    coarse: bool = False,
) -> list[Chunk]:
    """
    Select the k most relevant chunks, in document order.

    Args:
        query: Free-text query
        chunks: Candidate chunks
        k: Number of chunks to keep
        fallback_text: Source document, used when there are no chunks
        coarse: Use the coarser term filter

    Returns:
        Up to k chunks sorted by ordinal. When `chunks` is empty, a single
        chunk holding the first 2000 characters of `fallback_text`.
    """
    if not chunks:
        return [Chunk(text=fallback_text[:FALLBACK_CHARS], ordinal=0)]
    if k <= 0:
        return []

    terms = query_terms(query, coarse=coarse)
    scored = [ScoredChunk(chunk=chunk, score=score_chunk(chunk, terms)) for chunk in chunks]

    ranked = sorted(scored, key=lambda s: (-s.score, s.chunk.ordinal))
    selected = [s.chunk for s in ranked[:k]]

    return sorted(selected, key=lambda c: c.ordinal)


def retrieve_context(
    query: str,
    document: str,
    k: int = 5,
    strategy: Literal["paragraph", "window"] = "paragraph",
    chunk_size: Optional[int] = None,
    chunk_overlap: Optional[int] = None,
) -> str:
    """
    Build a prompt context for a query from a whole document.

    Args:
        query: Free-text query
        document: Full document text
        k: Number of chunks to include
        strategy: "paragraph" splits on blank lines, "window" uses
            fixed-size overlapping windows
        chunk_size: Window size (default from settings)
        chunk_overlap: Window overlap (default from settings)

    Returns:
        Selected chunk texts joined with a separator line, in document order
    """
    if strategy == "window":
        from studygen.config import settings

        size = chunk_size if chunk_size is not None else settings.chunk_size
        overlap = chunk_overlap if chunk_overlap is not None else settings.chunk_overlap
        chunks = split_text(document, size, overlap)
    else:
        chunks = split_paragraphs(document)

    selected = retrieve(query, chunks, k, fallback_text=document)
    return CONTEXT_SEPARATOR.join(chunk.text for chunk in selected)
