"""
Document retrieval components.

Components:
    - chunker: Split documents into ordinal-tagged chunks
    - scorer: Keyword relevance scoring and top-k selection
"""

from studygen.retrieval.chunker import Chunk, split_paragraphs, split_text
from studygen.retrieval.scorer import ScoredChunk, query_terms, retrieve, retrieve_context

__all__ = [
    "Chunk",
    "split_text",
    "split_paragraphs",
    "ScoredChunk",
    "query_terms",
    "retrieve",
    "retrieve_context",
]
