"""
studygen: retrieval, caching and resilient generation for study materials

This package turns an uploaded document into study artifacts (summaries,
flashcards, mindmaps and chat answers) using a hosted text-generation
service.

Key Components:
    - retrieval: Document chunking and keyword relevance scoring
    - cache: Fingerprint-keyed result cache with TTL and bounded size
    - llm: Generation client, credential pool and resilient invoker
    - study: Artifact generation tying the pieces together
    - cli: Command-line front end

Example:
    >>> from studygen.study import generate_summary
    >>> result = generate_summary(document_text)
    >>> print(result.artifact.text)
"""

__version__ = "0.1.0"

from studygen.config import settings

__all__ = [
    "__version__",
    "settings",
]
