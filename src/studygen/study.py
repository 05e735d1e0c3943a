"""
Artifact generation: the consumer of retrieval, cache and invoker.

Each entry point validates the document, fingerprints it, probes the result
cache and on a miss builds a prompt, calls the generation service through
the resilient invoker and validates the response before caching it.

Response validation runs inside the invoked operation, so an unusable
response counts as a failed attempt and is retried like any other
transient error.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from studygen.artifacts import (
    ArtifactError,
    ChatAnswer,
    Flashcards,
    FlashcardOptions,
    Mindmap,
    MindmapOptions,
    ParsedArtifact,
    Summary,
    SummaryOptions,
    parse_chat,
    parse_flashcards,
    parse_mindmap,
    parse_summary,
)
from studygen.cache import ResultCache, fingerprint, with_cache
from studygen.errors import EmptyDocumentError, classify_error, user_message, validate_document
from studygen.llm.factory import GenerationProtocol
from studygen.llm.invoker import ResilientInvoker
from studygen.prompts import (
    CHAT_SYSTEM,
    FLASHCARD_SYSTEM,
    SUMMARY_SYSTEM,
    chat_prompt,
    flashcard_prompt,
    mindmap_prompt,
    summary_prompt,
)
from studygen.retrieval.scorer import retrieve_context

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArtifactResult:
    """A generated artifact and whether it came from the cache."""

    artifact: ParsedArtifact
    cached: bool


class StudyService:
    """
    Generates study artifacts for a document.

    All collaborators default to the process-wide singletons.
    """

    def __init__(
        self,
        invoker: Optional[ResilientInvoker] = None,
        client: Optional[GenerationProtocol] = None,
        cache: Optional[ResultCache] = None,
        min_document_size: Optional[int] = None,
        max_document_size: Optional[int] = None,
        top_k: Optional[int] = None,
    ) -> None:
        from studygen import services
        from studygen.config import settings

        self.invoker = invoker if invoker is not None else services.get_invoker()
        self.client = client if client is not None else services.get_generation_client()
        # an empty ResultCache is falsy
        self.cache = cache if cache is not None else services.get_result_cache()
        self.min_document_size = min_document_size or settings.min_document_size
        self.max_document_size = max_document_size or settings.max_document_size
        self.top_k = top_k or settings.retrieval_top_k

    def _validate(self, document: str) -> str:
        return validate_document(document, self.min_document_size, self.max_document_size)

    def _generate(
        self,
        prompt: str,
        system_instruction: Optional[str],
        parse: Callable[[str], ParsedArtifact],
        temperature: Optional[float] = None,
    ) -> ParsedArtifact:
        def operation(credential: str) -> ParsedArtifact:
            raw = self.client.generate(
                prompt, system_instruction, credential=credential, temperature=temperature
            )
            return parse(raw)

        return self.invoker.invoke(operation)

    def summarize(
        self,
        document: str,
        options: Optional[SummaryOptions] = None,
        session_id: Optional[str] = None,
    ) -> ArtifactResult:
        """Generate (or fetch from cache) a customised summary."""
        self._validate(document)
        options = options or SummaryOptions()

        def produce() -> str:
            logger.info(f"Generating {options.style}/{options.depth}/{options.length} summary")
            artifact = self._generate(summary_prompt(document, options), SUMMARY_SYSTEM, parse_summary, 0.3)
            return artifact.text

        result = with_cache(
            fingerprint(document), options.cache_options(), produce, cache=self.cache, session_id=session_id
        )
        return ArtifactResult(artifact=Summary(text=result.value), cached=result.cached)

    def flashcards(
        self,
        document: str,
        options: Optional[FlashcardOptions] = None,
        session_id: Optional[str] = None,
    ) -> ArtifactResult:
        """Generate (or fetch from cache) a set of flashcards."""
        self._validate(document)
        options = options or FlashcardOptions()

        def produce() -> str:
            logger.info(f"Generating {options.count} flashcards")
            artifact = self._generate(
                flashcard_prompt(document, options.count),
                FLASHCARD_SYSTEM,
                lambda raw: parse_flashcards(raw, expected=options.count),
            )
            return artifact.to_json()

        result = with_cache(
            fingerprint(document), options.cache_options(), produce, cache=self.cache, session_id=session_id
        )
        return ArtifactResult(artifact=Flashcards.from_json(result.value), cached=result.cached)

    def mindmap(self, document: str, session_id: Optional[str] = None) -> ArtifactResult:
        """Generate (or fetch from cache) a markdown mindmap."""
        self._validate(document)
        options = MindmapOptions()

        def produce() -> str:
            logger.info("Generating mindmap")
            artifact = self._generate(mindmap_prompt(document), None, parse_mindmap, 0.4)
            return artifact.markdown

        result = with_cache(
            fingerprint(document), options.cache_options(), produce, cache=self.cache, session_id=session_id
        )
        return ArtifactResult(artifact=Mindmap(markdown=result.value), cached=result.cached)

    def ask(self, question: str, document: str) -> ArtifactResult:
        """
        Answer a question from the most relevant parts of a document.

        Answers are not cached; every question is generated fresh.
        """
        if not question or not question.strip():
            raise EmptyDocumentError("Question cannot be empty")
        self._validate(document)

        context = retrieve_context(question, document, k=self.top_k)
        logger.info(f"Answering question with {len(context)} characters of context")
        artifact = self._generate(chat_prompt(question, context), CHAT_SYSTEM, parse_chat)
        return ArtifactResult(artifact=artifact, cached=False)

    def invalidate_document(self, document: str, session_id: Optional[str] = None) -> int:
        """Drop every cached artifact of a document that was replaced or removed."""
        return self.cache.invalidate_document(fingerprint(document), session_id=session_id)


def as_error(error: BaseException) -> ArtifactError:
    """Turn a generation failure into an ArtifactError value with user-facing wording."""
    kind = classify_error(error).kind
    return ArtifactError(error_kind=kind, message=user_message(kind))


def generate_summary(document: str, options: Optional[SummaryOptions] = None) -> ArtifactResult:
    return StudyService().summarize(document, options)


def generate_flashcards(document: str, count: int = 10) -> ArtifactResult:
    return StudyService().flashcards(document, FlashcardOptions(count=count))


def generate_mindmap(document: str) -> ArtifactResult:
    return StudyService().mindmap(document)


def answer_question(question: str, document: str) -> ChatAnswer:
    return StudyService().ask(question, document).artifact
