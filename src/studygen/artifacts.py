"""
Artifact types and response validation.

Raw text from the generation service is parsed into a tagged artifact type
right after the call returns. Anything unusable raises InvalidResponseError,
which the invoker treats as retryable.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, ClassVar, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from studygen.errors import ErrorKind, InvalidResponseError

logger = logging.getLogger(__name__)

SummaryStyle = Literal["conceptual", "mathematical", "bullet-points", "detailed"]
SummaryDepth = Literal["basic", "intermediate", "advanced"]
SummaryLength = Literal["short", "medium", "long"]

MIN_SUMMARY_LENGTH = 50

# Phrases the model uses when it did not receive the document.
_MISSING_CONTENT_PHRASES = (
    "document content was not provided",
    "please provide the document",
)


# =============================================================================
# Request options
# =============================================================================


class SummaryOptions(BaseModel):
    """Customisation of a generated summary."""

    kind: ClassVar[str] = "summary"

    style: SummaryStyle = "conceptual"
    depth: SummaryDepth = "intermediate"
    length: SummaryLength = "medium"

    def cache_options(self) -> dict[str, str]:
        return {"kind": self.kind, **self.model_dump()}


class FlashcardOptions(BaseModel):
    """Number of flashcards to generate."""

    kind: ClassVar[str] = "flashcards"

    count: int = Field(default=10, ge=5, le=20)

    def cache_options(self) -> dict[str, Any]:
        return {"kind": self.kind, "count": self.count}


class MindmapOptions(BaseModel):
    """Mindmaps take no options."""

    kind: ClassVar[str] = "mindmap"

    def cache_options(self) -> dict[str, str]:
        return {"kind": self.kind}


# =============================================================================
# Parsed artifacts
# =============================================================================


class Flashcard(BaseModel):
    """A single question/answer pair."""

    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)

    @field_validator("question", "answer", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        """Coerce to a trimmed string."""
        if v is None:
            return v
        return str(v).strip()


_FLASHCARD_LIST = TypeAdapter(list[Flashcard])


@dataclass(frozen=True)
class Summary:
    text: str
    kind: Literal["summary"] = "summary"


@dataclass(frozen=True)
class Flashcards:
    cards: list[Flashcard] = field(default_factory=list)
    kind: Literal["flashcards"] = "flashcards"

    def to_json(self) -> str:
        return json.dumps([card.model_dump() for card in self.cards])

    @classmethod
    def from_json(cls, raw: str) -> "Flashcards":
        return cls(cards=_FLASHCARD_LIST.validate_json(raw))


@dataclass(frozen=True)
class Mindmap:
    markdown: str
    kind: Literal["mindmap"] = "mindmap"


@dataclass(frozen=True)
class ChatAnswer:
    text: str
    kind: Literal["chat"] = "chat"


@dataclass(frozen=True)
class ArtifactError:
    """A generation that failed, carried as a value."""

    error_kind: ErrorKind
    message: str
    kind: Literal["error"] = "error"


ParsedArtifact = Union[Summary, Flashcards, Mindmap, ChatAnswer, ArtifactError]


# =============================================================================
# Parsers
# =============================================================================


def _require_text(raw: str) -> str:
    if not raw or not raw.strip():
        raise InvalidResponseError("Empty response from generation service")
    return raw.strip()


def parse_summary(raw: str) -> Summary:
    """
    Validate a generated summary.

    Raises:
        InvalidResponseError: If the text is empty, too short to be a
            summary, or the model says it never received the document
    """
    text = _require_text(raw)
    if len(text) < MIN_SUMMARY_LENGTH:
        raise InvalidResponseError(f"Incomplete summary response ({len(text)} characters)")

    lowered = text.lower()
    if any(phrase in lowered for phrase in _MISSING_CONTENT_PHRASES):
        raise InvalidResponseError("Model reported that the document content was missing")

    if "#" not in text:
        logger.warning("Summary response has no markdown headings")
    return Summary(text=text)


# Tried in order: fenced json block, any fenced block, first bare array.
_JSON_PATTERNS = (
    re.compile(r"```json\s*(.*?)```", re.DOTALL),
    re.compile(r"```\s*(.*?)```", re.DOTALL),
    re.compile(r"(\[.*\])", re.DOTALL),
)


def parse_flashcards(raw: str, expected: int = 0) -> Flashcards:
    """
    Extract flashcards from a JSON array in the model's response.

    Accepts fenced ```json blocks, plain fenced blocks or a bare array, and
    also an object of the form {"flashcards": [...]}.

    Args:
        raw: Model output
        expected: Requested number of cards, used only for a warning

    Raises:
        InvalidResponseError: If no valid, non-empty card list can be read
    """
    text = _require_text(raw)

    candidate = None
    for pattern in _JSON_PATTERNS:
        match = pattern.search(text)
        if match:
            candidate = match.group(1).strip()
            break
    if candidate is None:
        candidate = text

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise InvalidResponseError(f"Could not parse flashcard JSON: {e}") from e

    if isinstance(data, dict):
        data = data.get("flashcards")

    try:
        cards = _FLASHCARD_LIST.validate_python(data)
    except ValidationError as e:
        raise InvalidResponseError(f"Invalid flashcard structure: {e.error_count()} error(s)") from e

    if not cards:
        raise InvalidResponseError("No flashcards were generated")
    if expected and len(cards) < expected * 0.8:
        logger.warning(f"Generated {len(cards)} flashcards instead of {expected}")
    return Flashcards(cards=cards)


_FENCE = re.compile(r"^```(?:markdown|md)?\s*\n(.*?)\n?```\s*$", re.DOTALL)


def parse_mindmap(raw: str) -> Mindmap:
    """
    Validate a markdown mindmap.

    Raises:
        InvalidResponseError: If the response has no heading lines
    """
    text = _require_text(raw)
    fenced = _FENCE.match(text)
    if fenced:
        text = fenced.group(1).strip()

    if not any(line.lstrip().startswith("#") for line in text.splitlines()):
        raise InvalidResponseError("Mindmap response has no headings")
    return Mindmap(markdown=text)


def parse_chat(raw: str) -> ChatAnswer:
    """Validate a chat answer. Raises InvalidResponseError if empty."""
    return ChatAnswer(text=_require_text(raw))
