"""
Error taxonomy for generation calls.

Every failure that can reach the invoker is mapped onto an ErrorKind with a
retryable flag. Input errors (empty or oversized documents) are raised before
any retrieval or generation work starts and never consume a retry.

Kinds:
    - transport: connectivity problems and timeouts (retryable)
    - quota: credential temporarily exhausted (retryable, demotes credential)
    - auth: credential invalid (retryable on another credential)
    - invalid_response: empty or malformed output (retryable)
    - document_too_large / empty_document: caller input (not retryable)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import requests


class ErrorKind(str, Enum):
    """Classification tag attached to every failed invocation."""

    TRANSPORT = "transport"
    QUOTA = "quota"
    AUTH = "auth"
    INVALID_RESPONSE = "invalid_response"
    DOCUMENT_TOO_LARGE = "document_too_large"
    EMPTY_DOCUMENT = "empty_document"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Classification:
    """Result of classifying an error before deciding whether to retry."""

    retryable: bool
    kind: ErrorKind


class StudygenError(Exception):
    """Base class for all errors raised by this package."""

    kind: ErrorKind = ErrorKind.UNKNOWN
    retryable: bool = False


class TransportError(StudygenError):
    """Connectivity failure or timeout talking to the generation service."""

    kind = ErrorKind.TRANSPORT
    retryable = True


class QuotaOrRateLimitError(StudygenError):
    """The current credential is rate limited or out of quota."""

    kind = ErrorKind.QUOTA
    retryable = True


class AuthError(StudygenError):
    """The current credential was rejected. Another credential may work."""

    kind = ErrorKind.AUTH
    retryable = True


class InvalidResponseError(StudygenError):
    """The generation service returned empty or unusable output."""

    kind = ErrorKind.INVALID_RESPONSE
    retryable = True


class DocumentTooLargeError(StudygenError):
    """The document exceeds the configured maximum size."""

    kind = ErrorKind.DOCUMENT_TOO_LARGE
    retryable = False


class EmptyDocumentError(StudygenError):
    """The document has no usable content."""

    kind = ErrorKind.EMPTY_DOCUMENT
    retryable = False


class CacheError(StudygenError):
    """A result cache read or write failed."""


class InvocationCancelled(StudygenError):
    """The caller gave up while the invoker was waiting to retry."""


# Message fragments that identify provider errors arriving as plain exceptions.
# Checked in order; first match wins.
_MESSAGE_RULES: tuple[tuple[ErrorKind, tuple[str, ...]], ...] = (
    (ErrorKind.QUOTA, ("429", "quota", "rate limit", "resource_exhausted", "too many requests")),
    (ErrorKind.AUTH, ("api key", "unauthorized", "authentication", "permission denied", "401", "403")),
    (ErrorKind.TRANSPORT, ("network", "connection", "timed out", "timeout", "503", "502", "504")),
    (ErrorKind.INVALID_RESPONSE, ("empty", "malformed", "invalid", "parse")),
)

_RETRYABLE_KINDS = {
    ErrorKind.TRANSPORT,
    ErrorKind.QUOTA,
    ErrorKind.AUTH,
    ErrorKind.INVALID_RESPONSE,
}


def kind_for_status(status_code: int) -> Optional[ErrorKind]:
    """Map an HTTP status code to an error kind, or None for success codes."""
    if status_code in (401, 403):
        return ErrorKind.AUTH
    if status_code == 429:
        return ErrorKind.QUOTA
    if status_code == 408 or status_code >= 500:
        return ErrorKind.TRANSPORT
    if status_code >= 400:
        return ErrorKind.UNKNOWN
    return None


def kind_for_message(message: str) -> Optional[ErrorKind]:
    """Match an error message against known provider wording."""
    lowered = message.lower()
    for kind, fragments in _MESSAGE_RULES:
        if any(fragment in lowered for fragment in fragments):
            return kind
    return None


def classify_error(error: BaseException) -> Classification:
    """
    Classify an error for the retry loop.

    HTTP errors are classified by status code first. A 4xx status with no
    mapping of its own (Gemini answers a bad key with 400) falls through to
    the message heuristics.

    Args:
        error: Any exception raised by a generation call

    Returns:
        Classification with the retryable flag and kind tag
    """
    if isinstance(error, StudygenError):
        return Classification(retryable=error.retryable, kind=error.kind)

    if isinstance(error, (requests.Timeout, requests.ConnectionError)):
        return Classification(retryable=True, kind=ErrorKind.TRANSPORT)

    if isinstance(error, requests.HTTPError) and error.response is not None:
        kind = kind_for_status(error.response.status_code)
        if kind is not None and kind is not ErrorKind.UNKNOWN:
            return Classification(retryable=kind in _RETRYABLE_KINDS, kind=kind)

    kind = kind_for_message(str(error))
    if kind is not None:
        return Classification(retryable=True, kind=kind)

    return Classification(retryable=False, kind=ErrorKind.UNKNOWN)


_USER_MESSAGES = {
    ErrorKind.QUOTA: (
        "The generation service is rate limiting requests right now. "
        "Please try again in a few moments."
    ),
    ErrorKind.AUTH: (
        "The generation service rejected the configured API keys. "
        "Please check your configuration."
    ),
    ErrorKind.TRANSPORT: "Network connection error. Please check your connection and try again.",
    ErrorKind.INVALID_RESPONSE: "The AI generated an invalid response. Please try again.",
    ErrorKind.DOCUMENT_TOO_LARGE: "The document is too large to process.",
    ErrorKind.EMPTY_DOCUMENT: "No document content available. Please upload a document first.",
    ErrorKind.UNKNOWN: "Something went wrong while generating content. Please try again.",
}


def user_message(kind: ErrorKind) -> str:
    """Return the user-facing wording for an error kind."""
    return _USER_MESSAGES[kind]


def validate_document(text: Optional[str], min_size: int = 1, max_size: int = 500_000) -> str:
    """
    Reject documents that cannot be processed.

    Args:
        text: Raw document text
        min_size: Minimum number of non-whitespace-trimmed characters
        max_size: Maximum number of characters

    Returns:
        The document text unchanged

    Raises:
        EmptyDocumentError: If the document is missing, blank or too short
        DocumentTooLargeError: If the document exceeds max_size
    """
    if not text or not text.strip():
        raise EmptyDocumentError("Document is empty. Please upload a document first.")

    length = len(text.strip())
    if length < min_size:
        raise EmptyDocumentError(
            f"Document is too short ({length} characters). "
            f"At least {min_size} characters are required."
        )
    if len(text) > max_size:
        raise DocumentTooLargeError(
            f"Document is too large ({len(text)} characters). Maximum size is {max_size} characters."
        )
    return text
