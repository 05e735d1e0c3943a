"""
Pytest configuration and shared fixtures.

Provides common fixtures for:
    - Configuration with test values
    - A manual clock for cooldown and TTL tests
    - Credential pools, invokers and caches wired without real delays
    - Sample study documents
    - Mock generation responses
"""

from unittest.mock import MagicMock, patch

import pytest


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def mock_settings():
    """Provide test settings without requiring .env file."""
    with patch.dict(
        "os.environ",
        {
            "GOOGLE_API_KEY": "test-api-key",
            "GOOGLE_API_KEYS": "backup-key-1, backup-key-2",
            "CHUNK_SIZE": "800",
            "CHUNK_OVERLAP": "100",
            "CACHE_MAX_ENTRIES": "5",
            "LOG_LEVEL": "DEBUG",
        },
    ):
        from studygen.config import Settings
        yield Settings()


@pytest.fixture(autouse=True)
def reset_services():
    """Make sure no test leaks process-wide singletons into another."""
    from studygen.services import clear_service_cache

    clear_service_cache()
    yield
    clear_service_cache()


# =============================================================================
# Time and Service Fixtures
# =============================================================================

@pytest.fixture
def clock():
    """Provide a clock that only moves when advanced."""
    from studygen.clock import ManualClock

    return ManualClock(start=1_000.0)


@pytest.fixture
def pool(clock):
    """Provide a three-key credential pool on the manual clock."""
    from studygen.llm.credentials import CredentialPool

    return CredentialPool(["key-one", "key-two", "key-three"], clock=clock)


@pytest.fixture
def sleeps():
    """Record backoff waits instead of sleeping."""
    return []


@pytest.fixture
def invoker(pool, sleeps):
    """Provide an invoker whose backoff waits return immediately."""
    from studygen.llm.invoker import ResilientInvoker

    def fake_sleep(seconds, event):
        sleeps.append(seconds)
        return event.is_set()

    return ResilientInvoker(pool, sleep=fake_sleep)


@pytest.fixture
def cache(clock):
    """Provide a result cache on the manual clock."""
    from studygen.cache import ResultCache

    return ResultCache(max_entries=5, ttl=3600.0, clock=clock)


# =============================================================================
# Sample Data Fixtures
# =============================================================================

@pytest.fixture
def ml_document():
    """Two paragraphs: one about machine learning, one not."""
    return (
        "Machine learning is a field of study in artificial intelligence. "
        "Machine learning systems improve their performance with experience.\n\n"
        "The printing press was invented in the fifteenth century and changed "
        "how books were produced across Europe."
    )


@pytest.fixture
def study_document():
    """A multi-section document long enough to pass validation."""
    return """Photosynthesis Overview

Photosynthesis is the process by which green plants convert light energy into
chemical energy stored in glucose. It takes place mainly in the chloroplasts.

Light-dependent reactions occur in the thylakoid membranes. They split water,
release oxygen and produce ATP and NADPH for the next stage.

The Calvin cycle runs in the stroma. It uses ATP and NADPH to fix carbon
dioxide into three-carbon sugars that the plant builds into glucose.

Page 2 of 3

Cellular respiration is the reverse process: cells break glucose down to
release the stored energy as ATP.
"""


@pytest.fixture
def summary_text():
    """A plausible generated summary."""
    return (
        "# Document Overview\n\n"
        "Photosynthesis converts **light energy** into chemical energy stored in glucose.\n\n"
        "# Key Concepts & Definitions\n\n"
        "- **Calvin cycle**: fixes carbon dioxide into sugars in the stroma."
    )


@pytest.fixture
def flashcard_response():
    """A generated flashcard response wrapped in a json fence."""
    return """Here are your flashcards:
```json
[
  {"question": "Where does photosynthesis take place?", "answer": "Mainly in the chloroplasts."},
  {"question": "What does the Calvin cycle produce?", "answer": "Three-carbon sugars used to build glucose."}
]
```"""


@pytest.fixture
def mock_client():
    """Provide a generation client mock; set side_effect/return_value per test."""
    client = MagicMock()
    client.generate.return_value = "generated text"
    return client
