"""
Singleton service management for the credential pool, result cache and
generation client.

Provides cached instances that are created once per process and shared by
reference afterwards. Uses the same @lru_cache pattern as config.py.

Usage:
    # At application startup (fails fast if no API keys are configured)
    status = initialize_services()

    # Anywhere afterwards
    pool = get_credential_pool()
    cache = get_result_cache()

    # In tests (reset all singletons)
    clear_service_cache()
"""

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from studygen.cache import ResultCache
    from studygen.llm.credentials import CredentialPool
    from studygen.llm.factory import GenerationProtocol
    from studygen.llm.invoker import ResilientInvoker

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_credential_pool() -> "CredentialPool":
    """
    Get or create the global credential pool.

    Raises:
        ValueError: If no API keys are configured
    """
    from studygen.config import settings
    from studygen.llm.credentials import CredentialPool

    return CredentialPool(settings.api_key_values)


@lru_cache(maxsize=1)
def get_result_cache() -> "ResultCache":
    """Get or create the global result cache."""
    from studygen.cache import ResultCache
    from studygen.config import settings

    logger.info(
        f"Result cache: {settings.cache_max_entries} entries, "
        f"TTL {settings.cache_ttl_seconds:.0f}s"
    )
    return ResultCache(max_entries=settings.cache_max_entries, ttl=settings.cache_ttl_seconds)


@lru_cache(maxsize=1)
def get_invoker() -> "ResilientInvoker":
    """Get or create the global invoker, bound to the global credential pool."""
    from studygen.config import settings
    from studygen.llm.invoker import ResilientInvoker, RetryPolicy

    policy = RetryPolicy(max_attempts=settings.max_attempts, base_delay=settings.retry_base_delay)
    return ResilientInvoker(get_credential_pool(), policy=policy)


@lru_cache(maxsize=1)
def get_generation_client() -> "GenerationProtocol":
    """Get or create the global generation client."""
    from studygen.llm.factory import create_client

    return create_client()


def initialize_services() -> dict[str, object]:
    """
    Create all services eagerly.

    Call once at process start so configuration problems surface before the
    first request.

    Returns:
        Status dictionary with pool and cache details
    """
    pool = get_credential_pool()
    cache = get_result_cache()
    get_invoker()
    get_generation_client()

    pool_status = pool.status()
    logger.info(f"Services initialized: {pool_status.total} credential(s), cache size {cache.max_entries}")
    return {
        "credentials": pool_status.total,
        "credentials_available": pool_status.available,
        "cache_max_entries": cache.max_entries,
        "cache_ttl_seconds": cache.ttl,
    }


def clear_service_cache() -> None:
    """Drop all singletons so the next getter call builds fresh ones."""
    get_credential_pool.cache_clear()
    get_result_cache.cache_clear()
    get_invoker.cache_clear()
    get_generation_client.cache_clear()
