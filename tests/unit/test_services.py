"""
Unit tests for singleton service management in the services module.

Tests the caching behavior of:
    - get_credential_pool()
    - get_result_cache()
    - get_invoker()
    - get_generation_client()
    - initialize_services()
    - clear_service_cache()
"""

from unittest.mock import patch

import pytest

from studygen.services import (
    clear_service_cache,
    get_credential_pool,
    get_generation_client,
    get_invoker,
    get_result_cache,
    initialize_services,
)


@pytest.mark.unit
class TestServiceCaching:
    """Test that service getters return one shared instance."""

    def test_get_credential_pool_caches_result(self, mock_settings):
        with patch("studygen.config.settings", mock_settings):
            pool1 = get_credential_pool()
            pool2 = get_credential_pool()

        assert pool1 is pool2
        assert len(pool1) == 3
        assert pool1.current() == "test-api-key"

    def test_get_result_cache_uses_settings(self, mock_settings):
        with patch("studygen.config.settings", mock_settings):
            cache = get_result_cache()

        assert cache is get_result_cache()
        assert cache.max_entries == 5
        assert cache.ttl == 86400

    def test_invoker_shares_the_pool(self, mock_settings):
        """The invoker rotates the same pool everyone else sees."""
        with patch("studygen.config.settings", mock_settings):
            invoker = get_invoker()
            assert invoker.pool is get_credential_pool()
            assert invoker.policy.max_attempts == 3
            assert invoker.policy.base_delay == 1.0

    def test_get_generation_client_caches_result(self, mock_settings):
        with patch("studygen.config.settings", mock_settings):
            client1 = get_generation_client()
            client2 = get_generation_client()

        assert client1 is client2
        assert client1.model == mock_settings.generation_model

    def test_clear_service_cache(self, mock_settings):
        """After clearing, getters build fresh instances."""
        with patch("studygen.config.settings", mock_settings):
            pool1 = get_credential_pool()
            cache1 = get_result_cache()

            clear_service_cache()

            assert get_credential_pool() is not pool1
            assert get_result_cache() is not cache1

    def test_no_keys_fails_fast(self, mock_settings):
        """A missing key configuration surfaces at initialization."""
        mock_settings.google_api_key = None
        mock_settings.google_api_keys = None

        with patch("studygen.config.settings", mock_settings):
            with pytest.raises(ValueError, match="No API keys configured"):
                initialize_services()


@pytest.mark.unit
class TestInitializeServices:
    """Tests for initialize_services."""

    def test_reports_status(self, mock_settings):
        with patch("studygen.config.settings", mock_settings):
            status = initialize_services()

        assert status == {
            "credentials": 3,
            "credentials_available": 3,
            "cache_max_entries": 5,
            "cache_ttl_seconds": 86400,
        }
