"""Unit tests for configuration validators."""

import pytest

from gymdesk.core.validators import (
    ConfigurationError,
    validate_access_key,
    validate_store_config,
    validate_store_url,
)


class TestValidators:
    @pytest.mark.parametrize("url", ["https://abc.supabase.co", "http://localhost:54321", "https://x.test/"])
    def test_valid_urls(self, url):
        validate_store_url(url)

    @pytest.mark.parametrize("url", ["", "   ", None, "abc.supabase.co", "ftp://x.test", "https://", "not a url"])
    def test_invalid_urls(self, url):
        with pytest.raises(ConfigurationError):
            validate_store_url(url)

    @pytest.mark.parametrize("key", ["", "  ", None])
    def test_missing_key(self, key):
        with pytest.raises(ConfigurationError, match="missing"):
            validate_access_key(key)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate_store_config("https://x.test", "")

    def test_valid_config(self):
        validate_store_config("https://x.test", "anon-key")
