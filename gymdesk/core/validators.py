"""Validators - Pure functions for validation (exception-based)."""
from urllib.parse import urlparse


class ConfigurationError(ValueError):
    """Raised when the store endpoint or access key is missing or malformed."""

    pass


def validate_store_url(url: str) -> None:
    """Validate the store endpoint is an absolute http(s) URL."""
    if not url or not isinstance(url, str) or not url.strip():
        raise ConfigurationError("Store URL is missing")

    try:
        parsed = urlparse(url.strip())
    except ValueError as e:
        raise ConfigurationError(f"Store URL is malformed: {e}") from e

    if parsed.scheme not in ("http", "https"):
        raise ConfigurationError(f"Store URL must use http or https, got '{parsed.scheme or url}'")
    if not parsed.hostname:
        raise ConfigurationError(f"Store URL has no host: {url}")


def validate_access_key(key: str) -> None:
    """Validate the access key is present."""
    if not key or not isinstance(key, str) or not key.strip():
        raise ConfigurationError("Store access key is missing")


def validate_store_config(url: str, key: str) -> None:
    """Validate both halves of the store configuration."""
    validate_store_url(url)
    validate_access_key(key)
