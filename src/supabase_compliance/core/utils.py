"""
Shared utility functions for the Supabase Compliance Checker.
"""

import hashlib
from datetime import datetime, timezone
from urllib.parse import urlparse


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Current UTC time as an ISO 8601 string."""
    return utc_now().isoformat()


def hash_string(data: str) -> str:
    """
    Generate SHA256 hash of a string.

    Args:
        data: String to hash

    Returns:
        Hex digest of the hash
    """
    return hashlib.sha256(data.encode()).hexdigest()


def redact_secret(secret: str, show_chars: int = 4) -> str:
    """
    Redact a secret, showing only first and last few characters.

    Args:
        secret: Secret string to redact
        show_chars: Number of characters to show at start and end

    Returns:
        Redacted string (e.g., "eyJh...x9Q0")
    """
    if len(secret) <= show_chars * 2:
        return "*" * len(secret)

    return f"{secret[:show_chars]}...{secret[-show_chars:]}"


def is_valid_url(url: str) -> bool:
    """Check that a URL has an http(s) scheme and a host."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


__all__ = [
    "utc_now",
    "utc_now_iso",
    "hash_string",
    "redact_secret",
    "is_valid_url",
]
