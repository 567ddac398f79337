"""Shared HTTP utilities."""

from __future__ import annotations

import base64
import binascii
from urllib.parse import urlparse

_ENDPOINT_ALLOWED_SCHEMES = frozenset({"http", "https"})
_TOKENIZE_SEGMENT = "tokenize"
_DETOKENIZE_SEGMENT = "detokenize"


def validate_endpoint_url(value: str, *, label: str = "URL") -> str:
    """Validate a vendor endpoint URL.

    Returns the stripped URL. Raises ``ValueError`` on validation failure.
    """
    candidate = value.strip()
    if not candidate:
        raise ValueError(f"{label} must not be empty")

    parsed = urlparse(candidate)
    if parsed.scheme.lower() not in _ENDPOINT_ALLOWED_SCHEMES:
        raise ValueError(f"{label} must use http or https: {candidate}")
    if not parsed.hostname:
        raise ValueError(f"{label} has no hostname: {candidate}")
    if parsed.username or parsed.password:
        raise ValueError(f"{label} must not include userinfo")
    return candidate


def derive_detokenize_url(tokenize_url: str) -> str:
    """Swap a trailing ``tokenize`` path segment for ``detokenize``.

    ``https://vault/api/tokenize`` becomes ``https://vault/api/detokenize``.
    Query and fragment are preserved. Raises ``ValueError`` when the last
    path segment is not ``tokenize`` (case-insensitive).
    """
    parsed = urlparse(tokenize_url.strip())
    head, sep, segment = parsed.path.rstrip("/").rpartition("/")
    if segment.lower() != _TOKENIZE_SEGMENT:
        raise ValueError(f"Cannot derive detokenize URL from {tokenize_url}")

    return parsed._replace(path=f"{head}{sep}{_DETOKENIZE_SEGMENT}").geturl()


def parse_basic_authorization(value: str | None) -> tuple[str, str] | None:
    """Decode an ``Authorization: Basic ...`` header into (username, password).

    Returns ``None`` for missing headers, other schemes and malformed values.
    """
    if not value:
        return None
    scheme, _, encoded = value.strip().partition(" ")
    if scheme.lower() != "basic" or not encoded.strip():
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    username, sep, password = decoded.partition(":")
    if not sep or not username:
        return None
    return username, password
