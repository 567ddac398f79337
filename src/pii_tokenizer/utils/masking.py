"""Shared sensitive-field masking utilities.

Provides ``redact_sensitive_fields`` - a recursive, depth-limited function
that replaces values whose keys match known sensitive markers - and
``mask_value`` for showing the tail of a single value.

The adapter and the audit middleware both go through these helpers so that
record values never reach a log line unmasked.
"""

from __future__ import annotations

from pii_tokenizer.models import FIELD_ORDER

_MAX_REDACT_DEPTH = 20

# Canonical list of sensitive key markers (substring match, case-insensitive).
SENSITIVE_KEY_MARKERS: list[str] = [
    *(field.lower() for field in FIELD_ORDER),
    "password",
    "secret",
    "token",
    "data",
    "authorization",
    "credential",
]


def mask_value(value: str | None, *, visible: int = 4, mask_char: str = "*") -> str:
    """Mask all but the last ``visible`` characters of ``value``."""
    if not value:
        return ""
    if len(value) <= visible:
        return mask_char * len(value)
    return f"{mask_char * (len(value) - visible)}{value[-visible:]}"


def redact_sensitive_fields(
    value: object,
    *,
    mask: str = "***",
    depth: int = 0,
    max_depth: int = _MAX_REDACT_DEPTH,
) -> object:
    """Recursively replace sensitive values in dicts/lists.

    Keys are matched by *substring* against ``SENSITIVE_KEY_MARKERS``
    (case-insensitive).  When ``max_depth`` is exceeded the entire
    sub-tree is replaced with *mask*.
    """
    if depth >= max_depth:
        return mask
    if isinstance(value, dict):
        redacted: dict[str, object] = {}
        for key, val in value.items():
            if any(marker in str(key).lower() for marker in SENSITIVE_KEY_MARKERS):
                redacted[key] = mask
            else:
                redacted[key] = redact_sensitive_fields(
                    val, mask=mask, depth=depth + 1, max_depth=max_depth,
                )
        return redacted
    if isinstance(value, list):
        return [
            redact_sensitive_fields(
                item, mask=mask, depth=depth + 1, max_depth=max_depth,
            )
            for item in value
        ]
    return value
