"""Response reconciler: map vendor entries back onto record fields.

The vendor does not tag entries with a field name, so batch position is the
only correlation key. Each decoded entry is resolved per field through a
fallback chain, first non-blank value wins:

(a) keyed lookup in a decoded mapping (case-insensitive)
(b) positional match in a decoded list, or in the mapping's values
(c) the raw, undecoded payload
(d) for detokenize only, the value the caller sent in
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pii_tokenizer.codec import decode_payload
from pii_tokenizer.errors import DecodingError, ProtocolError
from pii_tokenizer.models import (
    SUCCESS_STATUS,
    BatchRequest,
    DecodedValue,
    Direction,
    SensitiveRecord,
    response_keys,
)
from pii_tokenizer.utils.masking import redact_sensitive_fields

logger = logging.getLogger(__name__)


def _non_blank(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _lookup_key(decoded: Mapping[str, str], field: str) -> str | None:
    wanted = field.lower()
    for key, value in decoded.items():
        if key.lower() == wanted:
            return _non_blank(value)
    return None


def _lookup_position(decoded: DecodedValue, position: int) -> str | None:
    if isinstance(decoded, Mapping):
        items = list(decoded.values())
    elif isinstance(decoded, list):
        items = decoded
    else:
        return None
    if position < len(items):
        return _non_blank(items[position])
    return None


def resolve_field(
    field: str,
    position: int,
    decoded: DecodedValue | None,
    raw_payload: str | None,
    original: str | None = None,
) -> str | None:
    """Resolve one field's value from a decoded entry via the fallback chain."""
    if isinstance(decoded, Mapping):
        value = _lookup_key(decoded, field)
        if value is not None:
            return value
    if decoded is not None:
        value = _lookup_position(decoded, position)
        if value is not None:
            return value
    value = _non_blank(raw_payload)
    if value is not None:
        return value
    return _non_blank(original)


def _entry_payload(entry: Mapping[str, Any], direction: Direction) -> str | None:
    preferred, alternate = response_keys(direction)
    for key in (preferred, alternate):
        value = entry.get(key)
        if value is None:
            continue
        if isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False)
    return None


def _describe(entry: object) -> str:
    if isinstance(entry, Mapping):
        entry = redact_sensitive_fields(dict(entry))
    try:
        return json.dumps(entry, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return repr(entry)


def reconcile(
    response: Sequence[Any],
    request: BatchRequest,
    original: SensitiveRecord,
) -> dict[str, str | None]:
    """Merge the vendor's answers over a copy of ``original``.

    Raises ``ProtocolError`` when the response is not aligned with the
    request or any entry failed; no partial record is ever returned.
    """
    if len(response) != len(request.meta):
        raise ProtocolError(
            "Tokenization API response length does not match the request "
            f"(expected {len(request.meta)}, got {len(response)})."
        )

    for index, entry in enumerate(response):
        if not isinstance(entry, Mapping) or entry.get("status") != SUCCESS_STATUS:
            raise ProtocolError(f"Tokenization entry {index} failed: {_describe(entry)}")

    direction = request.direction
    result: dict[str, str | None] = dict(original)

    for index, (entry, meta) in enumerate(zip(response, request.meta)):
        raw_payload = _entry_payload(entry, direction)

        decoded: DecodedValue | None = None
        if raw_payload is not None and raw_payload.strip():
            decoded = decode_payload(raw_payload)
        elif direction == "tokenize":
            raise DecodingError(f"Tokenization entry {index} is missing its token payload.")

        for position, field in enumerate(meta.fields):
            fallback = original.get(field) if direction == "detokenize" else None
            value = resolve_field(field, position, decoded, raw_payload, fallback)
            if value is not None:
                result[field] = value
            else:
                logger.debug("No value resolved for %s in entry %d", field, index)

    return result
