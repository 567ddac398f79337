"""Field codec for the vendor's textual value encoding.

Values are sent as a single-element brace-delimited list (``{"value"}``).
The vendor does not answer canonically: a payload may come back as that
brace list, as a JSON object, as a JSON array or as a bare scalar. Decoding
therefore runs an ordered chain of strategies and keeps the first one that
accepts the text:

1. ``parse_brace_list`` - the ``{"a","b"}`` pseudo-array, which is not JSON
2. ``parse_json`` - objects, arrays and quoted strings
3. ``parse_scalar`` - the text itself
"""

from __future__ import annotations

import json
from typing import Callable, Optional

from pii_tokenizer.errors import DecodingError
from pii_tokenizer.models import DecodedValue


def encode_value(value: str) -> str:
    """Encode one field value as ``{"<json-escaped value>"}``."""
    return "{" + json.dumps(value, ensure_ascii=False) + "}"


def is_brace_list(text: str) -> bool:
    stripped = text.strip()
    return len(stripped) >= 2 and stripped.startswith("{") and stripped.endswith("}")


def _split_segments(inner: str) -> list[str] | None:
    """Split on commas that sit outside double-quoted segments.

    Returns ``None`` when a quoted segment is never closed.
    """
    segments: list[str] = []
    current: list[str] = []
    in_quotes = False
    escaped = False

    for char in inner:
        if in_quotes:
            current.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_quotes = False
            continue
        if char == ",":
            segments.append("".join(current))
            current = []
            continue
        if char == '"':
            in_quotes = True
        current.append(char)

    if in_quotes:
        return None
    segments.append("".join(current))
    return segments


def _quoted_end(segment: str) -> int:
    """Index of the quote closing the string that opens ``segment``, or -1."""
    escaped = False
    for index in range(1, len(segment)):
        char = segment[index]
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == '"':
            return index
    return -1


def _decode_segment(segment: str) -> str | None:
    token = segment.strip()
    if token.startswith('"'):
        # Exactly one quoted string, nothing trailing it.
        if _quoted_end(token) != len(token) - 1:
            return None
        try:
            decoded = json.loads(token)
        except ValueError:
            return token[1:-1]
        return decoded if isinstance(decoded, str) else token[1:-1]
    if '"' in token:
        return None
    return token.strip("'")


def parse_brace_list(text: str) -> list[str] | None:
    """Parse the vendor's ``{"a","b,c"}`` pseudo-array.

    Returns ``None`` when ``text`` does not follow the brace grammar, for
    example a JSON object whose members are ``"key": "value"`` pairs.
    """
    if not is_brace_list(text):
        return None
    inner = text.strip()[1:-1]
    if not inner.strip():
        return []

    segments = _split_segments(inner)
    if segments is None:
        return None

    values: list[str] = []
    for segment in segments:
        decoded = _decode_segment(segment)
        if decoded is None:
            return None
        values.append(decoded)
    return values


def _as_text(value: object) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    return json.dumps(value, ensure_ascii=False)


def parse_json(text: str) -> DecodedValue | None:
    """Standard JSON; numbers, booleans and null are left to the scalar step."""
    try:
        decoded = json.loads(text)
    except ValueError:
        return None
    if isinstance(decoded, dict):
        return {str(key): _as_text(value) for key, value in decoded.items()}
    if isinstance(decoded, list):
        return [_as_text(item) for item in decoded]
    if isinstance(decoded, str):
        return decoded
    return None


def parse_scalar(text: str) -> DecodedValue | None:
    return text


DECODERS: tuple[Callable[[str], Optional[DecodedValue]], ...] = (
    parse_brace_list,
    parse_json,
    parse_scalar,
)


def decode_payload(text: str | None) -> DecodedValue:
    """Decode a vendor payload using the first strategy that accepts it."""
    if text is None or not text.strip():
        raise DecodingError("Vendor entry payload is empty")

    for decoder in DECODERS:
        decoded = decoder(text)
        if decoded is not None:
            return decoded

    raise DecodingError("Vendor entry payload could not be decoded")
