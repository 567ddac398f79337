"""Request builder: one vendor entry per provided field."""

from __future__ import annotations

from pii_tokenizer.codec import encode_value, is_brace_list
from pii_tokenizer.errors import RecordValidationError
from pii_tokenizer.models import (
    FIELD_ORDER,
    BatchRequest,
    Direction,
    EntryMeta,
    SensitiveRecord,
    TemplateAssignment,
    VendorEntry,
    is_present,
)


def _payload_for(value: str, direction: Direction) -> str:
    if direction == "detokenize" and is_brace_list(value):
        # Already in the vendor's encoding, send it back verbatim.
        return value
    return encode_value(value)


def build_request(
    record: SensitiveRecord,
    assignment: TemplateAssignment,
    direction: Direction,
) -> BatchRequest:
    """Split ``record`` into positionally aligned entries and metadata.

    Fields are visited in ``FIELD_ORDER``; absent or blank fields produce
    nothing. Raises ``RecordValidationError`` if no field is left, since an
    empty batch must never reach the vendor.
    """
    entries: list[VendorEntry] = []
    meta: list[EntryMeta] = []

    for field in FIELD_ORDER:
        value = record.get(field)
        if not is_present(value):
            continue
        if not isinstance(value, str):
            raise RecordValidationError(f"{field} must be a string")

        entries.append(
            VendorEntry(
                group=assignment.group,
                template=assignment.template_for(field),
                payload=_payload_for(value, direction),
            )
        )
        meta.append(EntryMeta(fields=(field,)))

    if not entries:
        raise RecordValidationError(f"No data provided to {direction}.")

    return BatchRequest(direction=direction, entries=tuple(entries), meta=tuple(meta))
