"""Data model shared by the request builder, client and reconciler."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal, Union

Direction = Literal["tokenize", "detokenize"]

FIELD_ORDER: tuple[str, ...] = ("Firstname", "Lastname", "Phone", "Creditcard", "IDcard")
NAME_FIELDS = frozenset({"Firstname", "Lastname"})

SensitiveRecord = Mapping[str, Union[str, None]]
DecodedValue = Union[dict[str, str], list[str], str]

SUCCESS_STATUS = "Succeed"

# Key carrying the value in a request entry / a response entry.
_REQUEST_KEYS: dict[str, str] = {"tokenize": "data", "detokenize": "token"}
_RESPONSE_KEYS: dict[str, str] = {"tokenize": "token", "detokenize": "data"}


def request_key(direction: Direction) -> str:
    return _REQUEST_KEYS[direction]


def response_keys(direction: Direction) -> tuple[str, str]:
    """Return (preferred, alternate) payload keys for a response entry."""
    preferred = _RESPONSE_KEYS[direction]
    alternate = _REQUEST_KEYS[direction]
    return preferred, alternate


def is_present(value: object) -> bool:
    return value is not None and (not isinstance(value, str) or value.strip() != "")


@dataclass(frozen=True)
class TemplateAssignment:
    """Maps each sensitive field onto a vendor template and token group."""

    group: str
    name_template: str
    card_template: str

    def template_for(self, field: str) -> str:
        if field in NAME_FIELDS:
            return self.name_template
        return self.card_template

    @classmethod
    def from_config(cls, config: Any) -> "TemplateAssignment":
        return cls(
            group=config.group,
            name_template=config.name_template,
            card_template=config.card_template,
        )


@dataclass(frozen=True)
class VendorEntry:
    group: str
    template: str
    payload: str

    def to_wire(self, direction: Direction) -> dict[str, str]:
        return {
            "tokengroup": self.group,
            "tokentemplate": self.template,
            request_key(direction): self.payload,
        }


@dataclass(frozen=True)
class EntryMeta:
    """Fields represented by the entry at the same batch position."""

    fields: tuple[str, ...]


@dataclass(frozen=True)
class BatchRequest:
    direction: Direction
    entries: tuple[VendorEntry, ...]
    meta: tuple[EntryMeta, ...]

    def __post_init__(self) -> None:
        if len(self.entries) != len(self.meta):
            raise ValueError("entries and meta must be positionally aligned")

    def wire_body(self) -> list[dict[str, str]]:
        return [entry.to_wire(self.direction) for entry in self.entries]

    @property
    def fields(self) -> list[str]:
        return [field for meta in self.meta for field in meta.fields]


@dataclass(frozen=True)
class VendorCredentials:
    """Basic-auth credential pair for the vendor endpoint."""

    username: str
    password: str

    def __repr__(self) -> str:
        return f"VendorCredentials(username={self.username!r}, password=***)"
