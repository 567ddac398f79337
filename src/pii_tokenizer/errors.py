"""Error taxonomy for the tokenization adapter."""

from __future__ import annotations


class TokenizationError(Exception):
    """Base class for every failure surfaced by the adapter."""

    code = "tokenization_error"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class ConfigurationError(TokenizationError):
    """Missing or invalid endpoint/credential, raised before any network call."""

    code = "configuration_error"


class RecordValidationError(TokenizationError):
    """The record produced no vendor entries (nothing to tokenize/detokenize)."""

    code = "validation_error"


class TransportError(TokenizationError):
    """Network, DNS or TLS failure talking to the vendor."""

    code = "transport_error"


class RequestTimeoutError(TokenizationError, TimeoutError):
    """The vendor call was cancelled because it exceeded its time budget."""

    code = "timeout"

    def __init__(self, message: str, timeout_ms: int) -> None:
        super().__init__(message)
        self.timeout_ms = timeout_ms


class ProtocolError(TokenizationError):
    """The vendor answered, but not in a way the batch contract allows.

    Covers non-success HTTP statuses, response/request length mismatches
    and batch entries whose status is not ``Succeed``.
    """

    code = "protocol_error"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class DecodingError(TokenizationError):
    """An entry payload was empty or missing."""

    code = "decoding_error"
