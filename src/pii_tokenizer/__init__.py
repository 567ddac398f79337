"""Tokenize and detokenize personally-identifiable record fields via a remote vendor."""

from pii_tokenizer.adapter import detokenize, detokenize_many, tokenize
from pii_tokenizer.config import VendorConfig, load_vendor_config
from pii_tokenizer.errors import (
    ConfigurationError,
    DecodingError,
    ProtocolError,
    RecordValidationError,
    RequestTimeoutError,
    TokenizationError,
    TransportError,
)
from pii_tokenizer.models import FIELD_ORDER, VendorCredentials

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "DecodingError",
    "FIELD_ORDER",
    "ProtocolError",
    "RecordValidationError",
    "RequestTimeoutError",
    "TokenizationError",
    "TransportError",
    "VendorConfig",
    "VendorCredentials",
    "__version__",
    "detokenize",
    "detokenize_many",
    "load_vendor_config",
    "tokenize",
]
