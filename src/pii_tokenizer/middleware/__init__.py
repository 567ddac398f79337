"""HTTP middleware for the tokenization API."""

from pii_tokenizer.middleware.audit import AuditMiddleware

__all__ = ["AuditMiddleware"]
