"""Logging setup for the PII tokenization service.

Every handler installed here carries ``SensitiveDataFilter`` so that long
digit runs (card, ID and phone numbers) and Basic credentials are masked
even when a value slips into an exception message or a third-party log line.
"""

from __future__ import annotations

import logging
import re
import sys
from pathlib import Path

from pii_tokenizer.config import LoggingSettings, load_settings
from pii_tokenizer.utils.masking import mask_value

_logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


class SensitiveDataFilter(logging.Filter):
    """Mask record values in log messages and their string arguments."""

    DIGIT_RUN = re.compile(r"\b\d{9,19}\b")
    BASIC_CREDENTIALS = re.compile(r"(Basic\s+)[A-Za-z0-9+/=]+", re.IGNORECASE)

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.redact(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(
                self.redact(arg) if isinstance(arg, str) else arg for arg in record.args
            )
        return True

    def redact(self, text: str) -> str:
        text = self.DIGIT_RUN.sub(lambda m: mask_value(m.group()), text)
        return self.BASIC_CREDENTIALS.sub(r"\1***", text)


def _handler(handler: logging.Handler) -> logging.Handler:
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
    handler.addFilter(SensitiveDataFilter())
    return handler


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Install stderr (and optional file) handlers on the root logger."""
    if settings is None:
        settings = load_settings().logging
    level = getattr(logging, settings.level.upper(), logging.INFO)

    handlers = [_handler(logging.StreamHandler(sys.stderr))]

    if settings.file:
        try:
            Path(settings.file).parent.mkdir(parents=True, exist_ok=True)
            handlers.append(_handler(logging.FileHandler(settings.file)))
        except OSError as exc:
            _logger.warning("Failed to open log file %s: %s", settings.file, exc)

    logging.basicConfig(level=level, handlers=handlers, force=True)
