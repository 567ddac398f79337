"""Entrypoint for the PII tokenization HTTP service."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

if __package__ in (None, ""):
    sys.path.insert(0, str(Path(__file__).resolve().parents[1]))  # pragma: no cover

from pii_tokenizer import __version__
from pii_tokenizer.config import load_settings
from pii_tokenizer.logging_utils import configure_logging


def run_entrypoint() -> None:
    """Configure logging and serve the HTTP API with uvicorn."""
    settings = load_settings()
    configure_logging()
    from pii_tokenizer.transport.http_server import create_http_app

    try:
        import uvicorn
    except ImportError as exc:
        raise RuntimeError("uvicorn is required to run the HTTP server") from exc

    logging.info(
        "Starting PII tokenizer v%s on %s:%d",
        __version__,
        settings.server.host,
        settings.server.port,
    )
    if settings.logging.file:
        logging.info("Log file configured at: %s", settings.logging.file)

    app = create_http_app()
    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        ws="none",
        log_config=None,
    )


if __name__ == "__main__":  # pragma: no cover
    run_entrypoint()
