"""Starlette HTTP API exposing the tokenization adapter to the record service."""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any

from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from pii_tokenizer.adapter import detokenize, detokenize_many, tokenize
from pii_tokenizer.client import VendorClient
from pii_tokenizer.config import load_vendor_config
from pii_tokenizer.errors import (
    ConfigurationError,
    RecordValidationError,
    RequestTimeoutError,
    TokenizationError,
)
from pii_tokenizer.middleware.audit import AuditMiddleware
from pii_tokenizer.models import VendorCredentials
from pii_tokenizer.utils.http import parse_basic_authorization

logger = logging.getLogger(__name__)

_ERROR_STATUS: tuple[tuple[type[TokenizationError], int], ...] = (
    (RecordValidationError, 400),
    (ConfigurationError, 500),
    (RequestTimeoutError, 504),
)
_DEFAULT_ERROR_STATUS = 502


def status_for_error(exc: TokenizationError) -> int:
    for error_type, status in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return _DEFAULT_ERROR_STATUS


def _error_response(message: str, exc: TokenizationError) -> JSONResponse:
    return JSONResponse(
        status_code=status_for_error(exc),
        content={"message": message, "error": exc.code, "detail": str(exc)},
    )


def _bad_request(detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request body", "error": "validation_error", "detail": detail},
    )


def _auth_override(request: Request) -> VendorCredentials | None:
    parsed = parse_basic_authorization(request.headers.get("authorization"))
    if parsed is None:
        return None
    username, password = parsed
    return VendorCredentials(username=username, password=password)


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise HTTPException(status_code=400, detail="Request body must be valid JSON") from exc


def _client(request: Request) -> VendorClient:
    return request.app.state.vendor_client


def create_http_app(vendor_client: VendorClient | None = None) -> Starlette:
    """Create the HTTP application."""

    async def tokenize_handler(request: Request) -> Response:
        body = await _read_json(request)
        if not isinstance(body, dict):
            return _bad_request("Request body must be a JSON object")
        try:
            data = await tokenize(
                body, load_vendor_config(), _auth_override(request), client=_client(request)
            )
        except TokenizationError as exc:
            logger.error("Tokenize failed: %s (%s)", exc.code, type(exc).__name__)
            return _error_response("Cannot tokenize record", exc)
        return JSONResponse({"message": "tokenize successful", "data": data})

    async def detokenize_handler(request: Request) -> Response:
        body = await _read_json(request)
        if not isinstance(body, dict):
            return _bad_request("Request body must be a JSON object")
        try:
            data = await detokenize(
                body, load_vendor_config(), _auth_override(request), client=_client(request)
            )
        except TokenizationError as exc:
            logger.error("Detokenize failed: %s (%s)", exc.code, type(exc).__name__)
            return _error_response("Cannot detokenize record", exc)
        return JSONResponse({"message": "detokenize successful", "data": data})

    async def detokenize_batch_handler(request: Request) -> Response:
        body = await _read_json(request)
        records = body.get("records") if isinstance(body, dict) else None
        if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
            return _bad_request("Request body must contain a 'records' list of objects")

        outcomes = await detokenize_many(
            records, load_vendor_config(), _auth_override(request), client=_client(request)
        )

        # Failed records keep their stored tokens so a listing can still render.
        data: list[dict[str, Any]] = []
        for record, outcome in zip(records, outcomes):
            if isinstance(outcome, TokenizationError):
                data.append({**record, "detokenized": False, "error": outcome.code})
            else:
                data.append({**outcome, "detokenized": True})
        return JSONResponse({"message": "detokenize batch complete", "data": data})

    async def healthcheck_handler(request: Request) -> Response:
        return JSONResponse({"ServerStatus": "Server online"})

    async def health_handler(request: Request) -> Response:
        return JSONResponse({"status": "healthy"})

    async def http_exception_handler(request: Request, exc: HTTPException) -> Response:
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content={"message": "Not found"})
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail, "error": "http_error"},
        )

    routes = [
        Route("/api/tokenize", endpoint=tokenize_handler, methods=["POST"]),
        Route("/api/detokenize", endpoint=detokenize_handler, methods=["POST"]),
        Route("/api/detokenize/batch", endpoint=detokenize_batch_handler, methods=["POST"]),
        Route("/api/healthcheck", endpoint=healthcheck_handler, methods=["GET"]),
        Route("/health", endpoint=health_handler, methods=["GET"]),
    ]

    middleware = [Middleware(AuditMiddleware)]

    @asynccontextmanager
    async def lifespan(app: Starlette):
        logger.info("Starting tokenization HTTP server...")
        try:
            yield
        finally:
            logger.info("Stopping tokenization HTTP server...")

    app = Starlette(
        routes=routes,
        middleware=middleware,
        exception_handlers={HTTPException: http_exception_handler},
        lifespan=lifespan,
    )
    app.state.vendor_client = vendor_client or VendorClient()
    return app
