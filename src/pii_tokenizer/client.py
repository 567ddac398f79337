"""Transport client for the remote tokenization vendor."""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any

import httpx

from pii_tokenizer.config import ENV_KEYS, VendorConfig
from pii_tokenizer.errors import (
    ConfigurationError,
    ProtocolError,
    RequestTimeoutError,
    TransportError,
)
from pii_tokenizer.models import VendorCredentials

logger = logging.getLogger(__name__)

_MAX_ERROR_BODY_CHARS = 2_000


def resolve_credentials(
    config: VendorConfig,
    override: VendorCredentials | None = None,
) -> VendorCredentials:
    """Pick the credential pair for one call.

    A caller-supplied override wins over the configured pair. Raises
    ``ConfigurationError`` when neither is complete.
    """
    if override is not None and override.username and override.password:
        return override
    if config.username and config.password:
        return VendorCredentials(username=config.username, password=config.password)
    raise ConfigurationError(
        f"Tokenization requires {ENV_KEYS['username']} and {ENV_KEYS['password']} to be set."
    )


def build_basic_auth_header(credentials: VendorCredentials) -> str:
    raw = f"{credentials.username}:{credentials.password}".encode("utf-8")
    return f"Basic {base64.b64encode(raw).decode('ascii')}"


class VendorClient:
    """Performs exactly one batched POST per call, bounded by wall-clock time.

    ``transport`` is handed to ``httpx.AsyncClient`` unchanged, which lets
    callers plug in ``httpx.MockTransport`` or a custom connection pool.
    """

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    async def post_batch(
        self,
        url: str,
        body: list[dict[str, str]],
        *,
        credentials: VendorCredentials,
        timeout_ms: int,
        verify: bool = True,
    ) -> list[Any]:
        """POST ``body`` to ``url`` and return the decoded JSON array.

        Raises:
            RequestTimeoutError: the call did not finish within ``timeout_ms``
            TransportError: connection, DNS or TLS failure
            ProtocolError: non-2xx status or a body that is not a JSON array
        """
        headers = {
            "Authorization": build_basic_auth_header(credentials),
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        timeout_seconds = timeout_ms / 1000

        if not verify:
            logger.warning("TLS certificate verification disabled for %s", url)

        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                verify=verify,
                timeout=timeout_seconds,
            ) as client:
                response = await asyncio.wait_for(
                    client.post(url, json=body, headers=headers),
                    timeout=timeout_seconds,
                )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            logger.warning("Vendor request to %s timed out after %dms", url, timeout_ms)
            raise RequestTimeoutError(
                f"Tokenization API request timed out after {timeout_ms}ms",
                timeout_ms=timeout_ms,
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Vendor request to %s failed: %s", url, exc)
            raise TransportError(f"Tokenization API request failed: {exc}") from exc

        if not response.is_success:
            error_text = response.text[:_MAX_ERROR_BODY_CHARS]
            raise ProtocolError(
                f"Tokenization API failed with status {response.status_code}: "
                f"{error_text or response.reason_phrase}",
                status_code=response.status_code,
                body=error_text,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ProtocolError(
                "Tokenization API returned a non-JSON payload.",
                status_code=response.status_code,
            ) from exc

        if not isinstance(payload, list):
            raise ProtocolError(
                "Tokenization API returned an unexpected payload.",
                status_code=response.status_code,
            )

        logger.debug(
            "Vendor responded status=%s entries=%d", response.status_code, len(payload)
        )
        return payload
