"""Tokenize/detokenize entry points.

Each call is one self-contained round trip: build the batch, POST it once,
reconcile the answer. Configuration and optional credential overrides are
passed in explicitly so that concurrent callers never share state.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from pii_tokenizer.builder import build_request
from pii_tokenizer.client import VendorClient, resolve_credentials
from pii_tokenizer.config import VendorConfig
from pii_tokenizer.errors import TokenizationError
from pii_tokenizer.models import (
    Direction,
    SensitiveRecord,
    TemplateAssignment,
    VendorCredentials,
)
from pii_tokenizer.reconciler import reconcile
from pii_tokenizer.utils.masking import mask_value

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 10


async def _run(
    direction: Direction,
    record: SensitiveRecord,
    config: VendorConfig,
    auth: VendorCredentials | None,
    client: VendorClient | None,
) -> dict[str, str | None]:
    request = build_request(record, TemplateAssignment.from_config(config), direction)
    url = config.endpoint_for(direction)
    credentials = resolve_credentials(config, auth)

    logger.info(
        "%s batch entries=%d fields=%s user=%s",
        direction,
        len(request.entries),
        ",".join(request.fields),
        mask_value(credentials.username),
    )

    response = await (client or VendorClient()).post_batch(
        url,
        request.wire_body(),
        credentials=credentials,
        timeout_ms=config.timeout_ms,
        verify=not config.insecure_tls_allowed,
    )
    return reconcile(response, request, record)


async def tokenize(
    record: SensitiveRecord,
    config: VendorConfig,
    auth: VendorCredentials | None = None,
    *,
    client: VendorClient | None = None,
) -> dict[str, str | None]:
    """Replace every provided field of ``record`` with its vendor token."""
    return await _run("tokenize", record, config, auth, client)


async def detokenize(
    record: SensitiveRecord,
    config: VendorConfig,
    auth: VendorCredentials | None = None,
    *,
    client: VendorClient | None = None,
) -> dict[str, str | None]:
    """Exchange every provided token field of ``record`` for its original value."""
    return await _run("detokenize", record, config, auth, client)


async def detokenize_many(
    records: Sequence[SensitiveRecord],
    config: VendorConfig,
    auth: VendorCredentials | None = None,
    *,
    client: VendorClient | None = None,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> list[dict[str, str | None] | TokenizationError]:
    """Detokenize records concurrently, one independent call per record.

    At most ``max_concurrency`` vendor calls are in flight at once. A
    ``TokenizationError`` for one record is returned in that record's slot
    and does not affect the others. Any other exception propagates.
    """
    if max_concurrency < 1:
        raise ValueError("max_concurrency must be at least 1")

    # Each call opens its own vendor connection.
    semaphore = asyncio.Semaphore(max_concurrency)

    async def detokenize_one(record: SensitiveRecord) -> dict[str, str | None]:
        async with semaphore:
            return await detokenize(record, config, auth, client=client)

    results = await asyncio.gather(
        *(detokenize_one(record) for record in records),
        return_exceptions=True,
    )

    outcomes: list[dict[str, str | None] | TokenizationError] = []
    for index, result in enumerate(results):
        if isinstance(result, TokenizationError):
            logger.warning("Detokenize failed for record %d: %s (%s)", index, result, result.code)
            outcomes.append(result)
        elif isinstance(result, BaseException):
            raise result
        else:
            outcomes.append(result)
    return outcomes
