from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from pii_tokenizer import config as config_module
from pii_tokenizer.client import VendorClient
from pii_tokenizer.config import VendorConfig

_ISOLATED_ENV_KEYS = (
    "TOKENIZE_API_URL",
    "DETOKENIZE_API_URL",
    "TOKENIZE_API_USERNAME",
    "TOKENIZE_API_PASSWORD",
    "TOKENIZE_API_GROUP",
    "TOKENIZE_NAME_TEMPLATE",
    "TOKENIZE_CREDITCARD_TEMPLATE",
    "TOKENIZE_TIMEOUT_MS",
    "TOKENIZE_ALLOW_INSECURE_TLS",
    "SERVER_HOST",
    "SERVER_PORT",
    "LOG_LEVEL",
    "LOG_FILE",
)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    # Keep a developer's .env and shell variables out of unit tests.
    monkeypatch.setattr(config_module, "load_dotenv", lambda **_: None)
    config_module._load_env_file.cache_clear()
    config_module._load_settings_cached.cache_clear()
    for key in _ISOLATED_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    yield
    config_module._load_settings_cached.cache_clear()


@pytest.fixture
def vendor_config() -> VendorConfig:
    return VendorConfig(
        tokenize_url="https://vault.example.com/api/tokenize",
        username="svc-user",
        password="svc-pass",
        group="Test",
        name_template="NameTemplate",
        card_template="CreditCardTemplate",
        timeout_ms=2_000,
    )


class RecordingVendor:
    """Fake vendor endpoint that records requests and answers from a callback."""

    def __init__(self, responder: Callable[[list[dict[str, Any]]], Any]) -> None:
        self.responder = responder
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = json.loads(request.content)
        return httpx.Response(200, json=self.responder(body))

    @property
    def bodies(self) -> list[Any]:
        return [json.loads(request.content) for request in self.requests]

    def client(self) -> VendorClient:
        return VendorClient(transport=httpx.MockTransport(self))


@pytest.fixture
def make_vendor() -> Callable[[Callable[[list[dict[str, Any]]], Any]], RecordingVendor]:
    return RecordingVendor
