"""Configuration management for the PII tokenization adapter."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pii_tokenizer.errors import ConfigurationError
from pii_tokenizer.models import Direction
from pii_tokenizer.utils.http import derive_detokenize_url, validate_endpoint_url

_config_logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 10_000


class VendorConfig(BaseModel):
    """Everything one adapter call needs to reach the tokenization vendor.

    Built by the caller (usually via ``load_vendor_config``) and passed into
    every ``tokenize``/``detokenize`` call. Nothing here is cached by the
    adapter.
    """

    model_config = ConfigDict(frozen=True)

    tokenize_url: str | None = Field(default=None)
    detokenize_url: str | None = Field(
        default=None,
        description="Defaults to tokenize_url with its trailing 'tokenize' swapped for 'detokenize'",
    )
    username: str | None = Field(default=None)
    password: str | None = Field(default=None, repr=False)
    group: str = Field(default="Test")
    name_template: str = Field(default="NameTemplate")
    card_template: str = Field(default="CreditCardTemplate")
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, ge=1)
    insecure_tls_allowed: bool = Field(default=False)

    def endpoint_for(self, direction: Direction) -> str:
        """Resolve and validate the endpoint for ``direction``."""
        try:
            if direction == "detokenize" and self.detokenize_url:
                return validate_endpoint_url(
                    self.detokenize_url, label=ENV_KEYS["detokenize_url"]
                )
            if not self.tokenize_url:
                raise ConfigurationError(
                    f"Missing {ENV_KEYS['tokenize_url']} for tokenization endpoint."
                )
            tokenize_url = validate_endpoint_url(self.tokenize_url, label=ENV_KEYS["tokenize_url"])
            if direction == "tokenize":
                return tokenize_url
            return derive_detokenize_url(tokenize_url)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc


class LoggingSettings(BaseModel):
    level: str = Field(default="INFO", description="Python logging level name")
    file: str | None = Field(default=None, description="Optional log file path")


class ServerSettings(BaseModel):
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=5000, ge=1, le=65535)


class Settings(BaseModel):
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


ENV_KEYS = {
    "tokenize_url": "TOKENIZE_API_URL",
    "detokenize_url": "DETOKENIZE_API_URL",
    "username": "TOKENIZE_API_USERNAME",
    "password": "TOKENIZE_API_PASSWORD",
    "group": "TOKENIZE_API_GROUP",
    "name_template": "TOKENIZE_NAME_TEMPLATE",
    "card_template": "TOKENIZE_CREDITCARD_TEMPLATE",
    "timeout_ms": "TOKENIZE_TIMEOUT_MS",
    "insecure_tls": "TOKENIZE_ALLOW_INSECURE_TLS",
    "host": "SERVER_HOST",
    "port": "SERVER_PORT",
    "log_level": "LOG_LEVEL",
    "log_file": "LOG_FILE",
}

_TRUE_VALUES = frozenset({"1", "true", "yes"})


def _project_root() -> Path:
    return Path(__file__).resolve().parents[2]


@lru_cache(maxsize=1)
def _load_env_file() -> None:
    load_dotenv(dotenv_path=_project_root() / ".env")


def _env_str(key: str) -> str | None:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        _config_logger.warning(
            "Invalid integer value for %s: %r, using default %d", key, value, default
        )
        return default


def _env_timeout_ms(key: str, default: int) -> int:
    timeout = _env_int(key, default)
    if timeout <= 0:
        _config_logger.warning(
            "Non-positive timeout for %s: %d, using default %d", key, timeout, default
        )
        return default
    return timeout


def load_vendor_config() -> VendorConfig:
    """Read the vendor configuration from the environment.

    Not cached: the environment is read on every call so that each adapter
    invocation sees the configuration current at that moment.
    """
    _load_env_file()
    defaults = VendorConfig()
    return VendorConfig(
        tokenize_url=_env_str(ENV_KEYS["tokenize_url"]),
        detokenize_url=_env_str(ENV_KEYS["detokenize_url"]),
        username=_env_str(ENV_KEYS["username"]),
        password=os.getenv(ENV_KEYS["password"]) or None,
        group=_env_str(ENV_KEYS["group"]) or defaults.group,
        name_template=_env_str(ENV_KEYS["name_template"]) or defaults.name_template,
        card_template=_env_str(ENV_KEYS["card_template"]) or defaults.card_template,
        timeout_ms=_env_timeout_ms(ENV_KEYS["timeout_ms"], defaults.timeout_ms),
        insecure_tls_allowed=_env_bool(ENV_KEYS["insecure_tls"], defaults.insecure_tls_allowed),
    )


def load_settings() -> Settings:
    """Load process settings and cache the result."""

    return _load_settings_cached()


@lru_cache(maxsize=1)
def _load_settings_cached() -> Settings:
    _load_env_file()

    settings_data: dict[str, object] = {
        "server": {
            "host": os.getenv(ENV_KEYS["host"], ServerSettings().host),
            "port": _env_int(ENV_KEYS["port"], ServerSettings().port),
        },
        "logging": {
            "level": os.getenv(ENV_KEYS["log_level"], LoggingSettings().level),
            "file": _env_str(ENV_KEYS["log_file"]),
        },
    }

    try:
        return Settings.model_validate(settings_data)
    except ValidationError as exc:
        raise RuntimeError(f"Invalid configuration: {exc}") from exc
