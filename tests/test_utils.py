from __future__ import annotations

import base64

import pytest

from pii_tokenizer.utils.http import (
    derive_detokenize_url,
    parse_basic_authorization,
    validate_endpoint_url,
)
from pii_tokenizer.utils.masking import mask_value, redact_sensitive_fields


class TestValidateEndpointUrl:
    def test_accepts_http_and_https(self) -> None:
        assert validate_endpoint_url(" https://vault.example.com/api ") == (
            "https://vault.example.com/api"
        )
        assert validate_endpoint_url("http://localhost:8080/tokenize")

    @pytest.mark.parametrize(
        ("url", "message"),
        [
            ("", "must not be empty"),
            ("vault.example.com/tokenize", "http or https"),
            ("https:///tokenize", "no hostname"),
            ("https://user:pw@vault.example.com/tokenize", "userinfo"),
        ],
    )
    def test_rejects_invalid(self, url: str, message: str) -> None:
        with pytest.raises(ValueError, match=message):
            validate_endpoint_url(url)


class TestDeriveDetokenizeUrl:
    def test_swaps_suffix(self) -> None:
        assert (
            derive_detokenize_url("https://vault.example.com/vts/rest/v2.0/tokenize")
            == "https://vault.example.com/vts/rest/v2.0/detokenize"
        )

    def test_preserves_query(self) -> None:
        assert (
            derive_detokenize_url("https://vault.example.com/tokenize?tenant=a")
            == "https://vault.example.com/detokenize?tenant=a"
        )

    def test_rejects_detokenize_and_other_paths(self) -> None:
        with pytest.raises(ValueError):
            derive_detokenize_url("https://vault.example.com/detokenize")
        with pytest.raises(ValueError):
            derive_detokenize_url("https://vault.example.com/")

    @pytest.mark.parametrize(
        "url",
        ["https://vault.example.com/api/pretokenize", "https://vault.example.com/api/tokenize-v2"],
    )
    def test_requires_whole_tokenize_segment(self, url: str) -> None:
        with pytest.raises(ValueError, match="Cannot derive"):
            derive_detokenize_url(url)

    def test_segment_match_is_case_insensitive(self) -> None:
        assert (
            derive_detokenize_url("https://vault.example.com/API/Tokenize")
            == "https://vault.example.com/API/detokenize"
        )


class TestParseBasicAuthorization:
    def test_parses_credentials(self) -> None:
        encoded = base64.b64encode(b"admin:p:w").decode()
        assert parse_basic_authorization(f"Basic {encoded}") == ("admin", "p:w")

    @pytest.mark.parametrize(
        "header",
        [
            None,
            "",
            "Bearer abc",
            "Basic",
            "Basic !!!",
            f"Basic {base64.b64encode(b'no-colon').decode()}",
            f"Basic {base64.b64encode(b':pw').decode()}",
        ],
    )
    def test_rejects_malformed(self, header: str | None) -> None:
        assert parse_basic_authorization(header) is None


def test_mask_value() -> None:
    assert mask_value("4111111111111111") == "************1111"
    assert mask_value("abc") == "***"
    assert mask_value(None) == ""


def test_redact_sensitive_fields_recursive() -> None:
    redacted = redact_sensitive_fields(
        {
            "Firstname": "Ann",
            "nested": {"Creditcard": "4111", "id": 3},
            "entries": [{"tokengroup": "Test", "data": '{"Ann"}'}],
            "status": "Succeed",
        }
    )
    assert redacted == {
        "Firstname": "***",
        "nested": {"Creditcard": "***", "id": 3},
        "entries": [{"tokengroup": "***", "data": "***"}],
        "status": "Succeed",
    }


def test_redact_sensitive_fields_depth_limit() -> None:
    assert redact_sensitive_fields({"a": {"b": 1}}, max_depth=1) == {"a": "***"}
