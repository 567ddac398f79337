from __future__ import annotations

import base64
from unittest.mock import patch

import httpx
import pytest
from starlette.applications import Starlette
from starlette.testclient import TestClient

from pii_tokenizer.client import VendorClient
from pii_tokenizer.config import VendorConfig
from pii_tokenizer.errors import (
    ConfigurationError,
    DecodingError,
    ProtocolError,
    RecordValidationError,
    RequestTimeoutError,
    TransportError,
)
from pii_tokenizer.transport.http_server import create_http_app, status_for_error


@pytest.fixture
def mock_vendor_config(vendor_config: VendorConfig):
    with patch(
        "pii_tokenizer.transport.http_server.load_vendor_config", return_value=vendor_config
    ) as mock_load:
        yield mock_load


def _app(handler) -> Starlette:
    return create_http_app(VendorClient(transport=httpx.MockTransport(handler)))


def test_create_http_app_routes() -> None:
    app = create_http_app()
    routes = [r.path for r in app.routes]
    assert "/api/tokenize" in routes
    assert "/api/detokenize" in routes
    assert "/api/detokenize/batch" in routes
    assert "/api/healthcheck" in routes
    assert isinstance(app.state.vendor_client, VendorClient)


def test_healthcheck() -> None:
    with TestClient(create_http_app()) as client:
        response = client.get("/api/healthcheck")
    assert response.status_code == 200
    assert response.json() == {"ServerStatus": "Server online"}


def test_unknown_route_is_json_404() -> None:
    with TestClient(create_http_app()) as client:
        response = client.get("/api/users/1")
    assert response.status_code == 404
    assert response.json() == {"message": "Not found"}


def test_tokenize_endpoint(mock_vendor_config) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json=[
                {"status": "Succeed", "token": '{"TKN-A"}'},
                {"status": "Succeed", "token": '{"TKN-P"}'},
            ],
        )

    with TestClient(_app(handler)) as client:
        response = client.post(
            "/api/tokenize", json={"Firstname": "Ann", "Phone": "0812345678"}
        )

    assert response.status_code == 200
    assert response.json() == {
        "message": "tokenize successful",
        "data": {"Firstname": "TKN-A", "Phone": "TKN-P"},
    }
    assert "x-request-id" in response.headers


def test_basic_auth_header_becomes_vendor_override(mock_vendor_config) -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers["authorization"])
        return httpx.Response(200, json=[{"status": "Succeed", "data": '{"Ann"}'}])

    credentials = base64.b64encode(b"admin:admin-pass").decode()
    with TestClient(_app(handler)) as client:
        response = client.post(
            "/api/detokenize",
            json={"Firstname": "TKN-A"},
            headers={"Authorization": f"Basic {credentials}"},
        )

    assert response.status_code == 200
    assert response.json()["data"] == {"Firstname": "Ann"}
    assert seen == [f"Basic {credentials}"]


def test_empty_record_is_400(mock_vendor_config) -> None:
    with TestClient(_app(lambda request: httpx.Response(500))) as client:
        response = client.post("/api/tokenize", json={"Firstname": ""})

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_non_object_body_is_400(mock_vendor_config) -> None:
    with TestClient(create_http_app()) as client:
        response = client.post("/api/tokenize", json=["Ann"])
    assert response.status_code == 400
    assert response.json() == {
        "message": "Invalid request body",
        "error": "validation_error",
        "detail": "Request body must be a JSON object",
    }


def test_malformed_json_is_400(mock_vendor_config) -> None:
    with TestClient(create_http_app()) as client:
        response = client.post(
            "/api/tokenize", content=b"{not json", headers={"Content-Type": "application/json"}
        )
    assert response.status_code == 400


def test_vendor_failure_is_502(mock_vendor_config) -> None:
    with TestClient(_app(lambda request: httpx.Response(500, text="boom"))) as client:
        response = client.post("/api/tokenize", json={"Firstname": "Ann"})

    assert response.status_code == 502
    body = response.json()
    assert body["message"] == "Cannot tokenize record"
    assert body["error"] == "protocol_error"


def test_detokenize_batch_degrades_per_record(mock_vendor_config) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if b"TKN-BAD" in request.content:
            return httpx.Response(200, json=[{"status": "Failed"}])
        return httpx.Response(200, json=[{"status": "Succeed", "data": '{"Ann"}'}])

    records = [{"id": 1, "Firstname": "TKN-1"}, {"id": 2, "Firstname": "TKN-BAD"}]
    with TestClient(_app(handler)) as client:
        response = client.post("/api/detokenize/batch", json={"records": records})

    assert response.status_code == 200
    assert response.json()["data"] == [
        {"id": 1, "Firstname": "Ann", "detokenized": True},
        {"id": 2, "Firstname": "TKN-BAD", "detokenized": False, "error": "protocol_error"},
    ]


def test_detokenize_batch_requires_records_list(mock_vendor_config) -> None:
    with TestClient(create_http_app()) as client:
        response = client.post("/api/detokenize/batch", json={"records": "nope"})
    assert response.status_code == 400


@pytest.mark.parametrize(
    ("error", "status"),
    [
        (RecordValidationError("x"), 400),
        (ConfigurationError("x"), 500),
        (RequestTimeoutError("x", timeout_ms=10), 504),
        (TransportError("x"), 502),
        (ProtocolError("x"), 502),
        (DecodingError("x"), 502),
    ],
)
def test_status_for_error(error, status: int) -> None:
    assert status_for_error(error) == status
