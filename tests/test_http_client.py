from __future__ import annotations

import pytest
import requests
import responses

from inventory_grid.config import ClientConfig
from inventory_grid.exceptions import NotFoundError, ServerError, TransportError, ValidationError
from inventory_grid.http_client import TRACE_HEADER, HttpClient

BASE_URL = "https://api.example.com"


def _client(retries: int = 0, trace_id: str | None = None) -> HttpClient:
    cfg = ClientConfig(env_name="test", api_base_url=BASE_URL, retries=retries, retry_backoff_seconds=0)
    return HttpClient(cfg, trace_id=trace_id)


@responses.activate
def test_get_returns_json_and_sends_trace_header() -> None:
    responses.add(responses.GET, f"{BASE_URL}/product/list", json={"data": []}, status=200)
    http = _client(trace_id="trace-fixed")

    payload = http.request("GET", "/product/list", operation="product.list")

    assert payload == {"data": []}
    sent = responses.calls[0].request
    assert sent.headers[TRACE_HEADER] == "trace-fixed"
    assert sent.headers["Accept"] == "application/json"
    assert http.last_operation is not None
    assert http.last_operation.operation == "product.list"
    assert http.last_operation.result == "success"


@responses.activate
def test_get_retries_server_errors_then_succeeds() -> None:
    responses.add(responses.GET, f"{BASE_URL}/product/list", json={"message": "busy"}, status=503)
    responses.add(responses.GET, f"{BASE_URL}/product/list", json=[{"id": "p1"}], status=200)
    http = _client(retries=2)

    payload = http.request("GET", "/product/list")

    assert payload == [{"id": "p1"}]
    assert len(responses.calls) == 2


@responses.activate
def test_mutation_is_not_retried() -> None:
    responses.add(responses.PUT, f"{BASE_URL}/product/p1", json={"message": "boom"}, status=500)
    http = _client(retries=3)

    with pytest.raises(ServerError) as exc_info:
        http.request("PUT", "/product/p1", json_body={"itemQuantity": 3})

    assert len(responses.calls) == 1
    assert exc_info.value.message == "boom"


@responses.activate
def test_error_response_is_mapped_with_server_trace() -> None:
    responses.add(
        responses.DELETE,
        f"{BASE_URL}/product/variant/A1",
        json={"error": "Variant not found"},
        status=404,
        headers={"X-Trace-ID": "server-trace"},
    )
    http = _client()

    with pytest.raises(NotFoundError) as exc_info:
        http.request("DELETE", "/product/variant/A1")

    assert exc_info.value.message == "Variant not found"
    assert exc_info.value.trace_id == "server-trace"
    assert http.last_operation is not None
    assert http.last_operation.result == "error"


@responses.activate
def test_transport_failure_raises_transport_error() -> None:
    responses.add(responses.GET, f"{BASE_URL}/product/list", body=requests.ConnectionError("refused"))
    responses.add(responses.GET, f"{BASE_URL}/product/list", body=requests.ConnectionError("refused"))
    http = _client(retries=1)

    with pytest.raises(TransportError) as exc_info:
        http.request("GET", "/product/list")

    assert exc_info.value.status_code == 0
    assert exc_info.value.kind == "network"
    assert len(responses.calls) == 2


@responses.activate
def test_empty_body_returns_none() -> None:
    responses.add(responses.DELETE, f"{BASE_URL}/product/p1", status=204)
    http = _client()

    assert http.request("DELETE", "/product/p1") is None


@responses.activate
def test_non_object_error_payload_is_wrapped() -> None:
    responses.add(responses.POST, f"{BASE_URL}/product/variants/bulk-delete", json=["A1"], status=422)
    http = _client()

    with pytest.raises(ValidationError) as exc_info:
        http.request("POST", "/product/variants/bulk-delete", json_body={"pluUpcs": ["A1"]})

    assert exc_info.value.details == ["A1"]
    assert exc_info.value.message == "Request failed"
