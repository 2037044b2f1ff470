"""Tests for the sync and async management API clients."""

from __future__ import annotations

import asyncio
import unittest

import httpx
import pytest

from asm_operations.core.exceptions import ValidationError
from asm_operations.transport.client import ServiceManagementClient
from asm_operations.transport.outcome import OutcomeKind
from conftest import (
    BASE_URL,
    SUBSCRIPTION_ID,
    RecordingTransport,
    make_async_client,
    make_client,
    make_config,
)


class TestResourcePath(unittest.TestCase):
    """Subscription prefix and template formatting."""

    def test_subscription_prefixed(self) -> None:
        client = make_client(RecordingTransport())
        path = client.resource_path("/cloudgames/assets/{id}", id="a1")
        assert path == f"/{SUBSCRIPTION_ID}/cloudgames/assets/a1"

    def test_no_subscription(self) -> None:
        client = make_client(RecordingTransport(), subscription_id="")
        assert client.resource_path("entities") == "/entities"

    def test_missing_parameter_raises(self) -> None:
        client = make_client(RecordingTransport())
        with self.assertRaises(ValidationError) as ctx:
            client.resource_path("/cloudgames/{platform}/{cloud_game}", platform="xbox")
        assert "cloud_game" in ctx.exception.message

    def test_status_url_template(self) -> None:
        client = make_client(RecordingTransport())
        assert client.status_url_template == (
            f"{BASE_URL}/{SUBSCRIPTION_ID}/operations/{{operation_id}}"
        )


class TestSend(unittest.TestCase):
    """send() classifies every result and never raises for HTTP failures."""

    def test_success(self) -> None:
        transport = RecordingTransport([httpx.Response(200, json={"ok": True})])
        outcome = make_client(transport).get("/sub-123/things")
        assert outcome.ok is True
        assert transport.requests[0].url == httpx.URL(f"{BASE_URL}/sub-123/things")

    def test_http_failure_returned(self) -> None:
        transport = RecordingTransport([httpx.Response(409, json={"Code": "Conflict", "Message": "busy"})])
        outcome = make_client(transport).delete("/sub-123/things/1")
        assert outcome.kind is OutcomeKind.CONFLICT
        assert outcome.service_code == "Conflict"

    def test_transport_failure_returned(self) -> None:
        transport = RecordingTransport([httpx.ConnectError("refused")])
        outcome = make_client(transport).post("/sub-123/things")
        assert outcome.kind is OutcomeKind.TRANSPORT
        assert isinstance(outcome.error, httpx.ConnectError)

    def test_put(self) -> None:
        transport = RecordingTransport([httpx.Response(204)])
        assert make_client(transport).put("/sub-123/things/1", json={"a": 1}).ok is True
        assert transport.requests[0].method == "PUT"


class TestClientOptions:
    """Headers and timeout built from configuration."""

    def test_management_headers(self) -> None:
        client = ServiceManagementClient(make_config(api_version="2014-01-01"))
        try:
            assert client._http.headers["x-ms-version"] == "2014-01-01"
            assert client._http.headers["accept"] == "application/json"
            assert client._http.timeout.read == 60.0
            assert str(client._http.base_url).rstrip("/") == BASE_URL
        finally:
            client.close()

    def test_injected_client_not_closed(self) -> None:
        http = httpx.Client(transport=httpx.MockTransport(RecordingTransport()))
        with ServiceManagementClient(make_config(), http_client=http):
            pass
        assert http.is_closed is False
        http.close()

    def test_owned_client_closed(self) -> None:
        with ServiceManagementClient(make_config()) as client:
            http = client._http
        assert http.is_closed is True


class TestAsyncClient:
    """The async client mirrors the sync contract."""

    def test_get_and_failure(self) -> None:
        transport = RecordingTransport(
            [
                httpx.Response(200, json={"result": "Succeeded"}),
                httpx.Response(500, json={"Code": "InternalError", "Message": "boom"}),
                httpx.ReadTimeout("slow"),
            ]
        )

        async def run() -> list[OutcomeKind]:
            async with make_async_client(transport) as client:
                first = await client.get("/sub-123/operations/op-1")
                second = await client.post("/sub-123/things")
                third = await client.delete("/sub-123/things/1")
            return [first.kind, second.kind, third.kind]

        kinds = asyncio.run(run())
        assert kinds == [OutcomeKind.OK, OutcomeKind.HTTP_ERROR, OutcomeKind.TRANSPORT]
        assert [r.method for r in transport.requests] == ["GET", "POST", "DELETE"]

    def test_resource_path_shared(self) -> None:
        client = make_async_client(RecordingTransport())
        assert client.resource_path("/entities/{entity_id}", entity_id="e1") == (
            f"/{SUBSCRIPTION_ID}/entities/e1"
        )


@pytest.mark.parametrize("method", ["get", "post", "put", "delete"])
def test_method_helpers_send_expected_verb(method: str) -> None:
    transport = RecordingTransport([httpx.Response(200)])
    client = make_client(transport)
    getattr(client, method)("/sub-123/x")
    assert transport.requests[0].method == method.upper()
