"""Shared pytest fixtures for the asm-operations test suite."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable

import httpx
import pytest

from asm_operations.core.config import ClientConfig
from asm_operations.transport.client import (
    AsyncServiceManagementClient,
    ServiceManagementClient,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

BASE_URL = "https://management.example.test"
SUBSCRIPTION_ID = "sub-123"
STATUS_URL = f"{BASE_URL}/{SUBSCRIPTION_ID}/operations/op-1"
UPLOAD_URI = "https://storage.example.test/container/blob?sig=abc"


def make_config(**overrides: object) -> ClientConfig:
    """Return a test ``ClientConfig`` with zero poll interval."""
    values: dict[str, object] = {
        "api_base_url": BASE_URL,
        "subscription_id": SUBSCRIPTION_ID,
        "poll_interval_seconds": 0.0,
        "poll_max_attempts": 5,
    }
    values.update(overrides)
    return ClientConfig(**values)  # type: ignore[arg-type]


def json_response(status_code: int, body: object, **headers: str) -> httpx.Response:
    return httpx.Response(
        status_code,
        content=json.dumps(body).encode(),
        headers={"content-type": "application/json", **headers},
    )


def status_response(result: str, **extra: object) -> httpx.Response:
    """Operation-status JSON body with the given ``result``."""
    return json_response(200, {"result": result, **extra})


# ---------------------------------------------------------------------------
# Recording transport
# ---------------------------------------------------------------------------


class RecordingTransport:
    """``httpx.MockTransport`` handler that records every request.

    Responses come from *handler* when given, otherwise from *responses*
    in order; an exhausted queue fails the test.
    """

    def __init__(
        self,
        responses: Iterable[httpx.Response | Exception] = (),
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
    ) -> None:
        self.requests: list[httpx.Request] = []
        self._responses = list(responses)
        self._handler = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        if self._handler is not None:
            return self._handler(request)
        if not self._responses:
            msg = f"Unexpected request: {request.method} {request.url}"
            raise AssertionError(msg)
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def calls(self, method: str | None = None) -> list[httpx.Request]:
        if method is None:
            return list(self.requests)
        return [r for r in self.requests if r.method == method]


def make_client(transport: RecordingTransport, **overrides: object) -> ServiceManagementClient:
    config = make_config(**overrides)
    http = httpx.Client(base_url=config.api_base_url, transport=httpx.MockTransport(transport))
    return ServiceManagementClient(config, http_client=http)


def make_async_client(
    transport: RecordingTransport,
    **overrides: object,
) -> AsyncServiceManagementClient:
    config = make_config(**overrides)
    http = httpx.AsyncClient(base_url=config.api_base_url, transport=httpx.MockTransport(transport))
    return AsyncServiceManagementClient(config, http_client=http)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def config() -> ClientConfig:
    """Default test configuration."""
    return make_config()
