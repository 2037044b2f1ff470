"""HTTP clients for the management API.

``ServiceManagementClient`` (``httpx.Client``) and
``AsyncServiceManagementClient`` (``httpx.AsyncClient``) send requests
with the management headers, timeout and optional certificate from
``ClientConfig``.  Neither raises for HTTP or transport failures: every
call returns a ``CallOutcome``.

Usage::

    config = ClientConfig.from_env()
    with ServiceManagementClient(config) as client:
        outcome = client.delete(client.resource_path("/cloudgames/assets/{id}", id=asset_id))
        if not outcome.ok:
            raise outcome.to_exception(description="Remove asset")
"""

from __future__ import annotations

import logging
import ssl
from typing import TYPE_CHECKING, Any

import httpx

from asm_operations.core.constants import (
    HEADER_API_VERSION,
    MEDIA_TYPE_JSON,
    OPERATIONS_PATH,
)
from asm_operations.transport.outcome import (
    CallOutcome,
    classify_response,
    classify_transport_error,
)
from asm_operations.utils.helpers import format_path

if TYPE_CHECKING:
    from asm_operations.core.config import ClientConfig

logger = logging.getLogger(__name__)


class _ClientBase:
    """Configuration shared by the sync and async clients."""

    def __init__(self, config: ClientConfig) -> None:
        self._config = config

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def base_url(self) -> str:
        return self._config.api_base_url.rstrip("/")

    @property
    def status_url_template(self) -> str:
        """Absolute operation-status URL with an ``{operation_id}`` placeholder."""
        return self.base_url + self.resource_path(OPERATIONS_PATH, operation_id="{operation_id}")

    def resource_path(self, template: str, **params: object) -> str:
        """Format *template* and prefix the subscription, if one is configured.

        Raises:
            ValidationError: If the template references a missing parameter.
        """
        path = format_path(template, params)
        if not path.startswith("/"):
            path = "/" + path
        if self._config.subscription_id:
            path = f"/{self._config.subscription_id}{path}"
        return path

    def _client_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {
            "base_url": self.base_url,
            "timeout": self._config.request_timeout_seconds,
            "headers": {
                HEADER_API_VERSION: self._config.api_version,
                "Accept": MEDIA_TYPE_JSON,
            },
        }
        if self._config.client_cert_path:
            context = ssl.create_default_context()
            context.load_cert_chain(certfile=self._config.client_cert_path)
            options["verify"] = context
        return options


class ServiceManagementClient(_ClientBase):
    """Synchronous management API client.

    Args:
        config: Client configuration.
        http_client: Pre-built ``httpx.Client`` (tests inject one with a
            ``MockTransport``).  When omitted, a client is created from
            *config* and closed by ``close()``.
    """

    def __init__(self, config: ClientConfig, *, http_client: httpx.Client | None = None) -> None:
        super().__init__(config)
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(**self._client_options())

    def send(self, method: str, url: str, **kwargs: Any) -> CallOutcome:
        """Send one request and classify the result.  Never raises for HTTP errors."""
        try:
            response = self._http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning(
                "Request failed in transport | method=%s | url=%s | error=%s",
                method,
                url,
                exc,
            )
            return classify_transport_error(exc)

        outcome = classify_response(response)
        logger.debug(
            "Request completed | method=%s | url=%s | status=%d | outcome=%s",
            method,
            url,
            response.status_code,
            outcome.kind.value,
        )
        return outcome

    def get(self, url: str, **kwargs: Any) -> CallOutcome:
        return self.send("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> CallOutcome:
        return self.send("POST", url, **kwargs)

    def put(self, url: str, **kwargs: Any) -> CallOutcome:
        return self.send("PUT", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> CallOutcome:
        return self.send("DELETE", url, **kwargs)

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> ServiceManagementClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class AsyncServiceManagementClient(_ClientBase):
    """Asynchronous counterpart of ``ServiceManagementClient``."""

    def __init__(
        self,
        config: ClientConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(config)
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(**self._client_options())

    async def send(self, method: str, url: str, **kwargs: Any) -> CallOutcome:
        """Send one request and classify the result.  Never raises for HTTP errors."""
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning(
                "Request failed in transport | method=%s | url=%s | error=%s",
                method,
                url,
                exc,
            )
            return classify_transport_error(exc)

        outcome = classify_response(response)
        logger.debug(
            "Request completed | method=%s | url=%s | status=%d | outcome=%s",
            method,
            url,
            response.status_code,
            outcome.kind.value,
        )
        return outcome

    async def get(self, url: str, **kwargs: Any) -> CallOutcome:
        return await self.send("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> CallOutcome:
        return await self.send("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> CallOutcome:
        return await self.send("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> CallOutcome:
        return await self.send("DELETE", url, **kwargs)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> AsyncServiceManagementClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
