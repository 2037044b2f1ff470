"""Tagged call outcomes and the HTTP status classifier.

Every network call made by the clients and uploaders returns a
``CallOutcome`` instead of raising, so callers express recovery (such as
the uploader's compensating DELETE) as a plain conditional on
``outcome.ok``.  ``to_exception()`` converts a failed outcome into the
exception taxonomy once the caller decides the failure is final.

Status semantics live only here:

- 2xx → ``OK``
- 404 → ``NOT_FOUND``
- 409 → ``CONFLICT``
- any other status → ``HTTP_ERROR``
- ``httpx.HTTPError`` raised while sending → ``TRANSPORT``
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import pydantic

from asm_operations.core.exceptions import (
    ConflictError,
    NotFoundError,
    OperationsError,
    PayloadReadError,
    ServiceError,
    TransportError,
)
from asm_operations.models.contracts import ServiceErrorPayload
from asm_operations.utils.helpers import looks_like_xml, xml_to_dict

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)


class OutcomeKind(enum.Enum):
    """Classification of a single network call."""

    OK = "ok"
    TRANSPORT = "transport"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    HTTP_ERROR = "http_error"
    LOCAL_ERROR = "local_error"


@dataclass(frozen=True, slots=True)
class CallOutcome:
    """Result of one request: ``Ok(response)`` or ``Err(kind, detail)``.

    Attributes:
        kind: Outcome classification.
        response: The HTTP response, when one was received.
        status_code: HTTP status code, when one was received.
        detail: Human-readable failure detail (service message or
            exception text).
        service_code: Error code parsed from the service error body.
        error: The exception that produced a ``TRANSPORT`` or
            ``LOCAL_ERROR`` outcome.
    """

    kind: OutcomeKind
    response: httpx.Response | None = None
    status_code: int | None = None
    detail: str = ""
    service_code: str = ""
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.OK

    @classmethod
    def success(cls, response: httpx.Response | None = None) -> CallOutcome:
        return cls(
            kind=OutcomeKind.OK,
            response=response,
            status_code=response.status_code if response is not None else None,
        )

    @classmethod
    def failure(
        cls,
        kind: OutcomeKind,
        detail: str,
        *,
        response: httpx.Response | None = None,
        status_code: int | None = None,
        service_code: str = "",
        error: BaseException | None = None,
    ) -> CallOutcome:
        if kind is OutcomeKind.OK:
            msg = "CallOutcome.failure requires a non-OK kind"
            raise ValueError(msg)
        return cls(
            kind=kind,
            response=response,
            status_code=status_code,
            detail=detail,
            service_code=service_code,
            error=error,
        )

    def to_exception(
        self,
        *,
        stage: str = "",
        description: str = "",
        conflict_message: str = "",
        correlation_id: str = "",
    ) -> OperationsError:
        """Map a failed outcome onto the exception taxonomy.

        Args:
            stage: Component stage recorded on the exception.
            description: Prefix describing the attempted call.
            conflict_message: Diagnostic that replaces the service text
                for a 409 (e.g. "Ensure the package is not deployed").
            correlation_id: Operation or entity identifier.
        """
        if self.ok:
            msg = "Cannot build an exception from a successful outcome"
            raise ValueError(msg)

        detail = self.detail or "no detail"
        if self.kind is OutcomeKind.CONFLICT and conflict_message:
            detail = f"{conflict_message} ({detail})"
        message = f"{description}: {detail}" if description else detail
        common: dict[str, object] = {"correlation_id": correlation_id}
        if stage:
            common["stage"] = stage

        if self.kind is OutcomeKind.TRANSPORT:
            return TransportError(message, **common)  # type: ignore[arg-type]
        if self.kind is OutcomeKind.LOCAL_ERROR:
            return PayloadReadError(message, **common)  # type: ignore[arg-type]
        if self.kind is OutcomeKind.CONFLICT:
            error_cls: type[ServiceError] = ConflictError
        elif self.kind is OutcomeKind.NOT_FOUND:
            error_cls = NotFoundError
        else:
            error_cls = ServiceError
        return error_cls(
            message,
            status_code=self.status_code,
            service_code=self.service_code,
            **common,
        )

    def unwrap(self, **kwargs: str) -> httpx.Response:
        """Return the response of a successful outcome or raise its exception."""
        if not self.ok:
            raise self.to_exception(**kwargs) from self.error
        if self.response is None:
            msg = "Successful outcome carries no HTTP response"
            raise ValueError(msg)
        return self.response


# ---------------------------------------------------------------------------
# Classifiers
# ---------------------------------------------------------------------------


def classify_response(response: httpx.Response) -> CallOutcome:
    """Classify a received HTTP response."""
    status = response.status_code
    if 200 <= status < 300:
        return CallOutcome.success(response)

    if status == 409:
        kind = OutcomeKind.CONFLICT
    elif status == 404:
        kind = OutcomeKind.NOT_FOUND
    else:
        kind = OutcomeKind.HTTP_ERROR

    service_code, service_message = parse_service_error(response)
    detail = f"HTTP {status}"
    if service_code:
        detail = f"{detail} {service_code}"
    if service_message:
        detail = f"{detail}: {service_message}"
    elif response.reason_phrase:
        detail = f"{detail} {response.reason_phrase}"

    return CallOutcome.failure(
        kind,
        detail,
        response=response,
        status_code=status,
        service_code=service_code,
    )


def classify_transport_error(exc: Exception) -> CallOutcome:
    """Classify an exception raised before a response was received."""
    return CallOutcome.failure(
        OutcomeKind.TRANSPORT,
        f"{type(exc).__name__}: {exc}",
        error=exc,
    )


def parse_service_error(response: httpx.Response) -> tuple[str, str]:
    """Extract ``(code, message)`` from an error body, or empty strings.

    Error bodies are best-effort diagnostics: an unreadable body is
    returned (truncated) as the message rather than raising.
    """
    body = response.content
    if not body or not body.strip():
        return "", ""

    try:
        if looks_like_xml(response.headers.get("content-type", ""), body):
            data: object = xml_to_dict(body)
        else:
            data = json.loads(body)
        if not isinstance(data, dict):
            return "", ""
        payload = ServiceErrorPayload.model_validate(data)
    except (ValueError, pydantic.ValidationError) as exc:
        logger.debug(
            "Unparseable service error body | status=%d | error=%s",
            response.status_code,
            exc,
        )
        return "", body.decode("utf-8", errors="replace").strip()[:500]

    return payload.effective_code, payload.effective_message
