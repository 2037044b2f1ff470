"""Typed models for long-running operation tracking.

- ``OperationResult``: Lifecycle value reported by the status resource
- ``OperationHandle``: Where to poll for a given operation
- ``OperationStatus``: One observation of the operation's state

Design notes:
- All models are frozen dataclasses; the poller keeps only the latest
  ``OperationStatus`` and discards earlier ones.
- Timeout and cancellation are folded into ``Failed`` with dedicated
  error codes, so callers only ever branch on three results.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import urljoin, urlsplit

from asm_operations.core.constants import (
    ERROR_CODE_CANCELED,
    ERROR_CODE_TIMED_OUT,
    HEADER_REQUEST_ID,
    TRACKING_HEADERS,
)
from asm_operations.core.exceptions import ContractError, OperationsError

if TYPE_CHECKING:
    import httpx


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ModelValidationError(ValueError, OperationsError):
    """Raised when a domain model is constructed with invalid field values.

    Attributes:
        model: Name of the model class that failed validation.
        field_name: The field that violated the invariant.
        value: The invalid value.
    """

    default_stage = "model_validation"
    default_code = "MODEL_VALIDATION_FAILED"

    def __init__(self, model: str, field_name: str, value: object, message: str) -> None:
        self.model = model
        self.field_name = field_name
        self.value = value
        formatted = f"{model}.{field_name}={value!r}: {message}"
        OperationsError.__init__(self, formatted)


def check_non_empty(model: str, field_name: str, value: str) -> None:
    if not value or not value.strip():
        raise ModelValidationError(model, field_name, value, "must not be empty")


def check_absolute_url(model: str, field_name: str, value: str) -> None:
    parts = urlsplit(value)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ModelValidationError(model, field_name, value, "must be an absolute http(s) URL")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class OperationResult(enum.Enum):
    """Lifecycle value of a long-running operation.

    Values:
        IN_PROGRESS: Accepted and still running.
        SUCCEEDED:   Completed successfully.
        FAILED:      Completed unsuccessfully, timed out or was cancelled.
    """

    IN_PROGRESS = "InProgress"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"

    @classmethod
    def _missing_(cls, value: object) -> OperationResult | None:
        if isinstance(value, str):
            folded = value.replace("_", "").replace(" ", "").lower()
            for member in cls:
                if member.value.lower() == folded:
                    return member
        return None


# ---------------------------------------------------------------------------
# Handle
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OperationHandle:
    """Immutable pointer to an operation-status resource.

    Attributes:
        operation_id: Service-assigned operation (request) identifier.
        status_url: Absolute URL returning the serialised status.
    """

    operation_id: str
    status_url: str

    def __post_init__(self) -> None:
        check_non_empty("OperationHandle", "operation_id", self.operation_id)
        check_absolute_url("OperationHandle", "status_url", self.status_url)

    @classmethod
    def from_response(
        cls,
        response: httpx.Response,
        *,
        status_url_template: str = "",
    ) -> OperationHandle:
        """Build a handle from the headers of an "accepted" response.

        ``Azure-AsyncOperation`` wins over ``Location``; a relative
        ``Location`` is resolved against the request URL.  When neither is
        present the ``x-ms-request-id`` is substituted into
        *status_url_template* (which must contain ``{operation_id}``).

        Raises:
            ContractError: If the response carries no usable tracking header.
        """
        request_id = response.headers.get(HEADER_REQUEST_ID, "").strip()

        for header in TRACKING_HEADERS:
            raw = response.headers.get(header, "").strip()
            if not raw:
                continue
            status_url = urljoin(_request_url(response), raw)
            operation_id = request_id or _last_path_segment(status_url)
            return cls(operation_id=operation_id, status_url=status_url)

        if request_id and status_url_template:
            return cls(
                operation_id=request_id,
                status_url=status_url_template.format(operation_id=request_id),
            )

        msg = (
            f"Response {response.status_code} carries no operation tracking header "
            f"(expected one of {', '.join((*TRACKING_HEADERS, HEADER_REQUEST_ID))})"
        )
        raise ContractError(msg, stage="track")


def _request_url(response: httpx.Response) -> str:
    # Responses built by hand have no request attached.
    try:
        return str(response.request.url)
    except RuntimeError:
        return ""


def _last_path_segment(url: str) -> str:
    path = urlsplit(url).path.rstrip("/")
    return path.rsplit("/", 1)[-1]


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OperationStatus:
    """One observation of an operation's state.

    Attributes:
        result: Current lifecycle value.
        error_code: Service or synthetic error code when ``Failed``.
        error_message: Human-readable failure description.
        operation_id: Operation identifier echoed by the service.
        http_status_code: Final HTTP status of the operation, if reported.
    """

    result: OperationResult
    error_code: str | None = None
    error_message: str | None = None
    operation_id: str | None = None
    http_status_code: int | None = None

    @property
    def is_terminal(self) -> bool:
        return self.result is not OperationResult.IN_PROGRESS

    @property
    def succeeded(self) -> bool:
        return self.result is OperationResult.SUCCEEDED

    @property
    def is_timeout(self) -> bool:
        return self.result is OperationResult.FAILED and self.error_code == ERROR_CODE_TIMED_OUT

    @property
    def is_canceled(self) -> bool:
        return self.result is OperationResult.FAILED and self.error_code == ERROR_CODE_CANCELED

    @classmethod
    def timed_out(cls, operation_id: str | None, message: str) -> OperationStatus:
        """Synthetic ``Failed`` status for an exhausted attempt budget."""
        return cls(
            result=OperationResult.FAILED,
            error_code=ERROR_CODE_TIMED_OUT,
            error_message=message,
            operation_id=operation_id,
        )

    @classmethod
    def canceled(cls, operation_id: str | None) -> OperationStatus:
        """Synthetic ``Failed`` status for a poll aborted by its caller."""
        return cls(
            result=OperationResult.FAILED,
            error_code=ERROR_CODE_CANCELED,
            error_message="Polling was canceled before the operation completed",
            operation_id=operation_id,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "result": self.result.value,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "operation_id": self.operation_id,
            "http_status_code": self.http_status_code,
        }
