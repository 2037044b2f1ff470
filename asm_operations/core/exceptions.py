"""Unified exception taxonomy for operation tracking and uploads.

Every domain exception inherits from ``OperationsError`` and carries
structured context fields that let callers make consistent retry
decisions and render a specific diagnostic to the user.

Taxonomy categories
-------------------
- ``ValidationError``  : malformed input, raised before any network call.
- ``TransientError``   : transport failures, retryable by the caller.
- ``PermanentError``   : unrecoverable failures, not retryable.
- ``ContractError``    : malformed or unexpected service payloads.

HTTP-level failures reported by the remote service are ``ServiceError``
(``ConflictError`` for 409, ``NotFoundError`` for 404).  An operation that
times out or is cancelled is *not* an exception: it is a terminal
``Failed`` status returned by the poller.

Every exception exposes ``to_error_dict()`` for a stable structured
error payload suitable for logging.
"""

from __future__ import annotations


class OperationsError(Exception):
    """Base exception for all operation-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Component where the error occurred
            (e.g. ``"poll"``, ``"register"``, ``"transfer"``).
        code: Machine-readable error code (e.g. ``"TRANSPORT_FAILED"``).
        retryable: Whether the caller may retry the whole operation.
        correlation_id: Operation or entity identifier for correlation.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
        correlation_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        self.correlation_id = correlation_id
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ContractError):
            return "contract"
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, TransientError):
            return "transient"
        if isinstance(self, PermanentError):
            return "permanent"
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "correlation_id": self.correlation_id,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(OperationsError):
    """Input validation failure. Never retryable."""

    default_code = "VALIDATION_FAILED"

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class TransientError(OperationsError):
    """Temporary failure that may succeed on retry."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class PermanentError(OperationsError):
    """Unrecoverable failure. Not retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class ContractError(OperationsError):
    """Service payload does not match the expected schema. Never retryable."""

    default_code = "CONTRACT_VIOLATION"

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Concrete errors
# ---------------------------------------------------------------------------


class TransportError(TransientError):
    """Connection, TLS or timeout failure below the HTTP status layer.

    The poller and uploader never retry these themselves; the caller
    decides whether to repeat the whole operation.
    """

    default_stage = "transport"
    default_code = "TRANSPORT_FAILED"


class PayloadReadError(PermanentError):
    """The local payload stream could not be read."""

    default_stage = "transfer"
    default_code = "PAYLOAD_READ_FAILED"


class ServiceError(OperationsError):
    """Non-success HTTP status returned by the remote service.

    Attributes:
        status_code: HTTP status code of the failed response.
        service_code: Error code from the service error body, if any.
    """

    default_stage = "service"
    default_code = "SERVICE_ERROR"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        service_code: str = "",
        **kwargs: object,
    ) -> None:
        self.status_code = status_code
        self.service_code = service_code
        kwargs.setdefault("retryable", status_code is not None and status_code >= 500)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]

    def to_error_dict(self) -> dict[str, object]:
        payload = super().to_error_dict()
        payload["status_code"] = self.status_code
        payload["service_code"] = self.service_code
        return payload


class ConflictError(ServiceError):
    """409 from the service: the entity is in use and cannot be modified."""

    default_code = "CONFLICT"


class NotFoundError(ServiceError):
    """404 from the service."""

    default_code = "NOT_FOUND"


class UploadFailedError(OperationsError):
    """Payload upload failed and the registered entity was rolled back.

    The original failure is both ``original`` and ``__cause__``.  A failure
    of the compensating DELETE is attached as ``compensation_error`` and
    never replaces the original.

    Attributes:
        entity_id: Identifier registered in phase 1 (no longer valid).
        operation_description: Caller-facing description of the upload.
        original: The primary error that aborted the upload.
        compensation_error: Secondary error raised by the rollback, if any.
        state: Final upload state (always ``RolledBack``).
    """

    default_stage = "upload"
    default_code = "UPLOAD_FAILED"

    def __init__(
        self,
        message: str,
        *,
        entity_id: str,
        operation_description: str,
        original: OperationsError,
        compensation_error: OperationsError | None = None,
        state: str = "RolledBack",
    ) -> None:
        self.entity_id = entity_id
        self.operation_description = operation_description
        self.original = original
        self.compensation_error = compensation_error
        self.state = state
        super().__init__(
            message,
            retryable=original.retryable,
            correlation_id=entity_id,
        )

    @property
    def compensated(self) -> bool:
        """Whether the rollback DELETE completed without error."""
        return self.compensation_error is None

    def to_error_dict(self) -> dict[str, object]:
        payload = super().to_error_dict()
        payload["entity_id"] = self.entity_id
        payload["operation_description"] = self.operation_description
        payload["state"] = self.state
        payload["original"] = self.original.to_error_dict()
        payload["compensation_error"] = (
            self.compensation_error.to_error_dict() if self.compensation_error else None
        )
        return payload
