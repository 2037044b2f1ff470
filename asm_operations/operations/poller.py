"""Operation poller: wait for a long-running operation to finish.

The service accepts a long-running request with ``202 Accepted`` and a
tracking header.  The poller GETs the status resource until it reports
``Succeeded`` or ``Failed``, the attempt budget is exhausted, the
optional wall-clock deadline passes, or the caller cancels.

Outcomes:
- Terminal status from the service: returned as-is.
- Budget or deadline exhausted: ``Failed`` / ``OperationTimedOut``.
- Cancel signal raised while waiting: ``Failed`` / ``OperationCanceled``.
- Transport error, non-2xx status GET, malformed payload: raised
  (``TransportError`` / ``ServiceError`` / ``ContractError``).  These are
  fatal and never retried here.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from typing import TYPE_CHECKING

from asm_operations.core.exceptions import ValidationError
from asm_operations.models.operation import OperationHandle, OperationResult, OperationStatus
from asm_operations.operations._status_parser import status_from_response
from asm_operations.transport.outcome import OutcomeKind

if TYPE_CHECKING:
    import threading

    from asm_operations.core.config import ClientConfig
    from asm_operations.transport.client import ServiceManagementClient
    from asm_operations.transport.outcome import CallOutcome

logger = logging.getLogger(__name__)


def validate_poll_arguments(
    interval_seconds: float,
    max_attempts: int,
    deadline_seconds: float | None = None,
) -> None:
    """Reject a poll budget before any request is made.

    A ``deadline_seconds`` of ``None`` or ``0`` disables the deadline.

    Raises:
        ValidationError: If ``interval_seconds < 0``, ``max_attempts < 1``
            or ``deadline_seconds < 0``.
    """
    if interval_seconds < 0:
        msg = f"interval_seconds must be >= 0, got {interval_seconds}"
        raise ValidationError(msg, stage="poll")
    if max_attempts < 1:
        msg = f"max_attempts must be >= 1, got {max_attempts}"
        raise ValidationError(msg, stage="poll")
    if deadline_seconds is not None and deadline_seconds < 0:
        msg = f"deadline_seconds must be >= 0, got {deadline_seconds}"
        raise ValidationError(msg, stage="poll")


def with_operation_id(status: OperationStatus, operation_id: str) -> OperationStatus:
    """Fill in the operation id when the service did not echo it."""
    if status.operation_id:
        return status
    return dataclasses.replace(status, operation_id=operation_id)


def completed_without_tracking(outcome: CallOutcome) -> OperationStatus:
    """Synthetic ``Succeeded`` for a request that finished synchronously."""
    return OperationStatus(
        result=OperationResult.SUCCEEDED,
        http_status_code=outcome.status_code,
    )


class OperationPoller:
    """Poll operation-status resources with a bounded attempt budget.

    Args:
        client: Client used for the status GETs.
        interval_seconds: Default wait between attempts.
        max_attempts: Default number of status GETs.
        deadline_seconds: Default wall-clock budget per poll (``None``
            for attempt-count only).
    """

    def __init__(
        self,
        client: ServiceManagementClient,
        *,
        interval_seconds: float,
        max_attempts: int,
        deadline_seconds: float | None = None,
    ) -> None:
        validate_poll_arguments(interval_seconds, max_attempts, deadline_seconds)
        self._client = client
        self._interval_seconds = interval_seconds
        self._max_attempts = max_attempts
        self._deadline_seconds = deadline_seconds

    @classmethod
    def from_config(cls, client: ServiceManagementClient, config: ClientConfig) -> OperationPoller:
        return cls(
            client,
            interval_seconds=config.poll_interval_seconds,
            max_attempts=config.poll_max_attempts,
            deadline_seconds=config.poll_deadline,
        )

    def poll(
        self,
        handle: OperationHandle,
        *,
        interval_seconds: float | None = None,
        max_attempts: int | None = None,
        cancel_event: threading.Event | None = None,
        deadline_seconds: float | None = None,
    ) -> OperationStatus:
        """Poll *handle* until a terminal status, timeout or cancellation.

        Args:
            handle: The operation to track.
            interval_seconds: Override of the wait between attempts.
            max_attempts: Override of the attempt budget.
            cancel_event: Set by the caller to abort the wait between polls.
            deadline_seconds: Override of the wall-clock budget.

        Returns:
            The terminal ``OperationStatus``.  Timeout and cancellation are
            reported as ``Failed`` statuses, never raised.

        Raises:
            ValidationError: On an invalid interval or attempt budget.
            TransportError: If a status GET fails below the HTTP layer.
            ServiceError: If a status GET returns a non-2xx status.
            ContractError: If a status payload cannot be decoded.
        """
        interval = self._interval_seconds if interval_seconds is None else interval_seconds
        attempts = self._max_attempts if max_attempts is None else max_attempts
        deadline_budget = self._deadline_seconds if deadline_seconds is None else deadline_seconds
        validate_poll_arguments(interval, attempts, deadline_budget)

        started = time.monotonic()
        deadline = started + deadline_budget if deadline_budget else None

        logger.info(
            "poll started | operation_id=%s | max_attempts=%d | interval=%.1fs",
            handle.operation_id,
            attempts,
            interval,
        )

        for attempt in range(1, attempts + 1):
            outcome = self._client.get(handle.status_url)
            response = outcome.unwrap(
                stage="poll",
                description=f"Operation status request failed for {handle.operation_id}",
                correlation_id=handle.operation_id,
            )
            status = with_operation_id(
                status_from_response(response, operation_id=handle.operation_id),
                handle.operation_id,
            )

            if status.is_terminal:
                logger.info(
                    "poll completed | operation_id=%s | result=%s | attempts=%d | "
                    "error_code=%s | elapsed=%.2fs",
                    handle.operation_id,
                    status.result.value,
                    attempt,
                    status.error_code,
                    time.monotonic() - started,
                )
                return status

            logger.debug(
                "poll in progress | operation_id=%s | attempt=%d/%d",
                handle.operation_id,
                attempt,
                attempts,
            )

            if attempt == attempts:
                break

            if deadline is not None and time.monotonic() + interval > deadline:
                logger.warning(
                    "poll deadline reached | operation_id=%s | attempts=%d | deadline=%.1fs",
                    handle.operation_id,
                    attempt,
                    deadline_budget,
                )
                return OperationStatus.timed_out(
                    handle.operation_id,
                    f"Operation did not complete within {deadline_budget}s ({attempt} polls)",
                )

            if self._wait(interval, cancel_event):
                logger.warning(
                    "poll canceled | operation_id=%s | attempts=%d",
                    handle.operation_id,
                    attempt,
                )
                return OperationStatus.canceled(handle.operation_id)

        logger.warning(
            "poll timed out | operation_id=%s | attempts=%d",
            handle.operation_id,
            attempts,
        )
        return OperationStatus.timed_out(
            handle.operation_id,
            f"Operation still in progress after {attempts} polls",
        )

    def wait_for_completion(
        self,
        outcome: CallOutcome,
        *,
        not_found_ok: bool = False,
        description: str = "Request",
        conflict_message: str = "",
        **poll_kwargs: object,
    ) -> OperationStatus:
        """Resolve the outcome of an initiating request to a final status.

        ``202 Accepted`` is tracked through its headers and polled.  Any
        other 2xx completed synchronously.  With *not_found_ok*, a 404
        (e.g. deleting something already gone) counts as success.

        Raises:
            OperationsError: The mapped exception of a failed initiating
                request, or any error raised by ``poll``.
        """
        if outcome.kind is OutcomeKind.NOT_FOUND and not_found_ok:
            logger.info("resource already absent | description=%s", description)
            return completed_without_tracking(outcome)

        response = outcome.unwrap(
            stage="track",
            description=description,
            conflict_message=conflict_message,
        )
        if response.status_code != 202:
            return completed_without_tracking(outcome)

        handle = OperationHandle.from_response(
            response,
            status_url_template=self._client.status_url_template,
        )
        return self.poll(handle, **poll_kwargs)  # type: ignore[arg-type]

    @staticmethod
    def _wait(interval: float, cancel_event: threading.Event | None) -> bool:
        """Sleep for *interval*; return ``True`` if cancelled meanwhile."""
        if cancel_event is None:
            if interval:
                time.sleep(interval)
            return False
        return cancel_event.wait(interval)
