"""Asynchronous counterpart of ``OperationPoller``.

Same contract over ``AsyncServiceManagementClient``: bounded attempts, no
wait after the last attempt, timeout and cancellation returned as
``Failed`` statuses.  Cancellation uses an ``asyncio.Event``; cancelling
the awaiting task itself also works and propagates ``CancelledError``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from asm_operations.models.operation import OperationHandle, OperationStatus
from asm_operations.operations._status_parser import status_from_response
from asm_operations.operations.poller import (
    completed_without_tracking,
    validate_poll_arguments,
    with_operation_id,
)
from asm_operations.transport.outcome import OutcomeKind

if TYPE_CHECKING:
    from asm_operations.core.config import ClientConfig
    from asm_operations.transport.client import AsyncServiceManagementClient
    from asm_operations.transport.outcome import CallOutcome

logger = logging.getLogger(__name__)


class AsyncOperationPoller:
    """Poll operation-status resources from a coroutine."""

    def __init__(
        self,
        client: AsyncServiceManagementClient,
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
    def from_config(
        cls,
        client: AsyncServiceManagementClient,
        config: ClientConfig,
    ) -> AsyncOperationPoller:
        return cls(
            client,
            interval_seconds=config.poll_interval_seconds,
            max_attempts=config.poll_max_attempts,
            deadline_seconds=config.poll_deadline,
        )

    async def poll(
        self,
        handle: OperationHandle,
        *,
        interval_seconds: float | None = None,
        max_attempts: int | None = None,
        cancel_event: asyncio.Event | None = None,
        deadline_seconds: float | None = None,
    ) -> OperationStatus:
        """Poll *handle* until a terminal status, timeout or cancellation.

        See ``OperationPoller.poll`` for the full contract.
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
            outcome = await self._client.get(handle.status_url)
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

            if await self._wait(interval, cancel_event):
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

    async def wait_for_completion(
        self,
        outcome: CallOutcome,
        *,
        not_found_ok: bool = False,
        description: str = "Request",
        conflict_message: str = "",
        **poll_kwargs: object,
    ) -> OperationStatus:
        """Resolve the outcome of an initiating request to a final status."""
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
        return await self.poll(handle, **poll_kwargs)  # type: ignore[arg-type]

    @staticmethod
    async def _wait(interval: float, cancel_event: asyncio.Event | None) -> bool:
        if cancel_event is None:
            await asyncio.sleep(interval)
            return False
        if cancel_event.is_set():
            return True
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            return False
        return True
