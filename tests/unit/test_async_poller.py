"""Tests for AsyncOperationPoller.

Same contract as the sync poller; each test drives its coroutine with
``asyncio.run``.
"""

from __future__ import annotations

import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from asm_operations.core.exceptions import ContractError, TransportError, ValidationError
from asm_operations.models.operation import OperationHandle, OperationResult
from asm_operations.operations.async_poller import AsyncOperationPoller
from asm_operations.transport.outcome import classify_response
from conftest import STATUS_URL, RecordingTransport, make_async_client, status_response

HANDLE = OperationHandle(operation_id="op-1", status_url=STATUS_URL)


def _poller(transport: RecordingTransport, *, max_attempts: int = 5) -> AsyncOperationPoller:
    return AsyncOperationPoller(
        make_async_client(transport),
        interval_seconds=0,
        max_attempts=max_attempts,
    )


class TestAsyncPoll(unittest.TestCase):
    """Attempt budget and terminal short-circuit."""

    def test_succeeds_on_third_attempt(self) -> None:
        transport = RecordingTransport(
            [
                status_response("InProgress"),
                status_response("InProgress"),
                status_response("Succeeded"),
            ]
        )
        status = asyncio.run(_poller(transport, max_attempts=5).poll(HANDLE))

        assert status.result is OperationResult.SUCCEEDED
        assert len(transport.requests) == 3

    def test_times_out_after_n_gets(self) -> None:
        transport = RecordingTransport([status_response("InProgress") for _ in range(3)])
        status = asyncio.run(_poller(transport, max_attempts=3).poll(HANDLE))

        assert status.is_timeout is True
        assert len(transport.requests) == 3

    def test_malformed_payload_stops(self) -> None:
        transport = RecordingTransport(
            [
                httpx.Response(200, content=b"{}", headers={"content-type": "application/json"}),
                status_response("Succeeded"),
            ]
        )
        with self.assertRaises(ContractError):
            asyncio.run(_poller(transport).poll(HANDLE))
        assert len(transport.requests) == 1

    def test_transport_error_raises(self) -> None:
        transport = RecordingTransport([httpx.ConnectError("refused")])
        with self.assertRaises(TransportError):
            asyncio.run(_poller(transport).poll(HANDLE))

    def test_invalid_arguments(self) -> None:
        transport = RecordingTransport()
        with self.assertRaises(ValidationError):
            asyncio.run(_poller(transport).poll(HANDLE, max_attempts=0))
        assert transport.requests == []

    def test_negative_deadline_rejected(self) -> None:
        transport = RecordingTransport()
        with self.assertRaises(ValidationError):
            asyncio.run(_poller(transport).poll(HANDLE, deadline_seconds=-1))
        with self.assertRaises(ValidationError):
            AsyncOperationPoller(
                make_async_client(transport),
                interval_seconds=1,
                max_attempts=3,
                deadline_seconds=-0.5,
            )
        assert transport.requests == []


class TestAsyncDeadline(unittest.TestCase):
    """The wall-clock deadline folds into a timed-out status."""

    @patch("asm_operations.operations.async_poller.asyncio.sleep", new_callable=AsyncMock)
    @patch("asm_operations.operations.async_poller.time")
    def test_deadline_stops_before_overrun(self, mock_time: MagicMock, mock_sleep: AsyncMock) -> None:
        mock_time.monotonic.side_effect = [0.0, 2.0, 12.0]
        transport = RecordingTransport([status_response("InProgress") for _ in range(2)])
        poller = AsyncOperationPoller(
            make_async_client(transport),
            interval_seconds=5,
            max_attempts=10,
            deadline_seconds=15,
        )

        status = asyncio.run(poller.poll(HANDLE))

        assert len(transport.requests) == 2
        mock_sleep.assert_awaited_once_with(5)
        assert status.is_timeout is True
        assert "15" in (status.error_message or "")


class TestAsyncCancellation(unittest.TestCase):
    """asyncio.Event cancellation."""

    def test_event_set_during_wait(self) -> None:
        transport = RecordingTransport([status_response("InProgress") for _ in range(5)])

        async def run() -> object:
            event = asyncio.Event()
            poller = AsyncOperationPoller(
                make_async_client(transport),
                interval_seconds=30,
                max_attempts=5,
            )
            task = asyncio.create_task(poller.poll(HANDLE, cancel_event=event))
            while not transport.requests:
                await asyncio.sleep(0)
            event.set()
            return await task

        status = asyncio.run(run())

        assert status.is_canceled is True  # type: ignore[attr-defined]
        assert len(transport.requests) == 1

    def test_event_already_set(self) -> None:
        transport = RecordingTransport([status_response("InProgress")])

        async def run() -> object:
            event = asyncio.Event()
            event.set()
            return await _poller(transport).poll(HANDLE, cancel_event=event)

        status = asyncio.run(run())

        assert status.is_canceled is True  # type: ignore[attr-defined]
        assert len(transport.requests) == 1

    def test_unset_event_times_out_wait(self) -> None:
        transport = RecordingTransport([status_response("InProgress"), status_response("Succeeded")])

        async def run() -> object:
            poller = AsyncOperationPoller(
                make_async_client(transport),
                interval_seconds=0.01,
                max_attempts=5,
            )
            return await poller.poll(HANDLE, cancel_event=asyncio.Event())

        status = asyncio.run(run())

        assert status.succeeded is True  # type: ignore[attr-defined]
        assert len(transport.requests) == 2


class TestAsyncWaitForCompletion(unittest.TestCase):
    def test_accepted_is_polled(self) -> None:
        transport = RecordingTransport([status_response("Succeeded")])
        accepted = httpx.Response(202, headers={"x-ms-request-id": "op-1"})

        status = asyncio.run(_poller(transport).wait_for_completion(classify_response(accepted)))

        assert status.succeeded is True
        assert str(transport.requests[0].url) == STATUS_URL

    def test_not_found_ok(self) -> None:
        outcome = classify_response(httpx.Response(404))
        status = asyncio.run(
            _poller(RecordingTransport()).wait_for_completion(outcome, not_found_ok=True)
        )
        assert status.succeeded is True
