"""Plain HTTP ``PUT`` uploader.

Streams the payload in fixed-size chunks with ``x-ms-blob-type:
BlockBlob`` so the same adapter works against Blob Storage SAS URLs and
any other pre-authorised endpoint that accepts a single PUT.
"""

from __future__ import annotations

import logging
from typing import IO, TYPE_CHECKING

import httpx

from asm_operations.core.constants import HEADER_BLOB_TYPE, UPLOAD_CHUNK_SIZE
from asm_operations.transport.outcome import (
    CallOutcome,
    OutcomeKind,
    classify_response,
    classify_transport_error,
)
from asm_operations.uploaders.base import PayloadUploader

if TYPE_CHECKING:
    from collections.abc import Iterator

    from asm_operations.core.config import ClientConfig

logger = logging.getLogger(__name__)


def iter_chunks(payload: IO[bytes], length: int, chunk_size: int = UPLOAD_CHUNK_SIZE) -> Iterator[bytes]:
    """Yield at most *length* bytes from *payload* in *chunk_size* pieces.

    Raises:
        OSError: If the stream ends before *length* bytes were read.
    """
    remaining = length
    while remaining > 0:
        chunk = payload.read(min(chunk_size, remaining))
        if not chunk:
            msg = f"Payload stream ended {remaining} bytes early"
            raise OSError(msg)
        remaining -= len(chunk)
        yield chunk


class HttpPutUploader(PayloadUploader):
    """Upload payloads with a single streamed ``PUT``.

    Args:
        timeout_seconds: Per-request timeout.
        chunk_size: Bytes read from the payload per chunk.
        http_client: Pre-built ``httpx.Client`` (tests inject one with a
            ``MockTransport``).  When omitted, one is created and closed by
            ``close()``.
    """

    name = "http_put"

    def __init__(
        self,
        *,
        timeout_seconds: float = 60.0,
        chunk_size: int = UPLOAD_CHUNK_SIZE,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._chunk_size = chunk_size
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout_seconds)

    @classmethod
    def from_config(cls, config: ClientConfig) -> HttpPutUploader:
        return cls(timeout_seconds=config.request_timeout_seconds)

    def transfer(self, upload_uri: str, payload: IO[bytes], length: int) -> CallOutcome:
        headers = {
            HEADER_BLOB_TYPE: "BlockBlob",
            "Content-Length": str(length),
            "Content-Type": "application/octet-stream",
        }
        try:
            response = self._http.put(
                upload_uri,
                content=iter_chunks(payload, length, self._chunk_size),
                headers=headers,
            )
        except httpx.HTTPError as exc:
            logger.warning("Payload PUT failed in transport | error=%s", exc)
            return classify_transport_error(exc)
        except OSError as exc:
            logger.warning("Payload read failed during PUT | error=%s", exc)
            return CallOutcome.failure(
                OutcomeKind.LOCAL_ERROR,
                f"Failed to read payload: {exc}",
                error=exc,
            )

        outcome = classify_response(response)
        if outcome.ok:
            logger.info("Payload PUT completed | bytes=%d | status=%d", length, response.status_code)
        else:
            logger.warning(
                "Payload PUT rejected | status=%d | detail=%s",
                response.status_code,
                outcome.detail,
            )
        return outcome

    def close(self) -> None:
        if self._owns_client:
            self._http.close()
