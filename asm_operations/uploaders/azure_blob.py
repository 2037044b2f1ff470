"""Azure Blob Storage uploader.

Uploads the payload as a block blob through the ``azure-storage-blob``
SDK.  The pre-authorised URI is a SAS URL, so no credential is passed.

Error mapping:
- ``HttpResponseError`` with status 409 → ``conflict``
- any other ``HttpResponseError``      → ``http_error``
- any other ``AzureError``             → ``transport``
- ``OSError`` while reading the payload → ``local_error``
"""

from __future__ import annotations

import logging
from typing import IO, TYPE_CHECKING, Any

from azure.core.exceptions import AzureError, HttpResponseError
from azure.storage.blob import BlobClient

from asm_operations.transport.outcome import CallOutcome, OutcomeKind
from asm_operations.uploaders.base import PayloadUploader

if TYPE_CHECKING:
    from collections.abc import Callable

    from asm_operations.core.config import ClientConfig

logger = logging.getLogger(__name__)


class AzureBlobUploader(PayloadUploader):
    """Upload payloads with ``BlobClient.upload_blob``.

    Args:
        max_concurrency: Parallel block uploads per payload.
        client_factory: Builds a blob client from a SAS URL (tests inject
            a mock).  Defaults to ``BlobClient.from_blob_url``.
    """

    name = "azure_blob"

    def __init__(
        self,
        *,
        max_concurrency: int = 1,
        client_factory: Callable[[str], Any] | None = None,
    ) -> None:
        self._max_concurrency = max_concurrency
        self._client_factory = client_factory or BlobClient.from_blob_url

    @classmethod
    def from_config(cls, config: ClientConfig) -> AzureBlobUploader:
        return cls(max_concurrency=config.upload_max_concurrency)

    def transfer(self, upload_uri: str, payload: IO[bytes], length: int) -> CallOutcome:
        try:
            blob = self._client_factory(upload_uri)
            with blob:
                blob.upload_blob(
                    payload,
                    length=length,
                    overwrite=True,
                    max_concurrency=self._max_concurrency,
                )
        except HttpResponseError as exc:
            status = exc.status_code
            kind = OutcomeKind.CONFLICT if status == 409 else OutcomeKind.HTTP_ERROR
            error_code = str(getattr(exc, "error_code", "") or "")
            logger.warning(
                "Blob upload rejected | status=%s | error_code=%s | error=%s",
                status,
                error_code,
                exc.message,
            )
            return CallOutcome.failure(
                kind,
                f"Blob upload failed with HTTP {status}: {exc.message}",
                status_code=status,
                service_code=error_code,
                error=exc,
            )
        except AzureError as exc:
            logger.warning("Blob upload transport failure | error=%s", exc)
            return CallOutcome.failure(
                OutcomeKind.TRANSPORT,
                f"{type(exc).__name__}: {exc}",
                error=exc,
            )
        except OSError as exc:
            logger.warning("Payload read failed during blob upload | error=%s", exc)
            return CallOutcome.failure(
                OutcomeKind.LOCAL_ERROR,
                f"Failed to read payload: {exc}",
                error=exc,
            )
        except ValueError as exc:
            # from_blob_url rejects URIs without a container or blob segment
            logger.warning("Blob upload URI rejected | error=%s", exc)
            return CallOutcome.failure(
                OutcomeKind.LOCAL_ERROR,
                f"Invalid upload URI: {exc}",
                error=exc,
            )

        logger.info("Blob upload completed | bytes=%d", length)
        return CallOutcome.success()
