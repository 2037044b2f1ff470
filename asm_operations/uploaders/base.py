"""PayloadUploader abstract base class.

An uploader streams a payload to a pre-authorised URI handed out by the
service during metadata registration.  The URI carries its own
authorisation, so uploaders never send management headers.

``transfer`` reports failure through its ``CallOutcome`` instead of
raising, which lets ``CompensatingUploader`` decide on rollback with a
plain conditional.
"""

from __future__ import annotations

import abc
from typing import IO, TYPE_CHECKING

if TYPE_CHECKING:
    from asm_operations.core.config import ClientConfig
    from asm_operations.transport.outcome import CallOutcome


class PayloadUploader(abc.ABC):
    """Abstract base class for payload transfer adapters."""

    #: Registry name of the adapter.
    name: str = ""

    @classmethod
    def from_config(cls, config: ClientConfig) -> PayloadUploader:
        """Build the adapter from client configuration.

        Adapters without tunables use the default constructor.
        """
        return cls()

    @abc.abstractmethod
    def transfer(self, upload_uri: str, payload: IO[bytes], length: int) -> CallOutcome:
        """Upload *length* bytes of *payload* to *upload_uri*.

        Args:
            upload_uri: Pre-authorised destination URI.
            payload: Binary stream positioned at the first byte to send.
            length: Number of bytes to send.

        Returns:
            ``CallOutcome.success()`` when the destination accepted the
            payload; otherwise a failed outcome (``transport``,
            ``conflict``, ``http_error`` or ``local_error``).
        """

    def close(self) -> None:
        """Release any resources held by the adapter."""
