"""Payload transfer adapters.

Implements the adapter pattern for streaming a payload to a
pre-authorised URI:
- PayloadUploader: Abstract base class defining the interface
- AzureBlobUploader: ``azure-storage-blob`` SDK (default)
- HttpPutUploader: Single streamed ``PUT`` over ``httpx``

Adapters are selected by name through the factory, so the SDK is only
imported when the blob adapter is used.
"""

from asm_operations.uploaders.base import PayloadUploader
from asm_operations.uploaders.factory import (
    AZURE_BLOB,
    HTTP_PUT,
    get_uploader,
    list_uploaders,
    register_uploader,
)

__all__ = [
    "AZURE_BLOB",
    "HTTP_PUT",
    "PayloadUploader",
    "get_uploader",
    "list_uploaders",
    "register_uploader",
]
