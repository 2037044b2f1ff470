"""HTTP transport for the management API.

- outcome: ``CallOutcome`` and the HTTP status classifier
- client: Sync and async ``httpx`` clients returning ``CallOutcome``
"""

from asm_operations.transport.client import (
    AsyncServiceManagementClient,
    ServiceManagementClient,
)
from asm_operations.transport.outcome import (
    CallOutcome,
    OutcomeKind,
    classify_response,
    classify_transport_error,
)

__all__ = [
    "AsyncServiceManagementClient",
    "CallOutcome",
    "OutcomeKind",
    "ServiceManagementClient",
    "classify_response",
    "classify_transport_error",
]
