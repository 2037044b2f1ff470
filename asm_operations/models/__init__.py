"""Data models and wire contracts.

- OperationHandle / OperationStatus: Long-running operation tracking
- EntityKind / UploadResult / UploadState: Register-then-upload flow
- contracts: Pydantic models for service payloads
"""

from asm_operations.models.operation import (
    ModelValidationError,
    OperationHandle,
    OperationResult,
    OperationStatus,
)
from asm_operations.models.upload import (
    EntityKind,
    UploadAttempt,
    UploadResult,
    UploadState,
)

__all__ = [
    "EntityKind",
    "ModelValidationError",
    "OperationHandle",
    "OperationResult",
    "OperationStatus",
    "UploadAttempt",
    "UploadResult",
    "UploadState",
]
