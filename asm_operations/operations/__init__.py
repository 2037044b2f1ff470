"""Long-running operation tracking and compensating uploads.

- OperationPoller / AsyncOperationPoller: Poll a status resource to a
  terminal result
- CompensatingUploader: Register metadata, upload the payload, roll back
  on failure
- entity_kinds: Registry of uploadable entity kinds
"""

from asm_operations.operations.async_poller import AsyncOperationPoller
from asm_operations.operations.entity_kinds import (
    ASSET,
    ENTITY,
    GAME_PACKAGE,
    VM_PACKAGE,
    get_entity_kind,
    list_entity_kinds,
    register_entity_kind,
)
from asm_operations.operations.poller import OperationPoller
from asm_operations.operations.uploader import CompensatingUploader

__all__ = [
    "ASSET",
    "ENTITY",
    "GAME_PACKAGE",
    "VM_PACKAGE",
    "AsyncOperationPoller",
    "CompensatingUploader",
    "OperationPoller",
    "get_entity_kind",
    "list_entity_kinds",
    "register_entity_kind",
]
