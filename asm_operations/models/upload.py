"""Typed models for the register-then-upload flow.

- ``EntityKind``: URL templates and response field names for one kind of
  uploadable entity (asset, VM package, game package ...)
- ``UploadResult``: Identifier and pre-authorised URI returned by phase 1
- ``UploadState`` / ``UploadAttempt``: The per-call state machine
  ``Created -> MetadataRegistered -> {Uploaded | RolledBack}``
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from asm_operations.core.constants import DEFAULT_METADATA_PART
from asm_operations.models.operation import (
    ModelValidationError,
    check_absolute_url,
    check_non_empty,
)

# ---------------------------------------------------------------------------
# Entity kinds
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class EntityKind:
    """Configuration for one kind of uploadable entity.

    Path templates are relative to the subscription and may reference
    caller-supplied path parameters; ``entity_path`` must also contain
    ``{entity_id}``.

    Attributes:
        name: Registry key (e.g. ``"asset"``).
        collection_path: POST target for metadata registration.
        entity_path: PUT (finalize) and DELETE (compensate) target.
        id_field: Create-response field holding the entity id.
        upload_uri_field: Create-response field holding the pre-auth URI.
        metadata_part: Multipart field name for the serialised metadata.
        finalize: Whether a successful transfer is followed by a PUT of
            the same metadata to activate the entity.
        conflict_message: Diagnostic for a 409 on register/finalize.
        delete_conflict_message: Diagnostic for a 409 on DELETE.
    """

    name: str
    collection_path: str
    entity_path: str
    id_field: str = "entityId"
    upload_uri_field: str = "preAuthUploadUri"
    metadata_part: str = DEFAULT_METADATA_PART
    finalize: bool = False
    conflict_message: str = ""
    delete_conflict_message: str = ""

    def __post_init__(self) -> None:
        check_non_empty("EntityKind", "name", self.name)
        check_non_empty("EntityKind", "collection_path", self.collection_path)
        check_non_empty("EntityKind", "id_field", self.id_field)
        check_non_empty("EntityKind", "upload_uri_field", self.upload_uri_field)
        if "{entity_id}" not in self.entity_path:
            raise ModelValidationError(
                "EntityKind",
                "entity_path",
                self.entity_path,
                "must contain the {entity_id} placeholder",
            )


# ---------------------------------------------------------------------------
# Upload result
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class UploadResult:
    """Outcome of phase 1, returned to the caller once the upload succeeds.

    Attributes:
        entity_id: Identifier of the registered entity.
        pre_auth_upload_uri: Time-limited URI the payload is streamed to.
        kind: Name of the ``EntityKind`` that produced it.
        response: The full create-response body.
    """

    entity_id: str
    pre_auth_upload_uri: str
    kind: str = ""
    response: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        check_non_empty("UploadResult", "entity_id", self.entity_id)
        check_absolute_url("UploadResult", "pre_auth_upload_uri", self.pre_auth_upload_uri)

    def to_dict(self) -> dict[str, object]:
        return {
            "entity_id": self.entity_id,
            "pre_auth_upload_uri": self.pre_auth_upload_uri,
            "kind": self.kind,
        }


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


class UploadState(enum.Enum):
    """Lifecycle of a single ``create_and_upload`` call."""

    CREATED = "Created"
    METADATA_REGISTERED = "MetadataRegistered"
    UPLOADED = "Uploaded"
    ROLLED_BACK = "RolledBack"

    @property
    def is_terminal(self) -> bool:
        return self in (UploadState.UPLOADED, UploadState.ROLLED_BACK)


_TRANSITIONS: dict[UploadState, frozenset[UploadState]] = {
    UploadState.CREATED: frozenset({UploadState.METADATA_REGISTERED}),
    UploadState.METADATA_REGISTERED: frozenset({UploadState.UPLOADED, UploadState.ROLLED_BACK}),
    UploadState.UPLOADED: frozenset(),
    UploadState.ROLLED_BACK: frozenset(),
}


@dataclass(slots=True)
class UploadAttempt:
    """Mutable state of one upload call; never shared between calls."""

    kind: str
    description: str
    state: UploadState = UploadState.CREATED
    entity_id: str = ""

    def advance(self, target: UploadState) -> None:
        if target not in _TRANSITIONS[self.state]:
            msg = f"Illegal upload transition {self.state.value} -> {target.value}"
            raise RuntimeError(msg)
        self.state = target
