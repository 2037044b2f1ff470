"""Compensating uploader: register metadata, upload payload, roll back on failure.

Flow for one ``create_and_upload`` call::

    Created --POST metadata--> MetadataRegistered --transfer (+ PUT)--> Uploaded
                                                  \\--failure, DELETE--> RolledBack

- Phase 1 failures (the POST) are raised unchanged: nothing exists yet.
- Once the entity exists, any failure to upload or finalize triggers
  exactly one DELETE of the entity and raises ``UploadFailedError`` with
  the primary error as its cause.  A failed DELETE is attached to that
  error, never raised in its place.
- Partial success is never reported.

The rollback decision is a conditional on the ``CallOutcome`` returned
by the transfer and finalize steps, not an exception handler.
"""

from __future__ import annotations

import logging
from typing import IO, TYPE_CHECKING, Any
from urllib.parse import quote

from asm_operations.core.constants import MEDIA_TYPE_JSON
from asm_operations.core.exceptions import (
    ContractError,
    OperationsError,
    UploadFailedError,
    ValidationError,
)
from asm_operations.models.operation import ModelValidationError
from asm_operations.models.upload import EntityKind, UploadAttempt, UploadResult, UploadState
from asm_operations.operations.entity_kinds import ENTITY, get_entity_kind
from asm_operations.transport.outcome import CallOutcome, OutcomeKind
from asm_operations.uploaders.factory import get_uploader
from asm_operations.utils.helpers import as_stream, payload_length, serialize_metadata

if TYPE_CHECKING:
    from collections.abc import Mapping

    import httpx
    from pydantic import BaseModel

    from asm_operations.core.config import ClientConfig
    from asm_operations.transport.client import ServiceManagementClient
    from asm_operations.uploaders.base import PayloadUploader
    from asm_operations.utils.helpers import Payload

logger = logging.getLogger(__name__)


class CompensatingUploader:
    """Register-then-upload with rollback of the registered entity.

    Args:
        client: Management API client for the register, finalize and
            delete calls.
        uploader: Adapter that streams the payload to the pre-auth URI.
        kind: ``EntityKind`` or registered kind name.
    """

    def __init__(
        self,
        client: ServiceManagementClient,
        uploader: PayloadUploader,
        *,
        kind: EntityKind | str = ENTITY,
    ) -> None:
        self._client = client
        self._uploader = uploader
        self._kind = get_entity_kind(kind) if isinstance(kind, str) else kind

    @classmethod
    def from_config(
        cls,
        client: ServiceManagementClient,
        config: ClientConfig,
        *,
        kind: EntityKind | str = ENTITY,
    ) -> CompensatingUploader:
        """Build an uploader using the adapter named by ``config.uploader``."""
        return cls(client, get_uploader(config.uploader, config), kind=kind)

    @property
    def kind(self) -> EntityKind:
        return self._kind

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create_and_upload(
        self,
        metadata: Mapping[str, Any] | BaseModel,
        payload: Payload,
        *,
        path_params: Mapping[str, object] | None = None,
        extra_parts: Mapping[str, Any] | None = None,
        finalize: bool | None = None,
        description: str = "",
    ) -> UploadResult:
        """Register *metadata*, upload *payload* and finalize the entity.

        Args:
            metadata: Mapping or pydantic model sent as the metadata part.
            payload: Bytes or a seekable binary stream.  Must not be empty.
            path_params: Values for the kind's path placeholders
                (``platform``, ``cloud_game`` ...).
            extra_parts: Additional multipart fields for the register call,
                in ``httpx`` ``files=`` form.
            finalize: Override of ``kind.finalize``.
            description: Caller-facing description used in errors and logs.

        Returns:
            The ``UploadResult`` of the registration.

        Raises:
            ValidationError: Empty or non-seekable payload, an empty extra
                part, or a missing path parameter.  No request is sent.
            ServiceError: Metadata registration was rejected.
            TransportError: Metadata registration failed in transport.
            ContractError: The registration response lacks the entity id
                or upload URI.
            UploadFailedError: Upload or finalize failed after
                registration; the entity was rolled back.
        """
        kind = self._kind
        params = dict(path_params or {})
        description = description or f"Upload {kind.name}"
        do_finalize = kind.finalize if finalize is None else finalize

        stream = as_stream(payload)
        length = payload_length(stream)
        if length == 0:
            msg = "File stream must not be empty."
            raise ValidationError(msg, stage="validate")

        collection_url = self._client.resource_path(kind.collection_path, **params)
        # Resolve the entity path now so a missing parameter fails before the POST.
        self._client.resource_path(kind.entity_path, **{**params, "entity_id": "{entity_id}"})
        self._validate_extra_parts(extra_parts)
        metadata_json = serialize_metadata(metadata)
        attempt = UploadAttempt(kind=kind.name, description=description)

        # Phase 1: register metadata.
        outcome = self._client.post(collection_url, files=self._multipart(metadata_json, extra_parts))
        response = outcome.unwrap(
            stage="register",
            description=f"{description}: metadata registration failed",
            conflict_message=kind.conflict_message,
        )
        result = self._parse_create_response(response)
        attempt.entity_id = result.entity_id
        attempt.advance(UploadState.METADATA_REGISTERED)
        logger.info(
            "metadata registered | kind=%s | entity_id=%s | bytes=%d",
            kind.name,
            result.entity_id,
            length,
        )

        # Phase 2: transfer, then optionally finalize.
        entity_url = self._entity_url(result.entity_id, params)
        failure = self._transfer(result, stream, length, description)
        if failure is None and do_finalize:
            failure = self._finalize(entity_url, metadata_json, result.entity_id, description)

        if failure is None:
            attempt.advance(UploadState.UPLOADED)
            logger.info(
                "upload completed | kind=%s | entity_id=%s | finalized=%s",
                kind.name,
                result.entity_id,
                do_finalize,
            )
            return result

        compensation_error = self._compensate(entity_url, result.entity_id)
        attempt.advance(UploadState.ROLLED_BACK)

        message = f"{description} failed; {kind.name} {result.entity_id} was rolled back: {failure.message}"
        if compensation_error is not None:
            message = (
                f"{description} failed and rollback of {kind.name} {result.entity_id} "
                f"also failed: {failure.message} (rollback: {compensation_error.message})"
            )
        raise UploadFailedError(
            message,
            entity_id=result.entity_id,
            operation_description=description,
            original=failure,
            compensation_error=compensation_error,
            state=attempt.state.value,
        ) from failure

    def delete(
        self,
        entity_id: str,
        *,
        path_params: Mapping[str, object] | None = None,
        missing_ok: bool = False,
    ) -> bool:
        """Remove a registered entity.

        Returns:
            ``True`` if the entity was deleted, ``False`` if it was already
            absent and *missing_ok* is set.

        Raises:
            ConflictError: The entity is still in use (carries
                ``kind.delete_conflict_message``).
            NotFoundError: The entity does not exist and *missing_ok* is
                not set.
            ServiceError / TransportError: Any other failure.
        """
        kind = self._kind
        url = self._entity_url(entity_id, path_params or {})
        outcome = self._client.delete(url)
        if outcome.ok:
            logger.info("entity removed | kind=%s | entity_id=%s", kind.name, entity_id)
            return True
        if outcome.kind is OutcomeKind.NOT_FOUND and missing_ok:
            logger.info("entity already absent | kind=%s | entity_id=%s", kind.name, entity_id)
            return False
        raise outcome.to_exception(
            stage="delete",
            description=f"Remove {kind.name} {entity_id}",
            conflict_message=kind.delete_conflict_message,
            correlation_id=entity_id,
        ) from outcome.error

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _entity_url(self, entity_id: str, params: Mapping[str, object]) -> str:
        # Service-issued ids are opaque; they occupy exactly one path segment.
        return self._client.resource_path(
            self._kind.entity_path,
            **{**dict(params), "entity_id": quote(str(entity_id), safe="")},
        )

    @staticmethod
    def _validate_extra_parts(extra_parts: Mapping[str, Any] | None) -> None:
        """Reject empty multipart fields before anything is registered."""
        for name, value in (extra_parts or {}).items():
            content = value[1] if isinstance(value, tuple) and len(value) >= 2 else value
            if isinstance(content, str):
                empty = not content
            elif isinstance(content, (bytes, bytearray, memoryview)):
                empty = len(content) == 0
            elif content is None:
                empty = True
            else:
                empty = payload_length(content) == 0
            if empty:
                msg = f"Multipart part {name!r} must not be empty."
                raise ValidationError(msg, stage="validate")

    def _multipart(
        self,
        metadata_json: str,
        extra_parts: Mapping[str, Any] | None,
    ) -> dict[str, Any]:
        parts: dict[str, Any] = {
            self._kind.metadata_part: (None, metadata_json.encode("utf-8"), MEDIA_TYPE_JSON),
        }
        if extra_parts:
            parts.update(extra_parts)
        return parts

    def _parse_create_response(self, response: httpx.Response) -> UploadResult:
        kind = self._kind
        try:
            body = response.json()
        except ValueError as exc:
            msg = f"Registration response for {kind.name} is not valid JSON: {exc}"
            raise ContractError(msg, stage="register") from exc
        if not isinstance(body, dict):
            msg = f"Registration response for {kind.name} is not an object"
            raise ContractError(msg, stage="register")

        entity_id = body.get(kind.id_field)
        upload_uri = body.get(kind.upload_uri_field)
        missing = [
            name
            for name, value in ((kind.id_field, entity_id), (kind.upload_uri_field, upload_uri))
            if not value
        ]
        if missing:
            msg = f"Registration response for {kind.name} is missing {', '.join(missing)}"
            raise ContractError(msg, stage="register", correlation_id=str(entity_id or ""))

        try:
            return UploadResult(
                entity_id=str(entity_id),
                pre_auth_upload_uri=str(upload_uri),
                kind=kind.name,
                response=body,
            )
        except ModelValidationError as exc:
            msg = f"Registration response for {kind.name} is invalid: {exc}"
            raise ContractError(msg, stage="register", correlation_id=str(entity_id)) from exc

    def _transfer(
        self,
        result: UploadResult,
        stream: IO[bytes],
        length: int,
        description: str,
    ) -> OperationsError | None:
        try:
            outcome = self._uploader.transfer(result.pre_auth_upload_uri, stream, length)
        except Exception as exc:  # noqa: BLE001
            outcome = CallOutcome.failure(
                OutcomeKind.LOCAL_ERROR,
                f"{type(exc).__name__}: {exc}",
                error=exc,
            )
        if outcome.ok:
            return None
        logger.warning(
            "payload upload failed | kind=%s | entity_id=%s | outcome=%s | detail=%s",
            self._kind.name,
            result.entity_id,
            outcome.kind.value,
            outcome.detail,
        )
        error = outcome.to_exception(
            stage="transfer",
            description=f"{description}: payload upload failed",
            correlation_id=result.entity_id,
        )
        error.__cause__ = outcome.error
        return error

    def _finalize(
        self,
        entity_url: str,
        metadata_json: str,
        entity_id: str,
        description: str,
    ) -> OperationsError | None:
        outcome = self._client.put(
            entity_url,
            files={self._kind.metadata_part: (None, metadata_json.encode("utf-8"), MEDIA_TYPE_JSON)},
        )
        if outcome.ok:
            return None
        logger.warning(
            "finalize failed | kind=%s | entity_id=%s | detail=%s",
            self._kind.name,
            entity_id,
            outcome.detail,
        )
        error = outcome.to_exception(
            stage="finalize",
            description=f"{description}: finalize failed",
            conflict_message=self._kind.conflict_message,
            correlation_id=entity_id,
        )
        error.__cause__ = outcome.error
        return error

    def _compensate(self, entity_url: str, entity_id: str) -> OperationsError | None:
        """Issue the single compensating DELETE; return its error, if any."""
        kind = self._kind
        logger.warning("rolling back registration | kind=%s | entity_id=%s", kind.name, entity_id)
        outcome = self._client.delete(entity_url)
        if outcome.ok or outcome.kind is OutcomeKind.NOT_FOUND:
            logger.info(
                "rollback completed | kind=%s | entity_id=%s | status=%s",
                kind.name,
                entity_id,
                outcome.status_code,
            )
            return None

        error = outcome.to_exception(
            stage="compensate",
            description=f"Remove {kind.name} {entity_id}",
            conflict_message=kind.delete_conflict_message,
            correlation_id=entity_id,
        )
        logger.error(
            "rollback failed | kind=%s | entity_id=%s | error=%s",
            kind.name,
            entity_id,
            error.message,
        )
        return error
