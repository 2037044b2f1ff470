"""Decode operation-status bodies (JSON or Service Management XML)."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pydantic

from asm_operations.core.exceptions import ContractError
from asm_operations.models.contracts import OperationStatusPayload
from asm_operations.utils.helpers import looks_like_xml, xml_to_dict

if TYPE_CHECKING:
    import httpx

    from asm_operations.models.operation import OperationStatus


def parse_operation_status(
    body: bytes,
    *,
    content_type: str = "",
    operation_id: str = "",
) -> OperationStatus:
    """Decode one status payload.

    Raises:
        ContractError: If the body is empty, not well-formed, or lacks a
            recognisable ``result``/``Status`` value.
    """
    if not body or not body.strip():
        msg = "Operation status response has an empty body"
        raise ContractError(
            msg,
            stage="poll",
            code="STATUS_PAYLOAD_MALFORMED",
            correlation_id=operation_id,
        )

    try:
        if looks_like_xml(content_type, body):
            data: object = xml_to_dict(body)
        else:
            data = json.loads(body)
        if not isinstance(data, dict):
            msg = f"expected an object, got {type(data).__name__}"
            raise ValueError(msg)
        payload = OperationStatusPayload.model_validate(data)
    except (ValueError, pydantic.ValidationError) as exc:
        msg = f"Malformed operation status payload: {exc}"
        raise ContractError(
            msg,
            stage="poll",
            code="STATUS_PAYLOAD_MALFORMED",
            correlation_id=operation_id,
        ) from exc

    return payload.to_status()


def status_from_response(response: httpx.Response, *, operation_id: str = "") -> OperationStatus:
    return parse_operation_status(
        response.content,
        content_type=response.headers.get("content-type", ""),
        operation_id=operation_id,
    )
