"""Shared helper functions used by the transport, poller and uploader.

Centralises payload sizing, path templating and XML flattening so the
components agree on one behaviour for each.
"""

from __future__ import annotations

import io
import json
from collections.abc import Mapping
from typing import IO, Any, Union

from pydantic import BaseModel

from asm_operations.core.exceptions import ValidationError

Payload = Union[bytes, bytearray, memoryview, IO[bytes]]


def as_stream(payload: Payload) -> IO[bytes]:
    """Return *payload* as a binary stream without copying streams."""
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return io.BytesIO(bytes(payload))
    return payload


def payload_length(stream: IO[bytes]) -> int:
    """Return the number of bytes between the stream position and its end.

    The stream position is left unchanged.

    Raises:
        ValidationError: If the stream is not seekable.
    """
    seekable = getattr(stream, "seekable", None)
    if seekable is None or not seekable():
        msg = "Payload stream must be seekable so its length can be checked before upload"
        raise ValidationError(msg, stage="validate")
    start = stream.tell()
    end = stream.seek(0, io.SEEK_END)
    stream.seek(start)
    return end - start


def format_path(template: str, params: Mapping[str, object]) -> str:
    """Substitute *params* into a path template.

    Raises:
        ValidationError: If the template references a missing parameter.
    """
    try:
        return template.format(**params)
    except KeyError as exc:
        msg = f"Path template {template!r} requires parameter {exc.args[0]!r}"
        raise ValidationError(msg, stage="validate") from exc


def serialize_metadata(metadata: Mapping[str, Any] | BaseModel) -> str:
    """Serialise metadata for a multipart ``metadata`` part.

    Pydantic models are dumped by alias with ``None`` fields omitted.
    """
    if isinstance(metadata, BaseModel):
        return metadata.model_dump_json(by_alias=True, exclude_none=True)
    return json.dumps(dict(metadata), separators=(",", ":"), default=str)


def xml_to_dict(content: bytes) -> dict[str, Any]:
    """Flatten an XML document into nested dicts keyed by local element name.

    Namespaces are dropped, leaf elements become their stripped text
    (``None`` when empty) and repeated siblings keep the last value.
    Entity resolution and network access are disabled.

    Raises:
        ValueError: If *content* is not well-formed XML.
    """
    from lxml import etree  # type: ignore[attr-defined]

    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)
    try:
        root = etree.fromstring(content, parser=parser)
    except etree.XMLSyntaxError as exc:
        msg = f"Malformed XML: {exc}"
        raise ValueError(msg) from exc
    return _element_to_dict(root)


def _element_to_dict(element: Any) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for child in element:
        if not isinstance(child.tag, str):
            # Comments and processing instructions.
            continue
        name = etree_local_name(child.tag)
        if len(child):
            result[name] = _element_to_dict(child)
        else:
            result[name] = (child.text or "").strip() or None
    return result


def etree_local_name(tag: str) -> str:
    """Strip the ``{namespace}`` prefix from an lxml tag."""
    return tag.rsplit("}", 1)[-1]


def looks_like_xml(content_type: str, body: bytes) -> bool:
    if "xml" in content_type.lower():
        return True
    return body.lstrip()[:1] == b"<"
