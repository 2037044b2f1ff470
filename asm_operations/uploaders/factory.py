"""Uploader factory: selects the payload transfer adapter by name.

The factory keeps a registry of adapter loaders.  Loaders are lazy
imports so the Azure SDK is only loaded when the blob adapter is chosen.

Usage::

    from asm_operations.uploaders.factory import get_uploader

    uploader = get_uploader("azure_blob", config)
    outcome = uploader.transfer(uri, stream, length)

The adapter name is read from ``ASM_UPLOADER`` via ``ClientConfig.uploader``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from asm_operations.core.exceptions import ValidationError

if TYPE_CHECKING:
    from collections.abc import Callable

    from asm_operations.core.config import ClientConfig
    from asm_operations.uploaders.base import PayloadUploader

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Uploader name constants
# ---------------------------------------------------------------------------

AZURE_BLOB = "azure_blob"
HTTP_PUT = "http_put"

# ---------------------------------------------------------------------------
# Lazy-import adapter registry
# ---------------------------------------------------------------------------

_UPLOADER_REGISTRY: dict[str, Callable[[], type[PayloadUploader]]] = {}


def _register_builtin_uploaders() -> None:
    """Register the built-in uploaders as lazy import thunks."""

    def _azure_blob() -> type[PayloadUploader]:
        from asm_operations.uploaders.azure_blob import AzureBlobUploader

        return AzureBlobUploader

    def _http_put() -> type[PayloadUploader]:
        from asm_operations.uploaders.http_put import HttpPutUploader

        return HttpPutUploader

    _UPLOADER_REGISTRY[AZURE_BLOB] = _azure_blob
    _UPLOADER_REGISTRY[HTTP_PUT] = _http_put


def _ensure_registry() -> None:
    """Initialise the adapter registry once (idempotent)."""
    if not _UPLOADER_REGISTRY:
        _register_builtin_uploaders()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def register_uploader(name: str, loader: Callable[[], type[PayloadUploader]]) -> None:
    """Register a custom uploader.

    Args:
        name: Uploader name (e.g. ``"my_uploader"``).
        loader: A zero-argument callable that returns the adapter class.

    Raises:
        ValueError: If the name is empty.
    """
    if not name:
        msg = "Uploader name must be non-empty"
        raise ValueError(msg)
    _ensure_registry()
    _UPLOADER_REGISTRY[name] = loader
    logger.debug("Registered uploader: %s", name)


def get_uploader(name: str, config: ClientConfig | None = None) -> PayloadUploader:
    """Create and return an uploader instance.

    Args:
        name: Uploader identifier (``"azure_blob"``, ``"http_put"``).
        config: Optional client configuration for adapter tunables.  If
            ``None``, the adapter defaults are used.

    Raises:
        ValidationError: If the named uploader is not registered.
    """
    _ensure_registry()

    loader = _UPLOADER_REGISTRY.get(name)
    if loader is None:
        available = ", ".join(sorted(_UPLOADER_REGISTRY))
        msg = f"Unknown uploader: {name!r}. Available: {available}"
        raise ValidationError(msg, stage="validate")

    uploader_cls = loader()
    logger.info("Creating uploader: %s", name)
    if config is None:
        return uploader_cls()
    return uploader_cls.from_config(config)


def list_uploaders() -> list[str]:
    """Return the names of all registered uploaders."""
    _ensure_registry()
    return sorted(_UPLOADER_REGISTRY)
