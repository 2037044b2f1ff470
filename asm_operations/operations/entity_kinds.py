"""Entity-kind registry: URL templates and field names per uploadable entity.

Every register-then-upload call site differs only in its paths, the
response field names and its conflict diagnostics, so those live here as
``EntityKind`` values and the uploader stays generic.

Usage::

    from asm_operations.operations.entity_kinds import get_entity_kind

    kind = get_entity_kind("vm_package")
    uploader = CompensatingUploader(client, blob_uploader, kind=kind)
"""

from __future__ import annotations

import logging

from asm_operations.core.exceptions import ValidationError
from asm_operations.models.upload import EntityKind

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Entity kind name constants
# ---------------------------------------------------------------------------

ENTITY = "entity"
ASSET = "asset"
VM_PACKAGE = "vm_package"
GAME_PACKAGE = "game_package"

_CLOUD_GAME_PATH = "/cloudgames/{platform}/{cloud_game}"

# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_KIND_REGISTRY: dict[str, EntityKind] = {}


def _register_builtin_kinds() -> None:
    """Register the built-in entity kinds."""
    builtins = (
        EntityKind(
            name=ENTITY,
            collection_path="/entities",
            entity_path="/entities/{entity_id}",
        ),
        EntityKind(
            name=ASSET,
            collection_path="/cloudgames/assets",
            entity_path="/cloudgames/assets/{entity_id}",
            id_field="AssetId",
            upload_uri_field="AssetPreAuthUrl",
            finalize=True,
            delete_conflict_message=(
                "Unable to remove asset. Ensure asset is not currently referenced "
                "by any cloud games"
            ),
        ),
        EntityKind(
            name=VM_PACKAGE,
            collection_path=f"{_CLOUD_GAME_PATH}/vmpackages",
            entity_path=f"{_CLOUD_GAME_PATH}/vmpackages/{{entity_id}}",
            id_field="VmPackageId",
            upload_uri_field="CspkgPreAuthUrl",
            finalize=True,
            conflict_message=(
                "Unable to create VM package. Ensure no other VM packages for this "
                "cloud game have the same 'MaxPlayers' value"
            ),
            delete_conflict_message=(
                "Unable to remove VM package. Ensure VM package is not currently deployed"
            ),
        ),
        EntityKind(
            name=GAME_PACKAGE,
            collection_path=f"{_CLOUD_GAME_PATH}/vmpackages/{{vm_package_id}}/gamepackages",
            entity_path=(
                f"{_CLOUD_GAME_PATH}/vmpackages/{{vm_package_id}}/gamepackages/{{entity_id}}"
            ),
            id_field="GamePackageId",
            upload_uri_field="GamePackagePreAuthUrl",
            finalize=True,
            delete_conflict_message=(
                "Unable to remove game package. Ensure game package is not currently "
                "in use by any cloud games"
            ),
        ),
    )
    for kind in builtins:
        _KIND_REGISTRY[kind.name] = kind


def _ensure_registry() -> None:
    """Initialise the registry once (idempotent)."""
    if not _KIND_REGISTRY:
        _register_builtin_kinds()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def register_entity_kind(kind: EntityKind) -> None:
    """Register (or replace) an entity kind under ``kind.name``."""
    _ensure_registry()
    _KIND_REGISTRY[kind.name] = kind
    logger.debug("Registered entity kind: %s", kind.name)


def get_entity_kind(name: str) -> EntityKind:
    """Return the registered entity kind called *name*.

    Raises:
        ValidationError: If no kind with that name is registered.
    """
    _ensure_registry()
    kind = _KIND_REGISTRY.get(name)
    if kind is None:
        available = ", ".join(sorted(_KIND_REGISTRY))
        msg = f"Unknown entity kind: {name!r}. Available: {available}"
        raise ValidationError(msg, stage="validate")
    return kind


def list_entity_kinds() -> list[str]:
    """Return the names of all registered entity kinds."""
    _ensure_registry()
    return sorted(_KIND_REGISTRY)
