from __future__ import annotations

from typing import Mapping

from ..core.enums import EntityKind
from ..core.exceptions import ValidationError
from .repository import EntityStore


class EntityRegistry:
    """Dispatch table from entity kind to its row store, fixed at startup."""

    def __init__(self, stores: Mapping[EntityKind, EntityStore]):
        self._stores = dict(stores)

    def kinds(self) -> list[EntityKind]:
        return list(self._stores)

    def store_for(self, kind) -> EntityStore:
        try:
            kind = EntityKind(kind)
        except ValueError:
            raise ValidationError(f"Unsupported record type: {kind!r}")
        store = self._stores.get(kind)
        if store is None:
            raise ValidationError(f"Record type {kind.value} cannot be deleted or restored")
        return store
