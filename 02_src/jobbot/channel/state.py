"""Per-turn cached view over one storage scope."""

from typing import Any

from ..storage import IStorage, Scope


class PropertyState:
    """Scoped key-value state with get / set / save_changes semantics.

    Values are read lazily on first ``get`` and cached for the rest of the
    turn. Only keys passed to ``set`` are written back by ``save_changes``,
    so a turn never overwrites state it did not change.
    """

    def __init__(self, storage: IStorage, scope: Scope, scope_id: str):
        self._storage = storage
        self._scope = scope
        self._scope_id = scope_id
        self._values: dict[str, Any] = {}
        self._dirty: set[str] = set()

    @property
    def scope(self) -> Scope:
        return self._scope

    @property
    def scope_id(self) -> str:
        return self._scope_id

    async def get(self, key: str, default: Any = None) -> Any:
        if key not in self._values:
            stored = await self._storage.get_property(self._scope, self._scope_id, key)
            self._values[key] = stored.value if stored is not None else default
        return self._values[key]

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value
        self._dirty.add(key)

    @property
    def has_changes(self) -> bool:
        return bool(self._dirty)

    async def save_changes(self) -> None:
        """Persist every key changed since the last save."""
        for key in sorted(self._dirty):
            await self._storage.put_property(
                self._scope, self._scope_id, key, self._values[key]
            )
        self._dirty.clear()
