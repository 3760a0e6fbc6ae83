from __future__ import annotations

import logging
from typing import Generic, Iterable, NamedTuple, TypeVar

from . import ir
from .index import IrIndex

logger = logging.getLogger(__name__)

D = TypeVar("D", ir.Trait, ir.Struct, ir.Enum, ir.Function, ir.Impl)


class Resolved(NamedTuple, Generic[D]):
    item: ir.Item
    definition: D


class ImportResolver:
    """
    Chases re-exports to the concrete definition behind an id.

    Each lookup either returns an item of the requested kind or None. A
    dangling id, an id of another kind, an import without a target and an
    import chain that loops back on itself all resolve to None.
    """

    def __init__(self, index: IrIndex) -> None:
        self._index = index

    def resolve_trait(self, item_id: ir.Id) -> Resolved[ir.Trait] | None:
        return self._resolve(item_id, ir.Trait)

    def resolve_struct(self, item_id: ir.Id) -> Resolved[ir.Struct] | None:
        return self._resolve(item_id, ir.Struct)

    def resolve_enum(self, item_id: ir.Id) -> Resolved[ir.Enum] | None:
        return self._resolve(item_id, ir.Enum)

    def resolve_function(self, item_id: ir.Id) -> Resolved[ir.Function] | None:
        return self._resolve(item_id, ir.Function)

    def resolve_impl(self, item_id: ir.Id) -> Resolved[ir.Impl] | None:
        return self._resolve(item_id, ir.Impl)

    # --- Bulk variants: keep only what resolved ---

    def find_traits(self, ids: Iterable[ir.Id]) -> list[Resolved[ir.Trait]]:
        return self._resolve_all(ids, ir.Trait)

    def find_structs(self, ids: Iterable[ir.Id]) -> list[Resolved[ir.Struct]]:
        return self._resolve_all(ids, ir.Struct)

    def find_enums(self, ids: Iterable[ir.Id]) -> list[Resolved[ir.Enum]]:
        return self._resolve_all(ids, ir.Enum)

    def find_functions(self, ids: Iterable[ir.Id]) -> list[Resolved[ir.Function]]:
        return self._resolve_all(ids, ir.Function)

    def find_impls(self, ids: Iterable[ir.Id]) -> list[Resolved[ir.Impl]]:
        return self._resolve_all(ids, ir.Impl)

    # --- Private Helpers ---

    def _resolve_all(self, ids: Iterable[ir.Id], kind: type[D]) -> list[Resolved[D]]:
        out: list[Resolved[D]] = []
        for item_id in ids:
            found = self._resolve(item_id, kind)
            if found is not None:
                out.append(found)
        return out

    def _resolve(self, item_id: ir.Id, kind: type[D]) -> Resolved[D] | None:
        visited: set[ir.Id] = set()
        current: ir.Id | None = item_id

        while current is not None:
            if current in visited:
                logger.debug(f"Import cycle at {current} while resolving {item_id}")
                return None
            visited.add(current)

            item = self._index.find_item(current)
            if item is None:
                return None
            if isinstance(item.inner, kind):
                return Resolved(item, item.inner)
            if not isinstance(item.inner, ir.Import):
                return None
            current = item.inner.id

        return None
