from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, TypedDict

from .ir import Stability


class ItemKind(enum.StrEnum):
    TRAIT = "trait"
    STRUCT = "struct"
    ENUM = "enum"
    FUNCTION = "function"
    IMPL = "impl"


@dataclass(slots=True, frozen=True, order=True)
class FlatItem:
    """
    One denormalized public API item.

    Field order is the sort order: kind, path, name, then the rest as
    tie-breakers so that sorting is total and deterministic.
    """

    kind: ItemKind
    path: str
    name: str
    id: str
    decl: str
    generics_used: bool
    is_const: bool
    is_async: bool
    stability: Stability
    fn_count: int
    trait_path: str = ""
    trait_resolved: bool = True

    @property
    def qualified_name(self) -> str:
        return f"{self.path}::{self.name}" if self.path else self.name

    def to_row(self) -> "ItemRow":
        return ItemRow(
            kind=self.kind.value,
            id=self.id,
            name=self.name,
            path=self.path,
            decl=self.decl,
            generics_used=self.generics_used,
            is_const=self.is_const,
            is_async=self.is_async,
            stability=self.stability.value,
            fn_count=self.fn_count,
            trait_path=self.trait_path,
            trait_resolved=self.trait_resolved,
        )


class FlatItemSet:
    """
    Immutable, sorted collection of FlatItems.

    Built with `from_records` the collection is deduplicated. `merge` is a
    plain concatenation of already-resolved sets: it keeps duplicates and
    only re-sorts.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[FlatItem] = ()) -> None:
        self._items: tuple[FlatItem, ...] = tuple(sorted(items))

    @classmethod
    def from_records(cls, records: Iterable[FlatItem]) -> "FlatItemSet":
        return cls(set(records))

    def merge(self, *others: "FlatItemSet") -> "FlatItemSet":
        merged = list(self._items)
        for other in others:
            merged.extend(other)
        return FlatItemSet(merged)

    def of_kind(self, kind: ItemKind) -> list[FlatItem]:
        return [i for i in self._items if i.kind == kind]

    def __iter__(self) -> Iterator[FlatItem]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> FlatItem:
        return self._items[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FlatItemSet):
            return NotImplemented
        return self._items == other._items

    def __repr__(self) -> str:
        return f"FlatItemSet({len(self._items)} items)"


# --- Report records ---


class ItemRow(TypedDict):
    kind: str
    id: str
    name: str
    path: str
    decl: str
    generics_used: bool
    is_const: bool
    is_async: bool
    stability: str
    fn_count: int
    trait_path: str
    trait_resolved: bool


class TallyRecord(TypedDict):
    total: int
    stable: int
    unstable: int
    generic: int


class ClassificationRecord(TypedDict):
    profile: str
    flag: str
    match_mode: str
    exclude: list[str]
    stable_total: int
    excluded: int
    potential: int
    matched: int
    ratio: float


class GraphRecord(TypedDict):
    source: str
    crate: str | None
    crate_version: str | None
    format_version: int | None
    items: int


class RunStats(TypedDict):
    graphs_scanned: int
    graphs_excluded: int
    graphs_loaded_ok: int
    graphs_load_errors: int
    items: int


class Metadata(TypedDict):
    schema_version: str
    generated_at: str
    graphs: list[GraphRecord]
    config_effective: dict[str, Any]


class SurfaceReport(TypedDict):
    meta: Metadata
    stats: RunStats
    summary: dict[str, TallyRecord]
    classifications: list[ClassificationRecord]
    items: list[ItemRow]
