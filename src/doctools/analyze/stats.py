from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from doctools.surface.models import FlatItem, ItemKind, TallyRecord


@dataclass(slots=True, frozen=True)
class Tally:
    total: int = 0
    stable: int = 0
    unstable: int = 0
    generic: int = 0

    @classmethod
    def of(cls, item: FlatItem) -> "Tally":
        stable = item.stability.is_stable
        return cls(
            total=1,
            stable=int(stable),
            unstable=int(not stable),
            generic=int(item.generics_used),
        )

    def __add__(self, other: "Tally") -> "Tally":
        return Tally(
            total=self.total + other.total,
            stable=self.stable + other.stable,
            unstable=self.unstable + other.unstable,
            generic=self.generic + other.generic,
        )

    def to_record(self) -> TallyRecord:
        return TallyRecord(
            total=self.total,
            stable=self.stable,
            unstable=self.unstable,
            generic=self.generic,
        )


@dataclass(slots=True, frozen=True, eq=False)
class SurfaceSummary:
    """Per-kind tallies. `+` combines two summaries kind by kind. Unhashable."""

    tallies: dict[ItemKind, Tally] = field(default_factory=dict)

    @classmethod
    def from_items(cls, items: Iterable[FlatItem]) -> "SurfaceSummary":
        tallies: dict[ItemKind, Tally] = {}
        for item in items:
            tallies[item.kind] = tallies.get(item.kind, Tally()) + Tally.of(item)
        return cls(tallies)

    def get(self, kind: ItemKind) -> Tally:
        return self.tallies.get(kind, Tally())

    @property
    def overall(self) -> Tally:
        return sum(self.tallies.values(), Tally())

    def __add__(self, other: "SurfaceSummary") -> "SurfaceSummary":
        kinds = set(self.tallies) | set(other.tallies)
        return SurfaceSummary({k: self.get(k) + other.get(k) for k in kinds})

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SurfaceSummary):
            return NotImplemented
        # Absent kinds and empty tallies compare equal.
        kinds = set(self.tallies) | set(other.tallies)
        return all(self.get(k) == other.get(k) for k in kinds)

    __hash__ = None  # type: ignore[assignment]

    def to_records(self) -> dict[str, TallyRecord]:
        out = {kind.value: self.get(kind).to_record() for kind in ItemKind}
        out["all"] = self.overall.to_record()
        return out
