"""
classifier.py

Counts stable items that carry a qualifier (const, async, ...) while leaving
out whole subtrees of the API by path prefix.

Every filtering stage returns what it kept together with how many items it
excluded, so shards of a run can be counted independently and summed.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from doctools.surface.models import FlatItem

logger = logging.getLogger(__name__)

ItemPredicate = Callable[[FlatItem], bool]

COUNTABLE_FLAGS = ("is_const", "is_async", "generics_used")

# Most of std can be const; host APIs (os, fs, net, process) cannot.
CONST_EXCLUDES: tuple[str, ...] = ("std::os", "std::fs", "std::net", "std::process")

# Async needs net/fs and most trait impls, but not operator or marker traits.
ASYNC_EXCLUDES: tuple[str, ...] = (
    "core::ops",
    "std::thread",
    "core::any",
    "core::borrow",
    "core::marker",
    "core::panic",
    "core::clone",
    "core::default",
    "core::hash::Hash",
    "core::convert::AsRef",
    "core::convert::AsMut",
    "core::cmp",
)


class MatchMode(enum.StrEnum):
    PREFIX = "prefix"
    # Legacy substring matching: `std::os` also hits `my_std::oscillator`.
    CONTAINS = "contains"


@dataclass(slots=True, frozen=True)
class PathExcluder:
    prefixes: tuple[str, ...]
    mode: MatchMode = MatchMode.PREFIX

    def __post_init__(self) -> None:
        if self.mode is MatchMode.CONTAINS:
            logger.warning(
                "Substring path exclusion is legacy behaviour and may exclude "
                "unrelated paths; prefer 'prefix'."
            )

    def matches(self, path: str) -> bool:
        if not path:
            return False
        for prefix in self.prefixes:
            if self.mode is MatchMode.CONTAINS:
                if prefix in path:
                    return True
            elif path == prefix or path.startswith(f"{prefix}::"):
                return True
        return False

    def excludes(self, item: FlatItem) -> bool:
        return self.matches(item.path) or self.matches(item.trait_path)


@dataclass(slots=True, frozen=True)
class ClassificationResult:
    """Partition of the stable items: matched, excluded and the rest."""

    matched: int = 0
    excluded: int = 0
    stable_total: int = 0

    @property
    def potential(self) -> int:
        return self.stable_total - self.excluded

    @property
    def unmatched(self) -> int:
        return self.potential - self.matched

    @property
    def ratio(self) -> float:
        if self.potential <= 0:
            return 0.0
        return self.matched / self.potential

    def __add__(self, other: "ClassificationResult") -> "ClassificationResult":
        return ClassificationResult(
            matched=self.matched + other.matched,
            excluded=self.excluded + other.excluded,
            stable_total=self.stable_total + other.stable_total,
        )

    def __radd__(self, other: Any) -> "ClassificationResult":
        # Lets sum() start from 0.
        if other == 0:
            return self
        return NotImplemented


@dataclass(slots=True, frozen=True)
class ClassificationProfile:
    name: str
    flag: str
    exclude: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, name: str, d: dict[str, Any]) -> "ClassificationProfile":
        flag = d.get("flag", f"is_{name}")
        if flag not in COUNTABLE_FLAGS:
            raise ValueError(
                f"Profile '{name}' counts unknown flag '{flag}'; "
                f"expected one of {', '.join(COUNTABLE_FLAGS)}"
            )
        return cls(name=name, flag=flag, exclude=tuple(d.get("exclude") or ()))

    @property
    def predicate(self) -> ItemPredicate:
        flag = self.flag
        return lambda item: bool(getattr(item, flag))


def stable_only(items: Iterable[FlatItem]) -> list[FlatItem]:
    return [i for i in items if i.stability.is_stable]


def partition(
    items: Iterable[FlatItem], excluder: PathExcluder
) -> tuple[list[FlatItem], int]:
    """Split items into (kept, excluded_count) by path, then trait path."""
    kept: list[FlatItem] = []
    excluded = 0
    for item in items:
        if excluder.excludes(item):
            excluded += 1
        else:
            kept.append(item)
    return kept, excluded


def count_items(
    items: Iterable[FlatItem],
    predicate: ItemPredicate,
    exclude_prefixes: Iterable[str] = (),
    mode: MatchMode = MatchMode.PREFIX,
) -> ClassificationResult:
    stable = stable_only(items)
    kept, excluded = partition(stable, PathExcluder(tuple(exclude_prefixes), mode))
    matched = sum(1 for item in kept if predicate(item))
    return ClassificationResult(
        matched=matched, excluded=excluded, stable_total=len(stable)
    )


def count_const_items(
    items: Iterable[FlatItem],
    exclude_prefixes: Iterable[str] = CONST_EXCLUDES,
    mode: MatchMode = MatchMode.PREFIX,
) -> ClassificationResult:
    return count_items(items, lambda i: i.is_const, exclude_prefixes, mode)


def count_async_items(
    items: Iterable[FlatItem],
    exclude_prefixes: Iterable[str] = ASYNC_EXCLUDES,
    mode: MatchMode = MatchMode.PREFIX,
) -> ClassificationResult:
    return count_items(items, lambda i: i.is_async, exclude_prefixes, mode)


def classify_profile(
    items: Iterable[FlatItem],
    profile: ClassificationProfile,
    mode: MatchMode = MatchMode.PREFIX,
) -> ClassificationResult:
    return count_items(items, profile.predicate, profile.exclude, mode)


def classify_shards(
    shards: Iterable[Iterable[FlatItem]],
    predicate: ItemPredicate,
    exclude_prefixes: Iterable[str] = (),
    mode: MatchMode = MatchMode.PREFIX,
) -> ClassificationResult:
    """Count each shard on its own and reduce the per-shard results."""
    prefixes = tuple(exclude_prefixes)
    return sum(
        (count_items(shard, predicate, prefixes, mode) for shard in shards),
        ClassificationResult(),
    )
