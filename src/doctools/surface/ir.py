"""
ir.py

In-memory model of a rustdoc documentation graph.

Every variant is a frozen dataclass, so a graph is an immutable snapshot once
built. Type, bound and definition variants form closed unions; consumers
dispatch on them with isinstance chains and fall back to a placeholder for
anything they do not know.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Union

Id = str


class Stability(enum.StrEnum):
    STABLE = "stable"
    UNSTABLE = "unstable"

    @classmethod
    def from_attrs(cls, attrs: tuple[str, ...]) -> "Stability":
        for attr in attrs:
            if "#[stable" in attr:
                return cls.STABLE
        return cls.UNSTABLE

    @property
    def is_stable(self) -> bool:
        return self is Stability.STABLE


class TraitBoundModifier(enum.StrEnum):
    NONE = "none"
    MAYBE = "maybe"
    MAYBE_CONST = "maybe_const"


# --- Generic arguments & paths ---


@dataclass(slots=True, frozen=True)
class LifetimeArg:
    name: str


@dataclass(slots=True, frozen=True)
class TypeArg:
    type: "Type"


@dataclass(slots=True, frozen=True)
class ConstArg:
    expr: str


@dataclass(slots=True, frozen=True)
class InferArg:
    pass


GenericArg = Union[LifetimeArg, TypeArg, ConstArg, InferArg]


@dataclass(slots=True, frozen=True)
class AssocConstraint:
    """`Item = T` (equality) or `Item: Bounds` (constraint) inside `<...>`."""

    name: str
    args: "GenericArgs | None" = None
    equality: "Term | None" = None
    bounds: tuple["GenericBound", ...] = ()


@dataclass(slots=True, frozen=True)
class AngleBracketed:
    args: tuple[GenericArg, ...] = ()
    constraints: tuple[AssocConstraint, ...] = ()


@dataclass(slots=True, frozen=True)
class Parenthesized:
    inputs: tuple["Type", ...] = ()
    output: "Type | None" = None


GenericArgs = Union[AngleBracketed, Parenthesized]


@dataclass(slots=True, frozen=True)
class Path:
    name: str
    id: Id | None = None
    args: GenericArgs | None = None


@dataclass(slots=True, frozen=True)
class PolyTrait:
    trait: Path
    generic_params: tuple["GenericParamDef", ...] = ()


# --- Types ---


@dataclass(slots=True, frozen=True)
class GenericType:
    name: str


@dataclass(slots=True, frozen=True)
class ResolvedPath:
    path: Path


@dataclass(slots=True, frozen=True)
class Primitive:
    name: str


@dataclass(slots=True, frozen=True)
class TupleType:
    types: tuple["Type", ...] = ()


@dataclass(slots=True, frozen=True)
class Slice:
    type: "Type"


@dataclass(slots=True, frozen=True)
class ArrayType:
    type: "Type"
    len: str


@dataclass(slots=True, frozen=True)
class RawPointer:
    mutable: bool
    type: "Type"


@dataclass(slots=True, frozen=True)
class BorrowedRef:
    lifetime: str | None
    mutable: bool
    type: "Type"


@dataclass(slots=True, frozen=True)
class DynTrait:
    traits: tuple[PolyTrait, ...] = ()
    lifetime: str | None = None


@dataclass(slots=True, frozen=True)
class ImplTrait:
    bounds: tuple["GenericBound", ...] = ()


@dataclass(slots=True, frozen=True)
class QualifiedPath:
    """`<self_type as trait>::name`, or `self_type::name` without a trait."""

    name: str
    self_type: "Type"
    trait: Path | None = None
    args: GenericArgs | None = None


@dataclass(slots=True, frozen=True)
class FnHeader:
    is_const: bool = False
    is_unsafe: bool = False
    is_async: bool = False
    abi: str = "Rust"


@dataclass(slots=True, frozen=True)
class FnDecl:
    inputs: tuple[tuple[str, "Type"], ...] = ()
    output: "Type | None" = None
    c_variadic: bool = False


@dataclass(slots=True, frozen=True)
class FunctionPointer:
    decl: FnDecl
    generic_params: tuple["GenericParamDef", ...] = ()
    header: FnHeader = field(default_factory=FnHeader)


@dataclass(slots=True, frozen=True)
class Infer:
    pass


@dataclass(slots=True, frozen=True)
class UnknownType:
    """A type shape the loader did not recognise; `raw` is its debug form."""

    kind: str
    raw: str


Type = Union[
    GenericType,
    ResolvedPath,
    Primitive,
    TupleType,
    Slice,
    ArrayType,
    RawPointer,
    BorrowedRef,
    DynTrait,
    ImplTrait,
    QualifiedPath,
    FunctionPointer,
    Infer,
    UnknownType,
]


@dataclass(slots=True, frozen=True)
class Constant:
    expr: str


Term = Union[Type, Constant]


# --- Bounds & generics ---


@dataclass(slots=True, frozen=True)
class TraitBound:
    trait: Path
    modifier: TraitBoundModifier = TraitBoundModifier.NONE
    generic_params: tuple["GenericParamDef", ...] = ()


@dataclass(slots=True, frozen=True)
class Outlives:
    lifetime: str


GenericBound = Union[TraitBound, Outlives]


@dataclass(slots=True, frozen=True)
class LifetimeParam:
    outlives: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class TypeParam:
    bounds: tuple[GenericBound, ...] = ()
    default: Type | None = None
    synthetic: bool = False


@dataclass(slots=True, frozen=True)
class ConstParam:
    type: Type
    default: str | None = None


GenericParamKind = Union[LifetimeParam, TypeParam, ConstParam]


@dataclass(slots=True, frozen=True)
class GenericParamDef:
    name: str
    kind: GenericParamKind


@dataclass(slots=True, frozen=True)
class BoundPredicate:
    type: Type
    bounds: tuple[GenericBound, ...] = ()
    generic_params: tuple[GenericParamDef, ...] = ()


@dataclass(slots=True, frozen=True)
class RegionPredicate:
    lifetime: str
    bounds: tuple[GenericBound, ...] = ()


@dataclass(slots=True, frozen=True)
class EqPredicate:
    lhs: Type
    rhs: Term


WherePredicate = Union[BoundPredicate, RegionPredicate, EqPredicate]


@dataclass(slots=True, frozen=True)
class Generics:
    params: tuple[GenericParamDef, ...] = ()
    where_predicates: tuple[WherePredicate, ...] = ()

    @property
    def in_use(self) -> bool:
        """True when any non-lifetime parameter or bound predicate exists."""
        params = sum(1 for p in self.params if not isinstance(p.kind, LifetimeParam))
        wheres = sum(1 for w in self.where_predicates if isinstance(w, BoundPredicate))
        return (params + wheres) != 0


# --- Definitions ---


@dataclass(slots=True, frozen=True)
class Module:
    items: tuple[Id, ...] = ()
    is_crate: bool = False
    is_stripped: bool = False


@dataclass(slots=True, frozen=True)
class Trait:
    items: tuple[Id, ...] = ()
    generics: Generics = field(default_factory=Generics)
    bounds: tuple[GenericBound, ...] = ()
    is_auto: bool = False
    is_unsafe: bool = False


@dataclass(slots=True, frozen=True)
class Struct:
    generics: Generics = field(default_factory=Generics)
    impls: tuple[Id, ...] = ()


@dataclass(slots=True, frozen=True)
class Enum:
    generics: Generics = field(default_factory=Generics)
    variants: tuple[Id, ...] = ()
    impls: tuple[Id, ...] = ()


@dataclass(slots=True, frozen=True)
class Function:
    decl: FnDecl = field(default_factory=FnDecl)
    generics: Generics = field(default_factory=Generics)
    header: FnHeader = field(default_factory=FnHeader)
    has_body: bool = True


@dataclass(slots=True, frozen=True)
class Impl:
    for_: Type
    items: tuple[Id, ...] = ()
    generics: Generics = field(default_factory=Generics)
    trait: Path | None = None
    is_unsafe: bool = False
    negative: bool = False
    synthetic: bool = False
    blanket_impl: Type | None = None

    @property
    def is_inherent(self) -> bool:
        return self.trait is None and not self.synthetic and self.blanket_impl is None


@dataclass(slots=True, frozen=True)
class Import:
    """A re-export: forwards to `id`, which may itself be an Import."""

    source: str
    name: str
    id: Id | None = None
    glob: bool = False


@dataclass(slots=True, frozen=True)
class Opaque:
    kind: str


Definition = Union[Module, Trait, Struct, Enum, Function, Impl, Import, Opaque]


@dataclass(slots=True, frozen=True)
class Item:
    id: Id
    name: str | None
    inner: Definition
    attrs: tuple[str, ...] = ()

    @property
    def stability(self) -> Stability:
        return Stability.from_attrs(self.attrs)


@dataclass(slots=True, frozen=True)
class ItemSummary:
    path: tuple[str, ...]
    kind: str = ""
    crate_id: int = 0


@dataclass(slots=True, frozen=True)
class Crate:
    """The IR graph: a definition index plus canonical paths by id."""

    root: Id
    index: dict[Id, Item]
    paths: dict[Id, ItemSummary] = field(default_factory=dict)
    format_version: int | None = None
    crate_version: str | None = None

    @property
    def name(self) -> str | None:
        root = self.index.get(self.root)
        return root.name if root else None
