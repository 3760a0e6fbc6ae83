from __future__ import annotations

import logging

from . import ir
from .formatter import SignatureFormatter
from .index import IrIndex
from .models import FlatItem, FlatItemSet, ItemKind
from .resolver import ImportResolver, Resolved

logger = logging.getLogger(__name__)


class Denormalizer:
    """
    Flattens one IR graph into FlatItems.

    Modules are walked in path order. Each module's children are resolved
    through the ImportResolver into traits, structs, enums and free
    functions. Trait members and inherent-impl members become function
    records under the owner's path; trait impls become impl records.
    Anything that fails to resolve is left out.
    """

    def __init__(self, index: IrIndex) -> None:
        self._index = index
        self._resolver = ImportResolver(index)

    def denormalize(self) -> FlatItemSet:
        records: list[FlatItem] = []
        for path_name, module in self._index.modules():
            records.extend(self._traits(module.items, path_name))
            records.extend(self._functions(module.items, path_name, False))
            records.extend(self._structs(module.items, path_name))
            records.extend(self._enums(module.items, path_name))

        items = FlatItemSet.from_records(records)
        logger.debug(f"Denormalized {len(items)} items from {self._index.crate.name}")
        return items

    # --- Per-kind flattening ---

    def _traits(self, ids: tuple[ir.Id, ...], path_name: str) -> list[FlatItem]:
        out: list[FlatItem] = []
        for item, trait in self._resolver.find_traits(ids):
            name = self._name(item)
            has_generics = trait.generics.in_use
            members = self._functions(trait.items, f"{path_name}::{name}", has_generics)
            out.extend(members)
            out.append(
                FlatItem(
                    kind=ItemKind.TRAIT,
                    path=path_name,
                    name=name,
                    id=item.id,
                    decl=SignatureFormatter.format_trait(name, trait),
                    generics_used=has_generics,
                    is_const=False,
                    is_async=False,
                    stability=item.stability,
                    fn_count=len(members),
                )
            )
        return out

    def _structs(self, ids: tuple[ir.Id, ...], path_name: str) -> list[FlatItem]:
        out: list[FlatItem] = []
        for item, strukt in self._resolver.find_structs(ids):
            name = self._name(item)
            out.extend(
                self._owner(
                    ItemKind.STRUCT,
                    item,
                    name,
                    path_name,
                    strukt.impls,
                    strukt.generics.in_use,
                    SignatureFormatter.format_struct(name, strukt),
                )
            )
        return out

    def _enums(self, ids: tuple[ir.Id, ...], path_name: str) -> list[FlatItem]:
        out: list[FlatItem] = []
        for item, enum_ in self._resolver.find_enums(ids):
            name = self._name(item)
            out.extend(
                self._owner(
                    ItemKind.ENUM,
                    item,
                    name,
                    path_name,
                    enum_.impls,
                    enum_.generics.in_use,
                    SignatureFormatter.format_enum(name, enum_),
                )
            )
        return out

    def _owner(
        self,
        kind: ItemKind,
        item: ir.Item,
        name: str,
        path_name: str,
        impl_ids: tuple[ir.Id, ...],
        has_generics: bool,
        decl: str,
    ) -> list[FlatItem]:
        """Record for a struct/enum plus its inherent methods and trait impls."""
        impls = self._resolver.find_impls(impl_ids)
        stability = item.stability

        out: list[FlatItem] = []
        fn_count = 0
        for _, impl in impls:
            if not impl.is_inherent:
                continue
            methods = self._functions(
                impl.items, f"{path_name}::{name}", impl.generics.in_use
            )
            fn_count += len(methods)
            out.extend(methods)

        out.extend(self._trait_impls(impls, path_name, stability))
        out.append(
            FlatItem(
                kind=kind,
                path=path_name,
                name=name,
                id=item.id,
                decl=decl,
                generics_used=has_generics,
                is_const=False,
                is_async=False,
                stability=stability,
                fn_count=fn_count,
            )
        )
        return out

    def _trait_impls(
        self,
        impls: list[Resolved[ir.Impl]],
        path_name: str,
        owner_stability: ir.Stability,
    ) -> list[FlatItem]:
        out: list[FlatItem] = []
        for item, impl in impls:
            if impl.trait is None:
                continue
            stability, trait_resolved = self._impl_stability(impl, owner_stability)
            members = self._resolver.find_functions(impl.items)
            all_const = bool(members) and all(f.header.is_const for _, f in members)
            all_async = bool(members) and all(f.header.is_async for _, f in members)

            trait_path = impl.trait.name
            if impl.trait.id is not None:
                trait_path = self._index.find_path(impl.trait.id) or trait_path

            out.append(
                FlatItem(
                    kind=ItemKind.IMPL,
                    path=path_name,
                    name=impl.trait.name,
                    id=item.id,
                    decl=SignatureFormatter.format_impl(impl),
                    generics_used=impl.generics.in_use,
                    is_const=all_const,
                    is_async=all_async,
                    stability=stability,
                    fn_count=len(members),
                    trait_path=trait_path,
                    trait_resolved=trait_resolved,
                )
            )
        return out

    def _impl_stability(
        self, impl: ir.Impl, stability: ir.Stability
    ) -> tuple[ir.Stability, bool]:
        """
        Start from the owner's stability and demote to unstable when the
        implemented trait or an enum member of the impl is unstable.

        A trait that does not resolve in this graph (it lives in another
        crate) keeps the owner's stability; the second return value reports
        whether the trait was found at all.
        """
        for member, _ in self._resolver.find_enums(impl.items):
            if not member.stability.is_stable:
                stability = ir.Stability.UNSTABLE

        trait = None
        if impl.trait is not None and impl.trait.id is not None:
            trait = self._resolver.resolve_trait(impl.trait.id)
        if trait is None:
            return stability, False
        if not trait.item.stability.is_stable:
            stability = ir.Stability.UNSTABLE
        return stability, True

    def _functions(
        self, ids: tuple[ir.Id, ...], path_name: str, parent_has_generics: bool
    ) -> list[FlatItem]:
        out: list[FlatItem] = []
        for item, fn in self._resolver.find_functions(ids):
            name = self._name(item)
            out.append(
                FlatItem(
                    kind=ItemKind.FUNCTION,
                    path=path_name,
                    name=name,
                    id=item.id,
                    decl=SignatureFormatter.format_function(name, fn),
                    generics_used=fn.generics.in_use or parent_has_generics,
                    is_const=fn.header.is_const,
                    is_async=fn.header.is_async,
                    stability=item.stability,
                    fn_count=0,
                )
            )
        return out

    @staticmethod
    def _name(item: ir.Item) -> str:
        return item.name or ""


def denormalize(crate: ir.Crate) -> FlatItemSet:
    return Denormalizer(IrIndex(crate)).denormalize()
