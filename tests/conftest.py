"""Shared builders for IR graphs and flat items."""

from __future__ import annotations

import pytest

from doctools.surface import ir
from doctools.surface.models import FlatItem, ItemKind

STABLE_ATTR = '#[stable(feature = "rust1", since = "1.0.0")]'
UNSTABLE_ATTR = '#[unstable(feature = "demo", issue = "none")]'


class GraphBuilder:
    """Small fluent helper for building `ir.Crate` graphs in tests."""

    def __init__(self, crate_name: str = "demo") -> None:
        self.index: dict[str, ir.Item] = {}
        self.paths: dict[str, ir.ItemSummary] = {}
        self._next = 0
        self.root = self.add(ir.Module(is_crate=True), name=crate_name, path=crate_name)

    def new_id(self) -> str:
        self._next += 1
        return f"0:{self._next}"

    def add(
        self,
        inner: ir.Definition,
        name: str | None = None,
        *,
        stable: bool = True,
        path: str | None = None,
        item_id: str | None = None,
    ) -> str:
        item_id = item_id or self.new_id()
        attrs = (STABLE_ATTR,) if stable else (UNSTABLE_ATTR,)
        self.index[item_id] = ir.Item(id=item_id, name=name, inner=inner, attrs=attrs)
        if path:
            self.paths[item_id] = ir.ItemSummary(path=tuple(path.split("::")))
        return item_id

    def module(self, path: str, items: list[str], *, stripped: bool = False) -> str:
        if path == self.index[self.root].name:
            self.index[self.root] = ir.Item(
                id=self.root,
                name=path,
                inner=ir.Module(items=tuple(items), is_crate=True),
                attrs=(),
            )
            return self.root
        return self.add(
            ir.Module(items=tuple(items), is_stripped=stripped),
            name=path.split("::")[-1],
            path=path,
        )

    def function(
        self,
        name: str,
        *,
        stable: bool = True,
        is_const: bool = False,
        is_async: bool = False,
        generics: ir.Generics | None = None,
    ) -> str:
        fn = ir.Function(
            generics=generics or ir.Generics(),
            header=ir.FnHeader(is_const=is_const, is_async=is_async),
        )
        return self.add(fn, name, stable=stable)

    def import_(self, target: str | None, name: str = "alias") -> str:
        return self.add(ir.Import(source=name, name=name, id=target), name)

    def build(self) -> ir.Crate:
        return ir.Crate(root=self.root, index=dict(self.index), paths=dict(self.paths))


@pytest.fixture
def graph() -> GraphBuilder:
    return GraphBuilder()


def make_item(**overrides) -> FlatItem:
    fields = dict(
        kind=ItemKind.FUNCTION,
        path="std::vec::Vec",
        name="new",
        id="0:1",
        decl="fn new() -> Self { .. }",
        generics_used=False,
        is_const=False,
        is_async=False,
        stability=ir.Stability.STABLE,
        fn_count=0,
    )
    fields.update(overrides)
    return FlatItem(**fields)


@pytest.fixture
def item_factory():
    return make_item
