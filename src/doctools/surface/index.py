from __future__ import annotations

from . import ir


class IrIndex:
    """
    Read-only lookups over one IR graph.

    A rustdoc module only lists the ids of its children, so every consumer
    goes through here to turn ids back into definitions and paths. Missing
    ids are a normal outcome and come back as None.
    """

    def __init__(self, crate: ir.Crate) -> None:
        self._crate = crate

    @property
    def crate(self) -> ir.Crate:
        return self._crate

    def find_item(self, item_id: ir.Id) -> ir.Item | None:
        return self._crate.index.get(item_id)

    def find_definition(self, item_id: ir.Id) -> ir.Definition | None:
        item = self._crate.index.get(item_id)
        return item.inner if item else None

    def find_path(self, item_id: ir.Id) -> str | None:
        """Canonical `a::b::c` path; None for local, unexported items."""
        summary = self._crate.paths.get(item_id)
        if summary is None:
            return None
        return "::".join(summary.path)

    def modules(self) -> list[tuple[str, ir.Module]]:
        """All non-stripped modules that have a path, sorted by path."""
        out: list[tuple[str, ir.Module]] = []
        for item_id, item in self._crate.index.items():
            if not isinstance(item.inner, ir.Module) or item.inner.is_stripped:
                continue
            path = self.find_path(item_id)
            if path is None:
                continue
            out.append((path, item.inner))
        out.sort(key=lambda pair: pair[0])
        return out
