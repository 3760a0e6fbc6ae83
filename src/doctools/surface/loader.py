"""
loader.py

Builds an `ir.Crate` from rustdoc's JSON output.

rustdoc has changed its JSON layout many times. Variants are read in either
the externally tagged form (`{"resolved_path": {...}}`) or the older
`{"kind": ..., "inner": ...}` form, and renamed fields are looked up under
both spellings. Unknown item kinds become `ir.Opaque`; unknown type shapes
become `ir.UnknownType`. Only a document without an index or paths table is
rejected.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from . import ir

logger = logging.getLogger(__name__)


class MalformedIrError(ValueError):
    """The input is not a usable rustdoc JSON document."""


class RustdocLoader:
    @staticmethod
    def load_file(path: Path) -> ir.Crate:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise MalformedIrError(f"{path}: invalid JSON: {e}") from e
        return RustdocLoader.from_dict(data, source=str(path))

    @staticmethod
    def load_str(text: str) -> ir.Crate:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedIrError(f"invalid JSON: {e}") from e
        return RustdocLoader.from_dict(data)

    @staticmethod
    def from_dict(data: Any, source: str = "<document>") -> ir.Crate:
        if not isinstance(data, dict):
            raise MalformedIrError(f"{source}: top level must be an object")
        for key in ("index", "paths"):
            if not isinstance(data.get(key), dict):
                raise MalformedIrError(f"{source}: missing '{key}' table")

        try:
            index = {
                str(item_id): _item(str(item_id), raw)
                for item_id, raw in data["index"].items()
            }
            paths = {
                str(item_id): ir.ItemSummary(
                    path=tuple(raw.get("path") or ()),
                    kind=str(raw.get("kind", "")),
                    crate_id=int(raw.get("crate_id", 0)),
                )
                for item_id, raw in data["paths"].items()
            }
        except (AttributeError, TypeError, KeyError) as e:
            raise MalformedIrError(f"{source}: unexpected structure: {e}") from e

        return ir.Crate(
            root=str(data.get("root", "")),
            index=index,
            paths=paths,
            format_version=data.get("format_version"),
            crate_version=data.get("crate_version"),
        )


# --- Variant & field helpers ---


def _variant(node: Any) -> tuple[str, Any]:
    """Return (tag, payload) for any of rustdoc's enum encodings."""
    if isinstance(node, str):
        return node, None
    if isinstance(node, dict):
        if "kind" in node and "inner" in node and len(node) <= 3:
            return str(node["kind"]), node["inner"]
        if len(node) == 1:
            tag, payload = next(iter(node.items()))
            return tag, payload
    return "", node


def _get(d: dict[str, Any], *names: str, default: Any = None) -> Any:
    for name in names:
        if name in d:
            return d[name]
    return default


def _ids(values: Any) -> tuple[ir.Id, ...]:
    return tuple(str(v) for v in (values or ()))


# --- Items ---


def _item(item_id: str, raw: dict[str, Any]) -> ir.Item:
    tag, payload = _item_variant(raw)
    return ir.Item(
        id=item_id,
        name=raw.get("name"),
        inner=_definition(tag, payload or {}),
        attrs=tuple(_attr_text(a) for a in raw.get("attrs") or ()),
    )


def _item_variant(raw: dict[str, Any]) -> tuple[str, Any]:
    inner = raw.get("inner")
    # Old layout: kind on the item, payload in `inner`.
    if "kind" in raw and isinstance(raw["kind"], str):
        return raw["kind"], inner
    return _variant(inner)


def _attr_text(attr: Any) -> str:
    if isinstance(attr, str):
        return attr
    return json.dumps(attr, sort_keys=True)


def _definition(tag: str, d: Any) -> ir.Definition:  # noqa : ignore
    if not isinstance(d, dict):
        return ir.Opaque(kind=tag or "unknown")
    if tag == "module":
        return ir.Module(
            items=_ids(d.get("items")),
            is_crate=bool(d.get("is_crate", False)),
            is_stripped=bool(d.get("is_stripped", False)),
        )
    if tag == "trait":
        return ir.Trait(
            items=_ids(d.get("items")),
            generics=_generics(d.get("generics")),
            bounds=_bounds(d.get("bounds")),
            is_auto=bool(_get(d, "is_auto", default=False)),
            is_unsafe=bool(_get(d, "is_unsafe", default=False)),
        )
    if tag == "struct":
        return ir.Struct(generics=_generics(d.get("generics")), impls=_ids(d.get("impls")))
    if tag == "enum":
        return ir.Enum(
            generics=_generics(d.get("generics")),
            variants=_ids(d.get("variants")),
            impls=_ids(d.get("impls")),
        )
    if tag in ("function", "method"):
        return ir.Function(
            decl=_fn_decl(_get(d, "sig", "decl", default={})),
            generics=_generics(d.get("generics")),
            header=_fn_header(d.get("header")),
            has_body=bool(d.get("has_body", True)),
        )
    if tag == "impl":
        trait = d.get("trait")
        blanket = d.get("blanket_impl")
        return ir.Impl(
            for_=_type(d.get("for")),
            items=_ids(d.get("items")),
            generics=_generics(d.get("generics")),
            trait=_path(trait) if trait else None,
            is_unsafe=bool(d.get("is_unsafe", False)),
            negative=bool(_get(d, "is_negative", "negative", default=False)),
            synthetic=bool(_get(d, "is_synthetic", "synthetic", default=False)),
            blanket_impl=_type(blanket) if blanket else None,
        )
    if tag in ("import", "use"):
        target = d.get("id")
        return ir.Import(
            source=str(d.get("source", "")),
            name=str(d.get("name", "")),
            id=str(target) if target is not None else None,
            glob=bool(_get(d, "is_glob", "glob", default=False)),
        )
    return ir.Opaque(kind=tag or "unknown")


# --- Functions ---


def _fn_decl(d: Any) -> ir.FnDecl:
    d = d or {}
    inputs = tuple((str(name), _type(ty)) for name, ty in d.get("inputs") or ())
    output = d.get("output")
    return ir.FnDecl(
        inputs=inputs,
        output=_type(output) if output is not None else None,
        c_variadic=bool(_get(d, "is_c_variadic", "c_variadic", default=False)),
    )


def _fn_header(d: Any) -> ir.FnHeader:
    d = d or {}
    return ir.FnHeader(
        is_const=bool(_get(d, "is_const", "const_", default=False)),
        is_unsafe=bool(_get(d, "is_unsafe", "unsafe_", default=False)),
        is_async=bool(_get(d, "is_async", "async_", default=False)),
        abi=_abi(d.get("abi", "Rust")),
    )


def _abi(raw: Any) -> str:
    tag, _ = _variant(raw)
    return tag or "Rust"


# --- Generics ---


def _generics(d: Any) -> ir.Generics:
    d = d or {}
    return ir.Generics(
        params=tuple(_generic_param(p) for p in d.get("params") or ()),
        where_predicates=tuple(_where(p) for p in d.get("where_predicates") or ()),
    )


def _generic_param(d: dict[str, Any]) -> ir.GenericParamDef:
    tag, payload = _variant(d.get("kind"))
    payload = payload or {}
    kind: ir.GenericParamKind
    if tag == "type":
        default = payload.get("default")
        kind = ir.TypeParam(
            bounds=_bounds(payload.get("bounds")),
            default=_type(default) if default is not None else None,
            synthetic=bool(_get(payload, "is_synthetic", "synthetic", default=False)),
        )
    elif tag == "const":
        default = payload.get("default")
        kind = ir.ConstParam(
            type=_type(payload.get("type")),
            default=str(default) if default is not None else None,
        )
    else:
        kind = ir.LifetimeParam(outlives=tuple(payload.get("outlives") or ()))
    return ir.GenericParamDef(name=str(d.get("name", "")), kind=kind)


def _bounds(values: Any) -> tuple[ir.GenericBound, ...]:
    return tuple(_bound(b) for b in values or ())


def _bound(raw: Any) -> ir.GenericBound:
    tag, payload = _variant(raw)
    if tag == "trait_bound" and isinstance(payload, dict):
        modifier_tag, _ = _variant(payload.get("modifier", "none"))
        try:
            modifier = ir.TraitBoundModifier(modifier_tag)
        except ValueError:
            modifier = ir.TraitBoundModifier.NONE
        return ir.TraitBound(
            trait=_path(payload.get("trait")),
            modifier=modifier,
            generic_params=tuple(
                _generic_param(p) for p in payload.get("generic_params") or ()
            ),
        )
    if tag == "outlives":
        return ir.Outlives(lifetime=str(payload))
    # `use<..>` capture lists and future bound kinds carry no trait.
    return ir.Outlives(lifetime=f"<{tag or 'unknown'}>")


def _where(raw: Any) -> ir.WherePredicate:
    tag, d = _variant(raw)
    d = d or {}
    if tag == "bound_predicate":
        return ir.BoundPredicate(
            type=_type(d.get("type")),
            bounds=_bounds(d.get("bounds")),
            generic_params=tuple(_generic_param(p) for p in d.get("generic_params") or ()),
        )
    if tag == "eq_predicate":
        return ir.EqPredicate(lhs=_type(d.get("lhs")), rhs=_term(d.get("rhs")))
    return ir.RegionPredicate(
        lifetime=str(d.get("lifetime", "")), bounds=_bounds(d.get("bounds"))
    )


def _term(raw: Any) -> ir.Term:
    tag, payload = _variant(raw)
    if tag == "constant":
        return _constant(payload)
    if tag == "type":
        return _type(payload)
    return _type(raw)


def _constant(payload: Any) -> ir.Constant:
    if isinstance(payload, dict):
        return ir.Constant(expr=str(_get(payload, "expr", "value", default="_")))
    return ir.Constant(expr=str(payload))


# --- Paths & types ---


def _path(d: Any) -> ir.Path:
    d = d or {}
    item_id = d.get("id")
    args = d.get("args")
    return ir.Path(
        name=str(_get(d, "path", "name", default="")),
        id=str(item_id) if item_id is not None else None,
        args=_generic_args(args) if args else None,
    )


def _generic_args(raw: Any) -> ir.GenericArgs | None:
    tag, d = _variant(raw)
    d = d or {}
    if tag == "angle_bracketed":
        return ir.AngleBracketed(
            args=tuple(_generic_arg(a) for a in d.get("args") or ()),
            constraints=tuple(
                _constraint(c) for c in _get(d, "constraints", "bindings", default=()) or ()
            ),
        )
    if tag == "parenthesized":
        output = d.get("output")
        return ir.Parenthesized(
            inputs=tuple(_type(t) for t in d.get("inputs") or ()),
            output=_type(output) if output is not None else None,
        )
    return None


def _generic_arg(raw: Any) -> ir.GenericArg:
    tag, payload = _variant(raw)
    if tag == "lifetime":
        return ir.LifetimeArg(name=str(payload))
    if tag == "type":
        return ir.TypeArg(type=_type(payload))
    if tag == "const":
        return ir.ConstArg(expr=_constant(payload).expr)
    return ir.InferArg()


def _constraint(d: dict[str, Any]) -> ir.AssocConstraint:
    args = d.get("args")
    tag, payload = _variant(d.get("binding"))
    equality = None
    bounds: tuple[ir.GenericBound, ...] = ()
    if tag == "equality":
        equality = _term(payload)
    elif tag == "constraint":
        bounds = _bounds(payload)
    return ir.AssocConstraint(
        name=str(d.get("name", "")),
        args=_generic_args(args) if args else None,
        equality=equality,
        bounds=bounds,
    )


def _type(raw: Any) -> ir.Type:  # noqa : ignore
    tag, d = _variant(raw)
    if tag == "generic":
        return ir.GenericType(name=str(d))
    if tag == "primitive":
        return ir.Primitive(name=str(d))
    if tag == "resolved_path":
        return ir.ResolvedPath(path=_path(d))
    if tag == "tuple":
        return ir.TupleType(types=tuple(_type(t) for t in d or ()))
    if tag == "slice":
        return ir.Slice(type=_type(d))
    if tag == "array":
        return ir.ArrayType(type=_type(d.get("type")), len=str(d.get("len", "_")))
    if tag == "raw_pointer":
        return ir.RawPointer(
            mutable=bool(_get(d, "is_mutable", "mutable", default=False)),
            type=_type(d.get("type")),
        )
    if tag == "borrowed_ref":
        return ir.BorrowedRef(
            lifetime=d.get("lifetime"),
            mutable=bool(_get(d, "is_mutable", "mutable", default=False)),
            type=_type(d.get("type")),
        )
    if tag == "dyn_trait":
        return ir.DynTrait(
            traits=tuple(
                ir.PolyTrait(
                    trait=_path(t.get("trait")),
                    generic_params=tuple(
                        _generic_param(p) for p in t.get("generic_params") or ()
                    ),
                )
                for t in d.get("traits") or ()
            ),
            lifetime=d.get("lifetime"),
        )
    if tag == "impl_trait":
        return ir.ImplTrait(bounds=_bounds(d))
    if tag == "qualified_path":
        trait = d.get("trait")
        args = d.get("args")
        return ir.QualifiedPath(
            name=str(d.get("name", "")),
            self_type=_type(d.get("self_type")),
            trait=_path(trait) if trait else None,
            args=_generic_args(args) if args else None,
        )
    if tag == "function_pointer":
        return ir.FunctionPointer(
            decl=_fn_decl(_get(d, "sig", "decl", default={})),
            generic_params=tuple(_generic_param(p) for p in d.get("generic_params") or ()),
            header=_fn_header(d.get("header")),
        )
    if tag == "infer":
        return ir.Infer()

    logger.debug(f"Unrecognised type shape: {tag or raw!r}")
    return ir.UnknownType(kind=tag or "unknown", raw=json.dumps(raw, sort_keys=True))
