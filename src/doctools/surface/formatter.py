from __future__ import annotations

import logging

from . import ir

logger = logging.getLogger(__name__)

_RECEIVER_TYPES = {
    "Self": "self",
    "&Self": "&self",
    "&mut Self": "&mut self",
}


class SignatureFormatter:
    """
    Static utilities that render IR signatures back into declaration text.

    Every method is total: shapes that cannot be rendered produce a
    deterministic `<unformattable ...>` placeholder instead of raising.
    """

    # --- Declarations ---

    @staticmethod
    def format_declaration(name: str, definition: ir.Definition) -> str:
        if isinstance(definition, ir.Trait):
            return SignatureFormatter.format_trait(name, definition)
        if isinstance(definition, ir.Struct):
            return SignatureFormatter.format_struct(name, definition)
        if isinstance(definition, ir.Enum):
            return SignatureFormatter.format_enum(name, definition)
        if isinstance(definition, ir.Function):
            return SignatureFormatter.format_function(name, definition)
        if isinstance(definition, ir.Impl):
            return SignatureFormatter.format_impl(definition)
        return _placeholder("declaration", definition)

    @staticmethod
    def format_trait(name: str, trait: ir.Trait) -> str:
        is_unsafe = "unsafe " if trait.is_unsafe else ""
        is_auto = "auto " if trait.is_auto else ""
        params = SignatureFormatter.format_generic_params(trait.generics.params)
        bounds = SignatureFormatter.format_bounds(trait.bounds)
        where = SignatureFormatter.format_where_predicates(
            trait.generics.where_predicates
        )
        return f"{is_unsafe}{is_auto}trait {name}{params}{bounds}{where} {{ }}"

    @staticmethod
    def format_struct(name: str, strukt: ir.Struct) -> str:
        params = SignatureFormatter.format_generic_params(strukt.generics.params)
        where = SignatureFormatter.format_where_predicates(
            strukt.generics.where_predicates
        )
        return f"struct {name}{params}{where} {{ .. }}"

    @staticmethod
    def format_enum(name: str, enum_: ir.Enum) -> str:
        params = SignatureFormatter.format_generic_params(enum_.generics.params)
        where = SignatureFormatter.format_where_predicates(
            enum_.generics.where_predicates
        )
        return f"enum {name}{params}{where} {{ .. }}"

    @staticmethod
    def format_function(name: str, fn: ir.Function) -> str:
        header = fn.header
        is_const = "const " if header.is_const else ""
        is_async = "async " if header.is_async else ""
        is_unsafe = "unsafe " if header.is_unsafe else ""
        abi = SignatureFormatter._format_abi(header.abi)
        params = SignatureFormatter.format_generic_params(fn.generics.params)
        args = SignatureFormatter._format_inputs(fn.decl)
        output = SignatureFormatter._format_output(fn.decl.output)
        where = SignatureFormatter.format_where_predicates(
            fn.generics.where_predicates
        )
        body = " { .. }" if fn.has_body else ";"
        return (
            f"{is_const}{is_async}{is_unsafe}{abi}fn {name}{params}"
            f"({args}){output}{where}{body}"
        )

    @staticmethod
    def format_impl(impl: ir.Impl) -> str:
        is_unsafe = "unsafe " if impl.is_unsafe else ""
        params = SignatureFormatter.format_generic_params(impl.generics.params)
        trait = ""
        if impl.trait is not None:
            negative = "!" if impl.negative else ""
            trait = f"{negative}{SignatureFormatter.format_path(impl.trait)} for "
        for_ = SignatureFormatter.format_type(impl.for_)
        where = SignatureFormatter.format_where_predicates(
            impl.generics.where_predicates
        )
        return f"{is_unsafe}impl{params} {trait}{for_}{where} {{ }}"

    # --- Generics ---

    @staticmethod
    def format_generic_params(params: tuple[ir.GenericParamDef, ...]) -> str:
        """`<T: Bound = Default, const N: usize>`, or "" when nothing renders."""
        out: list[str] = []
        for param in params:
            kind = param.kind
            if isinstance(kind, ir.LifetimeParam):
                continue
            if isinstance(kind, ir.TypeParam):
                # `impl Trait` in argument position; shown inline in the args.
                if kind.synthetic:
                    continue
                bounds = SignatureFormatter.format_bounds(kind.bounds)
                default = ""
                if kind.default is not None:
                    default = f" = {SignatureFormatter.format_type(kind.default)}"
                out.append(f"{param.name}{bounds}{default}")
            elif isinstance(kind, ir.ConstParam):
                ty = SignatureFormatter.format_type(kind.type)
                default = f" = {kind.default}" if kind.default is not None else ""
                out.append(f"const {param.name}: {ty}{default}")
            else:
                out.append(_placeholder("generic param", param))
        if not out:
            return ""
        return f"<{', '.join(out)}>"

    @staticmethod
    def format_bounds(bounds: tuple[ir.GenericBound, ...]) -> str:
        """`: A + ?Sized`, or "" when no trait bound remains."""
        rendered = SignatureFormatter._bound_list(bounds)
        if not rendered:
            return ""
        return f": {' + '.join(rendered)}"

    @staticmethod
    def format_where_predicates(predicates: tuple[ir.WherePredicate, ...]) -> str:
        """` where T: Clone, I::Item = u8`, or "" for no predicates."""
        out: list[str] = []
        for pred in predicates:
            if isinstance(pred, ir.BoundPredicate):
                bounds = SignatureFormatter.format_bounds(pred.bounds)
                # Only outlives bounds: nothing left to render after `T`.
                if not bounds:
                    continue
                hrtb = SignatureFormatter._format_hrtb(pred.generic_params)
                ty = SignatureFormatter.format_type(pred.type)
                out.append(f"{hrtb}{ty}{bounds}")
            elif isinstance(pred, ir.EqPredicate):
                lhs = SignatureFormatter.format_type(pred.lhs)
                rhs = SignatureFormatter.format_term(pred.rhs)
                out.append(f"{lhs} = {rhs}")
            elif isinstance(pred, ir.RegionPredicate):
                out.append(f"<unsupported region predicate: {pred.lifetime}>")
            else:
                out.append(_placeholder("where predicate", pred))
        if not out:
            return ""
        return f" where {', '.join(out)}"

    # --- Types ---

    @staticmethod
    def format_type(ty: ir.Type) -> str:  # noqa : ignore
        if isinstance(ty, ir.GenericType):
            return ty.name
        if isinstance(ty, ir.Primitive):
            return ty.name
        if isinstance(ty, ir.ResolvedPath):
            return SignatureFormatter.format_path(ty.path)
        if isinstance(ty, ir.TupleType):
            parts = [SignatureFormatter.format_type(t) for t in ty.types]
            if len(parts) == 1:
                return f"({parts[0]},)"
            return f"({', '.join(parts)})"
        if isinstance(ty, ir.Slice):
            return f"[{SignatureFormatter.format_type(ty.type)}]"
        if isinstance(ty, ir.ArrayType):
            return f"[{SignatureFormatter.format_type(ty.type)}; {ty.len}]"
        if isinstance(ty, ir.RawPointer):
            mutability = "mut" if ty.mutable else "const"
            return f"*{mutability} {SignatureFormatter.format_type(ty.type)}"
        if isinstance(ty, ir.BorrowedRef):
            lifetime = f"{ty.lifetime} " if ty.lifetime else ""
            mutable = "mut " if ty.mutable else ""
            return f"&{lifetime}{mutable}{SignatureFormatter.format_type(ty.type)}"
        if isinstance(ty, ir.DynTrait):
            traits = [SignatureFormatter._format_poly_trait(t) for t in ty.traits]
            if ty.lifetime:
                traits.append(ty.lifetime)
            return f"dyn {' + '.join(traits)}"
        if isinstance(ty, ir.ImplTrait):
            return f"impl {' + '.join(SignatureFormatter._bound_list(ty.bounds))}"
        if isinstance(ty, ir.QualifiedPath):
            self_type = SignatureFormatter.format_type(ty.self_type)
            args = SignatureFormatter.format_generic_args(ty.args)
            if ty.trait is not None and ty.trait.name:
                trait = SignatureFormatter.format_path(ty.trait)
                return f"<{self_type} as {trait}>::{ty.name}{args}"
            return f"{self_type}::{ty.name}{args}"
        if isinstance(ty, ir.FunctionPointer):
            return SignatureFormatter._format_fn_pointer(ty)
        if isinstance(ty, ir.Infer):
            return "_"
        if isinstance(ty, ir.UnknownType):
            logger.debug(f"Unformattable type kind: {ty.kind}")
            return f"<unformattable type: {ty.kind} {ty.raw}>"
        return _placeholder("type", ty)

    @staticmethod
    def format_term(term: ir.Term) -> str:
        if isinstance(term, ir.Constant):
            return term.expr
        return SignatureFormatter.format_type(term)

    @staticmethod
    def format_path(path: ir.Path) -> str:
        return f"{path.name}{SignatureFormatter.format_generic_args(path.args)}"

    @staticmethod
    def format_generic_args(args: ir.GenericArgs | None) -> str:
        if args is None:
            return ""
        if isinstance(args, ir.Parenthesized):
            inputs = ", ".join(SignatureFormatter.format_type(t) for t in args.inputs)
            output = SignatureFormatter._format_output(args.output)
            return f"({inputs}){output}"
        if isinstance(args, ir.AngleBracketed):
            parts = [SignatureFormatter._format_generic_arg(a) for a in args.args]
            for constraint in args.constraints:
                parts.append(SignatureFormatter._format_constraint(constraint))
            if not parts:
                return ""
            return f"<{', '.join(parts)}>"
        return _placeholder("generic args", args)

    # --- Private Helpers ---

    @staticmethod
    def _bound_list(bounds: tuple[ir.GenericBound, ...]) -> list[str]:
        out: list[str] = []
        for bound in bounds:
            if isinstance(bound, ir.TraitBound):
                modifier = {
                    ir.TraitBoundModifier.NONE: "",
                    ir.TraitBoundModifier.MAYBE: "?",
                    ir.TraitBoundModifier.MAYBE_CONST: "~const ",
                }[bound.modifier]
                hrtb = SignatureFormatter._format_hrtb(bound.generic_params)
                out.append(f"{hrtb}{modifier}{SignatureFormatter.format_path(bound.trait)}")
            elif isinstance(bound, ir.Outlives):
                continue
            else:
                out.append(_placeholder("bound", bound))
        return out

    @staticmethod
    def _format_hrtb(params: tuple[ir.GenericParamDef, ...]) -> str:
        lifetimes = [p.name for p in params if isinstance(p.kind, ir.LifetimeParam)]
        if not lifetimes:
            return ""
        return f"for<{', '.join(lifetimes)}> "

    @staticmethod
    def _format_poly_trait(poly: ir.PolyTrait) -> str:
        hrtb = SignatureFormatter._format_hrtb(poly.generic_params)
        return f"{hrtb}{SignatureFormatter.format_path(poly.trait)}"

    @staticmethod
    def _format_generic_arg(arg: ir.GenericArg) -> str:
        if isinstance(arg, ir.LifetimeArg):
            return arg.name
        if isinstance(arg, ir.TypeArg):
            return SignatureFormatter.format_type(arg.type)
        if isinstance(arg, ir.ConstArg):
            return arg.expr
        if isinstance(arg, ir.InferArg):
            return "_"
        return _placeholder("generic arg", arg)

    @staticmethod
    def _format_constraint(constraint: ir.AssocConstraint) -> str:
        name = f"{constraint.name}{SignatureFormatter.format_generic_args(constraint.args)}"
        if constraint.equality is not None:
            return f"{name} = {SignatureFormatter.format_term(constraint.equality)}"
        return f"{name}{SignatureFormatter.format_bounds(constraint.bounds)}"

    @staticmethod
    def _format_inputs(decl: ir.FnDecl) -> str:
        args: list[str] = []
        for name, ty in decl.inputs:
            rendered = SignatureFormatter.format_type(ty)
            if name == "self":
                args.append(SignatureFormatter._format_receiver(ty, rendered))
            else:
                args.append(f"{name}: {rendered}")
        if decl.c_variadic:
            args.append("...")
        return ", ".join(args)

    @staticmethod
    def _format_receiver(ty: ir.Type, rendered: str) -> str:
        if rendered in _RECEIVER_TYPES:
            return _RECEIVER_TYPES[rendered]
        if (
            isinstance(ty, ir.BorrowedRef)
            and isinstance(ty.type, ir.GenericType)
            and ty.type.name == "Self"
        ):
            return rendered[: -len("Self")] + "self"
        return f"self: {rendered}"

    @staticmethod
    def _format_output(output: ir.Type | None) -> str:
        if output is None:
            return ""
        if isinstance(output, ir.TupleType) and not output.types:
            return ""
        return f" -> {SignatureFormatter.format_type(output)}"

    @staticmethod
    def _format_abi(abi: str) -> str:
        if not abi or abi == "Rust":
            return ""
        return f'extern "{abi}" '

    @staticmethod
    def _format_fn_pointer(ptr: ir.FunctionPointer) -> str:
        hrtb = SignatureFormatter._format_hrtb(ptr.generic_params)
        is_unsafe = "unsafe " if ptr.header.is_unsafe else ""
        abi = SignatureFormatter._format_abi(ptr.header.abi)
        inputs = [SignatureFormatter.format_type(ty) for _, ty in ptr.decl.inputs]
        if ptr.decl.c_variadic:
            inputs.append("...")
        output = SignatureFormatter._format_output(ptr.decl.output)
        return f"{hrtb}{is_unsafe}{abi}fn({', '.join(inputs)}){output}"


def _placeholder(what: str, node: object) -> str:
    logger.debug(f"Unformattable {what}: {node!r}")
    return f"<unformattable {what}: {node!r}>"
