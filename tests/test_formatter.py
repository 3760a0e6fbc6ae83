import pytest

from doctools.surface import ir
from doctools.surface.formatter import SignatureFormatter as F


def bound(name, modifier=ir.TraitBoundModifier.NONE, args=None):
    return ir.TraitBound(trait=ir.Path(name, args=args), modifier=modifier)


def tparam(name, *bounds, default=None, synthetic=False):
    return ir.GenericParamDef(
        name, ir.TypeParam(bounds=tuple(bounds), default=default, synthetic=synthetic)
    )


def path_type(name, *type_args):
    args = None
    if type_args:
        args = ir.AngleBracketed(args=tuple(ir.TypeArg(t) for t in type_args))
    return ir.ResolvedPath(ir.Path(name, args=args))


I32 = ir.Primitive("i32")
U8 = ir.Primitive("u8")
T = ir.GenericType("T")


# --- Declarations ---


def test_trait_with_bounded_params_and_where_clause():
    trait = ir.Trait(
        generics=ir.Generics(
            params=(tparam("A", bound("Display")), tparam("B")),
            where_predicates=(
                ir.BoundPredicate(ir.GenericType("A"), (bound("Clone"),)),
            ),
        )
    )
    assert F.format_trait("Name", trait) == "trait Name<A: Display, B> where A: Clone { }"


def test_const_function_without_body():
    fn = ir.Function(
        decl=ir.FnDecl(inputs=(("x", I32),), output=I32),
        header=ir.FnHeader(is_const=True),
        has_body=False,
    )
    assert F.format_function("name", fn) == "const fn name(x: i32) -> i32;"


def test_trait_impl_for_type():
    impl = ir.Impl(for_=path_type("Point"), trait=ir.Path("Eq"))
    assert F.format_impl(impl) == "impl Eq for Point { }"


def test_inherent_impl_has_no_for_clause():
    impl = ir.Impl(
        for_=path_type("Vec", T),
        generics=ir.Generics(params=(tparam("T"),)),
    )
    assert F.format_impl(impl) == "impl<T> Vec<T> { }"


def test_negative_impl_with_maybe_sized_param():
    impl = ir.Impl(
        for_=path_type("Rc", T),
        trait=ir.Path("Send"),
        negative=True,
        generics=ir.Generics(
            params=(tparam("T", bound("Sized", ir.TraitBoundModifier.MAYBE)),)
        ),
    )
    assert F.format_impl(impl) == "impl<T: ?Sized> !Send for Rc<T> { }"


def test_unsafe_impl():
    impl = ir.Impl(for_=path_type("Token"), trait=ir.Path("Sync"), is_unsafe=True)
    assert F.format_impl(impl) == "unsafe impl Sync for Token { }"


def test_unsafe_auto_trait():
    trait = ir.Trait(is_auto=True, is_unsafe=True)
    assert F.format_trait("Send", trait) == "unsafe auto trait Send { }"


def test_trait_with_supertraits():
    trait = ir.Trait(bounds=(bound("Eq"), bound("PartialOrd")))
    assert F.format_trait("Ord", trait) == "trait Ord: Eq + PartialOrd { }"


def test_struct_with_where_clause():
    strukt = ir.Struct(
        generics=ir.Generics(
            params=(tparam("T"),),
            where_predicates=(ir.BoundPredicate(T, (bound("Copy"),)),),
        )
    )
    assert F.format_struct("Wrapper", strukt) == "struct Wrapper<T> where T: Copy { .. }"


def test_plain_enum():
    assert F.format_enum("Ordering", ir.Enum()) == "enum Ordering { .. }"


def test_async_unsafe_method_with_receiver():
    fn = ir.Function(
        decl=ir.FnDecl(
            inputs=(
                ("self", ir.BorrowedRef(None, True, ir.GenericType("Self"))),
                ("f", ir.GenericType("F")),
            )
        ),
        generics=ir.Generics(
            params=(tparam("F", bound("FnOnce", args=ir.Parenthesized())),)
        ),
        header=ir.FnHeader(is_async=True, is_unsafe=True),
    )
    assert (
        F.format_function("call", fn)
        == "async unsafe fn call<F: FnOnce()>(&mut self, f: F) { .. }"
    )


@pytest.mark.parametrize(
    "receiver, expected",
    [
        (ir.GenericType("Self"), "self"),
        (ir.BorrowedRef(None, False, ir.GenericType("Self")), "&self"),
        (ir.BorrowedRef("'a", False, ir.GenericType("Self")), "&'a self"),
        (path_type("Box", ir.GenericType("Self")), "self: Box<Self>"),
    ],
)
def test_receiver_rendering(receiver, expected):
    fn = ir.Function(decl=ir.FnDecl(inputs=(("self", receiver),)))
    assert F.format_function("m", fn) == f"fn m({expected}) {{ .. }}"


def test_variadic_extern_function():
    fn = ir.Function(
        decl=ir.FnDecl(
            inputs=(("fmt", ir.RawPointer(False, ir.Primitive("c_char"))),),
            output=I32,
            c_variadic=True,
        ),
        header=ir.FnHeader(is_unsafe=True, abi="C"),
        has_body=False,
    )
    assert (
        F.format_function("printf", fn)
        == 'unsafe extern "C" fn printf(fmt: *const c_char, ...) -> i32;'
    )


def test_unit_return_is_omitted():
    fn = ir.Function(decl=ir.FnDecl(output=ir.TupleType(())))
    assert F.format_function("noop", fn) == "fn noop() { .. }"


def test_declaration_dispatch():
    assert F.format_declaration("E", ir.Enum()) == "enum E { .. }"
    assert F.format_declaration("f", ir.Function()) == "fn f() { .. }"
    rendered = F.format_declaration("alias", ir.Import(source="a", name="alias"))
    assert rendered.startswith("<unformattable declaration:")


# --- Generics, bounds, where ---


def test_empty_generics_render_nothing():
    assert F.format_generic_params(()) == ""
    assert F.format_bounds(()) == ""
    assert F.format_where_predicates(()) == ""


def test_lifetime_and_synthetic_params_are_not_rendered():
    params = (
        ir.GenericParamDef("'a", ir.LifetimeParam()),
        tparam("impl Display", bound("Display"), synthetic=True),
    )
    assert F.format_generic_params(params) == ""
    # Still counts as generic.
    assert ir.Generics(params=params).in_use


def test_const_and_defaulted_params():
    params = (
        tparam("A", default=path_type("Global")),
        ir.GenericParamDef("N", ir.ConstParam(ir.Primitive("usize"), default="3")),
    )
    assert F.format_generic_params(params) == "<A = Global, const N: usize = 3>"


def test_bound_modifiers_and_dropped_outlives():
    bounds = (
        bound("Sized", ir.TraitBoundModifier.MAYBE),
        bound("Clone", ir.TraitBoundModifier.MAYBE_CONST),
        ir.Outlives("'a"),
    )
    assert F.format_bounds(bounds) == ": ?Sized + ~const Clone"


def test_only_outlives_bounds_render_nothing():
    assert F.format_bounds((ir.Outlives("'static"),)) == ""


def test_region_predicate_is_a_placeholder():
    preds = (ir.RegionPredicate("'a", (ir.Outlives("'b"),)),)
    assert F.format_where_predicates(preds) == " where <unsupported region predicate: 'a>"


def test_equality_predicate_with_qualified_path():
    lhs = ir.QualifiedPath("Item", ir.GenericType("I"), trait=ir.Path("Iterator"))
    preds = (ir.EqPredicate(lhs, U8),)
    assert F.format_where_predicates(preds) == " where <I as Iterator>::Item = u8"


def test_equality_predicate_with_constant_term():
    preds = (ir.EqPredicate(ir.GenericType("N"), ir.Constant("4")),)
    assert F.format_where_predicates(preds) == " where N = 4"


def test_higher_ranked_bound_predicate():
    fn_bound = bound(
        "Fn", args=ir.Parenthesized(inputs=(ir.BorrowedRef("'a", False, ir.Primitive("str")),))
    )
    pred = ir.BoundPredicate(
        ir.GenericType("F"),
        (fn_bound,),
        generic_params=(ir.GenericParamDef("'a", ir.LifetimeParam()),),
    )
    assert F.format_where_predicates((pred,)) == " where for<'a> F: Fn(&'a str)"


def test_multiple_where_predicates_are_comma_joined():
    preds = (
        ir.BoundPredicate(T, (bound("Clone"),)),
        ir.BoundPredicate(ir.GenericType("U"), (bound("Debug"), bound("Send"))),
    )
    assert F.format_where_predicates(preds) == " where T: Clone, U: Debug + Send"


# --- Types ---


@pytest.mark.parametrize(
    "ty, expected",
    [
        (T, "T"),
        (I32, "i32"),
        (ir.TupleType((I32, U8)), "(i32, u8)"),
        (ir.TupleType(()), "()"),
        (ir.TupleType((I32,)), "(i32,)"),
        (ir.Slice(U8), "[u8]"),
        (ir.ArrayType(U8, "4"), "[u8; 4]"),
        (ir.RawPointer(True, T), "*mut T"),
        (ir.RawPointer(False, T), "*const T"),
        (ir.BorrowedRef("'a", True, ir.Primitive("str")), "&'a mut str"),
        (ir.BorrowedRef(None, False, ir.Primitive("str")), "&str"),
        (ir.BorrowedRef(None, True, T), "&mut T"),
        (path_type("Vec", T), "Vec<T>"),
        (path_type("HashMap", ir.GenericType("K"), ir.GenericType("V")), "HashMap<K, V>"),
        (ir.Infer(), "_"),
    ],
)
def test_format_type_variants(ty, expected):
    assert F.format_type(ty) == expected


def test_dyn_trait_with_lifetime():
    ty = ir.DynTrait(
        traits=(ir.PolyTrait(ir.Path("Error")), ir.PolyTrait(ir.Path("Send"))),
        lifetime="'static",
    )
    assert F.format_type(ty) == "dyn Error + Send + 'static"


def test_impl_trait_with_associated_constraint():
    iterator = bound(
        "Iterator",
        args=ir.AngleBracketed(constraints=(ir.AssocConstraint("Item", equality=U8),)),
    )
    assert F.format_type(ir.ImplTrait((iterator,))) == "impl Iterator<Item = u8>"


def test_associated_bound_constraint():
    args = ir.AngleBracketed(
        constraints=(ir.AssocConstraint("Item", bounds=(bound("Clone"),)),)
    )
    assert F.format_generic_args(args) == "<Item: Clone>"


def test_generic_args_with_lifetime_const_and_infer():
    args = ir.AngleBracketed(
        args=(ir.LifetimeArg("'a"), ir.TypeArg(T), ir.ConstArg("8"), ir.InferArg())
    )
    assert F.format_generic_args(args) == "<'a, T, 8, _>"


def test_parenthesized_args():
    ty = ir.ResolvedPath(ir.Path("Fn", args=ir.Parenthesized((I32,), ir.Primitive("bool"))))
    assert F.format_type(ty) == "Fn(i32) -> bool"


def test_qualified_path_without_trait():
    ty = ir.QualifiedPath("Output", ir.GenericType("Self"))
    assert F.format_type(ty) == "Self::Output"


def test_function_pointer():
    ty = ir.FunctionPointer(
        decl=ir.FnDecl(inputs=(("_", I32),), output=I32),
        header=ir.FnHeader(is_unsafe=True, abi="C"),
    )
    assert F.format_type(ty) == 'unsafe extern "C" fn(i32) -> i32'


def test_nested_types():
    ty = ir.BorrowedRef(None, False, ir.Slice(ir.TupleType((path_type("Option", T), U8))))
    assert F.format_type(ty) == "&[(Option<T>, u8)]"


def test_unknown_type_renders_placeholder():
    rendered = F.format_type(ir.UnknownType("pat", '{"pat": {}}'))
    assert rendered.startswith("<unformattable type: pat")


def test_foreign_object_renders_placeholder():
    rendered = F.format_type(object())
    assert rendered.startswith("<unformattable type:")


def test_bound_predicate_with_only_outlives_is_skipped():
    preds = (
        ir.BoundPredicate(T, (ir.Outlives("'a"),)),
        ir.BoundPredicate(ir.GenericType("U"), (bound("Send"),)),
    )
    assert F.format_where_predicates(preds) == " where U: Send"
    assert F.format_where_predicates(preds[:1]) == ""
