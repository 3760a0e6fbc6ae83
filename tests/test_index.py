from doctools.surface import ir
from doctools.surface.index import IrIndex


def test_find_item_and_definition(graph):
    fn_id = graph.function("len")
    index = IrIndex(graph.build())
    assert index.find_item(fn_id).name == "len"
    assert isinstance(index.find_definition(fn_id), ir.Function)
    assert index.find_item("7:7") is None
    assert index.find_definition("7:7") is None


def test_find_path_joins_segments(graph):
    struct_id = graph.add(ir.Struct(), "Vec", path="demo::vec::Vec")
    local = graph.add(ir.Struct(), "Hidden")
    index = IrIndex(graph.build())
    assert index.find_path(struct_id) == "demo::vec::Vec"
    assert index.find_path(local) is None


def test_modules_sorted_and_filtered(graph):
    graph.module("demo::vec", [])
    graph.module("demo::alloc", [])
    graph.module("demo::hidden", [], stripped=True)
    # A module without a path entry is not walked.
    graph.add(ir.Module(), "anonymous")
    index = IrIndex(graph.build())
    assert [path for path, _ in index.modules()] == ["demo", "demo::alloc", "demo::vec"]


def test_crate_name_comes_from_root(graph):
    assert IrIndex(graph.build()).crate.name == "demo"
