import logging

import pytest

from doctools.analyze.classifier import (
    ASYNC_EXCLUDES,
    CONST_EXCLUDES,
    ClassificationProfile,
    ClassificationResult,
    MatchMode,
    PathExcluder,
    classify_profile,
    classify_shards,
    count_async_items,
    count_const_items,
    count_items,
    partition,
    stable_only,
)
from doctools.surface.ir import Stability
from doctools.surface.models import ItemKind

from conftest import make_item


def is_const(item):
    return item.is_const


def test_excluded_prefix_leaves_both_counts(item_factory):
    items = [
        item_factory(path="std::fs::File", name="open", is_const=True),
        item_factory(path="std::vec::Vec", name="new", is_const=True),
    ]
    result = count_items(items, is_const, ["std::fs"])
    assert result.excluded == 1
    assert result.matched == 1
    assert result.potential == 1
    assert result.ratio == 1.0


def test_only_stable_items_are_counted(item_factory):
    items = [
        item_factory(is_const=True, stability=Stability.UNSTABLE),
        item_factory(name="with_capacity", is_const=True),
        item_factory(name="push"),
    ]
    assert len(stable_only(items)) == 2
    result = count_items(items, is_const)
    assert result.stable_total == 2
    assert result.matched == 1
    assert result.unmatched == 1
    assert result.ratio == 0.5


@pytest.mark.parametrize(
    "path, excluded",
    [
        ("std::os", True),
        ("std::os::unix", True),
        ("std::oscillator", False),
        ("my_std::os", False),
        ("", False),
    ],
)
def test_prefix_matching_respects_segments(path, excluded):
    assert PathExcluder(("std::os",)).matches(path) is excluded


def test_contains_mode_is_loose_and_warns(caplog):
    with caplog.at_level(logging.WARNING, logger="doctools.analyze.classifier"):
        excluder = PathExcluder(("std::os",), MatchMode.CONTAINS)
    assert "legacy" in caplog.text
    assert excluder.matches("my_std::oscillator")


def test_prefix_mode_does_not_warn(caplog):
    with caplog.at_level(logging.WARNING):
        PathExcluder(("std::os",))
    assert caplog.text == ""


def test_trait_path_excludes_impl_records(item_factory):
    impl = item_factory(
        kind=ItemKind.IMPL,
        path="std::vec",
        name="Hash",
        trait_path="core::hash::Hash",
        is_async=True,
    )
    other = item_factory(kind=ItemKind.IMPL, path="std::vec", name="Read", trait_path="std::io::Read")
    result = count_async_items([impl, other])
    assert result.excluded == 1
    assert result.matched == 0
    assert result.potential == 1


def test_item_name_is_not_part_of_the_excluded_path(item_factory):
    struct = item_factory(kind=ItemKind.STRUCT, path="a::b", name="Foo")
    result = count_items([struct], lambda i: True, ["a::b::Foo"])
    assert result == ClassificationResult(matched=1, excluded=0, stable_total=1)


def test_trait_prefix_excludes_members_and_impls_not_the_trait(item_factory):
    excluder = PathExcluder(("core::convert::AsRef",))
    trait = item_factory(kind=ItemKind.TRAIT, path="core::convert", name="AsRef")
    member = item_factory(path="core::convert::AsRef", name="as_ref")
    impl = item_factory(
        kind=ItemKind.IMPL, path="std::vec", name="AsRef", trait_path="core::convert::AsRef"
    )
    assert not excluder.excludes(trait)
    assert excluder.excludes(member)
    assert excluder.excludes(impl)


def test_partition_accounts_for_every_item(item_factory):
    items = [
        item_factory(path="std::fs", name="read"),
        item_factory(path="std::net::TcpStream", name="connect"),
        item_factory(path="std::vec::Vec", name="len"),
    ]
    kept, excluded = partition(items, PathExcluder(CONST_EXCLUDES))
    assert [i.name for i in kept] == ["len"]
    assert excluded == 2
    assert len(kept) + excluded == len(items)


def test_matched_excluded_and_rest_partition_the_stable_set(item_factory):
    items = [
        item_factory(path=f"std::m{n % 3}", name=f"f{n}", is_const=n % 2 == 0)
        for n in range(12)
    ]
    items.append(item_factory(path="std::m0", name="gone", stability=Stability.UNSTABLE))
    result = count_items(items, is_const, ["std::m1"])
    assert result.matched + result.unmatched + result.excluded == result.stable_total
    assert result.potential == result.stable_total - result.excluded


def test_default_excludes():
    assert "std::fs" in CONST_EXCLUDES
    assert "core::marker" in ASYNC_EXCLUDES
    assert "std::fs" not in ASYNC_EXCLUDES


def test_const_counter_uses_default_excludes(item_factory):
    items = [
        item_factory(path="std::process", name="exit", is_const=True),
        item_factory(path="core::mem", name="size_of", is_const=True),
    ]
    result = count_const_items(items)
    assert (result.matched, result.excluded) == (1, 1)


def test_ratio_without_potential_is_zero():
    assert ClassificationResult().ratio == 0.0
    assert ClassificationResult(excluded=2, stable_total=2).ratio == 0.0


def test_shard_reduction_matches_single_pass():
    items = [
        make_item(path=f"std::m{n % 4}", name=f"f{n}", is_const=n % 3 == 0)
        for n in range(20)
    ]
    whole = count_items(items, is_const, ["std::m2"])
    sharded = classify_shards(
        [items[:7], items[7:13], items[13:]], is_const, ["std::m2"]
    )
    assert sharded == whole


def test_results_sum_from_zero():
    parts = [ClassificationResult(1, 2, 5), ClassificationResult(3, 0, 4)]
    assert sum(parts) == ClassificationResult(matched=4, excluded=2, stable_total=9)


def test_profile_from_dict_and_classify(item_factory):
    profile = ClassificationProfile.from_dict(
        "async", {"flag": "is_async", "exclude": ["std::thread"]}
    )
    assert profile.exclude == ("std::thread",)
    items = [
        item_factory(path="std::thread", name="spawn", is_async=True),
        item_factory(path="std::io", name="read", is_async=True),
    ]
    result = classify_profile(items, profile)
    assert (result.matched, result.excluded) == (1, 1)


def test_profile_flag_defaults_from_name():
    assert ClassificationProfile.from_dict("const", {}).flag == "is_const"


def test_profile_rejects_unknown_flag():
    with pytest.raises(ValueError, match="unknown flag"):
        ClassificationProfile.from_dict("fast", {"flag": "is_fast"})
