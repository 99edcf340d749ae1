import pytest

from ofitune.regions import (
    RegionContext,
    build_regions,
    create_region_context,
    is_region_supported,
)
from ofitune.tuner_common import (
    ALGO_PROTO_IGNORE,
    NUM_ALGORITHMS,
    NUM_PROTOCOLS,
    Algorithm,
    CollFunc,
    Protocol,
    TunerError,
    TunerPlatform,
    new_cost_table,
)

MIB = 1048576


def test_supported_platforms():
    assert is_region_supported(TunerPlatform.P5_P5E, 128, 16)
    assert is_region_supported(TunerPlatform.P5EN, 128, 16)
    assert not is_region_supported(TunerPlatform.UNKNOWN, 128, 16)


def test_build_regions_unknown_platform_raises():
    with pytest.raises(TunerError):
        build_regions(TunerPlatform.UNKNOWN, 128, 16)


def test_create_context_keeps_dimensions():
    ctx = create_region_context(TunerPlatform.P5_P5E, 128, 16)
    assert (ctx.num_ranks, ctx.num_nodes) == (128, 16)
    assert CollFunc.ALL_REDUCE in ctx.regions


def test_v2_picks_tree_ll128_for_small_all_reduce():
    ctx = create_region_context(TunerPlatform.P5_P5E, 128, 16)
    assert ctx.get_coll_info_v2(CollFunc.ALL_REDUCE, MIB, False, True, 1) == (
        Algorithm.TREE,
        Protocol.LL128,
    )


def test_v2_two_nodes_falls_back():
    ctx = create_region_context(TunerPlatform.P5_P5E, 16, 2)
    assert ctx.get_coll_info_v2(CollFunc.ALL_REDUCE, MIB, False, True, 1) is None


def test_v2_collective_without_regions_falls_back():
    ctx = create_region_context(TunerPlatform.P5_P5E, 128, 16)
    assert ctx.get_coll_info_v2(CollFunc.ALL_GATHER, MIB, False, True, 1) is None


def test_v3_marks_chosen_entry():
    ctx = create_region_context(TunerPlatform.P5_P5E, 128, 16)
    table = new_cost_table(NUM_ALGORITHMS, NUM_PROTOCOLS)
    chosen = ctx.get_coll_info_v3(CollFunc.ALL_REDUCE, MIB, 1, table)
    assert chosen == (Algorithm.TREE, Protocol.LL128)
    assert table[Algorithm.TREE][Protocol.LL128] == 0.0
    assert sum(row.count(0.0) for row in table) == 1


def test_v3_skips_ignored_entries():
    ctx = create_region_context(TunerPlatform.P5_P5E, 128, 16)
    table = new_cost_table(NUM_ALGORITHMS, NUM_PROTOCOLS)
    table[Algorithm.TREE][Protocol.LL128] = ALGO_PROTO_IGNORE
    before = [row[:] for row in table]
    assert ctx.get_coll_info_v3(CollFunc.ALL_REDUCE, MIB, 1, table) is None
    assert table == before


def test_pat_used_by_v3_but_not_v2():
    ctx = create_region_context(TunerPlatform.P5EN, 8, 8)
    n_bytes = 32768
    assert ctx.get_coll_info_v2(CollFunc.ALL_GATHER, n_bytes, False, True, 1) is None
    table = new_cost_table(NUM_ALGORITHMS, NUM_PROTOCOLS)
    assert ctx.get_coll_info_v3(CollFunc.ALL_GATHER, n_bytes, 1, table) == (
        Algorithm.PAT,
        Protocol.SIMPLE,
    )
    assert table[Algorithm.PAT][Protocol.SIMPLE] == 0.0


def test_v3_small_table_skips_missing_algorithms():
    ctx = create_region_context(TunerPlatform.P5EN, 8, 8)
    table = new_cost_table(int(Algorithm.PAT), NUM_PROTOCOLS)
    assert ctx.get_coll_info_v3(CollFunc.ALL_GATHER, 32768, 1, table) is None


def test_empty_context_falls_back():
    ctx = RegionContext(TunerPlatform.P5_P5E, 48, 16)
    assert ctx.get_coll_info_v2(CollFunc.ALL_REDUCE, MIB, False, True, 1) is None