import pytest

from ofitune.geometry import TUNER_MAX_RANKS, Point, is_inside_region
from ofitune.region_tables_p5 import p5_p5e_regions
from ofitune.tuner_common import Algorithm, CollFunc, Protocol


def test_eight_ranks_per_node_has_only_all_reduce():
    tables = p5_p5e_regions(128, 16)
    assert list(tables) == [CollFunc.ALL_REDUCE]
    regions = tables[CollFunc.ALL_REDUCE]
    assert [(r.algorithm, r.protocol) for r in regions] == [
        (Algorithm.TREE, Protocol.LL128),
        (Algorithm.NVLS_TREE, Protocol.SIMPLE),
        (Algorithm.RING, Protocol.LL128),
        (Algorithm.NVLS_TREE, Protocol.SIMPLE),
        (Algorithm.RING, Protocol.SIMPLE),
    ]
    assert [r.num_vertices for r in regions] == [12, 3, 11, 17, 7]


def test_vertical_extension_reaches_rank_limit():
    tree = p5_p5e_regions(64, 8)[CollFunc.ALL_REDUCE][0]
    assert tree.vertices[10] == Point(402653184.0, TUNER_MAX_RANKS)
    assert tree.vertices[11] == Point(0.0, TUNER_MAX_RANKS)


def test_two_ranks_per_node_regions():
    regions = p5_p5e_regions(32, 16)[CollFunc.ALL_REDUCE]
    assert len(regions) == 8
    assert regions[0].algorithm == Algorithm.TREE
    assert regions[-1].algorithm == Algorithm.NVLS_TREE


def test_one_rank_per_node_covers_three_collectives():
    tables = p5_p5e_regions(16, 16)
    assert set(tables) == {CollFunc.ALL_REDUCE, CollFunc.ALL_GATHER, CollFunc.REDUCE_SCATTER}
    for coll in (CollFunc.ALL_GATHER, CollFunc.REDUCE_SCATTER):
        (region,) = tables[coll]
        assert (region.algorithm, region.protocol) == (Algorithm.RING, Protocol.SIMPLE)


def test_small_message_is_inside_tree_ll128():
    tree = p5_p5e_regions(128, 16)[CollFunc.ALL_REDUCE][0]
    assert is_inside_region(Point(1048576.0, 128.0), tree) == 1


def test_tables_are_rebuilt_equal():
    assert p5_p5e_regions(64, 8) == p5_p5e_regions(128, 16)