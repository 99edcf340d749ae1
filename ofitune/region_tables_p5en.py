"""Region tables for the p5en platform."""

from __future__ import annotations

from .geometry import TUNER_MAX_RANKS, TUNER_MAX_SIZE, Point, Region, extend_region
from .tuner_common import Algorithm, CollFunc, Protocol

__all__ = ["p5en_regions"]

_CORNER = Point(TUNER_MAX_SIZE, TUNER_MAX_RANKS)


def _p(x: float, y: float) -> Point:
    return Point(float(x), float(y))


def _region(algorithm: Algorithm, protocol: Protocol, *vertices: Point) -> Region:
    return Region(algorithm, protocol, tuple(vertices))


def _ext(a: tuple[float, float], b: tuple[float, float]) -> Point:
    return extend_region(_p(*a), _p(*b), _CORNER)


def _full_node_all_reduce() -> tuple[Region, ...]:
    ext_tree_ll = _ext((262144, 192), (262144, 1024))
    ext_tree_ll128 = _ext((150994944, 128), (251658240, 1024))
    ext_nvlstree_simple = _ext((6442450944, 256), (17179869184, 768))
    return (
        _region(Algorithm.TREE, Protocol.LL,
                _p(0, 16), _p(262144, 16), _p(262144, 1024), ext_tree_ll),
        _region(Algorithm.TREE, Protocol.LL128,
                ext_tree_ll, _p(262144, 1024), _p(262144, 16), _p(14680064, 16),
                _p(150994944, 128), _p(251658240, 1024), ext_tree_ll128),
        _region(Algorithm.RING, Protocol.LL128,
                _p(150994944, 128), _p(14680064, 16), _p(33554432, 16),
                _p(536870912, 32), _p(536870912, 128)),
        _region(Algorithm.NVLS_TREE, Protocol.SIMPLE,
                ext_tree_ll128, _p(251658240, 1024), _p(150994944, 128),
                _p(536870912, 128), _p(536870912, 32), _p(6442450944, 256),
                _p(17179869184, 768), ext_nvlstree_simple),
        _region(Algorithm.RING, Protocol.SIMPLE,
                ext_nvlstree_simple, _p(17179869184, 768), _p(6442450944, 256),
                _p(536870912, 32), _p(33554432, 16), _p(1073741824, 16),
                _p(TUNER_MAX_SIZE, 16)),
    )


def _full_node_gather_scatter() -> tuple[Region, ...]:
    ext_ring_ll = _ext((8388608, 256), (33554432, 1024))
    ext_ring_ll128 = _ext((8589934592, 512), (17179869184, 1024))
    return (
        _region(Algorithm.RING, Protocol.LL,
                _p(0, 16), _p(131072, 16), _p(262144, 32), _p(8388608, 256),
                _p(33554432, 1024), ext_ring_ll, _p(0, TUNER_MAX_RANKS)),
        _region(Algorithm.RING, Protocol.LL128,
                ext_ring_ll, _p(33554432, 1024), _p(8388608, 256), _p(262144, 32),
                _p(131072, 16), _p(268435456, 16), _p(2147483648, 128),
                _p(8589934592, 512), _p(17179869184, 1024), ext_ring_ll128),
        _region(Algorithm.RING, Protocol.SIMPLE,
                ext_ring_ll128, _p(17179869184, 1024), _p(8589934592, 512),
                _p(268435456, 16), _p(17179869184, 16), _p(TUNER_MAX_SIZE, 16)),
    )


def _one_rank_all_reduce() -> tuple[Region, ...]:
    ext_tree_ll128 = _ext((524288, 8), (1048576, 96))
    ext_tree_simple = _ext((8388608, 32), (33554432, 128))
    ext_ring_ll128 = _ext((50331648, 16), (301989888, 128))
    return (
        _region(Algorithm.TREE, Protocol.LL,
                _p(0, 2), _p(65536, 2), _p(65536, 64), _p(65536, TUNER_MAX_RANKS)),
        _region(Algorithm.TREE, Protocol.LL128,
                _p(65536, TUNER_MAX_RANKS), _p(65536, 64), _p(65536, 2),
                _p(262144, 2), _p(524288, 8), _p(1048576, 96), ext_tree_ll128),
        _region(Algorithm.TREE, Protocol.SIMPLE,
                ext_tree_ll128, _p(1048576, 768), _p(524288, 8), _p(262144, 2),
                _p(8388608, 32), _p(33554432, 128), ext_tree_simple),
        _region(Algorithm.RING, Protocol.LL128,
                ext_tree_simple, _p(33554432, 128), _p(8388608, 32), _p(262144, 2),
                _p(6291456, 2), _p(50331648, 16), _p(301989888, 128), ext_ring_ll128),
        _region(Algorithm.RING, Protocol.SIMPLE,
                ext_ring_ll128, _p(301989888, 128), _p(50331648, 16),
                _p(6291456, 2), _p(TUNER_MAX_SIZE, 2)),
    )


def _one_rank_gather_scatter() -> tuple[Region, ...]:
    ext_pat_simple = _ext((50331648, 64), (117440512, 128))
    ext_ring_ll128 = _ext((50331648, 16), (301989888, 128))
    return (
        _region(Algorithm.PAT, Protocol.SIMPLE,
                _p(0, 2), _p(65536, 2), _p(1048576, 2), _p(16777216, 32),
                _p(50331648, 64), _p(117440512, 128), ext_pat_simple,
                _p(TUNER_MAX_SIZE, TUNER_MAX_RANKS), _p(65536, TUNER_MAX_RANKS),
                _p(0, TUNER_MAX_RANKS)),
        _region(Algorithm.RING, Protocol.LL128,
                ext_pat_simple, _p(117440512, 128), _p(50331648, 64),
                _p(16777216, 32), _p(1048576, 2), _p(4194304, 2),
                _p(50331648, 16), _p(301989888, 128), ext_ring_ll128),
        _region(Algorithm.RING, Protocol.SIMPLE,
                ext_ring_ll128, _p(301989888, 128), _p(50331648, 16),
                _p(4194304, 2), _p(TUNER_MAX_SIZE, 2)),
    )


def p5en_regions(n_ranks: int, n_nodes: int) -> dict[CollFunc, tuple[Region, ...]]:
    """Return the p5en regions for each collective, keyed by collective type.

    Region order matters: the first region containing a point wins. An empty
    mapping means the default selection applies for this communicator shape.
    """
    if n_ranks == 8 * n_nodes:
        return {
            CollFunc.ALL_REDUCE: _full_node_all_reduce(),
            CollFunc.ALL_GATHER: _full_node_gather_scatter(),
            CollFunc.REDUCE_SCATTER: _full_node_gather_scatter(),
        }
    if n_ranks == n_nodes:
        return {
            CollFunc.ALL_REDUCE: _one_rank_all_reduce(),
            CollFunc.ALL_GATHER: _one_rank_gather_scatter(),
            CollFunc.REDUCE_SCATTER: _one_rank_gather_scatter(),
        }
    return {}