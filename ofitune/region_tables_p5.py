"""Region tables for the p5 and p5e platforms."""

from __future__ import annotations

from .geometry import TUNER_MAX_RANKS, TUNER_MAX_SIZE, Point, Region, extend_region
from .tuner_common import Algorithm, CollFunc, Protocol

__all__ = ["p5_p5e_regions"]

_CORNER = Point(TUNER_MAX_SIZE, TUNER_MAX_RANKS)


def _p(x: float, y: float) -> Point:
    return Point(float(x), float(y))


def _region(algorithm: Algorithm, protocol: Protocol, *vertices: Point) -> Region:
    return Region(algorithm, protocol, tuple(vertices))


def _ext(a: tuple[float, float], b: tuple[float, float]) -> Point:
    return extend_region(_p(*a), _p(*b), _CORNER)


def _eight_ranks_all_reduce() -> tuple[Region, ...]:
    ext_tree_ll128 = _ext((402653184, 2048), (402653184, 4096))
    ext_nvlstree_simple_1 = _ext((8053063680, 160), (9663676416, 192))
    ext_nvlstree_simple_2 = _ext((402653184, 2048), (402653184, 4096))
    ext_ring_simple = _ext((8053063680, 160), (9663676416, 192))
    return (
        _region(Algorithm.TREE, Protocol.LL128,
                _p(0, 16), _p(31457280, 16), _p(37748736, 32), _p(117440512, 64),
                _p(301989888, 128), _p(301989888, 256), _p(335544320, 512),
                _p(536870912, 1024), _p(402653184, 2048), _p(402653184, 4096),
                ext_tree_ll128, _p(0, ext_tree_ll128.y)),
        _region(Algorithm.NVLS_TREE, Protocol.SIMPLE,
                _p(31457281, 16), _p(TUNER_MAX_SIZE, 16), _p(31457281, 16)),
        _region(Algorithm.RING, Protocol.LL128,
                _p(31457280, 17), _p(1073741824, 17), _p(2147483648, 64),
                _p(2147483648, 128), _p(1342177280, 160), _p(2147483648, 256),
                _p(1074790400, 256), _p(444596224, 160), _p(301989888, 128),
                _p(117440512, 64), _p(37748736, 32)),
        _region(Algorithm.NVLS_TREE, Protocol.SIMPLE,
                _p(2147483648, 128), _p(6442450944, 128), _p(8053063680, 160),
                _p(9663676416, 192), ext_nvlstree_simple_1, ext_nvlstree_simple_2,
                _p(402653184, 4096), _p(402653184, 2048), _p(536870912, 1024),
                _p(335544320, 512), _p(301989888, 256), _p(310378496, 160),
                _p(444596224, 160), _p(1074790400, 256), _p(2684354560, 256),
                _p(2147483648, 224), _p(1342177280, 160)),
        _region(Algorithm.RING, Protocol.SIMPLE,
                _p(1073741824, 17), _p(ext_ring_simple.x, 17), ext_ring_simple,
                _p(9663676416, 192), _p(8053063680, 160), _p(2684354560, 64),
                _p(1610612736, 32)),
    )


def _two_ranks_all_reduce() -> tuple[Region, ...]:
    ext_tree_ll128 = _ext((88160256, 128), (178163712, 256))
    ext_tree_simple_1 = _ext((787480576, 128), (1073741824, 256))
    ext_tree_simple_2 = _ext((257114112, 128), (269484032, 256))
    ext_nvlstree_simple = _ext((787480576, 128), (1073741824, 256))
    return (
        _region(Algorithm.TREE, Protocol.LL128,
                _p(0, 4), _p(1314816, 4), _p(1051648, 8), _p(1051648, 12),
                _p(2367488, 16), _p(5525504, 32), _p(9473024, 64),
                _p(88160256, 128), _p(178163712, 256), ext_tree_ll128,
                _p(0, ext_tree_ll128.y)),
        _region(Algorithm.RING, Protocol.LL128,
                _p(1314816, 4), _p(19736576, 4), _p(41842688, 8), _p(296747008, 64),
                _p(257114112, 128), _p(269484032, 256), _p(178163712, 256),
                _p(88160256, 128), _p(9473024, 64), _p(5525504, 32),
                _p(2367488, 16), _p(1051648, 12), _p(1051648, 8), _p(1314816, 4)),
        _region(Algorithm.NVLS_TREE, Protocol.SIMPLE,
                _p(19736576, 4), _p(81844224, 4), _p(275775488, 8),
                _p(275775488, 48), _p(296747008, 64), _p(41842688, 8)),
        _region(Algorithm.TREE, Protocol.LL128,
                _p(81844224, 4), _p(269484032, 4), _p(81844224, 4)),
        _region(Algorithm.TREE, Protocol.SIMPLE,
                _p(269484032, 4), _p(TUNER_MAX_SIZE, 4), _p(269484032, 4)),
        _region(Algorithm.RING, Protocol.SIMPLE,
                _p(81844224, 5), _p(TUNER_MAX_SIZE, 5), _p(TUNER_MAX_SIZE, 32),
                _p(1073741824, 40), _p(1073741824, 128), _p(787480576, 128),
                _p(296747008, 64), _p(275775488, 48), _p(275775488, 8),
                _p(81844224, 5)),
        _region(Algorithm.TREE, Protocol.SIMPLE,
                _p(296747008, 64), _p(787480576, 128), _p(1073741824, 256),
                ext_tree_simple_1, ext_tree_simple_2, _p(269484032, 256),
                _p(257114112, 128)),
        _region(Algorithm.NVLS_TREE, Protocol.SIMPLE,
                ext_nvlstree_simple, _p(1073741824, 256), _p(787480576, 128),
                _p(1073741824, 128), _p(1073741824, 40), _p(TUNER_MAX_SIZE, 32)),
    )


def _one_rank_all_reduce() -> tuple[Region, ...]:
    ext_tree_ll128 = _ext((9999360, 64), (119477248, 128))
    ext_ring_ll128 = _ext((4736000, 2), (269484032, 128))
    return (
        _region(Algorithm.TREE, Protocol.LL128,
                _p(0, 16), _p(2367488, 16), _p(9999360, 64), _p(119477248, 128),
                ext_tree_ll128),
        _region(Algorithm.RING, Protocol.LL128,
                _p(0, 2), _p(4736000, 2), _p(269484032, 128), ext_ring_ll128,
                ext_tree_ll128, _p(119477248, 128), _p(9999360, 64),
                _p(2367488, 16), _p(0, 16)),
        _region(Algorithm.RING, Protocol.SIMPLE,
                _p(4736000, 2), _p(TUNER_MAX_SIZE, 2), ext_ring_ll128,
                _p(269484032, 128)),
    )


def _one_rank_all_gather() -> tuple[Region, ...]:
    ext_ring_simple = _ext((4194304, 2), (8589934592, 2048))
    return (
        _region(Algorithm.RING, Protocol.SIMPLE,
                _p(4194304, 2), _p(TUNER_MAX_SIZE, 2), ext_ring_simple,
                _p(8589934592, 2048)),
    )


def _one_rank_reduce_scatter() -> tuple[Region, ...]:
    ext_ring_simple = _ext((8388608, 2), (4294967296, 1024))
    return (
        _region(Algorithm.RING, Protocol.SIMPLE,
                _p(8388608, 2), _p(TUNER_MAX_SIZE, 2), ext_ring_simple,
                _p(4294967296, 1024)),
    )


def p5_p5e_regions(n_ranks: int, n_nodes: int) -> dict[CollFunc, tuple[Region, ...]]:
    """Return the p5/p5e regions for each collective, keyed by collective type.

    Region order matters: the first region containing a point wins. An empty
    mapping means the default selection applies for this communicator shape.
    """
    if n_ranks == 8 * n_nodes:
        return {CollFunc.ALL_REDUCE: _eight_ranks_all_reduce()}
    if n_ranks == 2 * n_nodes:
        return {CollFunc.ALL_REDUCE: _two_ranks_all_reduce()}
    if n_ranks == n_nodes:
        return {
            CollFunc.ALL_REDUCE: _one_rank_all_reduce(),
            CollFunc.ALL_GATHER: _one_rank_all_gather(),
            CollFunc.REDUCE_SCATTER: _one_rank_reduce_scatter(),
        }
    return {}