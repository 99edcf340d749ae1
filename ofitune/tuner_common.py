"""Shared definitions for the collective tuner: enums, constants and cost tables."""

from __future__ import annotations

import enum
import math

__all__ = [
    "Algorithm",
    "Protocol",
    "CollFunc",
    "TunerPlatform",
    "TunerType",
    "TunerError",
    "CostTable",
    "NUM_ALGORITHMS",
    "NUM_PROTOCOLS",
    "NUM_FUNCTIONS",
    "ALGO_PROTO_IGNORE",
    "TUNER_NAME",
    "NCCL_STEPS",
    "NCCL_SIZEOF_LL_FIFOLINE",
    "NCCL_WARP_SIZE",
    "NCCL_MAXCHANNELS",
    "NCCL_MAX_NTHREADS",
    "NCCL_SIMPLE_MAX_NTHREADS",
    "NCCL_LL_MAX_NTHREADS",
    "NCCL_LL_LINES_PER_THREAD",
    "NCCL_LL128_MAX_NTHREADS",
    "NCCL_LL128_ELEMS_PER_THREAD",
    "EXPECTED_DTYPE_SIZE",
    "NCCL_BUFFSIZE",
    "platform_from_product_name",
    "new_cost_table",
]

TUNER_NAME = "nccl_ofi_tuner"


class Algorithm(enum.IntEnum):
    """Collective algorithms, numbered as the collective library numbers them."""

    TREE = 0
    RING = 1
    COLLNET_DIRECT = 2
    COLLNET_CHAIN = 3
    NVLS = 4
    NVLS_TREE = 5
    PAT = 6


class Protocol(enum.IntEnum):
    """Wire protocols for collectives."""

    LL = 0
    LL128 = 1
    SIMPLE = 2


class CollFunc(enum.IntEnum):
    """Collective operation types."""

    BROADCAST = 0
    REDUCE = 1
    ALL_GATHER = 2
    REDUCE_SCATTER = 3
    ALL_REDUCE = 4
    SEND_RECV = 5
    SEND = 6
    RECV = 7


class TunerPlatform(enum.IntEnum):
    """Platforms the tuner knows how to tune for."""

    P5_P5E = 0
    P5EN = 1
    UNKNOWN = 2


class TunerType(enum.Enum):
    """Kind of tuner backing a tuner context."""

    REGION = "Region"
    MODEL = "Model"


class TunerError(Exception):
    """Raised when a tuner cannot be created or used."""


NUM_ALGORITHMS = len(Algorithm)
NUM_PROTOCOLS = len(Protocol)
NUM_FUNCTIONS = len(CollFunc)

# Cost-table entry marking a combination the library will not use.
ALGO_PROTO_IGNORE = -1.0

CostTable = list[list[float]]

# Library defaults used to adjust ring latency costs.
NCCL_STEPS = 8
NCCL_SIZEOF_LL_FIFOLINE = 16
NCCL_WARP_SIZE = 32
NCCL_MAXCHANNELS = 32
NCCL_MAX_NTHREADS = 640
NCCL_SIMPLE_MAX_NTHREADS = 512
NCCL_LL_MAX_NTHREADS = 512
NCCL_LL_LINES_PER_THREAD = 8
NCCL_LL128_MAX_NTHREADS = 640
NCCL_LL128_ELEMS_PER_THREAD = 120
EXPECTED_DTYPE_SIZE = 4
NCCL_BUFFSIZE = 1 << 22

_PRODUCT_PLATFORMS = {
    "p5.48xlarge": TunerPlatform.P5_P5E,
    "p5e.48xlarge": TunerPlatform.P5_P5E,
    "p5en.48xlarge": TunerPlatform.P5EN,
}


def platform_from_product_name(product_name: str) -> TunerPlatform:
    """Map an instance product name to a tuner platform."""
    return _PRODUCT_PLATFORMS.get(product_name, TunerPlatform.UNKNOWN)


def new_cost_table(num_algo: int, num_proto: int) -> CostTable:
    """Return a ``num_algo`` x ``num_proto`` table with every cost unset (infinite)."""
    if num_algo < 0 or num_proto < 0:
        raise ValueError("cost table dimensions must be non-negative")
    return [[math.inf] * num_proto for _ in range(num_algo)]