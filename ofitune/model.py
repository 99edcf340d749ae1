"""Analytical cost-model tuner for collective algorithm and protocol selection."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from .params import get_param
from .tuner_common import (
    Algorithm,
    CollFunc,
    CostTable,
    Protocol,
    TunerError,
    TunerPlatform,
)

__all__ = [
    "ModelParams",
    "ModelDims",
    "ModelContext",
    "MODEL_PLATFORM_PARAMS",
    "compute_cost",
    "is_model_supported",
    "create_model_context",
]

_log = logging.getLogger(__name__)

_GIB = 1024 * 1024 * 1024


@dataclass(frozen=True)
class ModelParams:
    """Platform constants for the cost model."""

    net_lat: float
    internode_bw: float
    intranode_bw: float
    num_rails: int
    # Indexed by Algorithm, then Protocol.
    nccl_nvlink_lat: tuple[tuple[float, float, float], ...]


@dataclass(frozen=True)
class ModelDims:
    """Communicator size."""

    num_ranks: int
    num_nodes: int


_NVLINK_LAT = (
    (0.6, 1.25, 28.0),  # Tree
    (0.6, 1.9, 3.4),  # Ring
    (0.0, 0.0, 3.7),  # Collnet Direct (unused)
    (0.0, 0.0, 2.8),  # Collnet Chain (unused)
    (0.0, 0.0, 23.0),  # NVLS (Simple only)
    (0.0, 0.0, 23.0),  # NVLS Tree (Simple only)
    (0.0, 0.0, 0.0),  # PAT
)

MODEL_PLATFORM_PARAMS: dict[TunerPlatform, ModelParams] = {
    TunerPlatform.P5_P5E: ModelParams(
        net_lat=20.0,
        internode_bw=12.5 * 1024 * 1024 * 1024 * 1e-6,
        intranode_bw=20.0 * 1024 * 1024 * 1024 * 1e-6,
        num_rails=4,
        nccl_nvlink_lat=_NVLINK_LAT,
    ),
    TunerPlatform.P5EN: ModelParams(
        net_lat=18.0,
        internode_bw=25.0 * 1024 * 1024 * 1024 * 1e-6,
        intranode_bw=20.0 * 1024 * 1024 * 1024 * 1e-6,
        num_rails=2,
        nccl_nvlink_lat=_NVLINK_LAT,
    ),
}


def compute_cost(
    params: ModelParams,
    dims: ModelDims,
    func: int,
    algo: int,
    proto: int,
    pipe_ops: int,
    size: int,
) -> float:
    """Return the estimated cost in microseconds, or -1 if there is no model for the case."""
    num_channels = get_param("tuner_num_channels").value()
    if proto == Protocol.SIMPLE:
        net_lat = params.net_lat + get_param("tuner_net_comp_overhead").value()
    else:
        net_lat = params.net_lat
    p2p_lat = params.nccl_nvlink_lat[algo][proto]

    if func != CollFunc.ALL_REDUCE:
        _log.debug("Unsupported collective %d, fallback to default selection.", func)
        return -1.0

    if algo == Algorithm.RING:
        num_steps = 2 * (dims.num_ranks - 1)
        num_internode_steps = 2 * dims.num_nodes
        latency = num_internode_steps * net_lat + (num_steps - num_internode_steps) * p2p_lat
        bw = params.internode_bw * params.num_rails * num_channels
    elif algo == Algorithm.NVLS_TREE:
        latency = 2 * (p2p_lat + math.log2(dims.num_nodes) * net_lat)
        bw = min(params.intranode_bw, (params.internode_bw * params.num_rails) / 2) * num_channels
    elif algo == Algorithm.TREE:
        ranks_per_node = dims.num_ranks // dims.num_nodes
        latency = 2 * (ranks_per_node - 1) * p2p_lat + 2 * math.log2(dims.num_nodes) * net_lat
        bw = (params.internode_bw * params.num_rails * num_channels) / 2
    else:
        _log.debug("Algorithm %d for collective %d without a model.", algo, func)
        return -1.0

    if proto == Protocol.LL:
        # 8 bytes on the wire carry 4 bytes of data.
        bw *= 0.5
    elif proto == Protocol.LL128:
        # 120 bytes of data per 128-byte line.
        bw *= 0.9375

    return latency * pipe_ops + size / bw


def is_model_supported(platform: TunerPlatform, n_ranks: int, n_nodes: int) -> bool:
    """Return True if the cost model has parameters for ``platform``."""
    return platform in (TunerPlatform.P5_P5E, TunerPlatform.P5EN)


def _candidates(nvls_support: bool):
    for algo in Algorithm:
        if algo in (Algorithm.COLLNET_DIRECT, Algorithm.COLLNET_CHAIN, Algorithm.NVLS):
            continue
        if algo == Algorithm.NVLS_TREE and not nvls_support:
            continue
        for proto in Protocol:
            if algo == Algorithm.NVLS_TREE and proto != Protocol.SIMPLE:
                continue
            yield algo, proto


@dataclass
class ModelContext:
    """Cost-model tuner state for one communicator."""

    platform: TunerPlatform
    dims: ModelDims
    params: ModelParams

    def _quirk_applies(self, coll_type: int, n_bytes: int) -> bool:
        return (
            self.platform == TunerPlatform.P5_P5E
            and coll_type == CollFunc.ALL_REDUCE
            and self.dims.num_nodes == 16
            and self.dims.num_ranks == 128
            and 3 * _GIB < n_bytes <= 5 * _GIB
        )

    def _cheapest(
        self, coll_type: int, n_bytes: int, num_pipe_ops: int, nvls_support: bool
    ) -> tuple[Optional[tuple[Algorithm, Protocol]], float]:
        lowest = math.inf
        chosen: Optional[tuple[Algorithm, Protocol]] = None
        for algo, proto in _candidates(nvls_support):
            cost = compute_cost(self.params, self.dims, coll_type, algo, proto, num_pipe_ops, n_bytes)
            if cost < 0:
                continue
            _log.debug(
                "Model tuner computed cost for algo %d proto %d pipe %d: cost %.8f usecs.",
                algo, proto, num_pipe_ops, cost,
            )
            if cost < lowest:
                chosen = (algo, proto)
                lowest = cost
        return chosen, lowest

    def get_coll_info_v3(
        self, coll_type: int, n_bytes: int, num_pipe_ops: int, cost_table: CostTable
    ) -> Optional[tuple[Algorithm, Protocol]]:
        """Mark the cheapest algorithm/protocol in ``cost_table`` with cost 0.

        Returns the chosen pair, or None when the default selection should be
        kept and the table is left untouched.
        """
        if self.dims.num_nodes <= 2:
            return None

        if self._quirk_applies(coll_type, n_bytes):
            chosen: Optional[tuple[Algorithm, Protocol]] = (Algorithm.NVLS_TREE, Protocol.SIMPLE)
        else:
            chosen, _ = self._cheapest(coll_type, n_bytes, num_pipe_ops, nvls_support=True)

        if chosen is None:
            return None
        algo, proto = chosen
        if algo < len(cost_table) and proto < len(cost_table[algo]):
            cost_table[algo][proto] = 0.0
        _log.info(
            "Model tuner choosing algo %d proto %d for coll %d size %d.",
            algo, proto, coll_type, n_bytes,
        )
        return chosen

    def get_coll_info_v2(
        self,
        coll_type: int,
        n_bytes: int,
        coll_net_support: bool,
        nvls_support: bool,
        num_pipe_ops: int,
    ) -> Optional[tuple[Algorithm, Protocol]]:
        """Return the cheapest algorithm/protocol, or None to keep the default selection."""
        if self.dims.num_nodes <= 2:
            return None

        if nvls_support and self._quirk_applies(coll_type, n_bytes):
            chosen: Optional[tuple[Algorithm, Protocol]] = (Algorithm.NVLS_TREE, Protocol.SIMPLE)
            lowest = 0.0
        else:
            chosen, lowest = self._cheapest(coll_type, n_bytes, num_pipe_ops, bool(nvls_support))

        if chosen is not None:
            _log.info(
                "Model tuner choosing algo %d proto %d with cost %.8f usecs for coll %d size %d.",
                chosen[0], chosen[1], lowest, coll_type, n_bytes,
            )
        return chosen


def create_model_context(platform: TunerPlatform, n_ranks: int, n_nodes: int) -> ModelContext:
    """Create a cost-model context; raises TunerError for platforms without a model."""
    params = MODEL_PLATFORM_PARAMS.get(platform)
    if params is None:
        raise TunerError(f"Model is not supported for platform {platform}.")
    _log.info(
        "Model tuner init (platform %d): comm with %d ranks and %d nodes.",
        platform, n_ranks, n_nodes,
    )
    return ModelContext(platform=platform, dims=ModelDims(n_ranks, n_nodes), params=params)