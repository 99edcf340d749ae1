"""Region-based tuner: picks the algorithm/protocol whose region holds the point."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, Optional

from .geometry import Point, Region, is_inside_region
from .region_tables_p5 import p5_p5e_regions
from .region_tables_p5en import p5en_regions
from .tuner_common import (
    ALGO_PROTO_IGNORE,
    Algorithm,
    CollFunc,
    CostTable,
    Protocol,
    TunerError,
    TunerPlatform,
)

__all__ = [
    "RegionContext",
    "is_region_supported",
    "build_regions",
    "create_region_context",
]

_log = logging.getLogger(__name__)


def is_region_supported(platform: TunerPlatform, n_ranks: int, n_nodes: int) -> bool:
    """Return True if region tables exist for ``platform``."""
    return platform in (TunerPlatform.P5_P5E, TunerPlatform.P5EN)


def build_regions(
    platform: TunerPlatform, n_ranks: int, n_nodes: int
) -> dict[CollFunc, tuple[Region, ...]]:
    """Return the region tables for ``platform``; raises TunerError if it has none."""
    if platform == TunerPlatform.P5_P5E:
        return p5_p5e_regions(n_ranks, n_nodes)
    if platform == TunerPlatform.P5EN:
        return p5en_regions(n_ranks, n_nodes)
    raise TunerError(f"Regions are not supported for platform {platform}.")


@dataclass
class RegionContext:
    """Region tuner state for one communicator."""

    platform: TunerPlatform
    num_ranks: int
    num_nodes: int
    regions: dict[CollFunc, tuple[Region, ...]] = field(default_factory=dict)

    def _lookup(self, coll_type: int) -> Optional[tuple[Point, tuple[Region, ...]]]:
        regions = self.regions.get(coll_type)
        if not regions:
            _log.info("Region context is not ready. Fall back to default tuner.")
            return None
        # Regions are not well defined for two nodes or fewer.
        if self.num_nodes <= 2:
            return None
        return Point(float(0), float(self.num_ranks)), regions

    def _first_match(
        self, point: Point, candidates: Iterator[Region]
    ) -> Optional[Region]:
        for region in candidates:
            if is_inside_region(point, region) >= 0:
                return region
        return None

    def get_coll_info_v2(
        self,
        coll_type: int,
        n_bytes: int,
        coll_net_support: bool,
        nvls_support: bool,
        num_pipe_ops: int,
    ) -> Optional[tuple[Algorithm, Protocol]]:
        """Return the algorithm/protocol of the first matching region, or None."""
        found = self._lookup(coll_type)
        if found is None:
            return None
        _, regions = found
        point = Point(float(n_bytes), float(self.num_ranks))
        candidates = (
            r for r in regions
            if r.algorithm != Algorithm.PAT
            and not (r.algorithm == Algorithm.NVLS_TREE and not nvls_support)
        )
        region = self._first_match(point, candidates)
        if region is None:
            _log.info("Falling back to default tuner for coll %d size %d.", coll_type, n_bytes)
            return None
        _log.info(
            "Region tuner choosing algo %d proto %d for coll %d size %d.",
            region.algorithm, region.protocol, coll_type, n_bytes,
        )
        return region.algorithm, region.protocol

    def get_coll_info_v3(
        self, coll_type: int, n_bytes: int, num_pipe_ops: int, cost_table: CostTable
    ) -> Optional[tuple[Algorithm, Protocol]]:
        """Set the cost of the first matching region's pair to 0 in ``cost_table``.

        Pairs outside the table or marked ignored are skipped. Returns the
        chosen pair, or None with the table left untouched.
        """
        found = self._lookup(coll_type)
        if found is None:
            return None
        _, regions = found
        point = Point(float(n_bytes), float(self.num_ranks))

        def usable(region: Region) -> bool:
            algo, proto = region.algorithm, region.protocol
            if algo >= len(cost_table) or proto >= len(cost_table[algo]):
                return False
            return cost_table[algo][proto] != ALGO_PROTO_IGNORE

        region = self._first_match(point, (r for r in regions if usable(r)))
        if region is None:
            _log.info("Falling back to default tuner for coll %d size %d.", coll_type, n_bytes)
            return None
        cost_table[region.algorithm][region.protocol] = 0.0
        _log.info(
            "Region tuner choosing algo %d proto %d for coll %d size %d.",
            region.algorithm, region.protocol, coll_type, n_bytes,
        )
        return region.algorithm, region.protocol


def create_region_context(platform: TunerPlatform, n_ranks: int, n_nodes: int) -> RegionContext:
    """Create a region tuner context; raises TunerError for unsupported platforms."""
    regions = build_regions(platform, n_ranks, n_nodes)
    _log.info(
        "Region tuner init (platform %d): comm with %d ranks and %d nodes.",
        platform, n_ranks, n_nodes,
    )
    return RegionContext(platform=platform, num_ranks=n_ranks, num_nodes=n_nodes, regions=regions)