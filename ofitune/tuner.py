"""Tuner entry points: choose a region or model tuner and dispatch requests to it."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Optional, Union

from .model import ModelContext, create_model_context, is_model_supported
from .params import get_param
from .regions import RegionContext, create_region_context, is_region_supported
from .tuner_common import (
    Algorithm,
    CostTable,
    Protocol,
    TunerError,
    TunerPlatform,
    TunerType,
    platform_from_product_name,
)

__all__ = [
    "Tuner",
    "create_tuner",
    "init_v1",
    "get_coll_info_v1",
    "destroy_v1",
]

_log = logging.getLogger(__name__)

_ctx_lock = threading.Lock()

Choice = Optional[tuple[Algorithm, Protocol]]


@dataclass
class Tuner:
    """A tuner for one communicator, backed by a region or a model context."""

    type: TunerType
    platform: TunerPlatform
    n_ranks: int
    n_nodes: int
    context: Optional[Union[RegionContext, ModelContext]]

    @property
    def closed(self) -> bool:
        return self.context is None

    def get_coll_info(
        self, coll_type: int, n_bytes: int, num_pipe_ops: int, cost_table: CostTable
    ) -> Choice:
        """Mark the preferred pair in ``cost_table`` with cost 0; None keeps the default."""
        context = self.context
        if context is None:
            return None
        return context.get_coll_info_v3(coll_type, n_bytes, num_pipe_ops, cost_table)

    def get_coll_info_v2(
        self,
        coll_type: int,
        n_bytes: int,
        coll_net_support: bool,
        nvls_support: bool,
        num_pipe_ops: int,
    ) -> Choice:
        """Return the preferred algorithm/protocol, or None to keep the default."""
        context = self.context
        if context is None:
            return None
        return context.get_coll_info_v2(
            coll_type, n_bytes, coll_net_support, nvls_support, num_pipe_ops
        )

    def close(self) -> None:
        """Release the tuner context; further requests keep the default selection."""
        with _ctx_lock:
            self.context = None

    def __enter__(self) -> Tuner:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def create_tuner(
    n_ranks: int,
    n_nodes: int,
    product_name: Optional[str] = None,
    force_type: Optional[str] = None,
) -> Optional[Tuner]:
    """Create a tuner for the communicator, or None when the default selection applies.

    ``force_type`` is "Internal", "Region" or "Model"; when None it is read
    from the tuner type parameter. The region tuner is preferred unless the
    model tuner is supported and forced. Raises TunerError if the chosen
    tuner fails to initialise.
    """
    with _ctx_lock:
        if product_name is None:
            _log.warning("Tuner is not available because platform type is unavailable.")
            return None

        if force_type is None:
            force_type = get_param("tuner_force_type").value()
        if force_type == "Internal":
            _log.info("Tuner type is Internal, fall back to default tuner for platform: %s", product_name)
            return None
        force_model = force_type == "Model"

        platform = platform_from_product_name(product_name)
        region_support = is_region_supported(platform, n_ranks, n_nodes)
        model_support = is_model_supported(platform, n_ranks, n_nodes)
        if not region_support and not model_support:
            _log.info("Tuner is not available for platform: %s, fall back to default tuner", product_name)
            return None

        context: Union[RegionContext, ModelContext]
        if region_support and not (model_support and force_model):
            _log.info("Region based tuner is chosen for platform: %s", product_name)
            tuner_type = TunerType.REGION
            context = create_region_context(platform, n_ranks, n_nodes)
        else:
            _log.info("Model based tuner is chosen for platform: %s", product_name)
            tuner_type = TunerType.MODEL
            context = create_model_context(platform, n_ranks, n_nodes)

        _log.info("Tuner init: comm with %d ranks and %d nodes.", n_ranks, n_nodes)
        return Tuner(
            type=tuner_type,
            platform=platform,
            n_ranks=n_ranks,
            n_nodes=n_nodes,
            context=context,
        )


# The oldest interface has no way to carry a context, so one is kept here.
_v1_tuner: Optional[Tuner] = None


def destroy_v1() -> None:
    """Release the process-wide tuner, if any."""
    global _v1_tuner
    with _ctx_lock:
        tuner, _v1_tuner = _v1_tuner, None
    if tuner is not None:
        tuner.close()


def init_v1(
    n_ranks: int,
    n_nodes: int,
    product_name: Optional[str] = None,
    force_type: Optional[str] = None,
) -> Optional[Tuner]:
    """Initialise the process-wide tuner, replacing any existing one.

    Raises TunerError when NCCL_ALGO or NCCL_PROTO is set, since an explicit
    user choice cannot be combined with an external tuner.
    """
    global _v1_tuner
    if _v1_tuner is not None:
        destroy_v1()

    if os.environ.get("NCCL_ALGO") is not None or os.environ.get("NCCL_PROTO") is not None:
        raise TunerError(
            "The tuner can not be loaded when explicitly choosing an algorithm "
            "or protocol with NCCL_ALGO/NCCL_PROTO"
        )

    tuner = create_tuner(n_ranks, n_nodes, product_name, force_type)
    with _ctx_lock:
        _v1_tuner = tuner
    return tuner


def get_coll_info_v1(
    coll_type: int,
    n_bytes: int,
    coll_net_support: bool,
    nvls_support: bool,
    num_pipe_ops: int,
) -> Choice:
    """Query the process-wide tuner; None keeps the default selection."""
    tuner = _v1_tuner
    if tuner is None:
        return None
    return tuner.get_coll_info_v2(coll_type, n_bytes, coll_net_support, nvls_support, num_pipe_ops)