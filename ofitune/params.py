"""Environment-driven configuration parameters.

Each parameter is read from an ``OFI_NCCL_<NAME>`` environment variable the
first time its value is requested and is cached from then on.
"""

from __future__ import annotations

import enum
import logging
import os
import re
import threading
from dataclasses import dataclass, field
from typing import Optional, Union

__all__ = ["ParamKind", "Param", "parse_integer", "get_param", "PARAMS", "ENV_PREFIX"]

_log = logging.getLogger(__name__)

ENV_PREFIX = "OFI_NCCL_"

_U64_MAX = (1 << 64) - 1
_I64_MIN = -(1 << 63)
_I64_MAX = (1 << 63) - 1

_INTEGER_RE = re.compile(
    r"[ \t\n\r\f\v]*([+-]?)(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)"
)

ParamValue = Union[int, str, None]


class ParamKind(enum.Enum):
    """Type of value a parameter holds."""

    UINT = "uint"
    INT = "int"
    STR = "str"


def parse_integer(text: str, signed: bool) -> int:
    """Parse ``text`` as a whole-string integer with automatic base detection.

    Accepts leading whitespace, an optional sign, and decimal, octal (leading
    ``0``) or hexadecimal (leading ``0x``) digits. Unsigned parsing wraps a
    negated magnitude modulo 2**64. Raises ValueError if the text is not fully
    consumed or the value is out of range.
    """
    match = _INTEGER_RE.fullmatch(text)
    if match is None:
        raise ValueError(f"not an integer: {text!r}")
    sign, digits = match.groups()
    if digits[:2] in ("0x", "0X"):
        magnitude = int(digits[2:], 16)
    elif len(digits) > 1 and digits.startswith("0"):
        magnitude = int(digits[1:], 8)
    else:
        magnitude = int(digits, 10)
    negative = sign == "-"

    if signed:
        value = -magnitude if negative else magnitude
        if not _I64_MIN <= value <= _I64_MAX:
            raise ValueError(f"integer out of range: {text!r}")
        return value

    if magnitude > _U64_MAX:
        raise ValueError(f"integer out of range: {text!r}")
    return (-magnitude) & _U64_MAX if negative else magnitude


@dataclass
class Param:
    """A lazily read, cached configuration parameter."""

    name: str
    env: str
    kind: ParamKind
    default: ParamValue
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)
    _cached: bool = field(default=False, init=False, repr=False, compare=False)
    _value: ParamValue = field(default=None, init=False, repr=False, compare=False)

    @property
    def env_var(self) -> str:
        return ENV_PREFIX + self.env

    def value(self) -> ParamValue:
        """Return the parameter value, reading the environment on first use."""
        if self._cached:
            return self._value
        with self._lock:
            if not self._cached:
                self._value = self._load()
                self._cached = True
        return self._value

    def reset(self) -> None:
        """Forget the cached value so the environment is read again."""
        with self._lock:
            self._cached = False
            self._value = None

    def _load(self) -> ParamValue:
        raw: Optional[str] = os.environ.get(self.env_var)
        if self.kind is ParamKind.STR:
            if raw is None:
                return self.default
            _log.info("Setting %s environment variable to %s", self.env_var, raw)
            return raw

        if not raw:
            return self.default
        try:
            parsed = parse_integer(raw, signed=self.kind is ParamKind.INT)
        except ValueError:
            _log.info(
                "Invalid value %s provided for %s environment variable, using default %s",
                raw,
                self.env_var,
                self.default,
            )
            return self.default
        _log.info("Setting %s environment variable to %s", self.env_var, parsed)
        return parsed


def _int(name: str, env: str, default: int) -> Param:
    return Param(name, env, ParamKind.INT, default)


def _uint(name: str, env: str, default: int) -> Param:
    return Param(name, env, ParamKind.UINT, default)


def _str(name: str, env: str, default: Optional[str]) -> Param:
    return Param(name, env, ParamKind.STR, default)


_ALL = [
    _int("use_ipv6_tcp", "USE_IPV6_TCP", 0),
    _str("exclude_tcp_if", "EXCLUDE_TCP_IF", "lo,docker0"),
    _int("gdr_flush_disable", "GDR_FLUSH_DISABLE", 0),
    _int("nic_dup_conns", "NIC_DUP_CONNS", 0),
    _int("cuda_flush_enable", "CUDA_FLUSH_ENABLE", 0),
    _uint("mr_key_size", "MR_KEY_SIZE", 2),
    _int("mr_cache_disable", "MR_CACHE_DISABLE", 0),
    _int("cq_read_count", "CQ_READ_COUNT", 4),
    _str("protocol", "PROTOCOL", None),
    _int("domain_per_thread", "DOMAIN_PER_THREAD", -1),
    _int("disable_native_rdma_check", "DISABLE_NATIVE_RDMA_CHECK", 0),
    _int("disable_gdr_required_check", "DISABLE_GDR_REQUIRED_CHECK", 0),
    _int("disable_dmabuf", "DISABLE_DMABUF", 0),
    _uint("min_stripe_size", "MIN_STRIPE_SIZE", 128 * 1024),
    _uint("sched_max_small_msg_size", "SCHED_MAX_SMALL_RR_SIZE", 64),
    _int("deprecated_rdma_min_posted_bounce_buffers", "RDMA_MIN_POSTED_BOUNCE_BUFFERS", -1),
    _int("deprecated_rdma_max_posted_bounce_buffers", "RDMA_MAX_POSTED_BOUNCE_BUFFERS", -1),
    _int("rdma_min_posted_eager_buffers", "RDMA_MIN_POSTED_EAGER_BUFFERS", 64),
    _int("rdma_max_posted_eager_buffers", "RDMA_MAX_POSTED_EAGER_BUFFERS", 128),
    _int("rdma_min_posted_control_buffers", "RDMA_MIN_POSTED_CONTROL_BUFFERS", 1920),
    _int("rdma_max_posted_control_buffers", "RDMA_MAX_POSTED_CONTROL_BUFFERS", 2048),
    _int("rdma_rr_ctrl_msg", "RR_CTRL_MSG", 1),
    _int("net_latency", "NET_LATENCY", -1),
    _int("eager_max_size", "EAGER_MAX_SIZE", 8192),
    _int("errorcheck_mutex", "ERRORCHECK_MUTEX", 1 if __debug__ else 0),
    _int("endpoint_per_communicator", "ENDPOINT_PER_COMM", 0),
    _int("abort_on_error", "ABORT_ON_ERROR", 0),
    _str("tuner_force_type", "TUNER_TYPE", None),
    _int("tuner_num_channels", "TUNER_NUM_CHANNELS", 8),
    _int("tuner_net_latency", "TUNER_NET_LATENCY", 20),
    _int("tuner_net_comp_overhead", "TUNER_NET_COMP_OVERHEAD", 3),
    _int("use_low_lat_tc", "USE_LOW_LATENCY_TC", 1),
    _int("force_num_rails", "FORCE_NUM_RAILS", 0),
    _int("early_completion", "EARLY_COMPLETION", -1),
]

PARAMS: dict[str, Param] = {param.name: param for param in _ALL}


def get_param(name: str) -> Param:
    """Return the registered parameter called ``name``."""
    try:
        return PARAMS[name]
    except KeyError:
        raise KeyError(f"unknown parameter: {name!r}") from None