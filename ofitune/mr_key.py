"""Memory-registration cache keys: iovec and dma-buf descriptors with page rounding."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from .mathutil import is_power_of_two, round_down, round_up

__all__ = [
    "CacheKeyType",
    "MrCacheKey",
    "CACHE_PAGE_SIZE",
    "round_to_alignment",
    "make_iovec_key",
    "make_dmabuf_key",
]

_log = logging.getLogger(__name__)

# Default alignment of cache entries and registered regions.
CACHE_PAGE_SIZE = 4096


class CacheKeyType(enum.IntEnum):
    """Kind of memory a cache key describes."""

    INVALID = 0
    IOVEC = 1
    DMABUF = 2


@dataclass(frozen=True)
class MrCacheKey:
    """Key identifying a registered memory region.

    For iovec keys ``address`` is the start of the buffer. For dma-buf keys
    ``address`` is the base address of the dma-buf, ``offset`` the offset into
    it and ``fd`` its file descriptor.
    """

    key_type: CacheKeyType = CacheKeyType.INVALID
    address: int = 0
    size: int = 0
    fd: int = -1
    offset: int = 0

    def _require_valid(self) -> None:
        if self.key_type is CacheKeyType.INVALID:
            raise ValueError("invalid memory registration cache key")

    def base_addr(self) -> int:
        """Return the first address covered by the key."""
        self._require_valid()
        if self.key_type is CacheKeyType.DMABUF:
            return self.address + self.offset
        return self.address

    def length(self) -> int:
        """Return the number of bytes covered by the key."""
        self._require_valid()
        return self.size

    def type_name(self) -> str:
        """Return a short name for the kind of key."""
        self._require_valid()
        return "dmabuf" if self.key_type is CacheKeyType.DMABUF else "iovec"


def round_to_alignment(base_addr: int, length: int, alignment: int = CACHE_PAGE_SIZE) -> tuple[int, int]:
    """Widen ``[base_addr, base_addr + length)`` to whole ``alignment`` units.

    Returns the aligned base address and the aligned length.
    """
    if not is_power_of_two(alignment):
        raise ValueError(f"alignment must be a power of two, got {alignment}")
    page_base = round_down(base_addr, alignment)
    aligned_size = round_up(base_addr + length, alignment) - page_base
    if page_base != base_addr or aligned_size != length:
        _log.debug(
            "Going to register mr iovec %#x size %d as %#x size %d",
            base_addr, length, page_base, aligned_size,
        )
    return page_base, aligned_size


def make_iovec_key(base_addr: int, length: int, alignment: int = CACHE_PAGE_SIZE) -> MrCacheKey:
    """Return an iovec key covering the buffer, rounded out to ``alignment``."""
    address, size = round_to_alignment(base_addr, length, alignment)
    return MrCacheKey(key_type=CacheKeyType.IOVEC, address=address, size=size)


def make_dmabuf_key(fd: int, offset: int, length: int, base_addr: int) -> MrCacheKey:
    """Return a dma-buf key; dma-buf regions are not rounded."""
    return MrCacheKey(
        key_type=CacheKeyType.DMABUF,
        address=base_addr,
        size=length,
        fd=fd,
        offset=offset,
    )