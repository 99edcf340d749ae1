import pytest

from ofitune.mr_key import (
    CACHE_PAGE_SIZE,
    CacheKeyType,
    MrCacheKey,
    make_dmabuf_key,
    make_iovec_key,
    round_to_alignment,
)


@pytest.mark.parametrize(
    "base, length",
    [(1, 1), (4095, 2), (4097, 10), (12345, 67890), (0, 1), (8192, 4097)],
)
def test_round_covers_and_is_aligned(base, length):
    page_base, size = round_to_alignment(base, length, CACHE_PAGE_SIZE)
    assert page_base % CACHE_PAGE_SIZE == 0
    assert size % CACHE_PAGE_SIZE == 0
    assert page_base <= base
    assert page_base + size >= base + length
    # never more than one unit of slack on either side
    assert base - page_base < CACHE_PAGE_SIZE
    assert page_base + size - (base + length) < CACHE_PAGE_SIZE


def test_round_aligned_input_unchanged():
    assert round_to_alignment(8192, 8192, 4096) == (8192, 8192)


def test_round_is_idempotent():
    once = round_to_alignment(5000, 300, 4096)
    assert round_to_alignment(*once, 4096) == once


def test_round_rejects_non_power_of_two():
    with pytest.raises(ValueError):
        round_to_alignment(100, 10, 3000)


def test_iovec_key_matches_rounding():
    key = make_iovec_key(4097, 10, 4096)
    assert key.key_type is CacheKeyType.IOVEC
    assert (key.base_addr(), key.length()) == round_to_alignment(4097, 10, 4096)
    assert key.type_name() == "iovec"


def test_iovec_key_default_alignment_is_page():
    key = make_iovec_key(CACHE_PAGE_SIZE + 1, 1)
    assert key.base_addr() == CACHE_PAGE_SIZE
    assert key.length() == CACHE_PAGE_SIZE


def test_dmabuf_key_fields():
    key = make_dmabuf_key(7, 0x40, 1000, 0x100000)
    assert key.key_type is CacheKeyType.DMABUF
    assert key.fd == 7
    assert key.base_addr() == 0x100000 + 0x40
    assert key.length() == 1000
    assert key.type_name() == "dmabuf"


def test_dmabuf_key_not_rounded():
    key = make_dmabuf_key(3, 0, 13, 4097)
    assert key.base_addr() == 4097
    assert key.length() == 13


def test_keys_are_hashable_and_comparable():
    assert make_iovec_key(100, 10) == make_iovec_key(200, 20)
    assert len({make_iovec_key(100, 10), make_iovec_key(200, 20)}) == 1


@pytest.mark.parametrize("method", ["base_addr", "length", "type_name"])
def test_invalid_key_raises(method):
    with pytest.raises(ValueError):
        getattr(MrCacheKey(), method)()