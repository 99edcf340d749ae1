"""Integer helpers for rounding, alignment and ceiling division."""

__all__ = ["div_ceil", "is_power_of_two", "is_aligned", "round_down", "round_up"]


def div_ceil(x: int, y: int) -> int:
    """Return the ceiling of ``x / y`` for non-negative ``x`` and positive ``y``."""
    if x == 0:
        return 0
    return 1 + (x - 1) // y


def is_power_of_two(x: int) -> bool:
    """Return True if and only if ``x`` is a power of two."""
    return x > 0 and (x & (x - 1)) == 0


def is_aligned(x: int, a: int) -> bool:
    """Return True if ``x`` is a multiple of ``a``, which must be a power of two."""
    return (x & (a - 1)) == 0


def round_down(x: int, y: int) -> int:
    """Round ``x`` down to a multiple of ``y``, which must be a power of two."""
    return x & ~(y - 1)


def round_up(x: int, y: int) -> int:
    """Round ``x`` up to a multiple of ``y``, which must be a power of two."""
    return round_down(x + (y - 1), y)