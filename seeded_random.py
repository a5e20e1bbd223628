from __future__ import annotations

from typing import Callable, Iterator

# All state is unsigned 32-bit; every add/multiply wraps through this mask.
UINT32_MASK = 0xFFFFFFFF
UINT32_SCALE = 4294967296.0

FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619

MULBERRY_INCREMENT = 0x6D2B79F5


# -----------------------------------------------------------------------------
# Seed hashing
# -----------------------------------------------------------------------------
def _utf16_units(text: str) -> Iterator[int]:
    """
    Yield UTF-16 code units, so characters outside the BMP hash as their
    surrogate pair (same result as charCodeAt in a browser).
    """
    for ch in text:
        cp = ord(ch)
        if cp > 0xFFFF:
            cp -= 0x10000
            yield 0xD800 + (cp >> 10)
            yield 0xDC00 + (cp & 0x3FF)
        else:
            yield cp


def hash_seed(seed: str) -> int:
    """
    32-bit FNV-1a over the seed string.

    hash_seed("test") == 2949673445
    """
    h = FNV_OFFSET_BASIS
    for unit in _utf16_units(str(seed)):
        h ^= unit
        h = (h * FNV_PRIME) & UINT32_MASK
    return h


# -----------------------------------------------------------------------------
# Stream
# -----------------------------------------------------------------------------
def mulberry32(state: int) -> Callable[[], float]:
    """
    Return a generator function producing floats in [0, 1).

    The closure owns its state; two closures built from the same state
    produce the same sequence.
    """
    a = int(state) & UINT32_MASK

    def next_float() -> float:
        nonlocal a
        a = (a + MULBERRY_INCREMENT) & UINT32_MASK
        t = a
        t = ((t ^ (t >> 15)) * (t | 1)) & UINT32_MASK
        t ^= (t + (((t ^ (t >> 7)) * (t | 61)) & UINT32_MASK)) & UINT32_MASK
        return ((t ^ (t >> 14)) & UINT32_MASK) / UINT32_SCALE

    return next_float


def create_seeded_random(seed: str) -> Callable[[], float]:
    """Stream for a string seed: mulberry32(hash_seed(seed))."""
    return mulberry32(hash_seed(seed))


def rand_index(rand: Callable[[], float], n: int) -> int:
    """floor(rand() * n) for a positive n."""
    return int(rand() * n)
