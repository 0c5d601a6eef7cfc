"""Reproducible "random" choices derived from strings.

Every selection the puzzle builder makes goes through these helpers so that a
given (day, mode) always resolves to the same community, post and comment.
"""

from __future__ import annotations

from typing import List, Sequence, TypeVar

T = TypeVar("T")

FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619
ZERO_SEED_FALLBACK = 123456789

_UINT32_MASK = 0xFFFFFFFF


def _to_int32(value: int) -> int:
    value &= _UINT32_MASK
    return value - 0x1_0000_0000 if value & 0x8000_0000 else value


def seed_from_text(text: str) -> int:
    """32-bit FNV-1a hash of ``text``.

    Hashes UTF-16 code units so non-BMP characters contribute the same values
    a browser client computing the seed would.
    """
    encoded = text.encode("utf-16-le", "surrogatepass")
    h = FNV_OFFSET_BASIS
    for offset in range(0, len(encoded), 2):
        code_unit = encoded[offset] | (encoded[offset + 1] << 8)
        h ^= code_unit
        h = (h * FNV_PRIME) & _UINT32_MASK
    return h


def pick_index(length: int, seed: int) -> int:
    """Fold ``seed`` into ``[0, length)`` with a single xorshift32 step.

    Shifts operate on the signed 32-bit view of the seed.
    """
    if length <= 0:
        raise ValueError("pick_index requires a non-empty candidate set")
    x = _to_int32(seed or ZERO_SEED_FALLBACK)
    x = _to_int32(x ^ _to_int32(x << 13))
    x = x ^ (x >> 17)
    x = _to_int32(x ^ _to_int32(x << 5))
    return abs(x) % length


def pick(items: Sequence[T], seed_text: str) -> T:
    return items[pick_index(len(items), seed_from_text(seed_text))]


def deterministic_shuffle(items: Sequence[T], seed_text: str) -> List[T]:
    """Fisher-Yates shuffle driven by ``pick_index``; returns a new list."""
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = pick_index(i + 1, seed_from_text(f"{seed_text}:{i}"))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled
