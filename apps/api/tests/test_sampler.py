from __future__ import annotations

import pytest

from namethesub.puzzles.sampler import (
    FNV_OFFSET_BASIS,
    deterministic_shuffle,
    pick,
    pick_index,
    seed_from_text,
)


def test_seed_matches_fnv1a_reference_vectors() -> None:
    assert seed_from_text("") == FNV_OFFSET_BASIS
    assert seed_from_text("a") == 0xE40C292C
    assert seed_from_text("foobar") == 0xBF9CF968


def test_seed_is_stable_and_unsigned() -> None:
    first = seed_from_text("2024-01-10:easy:scan")
    assert first == seed_from_text("2024-01-10:easy:scan")
    assert first != seed_from_text("2024-01-10:hard:scan")
    assert 0 <= first < 2**32
    assert 0 <= seed_from_text("emoji \U0001F600 text") < 2**32


def test_pick_index_known_values() -> None:
    assert pick_index(10, 1) == 9
    assert pick_index(1000, 1) == 369
    # High bit set exercises the signed 32-bit shifts.
    assert pick_index(1000, 2**31) == 280


def test_pick_index_zero_seed_uses_fallback_constant() -> None:
    assert pick_index(97, 0) == pick_index(97, 123456789)


def test_pick_index_stays_in_range() -> None:
    for text in ("a", "b", "2024-02-29:medium:post", "x" * 200):
        seed = seed_from_text(text)
        for length in (1, 2, 7, 60, 120):
            assert 0 <= pick_index(length, seed) < length


def test_pick_index_rejects_empty_candidate_set() -> None:
    with pytest.raises(ValueError):
        pick_index(0, 42)


def test_pick_is_reproducible() -> None:
    items = ["alpha", "beta", "gamma", "delta"]
    assert pick(items, "2024-01-10:hard:pick") == pick(items, "2024-01-10:hard:pick")


def test_deterministic_shuffle_is_a_stable_permutation() -> None:
    items = [f"community{index}" for index in range(40)]
    shuffled = deterministic_shuffle(items, "2024-01-10:easy:scan")

    assert sorted(shuffled) == sorted(items)
    assert shuffled == deterministic_shuffle(items, "2024-01-10:easy:scan")
    assert items == [f"community{index}" for index in range(40)]
    assert deterministic_shuffle([], "seed") == []
    assert deterministic_shuffle(["solo"], "seed") == ["solo"]


def test_shuffle_order_depends_on_mode() -> None:
    items = [f"community{index}" for index in range(40)]
    orders = {
        tuple(deterministic_shuffle(items, f"2024-01-10:{mode}:scan"))
        for mode in ("easy", "medium", "hard")
    }
    assert len(orders) > 1
