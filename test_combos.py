"""
Combo Generator and Best-Move Test Suite

Sections:
    1. Combo generation — the {1..9} / 9 table, sums, uniqueness, pruning
    2. Best move — ranking order and tie-breaks
"""
import itertools
import random

import pytest

from combos import (
    combo_rank_key,
    generate_tile_combos,
    is_same_combo,
    select_best_move,
    sum_tiles,
)

# ═══════════════════════════════════════════════════════════════════════════════
# 1. COMBO GENERATION
#    Rule: every subset of open tiles summing exactly to the dice total.
# ═══════════════════════════════════════════════════════════════════════════════


class TestGenerateTileCombos:

    def test_nine_tiles_target_nine_has_exactly_eight_combos(self):
        combos = generate_tile_combos(list(range(1, 10)), 9)
        expected = [{9}, {1, 8}, {2, 7}, {3, 6}, {4, 5}, {1, 2, 6}, {1, 3, 5}, {2, 3, 4}]
        assert len(combos) == 8
        assert sorted(map(frozenset, combos), key=sorted) == sorted(map(frozenset, expected), key=sorted)

    def test_combos_are_ascending_lists(self):
        for combo in generate_tile_combos([5, 1, 4, 2, 3], 6):
            assert combo == sorted(combo)

    def test_no_combo_when_total_exceeds_board(self):
        assert generate_tile_combos([1, 2], 12) == []

    def test_zero_and_negative_targets_give_nothing(self):
        assert generate_tile_combos([1, 2, 3], 0) == []
        assert generate_tile_combos([1, 2, 3], -4) == []

    def test_empty_board_gives_nothing(self):
        assert generate_tile_combos([], 7) == []

    def test_single_tile_exact_match(self):
        assert generate_tile_combos([7], 7) == [[7]]

    def test_only_open_tiles_are_used(self):
        combos = generate_tile_combos([1, 3, 8], 4)
        assert combos == [[1, 3]]

    @pytest.mark.parametrize("seed", range(20))
    def test_every_combo_sums_to_target_and_uses_open_tiles(self, seed):
        rng = random.Random(seed)
        open_tiles = sorted(rng.sample(range(1, 13), rng.randint(1, 12)))
        target = rng.randint(1, 12)
        combos = generate_tile_combos(open_tiles, target)
        for combo in combos:
            assert sum_tiles(combo) == target
            assert set(combo) <= set(open_tiles)
        assert len({frozenset(c) for c in combos}) == len(combos)

    @pytest.mark.parametrize("seed", range(10))
    def test_matches_brute_force(self, seed):
        rng = random.Random(100 + seed)
        open_tiles = sorted(rng.sample(range(1, 13), rng.randint(1, 12)))
        target = rng.randint(2, 12)
        brute = {
            frozenset(c)
            for r in range(1, len(open_tiles) + 1)
            for c in itertools.combinations(open_tiles, r)
            if sum(c) == target
        }
        assert {frozenset(c) for c in generate_tile_combos(open_tiles, target)} == brute


class TestSameCombo:

    def test_order_does_not_matter(self):
        assert is_same_combo([1, 2, 6], (6, 1, 2))

    def test_different_tiles_differ(self):
        assert not is_same_combo([1, 8], [2, 7])


# ═══════════════════════════════════════════════════════════════════════════════
# 2. BEST MOVE
#    Rule: highest single tile first, then highest sum, then fewer tiles,
#    then lower remainder; remaining ties go to the higher tiles read
#    top-down. Result is an ascending tuple.
# ═══════════════════════════════════════════════════════════════════════════════


class TestSelectBestMove:

    def test_single_tile_wins_on_full_board(self):
        tiles = list(range(1, 10))
        assert select_best_move(generate_tile_combos(tiles, 9), tiles) == (9,)

    def test_prefers_highest_tile(self):
        tiles = [1, 2, 3, 4, 5]
        assert select_best_move(generate_tile_combos(tiles, 6), tiles) == (1, 5)

    def test_no_combos_gives_none(self):
        assert select_best_move([], [1, 2, 3]) is None

    def test_empty_combo_is_ignored(self):
        assert select_best_move([[]], [1, 2, 3]) is None

    def test_returns_ascending_tuple(self):
        assert select_best_move([[4, 1]], [1, 4, 6]) == (1, 4)

    def test_highest_tile_beats_fewer_tiles(self):
        # {8} closes one tile, {1, 2, 9} has the higher top tile
        assert select_best_move([[8], [1, 2, 9]], [1, 2, 8, 9]) == (1, 2, 9)

    def test_fewer_tiles_breaks_tie_on_top_tile(self):
        # Same top tile and sum; fewer tiles wins
        assert select_best_move([[1, 2, 3, 9], [2, 4, 9]], [1, 2, 3, 4, 9]) == (2, 4, 9)

    def test_second_tile_breaks_remaining_tie(self):
        # Same top tile, sum and length; higher second tile wins
        assert select_best_move([[1, 4, 9], [2, 3, 9]], [1, 2, 3, 4, 9]) == (1, 4, 9)

    def test_rank_key_orders_by_top_tile_first(self):
        open_tiles = [1, 2, 3, 4, 5, 6]
        assert combo_rank_key([6], open_tiles) < combo_rank_key([2, 4], open_tiles)
