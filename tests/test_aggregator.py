"""Tests for frequency / gap aggregation."""

import pytest

from korea_lottery.analysis.aggregator import (
    DEFAULT_AVG_GAP,
    aggregate,
    index_gap_table,
    lotto_number_stats,
    pension_digit_stats,
    pension_group_stats,
)
from korea_lottery.errors import InsufficientHistory


class TestAggregate:
    def test_counts_and_gaps(self):
        stats = aggregate([[1, 2], [2, 3], [2]], [10, 11, 12], range(1, 5), min_history=0)
        by_cat = {s.category: s for s in stats}

        assert by_cat[1].frequency == 1
        assert by_cat[1].last_appeared_round == 10
        assert by_cat[1].consecutive_miss == 2
        assert by_cat[1].avg_gap == DEFAULT_AVG_GAP

        assert by_cat[2].frequency == 3
        assert by_cat[2].consecutive_miss == 0
        assert by_cat[2].avg_gap == 1.0

        assert by_cat[3].consecutive_miss == 1

    def test_unseen_category_has_no_miss(self):
        stats = aggregate([[1], [1]], [1, 2], range(1, 4), min_history=0)
        unseen = stats[2]
        assert unseen.frequency == 0
        assert unseen.last_appeared_round is None
        assert unseen.consecutive_miss is None

    def test_out_of_domain_values_ignored(self):
        stats = aggregate([[1, 99]], [1], range(1, 3), min_history=0)
        assert [s.frequency for s in stats] == [1, 0]

    def test_insufficient_history(self):
        with pytest.raises(InsufficientHistory) as exc:
            aggregate([[1]] * 9, list(range(9)), range(1, 46), min_history=10)
        assert exc.value.required == 10
        assert exc.value.actual == 9


class TestGameStats:
    def test_lotto_covers_all_numbers(self, lotto_history):
        stats = lotto_number_stats(lotto_history)
        assert [s.category for s in stats] == list(range(1, 46))
        assert sum(s.frequency for s in stats) == 6 * len(lotto_history)

    def test_lotto_default_min_history(self, make_lotto_history):
        with pytest.raises(InsufficientHistory):
            lotto_number_stats(make_lotto_history(9))

    def test_pension_groups(self, group_three_history):
        stats = pension_group_stats(group_three_history)
        assert {s.category: s.frequency for s in stats} == {1: 3, 2: 3, 3: 10, 4: 2, 5: 2}

    def test_pension_digits_per_position(self, pension_history):
        positions = pension_digit_stats(pension_history)
        assert len(positions) == 6
        for pos, stats in enumerate(positions, start=1):
            assert [s.category for s in stats] == list(range(10))
            assert all(s.position == pos for s in stats)
            assert sum(s.frequency for s in stats) == len(pension_history)

    def test_index_gap_table_uses_indices(self):
        table = index_gap_table([[1, 2, 3, 4, 5, 6], [7, 8, 9, 10, 11, 12], [1, 13, 14, 15, 16, 17]])
        assert table[1].last_appeared_round == 2
        assert table[7].consecutive_miss == 1
        assert table[45].consecutive_miss is None
