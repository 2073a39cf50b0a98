"""Tests for ranking and set recommendation."""

import numpy as np
import pytest

from korea_lottery.analysis import recommender
from korea_lottery.analysis.aggregator import lotto_number_stats
from korea_lottery.analysis.cdm import score_distribution
from korea_lottery.analysis.recommender import (
    Balance,
    analyze_lotto,
    analyze_pension,
    build_balanced_set,
    cdm_lotto_sets,
    consensus_numbers,
    lotto_patterns,
    lotto_set_score,
    rank_lotto_numbers,
)
from korea_lottery.analysis.draws import number_lists
from korea_lottery.config import settings
from korea_lottery.errors import ConstraintUnsatisfiable, InsufficientHistory
from korea_lottery.schemas.analysis import RuleResult


def _valid_lotto_set(numbers):
    return len(numbers) == 6 and len(set(numbers)) == 6 and all(1 <= n <= 45 for n in numbers)


class TestBalancedSet:
    def test_greedy_walk_respects_low_limit(self):
        assert build_balanced_set(list(range(1, 46))) == [1, 2, 3, 4, 23, 24]

    def test_exact_odd_target(self):
        result = build_balanced_set(list(range(1, 46)), odd=Balance(3, 3))
        assert sum(1 for n in result if n % 2) == 3

    def test_must_include_kept(self):
        result = build_balanced_set(list(range(1, 46)), must_include=[44, 45])
        assert {44, 45} <= set(result)
        assert len(result) == 6

    def test_must_include_breaking_balance(self):
        with pytest.raises(ConstraintUnsatisfiable):
            build_balanced_set(list(range(1, 46)), must_include=[1, 3, 5, 7, 9])

    def test_too_few_candidates(self):
        with pytest.raises(ConstraintUnsatisfiable):
            build_balanced_set([1, 2, 3])


class TestScoringAndPatterns:
    def test_set_score_bonuses(self):
        # sum 131, three odd, three low
        assert lotto_set_score([10, 11, 20, 25, 30, 35], {}) == 45.0

    def test_set_score_uses_predicted_counts(self):
        predicted = {n: 0.1 for n in range(1, 46)}
        # 1, 3 and 5 are odd
        assert lotto_set_score([1, 2, 3, 4, 5, 6], predicted) == pytest.approx(60.0 + 15.0)

    def test_patterns(self):
        history = [
            [1, 2, 10, 20, 30, 40],
            [3, 6, 12, 24, 32, 44],
            [5, 15, 21, 35, 41, 43],
        ]
        patterns = lotto_patterns(history)
        assert patterns.sum_min == 103
        assert patterns.sum_max == 160
        assert patterns.sum_avg == 128
        assert patterns.odd_even_most_common == "1:5"
        assert patterns.high_low_most_common == "3:3"
        assert patterns.consecutive_pairs_percent == 33

    def test_consensus_counts_every_rule(self, lotto_history, rng):
        consensus = consensus_numbers(number_lists(lotto_history), rng)
        assert sum(c.count for c in consensus) == 20 * 6
        counts = [c.count for c in consensus]
        assert counts == sorted(counts, reverse=True)


class TestAnalyzeLotto:
    def test_nine_draws_rejected(self, make_lotto_history):
        with pytest.raises(InsufficientHistory):
            analyze_lotto(make_lotto_history(9))

    def test_ten_draws_accepted(self, make_lotto_history, rng):
        result = analyze_lotto(make_lotto_history(10), rng=rng)
        assert result.model_info.total_rounds == 10
        assert result.backtest_stats == []
        assert result.recommended_sets

    def test_dominant_number_ranked_first(self, seven_history, rng):
        result = analyze_lotto(seven_history, rng=rng, run_backtests=False)
        top = result.ranked_categories[0]
        assert top.number == 7
        assert top.posterior > 6 / 45

    def test_posteriors_sum_to_one(self, lotto_history, rng):
        result = analyze_lotto(lotto_history, rng=rng, run_backtests=False)
        assert len(result.cdm_scores) == 45
        assert sum(s.posterior for s in result.cdm_scores) == pytest.approx(1.0, abs=1e-6)

    def test_sets_valid_and_unique(self, lotto_history, rng):
        result = analyze_lotto(lotto_history, rng=rng)
        combos = [tuple(sorted(s.numbers)) for s in result.recommended_sets]
        assert all(_valid_lotto_set(s.numbers) for s in result.recommended_sets)
        assert len(combos) == len(set(combos))
        assert [s.rank for s in result.recommended_sets] == list(range(1, len(combos) + 1))

    def test_backtest_sets_included_with_enough_history(self, lotto_history, rng):
        result = analyze_lotto(lotto_history, rng=rng)
        assert len(result.backtest_stats) == 20
        assert any(s.method.startswith("backtest:") for s in result.recommended_sets)

    def test_ranking_is_deterministic(self, lotto_history):
        first = analyze_lotto(lotto_history, rng=np.random.default_rng(1), run_backtests=False)
        second = analyze_lotto(lotto_history, rng=np.random.default_rng(2), run_backtests=False)
        assert first.ranked_categories == second.ranked_categories
        assert first.cdm_scores == second.cdm_scores

    def test_history_order_does_not_matter(self, lotto_history):
        forward = analyze_lotto(lotto_history, run_backtests=False)
        backward = analyze_lotto(list(reversed(lotto_history)), run_backtests=False)
        assert forward.ranked_categories == backward.ranked_categories

    def test_backtest_replays_whole_history_by_default(self, lotto_history, rng):
        result = analyze_lotto(lotto_history, rng=rng)
        stats = {s.name: s for s in result.backtest_stats}
        assert stats["F5"].tested == 59
        assert stats["F10"].tested == 10

    def test_backtest_cap_is_opt_in(self, lotto_history, rng, monkeypatch):
        monkeypatch.setattr(settings, "BACKTEST_MAX_ROUNDS", 10)
        result = analyze_lotto(lotto_history, rng=rng)
        stats = {s.name: s for s in result.backtest_stats}
        assert stats["F5"].tested == 10

    def test_backtest_sets_share_cdm_score_scale(self, lotto_history, rng):
        result = analyze_lotto(lotto_history, rng=rng)
        predicted = {s.category: s.predicted_count for s in result.cdm_scores}
        backtest_sets = [s for s in result.recommended_sets if s.method.startswith("backtest:")]
        assert backtest_sets
        for s in backtest_sets:
            assert s.score == lotto_set_score(s.numbers, predicted)

    def test_backtest_limit_counts_only_new_sets(self, lotto_history, rng, monkeypatch):
        def fake_results(history, backtest_stats, rng):
            for rule, numbers in [
                ("F1", [1, 2, 3, 4, 5, 6]),
                ("F2", [1, 2, 3, 4, 5, 6]),
                ("F3", [1, 2, 3, 4, 5, 6]),
                ("F4", [40, 41, 42, 43, 44, 45]),
                ("F5", [1, 2, 3, 4, 5, 45]),
            ]:
                yield RuleResult(rule=rule, label=rule, numbers=numbers, hit_rate=0.5, recent_hit_rate=0.5)

        monkeypatch.setattr(recommender, "backtest_rule_results", fake_results)
        monkeypatch.setattr(settings, "BACKTEST_SET_COUNT", 2)
        result = analyze_lotto(lotto_history, rng=rng)

        methods = sorted(s.method for s in result.recommended_sets if s.method.startswith("backtest:"))
        assert methods == ["backtest:F1 F1", "backtest:F4 F4"]


class TestDiversitySets:
    def _ranked(self, draws):
        stats = lotto_number_stats(draws)
        scores = score_distribution(stats, len(draws), 6)
        return rank_lotto_numbers(stats, scores, number_lists(draws))

    def test_diversity_sets_reach_unused_numbers(self, lotto_history, rng):
        collector = cdm_lotto_sets(self._ranked(lotto_history), rng, 15)
        methods = [method for _, _, method, _ in collector.items]
        first = next(i for i, m in enumerate(methods) if m.startswith("cdm_diversity_"))

        earlier = {n for nums, *_ in collector.items[:first] for n in nums}
        assert not set(collector.items[first][0]) <= earlier

    def test_diversity_odd_targets_cycle(self, lotto_history, rng):
        collector = cdm_lotto_sets(self._ranked(lotto_history), rng, 15)
        diversity = [(nums, m) for nums, _, m, _ in collector.items if m.startswith("cdm_diversity_")]
        assert diversity
        for nums, method in diversity:
            n = int(method.rsplit("_", 1)[1])
            assert sum(1 for x in nums if x % 2) == 2 + (n - 1) % 3

    def test_diversity_methods_in_analysis(self, lotto_history, rng):
        result = analyze_lotto(lotto_history, rng=rng, run_backtests=False)
        assert any(s.method.startswith("cdm_diversity_") for s in result.recommended_sets)


class TestAnalyzePension:
    def test_nine_draws_rejected(self, make_pension_history):
        with pytest.raises(InsufficientHistory):
            analyze_pension(make_pension_history(9))

    def test_ten_draws_accepted(self, make_pension_history, rng):
        result = analyze_pension(make_pension_history(10), rng=rng)
        assert result.model_info.total_rounds == 10

    def test_dominant_group_ranked_first(self, group_three_history, rng):
        result = analyze_pension(group_three_history, rng=rng)
        assert result.group_scores[0].category == 3
        assert result.ranked_categories[0].number == 3

    def test_posteriors_sum_to_one(self, pension_history, rng):
        result = analyze_pension(pension_history, rng=rng)
        assert sum(s.posterior for s in result.group_scores) == pytest.approx(1.0, abs=1e-6)
        assert len(result.digit_scores_by_position) == 6
        for scores in result.digit_scores_by_position:
            assert len(scores) == 10
            assert sum(s.posterior for s in scores) == pytest.approx(1.0, abs=1e-6)

    def test_sets_valid_and_unique(self, pension_history, rng):
        result = analyze_pension(pension_history, rng=rng)
        keys = [(s.group, tuple(s.numbers)) for s in result.recommended_sets]
        assert len(keys) == len(set(keys))
        for s in result.recommended_sets:
            assert 1 <= s.group <= 5
            assert len(s.numbers) == 6
            assert all(0 <= d <= 9 for d in s.numbers)
