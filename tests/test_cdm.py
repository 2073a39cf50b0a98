"""Tests for the CDM scorer."""

import numpy as np
import pytest

from korea_lottery.analysis.aggregator import (
    lotto_number_stats,
    pension_digit_stats,
    pension_group_stats,
)
from korea_lottery.analysis.cdm import (
    estimate_alpha_mle,
    estimate_alpha_mm,
    score_distribution,
    sort_scores,
)
from korea_lottery.errors import InsufficientHistory
from korea_lottery.schemas.analysis import FrequencyStat


def _stats(frequencies):
    return [
        FrequencyStat(category=i + 1, frequency=f, avg_gap=7.0)
        for i, f in enumerate(frequencies)
    ]


class TestAlphaEstimates:
    def test_method_of_moments(self):
        alpha = estimate_alpha_mm(np.array([10.0, 5.0, 0.0]), 10)
        assert alpha.tolist() == [1.0, 0.5, 0.0]

    def test_mle_zero_frequencies(self):
        alpha = estimate_alpha_mle(np.zeros(5), 10)
        assert alpha.tolist() == [0.0] * 5

    def test_mle_proportional_to_frequency(self):
        alpha = estimate_alpha_mle(np.array([30.0, 20.0, 10.0]), 10)
        assert alpha[0] > alpha[1] > alpha[2] > 0
        assert alpha[0] / alpha[2] == pytest.approx(3.0)


class TestScoreDistribution:
    def test_lotto_posteriors_sum_to_one(self, lotto_history):
        scores = score_distribution(lotto_number_stats(lotto_history), len(lotto_history), 6)
        assert len(scores) == 45
        assert sum(s.posterior for s in scores) == pytest.approx(1.0, abs=1e-6)
        assert sum(s.predicted_count for s in scores) == pytest.approx(6.0, abs=1e-6)

    def test_pension_posteriors_sum_to_one(self, pension_history):
        n = len(pension_history)
        groups = score_distribution(pension_group_stats(pension_history), n, 5)
        assert sum(s.posterior for s in groups) == pytest.approx(1.0, abs=1e-6)
        for position in pension_digit_stats(pension_history):
            digits = score_distribution(position, n, 1)
            assert sum(s.posterior for s in digits) == pytest.approx(1.0, abs=1e-6)

    def test_unseen_category_gets_positive_posterior(self):
        scores = score_distribution(_stats([10, 10, 0]), 10, 1)
        assert scores[2].posterior > 0
        assert scores[2].alpha > 0

    def test_all_zero_frequencies_are_uniform(self):
        scores = score_distribution(_stats([0, 0, 0, 0]), 5, 1)
        assert all(s.posterior == pytest.approx(0.25) for s in scores)

    def test_more_frequent_scores_higher(self):
        scores = score_distribution(_stats([12, 8, 4, 1]), 25, 1)
        posteriors = [s.posterior for s in scores]
        assert posteriors == sorted(posteriors, reverse=True)

    def test_no_rounds_rejected(self):
        with pytest.raises(InsufficientHistory):
            score_distribution(_stats([0, 0]), 0, 1)

    def test_deterministic(self, lotto_history):
        stats = lotto_number_stats(lotto_history)
        assert score_distribution(stats, 60, 6) == score_distribution(stats, 60, 6)

    def test_sort_scores_breaks_ties_by_category(self):
        scores = sort_scores(score_distribution(_stats([5, 9, 5, 1]), 10, 1))
        assert [s.category for s in scores] == [2, 1, 3, 4]
