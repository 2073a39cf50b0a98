"""Tests for the walk-forward backtest harness."""

import numpy as np
import pytest

from korea_lottery.analysis.backtesting import is_valid_candidate, random_hit_rate, run_backtest
from korea_lottery.analysis.draws import LottoDraw, number_lists
from korea_lottery.analysis.rules import RULES, Rule


class _MalformedRule:
    name = "SHORT"
    label = "short"
    min_history = 1

    def __call__(self, history, rng=None):
        return [1, 2, 3]


def _boom(history, rng):
    raise RuntimeError("always fails")


class TestBaseline:
    def test_two_match_baseline(self):
        assert 0.17 < random_hit_rate(2) < 0.18

    def test_one_match_baseline(self):
        assert random_hit_rate(1) == pytest.approx(0.5994, abs=1e-3)

    def test_candidate_validation(self):
        assert is_valid_candidate([1, 2, 3, 4, 5, 6])
        assert not is_valid_candidate([1, 2, 3, 4, 5])
        assert not is_valid_candidate([1, 1, 2, 3, 4, 5])
        assert not is_valid_candidate([0, 1, 2, 3, 4, 5])
        assert not is_valid_candidate(None)


class TestRunBacktest:
    def test_one_stat_per_rule(self, lotto_history):
        stats = run_backtest(lotto_history, max_rounds=15)
        assert [s.name for s in stats] == [r.name for r in RULES]
        for s in stats:
            assert sum(s.match_counts) == s.tested
            assert sum(s.recent_match_counts) == s.recent_tested
            assert s.recent_tested <= s.tested
            assert 0.0 <= s.hit_rate <= 1.0

    def test_min_history_respected(self, lotto_history):
        stats = {s.name: s for s in run_backtest(lotto_history)}
        # 60 draws: F10 (50) can only be scored on rounds 51..60
        assert stats["F10"].tested == 10
        assert stats["F5"].tested == 59

    def test_max_rounds_limits_evaluation(self, lotto_history):
        stats = run_backtest(lotto_history, max_rounds=5)
        assert all(s.tested <= 5 for s in stats)

    def test_recent_window_is_round_based(self, lotto_history):
        stats = {s.name: s for s in run_backtest(lotto_history, recent_window=10)}
        assert stats["F5"].recent_tested == 10

    def test_always_throwing_rule_is_skipped(self, lotto_history):
        boom = Rule("BOOM", "always fails", 1, _boom)
        stats = run_backtest(lotto_history, rules=[*RULES, boom], max_rounds=12)

        by_name = {s.name: s for s in stats}
        assert by_name["BOOM"].tested == 0
        assert by_name["BOOM"].hit_rate == 0.0
        assert all(by_name[r.name].tested > 0 for r in RULES)

    def test_malformed_candidate_is_skipped(self, lotto_history):
        stats = run_backtest(lotto_history, rules=[_MalformedRule()], max_rounds=5)
        assert stats[0].tested == 0

    def test_walk_forward_only_sees_the_past(self, lotto_history):
        seen = []

        def record(history, rng):
            seen.append([list(nums) for nums in history])
            return [1, 2, 3, 4, 5, 6]

        numbers = number_lists(lotto_history)
        run_backtest(lotto_history, rules=[Rule("REC", "recorder", 1, record)])

        assert len(seen) == len(numbers) - 1
        for past in seen:
            assert past == numbers[:len(past)]
            assert len(past) < len(numbers)

    def test_tail_sentinel_does_not_change_earlier_rounds(self, lotto_history):
        lengths = []

        def record(history, rng):
            lengths.append(len(history))
            return [1, 2, 3, 4, 5, 6]

        rule = Rule("REC", "recorder", 1, record)
        base = run_backtest(lotto_history, rules=[rule])[0]

        sentinel = LottoDraw(round=61, date=None, numbers=(40, 41, 42, 43, 44, 45), bonus=39)
        lengths.clear()
        extended = run_backtest([*lotto_history, sentinel], rules=[rule])[0]

        assert max(lengths) == len(lotto_history)
        assert extended.tested == base.tested + 1
        assert extended.match_counts[0] == base.match_counts[0] + 1

    def test_hit_threshold_parameter(self, lotto_history):
        loose = run_backtest(
            lotto_history, rules=RULES[:3], hit_threshold=1, max_rounds=20, rng=np.random.default_rng(1),
        )
        strict = run_backtest(
            lotto_history, rules=RULES[:3], hit_threshold=3, max_rounds=20, rng=np.random.default_rng(1),
        )
        for a, b in zip(loose, strict):
            assert a.hit_rate >= b.hit_rate

    def test_empty_history(self):
        stats = run_backtest([])
        assert all(s.tested == 0 for s in stats)
