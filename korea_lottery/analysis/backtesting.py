"""Walk-forward backtesting of the rule bank.

For each historical draw, every eligible rule is evaluated on the draws
strictly before it and scored by how many of its six numbers were drawn.
"""

from collections.abc import Sequence

import numpy as np
from loguru import logger
from scipy import stats as sp_stats

from korea_lottery.analysis.draws import LOTTO_MAX_NUM, LOTTO_PICK_COUNT, number_lists, sort_history
from korea_lottery.analysis.rules import RULES, Rule
from korea_lottery.config import settings
from korea_lottery.schemas.analysis import BacktestStat


def random_hit_rate(hit_threshold: int, pick_count: int = LOTTO_PICK_COUNT) -> float:
    """Probability that a uniformly random set matches >= hit_threshold drawn numbers."""
    # P(X >= t) for X ~ Hypergeom(M=45, n=6 drawn, N=pick_count picked)
    return float(sp_stats.hypergeom.sf(hit_threshold - 1, LOTTO_MAX_NUM, LOTTO_PICK_COUNT, pick_count))


def is_valid_candidate(candidate) -> bool:
    if candidate is None or len(candidate) != LOTTO_PICK_COUNT:
        return False
    try:
        values = {int(n) for n in candidate}
    except (TypeError, ValueError):
        return False
    return len(values) == LOTTO_PICK_COUNT and all(1 <= n <= LOTTO_MAX_NUM for n in values)


def _hit_rate(match_counts: list[int], tested: int, hit_threshold: int) -> float:
    if tested == 0:
        return 0.0
    return sum(match_counts[hit_threshold:]) / tested


def run_backtest(
    history: Sequence,
    recent_window: int | None = None,
    *,
    hit_threshold: int | None = None,
    rules: Sequence[Rule] | None = None,
    rng: np.random.Generator | None = None,
    max_rounds: int | None = None,
) -> list[BacktestStat]:
    """Replay the rule bank over the history, walk-forward.

    Args:
        history: Lotto draws (any order; sorted by round here).
        recent_window: Rounds counted towards the recent hit rate.
        hit_threshold: Matches needed for a round to count as a hit.
        rules: Rules to evaluate (defaults to the full bank).
        rng: Randomness source handed to every rule.
        max_rounds: Only evaluate the most recent N target rounds.

    Returns:
        One BacktestStat per rule, in ``rules`` order.
    """
    if recent_window is None:
        recent_window = settings.BACKTEST_RECENT_WINDOW
    if hit_threshold is None:
        hit_threshold = settings.BACKTEST_HIT_THRESHOLD
    if rules is None:
        rules = RULES
    if rng is None:
        rng = np.random.default_rng()

    draws = sort_history(history)
    numbers = number_lists(draws)

    tested = [0] * len(rules)
    match_counts = [[0] * (LOTTO_PICK_COUNT + 1) for _ in rules]
    recent_tested = [0] * len(rules)
    recent_match_counts = [[0] * (LOTTO_PICK_COUNT + 1) for _ in rules]
    failures = [0] * len(rules)

    if draws:
        latest_round = draws[-1].round
        start = 1
        if max_rounds is not None:
            start = max(1, len(draws) - max_rounds)

        logger.info(
            "[backtest] rules={} | rounds {}..{} | recent_window={}",
            len(rules), start, len(draws) - 1, recent_window,
        )

        for i in range(start, len(draws)):
            past = numbers[:i]
            actual = set(numbers[i])
            is_recent = draws[i].round > latest_round - recent_window

            for r_idx, rule in enumerate(rules):
                if len(past) < rule.min_history:
                    continue
                try:
                    candidate = rule(past, rng)
                except Exception as e:
                    failures[r_idx] += 1
                    logger.debug("[backtest] {} failed at round {}: {}", rule.name, draws[i].round, e)
                    continue
                if not is_valid_candidate(candidate):
                    failures[r_idx] += 1
                    logger.debug("[backtest] {} malformed candidate at round {}", rule.name, draws[i].round)
                    continue

                matches = len(actual & {int(n) for n in candidate})
                tested[r_idx] += 1
                match_counts[r_idx][matches] += 1
                if is_recent:
                    recent_tested[r_idx] += 1
                    recent_match_counts[r_idx][matches] += 1

    for r_idx, rule in enumerate(rules):
        if failures[r_idx]:
            logger.warning("[backtest] {} skipped on {} rounds", rule.name, failures[r_idx])

    baseline = random_hit_rate(hit_threshold)
    results = []
    for r_idx, rule in enumerate(rules):
        hit_rate = _hit_rate(match_counts[r_idx], tested[r_idx], hit_threshold)
        results.append(BacktestStat(
            name=rule.name,
            label=rule.label,
            min_history=rule.min_history,
            tested=tested[r_idx],
            match_counts=match_counts[r_idx],
            recent_tested=recent_tested[r_idx],
            recent_match_counts=recent_match_counts[r_idx],
            hit_rate=round(hit_rate, 4),
            recent_hit_rate=round(
                _hit_rate(recent_match_counts[r_idx], recent_tested[r_idx], hit_threshold), 4
            ),
            baseline_hit_rate=round(baseline, 4),
            lift=round(hit_rate / baseline, 4) if baseline > 0 else 0.0,
        ))
    return results
