"""Set recommender: ranks categories and assembles recommended number sets.

Combines the aggregator, the CDM scorer and the backtested rule bank into
the two analysis entry points, ``analyze_lotto`` and ``analyze_pension``.
"""

from collections import Counter
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

import numpy as np
from loguru import logger

from korea_lottery.analysis.aggregator import (
    lotto_number_stats,
    pension_digit_stats,
    pension_group_stats,
)
from korea_lottery.analysis.backtesting import is_valid_candidate, run_backtest
from korea_lottery.analysis.cdm import alpha_sum, score_distribution, sort_scores
from korea_lottery.analysis.draws import (
    LOTTO_LOW_MAX,
    LOTTO_MAX_NUM,
    LOTTO_PICK_COUNT,
    PENSION_GROUPS,
    number_lists,
    sort_history,
)
from korea_lottery.analysis.rules import RULES, RULES_BY_NAME
from korea_lottery.config import settings
from korea_lottery.errors import ConstraintUnsatisfiable, InsufficientHistory
from korea_lottery.schemas.analysis import (
    BacktestStat,
    CDMScore,
    ConsensusNumber,
    FrequencyStat,
    LottoAnalysis,
    LottoPatterns,
    ModelInfo,
    PensionAnalysis,
    RankedCategory,
    RecommendedSet,
    RuleResult,
)

CDM_METHOD = "CDM (Compound-Dirichlet-Multinomial)"

TREND_WINDOW = 20
TREND_MIN_COUNT = 3
TREND_BONUS = 0.02
OVERDUE_BONUS = 0.05
EXPECTED_GAP = LOTTO_MAX_NUM / LOTTO_PICK_COUNT

DIVERSITY_ATTEMPTS = 10
WEIGHTED_RANDOM_ATTEMPTS = 50
PENSION_VARIANTS = 3
PENSION_RANDOM_SETS = 5
PENSION_GROUP_DRAWN = 5
PENSION_DIGIT_DRAWN = 1

BACKTEST_RECENT_PICKS = 5


@dataclass(frozen=True)
class Balance:
    """Inclusive target range for a count within one 6-number set."""

    minimum: int
    maximum: int

    def admits(self, count: int, remaining_slots: int) -> bool:
        return count <= self.maximum and self.minimum - count <= remaining_slots


DEFAULT_ODD = Balance(2, 4)
DEFAULT_LOW = Balance(2, 4)


def _is_odd(n: int) -> bool:
    return n % 2 == 1


def _is_low(n: int) -> bool:
    return n <= LOTTO_LOW_MAX


def build_balanced_set(
    candidates: Sequence[int],
    *,
    odd: Balance = DEFAULT_ODD,
    low: Balance = DEFAULT_LOW,
    must_include: Sequence[int] = (),
) -> list[int]:
    """Greedy walk over candidates keeping odd/low counts reachable.

    A candidate is admitted unless it would make the odd-count or low-count
    target impossible with the slots left.

    Raises:
        ConstraintUnsatisfiable: when six values cannot be reached.
    """
    selected: list[int] = []
    for n in must_include:
        if n not in selected:
            selected.append(n)

    odd_count = sum(1 for n in selected if _is_odd(n))
    low_count = sum(1 for n in selected if _is_low(n))
    remaining = LOTTO_PICK_COUNT - len(selected)
    if remaining < 0 or not odd.admits(odd_count, remaining) or not low.admits(low_count, remaining):
        raise ConstraintUnsatisfiable(f"required numbers {selected} break the balance targets")

    for n in candidates:
        if len(selected) >= LOTTO_PICK_COUNT:
            break
        if n in selected:
            continue
        next_odd = odd_count + _is_odd(n)
        next_low = low_count + _is_low(n)
        slots_after = LOTTO_PICK_COUNT - len(selected) - 1
        if not odd.admits(next_odd, slots_after) or not low.admits(next_low, slots_after):
            continue
        selected.append(n)
        odd_count, low_count = next_odd, next_low

    if len(selected) < LOTTO_PICK_COUNT:
        raise ConstraintUnsatisfiable(f"greedy walk stopped at {len(selected)} numbers")
    return sorted(selected)


def lotto_set_score(numbers: Sequence[int], predicted: dict[int, float]) -> float:
    """CDM predicted counts plus sum-range, odd/even and low/high bonuses."""
    score = sum(predicted.get(n, 0.0) * 100 for n in numbers)

    total = sum(numbers)
    if 115 <= total <= 160:
        score += 20

    odd_count = sum(1 for n in numbers if _is_odd(n))
    if odd_count == 3:
        score += 15
    elif odd_count in (2, 4):
        score += 10

    if sum(1 for n in numbers if _is_low(n)) == 3:
        score += 10

    return round(score, 2)


class SetCollector:
    """Accumulates candidate sets, dropping repeated combinations.

    Lotto sets are keyed order-independently; pension sets keep digit order
    and their group.
    """

    def __init__(self, ordered: bool = False):
        self.ordered = ordered
        self._seen: set[str] = set()
        self.items: list[tuple[list[int], float, str, int | None]] = []

    def key(self, numbers: Sequence[int], group: int | None = None) -> str:
        values = list(numbers) if self.ordered else sorted(numbers)
        joined = ",".join(str(n) for n in values)
        return f"{group}-{joined}" if group is not None else joined

    def add(self, numbers: Sequence[int], score: float, method: str, group: int | None = None) -> bool:
        k = self.key(numbers, group)
        if k in self._seen:
            return False
        self._seen.add(k)
        self.items.append((list(numbers), score, method, group))
        return True

    def ranked(self, limit: int | None = None) -> list[RecommendedSet]:
        ordered = sorted(self.items, key=lambda item: -item[1])
        if limit is not None:
            ordered = ordered[:limit]
        return [
            RecommendedSet(rank=i + 1, numbers=nums, score=score, method=method, group=group)
            for i, (nums, score, method, group) in enumerate(ordered)
        ]


# --- Lotto ---

def rank_lotto_numbers(
    stats: list[FrequencyStat],
    scores: list[CDMScore],
    history: list[list[int]],
) -> list[RankedCategory]:
    """All 45 numbers ranked by CDM predicted count plus trend/overdue bonuses."""
    recent_counts = Counter(n for nums in history[-TREND_WINDOW:] for n in nums)

    rows = []
    for stat, cdm in zip(stats, scores):
        recent_count = recent_counts[stat.category]
        score = cdm.predicted_count
        if recent_count >= TREND_MIN_COUNT:
            score += TREND_BONUS * recent_count
        miss = stat.consecutive_miss
        if miss is not None and EXPECTED_GAP * 1.2 < miss < EXPECTED_GAP * 3:
            score += OVERDUE_BONUS
        rows.append((round(score, 6), stat, cdm, recent_count))

    rows.sort(key=lambda r: (-r[0], r[1].category))
    return [
        RankedCategory(
            rank=i + 1,
            number=stat.category,
            score=score,
            posterior=cdm.posterior,
            predicted_count=cdm.predicted_count,
            frequency=stat.frequency,
            last_appeared_round=stat.last_appeared_round,
            consecutive_miss=stat.consecutive_miss,
            recent_count=recent_count,
        )
        for i, (score, stat, cdm, recent_count) in enumerate(rows)
    ]


def _try_add_balanced(collector: SetCollector, predicted, method: str, candidates, **constraints) -> None:
    try:
        nums = build_balanced_set(candidates, **constraints)
    except ConstraintUnsatisfiable as e:
        logger.debug("[recommend] {} dropped: {}", method, e)
        return
    collector.add(nums, lotto_set_score(nums, predicted), method)


def cdm_lotto_sets(
    ranked: list[RankedCategory],
    rng: np.random.Generator,
    set_count: int,
) -> SetCollector:
    """CDM-derived lotto sets: top, odd/even, overdue, Bayesian pairs, diversity, weighted random."""
    collector = SetCollector()
    predicted = {r.number: r.predicted_count for r in ranked}
    order = [r.number for r in ranked]

    _try_add_balanced(collector, predicted, "cdm_top", order)

    for odd_target in (2, 3, 4):
        _try_add_balanced(
            collector, predicted, f"cdm_odd_{odd_target}", order,
            odd=Balance(odd_target, odd_target),
        )

    overdue = sorted(
        (r for r in ranked if r.consecutive_miss is not None),
        key=lambda r: (-r.consecutive_miss, r.number),
    )[:3]
    for r in overdue:
        _try_add_balanced(collector, predicted, f"overdue_{r.number}", order, must_include=[r.number])

    by_posterior = [r.number for r in sorted(ranked, key=lambda r: (-r.posterior, r.number))]
    for i in range(3):
        pair = by_posterior[i * 2:i * 2 + 2]
        if len(pair) < 2:
            break
        _try_add_balanced(
            collector, predicted, f"bayesian_{pair[0]}_{pair[1]}", order, must_include=pair,
        )

    used = {n for nums, *_ in collector.items for n in nums}
    for i in range(DIVERSITY_ATTEMPTS):
        if len(collector.items) >= set_count:
            break
        # numbers not yet in any set go first, each group in rank order
        fresh_first = [n for n in order if n not in used] + [n for n in order if n in used]
        odd_target = 2 + i % 3
        method = f"cdm_diversity_{i + 1}"
        try:
            nums = build_balanced_set(fresh_first, odd=Balance(odd_target, odd_target))
        except ConstraintUnsatisfiable as e:
            logger.debug("[recommend] {} dropped: {}", method, e)
            continue
        if collector.add(nums, lotto_set_score(nums, predicted), method):
            used.update(nums)

    numbers = np.array([r.number for r in ranked])
    weights = np.array([r.posterior for r in ranked], dtype=np.float64)
    weights = weights / weights.sum()
    for _ in range(WEIGHTED_RANDOM_ATTEMPTS):
        if len(collector.items) >= set_count:
            break
        sample = sorted(int(n) for n in rng.choice(numbers, size=LOTTO_PICK_COUNT, replace=False, p=weights))
        odd_count = sum(1 for n in sample if _is_odd(n))
        low_count = sum(1 for n in sample if _is_low(n))
        if not DEFAULT_ODD.admits(odd_count, 0) or not DEFAULT_LOW.admits(low_count, 0):
            continue
        collector.add(sample, lotto_set_score(sample, predicted), "weighted_random")

    return collector


def backtest_rule_results(
    history: list[list[int]],
    backtest_stats: list[BacktestStat],
    rng: np.random.Generator,
) -> Iterator[RuleResult]:
    """Live candidates of the best rules: top by recent hit rate, then by all-time.

    Rules are evaluated lazily, so callers stop once they have enough new sets.
    """
    by_recent = sorted(
        (s for s in backtest_stats if s.recent_tested > 0), key=lambda s: -s.recent_hit_rate,
    )[:BACKTEST_RECENT_PICKS]
    by_all = sorted((s for s in backtest_stats if s.tested > 0), key=lambda s: -s.hit_rate)

    used: set[str] = set()
    for stat in [*by_recent, *by_all]:
        if stat.name in used:
            continue
        used.add(stat.name)

        rule = RULES_BY_NAME.get(stat.name)
        if rule is None or len(history) < rule.min_history:
            continue
        try:
            candidate = rule(history, rng)
        except Exception as e:
            logger.debug("[recommend] live {} failed: {}", stat.name, e)
            continue
        if not is_valid_candidate(candidate):
            continue

        yield RuleResult(
            rule=stat.name,
            label=stat.label,
            numbers=sorted(int(n) for n in candidate),
            hit_rate=stat.hit_rate,
            recent_hit_rate=stat.recent_hit_rate,
        )


def consensus_numbers(history: list[list[int]], rng: np.random.Generator) -> list[ConsensusNumber]:
    """How many rules currently pick each number."""
    counts = Counter()
    for rule in RULES:
        if len(history) < rule.min_history:
            continue
        try:
            candidate = rule(history, rng)
        except Exception as e:
            logger.debug("[consensus] {} failed: {}", rule.name, e)
            continue
        counts.update(candidate)
    return [
        ConsensusNumber(number=n, count=c)
        for n, c in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    ]


def lotto_patterns(history: list[list[int]]) -> LottoPatterns:
    """Sum range, most common odd:even and low:high ratios, consecutive-pair share."""
    sums = [sum(nums) for nums in history]
    odd_even = Counter()
    high_low = Counter()
    with_consecutive = 0

    for nums in history:
        odd_count = sum(1 for n in nums if _is_odd(n))
        low_count = sum(1 for n in nums if _is_low(n))
        odd_even[f"{odd_count}:{LOTTO_PICK_COUNT - odd_count}"] += 1
        high_low[f"{low_count}:{LOTTO_PICK_COUNT - low_count}"] += 1
        s = sorted(nums)
        if any(b - a == 1 for a, b in zip(s, s[1:])):
            with_consecutive += 1

    return LottoPatterns(
        sum_min=min(sums),
        sum_max=max(sums),
        sum_avg=round(sum(sums) / len(sums)),
        odd_even_most_common=odd_even.most_common(1)[0][0],
        high_low_most_common=high_low.most_common(1)[0][0],
        consecutive_pairs_percent=round(with_consecutive / len(history) * 100),
    )


def analyze_lotto(
    history: Sequence,
    *,
    rng: np.random.Generator | None = None,
    recent_window: int | None = None,
    run_backtests: bool = True,
) -> LottoAnalysis:
    """Full Lotto 6/45 analysis over draws strictly before the prediction target."""
    draws = sort_history(history)
    if len(draws) < settings.MIN_HISTORY:
        raise InsufficientHistory(settings.MIN_HISTORY, len(draws))
    if rng is None:
        rng = np.random.default_rng(settings.RANDOM_SEED)

    numbers = number_lists(draws)
    stats = lotto_number_stats(draws)
    scores = score_distribution(stats, len(draws), LOTTO_PICK_COUNT)
    ranked = rank_lotto_numbers(stats, scores, numbers)

    collector = cdm_lotto_sets(ranked, rng, settings.RECOMMENDED_SET_COUNT)
    cdm_sets = collector.ranked(settings.RECOMMENDED_SET_COUNT)

    backtest_stats: list[BacktestStat] = []
    if run_backtests and len(draws) >= settings.BACKTEST_MIN_HISTORY:
        backtest_stats = run_backtest(
            draws, recent_window, rng=rng, max_rounds=settings.BACKTEST_MAX_ROUNDS,
        )

    final = SetCollector()
    for s in cdm_sets:
        final.add(s.numbers, s.score, s.method)

    # backtest sets are scored like CDM sets
    predicted = {r.number: r.predicted_count for r in ranked}
    backtest_added = 0
    for result in backtest_rule_results(numbers, backtest_stats, rng):
        if backtest_added >= settings.BACKTEST_SET_COUNT:
            break
        if final.add(
            result.numbers,
            lotto_set_score(result.numbers, predicted),
            f"backtest:{result.rule} {result.label}",
        ):
            backtest_added += 1

    logger.info(
        "[analyze] lotto rounds={} latest={} sets={} backtested_rules={}",
        len(draws), draws[-1].round, len(final.items), len(backtest_stats),
    )

    return LottoAnalysis(
        ranked_categories=ranked[:settings.RANKED_CATEGORY_COUNT],
        recommended_sets=final.ranked(),
        cdm_scores=scores,
        frequency_stats=stats,
        backtest_stats=backtest_stats,
        consensus=consensus_numbers(numbers, rng),
        patterns=lotto_patterns(numbers),
        model_info=ModelInfo(
            total_rounds=len(draws),
            latest_round=draws[-1].round,
            method=CDM_METHOD,
            alpha_sum=round(alpha_sum(scores), 6),
        ),
    )


# --- Pension ---

def rank_pension_groups(
    stats: list[FrequencyStat], scores: list[CDMScore],
) -> list[RankedCategory]:
    rows = sorted(zip(stats, scores), key=lambda r: (-r[1].posterior, r[0].category))
    return [
        RankedCategory(
            rank=i + 1,
            number=stat.category,
            score=cdm.predicted_count,
            posterior=cdm.posterior,
            predicted_count=cdm.predicted_count,
            frequency=stat.frequency,
            last_appeared_round=stat.last_appeared_round,
            consecutive_miss=stat.consecutive_miss,
        )
        for i, (stat, cdm) in enumerate(rows)
    ]


def pension_sets(
    group_scores: list[CDMScore],
    digit_scores: list[list[CDMScore]],
    rng: np.random.Generator,
    set_count: int,
) -> list[RecommendedSet]:
    """Positional variants per group plus weighted-random digits for the top group.

    ``group_scores`` and every list of ``digit_scores`` must be sorted best first.
    """
    collector = SetCollector(ordered=True)

    def score_of(group_score: CDMScore, digits: list[int]) -> float:
        total = group_score.predicted_count * 10
        for pos, digit in enumerate(digits):
            posterior = next(s.posterior for s in digit_scores[pos] if s.category == digit)
            total += posterior * 10
        return round(total, 2)

    for gs in group_scores:
        for variant in range(PENSION_VARIANTS):
            digits = [
                ranked[min(variant, len(ranked) - 1)].category for ranked in digit_scores
            ]
            collector.add(digits, score_of(gs, digits), f"cdm_variant_{variant + 1}", group=gs.category)

    top_group = group_scores[0]
    for _ in range(PENSION_RANDOM_SETS):
        digits = []
        for ranked in digit_scores:
            weights = np.array([s.posterior for s in ranked], dtype=np.float64)
            idx = rng.choice(len(ranked), p=weights / weights.sum())
            digits.append(ranked[idx].category)
        collector.add(digits, score_of(top_group, digits), "weighted_random", group=top_group.category)

    return collector.ranked(set_count)


def analyze_pension(
    history: Sequence,
    *,
    rng: np.random.Generator | None = None,
) -> PensionAnalysis:
    """Pension Lottery 720+ analysis: group and per-position digit CDM scores."""
    draws = sort_history(history)
    if len(draws) < settings.MIN_HISTORY:
        raise InsufficientHistory(settings.MIN_HISTORY, len(draws))
    if rng is None:
        rng = np.random.default_rng(settings.RANDOM_SEED)

    n = len(draws)
    group_stats = pension_group_stats(draws)
    group_scores = score_distribution(group_stats, n, PENSION_GROUP_DRAWN)

    digit_scores = [
        sort_scores(score_distribution(position_stats, n, PENSION_DIGIT_DRAWN))
        for position_stats in pension_digit_stats(draws)
    ]

    ranked_groups = rank_pension_groups(group_stats, group_scores)
    sorted_groups = sort_scores(group_scores)

    logger.info("[analyze] pension rounds={} latest={}", n, draws[-1].round)

    return PensionAnalysis(
        ranked_categories=ranked_groups[:PENSION_GROUPS],
        group_scores=sorted_groups,
        digit_scores_by_position=digit_scores,
        recommended_sets=pension_sets(sorted_groups, digit_scores, rng, settings.RECOMMENDED_SET_COUNT),
        model_info=ModelInfo(
            total_rounds=n,
            latest_round=draws[-1].round,
            method=CDM_METHOD,
            alpha_sum=round(alpha_sum(group_scores), 6),
        ),
    )
