"""Heuristic rule bank: twenty candidate-generation formulas for Lotto 6/45.

Every rule follows the same pipeline: windowed aggregation over the history,
a category filter, then a fallback fill up to six numbers from the most
frequent recent numbers. Rules only see the history they are given; the
backtest harness relies on that to stay walk-forward.
"""

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass
from itertools import combinations

import numpy as np

from korea_lottery.analysis.aggregator import index_gap_table
from korea_lottery.analysis.draws import LOTTO_MAX_NUM, LOTTO_PICK_COUNT
from korea_lottery.errors import RuleEvaluationFailure

FILL_WINDOW = 50
UNSEEN_GAP = 999

PRIMES = frozenset({2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41, 43})
FIBONACCI = [1, 1, 2, 3, 5, 8, 13, 21, 34]
FIBONACCI_MOD = frozenset(
    v for v in ((FIBONACCI[i % len(FIBONACCI)] * (i + 1)) % LOTTO_MAX_NUM for i in range(30))
    if v >= 1
)
DECADE_BANDS = [(1, 9), (10, 19), (20, 29), (30, 39), (40, 45)]

History = list[list[int]]
Selector = Callable[[History, np.random.Generator], list[int]]


# --- Pipeline helpers ---

def recent(history: History, window: int | None) -> History:
    return history[-window:] if window else history


def count_numbers(draws: History, keep: Callable[[int], bool] | None = None) -> Counter:
    counter = Counter()
    for nums in draws:
        counter.update(n for n in nums if keep is None or keep(n))
    return counter


def ranked_by_frequency(
    history: History,
    window: int | None = None,
    *,
    keep: Callable[[int], bool] | None = None,
    min_count: int = 1,
) -> list[int]:
    """Numbers ranked by count within the window, most frequent first."""
    counter = count_numbers(recent(history, window), keep)
    return [n for n, c in counter.most_common() if c >= min_count]


def fill_to_six(candidates: list[int], history: History, rule: str = "") -> list[int]:
    """Top up a candidate list to exactly six sorted, distinct numbers.

    Remaining slots come from the most frequent numbers of the last 50 draws,
    then from the lowest unused numbers.
    """
    result: list[int] = []
    for n in candidates:
        n = int(n)
        if 1 <= n <= LOTTO_MAX_NUM and n not in result:
            result.append(n)
        if len(result) == LOTTO_PICK_COUNT:
            break

    fallback = ranked_by_frequency(history, FILL_WINDOW) + list(range(1, LOTTO_MAX_NUM + 1))
    for n in fallback:
        if len(result) >= LOTTO_PICK_COUNT:
            break
        if n not in result:
            result.append(n)

    if len(result) != LOTTO_PICK_COUNT:
        raise RuleEvaluationFailure(rule, "insufficient candidates")
    return sorted(result)


def _since_last(stat) -> int:
    return stat.consecutive_miss if stat.consecutive_miss is not None else UNSEEN_GAP


@dataclass(frozen=True)
class Rule:
    """One formula of the rule bank."""

    name: str
    label: str
    min_history: int
    select: Selector

    def __call__(self, history: History, rng: np.random.Generator | None = None) -> list[int]:
        if len(history) < self.min_history:
            raise RuleEvaluationFailure(
                self.name, f"needs {self.min_history} draws, got {len(history)}"
            )
        if rng is None:
            rng = np.random.default_rng()
        return fill_to_six(self.select(history, rng), history, rule=self.name)


# --- Formulas ---

def echo(history: History, rng) -> list[int]:
    """F1: numbers drawn at least twice in the last 5 draws."""
    return ranked_by_frequency(history, 5, min_count=2)


def sum_target(history: History, rng) -> list[int]:
    """F2: random 6-subset of recent top numbers whose sum is closest to the recent mean sum."""
    last10 = recent(history, 10)
    target = sum(sum(nums) for nums in last10) / len(last10)
    pool = np.array(ranked_by_frequency(history, 20)[:20])
    if len(pool) < LOTTO_PICK_COUNT:
        return pool.tolist()

    best: list[int] = []
    best_diff = float("inf")
    for _ in range(100):
        combo = rng.permutation(pool)[:LOTTO_PICK_COUNT]
        diff = abs(int(combo.sum()) - target)
        if diff < best_diff:
            best_diff = diff
            best = [int(n) for n in combo]
    return best


def gap_due(history: History, rng) -> list[int]:
    """F3: numbers whose absence is 0.9x-1.5x their average gap."""
    due = []
    for num, stat in index_gap_table(history).items():
        ratio = _since_last(stat) / stat.avg_gap
        if 0.9 <= ratio <= 1.5:
            due.append((abs(ratio - 1), num))
    return [num for _, num in sorted(due)]


def hot_streak(history: History, rng) -> list[int]:
    """F4: numbers drawn at least 3 times in the last 7 draws."""
    return ranked_by_frequency(history, 7, min_count=3)


def mirror(history: History, rng) -> list[int]:
    """F5: last draw reflected around its median."""
    last = sorted(history[-1])
    median = last[2]
    return [((n + median) % LOTTO_MAX_NUM) + 1 for n in last]


def band_rotation(history: History, rng) -> list[int]:
    """F6: the decade band drawn least in the last 10 draws."""
    counts = [0] * len(DECADE_BANDS)
    for nums in recent(history, 10):
        for n in nums:
            for i, (lo, hi) in enumerate(DECADE_BANDS):
                if lo <= n <= hi:
                    counts[i] += 1
                    break
    lo, hi = DECADE_BANDS[counts.index(min(counts))]
    return ranked_by_frequency(history, keep=lambda n: lo <= n <= hi)


def delta_projection(history: History, rng) -> list[int]:
    """F7: project the average per-slot delta of the last 3 draws."""
    deltas = [[] for _ in range(LOTTO_PICK_COUNT - 1)]
    for nums in recent(history, 3):
        s = sorted(nums)
        for i in range(LOTTO_PICK_COUNT - 1):
            deltas[i].append(s[i + 1] - s[i])

    avg_deltas = [int(np.floor(np.mean(d) + 0.5)) or 7 for d in deltas]

    result = [min(history[-1])]
    for step in avg_deltas:
        nxt = result[-1] + step
        if 1 <= nxt <= LOTTO_MAX_NUM and nxt not in result:
            result.append(nxt)
    return result


def fibonacci_filter(history: History, rng) -> list[int]:
    """F8: Fibonacci-modular numbers ranked by last-30 frequency."""
    return ranked_by_frequency(history, 30, keep=lambda n: n in FIBONACCI_MOD)


def pair_partners(history: History, rng) -> list[int]:
    """F9: partners of frequent pairs where only one side appeared recently."""
    pairs = Counter()
    for nums in history:
        pairs.update(combinations(sorted(nums), 2))

    recent_nums = set(count_numbers(recent(history, 10)))
    result = []
    for (a, b), _ in pairs.most_common(20):
        if a in recent_nums and b not in recent_nums:
            result.append(b)
        if b in recent_nums and a not in recent_nums:
            result.append(a)
    return result


def positional_frequency(history: History, rng) -> list[int]:
    """F10: most frequent number at each sorted position over the last 50 draws."""
    pos_freq = [Counter() for _ in range(LOTTO_PICK_COUNT)]
    for nums in recent(history, 50):
        for pos, n in enumerate(sorted(nums)):
            pos_freq[pos][n] += 1

    result = []
    for counter in pos_freq:
        for n, _ in counter.most_common():
            if n not in result:
                result.append(n)
                break
    return result


def hot_cold_mix(history: History, rng) -> list[int]:
    """F11: three hot numbers plus three numbers within 1x-2x of their average gap."""
    hot = ranked_by_frequency(history, 10)[:3]
    cold = [
        num for num, stat in sorted(
            index_gap_table(history).items(), key=lambda kv: -_since_last(kv[1])
        )
        if stat.avg_gap <= _since_last(stat) <= stat.avg_gap * 2
    ][:3]
    return hot + cold


def consecutive_pair(history: History, rng) -> list[int]:
    """F12: the most frequent consecutive pair plus recent top numbers."""
    consec = Counter()
    for nums in history:
        s = sorted(nums)
        consec.update((a, b) for a, b in zip(s, s[1:]) if b - a == 1)

    result = list(consec.most_common(1)[0][0]) if consec else []
    return result + ranked_by_frequency(history, 30)


def last_digit(history: History, rng) -> list[int]:
    """F13: numbers ending in the 4 most common recent last digits."""
    digits = Counter(n % 10 for nums in recent(history, 10) for n in nums)
    top = {d for d, _ in digits.most_common(4)}
    return ranked_by_frequency(history, keep=lambda n: n % 10 in top)


def moving_average_cross(history: History, rng) -> list[int]:
    """F14: numbers whose 5-draw rate exceeds their 20-draw rate."""
    freq5 = count_numbers(recent(history, 5))
    freq20 = count_numbers(recent(history, 20))
    bullish = []
    for num in range(1, LOTTO_MAX_NUM + 1):
        diff = freq5[num] / 5 - freq20[num] / 20
        if diff > 0:
            bullish.append((-diff, num))
    return [num for _, num in sorted(bullish)]


def boundary_neighbours(history: History, rng) -> list[int]:
    """F15: neighbours (+/-1) of the ten longest-absent numbers."""
    longest = sorted(
        index_gap_table(history).items(), key=lambda kv: -_since_last(kv[1])
    )[:10]
    result = []
    for num, _ in longest:
        if num > 1:
            result.append(num - 1)
        if num < LOTTO_MAX_NUM:
            result.append(num + 1)
    return result


def _digit_sum(n: int) -> int:
    return n // 10 + n % 10


def digit_sum(history: History, rng) -> list[int]:
    """F16: numbers whose digit sum is among the 5 most common recently."""
    sums = Counter(_digit_sum(n) for nums in recent(history, 20) for n in nums)
    top = {s for s, _ in sums.most_common(5)}
    return ranked_by_frequency(history, keep=lambda n: _digit_sum(n) in top)


def prime_balance(history: History, rng) -> list[int]:
    """F17: lean towards primes when they are over-represented recently, else away."""
    window = [n for nums in recent(history, 20) for n in nums]
    prime_rate = sum(1 for n in window if n in PRIMES) / len(window)
    favour_primes = prime_rate > len(PRIMES) / LOTTO_MAX_NUM

    candidates = ranked_by_frequency(history, 50)
    major = [n for n in candidates if (n in PRIMES) == favour_primes][:4]
    minor = [n for n in candidates if (n in PRIMES) != favour_primes]
    return major + minor[:LOTTO_PICK_COUNT - len(major)]


def _quadrant(n: int) -> int:
    return (n - 1) // 11


def quadrant_pattern(history: History, rng) -> list[int]:
    """F18: match the most common 5-quadrant distribution of the last 20 draws."""
    patterns = Counter()
    for nums in recent(history, 20):
        quads = [0] * 5
        for n in nums:
            quads[_quadrant(n)] += 1
        patterns[tuple(quads)] += 1
    if not patterns:
        return []

    target = patterns.most_common(1)[0][0]
    result = []
    for q, count in enumerate(target):
        for n in ranked_by_frequency(history, keep=lambda n, q=q: _quadrant(n) == q)[:count]:
            if n not in result:
                result.append(n)
    return result


def lag_correlation(history: History, rng) -> list[int]:
    """F19: numbers that most often follow the last draw's numbers one draw later."""
    lag1: dict[int, Counter] = {}
    for prev, curr in zip(history, history[1:]):
        for p in prev:
            lag1.setdefault(p, Counter()).update(curr)

    candidates = Counter()
    for n in history[-1]:
        candidates.update(lag1.get(n, Counter()))
    return [n for n, _ in candidates.most_common()]


def modulo_deficit(history: History, rng) -> list[int]:
    """F20: numbers in the most under-drawn residue class mod 3 or mod 5."""
    window = [n for nums in recent(history, 20) for n in nums]

    def most_deficient(m: int) -> int:
        counts = Counter(n % m for n in window)
        expected = len(window) / m
        return max(range(m), key=lambda r: (expected - counts[r], -r))

    mod3 = most_deficient(3)
    mod5 = most_deficient(5)
    return ranked_by_frequency(history, keep=lambda n: n % 3 == mod3 or n % 5 == mod5)


RULES: list[Rule] = [
    Rule("F1", "전회차 에코", 5, echo),
    Rule("F2", "합계 기반", 10, sum_target),
    Rule("F3", "갭 주기", 20, gap_due),
    Rule("F4", "핫 스트릭", 7, hot_streak),
    Rule("F5", "미러 넘버", 1, mirror),
    Rule("F6", "10단위 로테이션", 10, band_rotation),
    Rule("F7", "델타 패턴", 3, delta_projection),
    Rule("F8", "피보나치 필터", 30, fibonacci_filter),
    Rule("F9", "페어 빈도", 30, pair_partners),
    Rule("F10", "위치별 빈도", 50, positional_frequency),
    Rule("F11", "핫콜드 교대", 10, hot_cold_mix),
    Rule("F12", "연번 경향", 10, consecutive_pair),
    Rule("F13", "끝자리 패턴", 10, last_digit),
    Rule("F14", "이평 크로스", 20, moving_average_cross),
    Rule("F15", "경계 번호", 10, boundary_neighbours),
    Rule("F16", "자릿수 합", 10, digit_sum),
    Rule("F17", "소수 편향", 20, prime_balance),
    Rule("F18", "사분면 분석", 20, quadrant_pattern),
    Rule("F19", "래그 상관", 30, lag_correlation),
    Rule("F20", "나머지 패턴", 20, modulo_deficit),
]

RULES_BY_NAME = {r.name: r for r in RULES}
