"""Frequency / gap aggregation over draw history."""

from korea_lottery.analysis.draws import (
    LOTTO_MAX_NUM,
    PENSION_DIGITS,
    PENSION_DIGIT_VALUES,
    PENSION_GROUPS,
)
from korea_lottery.config import settings
from korea_lottery.errors import InsufficientHistory
from korea_lottery.schemas.analysis import FrequencyStat

DEFAULT_AVG_GAP = 7.0


def aggregate(
    sequences: list[list[int]],
    rounds: list[int],
    categories: range | list[int],
    *,
    position: int | None = None,
    min_history: int | None = None,
) -> list[FrequencyStat]:
    """Count appearances and gaps for each category in one linear pass.

    Args:
        sequences: Per-draw category lists, chronological.
        rounds: Round number of each draw (same length as ``sequences``).
        categories: All categories of the distribution, including unseen ones.
        position: Pension digit position tagged onto the stats.
        min_history: Minimum draw count; defaults to ``settings.MIN_HISTORY``.

    Returns:
        One FrequencyStat per category, in ``categories`` order.
    """
    if min_history is None:
        min_history = settings.MIN_HISTORY
    if len(sequences) < min_history:
        raise InsufficientHistory(min_history, len(sequences))

    counts = {c: 0 for c in categories}
    last_round: dict[int, int] = {}
    appearances: dict[int, list[int]] = {c: [] for c in categories}

    for idx, (values, rnd) in enumerate(zip(sequences, rounds)):
        for v in values:
            if v not in counts:
                continue
            counts[v] += 1
            last_round[v] = rnd
            appearances[v].append(idx)

    latest_round = rounds[len(sequences) - 1] if sequences else None

    result = []
    for c in categories:
        app = appearances[c]
        if len(app) > 1:
            avg_gap = (app[-1] - app[0]) / (len(app) - 1)
        else:
            avg_gap = DEFAULT_AVG_GAP

        last = last_round.get(c)
        miss = latest_round - last if last is not None else None

        result.append(FrequencyStat(
            category=c,
            position=position,
            frequency=counts[c],
            last_appeared_round=last,
            consecutive_miss=miss,
            avg_gap=round(avg_gap, 4),
        ))
    return result


def lotto_number_stats(draws, min_history: int | None = None) -> list[FrequencyStat]:
    """FrequencyStat for each lotto number 1..45 (bonus excluded)."""
    return aggregate(
        [list(d.numbers) for d in draws],
        [d.round for d in draws],
        range(1, LOTTO_MAX_NUM + 1),
        min_history=min_history,
    )


def pension_group_stats(draws, min_history: int | None = None) -> list[FrequencyStat]:
    """FrequencyStat for each pension group 1..5."""
    return aggregate(
        [[d.group] for d in draws],
        [d.round for d in draws],
        range(1, PENSION_GROUPS + 1),
        min_history=min_history,
    )


def pension_digit_stats(draws, min_history: int | None = None) -> list[list[FrequencyStat]]:
    """FrequencyStat for digits 0..9 at each of the six positions."""
    rounds = [d.round for d in draws]
    return [
        aggregate(
            [[d.numbers[pos]] for d in draws],
            rounds,
            range(PENSION_DIGIT_VALUES),
            position=pos + 1,
            min_history=min_history,
        )
        for pos in range(PENSION_DIGITS)
    ]


def index_gap_table(history: list[list[int]]) -> dict[int, FrequencyStat]:
    """Gap stats keyed by lotto number, using draw indices as rounds."""
    stats = aggregate(
        history,
        list(range(len(history))),
        range(1, LOTTO_MAX_NUM + 1),
        min_history=0,
    )
    return {s.category: s for s in stats}
