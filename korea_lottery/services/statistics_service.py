"""Statistics service: frequency and gap tables per game."""

from sqlalchemy.ext.asyncio import AsyncSession

from korea_lottery.analysis.aggregator import (
    lotto_number_stats,
    pension_digit_stats,
    pension_group_stats,
)
from korea_lottery.schemas.analysis import FrequencyStat
from korea_lottery.schemas.statistics import GapAnalysis, NumberFrequency
from korea_lottery.services import lottery_service


def _game_stats(draws: list, game_type: str) -> list[FrequencyStat]:
    """Flat stats: lotto numbers, or pension groups followed by every digit position."""
    if game_type == "lotto":
        return lotto_number_stats(draws, min_history=0)
    stats = pension_group_stats(draws, min_history=0)
    for position in pension_digit_stats(draws, min_history=0):
        stats.extend(position)
    return stats


async def get_frequency(
    session: AsyncSession, game_type: str, window: int | None = None
) -> list[NumberFrequency]:
    """Get number frequency counts, most frequent first within each position."""
    draws = await lottery_service.load_history(session, game_type)
    if window:
        draws = draws[-window:]
    if not draws:
        return []

    total_draws = len(draws)
    result = [
        NumberFrequency(
            number=s.category,
            position=s.position,
            count=s.frequency,
            percentage=round(s.frequency / total_draws * 100, 2),
        )
        for s in _game_stats(draws, game_type)
    ]
    return sorted(result, key=lambda x: (x.position or 0, -x.count, x.number))


async def get_gaps(session: AsyncSession, game_type: str) -> list[GapAnalysis]:
    """Get gap analysis (미출현 회차) for each category, longest current gap first."""
    draws = await lottery_service.load_history(session, game_type)
    if not draws:
        return []

    result = [
        GapAnalysis(
            number=s.category,
            position=s.position,
            current_gap=s.consecutive_miss,
            average_gap=s.avg_gap,
            last_appeared_round=s.last_appeared_round,
        )
        for s in _game_stats(draws, game_type)
    ]
    # Never-drawn categories (no current gap) sort first
    return sorted(
        result,
        key=lambda x: (
            x.position or 0,
            -(x.current_gap if x.current_gap is not None else float("inf")),
            x.number,
        ),
    )
