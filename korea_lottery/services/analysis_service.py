"""Analysis service: loads history, runs the analyzers and shapes API responses."""

import numpy as np
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from korea_lottery.analysis.backtesting import run_backtest
from korea_lottery.analysis.draws import LOTTO_MAX_NUM
from korea_lottery.analysis.matching import match_lotto, match_pension
from korea_lottery.analysis.recommender import (
    EXPECTED_GAP,
    TREND_MIN_COUNT,
    TREND_WINDOW,
    analyze_lotto,
    analyze_pension,
)
from korea_lottery.config import settings
from korea_lottery.errors import InsufficientHistory
from korea_lottery.schemas.analysis import BacktestStat, LottoAnalysis, PensionAnalysis
from korea_lottery.schemas.lottery import (
    LottoAnalysisResponse,
    MatchInfo,
    PensionAnalysisResponse,
    PositionHotCold,
)
from korea_lottery.services import lottery_service
from korea_lottery.services.cache import AnalysisCache, AnalysisKey, history_fingerprint

RECENT_RESULT_COUNT = 3
HOT_COLD_COUNT = 3


def make_rng() -> np.random.Generator:
    return np.random.default_rng(settings.RANDOM_SEED)


def lotto_reasons(analysis: LottoAnalysis) -> dict[int, list[str]]:
    """Human-readable reasons for each ranked number."""
    total = sum(s.frequency for s in analysis.frequency_stats)
    avg_freq = total / LOTTO_MAX_NUM

    reasons: dict[int, list[str]] = {}
    for r in analysis.ranked_categories:
        items = []
        if r.frequency > avg_freq * 1.1:
            items.append(f"평균 이상 출현 ({r.frequency}회)")
        if r.consecutive_miss is not None and EXPECTED_GAP * 1.2 < r.consecutive_miss < EXPECTED_GAP * 3:
            items.append(f"출현 예정 ({r.consecutive_miss}회 미출현)")
        if r.recent_count >= TREND_MIN_COUNT:
            items.append(f"최근 활발 ({TREND_WINDOW}회차 내 {r.recent_count}회)")
        reasons[r.number] = items
    return reasons


def pension_hot_cold(analysis: PensionAnalysis) -> list[PositionHotCold]:
    """Top and bottom digits by posterior at each position."""
    return [
        PositionHotCold(
            position=i + 1,
            hot=[s.category for s in scores[:HOT_COLD_COUNT]],
            cold=[s.category for s in reversed(scores[-HOT_COLD_COUNT:])],
        )
        for i, scores in enumerate(analysis.digit_scores_by_position)
    ]


async def _load(session: AsyncSession, game: str, target_round: int | None) -> list:
    history = await lottery_service.load_history(session, game, before_round=target_round)
    if len(history) < settings.MIN_HISTORY:
        raise InsufficientHistory(settings.MIN_HISTORY, len(history))
    return history


async def lotto_analysis(
    session: AsyncSession,
    cache: AnalysisCache,
    *,
    target_round: int | None = None,
    recent_window: int | None = None,
) -> LottoAnalysisResponse:
    """Lotto analysis over draws before ``target_round`` (all draws when None)."""
    history = await _load(session, "lotto", target_round)

    key = AnalysisKey("lotto", target_round, history_fingerprint(history))
    analysis = cache.get(key) if recent_window is None else None
    cached = analysis is not None
    if analysis is None:
        analysis = await run_in_threadpool(
            analyze_lotto, history, rng=make_rng(), recent_window=recent_window,
        )
        if recent_window is None:
            cache.set(key, analysis)

    match_info = None
    if target_round is not None:
        actual = await lottery_service.get_draw(session, "lotto", target_round)
        if actual is not None:
            matches = match_lotto(actual, [s.numbers for s in analysis.recommended_sets])
            match_info = MatchInfo(
                target_round=target_round,
                actual_date=actual.date,
                actual_numbers=list(actual.numbers),
                actual_bonus=actual.bonus,
                set_matches=sorted(matches, key=lambda m: -m.match_count),
                best_match=max((m.match_count for m in matches), default=0),
            )

    return LottoAnalysisResponse(
        analysis=analysis,
        reasons=lotto_reasons(analysis),
        recent_results=[
            lottery_service.lotto_draw_out(d) for d in reversed(history[-RECENT_RESULT_COUNT:])
        ],
        match_info=match_info,
        target_round=target_round,
        is_historical=target_round is not None,
        cached=cached,
    )


async def lotto_backtest(
    session: AsyncSession, *, recent_window: int | None = None
) -> list[BacktestStat]:
    history = await lottery_service.load_history(session, "lotto")
    if len(history) < settings.MIN_HISTORY:
        raise InsufficientHistory(settings.MIN_HISTORY, len(history))
    logger.info("[analysis] lotto backtest over {} draws", len(history))
    return await run_in_threadpool(
        run_backtest,
        history,
        recent_window,
        rng=make_rng(),
        max_rounds=settings.BACKTEST_MAX_ROUNDS,
    )


async def pension_analysis(
    session: AsyncSession,
    cache: AnalysisCache,
    *,
    target_round: int | None = None,
) -> PensionAnalysisResponse:
    """Pension analysis over draws before ``target_round`` (all draws when None)."""
    history = await _load(session, "pension", target_round)

    key = AnalysisKey("pension", target_round, history_fingerprint(history))
    analysis = cache.get(key)
    cached = analysis is not None
    if analysis is None:
        analysis = await run_in_threadpool(analyze_pension, history, rng=make_rng())
        cache.set(key, analysis)

    match_info = None
    if target_round is not None:
        actual = await lottery_service.get_draw(session, "pension", target_round)
        if actual is not None:
            matches = match_pension(actual, [(s.group, s.numbers) for s in analysis.recommended_sets])
            match_info = MatchInfo(
                target_round=target_round,
                actual_date=actual.date,
                actual_numbers=list(actual.numbers),
                actual_group=actual.group,
                set_matches=sorted(matches, key=lambda m: -m.consecutive_from_end),
                best_match=max((m.consecutive_from_end for m in matches), default=0),
            )

    return PensionAnalysisResponse(
        analysis=analysis,
        hot_cold_digits=pension_hot_cold(analysis),
        recent_results=[
            lottery_service.pension_draw_out(d) for d in reversed(history[-RECENT_RESULT_COUNT:])
        ],
        match_info=match_info,
        target_round=target_round,
        is_historical=target_round is not None,
        cached=cached,
    )
