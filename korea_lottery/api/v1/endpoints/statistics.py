"""Statistics API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from korea_lottery.analysis.draws import VALID_GAMES
from korea_lottery.api.deps import get_db
from korea_lottery.schemas.statistics import GapAnalysis, NumberFrequency
from korea_lottery.services import statistics_service as stats

router = APIRouter()


def _validate_game(game: str):
    if game not in VALID_GAMES:
        raise HTTPException(status_code=400, detail=f"Invalid game. Valid: {sorted(VALID_GAMES)}")


@router.get("/{game}/frequency", response_model=list[NumberFrequency])
async def frequency(
    game: str,
    window: int | None = Query(None, ge=1, description="최근 N회차만 집계"),
    db: AsyncSession = Depends(get_db),
):
    """번호 출현 빈도."""
    _validate_game(game)
    return await stats.get_frequency(db, game, window=window)


@router.get("/{game}/gaps", response_model=list[GapAnalysis])
async def gaps(
    game: str,
    db: AsyncSession = Depends(get_db),
):
    """번호별 미출현 회차 분석."""
    _validate_game(game)
    return await stats.get_gaps(db, game)
