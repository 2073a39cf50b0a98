"""Service status endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from korea_lottery.api.deps import get_analysis_cache, get_db
from korea_lottery.schemas.lottery import StatusResponse
from korea_lottery.services import lottery_service
from korea_lottery.services.cache import AnalysisCache

router = APIRouter()


@router.get("/status", response_model=StatusResponse)
async def status(
    db: AsyncSession = Depends(get_db),
    cache: AnalysisCache = Depends(get_analysis_cache),
):
    """저장된 회차 수, 최신 회차, 캐시 항목 수."""
    lotto_count, lotto_latest = await lottery_service.get_summary(db, "lotto")
    pension_count, pension_latest = await lottery_service.get_summary(db, "pension")
    return StatusResponse(
        lotto_draws=lotto_count,
        lotto_latest_round=lotto_latest,
        pension_draws=pension_count,
        pension_latest_round=pension_latest,
        cache_entries=len(cache),
    )
