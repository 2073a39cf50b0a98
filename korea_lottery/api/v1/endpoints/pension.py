"""연금복권 720+ API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from korea_lottery.api.deps import get_analysis_cache, get_db
from korea_lottery.schemas.lottery import (
    IngestResponse,
    PensionAnalysisResponse,
    PensionDrawOut,
    PensionIngestRequest,
)
from korea_lottery.services import analysis_service, lottery_service
from korea_lottery.services.cache import AnalysisCache

router = APIRouter()


@router.get("/analysis", response_model=PensionAnalysisResponse)
async def analysis(
    round: int | None = Query(None, ge=1, le=10000, description="이 회차 직전까지의 데이터로 분석"),
    db: AsyncSession = Depends(get_db),
    cache: AnalysisCache = Depends(get_analysis_cache),
):
    """조 / 자리별 숫자 CDM 분석 및 추천 번호."""
    return await analysis_service.pension_analysis(db, cache, target_round=round)


@router.get("/history", response_model=list[PensionDrawOut])
async def history(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """최근 당첨 번호 (최신순)."""
    draws = await lottery_service.get_recent(db, "pension", limit)
    return [lottery_service.pension_draw_out(d) for d in draws]


@router.get("/draws/{round_no}", response_model=PensionDrawOut)
async def get_draw(round_no: int, db: AsyncSession = Depends(get_db)):
    draw = await lottery_service.get_draw(db, "pension", round_no)
    if not draw:
        raise HTTPException(status_code=404, detail=f"Round {round_no} not found")
    return lottery_service.pension_draw_out(draw)


@router.post("/draws", response_model=IngestResponse)
async def ingest(
    payload: PensionIngestRequest,
    db: AsyncSession = Depends(get_db),
    cache: AnalysisCache = Depends(get_analysis_cache),
):
    """당첨 번호 등록 (검증 후 upsert, 분석 캐시 무효화)."""
    return await lottery_service.ingest_pension(db, payload.draws, cache)
