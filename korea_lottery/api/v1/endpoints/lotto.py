"""로또 6/45 API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from korea_lottery.api.deps import get_analysis_cache, get_db
from korea_lottery.schemas.analysis import BacktestStat
from korea_lottery.schemas.lottery import (
    IngestResponse,
    LottoAnalysisResponse,
    LottoDrawOut,
    LottoIngestRequest,
)
from korea_lottery.services import analysis_service, lottery_service
from korea_lottery.services.cache import AnalysisCache

router = APIRouter()


@router.get("/analysis", response_model=LottoAnalysisResponse)
async def analysis(
    round: int | None = Query(None, ge=1, le=10000, description="이 회차 직전까지의 데이터로 분석"),
    recent_window: int | None = Query(None, ge=1, le=1000, description="최근 적중률 회차 수 (캐시 미사용)"),
    db: AsyncSession = Depends(get_db),
    cache: AnalysisCache = Depends(get_analysis_cache),
):
    """CDM 분석 + 공식 백테스트 기반 추천 번호."""
    return await analysis_service.lotto_analysis(
        db, cache, target_round=round, recent_window=recent_window,
    )


@router.get("/backtest", response_model=list[BacktestStat])
async def backtest(
    recent_window: int | None = Query(None, ge=1, le=1000, description="최근 적중률 계산 회차 수"),
    db: AsyncSession = Depends(get_db),
):
    """20개 공식의 과거 회차 백테스트 결과."""
    return await analysis_service.lotto_backtest(db, recent_window=recent_window)


@router.get("/history", response_model=list[LottoDrawOut])
async def history(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """최근 당첨 번호 (최신순)."""
    draws = await lottery_service.get_recent(db, "lotto", limit)
    return [lottery_service.lotto_draw_out(d) for d in draws]


@router.get("/draws/{round_no}", response_model=LottoDrawOut)
async def get_draw(round_no: int, db: AsyncSession = Depends(get_db)):
    """회차별 당첨 번호."""
    draw = await lottery_service.get_draw(db, "lotto", round_no)
    if not draw:
        raise HTTPException(status_code=404, detail=f"Round {round_no} not found")
    return lottery_service.lotto_draw_out(draw)


@router.post("/draws", response_model=IngestResponse)
async def ingest(
    payload: LottoIngestRequest,
    db: AsyncSession = Depends(get_db),
    cache: AnalysisCache = Depends(get_analysis_cache),
):
    """당첨 번호 등록 (검증 후 upsert, 분석 캐시 무효화)."""
    return await lottery_service.ingest_lotto(db, payload.draws, cache)
