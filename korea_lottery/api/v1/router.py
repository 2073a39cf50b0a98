"""Aggregate API v1 router."""

from fastapi import APIRouter

from korea_lottery.api.v1.endpoints import (
    lotto,
    pension,
    statistics,
    status,
)

api_router = APIRouter()

api_router.include_router(lotto.router, prefix="/lotto", tags=["로또 6/45"])
api_router.include_router(pension.router, prefix="/pension", tags=["연금복권 720+"])
api_router.include_router(statistics.router, prefix="/stats", tags=["통계 분석"])
api_router.include_router(status.router, tags=["상태"])
