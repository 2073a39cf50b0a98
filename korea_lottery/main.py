"""FastAPI application entry point."""

import sys
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from korea_lottery.config import settings
from korea_lottery.errors import InsufficientHistory, InvalidDrawRecord
from korea_lottery.services.cache import AnalysisCache

# Configure loguru
logger.remove()
logger.add(sys.stderr, level="DEBUG" if settings.DEBUG else "INFO")
Path("logs").mkdir(exist_ok=True)
logger.add("logs/app.log", rotation="10 MB", retention="7 days", level="INFO")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    logger.info("Starting {} ...", settings.APP_NAME)

    yield

    from korea_lottery.db.engine import engine
    await engine.dispose()
    logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="로또 6/45 · 연금복권 720+ 통계 분석 및 번호 추천",
    lifespan=lifespan,
)
app.state.analysis_cache = AnalysisCache(settings.ANALYSIS_CACHE_TTL_SECONDS)


@app.exception_handler(InsufficientHistory)
async def insufficient_history_handler(request: Request, exc: InsufficientHistory):
    logger.info("{} {}: {}", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=400,
        content={
            "detail": f"데이터가 충분하지 않습니다. (최소 {exc.required}회차 필요, 현재 {exc.actual}회차)",
        },
    )


@app.exception_handler(InvalidDrawRecord)
async def invalid_draw_handler(request: Request, exc: InvalidDrawRecord):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# Include API routers
from korea_lottery.api.v1.router import api_router  # noqa: E402
app.include_router(api_router, prefix="/api/v1")
