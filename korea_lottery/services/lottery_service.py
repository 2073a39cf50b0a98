"""Lottery service: draw retrieval and ingestion."""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from korea_lottery.analysis.draws import VALID_GAMES, LottoDraw, PensionDraw, sort_history
from korea_lottery.db.crud import lotto, pension
from korea_lottery.db.models import LottoDrawRecord, PensionDrawRecord
from korea_lottery.errors import InvalidDrawRecord
from korea_lottery.schemas.lottery import (
    IngestResponse,
    LottoDrawIn,
    LottoDrawOut,
    PensionDrawIn,
    PensionDrawOut,
)
from korea_lottery.services.cache import AnalysisCache

GAME_CRUD = {
    "lotto": lotto,
    "pension": pension,
}


def get_crud(game_type: str):
    """Get the CRUD module for a game type."""
    if game_type not in GAME_CRUD:
        raise ValueError(f"Unknown game type: {game_type}. Valid: {VALID_GAMES}")
    return GAME_CRUD[game_type]


# --- Conversions ---

def lotto_record_to_draw(record: LottoDrawRecord) -> LottoDraw:
    return LottoDraw(
        round=record.round,
        date=record.draw_date,
        numbers=(record.num_1, record.num_2, record.num_3, record.num_4, record.num_5, record.num_6),
        bonus=record.bonus,
        first_prize=record.first_prize or 0,
        first_winners=record.first_winners or 0,
    )


def pension_record_to_draw(record: PensionDrawRecord) -> PensionDraw:
    return PensionDraw(
        round=record.round,
        date=record.draw_date,
        group=record.group_no,
        numbers=(
            record.digit_1, record.digit_2, record.digit_3,
            record.digit_4, record.digit_5, record.digit_6,
        ),
    )


RECORD_TO_DRAW = {
    "lotto": lotto_record_to_draw,
    "pension": pension_record_to_draw,
}


def lotto_draw_out(draw: LottoDraw) -> LottoDrawOut:
    return LottoDrawOut(
        round=draw.round,
        draw_date=draw.date,
        numbers=list(draw.numbers),
        bonus=draw.bonus,
        first_prize=draw.first_prize,
        first_winners=draw.first_winners,
    )


def pension_draw_out(draw: PensionDraw) -> PensionDrawOut:
    return PensionDrawOut(
        round=draw.round,
        draw_date=draw.date,
        group=draw.group,
        numbers=list(draw.numbers),
    )


def lotto_row(draw: LottoDraw, drawn_order: list[int] | None = None) -> dict:
    """Column values for ``lotto_draws``; ``drawn_order`` keeps the announced order."""
    order = drawn_order or list(draw.numbers)
    return {
        "round": draw.round,
        "draw_date": draw.date,
        **{f"num_{i + 1}": n for i, n in enumerate(order)},
        "bonus": draw.bonus,
        "first_prize": draw.first_prize,
        "first_winners": draw.first_winners,
        "numbers_sorted": list(draw.numbers),
    }


def pension_row(draw: PensionDraw) -> dict:
    return {
        "round": draw.round,
        "draw_date": draw.date,
        "group_no": draw.group,
        **{f"digit_{i + 1}": d for i, d in enumerate(draw.numbers)},
    }


# --- Payload validation ---

def parse_lotto_payload(items: list[LottoDrawIn]) -> list[LottoDraw]:
    """Validate incoming lotto draws.

    Raises:
        InvalidDrawRecord: on the first invalid record or a repeated round.
    """
    draws = [
        LottoDraw(
            round=item.round,
            date=item.draw_date,
            numbers=tuple(item.numbers),
            bonus=item.bonus,
            first_prize=item.first_prize,
            first_winners=item.first_winners,
        )
        for item in items
    ]
    return sort_history(draws)


def parse_pension_payload(items: list[PensionDrawIn]) -> list[PensionDraw]:
    """Validate incoming pension draws.

    Raises:
        InvalidDrawRecord: on the first invalid record or a repeated round.
    """
    draws = [
        PensionDraw(
            round=item.round,
            date=item.draw_date,
            group=item.group,
            numbers=tuple(item.numbers),
        )
        for item in items
    ]
    return sort_history(draws)


# --- Retrieval ---

async def load_history(
    session: AsyncSession, game_type: str, *, before_round: int | None = None
) -> list:
    """Draw records ascending by round, optionally only those before ``before_round``."""
    records = await get_crud(game_type).list_draws(session, before_round=before_round)
    convert = RECORD_TO_DRAW[game_type]
    return [convert(r) for r in records]


async def get_draw(session: AsyncSession, game_type: str, round_no: int):
    record = await get_crud(game_type).get_by_round(session, round_no)
    if record is None:
        return None
    return RECORD_TO_DRAW[game_type](record)


async def get_recent(session: AsyncSession, game_type: str, limit: int = 10) -> list:
    """Newest first."""
    records = await get_crud(game_type).get_recent(session, limit)
    convert = RECORD_TO_DRAW[game_type]
    return [convert(r) for r in records]


async def get_summary(session: AsyncSession, game_type: str) -> tuple[int, int | None]:
    """(draw count, latest round) for a game."""
    crud_module = get_crud(game_type)
    total = await crud_module.count(session)
    latest = await crud_module.get_latest(session)
    return total, latest.round if latest else None


# --- Ingestion ---

async def ingest_lotto(
    session: AsyncSession, items: list[LottoDrawIn], cache: AnalysisCache
) -> IngestResponse:
    """Validate, upsert and invalidate cached lotto analyses.

    Nothing is written when any record is invalid.
    """
    try:
        draws = parse_lotto_payload(items)
    except InvalidDrawRecord as e:
        logger.warning("[ingest] lotto payload rejected: {}", e)
        raise

    drawn_order = {item.round: list(item.numbers) for item in items}
    rows = [lotto_row(d, drawn_order[d.round]) for d in draws]
    written = await get_crud("lotto").bulk_upsert(session, rows)
    invalidated = cache.invalidate("lotto")

    logger.info("[ingest] lotto received={} written={}", len(items), written)
    return IngestResponse(
        game="lotto", received=len(items), written=written, cache_invalidated=invalidated,
    )


async def ingest_pension(
    session: AsyncSession, items: list[PensionDrawIn], cache: AnalysisCache
) -> IngestResponse:
    """Validate, upsert and invalidate cached pension analyses.

    Nothing is written when any record is invalid.
    """
    try:
        draws = parse_pension_payload(items)
    except InvalidDrawRecord as e:
        logger.warning("[ingest] pension payload rejected: {}", e)
        raise

    written = await get_crud("pension").bulk_upsert(session, [pension_row(d) for d in draws])
    invalidated = cache.invalidate("pension")

    logger.info("[ingest] pension received={} written={}", len(items), written)
    return IngestResponse(
        game="pension", received=len(items), written=written, cache_invalidated=invalidated,
    )
