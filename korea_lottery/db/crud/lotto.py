"""CRUD operations for 로또 6/45."""

from sqlalchemy import desc, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from korea_lottery.db.models.lotto import LottoDrawRecord

UPDATABLE_COLUMNS = (
    "draw_date",
    "num_1", "num_2", "num_3", "num_4", "num_5", "num_6",
    "bonus", "first_prize", "first_winners", "numbers_sorted",
)


async def get_latest(session: AsyncSession) -> LottoDrawRecord | None:
    result = await session.execute(
        select(LottoDrawRecord).order_by(desc(LottoDrawRecord.round)).limit(1)
    )
    return result.scalar_one_or_none()


async def get_by_round(session: AsyncSession, round_no: int) -> LottoDrawRecord | None:
    result = await session.execute(
        select(LottoDrawRecord).where(LottoDrawRecord.round == round_no)
    )
    return result.scalar_one_or_none()


async def list_draws(
    session: AsyncSession, *, before_round: int | None = None
) -> list[LottoDrawRecord]:
    """All draws ascending by round, optionally only those before ``before_round``."""
    query = select(LottoDrawRecord)
    if before_round is not None:
        query = query.where(LottoDrawRecord.round < before_round)
    result = await session.execute(query.order_by(LottoDrawRecord.round))
    return list(result.scalars().all())


async def get_recent(session: AsyncSession, limit: int = 10) -> list[LottoDrawRecord]:
    """Newest first."""
    result = await session.execute(
        select(LottoDrawRecord).order_by(desc(LottoDrawRecord.round)).limit(limit)
    )
    return list(result.scalars().all())


async def count(session: AsyncSession) -> int:
    return (await session.execute(select(func.count(LottoDrawRecord.id)))).scalar() or 0


async def upsert(session: AsyncSession, draw: dict) -> bool:
    """Insert a draw or overwrite the stored row of the same round."""
    stmt = insert(LottoDrawRecord).values(**draw)
    stmt = stmt.on_conflict_do_update(
        index_elements=["round"],
        set_={col: stmt.excluded[col] for col in UPDATABLE_COLUMNS if col in draw},
    )
    result = await session.execute(stmt)
    return result.rowcount > 0


async def bulk_upsert(session: AsyncSession, draws: list[dict]) -> int:
    """Upsert draws one by one. Returns number of rows written."""
    if not draws:
        return 0
    written = 0
    for draw in draws:
        if await upsert(session, draw):
            written += 1
    return written
