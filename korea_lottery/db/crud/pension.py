"""CRUD operations for 연금복권 720+."""

from sqlalchemy import desc, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from korea_lottery.db.models.pension import PensionDrawRecord

UPDATABLE_COLUMNS = (
    "draw_date",
    "group_no",
    "digit_1", "digit_2", "digit_3", "digit_4", "digit_5", "digit_6",
)


async def get_latest(session: AsyncSession) -> PensionDrawRecord | None:
    result = await session.execute(
        select(PensionDrawRecord).order_by(desc(PensionDrawRecord.round)).limit(1)
    )
    return result.scalar_one_or_none()


async def get_by_round(session: AsyncSession, round_no: int) -> PensionDrawRecord | None:
    result = await session.execute(
        select(PensionDrawRecord).where(PensionDrawRecord.round == round_no)
    )
    return result.scalar_one_or_none()


async def list_draws(
    session: AsyncSession, *, before_round: int | None = None
) -> list[PensionDrawRecord]:
    """All draws ascending by round, optionally only those before ``before_round``."""
    query = select(PensionDrawRecord)
    if before_round is not None:
        query = query.where(PensionDrawRecord.round < before_round)
    result = await session.execute(query.order_by(PensionDrawRecord.round))
    return list(result.scalars().all())


async def get_recent(session: AsyncSession, limit: int = 10) -> list[PensionDrawRecord]:
    """Newest first."""
    result = await session.execute(
        select(PensionDrawRecord).order_by(desc(PensionDrawRecord.round)).limit(limit)
    )
    return list(result.scalars().all())


async def count(session: AsyncSession) -> int:
    return (await session.execute(select(func.count(PensionDrawRecord.id)))).scalar() or 0


async def upsert(session: AsyncSession, draw: dict) -> bool:
    """Insert a draw or overwrite the stored row of the same round."""
    stmt = insert(PensionDrawRecord).values(**draw)
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
