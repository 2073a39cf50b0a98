"""로또 6/45 ORM model."""

from datetime import date

from sqlalchemy import ARRAY, BigInteger, Date, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column

from korea_lottery.db.base import Base


class LottoDrawRecord(Base):
    """로또 6/45 당첨 기록: 45개 번호 중 6개 + 보너스 1개."""

    __tablename__ = "lotto_draws"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    round: Mapped[int] = mapped_column(Integer, unique=True, nullable=False, index=True)
    draw_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    num_1: Mapped[int] = mapped_column(Integer, nullable=False)
    num_2: Mapped[int] = mapped_column(Integer, nullable=False)
    num_3: Mapped[int] = mapped_column(Integer, nullable=False)
    num_4: Mapped[int] = mapped_column(Integer, nullable=False)
    num_5: Mapped[int] = mapped_column(Integer, nullable=False)
    num_6: Mapped[int] = mapped_column(Integer, nullable=False)
    bonus: Mapped[int] = mapped_column(Integer, nullable=False)

    first_prize: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    first_winners: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Sorted array for query convenience
    numbers_sorted: Mapped[list[int]] = mapped_column(ARRAY(Integer), nullable=False)

    __table_args__ = (
        Index("ix_lotto_numbers_sorted", "numbers_sorted", postgresql_using="gin"),
    )

    def __repr__(self) -> str:
        return f"<LottoDrawRecord round={self.round} numbers={self.numbers_sorted}>"
