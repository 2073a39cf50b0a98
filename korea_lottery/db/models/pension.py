"""연금복권 720+ ORM model."""

from datetime import date

from sqlalchemy import Date, Integer
from sqlalchemy.orm import Mapped, mapped_column

from korea_lottery.db.base import Base


class PensionDrawRecord(Base):
    """연금복권 720+ 당첨 기록: 조(1~5) + 6자리 숫자."""

    __tablename__ = "pension_draws"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    round: Mapped[int] = mapped_column(Integer, unique=True, nullable=False, index=True)
    draw_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    group_no: Mapped[int] = mapped_column(Integer, nullable=False)
    # Digit order matters: prizes are decided from the last position backwards
    digit_1: Mapped[int] = mapped_column(Integer, nullable=False)
    digit_2: Mapped[int] = mapped_column(Integer, nullable=False)
    digit_3: Mapped[int] = mapped_column(Integer, nullable=False)
    digit_4: Mapped[int] = mapped_column(Integer, nullable=False)
    digit_5: Mapped[int] = mapped_column(Integer, nullable=False)
    digit_6: Mapped[int] = mapped_column(Integer, nullable=False)

    def __repr__(self) -> str:
        return f"<PensionDrawRecord round={self.round} group={self.group_no}>"
