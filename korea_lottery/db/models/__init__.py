"""ORM models package."""

from korea_lottery.db.models.lotto import LottoDrawRecord
from korea_lottery.db.models.pension import PensionDrawRecord

__all__ = [
    "LottoDrawRecord",
    "PensionDrawRecord",
]
