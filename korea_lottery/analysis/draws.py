"""Draw records for Lotto 6/45 and Pension Lottery 720+.

Records are validated on construction so malformed rows never reach the
aggregation pipeline.
"""

import numbers as _numbers
from dataclasses import dataclass
from datetime import date

from korea_lottery.errors import InvalidDrawRecord

# Game configuration
LOTTO_MAX_NUM = 45
LOTTO_PICK_COUNT = 6
LOTTO_LOW_MAX = 22  # 1-22 low, 23-45 high

PENSION_GROUPS = 5
PENSION_DIGITS = 6
PENSION_DIGIT_VALUES = 10

VALID_GAMES = {"lotto", "pension"}


def _is_integer(value) -> bool:
    return isinstance(value, _numbers.Integral) and not isinstance(value, bool)


def _check_round(value) -> None:
    if not _is_integer(value) or value < 1:
        raise InvalidDrawRecord(f"round must be a positive integer, got {value!r}")


@dataclass(frozen=True)
class LottoDraw:
    """로또 6/45 당첨 결과: six distinct numbers from 1..45 plus a bonus number."""

    round: int
    date: date | None
    numbers: tuple[int, ...]
    bonus: int
    first_prize: int = 0
    first_winners: int = 0

    def __post_init__(self):
        _check_round(self.round)
        try:
            raw = tuple(self.numbers)
        except TypeError as e:
            raise InvalidDrawRecord(f"round {self.round}: numbers must be a sequence") from e
        if not all(_is_integer(n) for n in raw):
            raise InvalidDrawRecord(f"round {self.round}: numbers must be integers, got {list(raw)}")
        numbers = tuple(int(n) for n in raw)

        if len(numbers) != LOTTO_PICK_COUNT:
            raise InvalidDrawRecord(
                f"round {self.round}: expected {LOTTO_PICK_COUNT} numbers, got {len(numbers)}"
            )
        if len(set(numbers)) != LOTTO_PICK_COUNT:
            raise InvalidDrawRecord(f"round {self.round}: duplicate numbers {list(numbers)}")
        if any(n < 1 or n > LOTTO_MAX_NUM for n in numbers):
            raise InvalidDrawRecord(
                f"round {self.round}: numbers must be within 1..{LOTTO_MAX_NUM}, got {list(numbers)}"
            )
        if not _is_integer(self.bonus):
            raise InvalidDrawRecord(f"round {self.round}: bonus must be an integer, got {self.bonus!r}")
        if not 1 <= self.bonus <= LOTTO_MAX_NUM:
            raise InvalidDrawRecord(f"round {self.round}: bonus {self.bonus} out of range")
        if self.bonus in numbers:
            raise InvalidDrawRecord(f"round {self.round}: bonus {self.bonus} repeats a main number")
        if self.first_prize < 0 or self.first_winners < 0:
            raise InvalidDrawRecord(f"round {self.round}: prize fields must be non-negative")

        object.__setattr__(self, "bonus", int(self.bonus))
        object.__setattr__(self, "numbers", tuple(sorted(numbers)))


@dataclass(frozen=True)
class PensionDraw:
    """연금복권 720+ 당첨 결과: a group (1..5) and six positional digits."""

    round: int
    date: date | None
    group: int
    numbers: tuple[int, ...]

    def __post_init__(self):
        _check_round(self.round)
        if not _is_integer(self.group) or not 1 <= self.group <= PENSION_GROUPS:
            raise InvalidDrawRecord(
                f"round {self.round}: group must be within 1..{PENSION_GROUPS}, got {self.group}"
            )
        digits = tuple(self.numbers)
        if len(digits) != PENSION_DIGITS:
            raise InvalidDrawRecord(
                f"round {self.round}: expected {PENSION_DIGITS} digits, got {len(digits)}"
            )
        if any(not _is_integer(d) or d < 0 or d >= PENSION_DIGIT_VALUES for d in digits):
            raise InvalidDrawRecord(f"round {self.round}: digits must be within 0..9, got {list(digits)}")

        object.__setattr__(self, "group", int(self.group))
        object.__setattr__(self, "numbers", tuple(int(d) for d in digits))


def sort_history(draws):
    """Return draws ascending by round, rejecting duplicate rounds."""
    ordered = sorted(draws, key=lambda d: d.round)
    for prev, curr in zip(ordered, ordered[1:]):
        if prev.round == curr.round:
            raise InvalidDrawRecord(f"duplicate round {curr.round} in history")
    return ordered


def number_lists(draws) -> list[list[int]]:
    """Extract number lists from draws (chronological order preserved)."""
    return [list(d.numbers) for d in draws]
