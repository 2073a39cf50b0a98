"""Prize matching of recommended sets against an actual draw."""

from collections.abc import Sequence

from pydantic import BaseModel

from korea_lottery.analysis.draws import LottoDraw, PensionDraw

LOTTO_PRIZES = {6: "1등", 5: "3등", 4: "4등", 3: "5등"}
LOTTO_SECOND_PRIZE = "2등"

PENSION_PRIZES = {
    6: "1등 (월 700만원 x 20년)",
    5: "2등 (월 100만원 x 10년)",
    4: "3등 (100만원)",
    3: "4등 (10만원)",
    2: "5등 (5만원)",
    1: "6등 (5천원)",
}
NO_PRIZE = "낙첨"


class SetMatch(BaseModel):
    numbers: list[int]
    matched: list[int]
    match_count: int
    bonus_matched: bool = False
    group_matched: bool | None = None
    consecutive_from_end: int | None = None
    prize: str


def lotto_prize(match_count: int, bonus_matched: bool) -> str:
    if match_count == 5 and bonus_matched:
        return LOTTO_SECOND_PRIZE
    return LOTTO_PRIZES.get(match_count, NO_PRIZE)


def match_lotto(actual: LottoDraw, sets: Sequence[Sequence[int]]) -> list[SetMatch]:
    """Matched numbers, bonus hit and prize rank for each 6-number set."""
    winning = set(actual.numbers)
    results = []
    for numbers in sets:
        matched = sorted(n for n in numbers if n in winning)
        bonus = actual.bonus in numbers
        results.append(SetMatch(
            numbers=list(numbers),
            matched=matched,
            match_count=len(matched),
            bonus_matched=bonus,
            prize=lotto_prize(len(matched), bonus),
        ))
    return results


def consecutive_from_end(actual: Sequence[int], guess: Sequence[int]) -> int:
    count = 0
    for a, g in zip(reversed(actual), reversed(guess)):
        if a != g:
            break
        count += 1
    return count


def match_pension(
    actual: PensionDraw, sets: Sequence[tuple[int | None, Sequence[int]]]
) -> list[SetMatch]:
    """Prize rank per (group, digits) set.

    Ranks follow the count of equal digits counted back from the last
    position. ``matched`` lists the 1-based positions that agree anywhere.
    """
    results = []
    for group, digits in sets:
        positions = [i + 1 for i, (a, g) in enumerate(zip(actual.numbers, digits)) if a == g]
        tail = consecutive_from_end(actual.numbers, digits)
        results.append(SetMatch(
            numbers=list(digits),
            matched=positions,
            match_count=len(positions),
            consecutive_from_end=tail,
            group_matched=None if group is None else group == actual.group,
            prize=PENSION_PRIZES.get(tail, NO_PRIZE),
        ))
    return results
