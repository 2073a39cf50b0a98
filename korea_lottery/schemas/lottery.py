"""Pydantic schemas for draw records and API responses."""

from datetime import date

from pydantic import BaseModel, Field

from korea_lottery.analysis.matching import SetMatch
from korea_lottery.schemas.analysis import LottoAnalysis, PensionAnalysis


# --- Lotto 6/45 (로또) ---

class LottoDrawIn(BaseModel):
    round: int
    draw_date: date | None = None
    numbers: list[int]
    bonus: int
    first_prize: int = 0
    first_winners: int = 0


class LottoDrawOut(BaseModel):
    model_config = {"from_attributes": True}

    round: int
    draw_date: date | None
    numbers: list[int]
    bonus: int
    first_prize: int
    first_winners: int


class LottoIngestRequest(BaseModel):
    draws: list[LottoDrawIn] = Field(min_length=1)


# --- Pension 720+ (연금복권) ---

class PensionDrawIn(BaseModel):
    round: int
    draw_date: date | None = None
    group: int
    numbers: list[int]


class PensionDrawOut(BaseModel):
    model_config = {"from_attributes": True}

    round: int
    draw_date: date | None
    group: int
    numbers: list[int]


class PensionIngestRequest(BaseModel):
    draws: list[PensionDrawIn] = Field(min_length=1)


class IngestResponse(BaseModel):
    game: str
    received: int
    written: int
    cache_invalidated: int


# --- Analysis responses ---

class MatchInfo(BaseModel):
    target_round: int
    actual_date: date | None
    actual_numbers: list[int]
    actual_bonus: int | None = None
    actual_group: int | None = None
    set_matches: list[SetMatch]
    best_match: int


class PositionHotCold(BaseModel):
    position: int
    hot: list[int]
    cold: list[int]


class LottoAnalysisResponse(BaseModel):
    analysis: LottoAnalysis
    reasons: dict[int, list[str]]
    recent_results: list[LottoDrawOut]
    match_info: MatchInfo | None = None
    target_round: int | None = None
    is_historical: bool = False
    cached: bool = False


class PensionAnalysisResponse(BaseModel):
    analysis: PensionAnalysis
    hot_cold_digits: list[PositionHotCold]
    recent_results: list[PensionDrawOut]
    match_info: MatchInfo | None = None
    target_round: int | None = None
    is_historical: bool = False
    cached: bool = False


class StatusResponse(BaseModel):
    lotto_draws: int
    lotto_latest_round: int | None
    pension_draws: int
    pension_latest_round: int | None
    cache_entries: int
