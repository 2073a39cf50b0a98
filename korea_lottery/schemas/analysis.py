"""Pydantic schemas for derived analysis values."""

from pydantic import BaseModel, ConfigDict


class FrequencyStat(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: int
    position: int | None = None  # pension digit position (1-6)
    frequency: int
    last_appeared_round: int | None = None
    consecutive_miss: int | None = None  # None = no data
    avg_gap: float


class CDMScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: int
    position: int | None = None
    frequency: int
    alpha: float
    posterior: float
    predicted_count: float


class RankedCategory(BaseModel):
    model_config = ConfigDict(frozen=True)

    rank: int
    number: int
    score: float
    posterior: float
    predicted_count: float
    frequency: int
    last_appeared_round: int | None = None
    consecutive_miss: int | None = None
    recent_count: int = 0


class RecommendedSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    rank: int
    numbers: list[int]
    score: float
    method: str
    group: int | None = None  # pension only


class RuleResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    rule: str
    label: str
    numbers: list[int]
    hit_rate: float
    recent_hit_rate: float


class BacktestStat(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    label: str
    min_history: int
    tested: int
    match_counts: list[int]
    recent_tested: int
    recent_match_counts: list[int]
    hit_rate: float
    recent_hit_rate: float
    baseline_hit_rate: float
    lift: float


class ConsensusNumber(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: int
    count: int


class LottoPatterns(BaseModel):
    model_config = ConfigDict(frozen=True)

    sum_min: int
    sum_max: int
    sum_avg: int
    odd_even_most_common: str
    high_low_most_common: str
    consecutive_pairs_percent: int


class ModelInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_rounds: int
    latest_round: int
    method: str
    alpha_sum: float


class LottoAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    ranked_categories: list[RankedCategory]
    recommended_sets: list[RecommendedSet]
    cdm_scores: list[CDMScore]
    frequency_stats: list[FrequencyStat]
    backtest_stats: list[BacktestStat]
    consensus: list[ConsensusNumber]
    patterns: LottoPatterns
    model_info: ModelInfo


class PensionAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    ranked_categories: list[RankedCategory]
    group_scores: list[CDMScore]
    digit_scores_by_position: list[list[CDMScore]]
    recommended_sets: list[RecommendedSet]
    model_info: ModelInfo
