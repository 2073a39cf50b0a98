"""Pydantic schemas for statistics."""

from pydantic import BaseModel


class NumberFrequency(BaseModel):
    number: int
    position: int | None = None
    count: int
    percentage: float


class GapAnalysis(BaseModel):
    number: int
    position: int | None = None
    current_gap: int | None
    average_gap: float
    last_appeared_round: int | None
