"""Shared fixtures: synthetic draw histories built with a seeded generator."""

from datetime import date, timedelta

import numpy as np
import pytest

from korea_lottery.analysis.draws import LottoDraw, PensionDraw

START_DATE = date(2024, 1, 6)


def random_lotto_draws(count: int, rng: np.random.Generator, first_round: int = 1) -> list[LottoDraw]:
    draws = []
    for i in range(count):
        picked = rng.choice(np.arange(1, 46), size=7, replace=False)
        draws.append(LottoDraw(
            round=first_round + i,
            date=START_DATE + timedelta(weeks=i),
            numbers=tuple(int(n) for n in picked[:6]),
            bonus=int(picked[6]),
        ))
    return draws


def random_pension_draws(count: int, rng: np.random.Generator, first_round: int = 1) -> list[PensionDraw]:
    return [
        PensionDraw(
            round=first_round + i,
            date=START_DATE + timedelta(weeks=i),
            group=int(rng.integers(1, 6)),
            numbers=tuple(int(d) for d in rng.integers(0, 10, size=6)),
        )
        for i in range(count)
    ]


@pytest.fixture
def rng():
    return np.random.default_rng(20240106)


@pytest.fixture
def make_lotto_history(rng):
    def make(count: int, first_round: int = 1) -> list[LottoDraw]:
        return random_lotto_draws(count, rng, first_round)
    return make


@pytest.fixture
def make_pension_history(rng):
    def make(count: int, first_round: int = 1) -> list[PensionDraw]:
        return random_pension_draws(count, rng, first_round)
    return make


@pytest.fixture
def lotto_history(make_lotto_history):
    return make_lotto_history(60)


@pytest.fixture
def pension_history(make_pension_history):
    return make_pension_history(30)


@pytest.fixture
def seven_history():
    """50 rounds: 7 in every draw, the other 44 numbers cycling through the rest."""
    others = [n for n in range(1, 46) if n != 7]
    draws = []
    for i in range(50):
        rest = [others[(i * 5 + j) % len(others)] for j in range(5)]
        bonus = others[(i * 5 + 5) % len(others)]
        draws.append(LottoDraw(round=i + 1, date=None, numbers=(7, *rest), bonus=bonus))
    return draws


@pytest.fixture
def group_three_history():
    """20 pension rounds: group 3 ten times, the others two or three times each."""
    groups = [3, 1, 3, 2, 3, 4, 3, 5, 3, 1, 3, 2, 3, 4, 3, 5, 3, 1, 3, 2]
    return [
        PensionDraw(round=i + 1, date=None, group=g, numbers=tuple((i + j) % 10 for j in range(6)))
        for i, g in enumerate(groups)
    ]


class FakeCrud:
    """In-memory stand-in for a game's CRUD module."""

    def __init__(self, record_cls):
        self.record_cls = record_cls
        self.rows = {}

    async def list_draws(self, session, *, before_round=None):
        return [
            self.rows[r] for r in sorted(self.rows)
            if before_round is None or r < before_round
        ]

    async def get_by_round(self, session, round_no):
        return self.rows.get(round_no)

    async def get_recent(self, session, limit=10):
        return [self.rows[r] for r in sorted(self.rows, reverse=True)[:limit]]

    async def get_latest(self, session):
        return self.rows[max(self.rows)] if self.rows else None

    async def count(self, session):
        return len(self.rows)

    async def bulk_upsert(self, session, rows):
        for row in rows:
            self.rows[row["round"]] = self.record_cls(**row)
        return len(rows)


@pytest.fixture
def fake_store(monkeypatch):
    """Replace the database CRUD modules with in-memory stores."""
    from korea_lottery.db.models import LottoDrawRecord, PensionDrawRecord
    from korea_lottery.services import lottery_service

    store = {
        "lotto": FakeCrud(LottoDrawRecord),
        "pension": FakeCrud(PensionDrawRecord),
    }
    monkeypatch.setattr(lottery_service, "GAME_CRUD", store)
    return store


@pytest.fixture
def seed_store(fake_store):
    """Load draw records into the in-memory store."""
    from korea_lottery.services.lottery_service import lotto_row, pension_row

    def seed(draws):
        for d in draws:
            if isinstance(d, LottoDraw):
                fake_store["lotto"].rows[d.round] = fake_store["lotto"].record_cls(**lotto_row(d))
            else:
                fake_store["pension"].rows[d.round] = fake_store["pension"].record_cls(**pension_row(d))
    return seed
