"""Shared fixtures: a controllable clock and a seeded repository."""
from __future__ import annotations

import pytest

from localstock.cache import InMemoryCache
from localstock.repository import InMemoryRepository
from localstock.sample_data import seed_sample_data


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> InMemoryCache:
    return InMemoryCache(300, clock=clock)


@pytest.fixture
def repository() -> InMemoryRepository:
    repo = InMemoryRepository()
    seed_sample_data(repo)
    return repo
