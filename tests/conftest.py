import random
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from market_feed.cache import MemoCache
from market_feed.fetcher import JsonFetcher
from market_feed.synthesizer import SeriesSynthesizer

FIXED_NOW_MS = 1_700_000_000_000


class FakeClock:
    """Manually advanced epoch-ms clock."""

    def __init__(self, now: int = FIXED_NOW_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int):
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeper():
    """Records requested backoff delays instead of waiting."""
    return AsyncMock()


@pytest_asyncio.fixture
async def fetcher(sleeper):
    fetcher = JsonFetcher(backoff_factor=1.0, max_retries=3, sleep=sleeper)
    yield fetcher
    await fetcher.aclose()


@pytest.fixture
def synthesizer(clock):
    return SeriesSynthesizer(rng=random.Random(42), clock=clock)


@pytest.fixture
def cache(clock):
    return MemoCache(clock=clock)
