"""Pytest configuration and fixtures."""

import asyncio

import pytest
import pytest_asyncio

from bsvfx.database import Database
from bsvfx.rates import ExchangeRates
from bsvfx.settings import Settings


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingRateSource:
    """Rate source that counts calls and can be told to fail or block."""

    def __init__(self, usd_per_bsv=62.0, fiat_per_usd=None):
        self.usd_per_bsv = usd_per_bsv
        self.fiat_per_usd = dict(fiat_per_usd or {})
        self.bsv_calls = 0
        self.fiat_calls = 0
        self.error = None
        self.gate = None

    async def get_bsv_rate(self):
        self.bsv_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.usd_per_bsv

    async def get_fiat_rates(self, codes):
        self.fiat_calls += 1
        return {code: self.fiat_per_usd[code] for code in codes if code in self.fiat_per_usd}

    def block(self) -> asyncio.Event:
        """Make the next fetches wait until the returned event is set."""
        self.gate = asyncio.Event()
        return self.gate


@pytest.fixture
def clock():
    """Fake monotonic clock starting at t=1000."""
    return FakeClock()


@pytest.fixture
def rate_source():
    """Rate source with 62 USD/BSV and a few fiat rates."""
    return CountingRateSource(
        usd_per_bsv=62.0,
        fiat_per_usd={"EUR": 0.92, "GBP": 0.79, "JPY": 150.0},
    )


@pytest.fixture
def rates():
    """Valid exchange rates for conversion tests."""
    return ExchangeRates(
        usd_per_bsv=62.0,
        fiat_per_usd={"EUR": 0.92, "GBP": 0.79, "JPY": 150.0, "INR": 83.1},
    )


@pytest_asyncio.fixture
async def db(tmp_path):
    """Connected settings database in a temporary directory."""
    database = Database(tmp_path / "bsvfx.db")
    await database.connect()
    yield database
    await database.close()


@pytest_asyncio.fixture
async def settings(db):
    """Settings backed by the temporary database."""
    return Settings(db)
