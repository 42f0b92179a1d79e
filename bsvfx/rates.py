"""
Exchange Rates - Cached BSV and fiat rates, refreshed from a rate source.

Usage:
    cache = ExchangeRateCache(HttpRateSource(), refresh_interval=300)
    rates = await cache.fetch()            # Network on first call, memory afterwards
    rates = await cache.fetch(force=True)  # Always refreshes
    rates.usd_per_bsv, rates.fiat_per_usd['EUR']
"""

import logging
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping, Optional

from bsvfx.cache import SingleFlightCache
from bsvfx.config.currencies import PIVOT_CURRENCY, RATE_FETCH_CURRENCIES
from bsvfx.exceptions import RateFetchError
from bsvfx.sources import RateSource

logger = logging.getLogger(__name__)

# Default refresh interval (5 minutes)
DEFAULT_REFRESH_INTERVAL = 300


@dataclass(frozen=True)
class ExchangeRates:
    """
    Immutable snapshot of exchange rates.

    usd_per_bsv is the USD price of one BSV. fiat_per_usd holds units of each
    fiat currency per USD. A zero or missing rate means the rate is unknown.
    """

    usd_per_bsv: float
    fiat_per_usd: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        rates = dict(self.fiat_per_usd)
        rates[PIVOT_CURRENCY] = 1.0
        object.__setattr__(self, "fiat_per_usd", MappingProxyType(rates))

    @classmethod
    def placeholder(cls) -> "ExchangeRates":
        """All-zero rates used before the first successful fetch."""
        return cls(usd_per_bsv=0.0, fiat_per_usd={code: 0.0 for code in RATE_FETCH_CURRENCIES})

    def to_dict(self) -> dict:
        return {"usd_per_bsv": self.usd_per_bsv, "fiat_per_usd": dict(self.fiat_per_usd)}


class ExchangeRateCache:
    """TTL cache with single-flight fetching around a RateSource."""

    def __init__(
        self,
        source: RateSource,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._source = source
        self._cache: SingleFlightCache[ExchangeRates] = SingleFlightCache(
            "exchange_rates",
            loader=self._fetch_rates,
            initial=ExchangeRates.placeholder(),
            ttl_seconds=refresh_interval,
            clock=clock,
        )

    @property
    def rates(self) -> ExchangeRates:
        """Last known-good rates (placeholder until the first successful fetch)."""
        return self._cache.value

    @property
    def refresh_interval(self) -> float:
        return self._cache.ttl_seconds

    @property
    def last_fetched_at(self) -> Optional[float]:
        return self._cache.fetched_at

    def age(self) -> Optional[float]:
        return self._cache.age()

    async def fetch(self, force: bool = False) -> ExchangeRates:
        """
        Get exchange rates, hitting the rate source only when needed.

        Args:
            force: Refresh even if the cached rates are still fresh

        Returns:
            Current ExchangeRates snapshot

        Raises:
            RateFetchError: If the rate source fails (cached rates are kept)
        """
        return await self._cache.get(force=force)

    async def _fetch_rates(self) -> ExchangeRates:
        try:
            usd_per_bsv = await self._source.get_bsv_rate()
            fiat_per_usd = await self._source.get_fiat_rates(list(RATE_FETCH_CURRENCIES))
            rates = ExchangeRates(
                usd_per_bsv=float(usd_per_bsv),
                fiat_per_usd={code: float(rate) for code, rate in fiat_per_usd.items()},
            )
        except RateFetchError as e:
            logger.error(f"Failed to fetch exchange rates: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to fetch exchange rates: {e}")
            raise RateFetchError(str(e) or type(e).__name__, type(self._source).__name__) from e

        logger.info(f"Exchange rates synced: 1 BSV = {rates.usd_per_bsv} USD, {len(fiat_per_usd)} fiat rates")
        return rates

    def stats(self) -> dict:
        return self._cache.stats()
