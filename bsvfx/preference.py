"""
Preferred Currency - Cached, normalized preferred display currency.

Usage:
    cache = PreferenceCache(SettingsPreferenceSource(settings), ttl_seconds=300)
    code = await cache.refresh()             # Falls back to the last known code on failure
    code = await cache.refresh(strict=True)  # Raises PreferenceFetchError on failure
"""

import logging
import time
from typing import Callable, Optional

from bsvfx.cache import SingleFlightCache
from bsvfx.config.currencies import (
    DEFAULT_CURRENCY,
    DIGITAL_CURRENCIES,
    SUPPORTED_FIAT_CURRENCIES,
)
from bsvfx.exceptions import PreferenceFetchError
from bsvfx.sources import PreferenceSource

logger = logging.getLogger(__name__)


def normalize_currency_code(raw: Optional[str]) -> str:
    """
    Coerce any input into a supported currency code.

    None or blank means no preference and yields SATS. Unrecognized codes also
    yield SATS rather than failing, so a garbled preference never blocks display.
    """
    if raw is None:
        return DEFAULT_CURRENCY
    code = str(raw).strip().upper()
    if not code:
        return DEFAULT_CURRENCY
    if code in DIGITAL_CURRENCIES:
        return code
    if code in SUPPORTED_FIAT_CURRENCIES:
        return code
    logger.warning(f"Unsupported preferred currency {raw!r}, falling back to {DEFAULT_CURRENCY}")
    return DEFAULT_CURRENCY


class PreferenceCache:
    """TTL cache with single-flight fetching around a PreferenceSource."""

    def __init__(
        self,
        source: PreferenceSource,
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._source = source
        self._cache: SingleFlightCache[str] = SingleFlightCache(
            "preferred_currency",
            loader=self._fetch_preference,
            initial=DEFAULT_CURRENCY,
            ttl_seconds=ttl_seconds,
            clock=clock,
        )

    @property
    def currency(self) -> str:
        """Last known preferred currency (SATS until the first successful fetch)."""
        return self._cache.value

    @property
    def last_fetched_at(self) -> Optional[float]:
        return self._cache.fetched_at

    async def refresh(self, strict: bool = False) -> str:
        """
        Get the preferred currency, hitting the source only when stale.

        Args:
            strict: Raise on source failure instead of returning the last known code

        Returns:
            A supported currency code
        """
        try:
            return await self._cache.get()
        except PreferenceFetchError as e:
            if strict:
                raise
            logger.warning(f"{e}; using {self._cache.value}")
            return self._cache.value

    async def _fetch_preference(self) -> str:
        try:
            raw = await self._source.get_preferred_currency()
        except PreferenceFetchError:
            raise
        except Exception as e:
            raise PreferenceFetchError(str(e) or type(e).__name__) from e
        return normalize_currency_code(raw)

    def invalidate(self) -> None:
        """Force the next refresh() to hit the source (after the preference changed)."""
        self._cache.invalidate()

    def stats(self) -> dict:
        return self._cache.stats()
