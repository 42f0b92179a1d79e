"""
Currency Converter - Rate-caching converter that renders amounts in the preferred currency.

Usage:
    async with CurrencyConverter(HttpRateSource(), SettingsPreferenceSource(settings)) as converter:
        result = await converter.convert_amount('10000')  # 10,000 satoshis in the preferred currency
        result.formatted_amount, result.hover_text
        sats = await converter.convert_to_satoshis(2.5)
        eur = converter.convert_currency(10, 'USD', 'EUR')

initialize() fetches rates and the preferred currency once and, when
refresh_interval > 0, starts a background task that refreshes rates every
refresh_interval seconds. dispose() stops that task. Conversions only ever read
the cached rates.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Callable, Optional, Union

from bsvfx.config.currencies import BSV, SATS
from bsvfx.exceptions import ConverterDisposedError
from bsvfx.preference import PreferenceCache
from bsvfx.rates import DEFAULT_REFRESH_INTERVAL, ExchangeRateCache, ExchangeRates
from bsvfx.settings import Settings
from bsvfx.sources import HttpRateSource, PreferenceSource, RateSource, SettingsPreferenceSource
from bsvfx.utils.currency import ParsedAmount, convert, currency_symbol, parse_amount, require_supported, to_satoshis
from bsvfx.utils.formatting import FormatOptions, FormattedAmount, format_amount

logger = logging.getLogger(__name__)


class ConverterState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    DISPOSED = "disposed"


class CurrencyConverter:
    """Composes the rate cache, preference cache, conversion and formatting."""

    def __init__(
        self,
        rate_source: RateSource,
        preference_source: PreferenceSource,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
        preference_ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the converter.

        Args:
            rate_source: Supplies BSV and fiat rates
            preference_source: Supplies the preferred currency code
            refresh_interval: Seconds between background rate refreshes, also the
                rate TTL. 0 disables the background task.
            preference_ttl: Seconds a fetched preference stays fresh
                (default: refresh_interval)
        """
        if refresh_interval < 0:
            raise ValueError(f"refresh_interval must be >= 0, got {refresh_interval}")
        self._refresh_interval = refresh_interval
        self._rates = ExchangeRateCache(rate_source, refresh_interval=refresh_interval, clock=clock)
        self._preference = PreferenceCache(
            preference_source,
            ttl_seconds=refresh_interval if preference_ttl is None else preference_ttl,
            clock=clock,
        )
        self._state = ConverterState.UNINITIALIZED
        self._refresh_task: Optional[asyncio.Task] = None
        self._init_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> ConverterState:
        return self._state

    @property
    def refresh_interval(self) -> float:
        return self._refresh_interval

    @property
    def rates(self) -> ExchangeRates:
        """Last known-good exchange rates."""
        return self._rates.rates

    @property
    def rates_age(self) -> Optional[float]:
        """Seconds since rates were last fetched, None if never."""
        return self._rates.age()

    @property
    def preferred_currency(self) -> str:
        """Last known preferred currency, without refreshing it."""
        return self._preference.currency

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def initialize(self) -> None:
        """
        Fetch rates and the preferred currency, then start background refresh.

        Concurrent callers share one initialization.

        Raises:
            RateFetchError / PreferenceFetchError: If either first fetch fails.
                The converter stays uninitialized and initialize() can be retried.
            ConverterDisposedError: If the converter was disposed, including
                while the first fetches were in flight
        """
        if self._state == ConverterState.DISPOSED:
            raise ConverterDisposedError("initialize")
        if self._state == ConverterState.READY:
            return

        task = self._init_task
        if task is None:
            self._state = ConverterState.INITIALIZING
            task = asyncio.ensure_future(self._initialize())
            task.add_done_callback(_consume_result)
            self._init_task = task
        else:
            logger.debug("Joining initialization in flight")
        await asyncio.shield(task)

    async def _initialize(self) -> None:
        try:
            await asyncio.gather(
                self._rates.fetch(force=True),
                self._preference.refresh(strict=True),
            )
        except BaseException:
            if self._state == ConverterState.INITIALIZING:
                self._state = ConverterState.UNINITIALIZED
            raise
        finally:
            self._init_task = None

        if self._state != ConverterState.INITIALIZING:
            # dispose() ran while the first fetches were in flight
            raise ConverterDisposedError("initialize")

        if self._refresh_interval > 0:
            self._refresh_task = asyncio.create_task(self._refresh_loop())
        self._state = ConverterState.READY
        logger.info(
            f"Currency converter ready (preferred {self._preference.currency}, "
            f"refresh every {self._refresh_interval}s)"
        )

    def dispose(self) -> None:
        """Stop background refresh. Cached values stay readable."""
        if self._refresh_task is not None:
            self._refresh_task.cancel()
            self._refresh_task = None
        if self._state != ConverterState.DISPOSED:
            self._state = ConverterState.DISPOSED
            logger.info("Currency converter disposed")

    async def __aenter__(self) -> "CurrencyConverter":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    async def _refresh_loop(self) -> None:
        """Refresh rates every refresh_interval seconds until cancelled."""
        while True:
            await asyncio.sleep(self._refresh_interval)
            try:
                await self._rates.fetch(force=True)
            except Exception as e:
                logger.warning(f"Background rate refresh failed, keeping last rates: {e}")

    async def refresh_rates(self) -> ExchangeRates:
        """
        Refresh rates now.

        A converter that is not ready yet is initialized instead, which also
        starts background refresh.

        Raises:
            RateFetchError: If the rate source fails (cached rates are kept)
            PreferenceFetchError: If initializing and the preference source fails
            ConverterDisposedError: If the converter was disposed
        """
        if self._state == ConverterState.DISPOSED:
            raise ConverterDisposedError("refresh rates")
        if self._state != ConverterState.READY:
            await self.initialize()
            return self._rates.rates
        return await self._rates.fetch(force=True)

    async def refresh_preference(self) -> str:
        """Re-read the preferred currency on the next call, ignoring its TTL."""
        self._preference.invalidate()
        return await self._current_preference()

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    async def _current_preference(self) -> str:
        if self._state == ConverterState.DISPOSED:
            return self._preference.currency
        return await self._preference.refresh()

    async def convert_amount(
        self,
        amount: Union[str, int, float],
        options: Optional[FormatOptions] = None,
        currency: Optional[str] = None,
    ) -> FormattedAmount:
        """
        Convert an amount to the preferred currency and format it.

        Args:
            amount: Number or free text ('10000', '0.5', '$10', '2500 EUR')
            options: Formatting options
            currency: Unit of amount. When omitted the unit is read from the
                text, or guessed: integers are satoshis, decimals are BSV.

        Raises:
            UnsupportedCurrencyError: Unknown input currency
            RateUnavailableError: A rate needed for the conversion is unknown
            InvalidAmountError: amount is not a number
        """
        preferred = await self._current_preference()
        parsed = _parse_input(amount, currency)
        if parsed.inferred:
            logger.debug(f"Guessed unit {parsed.currency} for amount {amount!r}")
        converted = convert(parsed.amount, parsed.currency, preferred, self._rates.rates)
        return format_amount(converted, preferred, options)

    async def convert_to_satoshis(self, amount: float) -> int:
        """Convert an amount in the preferred currency to satoshis, rounded up."""
        preferred = await self._current_preference()
        return to_satoshis(float(amount), preferred, self._rates.rates)

    def convert_currency(self, amount: float, from_currency: str, to_currency: str) -> float:
        """Convert between two supported currencies using the cached rates."""
        return convert(amount, from_currency, to_currency, self._rates.rates)

    def get_currency_symbol(self) -> str:
        """Symbol of the last known preferred currency."""
        return currency_symbol(self._preference.currency)

    def cache_stats(self) -> dict:
        return {
            "exchange_rates": self._rates.stats(),
            "preferred_currency": self._preference.stats(),
        }


def _consume_result(task: asyncio.Task) -> None:
    # Marks the exception as retrieved when every waiter was cancelled
    if not task.cancelled():
        task.exception()


def _parse_input(amount: Union[str, int, float], currency: Optional[str]) -> ParsedAmount:
    if isinstance(amount, str):
        parsed = parse_amount(amount)
        if currency is None:
            return parsed
        return ParsedAmount(amount=parsed.amount, currency=require_supported(currency))

    if currency is not None:
        return ParsedAmount(amount=float(amount), currency=require_supported(currency))
    if isinstance(amount, int):
        return ParsedAmount(amount=float(amount), currency=SATS, inferred=True)
    return ParsedAmount(amount=float(amount), currency=BSV, inferred=True)


async def create_converter(settings: Settings) -> CurrencyConverter:
    """Build a converter over HTTP rates and the stored preferred currency."""
    rate_source = HttpRateSource(
        bsv_rate_url=await settings.get("bsv_rate_url"),
        fiat_rates_url=await settings.get("fiat_rates_url"),
        timeout=float(await settings.get("http_timeout_seconds")),
    )
    return CurrencyConverter(
        rate_source,
        SettingsPreferenceSource(settings),
        refresh_interval=float(await settings.get("refresh_interval_seconds")),
        preference_ttl=float(await settings.get("preference_ttl_seconds")),
    )
