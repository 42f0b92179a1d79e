"""Tests for the CurrencyConverter facade.

These tests verify:
1. Lifecycle: initialize, background refresh, dispose
2. convert_amount() end to end with cached rates
3. convert_to_satoshis(), convert_currency(), get_currency_symbol()
"""

import asyncio

import pytest

from bsvfx.converter import ConverterState, CurrencyConverter, create_converter
from bsvfx.exceptions import (
    ConverterDisposedError,
    PreferenceFetchError,
    RateFetchError,
    RateUnavailableError,
    UnsupportedCurrencyError,
)
from bsvfx.sources import HttpRateSource, SettingsPreferenceSource, StaticPreferenceSource
from bsvfx.utils.formatting import FormatOptions


class FailingPreferenceSource:
    async def get_preferred_currency(self):
        raise ConnectionError("wallet settings unavailable")


class TestLifecycle:
    """Tests for initialize() and dispose()."""

    @pytest.mark.asyncio
    async def test_initialize_fetches_both(self, rate_source):
        converter = CurrencyConverter(rate_source, StaticPreferenceSource("eur"), refresh_interval=0)
        assert converter.state == ConverterState.UNINITIALIZED

        await converter.initialize()

        assert converter.state == ConverterState.READY
        assert converter.preferred_currency == "EUR"
        assert converter.rates.usd_per_bsv == 62.0
        assert rate_source.bsv_calls == 1
        converter.dispose()

    @pytest.mark.asyncio
    async def test_initialize_twice_is_noop(self, rate_source):
        converter = CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=0)
        await converter.initialize()
        await converter.initialize()
        assert rate_source.bsv_calls == 1
        converter.dispose()

    @pytest.mark.asyncio
    async def test_rate_failure_leaves_uninitialized(self, rate_source):
        rate_source.error = RateFetchError("timeout", "test")
        converter = CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=60)

        with pytest.raises(RateFetchError):
            await converter.initialize()

        assert converter.state == ConverterState.UNINITIALIZED
        assert converter._refresh_task is None

    @pytest.mark.asyncio
    async def test_preference_failure_fails_initialize(self, rate_source):
        converter = CurrencyConverter(rate_source, FailingPreferenceSource(), refresh_interval=0)

        with pytest.raises(PreferenceFetchError):
            await converter.initialize()
        assert converter.state == ConverterState.UNINITIALIZED

    @pytest.mark.asyncio
    async def test_initialize_can_be_retried(self, rate_source):
        rate_source.error = RateFetchError("timeout", "test")
        converter = CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=0)
        with pytest.raises(RateFetchError):
            await converter.initialize()

        rate_source.error = None
        await converter.initialize()
        assert converter.state == ConverterState.READY
        converter.dispose()

    @pytest.mark.asyncio
    async def test_zero_interval_arms_no_timer(self, rate_source):
        """refresh_interval=0 means no background calls after initialize()."""
        converter = CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=0)
        await converter.initialize()

        assert converter._refresh_task is None
        await asyncio.sleep(0.05)
        assert rate_source.bsv_calls == 1
        converter.dispose()

    @pytest.mark.asyncio
    async def test_background_refresh(self, rate_source):
        """A positive interval refreshes rates in the background."""
        converter = CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=0.01)
        await converter.initialize()
        rate_source.usd_per_bsv = 100.0

        await asyncio.sleep(0.1)

        assert rate_source.bsv_calls >= 2
        assert converter.rates.usd_per_bsv == 100.0
        converter.dispose()

    @pytest.mark.asyncio
    async def test_background_failure_keeps_rates(self, rate_source):
        """A failing background refresh logs and keeps the last rates."""
        converter = CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=0.01)
        await converter.initialize()
        rate_source.error = RateFetchError("timeout", "test")

        await asyncio.sleep(0.05)

        assert converter.rates.usd_per_bsv == 62.0
        assert not converter._refresh_task.done()
        converter.dispose()

    @pytest.mark.asyncio
    async def test_dispose_stops_refresh(self, rate_source):
        converter = CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=0.01)
        await converter.initialize()

        converter.dispose()
        calls = rate_source.bsv_calls
        await asyncio.sleep(0.05)

        assert converter.state == ConverterState.DISPOSED
        assert rate_source.bsv_calls == calls

    @pytest.mark.asyncio
    async def test_dispose_without_initialize(self, rate_source):
        converter = CurrencyConverter(rate_source, StaticPreferenceSource("USD"))
        converter.dispose()
        converter.dispose()
        assert converter.state == ConverterState.DISPOSED

    @pytest.mark.asyncio
    async def test_disposed_converter_refuses_io(self, rate_source):
        converter = CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=0)
        converter.dispose()

        with pytest.raises(ConverterDisposedError):
            await converter.initialize()
        with pytest.raises(ConverterDisposedError):
            await converter.refresh_rates()

    @pytest.mark.asyncio
    async def test_dispose_during_initialize(self, rate_source):
        """Disposing while the first fetch is in flight keeps the converter disposed."""
        gate = rate_source.block()
        converter = CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=0.01)
        init = asyncio.create_task(converter.initialize())
        await asyncio.sleep(0)
        assert converter.state == ConverterState.INITIALIZING

        converter.dispose()
        gate.set()
        with pytest.raises(ConverterDisposedError):
            await init
        await asyncio.sleep(0.05)

        assert converter.state == ConverterState.DISPOSED
        assert converter._refresh_task is None
        assert rate_source.bsv_calls == 1

    @pytest.mark.asyncio
    async def test_failed_initialize_after_dispose_stays_disposed(self, rate_source):
        gate = rate_source.block()
        rate_source.error = RateFetchError("timeout", "test")
        converter = CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=0)
        init = asyncio.create_task(converter.initialize())
        await asyncio.sleep(0)

        converter.dispose()
        gate.set()
        with pytest.raises(RateFetchError):
            await init
        assert converter.state == ConverterState.DISPOSED

    @pytest.mark.asyncio
    async def test_concurrent_initialize_shares_fetch(self, rate_source):
        """A second initialize() joins the one in flight."""
        gate = rate_source.block()
        converter = CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=0)
        first = asyncio.create_task(converter.initialize())
        second = asyncio.create_task(converter.initialize())
        await asyncio.sleep(0)

        gate.set()
        await asyncio.gather(first, second)

        assert converter.state == ConverterState.READY
        assert rate_source.bsv_calls == 1
        converter.dispose()

    @pytest.mark.asyncio
    async def test_concurrent_initialize_shares_failure(self, rate_source):
        gate = rate_source.block()
        rate_source.error = RateFetchError("timeout", "test")
        converter = CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=0)
        first = asyncio.create_task(converter.initialize())
        second = asyncio.create_task(converter.initialize())
        await asyncio.sleep(0)

        gate.set()
        results = await asyncio.gather(first, second, return_exceptions=True)

        assert all(isinstance(r, RateFetchError) for r in results)
        assert rate_source.bsv_calls == 1
        assert converter.state == ConverterState.UNINITIALIZED

    @pytest.mark.asyncio
    async def test_refresh_rates_recovers_failed_initialize(self, rate_source):
        """After a failed startup, refresh_rates() initializes and arms background refresh."""
        rate_source.error = RateFetchError("timeout", "test")
        converter = CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=0.01)
        with pytest.raises(RateFetchError):
            await converter.initialize()

        rate_source.error = None
        rates = await converter.refresh_rates()

        assert rates.usd_per_bsv == 62.0
        assert converter.state == ConverterState.READY
        assert converter._refresh_task is not None

        calls = rate_source.bsv_calls
        await asyncio.sleep(0.1)
        assert rate_source.bsv_calls > calls
        converter.dispose()

    @pytest.mark.asyncio
    async def test_context_manager(self, rate_source):
        async with CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=60) as converter:
            assert converter.state == ConverterState.READY
        assert converter.state == ConverterState.DISPOSED
        assert converter._refresh_task is None

    def test_negative_interval_rejected(self, rate_source):
        with pytest.raises(ValueError):
            CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=-5)


class TestConvertAmount:
    """Tests for convert_amount()."""

    @pytest.mark.asyncio
    async def test_end_to_end_small_amount(self, rate_source):
        """10,000 satoshis at 62 USD/BSV is 0.0062 USD, shown as '< $0.01'."""
        async with CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=300) as converter:
            result = await converter.convert_amount("10000")

        assert result.formatted_amount == "< $0.01"
        assert result.hover_text == "$0.0062"

    @pytest.mark.asyncio
    async def test_uses_cached_rates(self, rate_source):
        """Repeated conversions inside the window make no new rate calls."""
        async with CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=300) as converter:
            first = await converter.convert_amount("10000")
            second = await converter.convert_amount("5000")

        assert first.hover_text == "$0.0062"
        assert second.hover_text == "$0.0031"
        assert rate_source.bsv_calls == 1

    @pytest.mark.asyncio
    async def test_zero_interval_still_uses_snapshot(self, rate_source):
        """With refresh disabled conversions read the rates fetched at startup."""
        async with CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=0) as converter:
            await converter.convert_amount("10000")
            await converter.convert_amount("10000")
        assert rate_source.bsv_calls == 1

    @pytest.mark.asyncio
    async def test_numeric_input(self, rate_source):
        """Integers are satoshis, floats are BSV."""
        async with CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=0) as converter:
            sats = await converter.convert_amount(100_000_000)
            bsv = await converter.convert_amount(2.0)

        assert sats.formatted_amount == "$62"
        assert bsv.formatted_amount == "$124"

    @pytest.mark.asyncio
    async def test_explicit_currency(self, rate_source):
        """An explicit unit overrides the integer/decimal guess."""
        async with CurrencyConverter(rate_source, StaticPreferenceSource("EUR"), refresh_interval=0) as converter:
            result = await converter.convert_amount("100", currency="USD")
        assert result.formatted_amount == "€92"

    @pytest.mark.asyncio
    async def test_format_options(self, rate_source):
        async with CurrencyConverter(rate_source, StaticPreferenceSource("JPY"), refresh_interval=0) as converter:
            result = await converter.convert_amount(
                "1 BSV", FormatOptions(decimal_places=0, use_underscores=True)
            )
        # 62 USD * 150 JPY/USD
        assert result.formatted_amount == "¥9_300"

    @pytest.mark.asyncio
    async def test_sats_preference(self, rate_source):
        async with CurrencyConverter(rate_source, StaticPreferenceSource(None), refresh_interval=0) as converter:
            result = await converter.convert_amount("$62")
        assert result.formatted_amount == "100,000,000 satoshis"

    @pytest.mark.asyncio
    async def test_unsupported_input_currency(self, rate_source):
        async with CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=0) as converter:
            with pytest.raises(UnsupportedCurrencyError):
                await converter.convert_amount("10 DOGE")

    @pytest.mark.asyncio
    async def test_unavailable_rate(self, rate_source):
        """CHF was never supplied by the source."""
        async with CurrencyConverter(rate_source, StaticPreferenceSource("CHF"), refresh_interval=0) as converter:
            with pytest.raises(RateUnavailableError):
                await converter.convert_amount("10000")

    @pytest.mark.asyncio
    async def test_before_initialize_rates_unavailable(self, rate_source):
        converter = CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=0)
        with pytest.raises(RateUnavailableError):
            await converter.convert_amount("10000")

    @pytest.mark.asyncio
    async def test_after_dispose_uses_snapshot(self, rate_source):
        """Conversions still work after dispose, without any I/O."""
        preference = StaticPreferenceSource("USD")
        converter = CurrencyConverter(rate_source, preference, refresh_interval=0)
        await converter.initialize()
        converter.dispose()

        preference.currency = "EUR"
        result = await converter.convert_amount(100_000_000)

        assert result.formatted_amount == "$62"
        assert rate_source.bsv_calls == 1

    @pytest.mark.asyncio
    async def test_preference_change_picked_up_after_ttl(self, rate_source, clock):
        preference = StaticPreferenceSource("USD")
        converter = CurrencyConverter(
            rate_source, preference, refresh_interval=0, preference_ttl=60, clock=clock
        )
        await converter.initialize()

        preference.currency = "EUR"
        assert (await converter.convert_amount(100_000_000)).formatted_amount == "$62"

        clock.advance(61)
        assert (await converter.convert_amount(100_000_000)).formatted_amount == "€57.04"
        converter.dispose()


class TestOtherOperations:
    """Tests for the remaining facade operations."""

    @pytest.mark.asyncio
    async def test_convert_to_satoshis(self, rate_source):
        async with CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=0) as converter:
            assert await converter.convert_to_satoshis(0.01) == 16130
            assert await converter.convert_to_satoshis(62) == 100_000_000

    @pytest.mark.asyncio
    async def test_convert_currency(self, rate_source):
        async with CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=0) as converter:
            assert converter.convert_currency(100, "USD", "EUR") == pytest.approx(92.0)
            assert converter.convert_currency(7, "GBP", "GBP") == 7

    @pytest.mark.asyncio
    async def test_convert_currency_without_rates(self, rate_source):
        converter = CurrencyConverter(rate_source, StaticPreferenceSource("USD"))
        with pytest.raises(RateUnavailableError):
            converter.convert_currency(1, "BSV", "USD")

    @pytest.mark.asyncio
    async def test_currency_symbol(self, rate_source):
        async with CurrencyConverter(rate_source, StaticPreferenceSource("gbp"), refresh_interval=0) as converter:
            assert converter.get_currency_symbol() == "£"

    @pytest.mark.asyncio
    async def test_refresh_rates(self, rate_source):
        async with CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=300) as converter:
            rate_source.usd_per_bsv = 80.0
            rates = await converter.refresh_rates()
        assert rates.usd_per_bsv == 80.0
        assert rate_source.bsv_calls == 2

    @pytest.mark.asyncio
    async def test_cache_stats(self, rate_source):
        async with CurrencyConverter(rate_source, StaticPreferenceSource("USD"), refresh_interval=300) as converter:
            await converter.convert_amount("1")
            stats = converter.cache_stats()
        assert stats["exchange_rates"]["misses"] == 1
        assert stats["preferred_currency"]["hits"] == 1


class TestCreateConverter:
    """Tests for create_converter()."""

    @pytest.mark.asyncio
    async def test_built_from_settings(self, settings):
        await settings.set("refresh_interval_seconds", 0)
        converter = await create_converter(settings)

        assert converter.refresh_interval == 0
        assert isinstance(converter._rates._source, HttpRateSource)
        assert isinstance(converter._preference._source, SettingsPreferenceSource)
