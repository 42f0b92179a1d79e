"""
bsvfx - Rate-caching BSV / fiat currency converter.

Usage:
    from bsvfx import CurrencyConverter, HttpRateSource, StaticPreferenceSource

    async with CurrencyConverter(HttpRateSource(), StaticPreferenceSource('USD')) as converter:
        result = await converter.convert_amount('10000')
        print(result.formatted_amount)  # '< $0.01'
        print(result.hover_text)        # '$0.0062'
"""

from bsvfx.cache import SingleFlightCache
from bsvfx.converter import ConverterState, CurrencyConverter, create_converter
from bsvfx.database import Database
from bsvfx.exceptions import (
    ConverterDisposedError,
    CurrencyError,
    InvalidAmountError,
    PreferenceFetchError,
    RateFetchError,
    RateUnavailableError,
    UnsupportedCurrencyError,
)
from bsvfx.preference import PreferenceCache, normalize_currency_code
from bsvfx.rates import ExchangeRateCache, ExchangeRates
from bsvfx.settings import Settings
from bsvfx.sources import (
    HttpRateSource,
    SettingsPreferenceSource,
    StaticPreferenceSource,
    StaticRateSource,
)
from bsvfx.utils.formatting import FormatOptions, FormattedAmount, format_amount
from bsvfx.version import VERSION

__all__ = [
    "VERSION",
    "CurrencyConverter",
    "ConverterState",
    "create_converter",
    "ExchangeRateCache",
    "ExchangeRates",
    "PreferenceCache",
    "normalize_currency_code",
    "SingleFlightCache",
    "Database",
    "Settings",
    "HttpRateSource",
    "StaticRateSource",
    "SettingsPreferenceSource",
    "StaticPreferenceSource",
    "FormatOptions",
    "FormattedAmount",
    "format_amount",
    # Errors
    "CurrencyError",
    "RateFetchError",
    "PreferenceFetchError",
    "UnsupportedCurrencyError",
    "RateUnavailableError",
    "InvalidAmountError",
    "ConverterDisposedError",
]
