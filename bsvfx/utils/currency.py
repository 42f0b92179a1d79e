"""
Currency Conversion - Pure conversion between supported currencies.

Usage:
    usd = to_usd(10_000, 'SATS', rates)
    eur = convert(100, 'USD', 'EUR', rates)
    sats = to_satoshis(1.5, 'USD', rates)
    parsed = parse_amount('10000')  # ParsedAmount(amount=10000.0, currency='SATS', inferred=True)

Every conversion pivots through USD. Nothing here does I/O.
"""

import math
import re
from dataclasses import dataclass

from bsvfx.config.currencies import (
    BSV,
    CURRENCY_ALIASES,
    DIGITAL_UNIT_SYMBOLS,
    FIAT_SYMBOLS,
    PIVOT_CURRENCY,
    SATS,
    SATS_PER_BSV,
    SUPPORTED_CURRENCIES,
)
from bsvfx.exceptions import InvalidAmountError, RateUnavailableError, UnsupportedCurrencyError
from bsvfx.rates import ExchangeRates

_NON_NUMERIC = re.compile(r"[^0-9.\-]+")
_NUMERIC_AND_SEPARATORS = re.compile(r"[\d.,\s\-]+")


def require_supported(code: str) -> str:
    """Return the uppercased code, or raise UnsupportedCurrencyError."""
    if not isinstance(code, str):
        raise UnsupportedCurrencyError(repr(code))
    normalized = code.strip().upper()
    if normalized not in SUPPORTED_CURRENCIES:
        raise UnsupportedCurrencyError(code)
    return normalized


def _valid_rate(rate, currency: str) -> float:
    if rate is None:
        raise RateUnavailableError(currency)
    try:
        value = float(rate)
    except (TypeError, ValueError):
        raise RateUnavailableError(currency, rate)
    if not math.isfinite(value) or value <= 0:
        raise RateUnavailableError(currency, rate)
    return value


def _fiat_rate(rates: ExchangeRates, currency: str) -> float:
    return _valid_rate(rates.fiat_per_usd.get(currency), currency)


def to_usd(amount: float, currency: str, rates: ExchangeRates) -> float:
    """
    Convert an amount in a supported currency to USD.

    Raises:
        UnsupportedCurrencyError: If currency is not supported
        RateUnavailableError: If the needed rate is unknown
    """
    code = require_supported(currency)
    if code == PIVOT_CURRENCY:
        return amount
    if code == SATS:
        return (amount / SATS_PER_BSV) * _valid_rate(rates.usd_per_bsv, BSV)
    if code == BSV:
        return amount * _valid_rate(rates.usd_per_bsv, BSV)
    # Fiat rates are units per USD, so dividing recovers USD
    return amount / _fiat_rate(rates, code)


def from_usd(amount_usd: float, currency: str, rates: ExchangeRates) -> float:
    """
    Convert a USD amount to a supported currency.

    Raises:
        UnsupportedCurrencyError: If currency is not supported
        RateUnavailableError: If the needed rate is unknown
    """
    code = require_supported(currency)
    if code == PIVOT_CURRENCY:
        return amount_usd
    if code == SATS:
        return (amount_usd / _valid_rate(rates.usd_per_bsv, BSV)) * SATS_PER_BSV
    if code == BSV:
        return amount_usd / _valid_rate(rates.usd_per_bsv, BSV)
    return amount_usd * _fiat_rate(rates, code)


def convert(amount: float, from_currency: str, to_currency: str, rates: ExchangeRates) -> float:
    """
    Convert amount between any two supported currencies via USD.

    Same-currency conversion returns amount unchanged without looking at rates,
    so it works even before any rate has been fetched.
    """
    from_code = require_supported(from_currency)
    to_code = require_supported(to_currency)
    if from_code == to_code:
        return amount
    return from_usd(to_usd(amount, from_code, rates), to_code, rates)


def to_satoshis(amount: float, currency: str, rates: ExchangeRates) -> int:
    """Convert amount to whole satoshis, rounding up so the smallest unit is never under-credited."""
    return math.ceil(convert(amount, currency, SATS, rates))


def currency_symbol(currency: str) -> str:
    """Display symbol for a supported currency ('$', '€', 'BSV', 'sats', ...)."""
    code = require_supported(currency)
    if code in DIGITAL_UNIT_SYMBOLS:
        return DIGITAL_UNIT_SYMBOLS[code]
    return FIAT_SYMBOLS[code].strip()


@dataclass(frozen=True)
class ParsedAmount:
    """Amount parsed from free text. inferred is True when the unit was guessed."""

    amount: float
    currency: str
    inferred: bool = False


def resolve_currency_token(token: str) -> str:
    """Map a code, unit name or unambiguous symbol to a supported code."""
    normalized = token.strip().upper()
    if normalized in SUPPORTED_CURRENCIES:
        return normalized
    if normalized in CURRENCY_ALIASES:
        return CURRENCY_ALIASES[normalized]
    raise UnsupportedCurrencyError(token)


def parse_amount(text: str) -> ParsedAmount:
    """
    Parse free text such as '10000', '0.5', '$10.00' or '2500 EUR'.

    Without a currency token the unit is guessed: a bare integer is whole
    satoshis, a number with a decimal point is whole BSV. This guess is
    ambiguous; callers that know the unit should pass it explicitly instead.

    Raises:
        InvalidAmountError: If no number can be read from text
        UnsupportedCurrencyError: If the currency token is not recognized
    """
    text = str(text)
    magnitude = _NON_NUMERIC.sub("", text)
    try:
        amount = float(magnitude)
    except ValueError:
        raise InvalidAmountError(text)
    if not math.isfinite(amount):
        raise InvalidAmountError(text)

    token = _NUMERIC_AND_SEPARATORS.sub("", text)
    if token:
        return ParsedAmount(amount=amount, currency=resolve_currency_token(token))

    currency = BSV if "." in text else SATS
    return ParsedAmount(amount=amount, currency=currency, inferred=True)
