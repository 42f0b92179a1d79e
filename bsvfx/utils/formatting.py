"""
Amount Formatting - Render an amount and currency as a display string.

Usage:
    format_amount(1234.56, 'USD').formatted_amount                     # '$1,234.56'
    format_amount(1234567.89, 'GBP', FormatOptions(use_underscores=True))  # '£1_234_567.89'
    format_amount(0.001, 'USD')  # FormattedAmount('< $0.01', hover_text='$0.001')
"""

import math
import re
from dataclasses import asdict, dataclass
from typing import Optional

from bsvfx.config.currencies import DIGITAL_CURRENCIES, DIGITAL_UNIT_SUFFIXES, FIAT_SYMBOLS
from bsvfx.exceptions import InvalidAmountError
from bsvfx.utils.currency import require_supported

# Smallest fiat amount shown as-is; anything below is clamped
MIN_DISPLAY_AMOUNT = 0.01

_THOUSANDS = re.compile(r"\B(?=(\d{3})+(?!\d))")
_TRAILING_ZEROS = re.compile(r"(\.\d*?[1-9])0+$")
_ZERO_FRACTION = re.compile(r"\.0+$")
_NONZERO_DIGIT = re.compile(r"[1-9]")


@dataclass(frozen=True)
class FormatOptions:
    """How to render an amount. Underscores take precedence over commas."""

    decimal_places: Optional[int] = None
    use_commas: bool = True
    use_underscores: bool = False


@dataclass(frozen=True)
class FormattedAmount:
    """Display string, plus the precise string when the display is clamped."""

    formatted_amount: str
    hover_text: Optional[str] = None

    def __str__(self) -> str:
        return self.formatted_amount

    def to_dict(self) -> dict:
        return asdict(self)


def default_decimal_places(amount: float, currency: str) -> int:
    """
    Decimal places to use when the caller did not pin them.

    Fractions between 0 and 1 get enough places to show their first significant
    digit (at least 2, at most 4). Everything else gets 8 for BSV/SATS and 2 for fiat.
    """
    if 0 < amount < 1:
        return min(max(2, -math.floor(math.log10(amount)) + 1), 4)
    return 8 if currency in DIGITAL_CURRENCIES else 2


def _group(integer_part: str, options: FormatOptions) -> str:
    if options.use_underscores:
        return _THOUSANDS.sub("_", integer_part)
    if options.use_commas:
        return _THOUSANDS.sub(",", integer_part)
    return integer_part


def _with_unit(number: str, currency: str) -> str:
    if currency in DIGITAL_UNIT_SUFFIXES:
        return number + DIGITAL_UNIT_SUFFIXES[currency]
    return FIAT_SYMBOLS[currency] + number


def format_amount(
    amount: float,
    currency: str,
    options: Optional[FormatOptions] = None,
) -> FormattedAmount:
    """
    Format amount in currency for display.

    Args:
        amount: Amount in currency
        currency: Supported currency code
        options: Decimal places and grouping (defaults: automatic places, commas)

    Returns:
        FormattedAmount. Fiat amounts between 0 and 0.01 display as '< $0.01'
        with the precise value in hover_text.
    """
    options = options or FormatOptions()
    code = require_supported(currency)
    if not math.isfinite(amount):
        raise InvalidAmountError(amount)
    if amount == 0:
        amount = 0.0  # drops the sign of -0.0

    decimals = options.decimal_places
    if decimals is None:
        decimals = default_decimal_places(amount, code)

    fixed = f"{amount:.{decimals}f}"
    if options.decimal_places is None:
        fixed = _TRAILING_ZEROS.sub(r"\1", fixed)
        fixed = _ZERO_FRACTION.sub("", fixed)
    if fixed.startswith("-") and not _NONZERO_DIGIT.search(fixed):
        fixed = fixed[1:]  # rounded to zero

    integer_part, _, decimal_part = fixed.partition(".")
    number = _group(integer_part, options)
    if decimal_part:
        number = f"{number}.{decimal_part}"

    formatted = _with_unit(number, code)

    if 0 < amount < MIN_DISPLAY_AMOUNT and code not in DIGITAL_CURRENCIES:
        return FormattedAmount(
            formatted_amount=f"< {FIAT_SYMBOLS[code]}{MIN_DISPLAY_AMOUNT}",
            hover_text=formatted,
        )
    return FormattedAmount(formatted_amount=formatted)
