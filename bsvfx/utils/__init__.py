"""
bsvfx Utilities Package

Pure conversion and formatting helpers. Nothing in here does I/O.
"""

from bsvfx.utils.currency import (
    ParsedAmount,
    convert,
    currency_symbol,
    from_usd,
    parse_amount,
    to_satoshis,
    to_usd,
)
from bsvfx.utils.formatting import FormatOptions, FormattedAmount, format_amount

__all__ = [
    "ParsedAmount",
    "convert",
    "currency_symbol",
    "from_usd",
    "parse_amount",
    "to_satoshis",
    "to_usd",
    "FormatOptions",
    "FormattedAmount",
    "format_amount",
]
