"""
bsvfx Configuration Package

Contains configuration constants and defaults.
"""

from bsvfx.config.currencies import (
    BSV,
    DEFAULT_CURRENCY,
    DIGITAL_CURRENCIES,
    SATS,
    SATS_PER_BSV,
    SUPPORTED_CURRENCIES,
    SUPPORTED_FIAT_CURRENCIES,
)

__all__ = [
    "BSV",
    "SATS",
    "SATS_PER_BSV",
    "DEFAULT_CURRENCY",
    "DIGITAL_CURRENCIES",
    "SUPPORTED_CURRENCIES",
    "SUPPORTED_FIAT_CURRENCIES",
]
