"""
Currency Configuration - Single source of truth for supported currencies.

Every code the converter accepts is listed here. Anything outside this closed
set is rejected by the conversion engine or coerced by the preference cache.
"""

# Digital currency units
BSV = "BSV"  # Base unit
SATS = "SATS"  # Smallest subdivision

SATS_PER_BSV = 100_000_000

# Pivot currency for all cross-currency conversion
PIVOT_CURRENCY = "USD"

# Fiat currencies supported by the system
SUPPORTED_FIAT_CURRENCIES = [
    "USD",
    "EUR",
    "GBP",
    "JPY",
    "CNY",
    "INR",
    "AUD",
    "CAD",
    "CHF",
    "HKD",
    "SGD",
    "NZD",
    "SEK",
    "NOK",
    "MXN",
]

DIGITAL_CURRENCIES = [BSV, SATS]

SUPPORTED_CURRENCIES = SUPPORTED_FIAT_CURRENCIES + DIGITAL_CURRENCIES

# Fiat currencies whose rate has to be fetched (USD is the pivot, always 1.0)
RATE_FETCH_CURRENCIES = [c for c in SUPPORTED_FIAT_CURRENCIES if c != PIVOT_CURRENCY]

# Default preferred currency: the smallest, least lossy unit
DEFAULT_CURRENCY = SATS

# Display symbols, prefixed for fiat
FIAT_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CNY": "CN¥",
    "INR": "₹",
    "AUD": "A$",
    "CAD": "C$",
    "CHF": "CHF ",
    "HKD": "HK$",
    "SGD": "S$",
    "NZD": "NZ$",
    "SEK": "SEK ",
    "NOK": "NOK ",
    "MXN": "MX$",
}

# Display suffixes for digital units
DIGITAL_UNIT_SUFFIXES = {
    BSV: " BSV",
    SATS: " satoshis",
}

# Short symbols for digital units (currency pickers, input adornments)
DIGITAL_UNIT_SYMBOLS = {
    BSV: "BSV",
    SATS: "sats",
}

# Free-text tokens that name a currency without being its code
CURRENCY_ALIASES = {
    "SAT": SATS,
    "SATOSHI": SATS,
    "SATOSHIS": SATS,
    # Only symbols that map to exactly one supported currency
    "$": "USD",
    "€": "EUR",
    "£": "GBP",
    "₹": "INR",
}
