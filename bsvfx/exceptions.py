"""Currency-specific exceptions."""


class CurrencyError(Exception):
    """Base exception for currency errors."""

    pass


class RateFetchError(CurrencyError):
    """Raised when exchange rates cannot be fetched from the rate source."""

    def __init__(self, reason: str, source: str = ""):
        self.reason = reason
        self.source = source
        message = "Failed to fetch exchange rates"
        if source:
            message += f" from {source}"
        super().__init__(f"{message}: {reason}")


class PreferenceFetchError(CurrencyError):
    """Raised when the preferred currency cannot be fetched."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Failed to fetch preferred currency: {reason}")


class UnsupportedCurrencyError(CurrencyError, ValueError):
    """Raised when a currency code is outside the supported set."""

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Unsupported currency: {currency!r}")


class RateUnavailableError(CurrencyError):
    """Raised when a rate needed for a conversion is zero, negative, non-finite or missing."""

    def __init__(self, currency: str, rate=None):
        self.currency = currency
        self.rate = rate
        if rate is None:
            message = f"Exchange rate unavailable for {currency}"
        else:
            message = f"Exchange rate unavailable for {currency}: got {rate!r}"
        super().__init__(message)


class InvalidAmountError(CurrencyError, ValueError):
    """Raised when an amount cannot be parsed into a number."""

    def __init__(self, amount):
        self.amount = amount
        super().__init__(f"Invalid amount: {amount!r}")


class ConverterDisposedError(CurrencyError):
    """Raised when a disposed converter is asked to do I/O."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Cannot {operation}: converter has been disposed")
