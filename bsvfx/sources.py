"""
Sources - Where exchange rates and the preferred currency come from.

Usage:
    rates = HttpRateSource(bsv_rate_url, fiat_rates_url, timeout=10.0)
    usd_per_bsv = await rates.get_bsv_rate()
    fiat = await rates.get_fiat_rates(['EUR', 'GBP'])

    preference = SettingsPreferenceSource(settings)
    code = await preference.get_preferred_currency()
"""

import logging
import math
from typing import Optional, Protocol, Sequence

import httpx

from bsvfx.exceptions import PreferenceFetchError, RateFetchError
from bsvfx.settings import DEFAULTS, Settings

logger = logging.getLogger(__name__)


class RateSource(Protocol):
    """Supplies the BSV price and fiat-per-USD rates."""

    async def get_bsv_rate(self) -> float:
        """USD price of one BSV."""
        ...

    async def get_fiat_rates(self, codes: Sequence[str]) -> dict[str, float]:
        """Units of each requested fiat currency per USD. Unknown codes are left out."""
        ...


class PreferenceSource(Protocol):
    """Supplies the user's preferred currency code, or None if not set."""

    async def get_preferred_currency(self) -> Optional[str]: ...


def _to_rate(value, name: str, source: str) -> float:
    try:
        rate = float(value)
    except (TypeError, ValueError) as e:
        raise RateFetchError(f"non-numeric rate for {name}: {value!r}", source) from e
    if not math.isfinite(rate):
        raise RateFetchError(f"non-finite rate for {name}: {value!r}", source)
    return rate


class HttpRateSource:
    """
    Rate source over HTTP.

    bsv_rate_url must answer with {"rate": <USD per BSV>, ...} (WhatsOnChain
    format). fiat_rates_url must answer with a USD-based {"rates": {"EUR": ...}}
    document.
    """

    def __init__(
        self,
        bsv_rate_url: str = DEFAULTS["bsv_rate_url"],
        fiat_rates_url: str = DEFAULTS["fiat_rates_url"],
        timeout: float = DEFAULTS["http_timeout_seconds"],
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._bsv_rate_url = bsv_rate_url
        self._fiat_rates_url = fiat_rates_url
        self._timeout = timeout
        self._client = client

    async def _get_json(self, url: str) -> dict:
        try:
            if self._client is not None:
                response = await self._client.get(url, timeout=self._timeout)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.get(url)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise RateFetchError("request timed out", url) from e
        except httpx.HTTPStatusError as e:
            raise RateFetchError(f"HTTP {e.response.status_code}", url) from e
        except httpx.HTTPError as e:
            raise RateFetchError(str(e) or type(e).__name__, url) from e
        except ValueError as e:
            raise RateFetchError("response is not valid JSON", url) from e

        if not isinstance(data, dict):
            raise RateFetchError(f"unexpected payload type {type(data).__name__}", url)
        return data

    async def get_bsv_rate(self) -> float:
        data = await self._get_json(self._bsv_rate_url)
        if "rate" not in data:
            raise RateFetchError("payload has no 'rate' field", self._bsv_rate_url)
        rate = _to_rate(data["rate"], "BSV", self._bsv_rate_url)
        logger.debug(f"Fetched BSV rate: {rate} USD")
        return rate

    async def get_fiat_rates(self, codes: Sequence[str]) -> dict[str, float]:
        data = await self._get_json(self._fiat_rates_url)
        rates = data.get("rates")
        if not isinstance(rates, dict):
            raise RateFetchError("payload has no 'rates' object", self._fiat_rates_url)

        result = {}
        for code in codes:
            if code in rates:
                result[code] = _to_rate(rates[code], code, self._fiat_rates_url)
            else:
                logger.warning(f"Fiat rate for {code} missing from {self._fiat_rates_url}")
        return result


class StaticRateSource:
    """Fixed rates, for offline use and tests."""

    def __init__(self, usd_per_bsv: float, fiat_per_usd: Optional[dict[str, float]] = None):
        self.usd_per_bsv = usd_per_bsv
        self.fiat_per_usd = dict(fiat_per_usd or {})

    async def get_bsv_rate(self) -> float:
        return self.usd_per_bsv

    async def get_fiat_rates(self, codes: Sequence[str]) -> dict[str, float]:
        return {code: self.fiat_per_usd[code] for code in codes if code in self.fiat_per_usd}


class SettingsPreferenceSource:
    """Reads the preferred currency from the settings store."""

    KEY = "preferred_currency"

    def __init__(self, settings: Settings):
        self._settings = settings

    async def get_preferred_currency(self) -> Optional[str]:
        try:
            value = await self._settings.get(self.KEY)
        except Exception as e:
            raise PreferenceFetchError(str(e) or type(e).__name__) from e
        if value is None:
            return None
        return str(value)


class StaticPreferenceSource:
    """Fixed preferred currency, for offline use and tests."""

    def __init__(self, currency: Optional[str] = None):
        self.currency = currency

    async def get_preferred_currency(self) -> Optional[str]:
        return self.currency
