"""Conversion API routes: amounts in the preferred currency and the preference itself."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from typing_extensions import Annotated

from bsvfx.api.dependencies import CommonDependencies, get_common_deps, http_error
from bsvfx.exceptions import CurrencyError
from bsvfx.sources import SettingsPreferenceSource
from bsvfx.utils.currency import currency_symbol, require_supported
from bsvfx.utils.formatting import FormatOptions

router = APIRouter(prefix="/convert", tags=["convert"])
currency_router = APIRouter(prefix="/currency", tags=["currency"])


@router.get("")
async def convert_amount(
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
    amount: str,
    currency: Optional[str] = None,
    decimal_places: Optional[int] = None,
    use_commas: bool = True,
    use_underscores: bool = False,
) -> dict[str, Any]:
    """
    Convert an amount to the preferred currency.

    Args:
        amount: Number or free text ('10000', '0.5', '$10')
        currency: Unit of amount; guessed from the text when omitted
    """
    options = FormatOptions(
        decimal_places=decimal_places,
        use_commas=use_commas,
        use_underscores=use_underscores,
    )
    try:
        result = await deps.converter.convert_amount(amount, options, currency=currency)
    except CurrencyError as e:
        raise http_error(e) from e
    return result.to_dict()


@router.get("/satoshis")
async def convert_to_satoshis(
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
    amount: float,
) -> dict[str, Any]:
    """Convert an amount in the preferred currency to whole satoshis (rounded up)."""
    try:
        satoshis = await deps.converter.convert_to_satoshis(amount)
    except CurrencyError as e:
        raise http_error(e) from e
    return {"currency": deps.converter.preferred_currency, "amount": amount, "satoshis": satoshis}


@currency_router.get("")
async def get_currency(
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
) -> dict[str, str]:
    """Get the preferred currency and its symbol."""
    code = await deps.converter.refresh_preference()
    return {"currency": code, "symbol": currency_symbol(code)}


@currency_router.put("/{code}")
async def set_currency(
    code: str,
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
) -> dict[str, str]:
    """Store a new preferred currency."""
    try:
        normalized = require_supported(code)
    except CurrencyError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await deps.settings.set(SettingsPreferenceSource.KEY, normalized)
    current = await deps.converter.refresh_preference()
    return {"currency": current, "symbol": currency_symbol(current)}
