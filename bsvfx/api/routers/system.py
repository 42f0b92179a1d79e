"""System API routes for health, exchange rates and cache endpoints."""

from typing import Any

from fastapi import APIRouter, Depends
from typing_extensions import Annotated

from bsvfx.api.dependencies import CommonDependencies, get_common_deps, http_error
from bsvfx.exceptions import CurrencyError
from bsvfx.version import VERSION

router = APIRouter(tags=["system"])
exchange_rates_router = APIRouter(prefix="/exchange-rates", tags=["exchange-rates"])
cache_router = APIRouter(prefix="/cache", tags=["cache"])


@router.get("/health")
async def health(
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
) -> dict[str, Any]:
    """Health check endpoint."""
    converter = deps.converter
    return {
        "status": "healthy",
        "converter_state": converter.state.value,
        "rates_age_seconds": converter.rates_age,
        "version": VERSION,
    }


# Exchange rate endpoints


@exchange_rates_router.get("")
async def get_exchange_rates(
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
) -> dict[str, Any]:
    """Get the cached exchange rates without refreshing them."""
    converter = deps.converter
    return {
        **converter.rates.to_dict(),
        "age_seconds": converter.rates_age,
        "refresh_interval_seconds": converter.refresh_interval,
    }


@exchange_rates_router.post("/sync")
async def sync_exchange_rates(
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
) -> dict[str, Any]:
    """Refresh exchange rates from the rate source now."""
    try:
        rates = await deps.converter.refresh_rates()
    except CurrencyError as e:
        raise http_error(e) from e
    return rates.to_dict()


# Cache endpoints


@cache_router.get("/stats")
async def get_cache_stats(
    deps: Annotated[CommonDependencies, Depends(get_common_deps)],
) -> dict:
    """Get statistics for the rate and preference caches."""
    return deps.converter.cache_stats()
