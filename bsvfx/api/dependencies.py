"""FastAPI dependencies for API routers.

Provides common dependencies that can be injected into route handlers.
"""

from dataclasses import dataclass

from fastapi import HTTPException, Request

from bsvfx.converter import CurrencyConverter
from bsvfx.exceptions import (
    ConverterDisposedError,
    CurrencyError,
    InvalidAmountError,
    RateFetchError,
    RateUnavailableError,
    UnsupportedCurrencyError,
)
from bsvfx.settings import Settings


@dataclass
class CommonDependencies:
    """Common dependencies used across API routes.

    Usage:
        @router.get("/endpoint")
        async def my_endpoint(deps: Annotated[CommonDependencies, Depends(get_common_deps)]):
            converter = deps.converter
            # ...
    """

    settings: Settings
    converter: CurrencyConverter


async def get_common_deps(request: Request) -> CommonDependencies:
    """Factory for common dependencies.

    Returns the settings and converter owned by the application lifespan.
    """
    return CommonDependencies(
        settings=request.app.state.settings,
        converter=request.app.state.converter,
    )


def http_error(error: CurrencyError) -> HTTPException:
    """Map a currency error to the HTTP status a client should see."""
    if isinstance(error, (UnsupportedCurrencyError, InvalidAmountError)):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, (RateUnavailableError, ConverterDisposedError)):
        return HTTPException(status_code=503, detail=str(error))
    if isinstance(error, RateFetchError):
        return HTTPException(status_code=502, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))
