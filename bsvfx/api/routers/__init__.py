"""API routers for bsvfx.

Each router handles a specific domain of the API.
"""

from bsvfx.api.routers.conversion import currency_router
from bsvfx.api.routers.conversion import router as conversion_router
from bsvfx.api.routers.system import cache_router, exchange_rates_router
from bsvfx.api.routers.system import router as system_router

__all__ = [
    "conversion_router",
    "currency_router",
    "system_router",
    "cache_router",
    "exchange_rates_router",
]
