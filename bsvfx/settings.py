"""
Settings - Single source of truth for application configuration.

Usage:
    settings = Settings(db)
    interval = await settings.get('refresh_interval_seconds')
    await settings.set('preferred_currency', 'EUR')
    all_settings = await settings.all()

Stored values override DEFAULTS. Nothing is read from the environment.
"""

from typing import Any

from bsvfx.database import Database

# Default settings - applied on first run, then configurable via the API
DEFAULTS = {
    # Seconds between background rate refreshes (0 disables the refresh task)
    "refresh_interval_seconds": 300,
    # Seconds a fetched preferred currency stays fresh
    "preference_ttl_seconds": 300,
    # Rate endpoints
    "bsv_rate_url": "https://api.whatsonchain.com/v1/bsv/main/exchangerate",
    "fiat_rates_url": "https://open.er-api.com/v6/latest/USD",
    "http_timeout_seconds": 10.0,
    # User's preferred display currency (None = satoshis)
    "preferred_currency": None,
}


class Settings:
    """Application settings backed by the settings table."""

    _db: "Database"

    def __init__(self, db: Database):
        self._db = db

    @property
    def db(self) -> Database:
        return self._db

    async def get(self, key: str, default: Any = None) -> Any:
        """Get a setting value."""
        value = await self._db.get_setting(key)
        if value is None:
            return default if default is not None else DEFAULTS.get(key)
        return value

    async def set(self, key: str, value: Any) -> None:
        """Set a setting value."""
        await self._db.set_setting(key, value)

    async def reset(self, key: str) -> None:
        """Drop a stored value so the default applies again."""
        await self._db.delete_setting(key)

    async def all(self) -> dict:
        """Get all settings with defaults applied."""
        stored = await self._db.get_all_settings()
        result = DEFAULTS.copy()
        result.update(stored)
        return result

    async def init_defaults(self) -> None:
        """Initialize default settings if not already set."""
        for key, value in DEFAULTS.items():
            if value is None:
                continue
            existing = await self._db.get_setting(key)
            if existing is None:
                await self._db.set_setting(key, value)
