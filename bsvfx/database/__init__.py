"""
Database Package

Provides the settings store for bsvfx.
"""

from bsvfx.database.main import Database

__all__ = ["Database"]
