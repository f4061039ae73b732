"""Database package for digideck.

Only DigideckDatabase is exported as the public API.
"""

from .database import DigideckDatabase

__all__ = ["DigideckDatabase"]
