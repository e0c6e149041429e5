"""SQLAlchemy models for identitycore tables.

All models inherit from the Base class defined in database.py and are
created on application startup outside production.
"""

from identitycore.infrastructure.persistence.models.account import AccountModel

__all__ = ["AccountModel"]
