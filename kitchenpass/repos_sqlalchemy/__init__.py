"""SQLAlchemy implementations of the persistence contracts."""

from .store_sql import MODELS, SqlStore

__all__ = ["MODELS", "SqlStore"]
