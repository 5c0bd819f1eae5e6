"""
Database package for anisync.

- tables.py: SQLAlchemy ORM models
- session.py: async engine, session factory and the Database singleton

Usage:
    from anisync.db import get_database, CatalogEntryRow
"""

from .tables import (
    Base,
    TimestampMixin,
    FeedSourceRow,
    GlobalSettingsRow,
    CatalogEntryRow,
    EpisodeRecordRow,
    ActivityRow,
)
from .session import Database, get_database, init_database

__all__ = [
    "Base",
    "TimestampMixin",
    "FeedSourceRow",
    "GlobalSettingsRow",
    "CatalogEntryRow",
    "EpisodeRecordRow",
    "ActivityRow",
    "Database",
    "get_database",
    "init_database",
]
