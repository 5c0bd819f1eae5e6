"""
Global filter settings, persisted as a single row.
"""

from typing import Optional, Protocol

from sqlalchemy import select

from ..core.logging import get_logger
from ..db.session import Database
from ..db.tables import GlobalSettingsRow
from ..models.feed import FilterSettings

logger = get_logger(__name__)


class FilterSettingsProvider(Protocol):
    """Anything that can hand out a fresh FilterSettings snapshot."""

    async def get(self) -> FilterSettings: ...


class FilterSettingsStore:
    def __init__(self, database: Database):
        self.database = database

    async def get(self) -> FilterSettings:
        """Current settings; the row is created empty on first read."""
        async with self.database.session() as session:
            row = (
                await session.execute(select(GlobalSettingsRow).order_by(GlobalSettingsRow.id).limit(1))
            ).scalar_one_or_none()
            if row is None:
                row = GlobalSettingsRow(global_keywords="", exclude_keywords="", sub_group_blacklist="")
                session.add(row)
                await session.commit()
                logger.info("global_settings_created")
            return FilterSettings.model_validate(row)

    async def update(
        self,
        global_keywords: Optional[str] = None,
        exclude_keywords: Optional[str] = None,
        sub_group_blacklist: Optional[str] = None,
    ) -> FilterSettings:
        await self.get()
        async with self.database.session() as session:
            row = (
                await session.execute(select(GlobalSettingsRow).order_by(GlobalSettingsRow.id).limit(1))
            ).scalar_one()
            if global_keywords is not None:
                row.global_keywords = global_keywords
            if exclude_keywords is not None:
                row.exclude_keywords = exclude_keywords
            if sub_group_blacklist is not None:
                row.sub_group_blacklist = sub_group_blacklist
            await session.commit()
            return FilterSettings.model_validate(row)
