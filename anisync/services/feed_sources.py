"""
Feed Source Repository

Reads feed-source configuration as FeedSource snapshots and records scan
timestamps. Creating sources is an administrative concern; create() exists
for seeding and tests.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update

from ..core.logging import get_logger
from ..db.session import Database
from ..db.tables import FeedSourceRow
from ..models.feed import FeedSource, ParserKind

logger = get_logger(__name__)


class FeedSourceStore:
    def __init__(self, database: Database):
        self.database = database

    async def list_all(self) -> List[FeedSource]:
        """All sources, highest priority first."""
        async with self.database.session() as session:
            result = await session.execute(
                select(FeedSourceRow).order_by(FeedSourceRow.priority.desc(), FeedSourceRow.id)
            )
            return [FeedSource.model_validate(row) for row in result.scalars()]

    async def get(self, source_id: int) -> Optional[FeedSource]:
        async with self.database.session() as session:
            row = await session.get(FeedSourceRow, source_id)
            return FeedSource.model_validate(row) if row else None

    async def mark_updated(self, source_id: int, when: datetime):
        async with self.database.session() as session:
            await session.execute(
                update(FeedSourceRow)
                .where(FeedSourceRow.id == source_id)
                .values(last_update_at=when)
            )
            await session.commit()

    async def create(
        self,
        name: str,
        url: str,
        parser_kind: str = ParserKind.TRACKER.value,
        **fields,
    ) -> FeedSource:
        row = FeedSourceRow(name=name, url=url, parser_kind=parser_kind, **fields)
        async with self.database.session() as session:
            session.add(row)
            await session.commit()
            await session.refresh(row)
            logger.info("feed_source_created", source_id=row.id, url=url)
            return FeedSource.model_validate(row)
