"""
Episode Store

Dedup-aware persistence of episode records. The existence check runs
outside any catalog transaction; the unique constraint on
(bangumi_id, rss_id, url) settles races between workers.
"""

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from ..core.logging import get_logger
from ..db.session import Database
from ..db.tables import EpisodeRecordRow
from ..models.episode import EpisodeDraft

logger = get_logger(__name__)


class EpisodeStore:
    def __init__(self, database: Database):
        self.database = database

    async def exists(self, catalog_id: int, source_id: int, torrent_url: str) -> bool:
        async with self.database.session() as session:
            result = await session.execute(
                select(EpisodeRecordRow.id).where(
                    EpisodeRecordRow.bangumi_id == catalog_id,
                    EpisodeRecordRow.rss_id == source_id,
                    EpisodeRecordRow.url == torrent_url,
                ).limit(1)
            )
            return result.first() is not None

    async def insert(self, draft: EpisodeDraft) -> bool:
        """
        Insert one episode record.

        Returns:
            False when the record already existed
        """
        row = EpisodeRecordRow(
            bangumi_id=draft.catalog_id,
            rss_id=draft.source_id,
            title=draft.title,
            url=draft.torrent_url,
            magnet=draft.magnet_url or None,
            homepage=draft.homepage or None,
            episode=draft.episode,
            resolution=draft.resolution,
            group=draft.release_group,
            subtitle=draft.subtitle_tag,
            source=draft.source_tag,
            release_date=draft.release_date,
        )
        try:
            async with self.database.session() as session:
                session.add(row)
                await session.commit()
        except IntegrityError:
            logger.info(
                "episode_duplicate_ignored",
                catalog_id=draft.catalog_id,
                source_id=draft.source_id,
                torrent_url=draft.torrent_url,
            )
            return False
        return True

    async def count(self, catalog_id: int) -> int:
        """Number of episode records under one catalog entry."""
        async with self.database.session() as session:
            result = await session.execute(
                select(func.count(EpisodeRecordRow.id)).where(
                    EpisodeRecordRow.bangumi_id == catalog_id
                )
            )
            return result.scalar_one()
