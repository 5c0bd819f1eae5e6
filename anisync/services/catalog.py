"""
Catalog Resolver

Maps an (official title, season) pair to exactly one catalog entry,
creating it on first sight and filling in missing metadata later.

Merge rules for an existing entry:
- year is only written when currently unset
- source is only written for the known tracker and only when unset
- poster link/hash are replaced when a non-empty new value differs
- nothing is written when nothing changed
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings, get_settings
from ..core.exceptions import ResolveError
from ..core.logging import get_logger
from ..db.session import Database
from ..db.tables import CatalogEntryRow

logger = get_logger(__name__)


class CatalogResolver:
    """Find-or-create for catalog entries keyed by title and season."""

    def __init__(self, database: Database, settings: Optional[Settings] = None):
        self.database = database
        self.settings = settings or get_settings()

    async def _find(self, session: AsyncSession, official_title: str, season: int) -> Optional[CatalogEntryRow]:
        result = await session.execute(
            select(CatalogEntryRow).where(
                CatalogEntryRow.official_title == official_title,
                CatalogEntryRow.season == season,
            )
        )
        return result.scalar_one_or_none()

    async def _warn_on_hash_match(self, session: AsyncSession, entry_id: Optional[int], poster_hash: str, official_title: str):
        query = select(CatalogEntryRow.id, CatalogEntryRow.official_title).where(
            CatalogEntryRow.poster_hash == poster_hash
        )
        if entry_id is not None:
            query = query.where(CatalogEntryRow.id != entry_id)
        match = (await session.execute(query.limit(1))).first()
        if match is not None:
            logger.warning(
                "catalog_poster_hash_match",
                entry_id=entry_id,
                official_title=official_title,
                other_id=match.id,
                other_title=match.official_title,
            )

    async def _upsert(
        self,
        session: AsyncSession,
        official_title: str,
        year: Optional[str],
        season: int,
        is_known_tracker: bool,
        poster_ref: Optional[str],
        poster_hash: Optional[str],
    ) -> int:
        entry = await self._find(session, official_title, season)

        if poster_hash:
            await self._warn_on_hash_match(
                session, entry.id if entry else None, poster_hash, official_title
            )

        if entry is None:
            entry = CatalogEntryRow(
                official_title=official_title,
                season=season,
                year=year or None,
                source=self.settings.known_tracker_source if is_known_tracker else None,
                poster_link=poster_ref or None,
                poster_hash=poster_hash or None,
            )
            session.add(entry)
            await session.flush()
            logger.info(
                "catalog_entry_created",
                entry_id=entry.id,
                official_title=official_title,
                season=season,
            )
            return entry.id

        changed = []
        if year and not entry.year:
            entry.year = year
            changed.append("year")
        if is_known_tracker and not entry.source:
            entry.source = self.settings.known_tracker_source
            changed.append("source")
        if poster_ref and poster_ref != entry.poster_link:
            entry.poster_link = poster_ref
            changed.append("poster_link")
        if poster_hash and poster_hash != entry.poster_hash:
            entry.poster_hash = poster_hash
            changed.append("poster_hash")

        if changed:
            await session.flush()
            logger.info("catalog_entry_updated", entry_id=entry.id, fields=changed)
        return entry.id

    async def resolve(
        self,
        official_title: str,
        year: Optional[str],
        season: int,
        is_known_tracker: bool,
        poster_ref: Optional[str] = None,
        poster_hash: Optional[str] = None,
    ) -> int:
        """
        Return the id of the catalog entry for (official_title, season).

        Raises:
            ResolveError: The entry could neither be written nor re-read
        """
        if not season or season <= 0:
            season = 1

        try:
            async with self.database.session() as session:
                async with session.begin():
                    return await self._upsert(
                        session,
                        official_title,
                        year,
                        season,
                        is_known_tracker,
                        poster_ref,
                        poster_hash,
                    )
        except SQLAlchemyError as e:
            # A concurrent worker may have created the same entry first
            logger.warning(
                "catalog_resolve_conflict",
                official_title=official_title,
                season=season,
                error=str(e),
            )

        try:
            async with self.database.session() as session:
                entry = await self._find(session, official_title, season)
        except SQLAlchemyError as e:
            raise ResolveError(official_title, season, str(e)) from e

        if entry is None:
            raise ResolveError(official_title, season, "entry missing after failed write")
        return entry.id
