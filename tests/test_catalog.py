"""
Tests for catalog resolution and episode dedup against a real SQLite file.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from anisync.core.exceptions import ResolveError
from anisync.db.tables import CatalogEntryRow
from anisync.models.episode import EpisodeDraft
from anisync.services.catalog import CatalogResolver
from anisync.services.episode_store import EpisodeStore
from anisync.services.feed_sources import FeedSourceStore


async def _entry(database, entry_id) -> CatalogEntryRow:
    async with database.session() as session:
        return await session.get(CatalogEntryRow, entry_id)


async def _entry_count(database) -> int:
    async with database.session() as session:
        return len((await session.execute(select(CatalogEntryRow))).scalars().all())


@pytest.fixture
def resolver(database, settings):
    return CatalogResolver(database, settings)


@pytest.mark.asyncio
async def test_same_title_and_season_resolve_to_one_entry(database, resolver):
    first = await resolver.resolve("葬送的芙莉莲", "2023", 1, True)
    second = await resolver.resolve("葬送的芙莉莲", "2023", 1, True)
    other_season = await resolver.resolve("葬送的芙莉莲", "2023", 2, True)

    assert first == second
    assert other_season != first
    assert await _entry_count(database) == 2


@pytest.mark.asyncio
async def test_non_positive_season_coerced_to_one(database, resolver):
    entry_id = await resolver.resolve("Oshi no Ko", None, 0, False)
    assert entry_id == await resolver.resolve("Oshi no Ko", None, 1, False)
    assert (await _entry(database, entry_id)).season == 1


@pytest.mark.asyncio
async def test_new_entry_records_tracker_source(database, resolver):
    known = await resolver.resolve("A", "2024", 1, True, poster_ref="https://p/a.jpg")
    unknown = await resolver.resolve("B", "2024", 1, False)

    entry = await _entry(database, known)
    assert entry.source == "mikan"
    assert entry.poster_link == "https://p/a.jpg"
    assert (await _entry(database, unknown)).source is None


@pytest.mark.asyncio
async def test_merge_never_loses_recorded_metadata(database, resolver):
    entry_id = await resolver.resolve("A", "2023", 1, False, poster_ref="https://p/1.jpg")

    # Later sightings with empty or different values
    await resolver.resolve("A", "2025", 1, False, poster_ref=None)
    await resolver.resolve("A", None, 1, True, poster_ref="")

    entry = await _entry(database, entry_id)
    assert entry.year == "2023"
    assert entry.poster_link == "https://p/1.jpg"
    assert entry.source == "mikan"


@pytest.mark.asyncio
async def test_missing_year_and_new_poster_are_filled_in(database, resolver):
    entry_id = await resolver.resolve("A", None, 1, False)
    await resolver.resolve("A", "2024", 1, False, poster_ref="https://p/2.jpg", poster_hash="abc")

    entry = await _entry(database, entry_id)
    assert entry.year == "2024"
    assert entry.poster_link == "https://p/2.jpg"
    assert entry.poster_hash == "abc"


@pytest.mark.asyncio
async def test_poster_hash_match_does_not_merge_titles(resolver):
    first = await resolver.resolve("Title A", None, 1, False, poster_hash="same")
    second = await resolver.resolve("Title B", None, 1, False, poster_hash="same")
    assert first != second


@pytest.mark.asyncio
async def test_failed_write_falls_back_to_existing_entry(resolver):
    entry_id = await resolver.resolve("A", None, 1, False)
    resolver._upsert = AsyncMock(side_effect=OperationalError("UPDATE", {}, Exception("locked")))

    assert await resolver.resolve("A", "2024", 1, False) == entry_id


@pytest.mark.asyncio
async def test_failed_write_without_entry_raises(resolver):
    resolver._upsert = AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("locked")))

    with pytest.raises(ResolveError):
        await resolver.resolve("Nothing", None, 1, False)


@pytest.mark.asyncio
async def test_episode_insert_is_deduplicated(database, resolver):
    source = await FeedSourceStore(database).create("Frieren", "https://mikanani.me/RSS/1")
    catalog_id = await resolver.resolve("葬送的芙莉莲", None, 1, True)
    store = EpisodeStore(database)
    draft = EpisodeDraft(
        catalog_id=catalog_id,
        source_id=source.id,
        title="[G] Frieren - 01",
        episode=1.0,
        torrent_url="https://mikanani.me/Download/1.torrent",
    )

    assert not await store.exists(catalog_id, source.id, draft.torrent_url)
    assert await store.insert(draft) is True
    assert await store.exists(catalog_id, source.id, draft.torrent_url)
    # Lost race: unique constraint turns the second insert into a no-op
    assert await store.insert(draft) is False
    assert await store.count(catalog_id) == 1


@pytest.mark.asyncio
async def test_duplicate_insert_is_not_logged_as_database_error(database, resolver):
    source = await FeedSourceStore(database).create("Frieren", "https://mikanani.me/RSS/1")
    catalog_id = await resolver.resolve("葬送的芙莉莲", None, 1, True)
    store = EpisodeStore(database)
    draft = EpisodeDraft(
        catalog_id=catalog_id,
        source_id=source.id,
        title="[G] Frieren - 01",
        episode=1.0,
        torrent_url="https://mikanani.me/Download/1.torrent",
    )
    await store.insert(draft)

    with patch("anisync.db.session.logger") as session_logger:
        assert await store.insert(draft) is False

    session_logger.error.assert_not_called()
    session_logger.debug.assert_called_once()


@pytest.mark.asyncio
async def test_concurrent_resolves_share_one_entry(database, resolver):
    ids = await asyncio.gather(
        *(resolver.resolve("New Title", None, 1, True) for _ in range(8))
    )

    assert len(set(ids)) == 1
    assert await _entry_count(database) == 1


@pytest.mark.asyncio
async def test_concurrent_inserts_store_one_record(database, resolver):
    source = await FeedSourceStore(database).create("Frieren", "https://mikanani.me/RSS/1")
    catalog_id = await resolver.resolve("葬送的芙莉莲", None, 1, True)
    store = EpisodeStore(database)
    draft = EpisodeDraft(
        catalog_id=catalog_id,
        source_id=source.id,
        title="[G] Frieren - 02",
        episode=2.0,
        torrent_url="https://mikanani.me/Download/2.torrent",
    )

    results = await asyncio.gather(*(store.insert(draft) for _ in range(8)))

    assert results.count(True) == 1
    assert await store.count(catalog_id) == 1


@pytest.mark.asyncio
async def test_check_connection(database):
    assert await database.check_connection() is True


@pytest.mark.asyncio
async def test_fractional_episode_numbers_are_kept(database, resolver):
    source = await FeedSourceStore(database).create("Frieren", "https://mikanani.me/RSS/1")
    catalog_id = await resolver.resolve("葬送的芙莉莲", None, 1, True)
    store = EpisodeStore(database)

    await store.insert(
        EpisodeDraft(
            catalog_id=catalog_id,
            source_id=source.id,
            title="special",
            episode=12.5,
            torrent_url="https://mikanani.me/Download/12.5.torrent",
        )
    )
    assert await store.count(catalog_id) == 1
