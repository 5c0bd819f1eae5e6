"""
Feed Ingestion Job

Scans due feed sources, walks their RSS pages, scrapes each item's detail
page, filters, parses the release title, resolves the catalog entry and
stores new episode records.

Concurrency:
- a source-level worker pool processes due sources independently
- each source fans its pages out over a page-level worker pool

Every failure below the scan is logged and counted; one bad item, page or
source never stops its siblings.
"""

import asyncio
from datetime import datetime, timezone
from typing import Callable, Optional
from urllib.parse import urlparse

from sqlalchemy.exc import SQLAlchemyError

from ..config import Settings, get_settings
from ..core.exceptions import (
    FeedDocumentError,
    FetchError,
    NotFoundError,
    ResolveError,
    UnsupportedParserKind,
)
from ..core.logging import get_logger
from ..db.session import Database, get_database
from ..models.episode import EpisodeDraft
from ..models.feed import FeedSource, FilterSettings, ParserKind
from ..models.response import IngestionReport, ItemOutcome, PageReport, SourceReport
from ..parsers.detail_page import DetailPageScraper
from ..parsers.feed_document import page_url, parse_feed_links
from ..parsers.title import try_parse_title
from ..services.activity import ActivityLog
from ..services.catalog import CatalogResolver
from ..services.episode_store import EpisodeStore
from ..services.feed_sources import FeedSourceStore
from ..services.filtering import FilterPolicy
from ..services.http_client import HttpFetcher
from ..services.settings_provider import FilterSettingsProvider, FilterSettingsStore
from ..services.worker_pool import WorkerPool

logger = get_logger(__name__)

ACTIVITY_TYPE = "rss"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IngestionJob:
    """
    Background job for feed ingestion.

    Collaborators are injected so tests can swap any of them; anything not
    given is built on top of `database`.
    """

    def __init__(
        self,
        database: Optional[Database] = None,
        settings: Optional[Settings] = None,
        fetcher: Optional[HttpFetcher] = None,
        scraper: Optional[DetailPageScraper] = None,
        sources: Optional[FeedSourceStore] = None,
        filter_settings: Optional[FilterSettingsProvider] = None,
        catalog: Optional[CatalogResolver] = None,
        episodes: Optional[EpisodeStore] = None,
        activity: Optional[ActivityLog] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings or get_settings()
        database = database or get_database()
        self.fetcher = fetcher or HttpFetcher(settings=self.settings)
        self.scraper = scraper or DetailPageScraper(self.fetcher)
        self.sources = sources or FeedSourceStore(database)
        self.filter_settings = filter_settings or FilterSettingsStore(database)
        self.catalog = catalog or CatalogResolver(database, self.settings)
        self.episodes = episodes or EpisodeStore(database)
        self.activity = activity or ActivityLog(database)
        self._now = clock or _utcnow

    def is_known_tracker(self, source: FeedSource) -> bool:
        host = urlparse(source.url).netloc.lower()
        return self.settings.known_tracker_host.lower() in host

    async def run(self, force: bool = False) -> IngestionReport:
        """
        Scan every due source once.

        Args:
            force: Ignore update intervals and scan every source
        """
        report = IngestionReport(started_at=self._now())
        logger.info("ingestion_job_started", force=force)

        filters = await self.filter_settings.get()
        sources = await self.sources.list_all()
        due = [s for s in sources if s.is_due(report.started_at, force=force)]
        report.scanned = len(due)
        logger.info("ingestion_sources_due", total=len(sources), due=len(due))

        pool = WorkerPool(self.settings.source_workers, name="sources")
        results = await pool.run(due, lambda source: self.process_source(source, filters))
        for result in results:
            if result.ok:
                report.sources.append(result.value)
            else:
                report.sources.append(
                    SourceReport(
                        source_id=result.item.id,
                        name=result.item.name,
                        error=str(result.error),
                    )
                )

        report.finished_at = self._now()
        logger.info(
            "ingestion_job_completed",
            scanned=report.scanned,
            added=report.added,
            failed_sources=report.failed_sources,
            duration_seconds=(report.finished_at - report.started_at).total_seconds(),
        )
        return report

    async def run_single(self, source_id: int) -> SourceReport:
        """
        Process one source regardless of its update interval.

        Raises:
            NotFoundError: No source with this id
        """
        source = await self.sources.get(source_id)
        if source is None:
            raise NotFoundError("feed source", str(source_id))
        filters = await self.filter_settings.get()
        return await self.process_source(source, filters)

    async def process_source(self, source: FeedSource, filters: FilterSettings) -> SourceReport:
        report = SourceReport(source_id=source.id, name=source.name)
        if source.parser_kind != ParserKind.TRACKER.value:
            error = UnsupportedParserKind(source.parser_kind)
            logger.error("source_unsupported_parser", source_id=source.id, parser_kind=source.parser_kind)
            report.error = error.message
            return report

        policy = FilterPolicy(source, filters)
        known_tracker = self.is_known_tracker(source)
        start, end = source.page_range()
        urls = [page_url(source.url, page) for page in range(start, end + 1)]
        logger.info("source_scan_started", source_id=source.id, name=source.name, pages=len(urls))

        pool = WorkerPool(self.settings.page_workers, name=f"pages:{source.id}")
        results = await pool.run(
            urls, lambda url: self.process_page(source, url, policy, known_tracker)
        )
        for result in results:
            if result.ok:
                report.pages.append(result.value)
            else:
                report.pages.append(PageReport(url=result.item, error=str(result.error)))

        await self.sources.mark_updated(source.id, self._now())
        summary = report.summary()
        await self.activity.record(ACTIVITY_TYPE, summary)
        logger.info(
            "source_scan_completed",
            source_id=source.id,
            added=report.added,
            duplicates=report.duplicates,
            filtered=report.filtered,
            failed=report.failed,
            failed_pages=report.failed_pages,
        )
        return report

    async def process_page(
        self,
        source: FeedSource,
        url: str,
        policy: FilterPolicy,
        known_tracker: bool,
    ) -> PageReport:
        report = PageReport(url=url)
        try:
            content = await self.fetcher.fetch_with_retry(url)
            links = parse_feed_links(content)
        except (FetchError, FeedDocumentError) as e:
            logger.error("feed_page_failed", source_id=source.id, url=url, error=e.message)
            report.error = e.message
            return report

        logger.info("feed_page_fetched", source_id=source.id, url=url, items=len(links))
        for link in links:
            try:
                outcome = await self.process_item(source, link, policy, known_tracker)
            except Exception as e:
                logger.error("feed_item_failed", source_id=source.id, homepage=link, error=str(e))
                outcome = ItemOutcome.FAILED
            report.record(outcome)
        return report

    async def _poster(self, homepage: str):
        try:
            poster_url = await self.scraper.fetch_poster_url(homepage)
        except FetchError as e:
            logger.warning("poster_fetch_failed", homepage=homepage, error=e.message)
            return None, None
        if not poster_url or not self.settings.poster_hashing:
            return poster_url, None
        try:
            return poster_url, await self.scraper.fetch_poster_hash(poster_url)
        except FetchError as e:
            logger.warning("poster_hash_failed", poster_url=poster_url, error=e.message)
            return poster_url, None

    async def process_item(
        self,
        source: FeedSource,
        homepage: str,
        policy: FilterPolicy,
        known_tracker: bool,
    ) -> ItemOutcome:
        """Run one feed item through scrape, filter, parse, resolve and store."""
        try:
            detail = await self.scraper.fetch_info(homepage)
        except FetchError as e:
            logger.warning("item_fetch_failed", homepage=homepage, error=e.message)
            return ItemOutcome.FAILED

        if not detail.official_title.strip():
            logger.warning("item_skipped", homepage=homepage, reason="empty official title")
            return ItemOutcome.SKIPPED

        reason = policy.exclusion_reason(detail.raw_title, detail.official_title, detail.release_group)
        if reason:
            logger.info("item_excluded", homepage=homepage, raw_title=detail.raw_title, reason=reason)
            return ItemOutcome.FILTERED

        parsed = try_parse_title(detail.raw_title)
        if parsed is None:
            logger.warning("item_skipped", homepage=homepage, reason="unparseable title", raw_title=detail.raw_title)
            return ItemOutcome.SKIPPED

        if not policy.is_included(parsed, detail.raw_title, detail.official_title):
            logger.info("item_not_included", homepage=homepage, raw_title=detail.raw_title)
            return ItemOutcome.FILTERED

        if not detail.torrent_url:
            logger.warning("item_skipped", homepage=homepage, reason="missing torrent link")
            return ItemOutcome.SKIPPED

        poster_url, poster_hash = await self._poster(homepage)

        try:
            catalog_id = await self.catalog.resolve(
                detail.official_title,
                detail.release_year or None,
                parsed.season,
                known_tracker,
                poster_ref=poster_url,
                poster_hash=poster_hash,
            )
        except ResolveError as e:
            logger.error("item_resolve_failed", homepage=homepage, error=e.message)
            return ItemOutcome.FAILED

        try:
            if await self.episodes.exists(catalog_id, source.id, detail.torrent_url):
                logger.debug("item_duplicate", homepage=homepage, catalog_id=catalog_id)
                return ItemOutcome.DUPLICATE

            draft = EpisodeDraft(
                catalog_id=catalog_id,
                source_id=source.id,
                title=detail.raw_title,
                episode=parsed.episode,
                torrent_url=detail.torrent_url,
                magnet_url=detail.magnet_url,
                homepage=homepage,
                resolution=parsed.resolution,
                release_group=detail.release_group or parsed.release_group,
                subtitle_tag=parsed.subtitle_tag,
                source_tag=self.settings.known_tracker_source if known_tracker else parsed.source_tag,
                release_date=detail.release_date,
            )
            inserted = await self.episodes.insert(draft)
        except SQLAlchemyError as e:
            logger.error("item_store_failed", homepage=homepage, catalog_id=catalog_id, error=str(e))
            return ItemOutcome.FAILED

        if not inserted:
            return ItemOutcome.DUPLICATE
        logger.info(
            "episode_added",
            catalog_id=catalog_id,
            source_id=source.id,
            episode=parsed.episode,
            title=detail.raw_title,
        )
        return ItemOutcome.ADDED

    async def close(self):
        await self.fetcher.close()


async def run_ingestion_job(force: bool = False) -> IngestionReport:
    """Entry point for scheduled job."""
    job = IngestionJob()
    try:
        return await job.run(force=force)
    finally:
        await job.close()


async def run_single_source_job(source_id: int) -> SourceReport:
    """Entry point for a manual single-source refresh."""
    job = IngestionJob()
    try:
        return await job.run_single(source_id)
    finally:
        await job.close()


if __name__ == "__main__":
    # Manual run for testing
    asyncio.run(run_ingestion_job(force=True))
