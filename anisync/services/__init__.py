"""Services for fetching, filtering, persistence and scheduling."""

from .activity import ActivityLog
from .catalog import CatalogResolver
from .episode_store import EpisodeStore
from .feed_sources import FeedSourceStore
from .filtering import FilterPolicy
from .http_client import HttpFetcher
from .scheduler import SchedulerService, get_scheduler_service
from .settings_provider import FilterSettingsProvider, FilterSettingsStore
from .worker_pool import JobResult, WorkerPool

__all__ = [
    "ActivityLog",
    "CatalogResolver",
    "EpisodeStore",
    "FeedSourceStore",
    "FilterPolicy",
    "HttpFetcher",
    "SchedulerService",
    "get_scheduler_service",
    "FilterSettingsProvider",
    "FilterSettingsStore",
    "JobResult",
    "WorkerPool",
]
