"""Pydantic models for anisync."""

from .feed import FeedSource, FilterSettings, ParserKind, split_keywords
from .episode import ParsedEpisode, DetailPage, EpisodeDraft
from .response import (
    ItemOutcome,
    PageReport,
    SourceReport,
    IngestionReport,
    TriggerResponse,
)

__all__ = [
    "FeedSource",
    "FilterSettings",
    "ParserKind",
    "split_keywords",
    "ParsedEpisode",
    "DetailPage",
    "EpisodeDraft",
    "ItemOutcome",
    "PageReport",
    "SourceReport",
    "IngestionReport",
    "TriggerResponse",
]
