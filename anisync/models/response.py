"""
Response Models

Ingestion run reports and API response schemas.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class ItemOutcome(str, Enum):
    """What happened to one feed item."""
    ADDED = "added"
    DUPLICATE = "duplicate"
    FILTERED = "filtered"
    SKIPPED = "skipped"
    FAILED = "failed"


class PageReport(BaseModel):
    """Result of processing one feed page."""
    url: str
    items: int = 0
    added: int = 0
    duplicates: int = 0
    filtered: int = 0
    skipped: int = 0
    failed: int = 0
    error: Optional[str] = None

    def record(self, outcome: ItemOutcome):
        self.items += 1
        if outcome is ItemOutcome.ADDED:
            self.added += 1
        elif outcome is ItemOutcome.DUPLICATE:
            self.duplicates += 1
        elif outcome is ItemOutcome.FILTERED:
            self.filtered += 1
        elif outcome is ItemOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1


class SourceReport(BaseModel):
    """Result of processing one feed source."""
    source_id: int
    name: str
    pages: List[PageReport] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def items(self) -> int:
        return sum(p.items for p in self.pages)

    @property
    def added(self) -> int:
        return sum(p.added for p in self.pages)

    @property
    def duplicates(self) -> int:
        return sum(p.duplicates for p in self.pages)

    @property
    def filtered(self) -> int:
        return sum(p.filtered for p in self.pages)

    @property
    def failed_pages(self) -> int:
        return sum(1 for p in self.pages if p.error)

    @property
    def failed(self) -> int:
        return sum(p.failed + p.skipped for p in self.pages)

    def summary(self) -> str:
        return (
            f'Updated feed "{self.name}": {self.added} new episodes from '
            f"{self.items} items ({self.duplicates} duplicates, "
            f"{self.filtered} filtered, {self.failed} skipped or failed, "
            f"{self.failed_pages} failed pages)"
        )


class IngestionReport(BaseModel):
    """Result of a full scan across feed sources."""
    started_at: datetime
    finished_at: Optional[datetime] = None
    scanned: int = 0
    sources: List[SourceReport] = Field(default_factory=list)

    @property
    def added(self) -> int:
        return sum(s.added for s in self.sources)

    @property
    def failed_sources(self) -> int:
        return sum(1 for s in self.sources if s.error)


class TriggerResponse(BaseModel):
    """Response for manual trigger endpoints."""
    success: bool = True
    message: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
