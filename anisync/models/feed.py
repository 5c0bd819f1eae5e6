"""
Feed Source Models

Snapshots of the feed-source configuration and the global filter settings,
read once per scan and passed down the ingestion pipeline.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple
from pydantic import BaseModel, Field, ConfigDict


class ParserKind(str, Enum):
    """Feed parser implementations."""
    TRACKER = "tracker"
    GENERIC = "generic"


def split_keywords(raw: Optional[str]) -> List[str]:
    """Split a comma-separated keyword string, trimming and dropping blanks."""
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


class FeedSource(BaseModel):
    """A configured upstream tracker feed."""
    id: int
    name: str
    url: str
    parser_kind: str = ParserKind.TRACKER.value
    update_interval: int = Field(default=1, description="Hours between scans")
    keywords: str = ""
    exclude_keywords: str = ""
    priority: int = 0
    page_start: Optional[int] = None
    page_end: Optional[int] = None
    last_update_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def include_keywords(self) -> List[str]:
        return split_keywords(self.keywords)

    @property
    def exclude_keyword_list(self) -> List[str]:
        return split_keywords(self.exclude_keywords)

    def page_range(self) -> Tuple[int, int]:
        """
        Effective inclusive page range.

        Both bounds must be present and ordered, otherwise a single page.
        """
        if self.page_start is None or self.page_end is None:
            return 1, 1
        if self.page_start < 1 or self.page_end < self.page_start:
            return 1, 1
        return self.page_start, self.page_end

    def is_due(self, now: datetime, force: bool = False) -> bool:
        """Whether enough time has passed since the last scan."""
        if force or self.last_update_at is None:
            return True
        last = self.last_update_at
        if last.tzinfo is None:
            last = last.replace(tzinfo=timezone.utc)
        elapsed_hours = (now - last).total_seconds() / 3600
        return elapsed_hours >= self.update_interval


class FilterSettings(BaseModel):
    """Global keyword and subtitle-group filters."""
    global_keywords: str = ""
    exclude_keywords: str = ""
    sub_group_blacklist: str = ""

    model_config = ConfigDict(from_attributes=True)
