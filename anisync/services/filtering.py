"""
Keyword Filter Policy

Per-source view of the merged global and per-source keyword lists.
Exclusion always runs first and always wins. A Chinese subtitle tag
bypasses the include list entirely.
"""

from typing import List, Optional

from ..models.episode import ParsedEpisode
from ..models.feed import FeedSource, FilterSettings, split_keywords

# Markers that identify a Chinese-subtitled release
CHINESE_SUBTITLE_MARKERS = ("简", "繁", "CHS", "CHT", "GB", "BIG5", "中字", "中文")


def _union(*lists: List[str]) -> List[str]:
    merged: List[str] = []
    for keywords in lists:
        for keyword in keywords:
            if keyword not in merged:
                merged.append(keyword)
    return merged


def has_chinese_subtitle(subtitle_tag: str) -> bool:
    if not subtitle_tag:
        return False
    upper = subtitle_tag.upper()
    return any(marker in upper for marker in CHINESE_SUBTITLE_MARKERS)


class FilterPolicy:
    """Include/exclude decisions for items of one feed source."""

    def __init__(self, source: FeedSource, settings: FilterSettings):
        self.include_keywords = _union(
            split_keywords(settings.global_keywords), source.include_keywords
        )
        self.exclude_keywords = _union(
            split_keywords(settings.exclude_keywords), source.exclude_keyword_list
        )
        self.group_blacklist = split_keywords(settings.sub_group_blacklist)

    def exclusion_reason(
        self, raw_title: str, official_title: str, release_group: str = ""
    ) -> Optional[str]:
        """Why the item is excluded, or None when it may proceed."""
        for keyword in self.exclude_keywords:
            if keyword in raw_title or keyword in official_title:
                return f"exclude keyword {keyword!r}"
        if release_group:
            for group in self.group_blacklist:
                if group == release_group or group in release_group:
                    return f"blacklisted group {group!r}"
        return None

    def is_included(self, parsed: ParsedEpisode, raw_title: str, official_title: str) -> bool:
        if has_chinese_subtitle(parsed.subtitle_tag):
            return True
        return any(
            keyword in raw_title or keyword in official_title
            for keyword in self.include_keywords
        )
