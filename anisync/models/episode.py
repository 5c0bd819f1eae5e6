"""
Episode Models

Structured output of the title parser and the detail-page scraper, plus the
record handed to the episode store.
"""

from pydantic import BaseModel, ConfigDict


class ParsedEpisode(BaseModel):
    """Structured descriptor extracted from a raw fansub release title."""
    name_en: str = ""
    name_zh: str = ""
    name_jp: str = ""
    season: int = 1
    season_raw: str = ""
    episode: float = 0.0
    subtitle_tag: str = ""
    release_group: str = ""
    resolution: str = ""
    source_tag: str = ""

    model_config = ConfigDict(frozen=True)


class DetailPage(BaseModel):
    """Fields scraped from one tracker item page."""
    homepage: str
    official_title: str = ""
    release_group: str = ""
    raw_title: str = ""
    release_date: str = ""
    release_year: str = ""
    release_month: str = ""
    release_day: str = ""
    torrent_url: str = ""
    magnet_url: str = ""


class EpisodeDraft(BaseModel):
    """An episode record ready to be inserted."""
    catalog_id: int
    source_id: int
    title: str
    episode: float
    torrent_url: str
    magnet_url: str = ""
    homepage: str = ""
    resolution: str = ""
    release_group: str = ""
    subtitle_tag: str = ""
    source_tag: str = ""
    release_date: str = ""
