"""
Tracker Detail-Page Scraper

Reads one episode page of the tracker site and extracts the localized series
title, release group, raw release filename, release date, torrent and magnet
links. The poster lives on the same page but is fetched by a separate call
so its cost is only paid for items that survive filtering.
"""

import hashlib
import re
from datetime import date, timedelta
from typing import Callable, Optional, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from ..core.logging import get_logger
from ..models.episode import DetailPage
from ..services.http_client import HttpFetcher

logger = get_logger(__name__)


SEASON_SUFFIX_RE = re.compile(r"第.*季|\s*\bSeason\s*\d+\b", re.IGNORECASE)
POSTER_URL_RE = re.compile(r"url\(['\"]?([^'\")]+)['\"]?\)")
RELEASE_DATE_LABEL = "发布日期："

# Relative day words as rendered by the tracker
RELATIVE_DAYS = (
    ("前天", 2),
    ("昨天", 1),
    ("今天", 0),
)


def _text(soup: BeautifulSoup, selector: str) -> str:
    # Last match wins, the page repeats some blocks for mobile layouts
    found = soup.select(selector)
    if not found:
        return ""
    return found[-1].get_text(strip=True)


def strip_season_suffix(title: str) -> str:
    return SEASON_SUFFIX_RE.sub("", title).strip()


def parse_release_date(text: str, today: date) -> Tuple[str, str, str, str]:
    """
    Decompose the tracker's release date text.

    Handles relative words (今天/昨天/前天) and absolute YYYY/MM/DD text
    with an optional time part.

    Returns:
        Tuple of (release_date, year, month, day); all empty when unparseable.
    """
    text = text.strip()
    if "天" in text:
        for word, days_back in RELATIVE_DAYS:
            if word in text:
                target = today - timedelta(days=days_back)
                return (
                    target.strftime("%Y/%m/%d"),
                    target.strftime("%Y"),
                    target.strftime("%m"),
                    target.strftime("%d"),
                )
        return "", "", "", ""

    parts = text.split("/")
    if len(parts) >= 3:
        day = parts[2].split(" ")[0]
        return text, parts[0].strip(), parts[1].strip(), day.strip()

    return "", "", "", ""


def parse_detail_html(html: str, homepage: str, today: Optional[date] = None) -> DetailPage:
    """Extract detail fields from an episode page."""
    soup = BeautifulSoup(html, "html.parser")
    today = today or date.today()

    official_title = strip_season_suffix(
        _text(soup, "p.bangumi-title a[href^='/Home/Bangumi/']")
    )
    release_group = _text(
        soup, "p.bangumi-info a.magnet-link-wrap[href^='/Home/PublishGroup/']"
    )
    raw_title = _text(soup, "div.central-container div.episode-header p.episode-title")
    if not raw_title:
        raw_title = _text(soup, "div.episode-header p.episode-title")

    release_date = release_year = release_month = release_day = ""
    for info in soup.select("p.bangumi-info"):
        text = info.get_text(strip=True)
        if RELEASE_DATE_LABEL not in text:
            continue
        date_text = text.split(RELEASE_DATE_LABEL, 1)[1].strip()
        release_date, release_year, release_month, release_day = parse_release_date(
            date_text, today
        )
        if not release_date:
            logger.warning("release_date_unparsed", homepage=homepage, text=date_text)
        break

    torrent_url = ""
    for link in soup.select("div.leftbar-nav a.episode-btn[href$='.torrent']"):
        torrent_url = urljoin(homepage, link["href"])

    magnet_url = ""
    for link in soup.select("div.leftbar-nav a.episode-btn[href^='magnet:']"):
        magnet_url = link["href"]

    return DetailPage(
        homepage=homepage,
        official_title=official_title,
        release_group=release_group,
        raw_title=raw_title,
        release_date=release_date,
        release_year=release_year,
        release_month=release_month,
        release_day=release_day,
        torrent_url=torrent_url,
        magnet_url=magnet_url,
    )


def extract_poster_url(html: str, homepage: str) -> Optional[str]:
    """Poster image URL from the inline background-image style, without query string."""
    soup = BeautifulSoup(html, "html.parser")
    poster = soup.select_one("div.bangumi-poster")
    if poster is None:
        return None
    match = POSTER_URL_RE.search(poster.get("style", ""))
    if not match:
        return None
    path = match.group(1).split("?", 1)[0]
    return urljoin(homepage, path)


class DetailPageScraper:
    """Fetches and parses tracker episode pages."""

    def __init__(self, fetcher: HttpFetcher, today: Optional[Callable[[], date]] = None):
        self.fetcher = fetcher
        self._today = today or date.today

    async def fetch_info(self, homepage: str) -> DetailPage:
        """
        Fetch one episode page and parse it.

        Raises:
            FetchError: Page could not be fetched
        """
        html = await self.fetcher.fetch_text(homepage)
        page = parse_detail_html(html, homepage, today=self._today())
        logger.debug(
            "detail_page_parsed",
            homepage=homepage,
            official_title=page.official_title,
            raw_title=page.raw_title,
        )
        return page

    async def fetch_poster_url(self, homepage: str) -> Optional[str]:
        """Fetch the page again and return its poster URL, if any."""
        html = await self.fetcher.fetch_text(homepage)
        return extract_poster_url(html, homepage)

    async def fetch_poster_hash(self, poster_url: str) -> str:
        """MD5 hex digest of the poster image content."""
        data = await self.fetcher.fetch_bytes(poster_url)
        return hashlib.md5(data).hexdigest()
