"""
Release Title Inspection Tool

Parses a raw release title, or scrapes a tracker episode page and parses
the title found there, and prints the result.

Usage:
    anisync-parse --title "[G1&G2] THE MARGINAL SERVICE - 08 [WebRip 1080p][简繁内封字幕]"
    anisync-parse --url https://mikanani.me/Home/Episode/<hash> --json
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from pydantic import BaseModel

from .core.exceptions import FetchError, TitleParseError
from .core.logging import setup_logging
from .models.episode import DetailPage, ParsedEpisode
from .parsers.detail_page import DetailPageScraper
from .parsers.title import parse_title
from .services.http_client import HttpFetcher

EPISODE_LABELS = [
    ("name_en", "English name"),
    ("name_zh", "Chinese name"),
    ("name_jp", "Japanese name"),
    ("season", "Season"),
    ("season_raw", "Season marker"),
    ("episode", "Episode"),
    ("release_group", "Group"),
    ("subtitle_tag", "Subtitle"),
    ("resolution", "Resolution"),
    ("source_tag", "Source"),
]

DETAIL_LABELS = [
    ("official_title", "Official title"),
    ("release_group", "Group"),
    ("raw_title", "Raw title"),
    ("release_date", "Release date"),
    ("torrent_url", "Torrent"),
    ("magnet_url", "Magnet"),
]


class PageInspection(BaseModel):
    """Scraped page fields together with the parsed title."""
    detail: DetailPage
    episode: ParsedEpisode


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="anisync-parse",
        description="Parse a fansub release title or a tracker episode page.",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--title", help="Raw release title to parse")
    source.add_argument("--url", help="Tracker episode page to scrape, then parse its title")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    return parser


def _print_fields(model, labels):
    for field, label in labels:
        print(f"{label}: {getattr(model, field)}")


async def run(args: argparse.Namespace, fetcher: Optional[HttpFetcher] = None) -> int:
    """Execute one invocation; returns the process exit code."""
    raw_title = args.title
    detail: Optional[DetailPage] = None

    if args.url:
        fetcher = fetcher or HttpFetcher()
        try:
            detail = await DetailPageScraper(fetcher).fetch_info(args.url)
        except FetchError as e:
            print(e.message, file=sys.stderr)
            return 1
        finally:
            await fetcher.close()
        if not detail.raw_title:
            print(f"No release title found on {args.url}", file=sys.stderr)
            return 1
        raw_title = detail.raw_title

    try:
        episode: ParsedEpisode = parse_title(raw_title)
    except TitleParseError as e:
        print(e.message, file=sys.stderr)
        return 1

    if args.json:
        if detail is not None:
            print(PageInspection(detail=detail, episode=episode).model_dump_json(indent=2))
        else:
            print(episode.model_dump_json(indent=2))
        return 0

    if detail is not None:
        _print_fields(detail, DETAIL_LABELS)
        print()
    _print_fields(episode, EPISODE_LABELS)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    # Keep stdout for the result only
    setup_logging(log_level="WARNING", stream=sys.stderr)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
