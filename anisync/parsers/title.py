"""
Fansub Release Title Parser

Turns a raw release filename such as

    [喵萌奶茶屋&LoliHouse] 葬送的芙莉莲 / Sousou no Frieren - 28 [WebRip 1080p][简繁内封字幕]

into a ParsedEpisode. The title is split around an episode marker into a
name span, the marker itself and a tag span; the name span yields season
and per-language names, the tag span yields subtitle, resolution and source
tags. Pure functions, no I/O.
"""

import re
from typing import List, Optional, Tuple

from ..core.exceptions import NameClassificationError, StructuralParseError, TitleParseError
from ..core.logging import get_logger
from ..models.episode import ParsedEpisode

logger = get_logger(__name__)


# Name span (greedy, so the last marker wins), episode marker, tag span
TITLE_RE = re.compile(
    r"(.*|\[.*])"
    r"( -? \d+|\[\d+]|\[\d+.?[vV]\d]|第\d+[话話集]|\[第?\d+[话話集]]|\[\d+.?END]|[Ee][Pp]?\d+)"
    r"(.*)"
)
EPISODE_RE = re.compile(r"\d+")
BRACKET_RE = re.compile(r"[\[\]]")
TAG_SPLIT_RE = re.compile(r"[\[\]()（）]")

# Anything that is not a word character, whitespace or a hyphen separates prefix tokens
PREFIX_SEPARATOR_RE = re.compile(r"[^\w\s-]")
NEW_SEASON_RE = re.compile(r"新番|月?番")
REGION_RE = re.compile(r"港澳台地区")
REGION_PAREN_RE = re.compile(r"[(（]仅限港澳台地区[）)]")

SEASON_RE = re.compile(r"S\d{1,2}|[Ss]eason \d{1,2}|第[^\s]{1,2}?[季期]")
CHINESE_NUMERALS = {
    "一": 1,
    "二": 2,
    "三": 3,
    "四": 4,
    "五": 5,
    "六": 6,
    "七": 7,
    "八": 8,
    "九": 9,
    "十": 10,
}

# Tried in order; the first one producing more than one segment wins
NAME_SEPARATORS = [
    re.compile(r"/"),
    re.compile(r"\s{2,}"),
    re.compile(r"_"),
    re.compile(r" - "),
]
HAN = r"[\u4e00-\u9fff\u3400-\u4dbf\uf900-\ufaff]"
LEADING_HAN_RE = re.compile(r"^" + HAN + r"{2,}")
# Any Hiragana, or a run of Katakana
JAPANESE_RE = re.compile(r"[\u3040-\u309f]|[\u30a0-\u30ff]{2,}")
CHINESE_RE = re.compile(HAN + r"{2,}")
ENGLISH_RE = re.compile(r"[a-zA-Z]{3,}")

RESOLUTION_RE = re.compile(r"1080|720|2160|4K")
SOURCE_RE = re.compile(r"B-Global|[Bb]aha|[Bb]ilibili|AT-X|Web")
SUBTITLE_RE = re.compile(r"[简繁日字幕]|CH|BIG5|GB|CHS|CHT|JP|ENG|简中|繁中|中字")
SUBTITLE_SUFFIX_RE = re.compile(r"_MP4|_MKV")

# Lower index wins. "简体" must stay ahead of "简".
PRIORITY_SUBTITLE_KEYWORDS = [
    "简体",
    "简日",
    "简",
    "CHS",
    "GB",
    "简日繁",
    "简中",
    "bibili",
    "Bilibili",
]


def normalize_title(raw_title: str) -> str:
    """Trim, collapse newlines and turn full-width brackets into ASCII ones."""
    title = raw_title.strip().replace("\r", " ").replace("\n", " ")
    for wide, narrow in (("【", "["), ("】", "]"), ("［", "["), ("］", "]")):
        title = title.replace(wide, narrow)
    return title


def extract_group(title: str) -> str:
    """Content of the first bracketed segment."""
    parts = BRACKET_RE.split(title)
    if len(parts) > 1:
        return parts[1]
    return ""


def _remove_token(text: str, token: str) -> str:
    # The token plus one surrounding character on each side, usually its brackets
    return re.sub("." + re.escape(token) + ".", "", text)


def strip_prefix_noise(name_span: str, group: str) -> str:
    """Remove the release group and new-season or region-lock markers."""
    raw = name_span
    if group:
        raw = _remove_token(raw, group)

    tokens = [t for t in PREFIX_SEPARATOR_RE.sub("/", raw).split("/") if t]
    if len(tokens) == 1:
        tokens = tokens[0].split(" ")

    for token in tokens:
        if not token:
            continue
        if NEW_SEASON_RE.search(token) and len(token) <= 5:
            raw = _remove_token(raw, token)
        elif REGION_RE.search(token):
            raw = _remove_token(raw, token)
    return raw


def _season_number(marker: str) -> Optional[int]:
    if marker.startswith("第"):
        value = re.sub(r"[第季期 ]", "", marker).strip()
        if value.isdigit():
            return int(value)
        return CHINESE_NUMERALS.get(value)
    digits = re.sub(r"\D", "", marker)
    if digits:
        return int(digits)
    return None


def extract_season(name_span: str) -> Tuple[str, str, int]:
    """
    Split season markers off the name span.

    Returns:
        Tuple of (bare name, raw season marker, season number). Without a
        marker the season is 1 and the raw marker is empty; an unresolvable
        marker also yields season 1.
    """
    name_season = BRACKET_RE.sub(" ", name_span)
    markers = SEASON_RE.findall(name_season)
    if not markers:
        return name_season, "", 1

    name = SEASON_RE.sub("", name_season)
    season = 1
    for marker in markers:
        number = _season_number(marker)
        if number is not None:
            season = number
            break
    return name, markers[0], season


def _split_name(name: str) -> List[str]:
    for separator in NAME_SEPARATORS:
        parts = [p for p in separator.split(name) if p.strip()]
        if len(parts) > 1:
            return parts

    words = name.split(" ")
    candidates = [0, len(words) - 1] if len(words) > 1 else [0]
    for idx in candidates:
        if LEADING_HAN_RE.match(words[idx]):
            rest = " ".join(w for i, w in enumerate(words) if i != idx)
            return [words[idx], rest]
    return [name]


def classify_names(name: str) -> Tuple[str, str, str]:
    """
    Separate a bare series name into English, Chinese and Japanese parts.

    Each language keeps the first segment classified into it.
    """
    name = REGION_PAREN_RE.sub("", name.strip())
    name_en, name_zh, name_jp = "", "", ""

    for segment in _split_name(name):
        segment = segment.strip()
        if not segment:
            continue
        if JAPANESE_RE.search(segment) and not name_jp:
            name_jp = segment
        elif CHINESE_RE.search(segment) and not name_zh:
            name_zh = segment
        elif ENGLISH_RE.search(segment) and not name_en:
            name_en = segment

    return name_en, name_zh, name_jp


def extract_tags(tag_span: str) -> Tuple[str, str, str]:
    """
    Find subtitle, resolution and source tags after the episode marker.

    Returns:
        Tuple of (subtitle tag, resolution, source tag), empty when absent.
    """
    tokens = [t.strip() for t in TAG_SPLIT_RE.sub(" ", tag_span).split(" ") if t.strip()]

    subtitle = ""
    best_priority = None
    for token in tokens:
        for priority, keyword in enumerate(PRIORITY_SUBTITLE_KEYWORDS):
            if keyword in token and (best_priority is None or priority < best_priority):
                subtitle = token
                best_priority = priority

    if not subtitle:
        for token in tokens:
            if not SUBTITLE_RE.search(token):
                continue
            if any(keyword in token for keyword in PRIORITY_SUBTITLE_KEYWORDS):
                continue
            subtitle = token
            break

    resolution = next((t for t in tokens if RESOLUTION_RE.search(t)), "")
    source = next(
        (t for t in tokens if SOURCE_RE.search(t) and not RESOLUTION_RE.search(t)),
        "",
    )
    return SUBTITLE_SUFFIX_RE.sub("", subtitle), resolution, source


def parse_title(raw_title: str) -> ParsedEpisode:
    """
    Parse a raw fansub release title.

    Raises:
        StructuralParseError: No episode marker in the title
        NameClassificationError: No English, Chinese or Japanese name found
    """
    title = normalize_title(raw_title)
    group = extract_group(title)

    match = TITLE_RE.match(title)
    if match is None:
        raise StructuralParseError(raw_title)

    name_span = match.group(1).strip()
    episode_span = match.group(2).strip()
    tag_span = match.group(3).strip()

    bare_name, season_raw, season = extract_season(strip_prefix_noise(name_span, group))
    name_en, name_zh, name_jp = classify_names(bare_name)
    if not (name_en or name_zh or name_jp):
        raise NameClassificationError(raw_title)

    episode = 0.0
    digits = EPISODE_RE.search(episode_span)
    if digits:
        episode = float(int(digits.group()))

    subtitle, resolution, source = extract_tags(tag_span)

    return ParsedEpisode(
        name_en=name_en,
        name_zh=name_zh,
        name_jp=name_jp,
        season=season,
        season_raw=season_raw,
        episode=episode,
        subtitle_tag=subtitle,
        release_group=group,
        resolution=resolution,
        source_tag=source,
    )


def try_parse_title(raw_title: str) -> Optional[ParsedEpisode]:
    """Parse a title, returning None instead of raising on failure."""
    try:
        return parse_title(raw_title)
    except TitleParseError as e:
        logger.debug("title_parse_failed", title=raw_title, error=e.message)
        return None
