"""Release title, feed document and detail page parsers."""

from .title import parse_title, try_parse_title
from .feed_document import parse_feed_links, page_url

__all__ = [
    "parse_title",
    "try_parse_title",
    "parse_feed_links",
    "page_url",
]
