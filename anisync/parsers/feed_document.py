"""
Feed Document Parsing

Extracts item homepage links from a tracker's RSS document and builds
paginated feed URLs.
"""

import xml.etree.ElementTree as ET
from typing import List

from ..core.exceptions import FeedDocumentError


def parse_feed_links(content: str) -> List[str]:
    """
    Return the <link> of every <item> in an RSS document.

    Titles and descriptions are ignored; items without a link are skipped.

    Raises:
        FeedDocumentError: Content is not well-formed XML
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise FeedDocumentError(str(e)) from e

    links = []
    for item in root.iter("item"):
        link = item.find("link")
        if link is not None and link.text and link.text.strip():
            links.append(link.text.strip())
    return links


def page_url(base_url: str, page: int) -> str:
    """URL of one feed page; page 1 is the base URL, later pages append /p."""
    if page <= 1:
        return base_url
    if base_url.endswith("/"):
        return f"{base_url}{page}"
    return f"{base_url}/{page}"
