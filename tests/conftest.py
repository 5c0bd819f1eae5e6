"""
Pytest Fixtures

Shared settings, a throwaway SQLite database and a fake tracker site.
"""

import httpx
import pytest
import pytest_asyncio

from anisync.config import Settings
from anisync.db.session import Database
from anisync.services.http_client import HttpFetcher

TRACKER = "https://mikanani.me"
FEED_URL = f"{TRACKER}/RSS/Bangumi?bangumiId=3141"

FRIEREN_28 = (
    "[喵萌奶茶屋&LoliHouse] 葬送的芙莉莲 / Sousou no Frieren - 28 "
    "[WebRip 1080p HEVC-10bit AAC][简繁内封字幕]"
)
FRIEREN_27 = (
    "[喵萌奶茶屋&LoliHouse] 葬送的芙莉莲 / Sousou no Frieren - 27 "
    "[WebRip 1080p HEVC-10bit AAC][简繁内封字幕]"
)


def rss_document(links):
    items = "".join(
        f"<item><title>episode</title><link>{link}</link></item>" for link in links
    )
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<rss version="2.0"><channel><title>Mikan Project</title>'
        f"{items}</channel></rss>"
    )


def detail_html(
    raw_title,
    official_title="葬送的芙莉莲 第二季",
    group="喵萌奶茶屋",
    torrent="/Download/20240512/abc.torrent",
    released="2024/05/12 12:30",
    poster="/images/Bangumi/202310/frieren.jpg?width=400",
):
    return f"""
    <html><body>
    <div class="central-container">
      <div class="bangumi-poster" style="background-image: url('{poster}');"></div>
      <p class="bangumi-title"><a href="/Home/Bangumi/3141" class="w-other-c">{official_title}</a></p>
      <p class="bangumi-info">字幕组：<a class="magnet-link-wrap" href="/Home/PublishGroup/382">{group}</a></p>
      <p class="bangumi-info">发布日期：{released}</p>
      <div class="episode-header"><p class="episode-title">{raw_title}</p></div>
    </div>
    <div class="leftbar-nav">
      <a class="episode-btn" href="{torrent}">下载种子</a>
      <a class="episode-btn" href="magnet:?xt=urn:btih:abc">磁力链接</a>
    </div>
    </body></html>
    """


class FakeTracker:
    """URL -> (status, body) table served through httpx.MockTransport."""

    def __init__(self):
        self.pages = {}
        self.calls = []

    def add(self, url, body, status=200):
        self.pages[url] = (status, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls.append(url)
        if url not in self.pages:
            return httpx.Response(404, text="not found")
        status, body = self.pages[url]
        if isinstance(body, bytes):
            return httpx.Response(status, content=body)
        return httpx.Response(status, text=body)

    def count(self, url):
        return self.calls.count(url)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        environment="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'anisync.db'}",
        admin_api_key=None,
        feed_fetch_retries=3,
        feed_fetch_retry_delay_seconds=0,
        source_workers=2,
        page_workers=2,
        scheduler_enabled=False,
        poster_hashing=False,
    )


@pytest_asyncio.fixture
async def database(settings):
    db = Database(settings.database_url)
    await db.init()
    yield db
    await db.dispose()


@pytest.fixture
def tracker():
    return FakeTracker()


@pytest_asyncio.fixture
async def fetcher(tracker, settings):
    client = httpx.AsyncClient(transport=httpx.MockTransport(tracker.handler))
    http = HttpFetcher(client=client, settings=settings)
    yield http
    await http.close()
