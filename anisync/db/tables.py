"""
SQLAlchemy ORM models for the anisync catalog.

Tables:
    rss_feeds: Configured tracker feeds (FeedSourceRow)
    global_settings: Singleton global filter settings (GlobalSettingsRow)
    bangumi: Canonical series catalog (CatalogEntryRow)
    rss_items: Discovered episode releases (EpisodeRecordRow)
    activities: Append-only activity log (ActivityRow)

Uniqueness constraints carry the merge and dedup guarantees:
(official_title, season) for catalog entries and
(bangumi_id, rss_id, url) for episode records.
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class TimestampMixin:
    """created_at / updated_at maintained by the database."""

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


class FeedSourceRow(Base, TimestampMixin):
    __tablename__ = "rss_feeds"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    url = Column(String(511), nullable=False, unique=True)
    parser_kind = Column(String(50), nullable=False, default="tracker")
    update_interval = Column(Integer, nullable=False, default=1)  # hours
    keywords = Column(Text, nullable=False, default="")
    exclude_keywords = Column(Text, nullable=False, default="")
    priority = Column(Integer, nullable=False, default=0)
    page_start = Column(Integer, nullable=True, default=1)
    page_end = Column(Integer, nullable=True, default=1)
    last_update_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<FeedSourceRow(id={self.id}, name='{self.name}')>"


class GlobalSettingsRow(Base, TimestampMixin):
    __tablename__ = "global_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    global_keywords = Column(Text, nullable=False, default="")
    exclude_keywords = Column(Text, nullable=False, default="")
    sub_group_blacklist = Column(Text, nullable=False, default="")


class CatalogEntryRow(Base, TimestampMixin):
    __tablename__ = "bangumi"
    __table_args__ = (
        UniqueConstraint("official_title", "season", name="uq_bangumi_title_season"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    official_title = Column(String(255), nullable=False)
    season = Column(Integer, nullable=False, default=1)
    year = Column(String(4), nullable=True)
    source = Column(String(100), nullable=True)
    poster_link = Column(String(511), nullable=True)
    poster_hash = Column(String(32), nullable=True, index=True)

    # Maintained by the catalog API, never by ingestion
    view_count = Column(Integer, nullable=False, default=0)
    favorite_count = Column(Integer, nullable=False, default=0)
    rating_avg = Column(Float, nullable=False, default=0.0)
    rating_count = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<CatalogEntryRow(id={self.id}, title='{self.official_title}', season={self.season})>"


class EpisodeRecordRow(Base, TimestampMixin):
    __tablename__ = "rss_items"
    __table_args__ = (
        UniqueConstraint("bangumi_id", "rss_id", "url", name="uq_rss_items_dedup"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    bangumi_id = Column(Integer, ForeignKey("bangumi.id"), nullable=False, index=True)
    rss_id = Column(Integer, ForeignKey("rss_feeds.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    url = Column(String(511), nullable=False)
    magnet = Column(Text, nullable=True)
    homepage = Column(String(511), nullable=True)
    episode = Column(Float, nullable=True)
    resolution = Column(String(50), nullable=True)
    group = Column(String(100), nullable=True)
    subtitle = Column(String(100), nullable=True)
    source = Column(String(100), nullable=True)
    release_date = Column(String(50), nullable=True)
    downloaded = Column(Boolean, nullable=False, default=False)

    def __repr__(self):
        return f"<EpisodeRecordRow(id={self.id}, bangumi_id={self.bangumi_id}, episode={self.episode})>"


class ActivityRow(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(50), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
