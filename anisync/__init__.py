"""Anime release feed ingestion."""

__version__ = "0.1.0"
