"""Core infrastructure modules."""

from .exceptions import (
    AnisyncException,
    FetchError,
    FeedDocumentError,
    TitleParseError,
    StructuralParseError,
    NameClassificationError,
    ResolveError,
    UnsupportedParserKind,
    NotFoundError,
    UnauthorizedError,
)
from .logging import setup_logging, get_logger

__all__ = [
    "AnisyncException",
    "FetchError",
    "FeedDocumentError",
    "TitleParseError",
    "StructuralParseError",
    "NameClassificationError",
    "ResolveError",
    "UnsupportedParserKind",
    "NotFoundError",
    "UnauthorizedError",
    "setup_logging",
    "get_logger",
]
