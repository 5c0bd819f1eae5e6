"""
Global Exception Handlers

Custom exceptions for the ingestion pipeline and FastAPI exception handlers.
"""

from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse


class AnisyncException(Exception):
    """Base exception for anisync errors."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class FetchError(AnisyncException):
    """Transport failure or non-2xx response from an upstream page."""

    def __init__(self, url: str, reason: str, upstream_status: Optional[int] = None):
        self.url = url
        self.upstream_status = upstream_status
        super().__init__(
            message=f"Fetch failed for {url}: {reason}",
            status_code=502
        )


class FeedDocumentError(AnisyncException):
    """Feed document could not be parsed as a syndication document."""

    def __init__(self, reason: str):
        super().__init__(message=f"Invalid feed document: {reason}", status_code=502)


class TitleParseError(AnisyncException):
    """Release title could not be turned into an episode descriptor."""

    def __init__(self, raw_title: str, reason: str):
        self.raw_title = raw_title
        super().__init__(message=f"{reason}: {raw_title}", status_code=422)


class StructuralParseError(TitleParseError):
    """Title does not match the fansub naming grammar."""

    def __init__(self, raw_title: str):
        super().__init__(raw_title, "No episode marker found")


class NameClassificationError(TitleParseError):
    """No Japanese, Chinese or English series name in the title."""

    def __init__(self, raw_title: str):
        super().__init__(raw_title, "No classifiable series name")


class ResolveError(AnisyncException):
    """Catalog entry could be neither written nor re-read."""

    def __init__(self, official_title: str, season: int, reason: str):
        super().__init__(
            message=f"Could not resolve catalog entry {official_title!r} S{season}: {reason}",
            status_code=500
        )


class UnsupportedParserKind(AnisyncException):
    """Feed source declares a parser that is not implemented."""

    def __init__(self, parser_kind: str):
        self.parser_kind = parser_kind
        super().__init__(
            message=f"Unsupported parser kind: {parser_kind}",
            status_code=400
        )


class NotFoundError(AnisyncException):
    """Resource not found."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            message=f"{resource} not found: {resource_id}",
            status_code=404
        )


class UnauthorizedError(AnisyncException):
    """Admin key missing or wrong."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message=message, status_code=401)


async def anisync_exception_handler(
    request: Request,
    exc: AnisyncException
) -> JSONResponse:
    """Handle AnisyncException and return JSON response."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "message": exc.message,
            "status_code": exc.status_code,
        }
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(AnisyncException, anisync_exception_handler)
