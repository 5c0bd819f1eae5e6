"""API Routers."""

from .feeds import router as feeds_router
from .scheduler import router as scheduler_router

__all__ = [
    "feeds_router",
    "scheduler_router",
]
