"""
Scheduler API Router

Endpoints for monitoring, starting and stopping the feed scan scheduler.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Header

from ..config import get_settings
from ..core.exceptions import UnauthorizedError
from ..core.logging import get_logger
from ..services.scheduler import get_scheduler_service

logger = get_logger(__name__)

router = APIRouter(prefix="/scheduler", tags=["scheduler"])


async def verify_admin_access(x_api_key: Optional[str] = Header(None)):
    """
    Check the X-API-Key header against ADMIN_API_KEY.

    When no admin key is configured the endpoints are open.
    """
    expected = get_settings().admin_api_key
    if not expected:
        return {"method": "open"}
    if x_api_key and x_api_key == expected:
        logger.info("admin_access_api_key")
        return {"method": "api_key"}
    logger.warning("admin_access_denied")
    raise UnauthorizedError("Missing or invalid X-API-Key header")


@router.get("/status")
async def get_scheduler_status(admin: dict = Depends(verify_admin_access)):
    """
    Get current scheduler status and job information.

    Returns:
        - Whether scheduler is running
        - List of jobs with next run times
    """
    service = get_scheduler_service()
    return service.get_job_status()


@router.post("/start")
async def start_scheduler(admin: dict = Depends(verify_admin_access)):
    """Start the scheduler if not running."""
    service = get_scheduler_service()
    service.start()

    return {
        "success": True,
        "message": "Scheduler started",
        "timestamp": datetime.utcnow().isoformat(),
    }


@router.post("/stop")
async def stop_scheduler(admin: dict = Depends(verify_admin_access)):
    """Stop the scheduler. A running scan finishes first."""
    service = get_scheduler_service()
    service.stop()

    return {
        "success": True,
        "message": "Scheduler stopped",
        "timestamp": datetime.utcnow().isoformat(),
    }
