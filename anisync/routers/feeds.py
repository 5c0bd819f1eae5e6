"""
Feed Refresh Router

Manual scan triggers. Work runs in the background; the caller only learns
that the request was accepted. Outcomes go to the logs and activity log.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from ..core.logging import get_logger
from ..models.response import TriggerResponse
from ..services.scheduler import get_scheduler_service
from .scheduler import verify_admin_access

logger = get_logger(__name__)

router = APIRouter(prefix="/feeds", tags=["feeds"])


@router.post("/refresh", response_model=TriggerResponse, status_code=status.HTTP_202_ACCEPTED)
async def refresh_all(
    background_tasks: BackgroundTasks,
    force: bool = Query(True, description="Ignore update intervals"),
    admin: dict = Depends(verify_admin_access),
):
    logger.info("manual_refresh_requested", force=force)
    service = get_scheduler_service()
    background_tasks.add_task(service.trigger_all_now, force)
    return TriggerResponse(message="Feed refresh started in background")


@router.post("/{feed_id}/refresh", response_model=TriggerResponse, status_code=status.HTTP_202_ACCEPTED)
async def refresh_one(
    feed_id: int,
    background_tasks: BackgroundTasks,
    admin: dict = Depends(verify_admin_access),
):
    logger.info("manual_refresh_requested", feed_id=feed_id)
    service = get_scheduler_service()
    background_tasks.add_task(service.trigger_source_now, feed_id)
    return TriggerResponse(message=f"Refresh of feed {feed_id} started in background")
