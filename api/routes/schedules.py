"""
Schedule management and manual trigger endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from api.dependencies import get_context
from core.context import AppContext
from core.exceptions import ConfigurationError
from schemas.api import MessageResponse, ScheduleRunResponse
from schemas.config import ScheduleConfig
from schemas.status import SchedulerStatus
from typing import List
import uuid
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Schedules"])


@router.get("/schedules", response_model=List[ScheduleConfig])
async def list_schedules(context: AppContext = Depends(get_context)):
    return context.scheduler.get_schedules()


@router.post("/schedules", response_model=ScheduleConfig)
async def upsert_schedule(schedule: ScheduleConfig, context: AppContext = Depends(get_context)):
    """
    Add or replace a schedule. Its job id must resolve to a configured
    source, scraper or ETL job.
    """
    try:
        context.scheduler.add_schedule(schedule)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    
    logger.info(f"Schedule {schedule.id} saved ({schedule.job_type.value}, {schedule.frequency.value})")
    return schedule


@router.delete("/schedules/{schedule_id}", response_model=MessageResponse)
async def delete_schedule(schedule_id: str, context: AppContext = Depends(get_context)):
    if not context.scheduler.remove_schedule(schedule_id):
        raise HTTPException(status_code=404, detail=f"Schedule {schedule_id} not found")
    return MessageResponse(message=f"Schedule {schedule_id} removed")


@router.post("/schedules/{schedule_id}/run", response_model=ScheduleRunResponse)
async def run_schedule(
    schedule_id: str,
    request: Request,
    context: AppContext = Depends(get_context)
):
    """
    Execute a schedule now, whether or not the scheduler is running.
    
    Source and pipeline failures are reported in the summary, not as
    HTTP errors.
    """
    request_id = getattr(request.state, "request_id", f"req_{uuid.uuid4().hex[:12]}")
    
    if context.scheduler.get_schedule(schedule_id) is None:
        raise HTTPException(status_code=404, detail=f"Schedule {schedule_id} not found")
    
    logger.info(f"[{request_id}] POST /schedules/{schedule_id}/run")
    
    try:
        summary = await context.scheduler.run_now(schedule_id)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    
    return ScheduleRunResponse(schedule_id=schedule_id, **summary)


@router.post("/scheduler/start", response_model=SchedulerStatus)
async def start_scheduler(context: AppContext = Depends(get_context)):
    context.scheduler.start()
    return context.scheduler.get_status()


@router.post("/scheduler/stop", response_model=SchedulerStatus)
async def stop_scheduler(context: AppContext = Depends(get_context)):
    context.scheduler.stop()
    return context.scheduler.get_status()
