"""
Status snapshots and typed results shared by adapters, pipelines and the scheduler
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from pydantic import Field
from schemas.config import CamelModel
from models.base import JobType, PipelineStatus, ScrapeState


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConnectionStatus(CamelModel):
    """Health snapshot of one source adapter; overwritten on every check"""
    
    connected: bool = False
    last_check: datetime = Field(default_factory=utcnow)
    error: Optional[str] = None
    rate_limit_remaining: Optional[int] = None


class ScrapeStatus(CamelModel):
    status: ScrapeState = ScrapeState.IDLE
    last_scraped: Optional[datetime] = None
    error: Optional[str] = None


class ResultMetadata(CamelModel):
    timestamp: datetime = Field(default_factory=utcnow)
    source: str
    request_id: Optional[str] = None


class FetchResult(CamelModel):
    """Typed outcome of an adapter fetch; adapters never raise past their boundary"""
    
    success: bool
    data: List[Dict[str, Any]] = Field(default_factory=list)
    error: Optional[str] = None
    metadata: Optional[ResultMetadata] = None


class PipelineRunStatus(CamelModel):
    status: PipelineStatus = PipelineStatus.IDLE
    progress: int = Field(0, ge=0, le=100)
    processed_records: int = 0
    last_run: Optional[datetime] = None
    error: Optional[str] = None


class PipelineResult(CamelModel):
    success: bool
    processed_records: int = 0
    error: Optional[str] = None


class SchedulerStatus(CamelModel):
    running: bool
    schedule_count: int
    active_timers: int


class RefreshEvent(CamelModel):
    """Published once per schedule execution, after the bound job returns"""
    
    schedule_id: str
    job_type: JobType
    job_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)
