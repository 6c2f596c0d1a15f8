"""
Pydantic schemas for API request/response models
"""

from pydantic import Field, validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from schemas.config import CamelModel
from schemas.status import (
    ConnectionStatus,
    PipelineRunStatus,
    RefreshEvent,
    SchedulerStatus,
    ScrapeStatus,
    utcnow,
)
from models.base import SourceKind

# ============================================================================
# Health Check Schemas
# ============================================================================

class SourceHealthInfo(CamelModel):
    """Last known connection status of one source adapter"""
    source_id: str
    name: str
    kind: SourceKind
    status: Optional[ConnectionStatus] = None  # None until the first check
    scrape_status: Optional[ScrapeStatus] = None


class HealthCheckResponse(CamelModel):
    """Health check response model"""
    scheduler_running: bool
    total_sources: int = 0
    connected_sources: int = 0
    failed_sources: int = 0
    # after the counts: the validator reads them from values
    status: str = Field(..., description="Overall system status: healthy, degraded, unhealthy")
    timestamp: datetime = Field(default_factory=utcnow)
    sources: List[SourceHealthInfo] = Field(default_factory=list)
    
    @validator("status", pre=True, always=True)
    def determine_status(cls, v, values):
        """Unchecked sources count as neither connected nor failed"""
        failed = values.get("failed_sources", 0)
        total = values.get("total_sources", 0)
        
        if total == 0 or failed == 0:
            return "healthy"
        elif failed < total:
            return "degraded"
        else:
            return "unhealthy"


# ============================================================================
# Status Schemas
# ============================================================================

class PipelineStatusInfo(CamelModel):
    job_id: str
    name: str
    source_id: str
    status: PipelineRunStatus


class StatusResponse(CamelModel):
    """Snapshot of every adapter, pipeline and the scheduler"""
    request_id: str
    api_latency_ms: int
    scheduler: SchedulerStatus
    last_refresh: Optional[RefreshEvent] = None
    sources: List[SourceHealthInfo] = Field(default_factory=list)
    pipelines: List[PipelineStatusInfo] = Field(default_factory=list)


# ============================================================================
# Schedule Schemas
# ============================================================================

class ScheduleRunResponse(CamelModel):
    """Summary of one manual schedule execution"""
    schedule_id: str
    status: str
    job_type: str
    job_id: Optional[str] = None
    records: int = 0
    errors: List[str] = Field(default_factory=list)
    events_published: Optional[int] = None
    jobs: Optional[List[Dict[str, Any]]] = None


class MessageResponse(CamelModel):
    message: str
    detail: Optional[Dict[str, Any]] = None
