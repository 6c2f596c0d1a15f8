"""
Pydantic schemas for configuration, status and notifications.

Schemas:
    config: Static integration configuration (sources, scrapers, ETL jobs, schedules)
    status: Connection/pipeline/scheduler status snapshots and results
    notifications: Notifications, rules, channels and delivery records
    api: HTTP request/response envelopes

Usage:
    from schemas.config import IntegrationConfig, ScheduleConfig
    from schemas.status import FetchResult, PipelineRunStatus
    from schemas.notifications import NotificationCreate, NotificationRule

Example:
    schedule = ScheduleConfig(
        id="schedule-1",
        jobType="api",
        jobId="crunchbase",
        frequency="hourly"
    )
    
    # camelCase and snake_case keys are both accepted
    assert schedule.job_id == "crunchbase"
"""

__all__ = [
    "IntegrationConfig",
    "SourceConfig",
    "ScraperConfig",
    "ETLJobConfig",
    "ScheduleConfig",
    "Transformation",
    "FetchResult",
    "ConnectionStatus",
    "PipelineRunStatus",
    "SchedulerStatus",
    "RefreshEvent",
    "Notification",
    "NotificationCreate",
    "NotificationRule",
    "NotificationChannel",
]
