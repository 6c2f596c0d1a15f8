"""
Domain enums and event records for the data integration pipeline.

Modules:
    base: Enumerations shared by configuration, status and notification schemas
    funding_event: Normalized FundingEvent produced by ETL pipelines

Nothing here is persisted; schedules, rules and the notification inbox live
in memory for the process lifetime.

Usage:
    from models.base import JobType, Frequency, PipelineStatus
    from models.funding_event import FundingEvent
"""

__all__ = [
    "SourceKind",
    "DataSourceType",
    "JobType",
    "Frequency",
    "PipelineStatus",
    "ScrapeState",
    "TransformationType",
    "OutputFormat",
    "Destination",
    "FundingEventType",
    "EventCategory",
    "ChannelType",
    "NotificationType",
    "FundingEvent",
]
