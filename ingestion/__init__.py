"""
Data integration components: sources, pipelines and scheduling.

Modules:
    base: Abstract source adapter with health gating and status tracking
    pipeline: ETLPipeline (ordered transformation steps with progress)
    runner: IntegrationRunner, dispatching schedules to jobs
    scheduler: DataRefreshScheduler (APScheduler interval timers)
    default_config: Built-in integration configuration

Subpackages:
    extractors: ApiConnector and WebScraper adapters
    transformers: Transformation steps and FundingEvent conversion
    loaders: Output loader (in-memory or JSON/CSV file)

Architecture:
    Scheduler fires a schedule -> runner invokes the bound adapter ->
    records pass through the job's pipeline -> FundingEvents are published
    on the event bus -> the notification engine matches rules.
    
    Runtime failures stay inside the component that produced them and are
    reported through status snapshots and result objects.

Usage:
    from ingestion.extractors.api_connector import ApiConnector
    from ingestion.pipeline import ETLPipeline
    from ingestion.runner import IntegrationRunner
    from ingestion.scheduler import DataRefreshScheduler
"""

__all__ = [
    "SourceAdapter",
    "ApiConnector",
    "WebScraper",
    "ETLPipeline",
    "IntegrationRunner",
    "DataRefreshScheduler",
    "FrequencyPolicy",
]
