"""
Application wiring: loads the static integration configuration and builds
the object graph (adapters, pipelines, runner, scheduler, notifications)
around one event bus.
"""

from collections import Counter
from typing import Any, Dict, Iterable, List, Optional
import json
import logging
import random

from pydantic import ValidationError

from core.config import Settings, settings as default_settings
from core.events import EventBus
from core.exceptions import ConfigurationError
from ingestion.base import ClientFactory
from ingestion.default_config import default_integration_config
from ingestion.extractors.api_connector import ApiConnector
from ingestion.extractors.web_scraper import WebScraper
from ingestion.pipeline import ETLPipeline
from ingestion.runner import IntegrationRunner
from ingestion.scheduler import DataRefreshScheduler, FrequencyPolicy
from models.base import Destination, JobType, SourceKind
from notifications.service import NotificationService
from notifications.simulator import FundingEventSimulator
from schemas.config import IntegrationConfig

logger = logging.getLogger(__name__)


def load_integration_config(
    path: Optional[str] = None,
    data: Optional[Dict[str, Any]] = None
) -> IntegrationConfig:
    """
    Load and validate the integration configuration.
    
    Precedence: explicit ``data``, then the JSON file at ``path`` (or
    INTEGRATION_CONFIG_PATH), then the built-in defaults.
    
    Raises:
        ConfigurationError: If the file cannot be read or the configuration
            is invalid
    """
    path = path or default_settings.INTEGRATION_CONFIG_PATH
    
    if data is None and path:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Cannot read integration config from {path}",
                context={"path": path},
                original_exception=e
            )
        logger.info(f"Loaded integration config from {path}")
    
    if data is None:
        config = default_integration_config()
    else:
        try:
            config = IntegrationConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid integration config: {e.error_count()} validation error(s)",
                context={"errors": [f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()]},
                original_exception=e
            )
    
    validate_integration_config(config)
    return config


def _duplicates(ids: Iterable[str]) -> List[str]:
    return sorted(i for i, count in Counter(ids).items() if count > 1)


def validate_integration_config(config: IntegrationConfig):
    """
    Check ids and cross-references.
    
    Raises:
        ConfigurationError: Listing every problem found
    """
    problems = []
    
    source_ids = {s.id for s in config.api_sources}
    scraper_ids = {s.id for s in config.scrapers}
    job_ids = {j.id for j in config.etl_jobs}
    
    for section, items in (
        ("api_sources", config.api_sources),
        ("scrapers", config.scrapers),
        ("etl_jobs", config.etl_jobs),
        ("schedules", config.schedules),
    ):
        for dup in _duplicates(item.id for item in items):
            problems.append(f"{section}: duplicate id '{dup}'")
    
    for job in config.etl_jobs:
        sources = source_ids if job.source_type == SourceKind.API else scraper_ids
        if job.source_id not in sources:
            problems.append(
                f"etl_jobs.{job.id}: unknown {job.source_type.value} source '{job.source_id}'"
            )
        if job.destination == Destination.FILE and not job.destination_path:
            problems.append(f"etl_jobs.{job.id}: file destination requires destination_path")
    
    registries = {
        JobType.API: source_ids,
        JobType.SCRAPER: scraper_ids,
        JobType.ETL: job_ids,
    }
    for schedule in config.schedules:
        if schedule.job_type == JobType.ALL:
            continue
        if schedule.job_id not in registries[schedule.job_type]:
            problems.append(
                f"schedules.{schedule.id}: unknown {schedule.job_type.value} job '{schedule.job_id}'"
            )
    
    if problems:
        raise ConfigurationError(
            f"Invalid integration config: {'; '.join(problems)}",
            context={"problems": problems}
        )


class AppContext:
    """Everything the HTTP surface and the CLI need, built around one bus"""
    
    def __init__(
        self,
        config: IntegrationConfig,
        event_bus: EventBus,
        api_connectors: Dict[str, ApiConnector],
        scrapers: Dict[str, WebScraper],
        pipelines: Dict[str, ETLPipeline],
        runner: IntegrationRunner,
        scheduler: DataRefreshScheduler,
        notifications: NotificationService,
        simulator: Optional[FundingEventSimulator] = None
    ):
        self.config = config
        self.event_bus = event_bus
        self.api_connectors = api_connectors
        self.scrapers = scrapers
        self.pipelines = pipelines
        self.runner = runner
        self.scheduler = scheduler
        self.notifications = notifications
        self.simulator = simulator
    
    def start(self, scheduler: bool = True, simulator: bool = False):
        if scheduler:
            self.scheduler.start()
        if simulator and self.simulator is not None:
            self.simulator.start()
    
    def shutdown(self):
        if self.simulator is not None:
            self.simulator.stop()
        self.scheduler.shutdown()
        self.notifications.detach()


def build_context(
    config: Optional[IntegrationConfig] = None,
    app_settings: Optional[Settings] = None,
    client_factory: Optional[ClientFactory] = None,
    notifications: Optional[NotificationService] = None,
    rng: Optional[random.Random] = None
) -> AppContext:
    """
    Build the application object graph.
    
    Args:
        config: Integration configuration (loaded when omitted)
        app_settings: Settings overriding the module-level ones
        client_factory: httpx.AsyncClient factory shared by all adapters
        notifications: Notification service (seeded with defaults when omitted)
        rng: Random source for enrichment and the simulator
    
    Raises:
        ConfigurationError: If the configuration or frequency policy is invalid
    """
    app_settings = app_settings or default_settings
    config = config or load_integration_config()
    rng = rng or random.Random()
    
    event_bus = EventBus()
    timeout = app_settings.SOURCE_TIMEOUT_SECONDS
    
    api_connectors = {
        source.id: ApiConnector(source, timeout=timeout, client_factory=client_factory)
        for source in config.api_sources
    }
    scrapers = {
        scraper.id: WebScraper(scraper, timeout=timeout, client_factory=client_factory)
        for scraper in config.scrapers
    }
    pipelines = {
        job.id: ETLPipeline(job, step_delay=app_settings.ETL_STEP_DELAY_SECONDS, rng=rng)
        for job in config.etl_jobs
    }
    
    runner = IntegrationRunner(api_connectors, scrapers, pipelines, event_bus=event_bus)
    
    scheduler = DataRefreshScheduler(
        job_executor=runner.execute,
        job_validator=runner.validate,
        event_bus=event_bus,
        frequency_policy=FrequencyPolicy(app_settings.frequency_intervals())
    )
    for schedule in config.schedules:
        scheduler.add_schedule(schedule)
    
    if notifications is None:
        notifications = NotificationService.with_defaults(watchlist=app_settings.watchlist_ids())
    notifications.attach(event_bus)
    
    simulator = FundingEventSimulator(
        notifications,
        interval_seconds=app_settings.NOTIFICATION_SIMULATION_INTERVAL_SECONDS,
        probability=app_settings.NOTIFICATION_SIMULATION_PROBABILITY,
        rng=rng
    )
    
    logger.info(
        f"Context built: {len(api_connectors)} API sources, {len(scrapers)} scrapers, "
        f"{len(pipelines)} ETL jobs, {len(config.schedules)} schedules"
    )
    
    return AppContext(
        config=config,
        event_bus=event_bus,
        api_connectors=api_connectors,
        scrapers=scrapers,
        pipelines=pipelines,
        runner=runner,
        scheduler=scheduler,
        notifications=notifications,
        simulator=simulator
    )
