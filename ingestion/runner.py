# ============================================================================
# File: ingestion/runner.py
# Description: Dispatches scheduled jobs to source adapters and ETL pipelines
# ============================================================================
"""
Integration Runner - executes the job bound to a schedule.

Job types:
- api: fetch every endpoint of an API source (or the configured one)
- scraper: scrape one target page
- etl: extract from the job's source, run the pipeline, publish the
  resulting FundingEvents on the event bus
- all: every API source, scraper and ETL job

Runtime failures (connectivity, fetch, transform, load) are logged and
reported in the returned summary. Configuration errors (an id that does not
resolve) are raised: they are wiring bugs, not runtime conditions.
"""

from typing import Any, Dict, List, Optional, Tuple
import asyncio
import logging

from core.events import EventBus
from core.exceptions import ConfigurationError, UnknownJobError
from ingestion.base import SourceAdapter
from ingestion.extractors.api_connector import ApiConnector
from ingestion.extractors.web_scraper import WebScraper
from ingestion.pipeline import ETLPipeline
from models.base import JobType, SourceKind
from schemas.config import ScheduleConfig

logger = logging.getLogger(__name__)


class IntegrationRunner:
    """
    Orchestrates Extract -> Transform -> Publish for scheduled jobs.
    
    Responsibilities:
    - Resolve schedule job ids to adapters and pipelines
    - Keep runtime failures inside the job that produced them
    - Publish normalized events for the notification engine
    """
    
    def __init__(
        self,
        api_connectors: Dict[str, ApiConnector],
        scrapers: Dict[str, WebScraper],
        pipelines: Dict[str, ETLPipeline],
        event_bus: Optional[EventBus] = None
    ):
        self.api_connectors = api_connectors
        self.scrapers = scrapers
        self.pipelines = pipelines
        self.event_bus = event_bus
    
    def validate(self, schedule: ScheduleConfig):
        """
        Check that a schedule's job id resolves.
        
        Raises:
            UnknownJobError: If the job id is missing or unknown
        """
        if schedule.job_type == JobType.ALL:
            return
        
        registry = {
            JobType.API: self.api_connectors,
            JobType.SCRAPER: self.scrapers,
            JobType.ETL: self.pipelines,
        }[JobType(schedule.job_type)]
        
        if not schedule.job_id or schedule.job_id not in registry:
            raise UnknownJobError(
                f"Schedule {schedule.id} references unknown {schedule.job_type.value} job '{schedule.job_id}'",
                context={
                    "schedule_id": schedule.id,
                    "job_type": schedule.job_type.value,
                    "job_id": schedule.job_id,
                    "known_ids": sorted(registry)
                }
            )
    
    async def execute(self, schedule: ScheduleConfig) -> Dict[str, Any]:
        """
        Run the job bound to a schedule.
        
        Returns:
            Summary dictionary:
            - status: "success", "partial_success" or "failed"
            - job_type / job_id
            - records: records extracted (api/scraper) or processed (etl)
            - errors: error messages, if any
        
        Raises:
            ConfigurationError: If the schedule's job id does not resolve
        """
        self.validate(schedule)
        
        try:
            if schedule.job_type == JobType.API:
                return await self.run_api(schedule.job_id)
            if schedule.job_type == JobType.SCRAPER:
                return await self.run_scraper(schedule.job_id)
            if schedule.job_type == JobType.ETL:
                return await self.run_etl(schedule.job_id)
            return await self.run_all()
        
        except ConfigurationError:
            raise
        
        except Exception as e:
            logger.exception(f"Unexpected error executing schedule {schedule.id}")
            return self._summary(schedule.job_type, schedule.job_id, 0, [str(e)], failed=True)
    
    async def run_api(self, source_id: str, endpoint: Optional[str] = None) -> Dict[str, Any]:
        connector = self.api_connectors[source_id]
        records, errors = await self._extract_api(connector, endpoint)
        return self._summary(JobType.API, source_id, len(records), errors, failed=bool(errors) and not records)
    
    async def run_scraper(self, scraper_id: str) -> Dict[str, Any]:
        result = await self.scrapers[scraper_id].scrape()
        errors = [] if result.success else [result.error]
        return self._summary(JobType.SCRAPER, scraper_id, len(result.data), errors, failed=not result.success)
    
    async def run_etl(self, job_id: str) -> Dict[str, Any]:
        pipeline = self.pipelines[job_id]
        job = pipeline.config
        
        adapter = self._source_for(job.source_type, job.source_id, job_id)
        if isinstance(adapter, ApiConnector):
            records, errors = await self._extract_api(adapter, job.endpoint)
            extracted = bool(records) or not errors
        else:
            result = await adapter.scrape()
            records, errors = result.data, ([] if result.success else [result.error])
            extracted = result.success
        
        if not extracted:
            logger.warning(f"ETL job {job_id} skipped: extraction from {job.source_id} failed")
            return self._summary(JobType.ETL, job_id, 0, errors, failed=True)
        
        result = await pipeline.run(records)
        
        if not result.success:
            return self._summary(JobType.ETL, job_id, 0, errors + [result.error], failed=True)
        
        published = 0
        if self.event_bus is not None:
            for event in pipeline.convert_to_funding_events():
                self.event_bus.publish(event)
                published += 1
        
        summary = self._summary(JobType.ETL, job_id, result.processed_records, errors, failed=False)
        summary["events_published"] = published
        return summary
    
    async def run_all(self) -> Dict[str, Any]:
        """Run every source and ETL job; sources first so pipelines see fresh health"""
        source_runs = [self.run_api(source_id) for source_id in self.api_connectors]
        source_runs += [self.run_scraper(scraper_id) for scraper_id in self.scrapers]
        jobs = list(await asyncio.gather(*source_runs))
        jobs += list(await asyncio.gather(*(self.run_etl(job_id) for job_id in self.pipelines)))
        
        failed = [j for j in jobs if j["status"] == "failed"]
        errors = [err for j in jobs for err in j["errors"]]
        
        if not failed:
            status = "success"
        elif len(failed) < len(jobs):
            status = "partial_success"
        else:
            status = "failed"
        
        return {
            "status": status,
            "job_type": JobType.ALL.value,
            "job_id": None,
            "records": sum(j["records"] for j in jobs),
            "errors": errors,
            "jobs": jobs
        }
    
    def _source_for(self, kind: SourceKind, source_id: str, job_id: str) -> SourceAdapter:
        registry = self.api_connectors if kind == SourceKind.API else self.scrapers
        if source_id not in registry:
            raise UnknownJobError(
                f"ETL job {job_id} references unknown {kind.value} source '{source_id}'",
                context={"job_id": job_id, "source_id": source_id}
            )
        return registry[source_id]
    
    @staticmethod
    async def _extract_api(
        connector: ApiConnector,
        endpoint: Optional[str]
    ) -> Tuple[List[Dict[str, Any]], List[str]]:
        endpoints = [endpoint] if endpoint else list(connector.config.endpoints)
        records: List[Dict[str, Any]] = []
        errors: List[str] = []
        
        for key in endpoints:
            result = await connector.fetch(key)
            if result.success:
                records.extend(result.data)
            else:
                errors.append(f"{key}: {result.error}")
        
        return records, errors
    
    @staticmethod
    def _summary(
        job_type: JobType,
        job_id: Optional[str],
        records: int,
        errors: List[str],
        failed: bool
    ) -> Dict[str, Any]:
        if failed:
            status = "failed"
        elif errors:
            status = "partial_success"
        else:
            status = "success"
        
        return {
            "status": status,
            "job_type": JobType(job_type).value,
            "job_id": job_id,
            "records": records,
            "errors": errors
        }
