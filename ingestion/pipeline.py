"""
ETL pipeline - applies a job's ordered transformation steps to a batch.

State machine: idle -> running -> completed | error.

Progress is 0 at the start of a run, 25 after extract, rises evenly across
the transformation steps to 75, and reaches 100 after load. It never
decreases within a run; on error it stops where the failing step left it.
A failed run keeps no partial output; the next run starts fresh.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
import asyncio
import logging
import random

from core.config import settings
from core.exceptions import IntegrationError, TransformationError
from ingestion.loaders.output_loader import OutputLoader
from ingestion.transformers.normalizer import convert_to_funding_events
from ingestion.transformers.steps import apply_transformation
from models.base import PipelineStatus
from models.funding_event import FundingEvent
from schemas.config import ETLJobConfig
from schemas.status import PipelineResult, PipelineRunStatus

logger = logging.getLogger(__name__)

EXTRACTED_PROGRESS = 25
TRANSFORMED_PROGRESS = 75
LOADED_PROGRESS = 100


class ETLPipeline:
    """
    Runs one ETLJobConfig.
    
    Args:
        config: Job definition
        step_delay: Seconds to pause after each phase (simulated latency)
        rng: Random source for enrichment; seed it for reproducible output
        loader: Output loader, defaults to one built from the job config
    """
    
    def __init__(
        self,
        config: ETLJobConfig,
        step_delay: Optional[float] = None,
        rng: Optional[random.Random] = None,
        loader: Optional[OutputLoader] = None
    ):
        self.config = config
        self.step_delay = step_delay if step_delay is not None else settings.ETL_STEP_DELAY_SECONDS
        self.rng = rng or random.Random()
        self.loader = loader or OutputLoader(config)
        self.last_output: List[Dict[str, Any]] = []
        self._status = PipelineRunStatus()
        self._progress_listeners: List[Callable[[int], None]] = []
    
    def on_progress(self, callback: Callable[[int], None]) -> Callable[[], None]:
        """Observe progress updates; returns an unsubscribe function"""
        self._progress_listeners.append(callback)
        return lambda: self._progress_listeners.remove(callback) if callback in self._progress_listeners else None
    
    def get_status(self) -> PipelineRunStatus:
        return self._status
    
    def get_config(self) -> ETLJobConfig:
        return self.config
    
    async def run(self, records: List[Dict[str, Any]]) -> PipelineResult:
        """
        Run the pipeline over a batch of raw records.
        
        Returns:
            PipelineResult; failures are reported here and in the status,
            never raised
        """
        self._status = PipelineRunStatus(
            status=PipelineStatus.RUNNING,
            progress=0,
            processed_records=0,
            last_run=self._status.last_run
        )
        self._notify_progress()
        
        logger.info(f"Running ETL job: {self.config.name}...")
        
        try:
            # Extract (records are already provided)
            data = [dict(r) for r in records]
            logger.info(f"Extracted {len(data)} records")
            await self._advance(EXTRACTED_PROGRESS)
            
            # Transform
            steps = self.config.transformations
            for index, step in enumerate(steps):
                data = self._apply_step(data, index, step)
                await self._advance(
                    EXTRACTED_PROGRESS
                    + (TRANSFORMED_PROGRESS - EXTRACTED_PROGRESS) * (index + 1) // len(steps)
                )
            
            logger.info(f"Transformed data: {len(data)} records")
            await self._advance(TRANSFORMED_PROGRESS)
            
            # Load
            processed = await self.loader.load(data)
            self.last_output = data
            
            self._status = PipelineRunStatus(
                status=PipelineStatus.COMPLETED,
                progress=LOADED_PROGRESS,
                processed_records=processed,
                last_run=datetime.now(timezone.utc)
            )
            self._notify_progress()
            
            logger.info(f"ETL job {self.config.id} completed: {processed} records")
            return PipelineResult(success=True, processed_records=processed)
        
        except IntegrationError as e:
            return self._fail(e.message, e)
        
        except Exception as e:
            return self._fail(str(e) or "Unknown error during ETL process", e)
    
    def _apply_step(self, data: List[Dict[str, Any]], index: int, step) -> List[Dict[str, Any]]:
        context = {"job_id": self.config.id, "step_index": index, "step_type": step.type}
        
        try:
            return apply_transformation(data, step, self.rng)
        except TransformationError as e:
            e.context.update(context)
            raise
        except Exception as e:
            raise TransformationError(
                f"Step {index} ({step.type}) failed: {e}",
                context=context,
                original_exception=e
            )
    
    def _fail(self, message: str, error: Exception) -> PipelineResult:
        self.last_output = []
        self._status = PipelineRunStatus(
            status=PipelineStatus.ERROR,
            progress=self._status.progress,
            processed_records=0,
            last_run=self._status.last_run,
            error=message
        )
        logger.error(f"ETL job {self.config.id} failed: {error}")
        return PipelineResult(success=False, processed_records=0, error=message)
    
    async def _advance(self, progress: int):
        if progress > self._status.progress:
            self._status = self._status.model_copy(update={"progress": progress})
            self._notify_progress()
        await asyncio.sleep(self.step_delay)
    
    def _notify_progress(self):
        for callback in list(self._progress_listeners):
            try:
                callback(self._status.progress)
            except Exception as e:
                logger.warning(f"Progress listener failed for {self.config.id}: {e}")
    
    def convert_to_funding_events(self, records: Optional[List[Dict[str, Any]]] = None) -> List[FundingEvent]:
        """FundingEvents from the given records, or from the last successful output"""
        return convert_to_funding_events(
            self.last_output if records is None else records,
            source_name=self.config.name
        )
