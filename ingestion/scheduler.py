"""
Data refresh scheduler built on APScheduler.

One interval job ("timer") is armed per enabled schedule while the
scheduler is running. Each execution awaits the bound job, then notifies
per-schedule listeners, then publishes a RefreshEvent on the event bus.

Timer firings of one schedule never overlap: APScheduler skips a firing
while the previous execution of the same job is still in flight
(``max_instances=1``). ``run_now`` bypasses that guard, so a manual run can
overlap a timer-fired one.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Union
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from core.config import settings
from core.events import EventBus
from core.exceptions import ConfigurationError, UnknownJobError
from models.base import Frequency
from schemas.config import ScheduleConfig
from schemas.status import RefreshEvent, SchedulerStatus

logger = logging.getLogger(__name__)

JobExecutor = Callable[[ScheduleConfig], Awaitable[Any]]
JobValidator = Callable[[ScheduleConfig], None]


class FrequencyPolicy:
    """Maps schedule frequencies to timer periods in seconds"""
    
    def __init__(self, intervals: Optional[Dict[Union[str, Frequency], float]] = None):
        raw = intervals if intervals is not None else settings.frequency_intervals()
        self.intervals = {Frequency(k): float(v) for k, v in raw.items()}
        
        missing = [f.value for f in Frequency if f not in self.intervals]
        if missing:
            raise ConfigurationError(
                "Frequency policy is missing intervals",
                context={"missing": missing}
            )
        
        ordered = [self.intervals[f] for f in (Frequency.HOURLY, Frequency.DAILY, Frequency.WEEKLY)]
        if not (0 < ordered[0] < ordered[1] < ordered[2]):
            raise ConfigurationError(
                "Frequency intervals must be positive and ordered hourly < daily < weekly",
                context={"intervals": {f.value: s for f, s in self.intervals.items()}}
            )
    
    def interval_for(self, frequency: Union[str, Frequency]) -> float:
        return self.intervals[Frequency(frequency)]


class DataRefreshScheduler:
    """
    Owns named schedules and their timers.
    
    Args:
        job_executor: Coroutine invoked with the schedule on every execution
        job_validator: Called on add_schedule; raises for unresolvable job ids
        event_bus: Receives a RefreshEvent per execution
        frequency_policy: Frequency -> period mapping
    """
    
    def __init__(
        self,
        job_executor: Optional[JobExecutor] = None,
        job_validator: Optional[JobValidator] = None,
        event_bus: Optional[EventBus] = None,
        frequency_policy: Optional[FrequencyPolicy] = None
    ):
        self.job_executor = job_executor
        self.job_validator = job_validator
        self.event_bus = event_bus
        self.frequency_policy = frequency_policy or FrequencyPolicy()
        self.is_running = False
        self.last_refresh: Optional[RefreshEvent] = None
        self._schedules: Dict[str, ScheduleConfig] = {}
        self._timers: Dict[str, Any] = {}
        self._listeners: Dict[str, List[Callable[[ScheduleConfig], None]]] = {}
        self._scheduler: Optional[AsyncIOScheduler] = None
    
    def add_schedule(self, schedule: ScheduleConfig):
        """Add or replace a schedule, re-arming its timer when running"""
        if self.job_validator is not None:
            self.job_validator(schedule)
        
        self._schedules[schedule.id] = schedule
        self._cancel_timer(schedule.id)
        
        if self.is_running and schedule.enabled:
            self._create_timer(schedule)
    
    def remove_schedule(self, schedule_id: str) -> bool:
        self._cancel_timer(schedule_id)
        self._listeners.pop(schedule_id, None)
        return self._schedules.pop(schedule_id, None) is not None
    
    def start(self):
        """Arm one timer per enabled schedule"""
        if self.is_running:
            return
        
        logger.info("Starting data refresh scheduler...")
        
        if self._scheduler is None:
            self._scheduler = AsyncIOScheduler()
            self._scheduler.start()
        
        self.is_running = True
        
        for schedule in self._schedules.values():
            if schedule.enabled:
                self._create_timer(schedule)
    
    def stop(self):
        """Cancel all timers; executions already in flight complete"""
        if not self.is_running:
            return
        
        logger.info("Stopping data refresh scheduler...")
        self.is_running = False
        
        for schedule_id in list(self._timers):
            self._cancel_timer(schedule_id)
    
    def shutdown(self):
        """Stop and release the underlying APScheduler (cancels in-flight runs)"""
        self.stop()
        if self._scheduler is not None:
            if self._scheduler.running:
                self._scheduler.shutdown(wait=False)
            self._scheduler = None
    
    def on_schedule_run(
        self,
        schedule_id: str,
        callback: Callable[[ScheduleConfig], None]
    ) -> Callable[[], None]:
        """Register a per-schedule listener; returns an unsubscribe function"""
        self._listeners.setdefault(schedule_id, []).append(callback)
        
        def unsubscribe():
            listeners = self._listeners.get(schedule_id, [])
            if callback in listeners:
                listeners.remove(callback)
        
        return unsubscribe
    
    async def run_now(self, schedule_id: str) -> Any:
        """
        Execute a schedule immediately, whether or not the scheduler is
        running. The schedule's timer is left untouched.
        
        Raises:
            UnknownJobError: If no schedule has this id
        """
        schedule = self._schedules.get(schedule_id)
        
        if schedule is None:
            raise UnknownJobError(
                f"Schedule with ID {schedule_id} not found",
                context={"schedule_id": schedule_id, "known_ids": sorted(self._schedules)}
            )
        
        logger.info(f"Manually running schedule: {schedule.id}")
        return await self._execute(schedule)
    
    def get_schedules(self) -> List[ScheduleConfig]:
        return list(self._schedules.values())
    
    def get_schedule(self, schedule_id: str) -> Optional[ScheduleConfig]:
        return self._schedules.get(schedule_id)
    
    def get_status(self) -> SchedulerStatus:
        return SchedulerStatus(
            running=self.is_running,
            schedule_count=len(self._schedules),
            active_timers=len(self._timers)
        )
    
    def _create_timer(self, schedule: ScheduleConfig):
        interval = self.frequency_policy.interval_for(schedule.frequency)
        
        self._timers[schedule.id] = self._scheduler.add_job(
            self._execute_by_id,
            trigger=IntervalTrigger(seconds=interval),
            args=[schedule.id],
            id=f"schedule:{schedule.id}",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        
        logger.info(f"Created timer for schedule {schedule.id} with interval {interval}s")
    
    def _cancel_timer(self, schedule_id: str):
        job = self._timers.pop(schedule_id, None)
        if job is not None:
            job.remove()
    
    async def _execute_by_id(self, schedule_id: str):
        schedule = self._schedules.get(schedule_id)
        if schedule is not None:
            await self._execute(schedule)
    
    async def _execute(self, schedule: ScheduleConfig) -> Any:
        logger.info(f"Executing schedule: {schedule.id} ({schedule.job_type.value})")
        
        result = None
        if self.job_executor is not None:
            try:
                result = await self.job_executor(schedule)
            except ConfigurationError as e:
                logger.error(f"Schedule {schedule.id} is misconfigured: {e}")
                raise
            except Exception as e:
                logger.exception(f"Job for schedule {schedule.id} failed: {e}")
        
        for callback in list(self._listeners.get(schedule.id, [])):
            try:
                callback(schedule)
            except Exception as e:
                logger.error(f"Error in schedule listener for {schedule.id}: {e}")
        
        event = RefreshEvent(
            schedule_id=schedule.id,
            job_type=schedule.job_type,
            job_id=schedule.job_id
        )
        self.last_refresh = event
        
        if self.event_bus is not None:
            self.event_bus.publish(event)
        
        return result
