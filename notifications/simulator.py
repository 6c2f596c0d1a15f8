"""
Background generator of sample funding notifications, for demos.

Each tick adds one random funding-round notification with the configured
probability. Disabled unless NOTIFICATION_SIMULATION_ENABLED is set.
"""

from typing import Optional
import logging
import random

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from core.config import settings
from models.base import EventCategory, NotificationType
from notifications.service import NotificationService, company_slug, format_amount
from schemas.notifications import Notification, NotificationCreate, RelatedTo

logger = logging.getLogger(__name__)

COMPANIES = [
    "QuantumAI Solutions",
    "ClimateGuard Technologies",
    "FinSecure Platform",
    "CloudSecure Inc",
    "HealthTech Solutions",
]

INVESTORS = [
    "Sequoia Capital",
    "Andreessen Horowitz",
    "Breakthrough Energy Ventures",
    "Accel Partners",
    "Y Combinator",
]

AMOUNTS = [5_000_000, 10_000_000, 25_000_000, 50_000_000, 100_000_000]

ROUNDS = ["Seed", "Series A", "Series B", "Series C"]


class FundingEventSimulator:
    
    JOB_ID = "notification-simulator"
    
    def __init__(
        self,
        service: NotificationService,
        interval_seconds: Optional[int] = None,
        probability: Optional[float] = None,
        rng: Optional[random.Random] = None
    ):
        self.service = service
        self.interval_seconds = interval_seconds or settings.NOTIFICATION_SIMULATION_INTERVAL_SECONDS
        self.probability = probability if probability is not None else settings.NOTIFICATION_SIMULATION_PROBABILITY
        self.rng = rng or random.Random()
        self._scheduler: Optional[AsyncIOScheduler] = None
    
    @property
    def running(self) -> bool:
        return self._scheduler is not None
    
    def create_event_notification(self) -> Notification:
        company = self.rng.choice(COMPANIES)
        investor = self.rng.choice(INVESTORS)
        amount = self.rng.choice(AMOUNTS)
        funding_round = self.rng.choice(ROUNDS)
        
        return self.service.add_notification(NotificationCreate(
            title=f"New {funding_round} Funding Round",
            message=f"{company} secured {format_amount(amount)} in {funding_round} funding led by {investor}",
            type=NotificationType.SUCCESS,
            related_to=RelatedTo(type="company", id=company_slug(company)),
            amount=amount,
            event_type=EventCategory.FUNDING
        ))
    
    def tick(self) -> Optional[Notification]:
        if self.rng.random() < self.probability:
            return self.create_event_notification()
        return None
    
    async def _tick(self):
        # coroutine job: runs on the event loop, not in an executor thread
        self.tick()
    
    def start(self):
        if self._scheduler is not None:
            return
        
        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self._tick,
            IntervalTrigger(seconds=self.interval_seconds),
            id=self.JOB_ID,
            max_instances=1,
            coalesce=True
        )
        self._scheduler.start()
        logger.info(
            f"Notification simulator started (every {self.interval_seconds}s, p={self.probability})"
        )
    
    def stop(self):
        if self._scheduler is None:
            return
        
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Notification simulator stopped")
