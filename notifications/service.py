# ============================================================================
# File: notifications/service.py
# Description: In-memory notification inbox, rule/channel CRUD and delivery
# ============================================================================
"""
Notification Service - owns the inbox, rules and channels.

Flow for every new notification:
1. Store it at the front of the inbox (newest first)
2. Fan out the updated inbox to subscribers
3. Match enabled rules against a snapshot of rules and channels
4. Deliver once to each resolved channel; failures are logged only

The inbox, rules and channels live for the process lifetime.
"""

from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple, Union
import logging
import uuid

from core.events import EventBus
from core.exceptions import IntegrationError
from models.base import ChannelType, EventCategory, FundingEventType, JobType, NotificationType
from models.funding_event import FundingEvent
from notifications.channels import ChannelDeliverer, default_deliverers
from notifications.rules import matching_rules, resolve_channels
from schemas.notifications import (
    DeliveryRecord,
    Notification,
    NotificationChannel,
    NotificationCreate,
    NotificationRule,
    RelatedTo,
)
from schemas.status import RefreshEvent

logger = logging.getLogger(__name__)

InboxListener = Callable[[List[Notification]], None]

ROUND_LABELS = {
    FundingEventType.SEED: "Seed",
    FundingEventType.SERIES_A: "Series A",
    FundingEventType.SERIES_B: "Series B",
    FundingEventType.SERIES_C_PLUS: "Series C+",
    FundingEventType.IPO: "IPO",
    FundingEventType.SPAC: "SPAC",
    FundingEventType.PE_BUYOUT: "PE Buyout",
}


def format_amount(amount: float) -> str:
    """$500K, $45M, $1.2B"""
    if amount >= 1_000_000_000:
        return f"${amount / 1_000_000_000:.1f}B"
    if amount >= 1_000_000:
        return f"${amount / 1_000_000:.0f}M"
    return f"${amount / 1_000:.0f}K"


def company_slug(name: str) -> str:
    return name.lower().replace(" ", "_")


class NotificationService:
    """
    Notification engine.
    
    Mutations go through this class only; subscribers receive a fresh
    newest-first list after each one.
    """
    
    def __init__(
        self,
        rules: Optional[Iterable[NotificationRule]] = None,
        channels: Optional[Iterable[NotificationChannel]] = None,
        deliverers: Optional[Dict[ChannelType, ChannelDeliverer]] = None,
        watchlist: Optional[Iterable[str]] = None
    ):
        self._inbox: List[Notification] = []
        self._listeners: List[InboxListener] = []
        self._rules: List[NotificationRule] = []
        self._channels: List[NotificationChannel] = []
        self._deliverers = deliverers if deliverers is not None else default_deliverers()
        self._deliveries: List[DeliveryRecord] = []
        self._delivered: Set[Tuple[str, str]] = set()
        self._bus_subscriptions: List[Callable[[], None]] = []
        self.watchlist = list(watchlist) if watchlist is not None else None
        
        for rule in rules or []:
            self.save_rule(rule)
        for channel in channels or []:
            self.save_channel(channel)
    
    @classmethod
    def with_defaults(cls, **kwargs) -> "NotificationService":
        """Service seeded with the default rules and channels"""
        from notifications.defaults import default_channels, default_rules
        return cls(rules=default_rules(), channels=default_channels(), **kwargs)
    
    # ------------------------------------------------------------------------
    # Inbox
    # ------------------------------------------------------------------------
    
    def add_notification(self, data: Union[NotificationCreate, Dict[str, Any]]) -> Notification:
        if isinstance(data, dict):
            data = NotificationCreate(**data)
        
        notification = Notification(
            id=f"notification-{uuid.uuid4().hex}",
            **data.model_dump()
        )
        self._inbox.insert(0, notification)
        logger.info(f"Notification added: {notification.title}")
        
        self._notify_listeners()
        self.deliver(notification)
        return notification
    
    def get_notifications(self) -> List[Notification]:
        # stable: equal timestamps keep insertion order (newest insert first)
        return sorted(self._inbox, key=lambda n: n.created_at, reverse=True)
    
    def get_unread_notifications(self) -> List[Notification]:
        return [n for n in self.get_notifications() if not n.read]
    
    def get_notification(self, notification_id: str) -> Optional[Notification]:
        return next((n for n in self._inbox if n.id == notification_id), None)
    
    def mark_as_read(self, notification_id: str) -> bool:
        for index, notification in enumerate(self._inbox):
            if notification.id == notification_id:
                self._inbox[index] = notification.model_copy(update={"read": True})
                self._notify_listeners()
                return True
        return False
    
    def mark_all_as_read(self):
        self._inbox = [n if n.read else n.model_copy(update={"read": True}) for n in self._inbox]
        self._notify_listeners()
    
    def delete_notification(self, notification_id: str) -> bool:
        remaining = [n for n in self._inbox if n.id != notification_id]
        deleted = len(remaining) != len(self._inbox)
        self._inbox = remaining
        self._notify_listeners()
        return deleted
    
    def clear_all_notifications(self):
        self._inbox = []
        self._notify_listeners()
    
    def subscribe(self, listener: InboxListener) -> Callable[[], None]:
        """Register an inbox listener; returns a function that removes it"""
        self._listeners.append(listener)
        
        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        
        return unsubscribe
    
    def _notify_listeners(self):
        inbox = self.get_notifications()
        for listener in list(self._listeners):
            try:
                listener(list(inbox))
            except Exception as e:
                logger.error(f"Inbox listener failed: {e}")
    
    # ------------------------------------------------------------------------
    # Rules and channels
    # ------------------------------------------------------------------------
    
    def get_rules(self) -> List[NotificationRule]:
        return list(self._rules)
    
    def save_rule(self, rule: NotificationRule) -> NotificationRule:
        """Create or replace a rule by id; an empty id is assigned"""
        if not rule.id:
            rule = rule.model_copy(update={"id": f"rule-{uuid.uuid4().hex[:12]}"})
        self._rules = [r for r in self._rules if r.id != rule.id] + [rule]
        return rule
    
    def delete_rule(self, rule_id: str) -> bool:
        remaining = [r for r in self._rules if r.id != rule_id]
        deleted = len(remaining) != len(self._rules)
        self._rules = remaining
        return deleted
    
    def get_channels(self) -> List[NotificationChannel]:
        return list(self._channels)
    
    def save_channel(self, channel: NotificationChannel) -> NotificationChannel:
        """Create or replace a channel by id; an empty id is assigned"""
        if not channel.id:
            channel = channel.model_copy(update={"id": f"channel-{uuid.uuid4().hex[:12]}"})
        self._channels = [c for c in self._channels if c.id != channel.id] + [channel]
        return channel
    
    def delete_channel(self, channel_id: str) -> bool:
        remaining = [c for c in self._channels if c.id != channel_id]
        deleted = len(remaining) != len(self._channels)
        self._channels = remaining
        return deleted
    
    # ------------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------------
    
    def deliver(self, notification: Notification) -> List[DeliveryRecord]:
        """
        Deliver a notification to every channel its matching rules resolve to.
        
        Channels that already received this notification are skipped.
        Never raises; failures are recorded and logged.
        """
        # CRUD replaces the lists, so these references stay consistent
        rules, channels = self._rules, self._channels
        
        matched = matching_rules(rules, notification, self.watchlist)
        targets = resolve_channels(matched, channels)
        
        records = []
        for channel in targets:
            key = (notification.id, channel.id)
            if key in self._delivered:
                continue
            
            deliverer = self._deliverers.get(channel.type)
            try:
                if deliverer is None:
                    raise LookupError(f"No deliverer registered for {channel.type.value}")
                deliverer.deliver(notification, channel)
                self._delivered.add(key)
                record = DeliveryRecord(
                    notification_id=notification.id,
                    channel_id=channel.id,
                    channel_type=channel.type,
                    success=True
                )
                logger.info(f"Delivered {notification.id} via {channel.type.value} ({channel.id})")
            except Exception as e:
                record = DeliveryRecord(
                    notification_id=notification.id,
                    channel_id=channel.id,
                    channel_type=channel.type,
                    success=False,
                    error=e.message if isinstance(e, IntegrationError) else str(e)
                )
                logger.error(f"Delivery of {notification.id} via {channel.type.value} failed: {e}")
            
            self._deliveries.append(record)
            records.append(record)
        
        return records
    
    def get_deliveries(self, notification_id: Optional[str] = None) -> List[DeliveryRecord]:
        if notification_id is None:
            return list(self._deliveries)
        return [d for d in self._deliveries if d.notification_id == notification_id]
    
    # ------------------------------------------------------------------------
    # Event bus intake
    # ------------------------------------------------------------------------
    
    def attach(self, event_bus: EventBus):
        """Consume refresh and funding events published on the bus"""
        self._bus_subscriptions.append(event_bus.subscribe(RefreshEvent, self.handle_refresh_event))
        self._bus_subscriptions.append(event_bus.subscribe(FundingEvent, self.handle_funding_event))
    
    def detach(self):
        for unsubscribe in self._bus_subscriptions:
            unsubscribe()
        self._bus_subscriptions = []
    
    def handle_refresh_event(self, event: RefreshEvent) -> Optional[Notification]:
        if event.job_type == JobType.API:
            origin = "external APIs"
        elif event.job_type == JobType.SCRAPER:
            origin = "web sources"
        else:
            return None
        
        return self.add_notification(NotificationCreate(
            title="Data Refresh Complete",
            message=f"New data has been fetched from {origin}",
            type=NotificationType.INFO,
            related_to=RelatedTo(type="system", id=event.job_id or "data-refresh")
        ))
    
    def handle_funding_event(self, event: FundingEvent) -> Notification:
        company = event.company_name or event.company_id
        amount = format_amount(event.amount)
        
        if event.is_acquisition:
            title = "Acquisition Alert"
            message = f"{company} was acquired for {amount}"
            notification_type = NotificationType.WARNING
            category = EventCategory.ACQUISITION
        else:
            label = ROUND_LABELS.get(event.type, event.type.value)
            title = f"New {label} Funding Round"
            message = f"{company} secured {amount} in {label} funding"
            if event.investors:
                message += f" led by {event.investors[0]}"
            notification_type = NotificationType.SUCCESS
            category = EventCategory.FUNDING
        
        return self.add_notification(NotificationCreate(
            title=title,
            message=message,
            type=notification_type,
            related_to=RelatedTo(type="company", id=event.company_id or company_slug(company)),
            amount=event.amount,
            event_type=category
        ))
