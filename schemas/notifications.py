"""
Pydantic schemas for notifications, rules and channels.

A Notification is frozen once created; marking it read replaces the inbox
entry with a copy whose ``read`` flag is set.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import Field, validator
from schemas.config import CamelModel
from schemas.status import utcnow
from models.base import ChannelType, EventCategory, NotificationType


class RelatedTo(CamelModel):
    type: str
    id: str


class NotificationCreate(CamelModel):
    """
    Input for NotificationService.add_notification.
    
    ``amount``, ``industry``, ``region`` and ``event_type`` are optional
    structured attributes; when absent, rule matching infers what it can
    from the title and message.
    """
    
    title: str = Field(..., min_length=1)
    message: str = ""
    type: NotificationType = NotificationType.INFO
    related_to: Optional[RelatedTo] = None
    amount: Optional[float] = Field(None, ge=0)
    industry: Optional[str] = None
    region: Optional[str] = None
    event_type: Optional[EventCategory] = None
    
    @validator("event_type")
    def concrete_event_type(cls, v):
        if v == EventCategory.ANY:
            raise ValueError("event_type must be 'funding' or 'acquisition'")
        return v


class Notification(NotificationCreate):
    id: str
    created_at: datetime = Field(default_factory=utcnow)
    read: bool = False


class RuleConditions(CamelModel):
    min_amount: Optional[float] = Field(None, ge=0)
    industries: Optional[List[str]] = None
    regions: Optional[List[str]] = None
    watchlist_only: bool = False


class NotificationRule(CamelModel):
    id: str = ""  # assigned on save when empty
    name: str
    description: str = ""
    event_type: EventCategory = EventCategory.ANY
    conditions: Optional[RuleConditions] = None
    channels: List[ChannelType] = Field(default_factory=list)
    enabled: bool = True


class NotificationChannel(CamelModel):
    """
    Delivery target. ``config`` is channel specific:
    email expects ``address``, mobile expects ``deviceToken``.
    """
    
    id: str = ""  # assigned on save when empty
    type: ChannelType
    config: Optional[Dict[str, Any]] = None
    enabled: bool = True
    
    @validator("config")
    def required_channel_settings(cls, v, values):
        channel_type = values.get("type")
        if channel_type == ChannelType.EMAIL and v is not None and not v.get("address"):
            raise ValueError("email channel config requires an address")
        if channel_type == ChannelType.MOBILE and v is not None and not v.get("deviceToken"):
            raise ValueError("mobile channel config requires a deviceToken")
        return v


class DeliveryRecord(CamelModel):
    notification_id: str
    channel_id: str
    channel_type: ChannelType
    success: bool
    error: Optional[str] = None
    delivered_at: datetime = Field(default_factory=utcnow)
