"""
Notification inbox, rule and channel endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from api.dependencies import get_context
from core.context import AppContext
from schemas.api import MessageResponse
from schemas.notifications import (
    Notification,
    NotificationChannel,
    NotificationCreate,
    NotificationRule,
)
from typing import List
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Notifications"])


# ============================================================================
# Inbox
# ============================================================================

@router.get("/notifications", response_model=List[Notification])
async def list_notifications(
    unread: bool = Query(False, description="Only unread notifications"),
    context: AppContext = Depends(get_context)
):
    """Inbox, newest first"""
    service = context.notifications
    return service.get_unread_notifications() if unread else service.get_notifications()


@router.post("/notifications", response_model=Notification, status_code=201)
async def create_notification(data: NotificationCreate, context: AppContext = Depends(get_context)):
    """Add a notification and deliver it to the channels its rules resolve to"""
    return context.notifications.add_notification(data)


@router.post("/notifications/read-all", response_model=MessageResponse)
async def mark_all_read(context: AppContext = Depends(get_context)):
    context.notifications.mark_all_as_read()
    return MessageResponse(message="All notifications marked as read")


@router.post("/notifications/{notification_id}/read", response_model=Notification)
async def mark_read(notification_id: str, context: AppContext = Depends(get_context)):
    service = context.notifications
    if not service.mark_as_read(notification_id):
        raise HTTPException(status_code=404, detail=f"Notification {notification_id} not found")
    return service.get_notification(notification_id)


@router.delete("/notifications/{notification_id}", response_model=MessageResponse)
async def delete_notification(notification_id: str, context: AppContext = Depends(get_context)):
    if not context.notifications.delete_notification(notification_id):
        raise HTTPException(status_code=404, detail=f"Notification {notification_id} not found")
    return MessageResponse(message=f"Notification {notification_id} deleted")


@router.delete("/notifications", response_model=MessageResponse)
async def clear_notifications(context: AppContext = Depends(get_context)):
    context.notifications.clear_all_notifications()
    return MessageResponse(message="All notifications cleared")


# ============================================================================
# Rules
# ============================================================================

@router.get("/rules", response_model=List[NotificationRule])
async def list_rules(context: AppContext = Depends(get_context)):
    return context.notifications.get_rules()


@router.post("/rules", response_model=NotificationRule)
async def save_rule(rule: NotificationRule, context: AppContext = Depends(get_context)):
    """Create a rule (empty id) or replace the rule with the same id"""
    saved = context.notifications.save_rule(rule)
    logger.info(f"Rule {saved.id} saved: {saved.name}")
    return saved


@router.delete("/rules/{rule_id}", response_model=MessageResponse)
async def delete_rule(rule_id: str, context: AppContext = Depends(get_context)):
    if not context.notifications.delete_rule(rule_id):
        raise HTTPException(status_code=404, detail=f"Rule {rule_id} not found")
    return MessageResponse(message=f"Rule {rule_id} deleted")


# ============================================================================
# Channels
# ============================================================================

@router.get("/channels", response_model=List[NotificationChannel])
async def list_channels(context: AppContext = Depends(get_context)):
    return context.notifications.get_channels()


@router.post("/channels", response_model=NotificationChannel)
async def save_channel(channel: NotificationChannel, context: AppContext = Depends(get_context)):
    """Create a channel (empty id) or replace the channel with the same id"""
    saved = context.notifications.save_channel(channel)
    logger.info(f"Channel {saved.id} saved ({saved.type.value})")
    return saved


@router.delete("/channels/{channel_id}", response_model=MessageResponse)
async def delete_channel(channel_id: str, context: AppContext = Depends(get_context)):
    if not context.notifications.delete_channel(channel_id):
        raise HTTPException(status_code=404, detail=f"Channel {channel_id} not found")
    return MessageResponse(message=f"Channel {channel_id} deleted")
