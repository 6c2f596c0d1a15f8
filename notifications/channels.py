"""
Channel deliverers.

In-app delivery is a no-op (the inbox already holds the notification);
email and mobile deliverers log the send they would perform.
"""

from abc import ABC, abstractmethod
from typing import Dict
import logging

from core.exceptions import DeliveryError
from models.base import ChannelType
from schemas.notifications import Notification, NotificationChannel

logger = logging.getLogger(__name__)


class ChannelDeliverer(ABC):
    
    @abstractmethod
    def deliver(self, notification: Notification, channel: NotificationChannel):
        """
        Raises:
            DeliveryError: If the channel cannot accept the notification
        """
        pass
    
    def _setting(self, notification: Notification, channel: NotificationChannel, key: str) -> str:
        value = (channel.config or {}).get(key)
        if not value:
            raise DeliveryError(
                f"{channel.type.value} channel {channel.id} has no {key} configured",
                context={
                    "notification_id": notification.id,
                    "channel_id": channel.id,
                    "channel_type": channel.type.value
                }
            )
        return value


class InAppDeliverer(ChannelDeliverer):
    
    def deliver(self, notification: Notification, channel: NotificationChannel):
        logger.debug(f"Notification {notification.id} available in-app")


class EmailDeliverer(ChannelDeliverer):
    
    def deliver(self, notification: Notification, channel: NotificationChannel):
        address = self._setting(notification, channel, "address")
        logger.info(f"Would send email to {address} with subject: {notification.title}")


class MobileDeliverer(ChannelDeliverer):
    
    def deliver(self, notification: Notification, channel: NotificationChannel):
        token = self._setting(notification, channel, "deviceToken")
        silent = bool((channel.config or {}).get("silent", False))
        logger.info(f"Would send {'silent ' if silent else ''}push notification to device {token}")


def default_deliverers() -> Dict[ChannelType, ChannelDeliverer]:
    return {
        ChannelType.IN_APP: InAppDeliverer(),
        ChannelType.EMAIL: EmailDeliverer(),
        ChannelType.MOBILE: MobileDeliverer(),
    }
