"""
Default notification rules and channels.
"""

from typing import List

from models.base import ChannelType, EventCategory
from schemas.notifications import NotificationChannel, NotificationRule, RuleConditions


def default_rules() -> List[NotificationRule]:
    return [
        NotificationRule(
            id="rule-1",
            name="Large Funding Rounds",
            description="Notify when a company raises more than $10M",
            event_type=EventCategory.FUNDING,
            conditions=RuleConditions(min_amount=10_000_000),
            channels=[ChannelType.IN_APP, ChannelType.EMAIL],
            enabled=True
        ),
        NotificationRule(
            id="rule-2",
            name="Major Acquisitions",
            description="Notify on acquisitions above $100M",
            event_type=EventCategory.ACQUISITION,
            conditions=RuleConditions(min_amount=100_000_000),
            channels=[ChannelType.IN_APP, ChannelType.EMAIL],
            enabled=True
        ),
        NotificationRule(
            id="rule-3",
            name="Watchlist Activity",
            description="Any activity from companies on the watchlist",
            event_type=EventCategory.ANY,
            conditions=RuleConditions(watchlist_only=True),
            channels=[ChannelType.IN_APP],
            enabled=True
        ),
    ]


def default_channels() -> List[NotificationChannel]:
    return [
        NotificationChannel(id="channel-1", type=ChannelType.IN_APP, enabled=True),
        NotificationChannel(
            id="channel-2",
            type=ChannelType.EMAIL,
            config={"address": "user@example.com", "frequency": "immediate"},
            enabled=True
        ),
        NotificationChannel(
            id="channel-3",
            type=ChannelType.MOBILE,
            config={"deviceToken": "mock-device-token", "silent": False},
            enabled=False
        ),
    ]
