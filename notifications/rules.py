"""
Pure rule matching for notifications.

Nothing here has side effects: given a notification, the rules and channels
snapshots and the watchlist, these functions decide which enabled channels
should receive it. Delivery is a separate step (see service.py).

Event category inference is keyword based (title, then message, of
company-related notifications), kept for compatibility with existing rule
sets. It is the weakest part of matching: "funding" in an unrelated message
will categorize it as a funding event. Senders that know the category
should set ``event_type`` explicitly, which always takes precedence.
"""

from typing import Iterable, List, Optional
import re

from models.base import ChannelType, EventCategory
from schemas.notifications import (
    Notification,
    NotificationChannel,
    NotificationRule,
    RuleConditions,
)

FUNDING_KEYWORDS = ("funding",)
ACQUISITION_KEYWORDS = ("acquisition", "acquired", "acquires")

_AMOUNT_PATTERN = re.compile(
    r"\$\s?(\d[\d,]*(?:\.\d+)?)\s*(billion|million|thousand|bn|b|m|k)?\b",
    re.IGNORECASE
)

_MULTIPLIERS = {
    "billion": 1e9, "bn": 1e9, "b": 1e9,
    "million": 1e6, "m": 1e6,
    "thousand": 1e3, "k": 1e3,
}


def extract_amount(text: str) -> Optional[float]:
    """First dollar amount in a text: "$45M", "$1.2B", "$980,000,000" """
    match = _AMOUNT_PATTERN.search(text or "")
    if not match:
        return None
    
    value = float(match.group(1).replace(",", ""))
    suffix = (match.group(2) or "").lower()
    return value * _MULTIPLIERS.get(suffix, 1)


def _category_from_text(text: str) -> Optional[EventCategory]:
    lowered = text.lower()
    if any(k in lowered for k in FUNDING_KEYWORDS):
        return EventCategory.FUNDING
    if any(k in lowered for k in ACQUISITION_KEYWORDS):
        return EventCategory.ACQUISITION
    return None


def infer_event_category(notification: Notification) -> Optional[EventCategory]:
    if notification.event_type is not None:
        return EventCategory(notification.event_type)
    
    if notification.related_to is None or notification.related_to.type != "company":
        return None
    
    return _category_from_text(notification.title) or _category_from_text(notification.message)


def notification_amount(notification: Notification) -> Optional[float]:
    if notification.amount is not None:
        return notification.amount
    return extract_amount(f"{notification.title} {notification.message}")


def _in(value: str, allowed: Iterable[str]) -> bool:
    return value.lower() in {a.lower() for a in allowed}


def conditions_match(
    conditions: Optional[RuleConditions],
    notification: Notification,
    watchlist: Optional[Iterable[str]] = None
) -> bool:
    """
    A condition only constrains attributes the notification carries:
    a rule with ``industries`` still matches a notification of unknown
    industry. ``watchlist_only`` requires a company-related notification,
    and one on the watchlist when a watchlist is configured.
    """
    if conditions is None:
        return True
    
    if conditions.watchlist_only:
        related = notification.related_to
        if related is None or related.type != "company":
            return False
        if watchlist is not None and related.id not in set(watchlist):
            return False
    
    if conditions.min_amount is not None:
        amount = notification_amount(notification)
        if amount is not None and amount < conditions.min_amount:
            return False
    
    if conditions.industries and notification.industry:
        if not _in(notification.industry, conditions.industries):
            return False
    
    if conditions.regions and notification.region:
        if not _in(notification.region, conditions.regions):
            return False
    
    return True


def rule_matches(
    rule: NotificationRule,
    notification: Notification,
    watchlist: Optional[Iterable[str]] = None
) -> bool:
    if not rule.enabled:
        return False
    
    if rule.event_type != EventCategory.ANY:
        if infer_event_category(notification) != rule.event_type:
            return False
    
    return conditions_match(rule.conditions, notification, watchlist)


def matching_rules(
    rules: Iterable[NotificationRule],
    notification: Notification,
    watchlist: Optional[Iterable[str]] = None
) -> List[NotificationRule]:
    return [rule for rule in rules if rule_matches(rule, notification, watchlist)]


def resolve_channels(
    rules: Iterable[NotificationRule],
    channels: Iterable[NotificationChannel]
) -> List[NotificationChannel]:
    """One enabled channel per channel type named by the rules, in rule order"""
    channel_types: List[ChannelType] = []
    for rule in rules:
        for channel_type in rule.channels:
            if channel_type not in channel_types:
                channel_types.append(channel_type)
    
    channels = list(channels)
    targets = []
    for channel_type in channel_types:
        channel = next((c for c in channels if c.type == channel_type and c.enabled), None)
        if channel is not None:
            targets.append(channel)
    
    return targets
