"""
Notification engine.

Modules:
- rules: Pure rule matching and channel resolution
- channels: Per-channel deliverers
- service: NotificationService (inbox, rule/channel CRUD, delivery, bus intake)
- defaults: Default rules and channels
- simulator: Optional generator of sample funding notifications
"""

from notifications.rules import infer_event_category, rule_matches, resolve_channels
from notifications.service import NotificationService

__all__ = [
    "NotificationService",
    "infer_event_category",
    "rule_matches",
    "resolve_channels",
]
