"""
Notifications module.

Fans change events out to subscribers (email, webhook).
"""

from .dispatcher import NotificationDispatcher, build_dispatcher
from .formatters import change_to_notification
from .models import Notification, NotificationSeverity
from .subscribers import EmailSubscriber, NotificationSubscriber, WebhookSubscriber

__all__ = [
    "Notification",
    "NotificationSeverity",
    "NotificationDispatcher",
    "NotificationSubscriber",
    "EmailSubscriber",
    "WebhookSubscriber",
    "build_dispatcher",
    "change_to_notification",
]
