"""
Notification dispatcher - fans change events out to registered subscribers.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from domain_watch.change_monitor.models import ChangeEvent
from domain_watch.config import AppConfig
from .subscribers import EmailSubscriber, NotificationSubscriber, WebhookSubscriber

logger = logging.getLogger(__name__)


def _display_name(subscriber) -> str:
    # Any object with notify(event) may subscribe
    return getattr(subscriber, "name", type(subscriber).__name__)


class NotificationDispatcher:
    """
    Registry of subscribers that receive every change event.

    Delivery is synchronous and in registration order. A subscriber that
    raises is logged and skipped; the remaining subscribers still receive
    the event.
    """

    def __init__(self, subscribers: Optional[Iterable[NotificationSubscriber]] = None):
        """
        Initialize notification dispatcher.

        Args:
            subscribers: Optional initial subscribers
        """
        self._subscribers: List[NotificationSubscriber] = list(subscribers or [])

    @property
    def subscribers(self) -> Tuple[NotificationSubscriber, ...]:
        return tuple(self._subscribers)

    def register(self, subscriber: NotificationSubscriber) -> None:
        """
        Add a subscriber. Registering the same object twice delivers twice.

        Args:
            subscriber: Subscriber to add
        """
        self._subscribers.append(subscriber)
        logger.info(f"Registered notification subscriber: {_display_name(subscriber)}")

    def unregister(self, subscriber: NotificationSubscriber) -> None:
        """
        Remove a subscriber by identity. No-op if it is not registered.

        Args:
            subscriber: Subscriber to remove
        """
        for i, registered in enumerate(self._subscribers):
            if registered is subscriber:
                del self._subscribers[i]
                logger.info(f"Unregistered notification subscriber: {_display_name(subscriber)}")
                return

    def dispatch(self, event: ChangeEvent) -> int:
        """
        Deliver an event to every registered subscriber.

        Args:
            event: Event to deliver

        Returns:
            Number of subscribers that accepted the event without raising
        """
        delivered = 0

        for subscriber in list(self._subscribers):
            try:
                subscriber.notify(event)
                delivered += 1
            except Exception as e:
                logger.error(
                    f"Subscriber {_display_name(subscriber)} failed for {event.kind.value} "
                    f"on {event.domain}: {e}",
                    exc_info=True
                )

        logger.debug(
            f"Dispatched {event.kind.value} for {event.domain} to "
            f"{delivered}/{len(self._subscribers)} subscribers"
        )
        return delivered


def build_dispatcher(config: AppConfig) -> NotificationDispatcher:
    """
    Create a dispatcher with every built-in subscriber that is configured.

    Args:
        config: Application configuration

    Returns:
        NotificationDispatcher instance
    """
    dispatcher = NotificationDispatcher()
    for subscriber in (EmailSubscriber(config.smtp), WebhookSubscriber(config.webhook)):
        if subscriber.is_enabled():
            dispatcher.register(subscriber)

    if not dispatcher.subscribers:
        logger.warning("No notification subscribers enabled; changes will only be logged")
    return dispatcher
