"""
Notification channel for short-lived user messages (toasts).

The channel is an owned object: the application creates and opens one at
start-up, hands it to the components that publish or listen, and closes it
at shutdown. Nothing registers listeners through module globals.

Usage:
    channel = NotificationChannel()
    channel.open()
    unsubscribe = channel.subscribe(print)
    channel.publish(Notification.info("No records", "No records found"))
    unsubscribe()
    channel.close()
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from threading import Lock
from typing import Callable

from rm_partial_ui.lib import logs

LOG = logs.logger(__file__)


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


@dataclass(frozen=True)
class Notification:
    """A single message shown to the operator."""

    kind: NotificationKind
    title: str
    message: str = ""
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def success(cls, title: str, message: str = "") -> "Notification":
        return cls(NotificationKind.SUCCESS, title, message)

    @classmethod
    def error(cls, title: str, message: str = "") -> "Notification":
        return cls(NotificationKind.ERROR, title, message)

    @classmethod
    def info(cls, title: str, message: str = "") -> "Notification":
        return cls(NotificationKind.INFO, title, message)

    @classmethod
    def warning(cls, title: str, message: str = "") -> "Notification":
        return cls(NotificationKind.WARNING, title, message)

    def to_dict(self) -> dict:
        """Serialize for UI state."""
        return {
            "kind": self.kind.value,
            "title": self.title,
            "message": self.message,
            "created_at": self.created_at.isoformat(),
        }


Subscriber = Callable[[Notification], None]


class NotificationChannel:
    """
    Publish/subscribe channel for notifications.

    Thread-safe. Subscribers are called synchronously in subscription order;
    a failing subscriber is logged and does not prevent delivery to others.
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []
        self._lock = Lock()
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        """Start accepting publications."""
        with self._lock:
            self._open = True
        LOG.debug("Notification channel opened")

    def close(self) -> None:
        """Stop accepting publications and drop all subscribers."""
        with self._lock:
            self._open = False
            self._subscribers.clear()
        LOG.debug("Notification channel closed")

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """
        Register a subscriber.

        Args:
            subscriber: Callable receiving each published Notification.

        Returns:
            A function that unsubscribes this subscriber.
        """
        with self._lock:
            if subscriber not in self._subscribers:
                self._subscribers.append(subscriber)
        return lambda: self.unsubscribe(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        """Remove a subscriber; unknown subscribers are ignored."""
        with self._lock:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

    def publish(self, notification: Notification) -> int:
        """
        Deliver a notification to every subscriber.

        Args:
            notification: The message to deliver.

        Returns:
            Number of subscribers that received it without error.
        """
        with self._lock:
            if not self._open:
                LOG.warning(
                    "Dropping notification on closed channel: %s", notification.title
                )
                return 0
            subscribers = list(self._subscribers)

        delivered = 0
        for subscriber in subscribers:
            try:
                subscriber(notification)
                delivered += 1
            except Exception:
                LOG.warning("Notification subscriber failed", exc_info=True)
        return delivered
