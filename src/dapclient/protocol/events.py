"""Event subscription registry."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger(__name__)

EventCallback = Callable[[Any], None]


class Subscription:
    """
    Handle returned by a registration.

    Calling ``unsubscribe()`` more than once, or after the registration
    already went away on its own, does nothing.
    """

    def __init__(self, unsubscribe: Callable[[], None]):
        self._unsubscribe: Callable[[], None] | None = unsubscribe

    @property
    def active(self) -> bool:
        """False once unsubscribe() has been called."""
        return self._unsubscribe is not None

    def unsubscribe(self) -> None:
        """Remove the registration."""
        if self._unsubscribe is not None:
            unsubscribe, self._unsubscribe = self._unsubscribe, None
            unsubscribe()


@dataclass(eq=False)
class EventSubscription:
    """A single listener registered for an event name."""

    event: str
    callback: EventCallback
    once: bool = False
    removed: bool = field(default=False, init=False)


class EventHub:
    """
    Maps event names to ordered listener lists.

    Listeners run synchronously in registration order. A ``once``
    listener is removed before it is invoked, so it runs exactly once
    even if it raises. Listener exceptions are logged and do not stop
    delivery to the remaining listeners.
    """

    def __init__(self):
        self._subscriptions: dict[str, list[EventSubscription]] = {}

    def subscribe(
        self,
        event: str,
        callback: EventCallback,
        once: bool = False,
    ) -> Subscription:
        """
        Register ``callback`` for ``event``.

        Args:
            event: Event name, e.g. ``"stopped"``.
            callback: Called with the event body.
            once: Remove the listener after its first invocation.

        Returns:
            Subscription handle.
        """
        subscription = EventSubscription(event=event, callback=callback, once=once)
        self._subscriptions.setdefault(event, []).append(subscription)
        return Subscription(lambda: self._remove(subscription))

    def publish(self, event: str, body: Any = None) -> int:
        """
        Deliver ``body`` to every listener currently registered for ``event``.

        Returns:
            Number of listeners invoked.
        """
        listeners = list(self._subscriptions.get(event, ()))
        delivered = 0
        for subscription in listeners:
            if subscription.removed:
                # unsubscribed or already fired during this delivery
                continue
            if subscription.once:
                self._remove(subscription)
            delivered += 1
            try:
                subscription.callback(body)
            except Exception:
                logger.exception(f"Event listener error for '{event}'")
        return delivered

    def listener_count(self, event: str) -> int:
        """Number of listeners registered for ``event``."""
        return len(self._subscriptions.get(event, ()))

    def clear(self) -> None:
        """Remove every listener."""
        for subscriptions in self._subscriptions.values():
            for subscription in subscriptions:
                subscription.removed = True
        self._subscriptions.clear()

    def _remove(self, subscription: EventSubscription) -> None:
        subscription.removed = True
        subscriptions = self._subscriptions.get(subscription.event)
        if not subscriptions:
            return
        try:
            subscriptions.remove(subscription)
        except ValueError:
            return
        if not subscriptions:
            del self._subscriptions[subscription.event]
