"""Handlers for requests initiated by the adapter."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from dapclient.protocol.events import Subscription

logger = logging.getLogger(__name__)

# Receives the request arguments, returns the response body
ReverseRequestHandler = Callable[[Any], Awaitable[Any]]


class ReverseRequestRegistry:
    """
    One async handler per reverse-request command.

    Registering a second handler for a command replaces the first.
    """

    def __init__(self):
        self._handlers: dict[str, ReverseRequestHandler] = {}

    def register(self, command: str, handler: ReverseRequestHandler) -> Subscription:
        """
        Register ``handler`` for ``command``, replacing any previous one.

        Returns:
            Subscription whose unsubscribe() calls unregister() with this
            handler.
        """
        if command in self._handlers:
            logger.debug(f"Replacing reverse request handler for '{command}'")
        self._handlers[command] = handler
        return Subscription(lambda: self.unregister(command, handler))

    def unregister(self, command: str, handler: ReverseRequestHandler) -> bool:
        """
        Remove ``handler`` if it is still the one registered for ``command``.

        A stale handle never removes a newer registration.

        Returns:
            True if the handler was removed.
        """
        if self._handlers.get(command) is handler:
            del self._handlers[command]
            return True
        return False

    def get(self, command: str) -> ReverseRequestHandler | None:
        """Handler registered for ``command``, if any."""
        return self._handlers.get(command)

    def __contains__(self, command: str) -> bool:
        return command in self._handlers

    def commands(self) -> list[str]:
        """Commands that currently have a handler."""
        return list(self._handlers)

    def clear(self) -> None:
        """Remove every handler."""
        self._handlers.clear()
