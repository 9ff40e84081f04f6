"""Abstract base transport and error types."""

import logging
from abc import ABC, abstractmethod
from typing import AsyncIterator, Callable

from dapclient.transport.types import TransportConfig, TransportEvent

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Base exception for transport errors."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class ConnectionError(TransportError):
    """Failed to establish connection to the adapter."""

    pass


class TimeoutError(TransportError):
    """Connection attempt timed out."""

    pass


class Transport(ABC):
    """
    Abstract base class for debug adapter transports.

    A transport moves raw bytes. It knows nothing about framing or
    message structure: outbound bytes go through send(), inbound bytes
    arrive through the receive() iterator in whatever chunk sizes the
    underlying stream delivers.
    """

    def __init__(self, config: TransportConfig):
        self.config = config
        self._event_handlers: list[Callable[[TransportEvent], None]] = []

    def on_event(self, handler: Callable[[TransportEvent], None]) -> None:
        """
        Register an event handler for transport events.

        Args:
            handler: Callback invoked when transport events occur.
        """
        self._event_handlers.append(handler)

    def _emit_event(self, event: TransportEvent) -> None:
        """Emit an event to all registered handlers."""
        for handler in self._event_handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(f"Transport event handler error for {event.type.name}")

    @abstractmethod
    async def connect(self) -> None:
        """
        Open the byte stream to the adapter.

        Raises:
            ConnectionError: If connection cannot be established.
            TimeoutError: If connection times out.
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """
        Close the byte stream and release all resources.

        This method should be safe to call multiple times.
        """
        pass

    @abstractmethod
    async def send(self, data: bytes) -> None:
        """
        Write encoded bytes to the adapter.

        Raises:
            TransportError: If not connected or the write fails.
        """
        pass

    @abstractmethod
    def receive(self) -> AsyncIterator[bytes]:
        """
        Async iterator yielding inbound byte chunks.

        The iterator ends when the adapter closes its side of the stream
        or the transport is disconnected.
        """
        pass

    @abstractmethod
    def is_connected(self) -> bool:
        """
        Check if transport is currently connected.

        Returns:
            True if connected and ready for communication.
        """
        pass

    async def __aenter__(self) -> "Transport":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.disconnect()
