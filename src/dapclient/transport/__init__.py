"""
Debug adapter transport layer.

Moves raw bytes between the client and an adapter reached through
already-open streams, a TCP socket, or a launched process's stdio.
"""

from dapclient.transport.types import TransportConfig, TransportEvent, TransportEventType
from dapclient.transport.base import Transport, TransportError, ConnectionError, TimeoutError
from dapclient.transport.stream import (
    StreamTransport,
    SocketTransport,
    ProcessTransport,
    create_transport,
)

__all__ = [
    "Transport",
    "TransportConfig",
    "TransportEvent",
    "TransportEventType",
    "TransportError",
    "ConnectionError",
    "TimeoutError",
    "StreamTransport",
    "SocketTransport",
    "ProcessTransport",
    "create_transport",
]
