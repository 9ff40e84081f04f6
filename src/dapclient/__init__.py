"""
Client for the Debug Adapter Protocol (DAP).

Drives a debug adapter over a byte stream: Content-Length framed JSON
requests go out, responses are matched to the requests that caused them,
events are fanned out to subscribers, and requests coming from the
adapter are answered by registered handlers.

Submodules:
- transport: byte-stream transports (streams, TCP socket, launched process)
- protocol: framing, classification, correlation, events, reverse requests
- config: client options and adapter configuration files
"""

# Transport layer
from dapclient.transport import (
    Transport,
    TransportConfig,
    TransportError,
    StreamTransport,
    SocketTransport,
    ProcessTransport,
    create_transport,
)

# Protocol layer
from dapclient.protocol import (
    DebugClient,
    DebugAdapterClient,
    DAPError,
    RequestError,
    RequestTimeoutError,
    NotConnectedError,
    AlreadyConnectedError,
    ConnectionClosedError,
    ProtocolError,
    FramingError,
    MessageDecodeError,
    ConnectionState,
    Subscription,
    Capabilities,
    InitializeArguments,
    initialize_adapter,
)

# Configuration
from dapclient.config import ClientConfig, AdapterConfig, load_adapter_config

__version__ = "0.1.0"

__all__ = [
    "Transport",
    "TransportConfig",
    "TransportError",
    "StreamTransport",
    "SocketTransport",
    "ProcessTransport",
    "create_transport",
    "DebugClient",
    "DebugAdapterClient",
    "DAPError",
    "RequestError",
    "RequestTimeoutError",
    "NotConnectedError",
    "AlreadyConnectedError",
    "ConnectionClosedError",
    "ProtocolError",
    "FramingError",
    "MessageDecodeError",
    "ConnectionState",
    "Subscription",
    "Capabilities",
    "InitializeArguments",
    "initialize_adapter",
    "ClientConfig",
    "AdapterConfig",
    "load_adapter_config",
]
