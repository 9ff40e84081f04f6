"""
Debug Adapter Protocol core.

Implements Content-Length framing, message classification,
request/response correlation, event fan-out, reverse requests and the
connection state machine.
"""

from dapclient.protocol.messages import (
    Request,
    Response,
    Event,
    MessageKind,
    classify,
    parse_message,
)
from dapclient.protocol.errors import (
    DAPError,
    RequestError,
    RequestTimeoutError,
    NotConnectedError,
    AlreadyConnectedError,
    ConnectionClosedError,
    ProtocolError,
    FramingError,
    MessageDecodeError,
)
from dapclient.protocol.framing import StreamDecoder, encode_message
from dapclient.protocol.sequence import SequenceAllocator
from dapclient.protocol.correlation import PendingRequests
from dapclient.protocol.events import EventHub, Subscription
from dapclient.protocol.reverse import ReverseRequestRegistry
from dapclient.protocol.state import (
    ConnectionState,
    ConnectionStateMachine,
    InvalidStateTransition,
)
from dapclient.protocol.client import DebugClient
from dapclient.protocol.adapter_client import DebugAdapterClient
from dapclient.protocol.capabilities import (
    Capabilities,
    InitializeArguments,
    initialize_adapter,
)

__all__ = [
    # Messages
    "Request",
    "Response",
    "Event",
    "MessageKind",
    "classify",
    "parse_message",
    # Errors
    "DAPError",
    "RequestError",
    "RequestTimeoutError",
    "NotConnectedError",
    "AlreadyConnectedError",
    "ConnectionClosedError",
    "ProtocolError",
    "FramingError",
    "MessageDecodeError",
    # Core
    "StreamDecoder",
    "encode_message",
    "SequenceAllocator",
    "PendingRequests",
    "EventHub",
    "Subscription",
    "ReverseRequestRegistry",
    # State
    "ConnectionState",
    "ConnectionStateMachine",
    "InvalidStateTransition",
    # Client
    "DebugClient",
    "DebugAdapterClient",
    "Capabilities",
    "InitializeArguments",
    "initialize_adapter",
]
