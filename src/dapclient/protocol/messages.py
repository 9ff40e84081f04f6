"""Debug Adapter Protocol message types and classification."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class MessageKind(Enum):
    """Kind of a decoded protocol message."""

    REQUEST = "request"
    RESPONSE = "response"
    EVENT = "event"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


def _is_int(value: Any) -> bool:
    # bool is an int subclass but never a valid sequence number
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class Request:
    """
    A command invocation.

    Sent by the client to the adapter, or by the adapter to the client
    (a reverse request).
    """

    seq: int
    command: str
    arguments: Any = None
    type: str = "request"

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        msg: dict[str, Any] = {
            "seq": self.seq,
            "type": self.type,
            "command": self.command,
        }
        if self.arguments is not None:
            msg["arguments"] = self.arguments
        return msg

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Request":
        """Create from JSON dict."""
        return cls(
            seq=data["seq"],
            command=data["command"],
            arguments=data.get("arguments"),
        )

    def __str__(self) -> str:
        return f"Request({self.command}, seq={self.seq})"


@dataclass(frozen=True)
class Response:
    """
    Reply to exactly one prior request, correlated by ``request_seq``.

    On success ``body`` holds the result. On failure ``message`` describes
    the error and ``body`` may carry a structured ``error`` object.
    """

    seq: int
    request_seq: int
    command: str
    success: bool
    body: Any = None
    message: str | None = None
    type: str = "response"

    @property
    def is_error(self) -> bool:
        """Check if this is an error response."""
        return not self.success

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        msg: dict[str, Any] = {
            "seq": self.seq,
            "type": self.type,
            "request_seq": self.request_seq,
            "command": self.command,
            "success": self.success,
        }
        if self.message is not None:
            msg["message"] = self.message
        if self.body is not None:
            msg["body"] = self.body
        return msg

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Response":
        """Create from JSON dict."""
        return cls(
            seq=data.get("seq", 0),
            request_seq=data["request_seq"],
            command=data.get("command", ""),
            success=data["success"],
            body=data.get("body"),
            message=data.get("message"),
        )

    @classmethod
    def success_for(cls, seq: int, request: Request, body: Any = None) -> "Response":
        """Create a success response answering ``request``."""
        return cls(
            seq=seq,
            request_seq=request.seq,
            command=request.command,
            success=True,
            body=body,
        )

    @classmethod
    def error_for(
        cls,
        seq: int,
        request: Request,
        message: str,
        error: dict[str, Any] | None = None,
    ) -> "Response":
        """Create a failure response answering ``request``."""
        return cls(
            seq=seq,
            request_seq=request.seq,
            command=request.command,
            success=False,
            message=message,
            body={"error": error} if error is not None else None,
        )

    def __str__(self) -> str:
        if self.is_error:
            return f"Response({self.command}, request_seq={self.request_seq}, error={self.message!r})"
        return f"Response({self.command}, request_seq={self.request_seq}, success)"


@dataclass(frozen=True)
class Event:
    """Unsolicited notification from the adapter."""

    seq: int
    event: str
    body: Any = None
    type: str = "event"

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        msg: dict[str, Any] = {
            "seq": self.seq,
            "type": self.type,
            "event": self.event,
        }
        if self.body is not None:
            msg["body"] = self.body
        return msg

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Event":
        """Create from JSON dict."""
        return cls(
            seq=data["seq"],
            event=data["event"],
            body=data.get("body"),
        )

    def __str__(self) -> str:
        return f"Event({self.event}, seq={self.seq})"


Message = Request | Response | Event


def is_response(data: Any) -> bool:
    """Check if message is a response (integer request_seq, boolean success)."""
    return (
        isinstance(data, dict)
        and data.get("type") == "response"
        and _is_int(data.get("request_seq"))
        and isinstance(data.get("success"), bool)
    )


def is_event(data: Any) -> bool:
    """Check if message is an event (string event name, integer seq)."""
    return (
        isinstance(data, dict)
        and data.get("type") == "event"
        and isinstance(data.get("event"), str)
        and _is_int(data.get("seq"))
    )


def is_request(data: Any) -> bool:
    """Check if message is a request (string command, integer seq)."""
    return (
        isinstance(data, dict)
        and data.get("type") == "request"
        and isinstance(data.get("command"), str)
        and _is_int(data.get("seq"))
    )


def classify(data: Any) -> MessageKind:
    """
    Determine the kind of a decoded JSON value.

    Checks run in the order response, event, request. Anything that does
    not carry the discriminant together with its required fields is
    UNKNOWN. Never raises.
    """
    if is_response(data):
        return MessageKind.RESPONSE
    if is_event(data):
        return MessageKind.EVENT
    if is_request(data):
        return MessageKind.REQUEST
    return MessageKind.UNKNOWN


def parse_message(data: dict[str, Any]) -> Message:
    """
    Parse a JSON dict into the appropriate message type.

    Raises:
        ValueError: If the message cannot be classified.
    """
    kind = classify(data)
    if kind is MessageKind.RESPONSE:
        return Response.from_dict(data)
    if kind is MessageKind.EVENT:
        return Event.from_dict(data)
    if kind is MessageKind.REQUEST:
        return Request.from_dict(data)
    raise ValueError("Cannot determine message type")
