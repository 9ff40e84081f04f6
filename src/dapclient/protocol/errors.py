"""Protocol error types."""

from dataclasses import dataclass
from typing import Any


class DAPError(Exception):
    """Base class for all debug adapter client errors."""


@dataclass
class RequestError(DAPError):
    """
    The adapter answered a request with ``success: false``.

    Carries the adapter-supplied message and, when the adapter sent one,
    the structured ``error`` detail from the response body.
    """

    command: str
    message: str
    request_seq: int | None = None
    body: Any = None

    def __post_init__(self):
        super().__init__(self.message)

    @property
    def error(self) -> dict[str, Any] | None:
        """Structured error detail (a DAP ``Message`` object), if any."""
        if isinstance(self.body, dict):
            error = self.body.get("error")
            if isinstance(error, dict):
                return error
        return None

    @classmethod
    def from_response(cls, response: dict[str, Any]) -> "RequestError":
        """Create from a failure response dict."""
        return cls(
            command=response.get("command", ""),
            message=response.get("message") or "Unknown error",
            request_seq=response.get("request_seq"),
            body=response.get("body"),
        )

    def __str__(self) -> str:
        return f"'{self.command}' failed: {self.message}"


class RequestTimeoutError(DAPError):
    """No response arrived within the caller-supplied timeout."""

    def __init__(self, command: str, timeout: float):
        self.command = command
        self.timeout = timeout
        super().__init__(f"Request '{command}' timed out after {timeout}s")


class NotConnectedError(DAPError):
    """A message was sent while no transport is connected."""

    def __init__(self, message: str = "not connected"):
        super().__init__(message)


class AlreadyConnectedError(DAPError):
    """connect() was called on a client that is already connected."""

    def __init__(self, message: str = "already connected"):
        super().__init__(message)


class ConnectionClosedError(DAPError):
    """The connection was torn down before a response arrived."""

    def __init__(self, message: str = "connection closed"):
        super().__init__(message)


class ProtocolError(DAPError):
    """
    Fault in the inbound byte stream.

    Never raised into application code; reported through logging and the
    client's diagnostic hooks.
    """

    def __init__(self, message: str, data: bytes | None = None):
        super().__init__(message)
        self.data = data


class FramingError(ProtocolError):
    """Malformed header block or truncated stream."""


class MessageDecodeError(ProtocolError):
    """A framed message body is not a valid JSON object."""
