"""Transport layer types and configuration."""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class TransportEventType(Enum):
    """Types of transport events for observability."""

    CONNECTING = auto()
    CONNECTED = auto()
    DISCONNECTING = auto()
    DISCONNECTED = auto()
    DATA_SENT = auto()
    DATA_RECEIVED = auto()
    END_OF_STREAM = auto()
    ERROR = auto()


@dataclass
class TransportEvent:
    """Event emitted by transport for observability."""

    type: TransportEventType
    timestamp: float
    data: dict[str, Any] | None = None
    error: Exception | None = None

    def __str__(self) -> str:
        base = f"[{self.type.name}]"
        if self.data:
            base += f" {self.data}"
        if self.error:
            base += f" error={self.error}"
        return base


@dataclass
class TransportConfig:
    """Configuration for the byte-stream transport to a debug adapter."""

    host: str = "127.0.0.1"
    """Adapter host for socket connections."""

    port: int | None = None
    """Adapter port for socket connections."""

    command: str | None = None
    """Adapter executable to launch for stdio connections."""

    args: list[str] = field(default_factory=list)
    """Arguments passed to the adapter executable."""

    env: dict[str, str] = field(default_factory=dict)
    """Extra environment variables for the adapter process."""

    cwd: str | None = None
    """Working directory for the adapter process."""

    connect_timeout: float = 10.0
    """Connection establishment timeout in seconds."""

    terminate_timeout: float = 5.0
    """Seconds to wait for the adapter process to exit before killing it."""

    read_chunk_size: int = 65536
    """Maximum number of bytes requested per read."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.command is not None and self.port is not None:
            raise ValueError("command and port are mutually exclusive")
        if self.command is not None and not self.command:
            raise ValueError("command must not be empty")
        if self.port is not None and not 0 < self.port < 65536:
            raise ValueError("port must be between 1 and 65535")
        if self.connect_timeout <= 0:
            raise ValueError("connect_timeout must be positive")
        if self.terminate_timeout <= 0:
            raise ValueError("terminate_timeout must be positive")
        if self.read_chunk_size < 1:
            raise ValueError("read_chunk_size must be at least 1")

    @property
    def endpoint(self) -> str:
        """Human-readable description of where the adapter lives."""
        if self.command is not None:
            return " ".join([self.command, *self.args])
        if self.port is not None:
            return f"{self.host}:{self.port}"
        return "<streams>"
