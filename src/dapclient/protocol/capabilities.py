"""The DAP "initialize" exchange and adapter capabilities."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from dapclient.protocol.client import DebugClient

logger = logging.getLogger(__name__)


@dataclass
class InitializeArguments:
    """Arguments of the ``initialize`` request, sent once per session."""

    adapter_id: str
    """Identifier of the debug adapter, e.g. ``"python"``."""

    client_id: str = "dapclient"
    client_name: str = "dapclient"
    locale: str | None = None
    lines_start_at1: bool = True
    columns_start_at1: bool = True
    path_format: str = "path"
    supports_variable_type: bool = False
    supports_variable_paging: bool = False
    supports_run_in_terminal_request: bool = False
    supports_memory_references: bool = False
    supports_progress_reporting: bool = False
    supports_invalidated_event: bool = False
    extra: dict[str, Any] = field(default_factory=dict)
    """Additional or adapter-specific fields, sent verbatim."""

    def __post_init__(self) -> None:
        if not self.adapter_id:
            raise ValueError("adapter_id is required")
        if self.path_format not in ("path", "uri"):
            raise ValueError("path_format must be 'path' or 'uri'")

    def to_dict(self) -> dict[str, Any]:
        """Convert to wire format."""
        args: dict[str, Any] = {
            "clientID": self.client_id,
            "clientName": self.client_name,
            "adapterID": self.adapter_id,
            "linesStartAt1": self.lines_start_at1,
            "columnsStartAt1": self.columns_start_at1,
            "pathFormat": self.path_format,
            "supportsVariableType": self.supports_variable_type,
            "supportsVariablePaging": self.supports_variable_paging,
            "supportsRunInTerminalRequest": self.supports_run_in_terminal_request,
            "supportsMemoryReferences": self.supports_memory_references,
            "supportsProgressReporting": self.supports_progress_reporting,
            "supportsInvalidatedEvent": self.supports_invalidated_event,
        }
        if self.locale is not None:
            args["locale"] = self.locale
        args.update(self.extra)
        return args


@dataclass
class Capabilities:
    """
    Capabilities declared by the adapter in its ``initialize`` response.

    The raw body is kept so that capabilities this class does not know
    about remain reachable.
    """

    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Capabilities":
        """Create from response body (None means no capabilities)."""
        return cls(raw=dict(data) if isinstance(data, dict) else {})

    def supports(self, name: str) -> bool:
        """
        Check a boolean capability.

        Accepts the full key (``"supportsConfigurationDoneRequest"``) or
        the part after ``supports`` (``"ConfigurationDoneRequest"``).
        """
        if not name.startswith("supports"):
            name = "supports" + name[:1].upper() + name[1:]
        return self.raw.get(name) is True

    @property
    def exception_breakpoint_filters(self) -> list[dict[str, Any]]:
        return list(self.raw.get("exceptionBreakpointFilters") or [])

    def update(self, changed: dict[str, Any] | None) -> None:
        """Merge capabilities announced later through a ``capabilities`` event."""
        if isinstance(changed, dict):
            self.raw.update(changed)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.raw)


async def initialize_adapter(
    client: "DebugClient",
    arguments: InitializeArguments,
    timeout: float | None = None,
) -> Capabilities:
    """
    Perform the ``initialize`` request.

    Args:
        client: A connected client.
        arguments: Client description sent to the adapter.
        timeout: Optional request timeout in seconds.

    Returns:
        The adapter's capabilities.

    Raises:
        RequestError: If the adapter rejects the request.
    """
    logger.debug(f"Initializing adapter '{arguments.adapter_id}'")
    body = await client.send_request("initialize", arguments.to_dict(), timeout=timeout)
    capabilities = Capabilities.from_dict(body)
    logger.info(
        f"Adapter '{arguments.adapter_id}' initialized with "
        f"{sum(1 for v in capabilities.raw.values() if v is True)} capabilities"
    )
    return capabilities
