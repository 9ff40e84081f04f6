"""Client options and debug adapter configuration loading."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from dapclient.lib import oj
from dapclient.transport.types import TransportConfig

logger = logging.getLogger(__name__)

# Config file locations
ADAPTER_CONFIG_FILENAME = "adapters.json"
GLOBAL_ADAPTER_CONFIG = Path.home() / ".dapclient" / ADAPTER_CONFIG_FILENAME
LOCAL_ADAPTER_CONFIG_DIR = ".dapclient"


@dataclass
class ClientConfig:
    """Behaviour options for a DebugClient."""

    logger_name: str | None = None
    """Logger used for message tracing; defaults to the client module's logger."""

    trace_messages: bool = False
    """Include full message payloads in DEBUG log lines."""

    reject_unhandled_requests: bool = False
    """Answer reverse requests that have no handler with a failure response
    instead of leaving them unanswered."""

    default_timeout: float | None = None
    """Timeout applied to requests that do not pass one. None waits forever."""

    def __post_init__(self) -> None:
        if self.default_timeout is not None and self.default_timeout <= 0:
            raise ValueError("default_timeout must be positive")


@dataclass
class AdapterConfig:
    """
    Configuration for a single debug adapter.

    An adapter is either launched (``command``) or reached over TCP
    (``port``, optionally ``host``).
    """

    name: str
    command: str | None = None
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    cwd: str | None = None
    host: str = "127.0.0.1"
    port: int | None = None
    adapter_id: str | None = None

    @classmethod
    def from_dict(cls, name: str, data: dict) -> "AdapterConfig":
        """Create from config dict."""
        return cls(
            name=name,
            command=data.get("command"),
            args=list(data.get("args", [])),
            env=dict(data.get("env", {})),
            cwd=data.get("cwd"),
            host=data.get("host", "127.0.0.1"),
            port=data.get("port"),
            adapter_id=data.get("adapterID"),
        )

    def to_transport_config(self, **overrides) -> TransportConfig:
        """Build the TransportConfig used to reach this adapter."""
        options = {
            "command": self.command,
            "args": list(self.args),
            "env": dict(self.env),
            "cwd": self.cwd,
            "host": self.host,
            "port": self.port,
        }
        options.update(overrides)
        return TransportConfig(**options)


def _load_file(path: Path, configs: dict[str, AdapterConfig]) -> None:
    try:
        data = oj.loads(path.read_bytes())
    except (OSError, oj.JSONDecodeError) as e:
        logger.warning(f"Ignoring adapter config {path}: {e}")
        return

    adapters = data.get("adapters", {}) if isinstance(data, dict) else {}
    if not isinstance(adapters, dict):
        logger.warning(f"Ignoring adapter config {path}: 'adapters' must be an object")
        return

    for name, entry in adapters.items():
        if not isinstance(entry, dict) or not (entry.get("command") or entry.get("port")):
            logger.warning(f"Skipping adapter '{name}' in {path}: needs 'command' or 'port'")
            continue
        configs[name] = AdapterConfig.from_dict(name, entry)


def load_adapter_config(working_dir: Path | None = None) -> dict[str, AdapterConfig]:
    """Load adapter configs from global and local config files.

    Global config (~/.dapclient/adapters.json) is loaded first.
    Local config ({working_dir}/.dapclient/adapters.json) overrides global.

    Returns:
        Dict mapping adapter name to config.
    """
    configs: dict[str, AdapterConfig] = {}

    if GLOBAL_ADAPTER_CONFIG.exists():
        _load_file(GLOBAL_ADAPTER_CONFIG, configs)

    if working_dir:
        local_config = working_dir / LOCAL_ADAPTER_CONFIG_DIR / ADAPTER_CONFIG_FILENAME
        if local_config.exists():
            _load_file(local_config, configs)

    return configs
