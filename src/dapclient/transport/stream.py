"""Transports over asyncio byte streams."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import time
from typing import AsyncIterator

from dapclient.transport.base import (
    Transport,
    TransportError,
    ConnectionError,
    TimeoutError,
)
from dapclient.transport.types import (
    TransportConfig,
    TransportEvent,
    TransportEventType,
)

logger = logging.getLogger(__name__)


class StreamTransport(Transport):
    """
    Transport over an already-open asyncio reader/writer pair.

    Subclasses that own the underlying resource override _open() and
    _close() to create and release the streams.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader | None = None,
        writer: asyncio.StreamWriter | None = None,
        config: TransportConfig | None = None,
        close_on_disconnect: bool = False,
    ):
        super().__init__(config or TransportConfig())
        self._reader = reader
        self._writer = writer
        self._close_on_disconnect = close_on_disconnect
        self._connected = False

    async def connect(self) -> None:
        """Open the streams and mark the transport connected."""
        if self._connected:
            return

        self._emit_event(
            TransportEvent(
                type=TransportEventType.CONNECTING,
                timestamp=time.time(),
                data={"endpoint": self.config.endpoint},
            )
        )

        await self._open()
        if self._reader is None or self._writer is None:
            raise ConnectionError("No streams to connect")
        self._connected = True

        self._emit_event(
            TransportEvent(
                type=TransportEventType.CONNECTED,
                timestamp=time.time(),
            )
        )

    async def disconnect(self) -> None:
        """Stop reading and release the streams."""
        if not self._connected:
            return

        self._connected = False

        self._emit_event(
            TransportEvent(
                type=TransportEventType.DISCONNECTING,
                timestamp=time.time(),
            )
        )

        await self._close()

        self._emit_event(
            TransportEvent(
                type=TransportEventType.DISCONNECTED,
                timestamp=time.time(),
            )
        )

    async def _open(self) -> None:
        pass

    async def _close(self) -> None:
        if self._close_on_disconnect and self._writer is not None:
            await _close_writer(self._writer)

    async def send(self, data: bytes) -> None:
        if not self._connected or self._writer is None:
            raise TransportError("Transport not connected")

        try:
            self._writer.write(data)
            await self._writer.drain()
        except OSError as e:
            self._emit_event(
                TransportEvent(
                    type=TransportEventType.ERROR,
                    timestamp=time.time(),
                    error=e,
                )
            )
            raise TransportError(f"Write failed: {e}", cause=e)

        self._emit_event(
            TransportEvent(
                type=TransportEventType.DATA_SENT,
                timestamp=time.time(),
                data={"bytes": len(data)},
            )
        )

    async def receive(self) -> AsyncIterator[bytes]:
        """Yield chunks until end of stream or disconnect."""
        while self._connected and self._reader is not None:
            try:
                chunk = await self._reader.read(self.config.read_chunk_size)
            except OSError as e:
                self._emit_event(
                    TransportEvent(
                        type=TransportEventType.ERROR,
                        timestamp=time.time(),
                        error=e,
                    )
                )
                raise TransportError(f"Read failed: {e}", cause=e)

            if not chunk:
                self._emit_event(
                    TransportEvent(
                        type=TransportEventType.END_OF_STREAM,
                        timestamp=time.time(),
                    )
                )
                break

            self._emit_event(
                TransportEvent(
                    type=TransportEventType.DATA_RECEIVED,
                    timestamp=time.time(),
                    data={"bytes": len(chunk)},
                )
            )
            yield chunk

    def is_connected(self) -> bool:
        return self._connected


class SocketTransport(StreamTransport):
    """TCP connection to an adapter listening on ``config.host:config.port``."""

    def __init__(self, config: TransportConfig):
        if config.port is None:
            raise ValueError("SocketTransport requires a port")
        super().__init__(config=config, close_on_disconnect=True)

    async def _open(self) -> None:
        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self.config.host, self.config.port),
                timeout=self.config.connect_timeout,
            )
        except asyncio.TimeoutError as e:
            raise TimeoutError(
                f"Connecting to {self.config.endpoint} timed out after "
                f"{self.config.connect_timeout}s",
                cause=e,
            )
        except OSError as e:
            raise ConnectionError(f"Failed to connect to {self.config.endpoint}: {e}", cause=e)

        logger.info(f"Connected to adapter at {self.config.endpoint}")

    async def _close(self) -> None:
        if self._writer is not None:
            await _close_writer(self._writer)
        self._reader = None
        self._writer = None


class ProcessTransport(StreamTransport):
    """
    Launches the adapter executable and talks to it over stdin/stdout.

    The adapter's stderr is drained in the background and logged at
    DEBUG level.
    """

    def __init__(self, config: TransportConfig):
        if config.command is None:
            raise ValueError("ProcessTransport requires a command")
        super().__init__(config=config, close_on_disconnect=True)
        self._process: asyncio.subprocess.Process | None = None
        self._stderr_task: asyncio.Task | None = None

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process else None

    @property
    def returncode(self) -> int | None:
        """Exit status of the adapter process, None while it runs."""
        return self._process.returncode if self._process else None

    async def _open(self) -> None:
        env = None
        if self.config.env:
            env = {**os.environ, **self.config.env}

        try:
            self._process = await asyncio.create_subprocess_exec(
                self.config.command,
                *self.config.args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.config.cwd,
                env=env,
            )
        except OSError as e:
            raise ConnectionError(f"Failed to launch {self.config.endpoint}: {e}", cause=e)

        self._reader = self._process.stdout
        self._writer = self._process.stdin
        self._stderr_task = asyncio.create_task(
            self._read_stderr(),
            name="dapclient-adapter-stderr",
        )

        logger.info(f"Launched adapter: {self.config.endpoint} (pid={self._process.pid})")

    async def _read_stderr(self) -> None:
        if self._process is None or self._process.stderr is None:
            return
        while True:
            try:
                line = await self._process.stderr.readline()
            except ValueError as e:
                # line exceeded the stream limit; readline() already dropped it
                logger.debug(f"adapter stderr: line dropped ({e})")
                continue
            if not line:
                break
            logger.debug(f"adapter stderr: {line.decode('utf-8', errors='replace').rstrip()}")

    async def _close(self) -> None:
        if self._writer is not None:
            await _close_writer(self._writer)

        if self._process is not None:
            if self._process.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    self._process.terminate()
                try:
                    await asyncio.wait_for(
                        self._process.wait(),
                        timeout=self.config.terminate_timeout,
                    )
                except asyncio.TimeoutError:
                    logger.warning(f"Adapter pid={self._process.pid} did not exit, killing it")
                    with contextlib.suppress(ProcessLookupError):
                        self._process.kill()
                    await self._process.wait()
            logger.info(
                f"Adapter exited (pid={self._process.pid}, returncode={self._process.returncode})"
            )

        if self._stderr_task is not None:
            self._stderr_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._stderr_task
            self._stderr_task = None

        self._reader = None
        self._writer = None


def create_transport(config: TransportConfig) -> Transport:
    """Build the transport matching ``config``: a process or a socket."""
    if config.command is not None:
        return ProcessTransport(config)
    if config.port is not None:
        return SocketTransport(config)
    raise ValueError("TransportConfig needs either a command or a port")


async def _close_writer(writer: asyncio.StreamWriter) -> None:
    writer.close()
    # peer may already be gone
    with contextlib.suppress(OSError):
        await writer.wait_closed()
