"""Debug Adapter Protocol client core."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Callable

from dapclient.config import ClientConfig
from dapclient.lib import oj
from dapclient.transport.base import Transport, TransportError
from dapclient.protocol.correlation import PendingRequests
from dapclient.protocol.errors import (
    AlreadyConnectedError,
    DAPError,
    MessageDecodeError,
    NotConnectedError,
    ProtocolError,
    RequestError,
    RequestTimeoutError,
)
from dapclient.protocol.events import EventCallback, EventHub, Subscription
from dapclient.protocol.framing import StreamDecoder, encode_message
from dapclient.protocol.messages import (
    Event,
    MessageKind,
    Request,
    Response,
    classify,
)
from dapclient.protocol.reverse import ReverseRequestHandler, ReverseRequestRegistry
from dapclient.protocol.sequence import SequenceAllocator
from dapclient.protocol.state import (
    ConnectionState,
    ConnectionStateMachine,
)

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[ProtocolError], None]


class DebugClient:
    """
    Core debug adapter client.

    Frames and unframes messages, correlates responses with requests,
    fans events out to subscribers and answers reverse requests from the
    adapter. All state belongs to one connection and is reset on
    disconnect, except event subscriptions and reverse-request handlers,
    which carry over to the next connect().
    """

    def __init__(
        self,
        transport: Transport | None = None,
        config: ClientConfig | None = None,
    ):
        """
        Initialize the client.

        Args:
            transport: Transport used by connect() when none is passed there.
            config: Client behaviour options.
        """
        self.transport = transport
        self.config = config or ClientConfig()
        self._log = logging.getLogger(self.config.logger_name) if self.config.logger_name else logger

        self._state = ConnectionStateMachine()
        self._sequence = SequenceAllocator()
        self._pending = PendingRequests()
        self._events = EventHub()
        self._reverse_handlers = ReverseRequestRegistry()
        self._decoder = StreamDecoder(on_error=self._report_error)
        self._error_handlers: list[ErrorHandler] = []
        self._receive_task: asyncio.Task | None = None
        self._handler_tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> ConnectionState:
        """Current connection state."""
        return self._state.state

    @property
    def is_connected(self) -> bool:
        return self._state.is_connected

    @property
    def pending_count(self) -> int:
        """Number of requests still waiting for a response."""
        return len(self._pending)

    def on_state_change(
        self,
        callback: Callable[[ConnectionState, ConnectionState], None],
    ) -> None:
        """Register callback for state changes."""
        self._state.on_transition(callback)

    def on_error(self, handler: ErrorHandler) -> None:
        """
        Register a diagnostic hook for inbound stream faults.

        The handler receives FramingError and MessageDecodeError instances;
        they are reported, never raised.
        """
        self._error_handlers.append(handler)

    # === Connection ===

    async def connect(self, transport: Transport | None = None) -> None:
        """
        Connect the transport and start processing inbound bytes.

        Args:
            transport: Transport to use; defaults to the one given to __init__.

        Raises:
            AlreadyConnectedError: If the client is not disconnected.
            TransportError: If the transport fails to connect.
        """
        if not self._state.is_disconnected:
            raise AlreadyConnectedError(f"already {self._state.state.name.lower()}")

        transport = transport or self.transport
        if transport is None:
            raise ValueError("No transport to connect")

        self._state.transition(ConnectionState.CONNECTING)
        self._log.debug("Connecting...")
        try:
            await transport.connect()
        except BaseException:
            self._state.transition(ConnectionState.DISCONNECTED)
            raise

        self.transport = transport
        self._sequence.reset()
        self._state.transition(ConnectionState.CONNECTED)
        self._receive_task = asyncio.create_task(
            self._receive_loop(transport),
            name="dapclient-receive-loop",
        )
        self._log.debug("Connected")

    async def disconnect(self) -> None:
        """
        Tear the connection down.

        Stops reading, cancels running reverse-request handlers, fails all
        pending requests with ConnectionClosedError, drops any partially
        received message and disconnects the transport. Safe to call when
        not connected.
        """
        if not self._state.is_connected:
            return

        self._log.debug("Disconnecting")
        self._state.transition(ConnectionState.CLOSING)

        task, self._receive_task = self._receive_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        await self._shutdown("disconnected")

    async def _shutdown(self, reason: str) -> None:
        current = asyncio.current_task()
        for task in list(self._handler_tasks):
            # a handler may be the one disconnecting
            if task is not current:
                task.cancel()
        self._handler_tasks.clear()

        failed = self._pending.fail_all(reason)
        if failed:
            self._log.debug(f"Failed {failed} pending request(s): {reason}")

        self._decoder.reset()
        self._sequence.reset()

        try:
            if self.transport is not None:
                await self.transport.disconnect()
        except TransportError as e:
            self._log.warning(f"Error while disconnecting transport: {e}")
        except Exception:
            self._log.exception("Unexpected error while disconnecting transport")
        finally:
            self._state.transition(ConnectionState.DISCONNECTED)

    async def _receive_loop(self, transport: Transport) -> None:
        """Background task feeding inbound chunks to the dispatcher."""
        try:
            async for chunk in transport.receive():
                self.feed_data(chunk)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._log.error(f"Receive loop error: {e}")
            reason = f"receive failed: {e}"
        else:
            self._log.debug("Adapter closed the stream")
            reason = "adapter closed the connection"

        if self._state.is_connected:
            self._state.transition(ConnectionState.CLOSING)
            self._receive_task = None
            await self._shutdown(reason)

    # === Inbound ===

    def feed_data(self, data: bytes) -> None:
        """
        Process a chunk of inbound bytes.

        Every complete message in the chunk is dispatched, in stream order,
        before this returns. Bytes of an incomplete message are kept until
        the next call.
        """
        for body in self._decoder.feed(data):
            try:
                message = oj.loads(body)
            except oj.JSONDecodeError as e:
                self._report_error(MessageDecodeError(f"Invalid JSON message: {e}", data=body))
                continue
            if not isinstance(message, dict):
                self._report_error(
                    MessageDecodeError(
                        f"Message is not a JSON object: {type(message).__name__}",
                        data=body,
                    )
                )
                continue
            self.handle_message(message)

    def handle_message(self, message: Any) -> None:
        """Classify one decoded message and route it."""
        kind = classify(message)
        try:
            if kind is MessageKind.RESPONSE:
                self._handle_response(message)
            elif kind is MessageKind.EVENT:
                self._handle_event(message)
            elif kind is MessageKind.REQUEST:
                self._handle_reverse_request(message)
            else:
                kind_name = message.get("type") if isinstance(message, dict) else type(message).__name__
                self._log.warning(f"Received message of unknown type '{kind_name}'")
                self._trace("Unknown message", message)
        except Exception:
            self._log.exception(f"Error handling {kind} message")

    def _handle_response(self, message: dict[str, Any]) -> None:
        if message["success"]:
            self._trace(
                f"Received response for '{message.get('command')}' ({message['request_seq']})",
                message,
            )
        else:
            self._trace(
                f"Received error response for '{message.get('command')}' "
                f"({message['request_seq']}): {message.get('message')}",
                message,
            )

        if not self._pending.resolve(message):
            self._log.warning(
                f"Received response '{message.get('command')}' with request_seq "
                f"not matching any request {message['request_seq']}"
            )

    def _handle_event(self, message: dict[str, Any]) -> None:
        event = Event.from_dict(message)
        self._trace(f"Received event '{event.event}' ({event.seq})", message)
        self._events.publish(event.event, event.body)

    def _handle_reverse_request(self, message: dict[str, Any]) -> None:
        request = Request.from_dict(message)
        handler = self._reverse_handlers.get(request.command)

        if handler is None:
            self._log.warning(
                f"Received request '{request.command}' ({request.seq}) but no handler is registered"
            )
            if self.config.reject_unhandled_requests:
                self._spawn(
                    self._send_unhandled_error(request),
                    name=f"dapclient-reject-{request.command}",
                )
            return

        self._trace(f"Received request '{request.command}' ({request.seq})", message)
        self._spawn(
            self._run_reverse_request(request, handler),
            name=f"dapclient-reverse-{request.command}",
        )

    def _spawn(self, coro, name: str) -> None:
        task = asyncio.create_task(coro, name=name)
        self._handler_tasks.add(task)
        task.add_done_callback(self._handler_tasks.discard)

    async def _run_reverse_request(
        self,
        request: Request,
        handler: ReverseRequestHandler,
    ) -> None:
        try:
            try:
                body = await handler(request.arguments)
            except RequestError as e:
                await self.send_error_response(request, e.message, e.error)
            except Exception as e:
                self._log.exception(f"Reverse request handler error for '{request.command}'")
                await self.send_error_response(request, str(e) or type(e).__name__)
            else:
                await self.send_response(request, body)
        except (DAPError, TransportError) as e:
            self._log.warning(f"Could not answer request '{request.command}' ({request.seq}): {e}")

    async def _send_unhandled_error(self, request: Request) -> None:
        try:
            await self.send_error_response(request, f"Unsupported request: {request.command}")
        except (DAPError, TransportError) as e:
            self._log.warning(f"Could not reject request '{request.command}' ({request.seq}): {e}")

    def _report_error(self, error: ProtocolError) -> None:
        self._log.warning(f"Protocol error: {error}")
        for handler in self._error_handlers:
            try:
                handler(error)
            except Exception:
                self._log.exception("Error handler failed")

    def _trace(self, summary: str, detail: Any = None) -> None:
        if not self._log.isEnabledFor(logging.DEBUG):
            return
        if self.config.trace_messages and detail is not None:
            self._log.debug(f"{summary} {oj.pretty(detail)}")
        else:
            self._log.debug(summary)

    # === Outbound ===

    async def send_request(
        self,
        command: str,
        arguments: Any = None,
        timeout: float | None = None,
    ) -> Any:
        """
        Send a request and wait for the response.

        Args:
            command: The DAP command name.
            arguments: Optional command arguments.
            timeout: Seconds to wait (defaults to config.default_timeout;
                None waits until the response or disconnect).

        Returns:
            The body of the success response.

        Raises:
            NotConnectedError: If the client is not connected.
            RequestError: If the adapter answers with success=false.
            RequestTimeoutError: If no response arrives in time.
            ConnectionClosedError: If the connection goes away first.
        """
        if not self._state.is_connected:
            raise NotConnectedError()

        seq = self._sequence.next()
        request = Request(seq=seq, command=command, arguments=arguments)
        future = self._pending.register(seq, command)

        try:
            await self._send_message(
                request.to_dict(),
                f"Sending request '{command}' ({seq})",
            )
        except BaseException:
            self._pending.discard(seq, future)
            raise

        effective_timeout = timeout if timeout is not None else self.config.default_timeout
        try:
            if effective_timeout is None:
                return await future
            return await asyncio.wait_for(future, timeout=effective_timeout)
        except asyncio.TimeoutError:
            raise RequestTimeoutError(command, effective_timeout) from None
        finally:
            self._pending.discard(seq, future)

    async def send_response(self, request: Request | dict[str, Any], body: Any = None) -> None:
        """
        Answer a reverse request with a success response.

        Raises:
            NotConnectedError: If the client is not connected.
        """
        if not self._state.is_connected:
            raise NotConnectedError()
        request = _as_request(request)
        response = Response.success_for(self._sequence.next(), request, body)
        await self._send_message(
            response.to_dict(),
            f"Sending response '{response.command}' ({response.seq})",
        )

    async def send_error_response(
        self,
        request: Request | dict[str, Any],
        message: str,
        error: dict[str, Any] | None = None,
    ) -> None:
        """
        Answer a reverse request with a failure response.

        Args:
            request: The request being answered.
            message: Short error description.
            error: Optional structured error detail (a DAP ``Message``).

        Raises:
            NotConnectedError: If the client is not connected.
        """
        if not self._state.is_connected:
            raise NotConnectedError()
        request = _as_request(request)
        response = Response.error_for(self._sequence.next(), request, message, error)
        await self._send_message(
            response.to_dict(),
            f"Sending error response '{response.command}' ({response.seq}) {message}",
        )

    async def _send_message(self, message: dict[str, Any], summary: str) -> None:
        data = encode_message(message)
        self._trace(summary, message)
        if self.transport is None:
            raise NotConnectedError()
        await self.transport.send(data)

    # === Registration ===

    def on_event(self, event: str, callback: EventCallback, once: bool = False) -> Subscription:
        """
        Subscribe to an adapter event.

        Args:
            event: Event name, e.g. ``"stopped"``.
            callback: Called synchronously with the event body.
            once: Unsubscribe automatically after the first delivery.
        """
        return self._events.subscribe(event, callback, once)

    def on_reverse_request(self, command: str, handler: ReverseRequestHandler) -> Subscription:
        """
        Handle requests the adapter sends to the client.

        ``handler`` is awaited with the request arguments. Its return value
        becomes the success response body; an exception becomes a failure
        response. A later registration for the same command replaces this
        one.
        """
        return self._reverse_handlers.register(command, handler)

    async def __aenter__(self) -> "DebugClient":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.disconnect()


def _as_request(request: Request | dict[str, Any]) -> Request:
    if isinstance(request, Request):
        return request
    return Request.from_dict(request)
