"""Tests for DebugClient dispatch, correlation and lifecycle."""

import asyncio
import logging

import pytest
import pytest_asyncio

from dapclient.config import ClientConfig
from dapclient.protocol.client import DebugClient
from dapclient.protocol.errors import (
    AlreadyConnectedError,
    ConnectionClosedError,
    FramingError,
    MessageDecodeError,
    NotConnectedError,
    RequestError,
    RequestTimeoutError,
)
from dapclient.protocol.framing import encode_message
from dapclient.protocol.state import ConnectionState
from dapclient.transport.base import TransportError


def response_to(request: dict, seq: int = 100, **fields) -> dict:
    message = {
        "seq": seq,
        "type": "response",
        "request_seq": request["seq"],
        "command": request["command"],
        "success": True,
    }
    message.update(fields)
    return message


@pytest_asyncio.fixture
async def client(transport):
    client = DebugClient(transport)
    await client.connect()
    yield client
    await client.disconnect()


class TestCorrelation:
    """Tests for matching responses to requests."""

    @pytest.mark.asyncio
    async def test_success_response_resolves_with_body(self, client, transport):
        task = asyncio.create_task(client.send_request("foo", {"a": 1}))
        (request,) = await transport.wait_for_sent(1)

        assert request == {"seq": 1, "type": "request", "command": "foo", "arguments": {"a": 1}}
        assert client.pending_count == 1

        client.feed_data(encode_message(response_to(request, body={"x": 1})))
        assert await task == {"x": 1}
        assert client.pending_count == 0

    @pytest.mark.asyncio
    async def test_failure_response_raises_request_error(self, client, transport):
        task = asyncio.create_task(client.send_request("foo"))
        (request,) = await transport.wait_for_sent(1)

        detail = {"id": 2001, "format": "bad things"}
        client.feed_data(
            encode_message(response_to(request, success=False, message="bad", body={"error": detail}))
        )

        with pytest.raises(RequestError, match="bad") as exc_info:
            await task
        assert exc_info.value.message == "bad"
        assert exc_info.value.command == "foo"
        assert exc_info.value.request_seq == request["seq"]
        assert exc_info.value.error == detail

    @pytest.mark.asyncio
    async def test_response_through_transport(self, client, transport):
        task = asyncio.create_task(client.send_request("threads"))
        (request,) = await transport.wait_for_sent(1)
        transport.inject_message(response_to(request, body={"threads": []}))
        assert await asyncio.wait_for(task, 1.0) == {"threads": []}

    @pytest.mark.asyncio
    async def test_duplicate_response_ignored(self, client, transport, caplog):
        task = asyncio.create_task(client.send_request("foo"))
        (request,) = await transport.wait_for_sent(1)

        client.feed_data(encode_message(response_to(request, body={"x": 1})))
        client.feed_data(encode_message(response_to(request, seq=101, body={"x": 2})))

        assert await task == {"x": 1}
        assert "not matching any request" in caplog.text

    @pytest.mark.asyncio
    async def test_unmatched_response_is_not_fatal(self, client, transport, caplog):
        client.feed_data(
            encode_message({"seq": 5, "type": "response", "request_seq": 99, "success": True, "command": "x"})
        )
        assert client.is_connected
        assert "request_seq not matching any request 99" in caplog.text

    @pytest.mark.asyncio
    async def test_out_of_order_responses(self, client, transport):
        first = asyncio.create_task(client.send_request("stackTrace", {"threadId": 1}))
        second = asyncio.create_task(client.send_request("threads"))
        req1, req2 = await transport.wait_for_sent(2)
        assert req2["seq"] == req1["seq"] + 1

        client.feed_data(
            encode_message(response_to(req2, seq=10, body={"threads": [{"id": 1}]}))
            + encode_message(response_to(req1, seq=11, body={"stackFrames": []}))
        )

        assert await first == {"stackFrames": []}
        assert await second == {"threads": [{"id": 1}]}

    @pytest.mark.asyncio
    async def test_timeout_removes_pending_entry(self, client, transport, caplog):
        with pytest.raises(RequestTimeoutError, match="threads"):
            await client.send_request("threads", timeout=0.01)
        assert client.pending_count == 0

        (request,) = transport.sent_messages()
        client.feed_data(encode_message(response_to(request)))
        assert "not matching any request" in caplog.text

    @pytest.mark.asyncio
    async def test_default_timeout_from_config(self, transport):
        client = DebugClient(transport, ClientConfig(default_timeout=0.01))
        await client.connect()
        with pytest.raises(RequestTimeoutError):
            await client.send_request("threads")
        await client.disconnect()

    @pytest.mark.asyncio
    async def test_cancelled_caller_removes_pending_entry(self, client, transport):
        task = asyncio.create_task(client.send_request("pause", {"threadId": 1}))
        await transport.wait_for_sent(1)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert client.pending_count == 0


class TestNotConnected:
    """Tests for sends without a connection."""

    @pytest.mark.asyncio
    async def test_send_request_fails_fast(self, transport):
        client = DebugClient(transport)
        with pytest.raises(NotConnectedError):
            await client.send_request("threads")
        assert client.pending_count == 0
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_send_response_fails_fast(self, transport):
        client = DebugClient(transport)
        request = {"seq": 1, "type": "request", "command": "runInTerminal"}
        with pytest.raises(NotConnectedError):
            await client.send_response(request, {})
        with pytest.raises(NotConnectedError):
            await client.send_error_response(request, "nope")

    @pytest.mark.asyncio
    async def test_send_after_disconnect_fails(self, client):
        await client.disconnect()
        with pytest.raises(NotConnectedError):
            await client.send_request("threads")


class TestEvents:
    """Tests for event dispatch."""

    @pytest.mark.asyncio
    async def test_event_delivered_to_subscribers(self, client, stopped_event):
        always, once = [], []
        client.on_event("stopped", always.append)
        client.on_event("stopped", once.append, once=True)

        client.feed_data(encode_message(stopped_event))
        client.feed_data(encode_message(stopped_event))

        assert always == [stopped_event["body"], stopped_event["body"]]
        assert once == [stopped_event["body"]]

    @pytest.mark.asyncio
    async def test_events_in_stream_order(self, client, transport, settle):
        outputs = []
        client.on_event("output", lambda body: outputs.append(body["output"]))

        data = b"".join(
            encode_message({"seq": i, "type": "event", "event": "output", "body": {"output": str(i)}})
            for i in range(1, 6)
        )
        transport.inject(data[:17])
        transport.inject(data[17:])
        await settle()

        assert outputs == ["1", "2", "3", "4", "5"]

    @pytest.mark.asyncio
    async def test_event_without_body(self, client):
        bodies = []
        client.on_event("initialized", bodies.append)
        client.feed_data(encode_message({"seq": 1, "type": "event", "event": "initialized"}))
        assert bodies == [None]

    @pytest.mark.asyncio
    async def test_listener_error_does_not_stop_dispatch(self, client, stopped_event):
        def boom(body):
            raise RuntimeError("listener")

        later = []
        client.on_event("stopped", boom)
        client.on_event("exited", later.append)
        client.feed_data(
            encode_message(stopped_event)
            + encode_message({"seq": 8, "type": "event", "event": "exited", "body": {"exitCode": 0}})
        )
        assert later == [{"exitCode": 0}]

    @pytest.mark.asyncio
    async def test_subscriptions_survive_reconnect(self, client, stopped_event):
        bodies = []
        client.on_event("stopped", bodies.append)
        await client.disconnect()
        await client.connect()
        client.feed_data(encode_message(stopped_event))
        assert bodies == [stopped_event["body"]]


class TestReverseRequests:
    """Tests for requests sent by the adapter."""

    RUN_IN_TERMINAL = {
        "seq": 10,
        "type": "request",
        "command": "runInTerminal",
        "arguments": {"kind": "integrated", "cwd": "/tmp", "args": ["python", "app.py"]},
    }

    @pytest.mark.asyncio
    async def test_handler_result_sent_as_success_response(self, client, transport):
        received = []

        async def handler(arguments):
            received.append(arguments)
            return {"processId": 123}

        client.on_reverse_request("runInTerminal", handler)
        client.feed_data(encode_message(self.RUN_IN_TERMINAL))

        (response,) = await transport.wait_for_sent(1)
        assert received == [self.RUN_IN_TERMINAL["arguments"]]
        assert response == {
            "seq": 1,
            "type": "response",
            "request_seq": 10,
            "command": "runInTerminal",
            "success": True,
            "body": {"processId": 123},
        }

    @pytest.mark.asyncio
    async def test_handler_exception_sent_as_error_response(self, client, transport):
        async def handler(arguments):
            raise ValueError("no terminal available")

        client.on_reverse_request("runInTerminal", handler)
        client.feed_data(encode_message(self.RUN_IN_TERMINAL))

        (response,) = await transport.wait_for_sent(1)
        assert response["success"] is False
        assert response["request_seq"] == 10
        assert response["message"] == "no terminal available"

    @pytest.mark.asyncio
    async def test_handler_request_error_carries_detail(self, client, transport):
        detail = {"id": 42, "format": "denied by user", "showUser": True}

        async def handler(arguments):
            raise RequestError(command="runInTerminal", message="denied", body={"error": detail})

        client.on_reverse_request("runInTerminal", handler)
        client.feed_data(encode_message(self.RUN_IN_TERMINAL))

        (response,) = await transport.wait_for_sent(1)
        assert response["message"] == "denied"
        assert response["body"] == {"error": detail}

    @pytest.mark.asyncio
    async def test_unregistered_command_gets_no_response(self, client, transport, settle, caplog):
        client.feed_data(
            encode_message({"seq": 3, "type": "request", "command": "startDebugging", "arguments": {}})
        )
        await settle()
        assert transport.sent == []
        assert client.is_connected
        assert "no handler is registered" in caplog.text

    @pytest.mark.asyncio
    async def test_unregistered_command_rejected_when_configured(self, transport):
        client = DebugClient(transport, ClientConfig(reject_unhandled_requests=True))
        await client.connect()
        client.feed_data(encode_message({"seq": 3, "type": "request", "command": "startDebugging"}))

        (response,) = await transport.wait_for_sent(1)
        assert response["success"] is False
        assert response["request_seq"] == 3
        assert response["message"] == "Unsupported request: startDebugging"
        await client.disconnect()

    @pytest.mark.asyncio
    async def test_replaced_handler_is_used(self, client, transport):
        async def first(arguments):
            return {"processId": 1}

        async def second(arguments):
            return {"processId": 2}

        stale = client.on_reverse_request("runInTerminal", first)
        client.on_reverse_request("runInTerminal", second)
        stale.unsubscribe()

        client.feed_data(encode_message(self.RUN_IN_TERMINAL))
        (response,) = await transport.wait_for_sent(1)
        assert response["body"] == {"processId": 2}

    @pytest.mark.asyncio
    async def test_response_sequence_shared_with_requests(self, client, transport):
        async def handler(arguments):
            return {}

        client.on_reverse_request("runInTerminal", handler)
        task = asyncio.create_task(client.send_request("threads"))
        await transport.wait_for_sent(1)
        client.feed_data(encode_message(self.RUN_IN_TERMINAL))
        request, response = await transport.wait_for_sent(2)

        assert request["seq"] == 1
        assert response["seq"] == 2
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_send_response_accepts_request_dict(self, client, transport):
        await client.send_response(self.RUN_IN_TERMINAL, {"shellProcessId": 9})
        await client.send_error_response(self.RUN_IN_TERMINAL, "failed", {"id": 1, "format": "failed"})

        ok, failed = transport.sent_messages()
        assert ok["success"] is True
        assert ok["body"] == {"shellProcessId": 9}
        assert failed["success"] is False
        assert failed["body"] == {"error": {"id": 1, "format": "failed"}}


class TestInboundFaults:
    """Tests for malformed inbound data."""

    @pytest.mark.asyncio
    async def test_invalid_json_reported_and_skipped(self, client, stopped_event):
        errors, bodies = [], []
        client.on_error(errors.append)
        client.on_event("stopped", bodies.append)

        client.feed_data(b"Content-Length: 5\r\n\r\nnope!" + encode_message(stopped_event))

        assert len(errors) == 1
        assert isinstance(errors[0], MessageDecodeError)
        assert errors[0].data == b"nope!"
        assert bodies == [stopped_event["body"]]

    @pytest.mark.asyncio
    async def test_non_numeric_content_length(self, client):
        errors = []
        client.on_error(errors.append)
        client.feed_data(b"Content-Length: notanumber\r\n\r\n{}")
        assert [type(e) for e in errors] == [FramingError]
        assert client.is_connected

    @pytest.mark.asyncio
    async def test_unknown_message_dropped(self, client, caplog):
        client.feed_data(encode_message({"seq": 1, "type": "weird"}))
        assert "unknown type 'weird'" in caplog.text
        assert client.is_connected

    @pytest.mark.asyncio
    async def test_non_object_body_reported(self, client, stopped_event):
        errors, bodies = [], []
        client.on_error(errors.append)
        client.on_event("stopped", bodies.append)

        client.feed_data(encode_message([1, 2, 3]) + encode_message("stopped") + encode_message(stopped_event))

        assert [type(e) for e in errors] == [MessageDecodeError, MessageDecodeError]
        assert "not a JSON object: list" in str(errors[0])
        assert "not a JSON object: str" in str(errors[1])
        assert bodies == [stopped_event["body"]]

    @pytest.mark.asyncio
    async def test_error_hook_failure_is_contained(self, client, stopped_event):
        def bad_hook(error):
            raise RuntimeError("hook")

        bodies = []
        client.on_error(bad_hook)
        client.on_event("stopped", bodies.append)
        client.feed_data(b"Content-Length: x\r\n\r\n" + encode_message(stopped_event))
        assert bodies == [stopped_event["body"]]


class TestLifecycle:
    """Tests for connect/disconnect."""

    @pytest.mark.asyncio
    async def test_connect_twice_rejected(self, client):
        with pytest.raises(AlreadyConnectedError):
            await client.connect()

    @pytest.mark.asyncio
    async def test_connect_without_transport(self):
        with pytest.raises(ValueError, match="No transport"):
            await DebugClient().connect()

    @pytest.mark.asyncio
    async def test_connect_accepts_transport_argument(self, transport):
        client = DebugClient()
        await client.connect(transport)
        assert client.transport is transport
        assert client.state is ConnectionState.CONNECTED
        await client.disconnect()

    @pytest.mark.asyncio
    async def test_connect_failure_leaves_client_disconnected(self, transport):
        async def fail():
            raise TransportError("refused")

        transport.connect = fail
        client = DebugClient(transport)
        with pytest.raises(TransportError, match="refused"):
            await client.connect()
        assert client.state is ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [TransportError("pipe closed"), ValueError("stream limit")])
    async def test_transport_disconnect_failure_still_disconnects(self, client, transport, error, caplog):
        async def fail():
            raise error

        transport.disconnect = fail
        task = asyncio.create_task(client.send_request("threads"))
        await transport.wait_for_sent(1)

        await client.disconnect()

        assert client.state is ConnectionState.DISCONNECTED
        with pytest.raises(ConnectionClosedError):
            await task
        assert "disconnecting transport" in caplog.text

        await client.connect()
        assert client.is_connected

    @pytest.mark.asyncio
    async def test_transport_disconnect_failure_after_end_of_stream(self, client, transport, settle):
        async def fail():
            raise RuntimeError("adapter stuck")

        transport.disconnect = fail
        transport.close_stream()
        await settle()

        assert client.state is ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_disconnect_fails_pending_requests(self, client, transport):
        task = asyncio.create_task(client.send_request("launch", {"program": "app.py"}))
        await transport.wait_for_sent(1)

        await client.disconnect()

        with pytest.raises(ConnectionClosedError):
            await task
        assert client.pending_count == 0
        assert client.state is ConnectionState.DISCONNECTED
        assert transport.disconnect_count == 1

    @pytest.mark.asyncio
    async def test_disconnect_is_idempotent(self, client, transport):
        await client.disconnect()
        await client.disconnect()
        assert transport.disconnect_count == 1

    @pytest.mark.asyncio
    async def test_adapter_closing_stream_tears_down(self, client, transport, settle):
        states = []
        client.on_state_change(lambda old, new: states.append(new))
        task = asyncio.create_task(client.send_request("threads"))
        await transport.wait_for_sent(1)

        transport.close_stream()

        with pytest.raises(ConnectionClosedError, match="adapter closed"):
            await asyncio.wait_for(task, 1.0)
        await settle()
        assert client.state is ConnectionState.DISCONNECTED
        assert states == [ConnectionState.CLOSING, ConnectionState.DISCONNECTED]

    @pytest.mark.asyncio
    async def test_reconnect_restarts_sequence_and_drops_partial_bytes(self, client, transport):
        task = asyncio.create_task(client.send_request("threads"))
        (request,) = await transport.wait_for_sent(1)
        client.feed_data(encode_message(response_to(request)))
        await task

        client.feed_data(b"Content-Length: 50\r\n\r\n{\"seq\":")
        await client.disconnect()
        await client.connect()
        transport.sent.clear()

        bodies = []
        client.on_event("stopped", bodies.append)
        client.feed_data(encode_message({"seq": 1, "type": "event", "event": "stopped", "body": {}}))
        assert bodies == [{}]

        task = asyncio.create_task(client.send_request("threads"))
        (request,) = await transport.wait_for_sent(1)
        assert request["seq"] == 1
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_context_manager(self, transport):
        async with DebugClient(transport) as client:
            assert client.is_connected
        assert client.state is ConnectionState.DISCONNECTED


class TestLogging:
    """Tests for message tracing."""

    @pytest.mark.asyncio
    async def test_trace_messages_logs_payload(self, transport, caplog):
        caplog.set_level(logging.DEBUG, logger="dapclient.protocol.client")
        client = DebugClient(transport, ClientConfig(trace_messages=True))
        await client.connect()
        task = asyncio.create_task(client.send_request("evaluate", {"expression": "1 + 1"}))
        await transport.wait_for_sent(1)

        assert "Sending request 'evaluate' (1)" in caplog.text
        assert '"expression": "1 + 1"' in caplog.text

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        await client.disconnect()

    @pytest.mark.asyncio
    async def test_summary_only_by_default(self, transport, caplog):
        caplog.set_level(logging.DEBUG, logger="dapclient.protocol.client")
        client = DebugClient(transport)
        await client.connect()
        await client.send_response({"seq": 4, "type": "request", "command": "runInTerminal"}, {"secret": 1})

        assert "Sending response 'runInTerminal' (1)" in caplog.text
        assert "secret" not in caplog.text
        await client.disconnect()

    @pytest.mark.asyncio
    async def test_custom_logger_name(self, transport, caplog):
        caplog.set_level(logging.DEBUG, logger="my.debugger")
        client = DebugClient(transport, ClientConfig(logger_name="my.debugger"))
        await client.connect()
        await client.disconnect()
        assert any(record.name == "my.debugger" for record in caplog.records)
