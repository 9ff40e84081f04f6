"""Correlation of responses with the requests that caused them."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from dapclient.protocol.errors import ConnectionClosedError, RequestError

logger = logging.getLogger(__name__)


class PendingRequests:
    """
    In-flight outbound requests keyed by sequence number.

    Each entry is a future that is fulfilled exactly once: with the
    response body on success, with a RequestError on a failure response,
    or with a ConnectionClosedError when the connection goes away.
    An entry leaves the table the moment its response is matched.
    """

    def __init__(self):
        self._pending: dict[int, asyncio.Future[Any]] = {}
        self._commands: dict[int, str] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, seq: int) -> bool:
        return seq in self._pending

    def register(self, seq: int, command: str) -> asyncio.Future[Any]:
        """
        Create the pending entry for an outbound request.

        Raises:
            ValueError: If ``seq`` is already pending.
        """
        if seq in self._pending:
            raise ValueError(f"Request seq {seq} is already pending")
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[seq] = future
        self._commands[seq] = command
        return future

    def discard(self, seq: int, future: asyncio.Future[Any]) -> None:
        """Remove the entry for ``seq`` if it still belongs to ``future``."""
        if self._pending.get(seq) is future:
            del self._pending[seq]
            self._commands.pop(seq, None)

    def resolve(self, response: dict[str, Any]) -> bool:
        """
        Complete the request matching ``response['request_seq']``.

        Returns:
            False if no request with that sequence number is pending.
        """
        seq = response["request_seq"]
        future = self._pending.pop(seq, None)
        command = self._commands.pop(seq, None)
        if future is None:
            return False

        if future.done():
            # caller stopped waiting (cancelled or timed out)
            logger.debug(f"Dropping response for abandoned request '{command}' ({seq})")
            return True

        if response["success"]:
            future.set_result(response.get("body"))
        else:
            error = RequestError.from_response(response)
            if not error.command and command:
                error.command = command
            future.set_exception(error)
        return True

    def fail_all(self, reason: str = "connection closed") -> int:
        """
        Fail every outstanding request with ConnectionClosedError and empty the table.

        Returns:
            Number of requests failed.
        """
        pending = list(self._pending.values())
        self._pending.clear()
        self._commands.clear()
        failed = 0
        for future in pending:
            if not future.done():
                future.set_exception(ConnectionClosedError(reason))
                failed += 1
        return failed
