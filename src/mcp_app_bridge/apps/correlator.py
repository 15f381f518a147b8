# mcp_app_bridge/apps/correlator.py
"""Request/response correlation for outbound JSON-RPC requests.

Every request gets an id from a strictly increasing counter, a future
the caller awaits, and one cancellable timer.  Whichever arrives first,
the matching response or the timer, removes the entry from the pending
table; the loser finds nothing there and becomes a no-op.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from mcp_app_bridge.apps.errors import RemoteError, RequestTimeoutError
from mcp_app_bridge.apps.models import Envelope
from mcp_app_bridge.config.defaults import DEFAULT_REQUEST_TIMEOUT

logger = logging.getLogger(__name__)

SendFn = Callable[[Envelope], Awaitable[None]]


@dataclass
class PendingRequest:
    """An outstanding request awaiting its response."""

    id: int
    method: str
    future: asyncio.Future[Any]
    timeout: float
    timer: asyncio.TimerHandle | None = None


class RequestCorrelator:
    """Matches inbound responses to the requests that caused them."""

    def __init__(self, send: SendFn, timeout: float = DEFAULT_REQUEST_TIMEOUT) -> None:
        self._send = send
        self.timeout_seconds = timeout
        self._next_id = 1
        self._pending: dict[int, PendingRequest] = {}

    # ------------------------------------------------------------------ #
    #  Public API                                                         #
    # ------------------------------------------------------------------ #

    async def send(
        self, method: str, params: Any = None, timeout: float | None = None
    ) -> Any:
        """Send a request and wait for its result.

        Raises:
            RequestTimeoutError: no response within the timeout.
            RemoteError: the host answered with an ``error`` member.
        """
        request_id = self.issue()
        future = self.register(request_id, method, timeout)
        try:
            logger.debug("-> request %s #%d", method, request_id)
            await self._send(Envelope.make_request(request_id, method, params))
            return await future
        finally:
            # No-op when the response or the timer already settled it
            self._settle(request_id)

    def issue(self) -> int:
        """Allocate the next request id. Ids are never reused."""
        request_id = self._next_id
        self._next_id += 1
        return request_id

    def register(
        self, request_id: int, method: str = "", timeout: float | None = None
    ) -> asyncio.Future[Any]:
        """Track *request_id* and arm its timer. Needs a running loop."""
        loop = asyncio.get_running_loop()
        seconds = self.timeout_seconds if timeout is None else timeout
        pending = PendingRequest(
            id=request_id, method=method, future=loop.create_future(), timeout=seconds
        )
        pending.timer = loop.call_later(seconds, self.timeout, request_id)
        self._pending[request_id] = pending
        return pending.future

    def resolve(self, request_id: int, result: Any) -> bool:
        pending = self._settle(request_id)
        if pending is None or pending.future.done():
            return False
        pending.future.set_result(result)
        return True

    def reject(self, request_id: int, error: BaseException) -> bool:
        pending = self._settle(request_id)
        if pending is None or pending.future.done():
            return False
        pending.future.set_exception(error)
        return True

    def timeout(self, request_id: int) -> bool:
        """Timer callback: fail the request if it is still pending."""
        pending = self._pending.get(request_id)
        if pending is None:
            return False
        logger.warning(
            "Request %s #%d timed out after %ss",
            pending.method,
            request_id,
            pending.timeout,
        )
        return self.reject(
            request_id,
            RequestTimeoutError(pending.method, request_id, pending.timeout),
        )

    def handle_response(self, envelope: Envelope) -> bool:
        """Route a response envelope to its pending request.

        Success is decided by the presence of ``result``, not its value,
        so ``"result": 0`` resolves.  Returns False for unknown ids.
        """
        request_id = envelope.id
        # Some hosts echo numeric ids back as strings
        if isinstance(request_id, str) and request_id.isdigit():
            request_id = int(request_id)
        if not isinstance(request_id, int) or request_id not in self._pending:
            logger.debug("Dropping response for unknown request id %r", request_id)
            return False

        if envelope.has_result:
            return self.resolve(request_id, envelope.result)

        error = envelope.error
        return self.reject(
            request_id,
            RemoteError(
                error.message if error else None,
                code=error.code if error else None,
                data=error.data if error else None,
            ),
        )

    def cancel_all(self, error: BaseException) -> int:
        """Reject every pending request with *error*; returns how many."""
        count = 0
        for request_id in list(self._pending):
            if self.reject(request_id, error):
                count += 1
        return count

    # ------------------------------------------------------------------ #
    #  Introspection                                                      #
    # ------------------------------------------------------------------ #

    @property
    def pending_ids(self) -> list[int]:
        return list(self._pending)

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._pending

    def __len__(self) -> int:
        return len(self._pending)

    # ------------------------------------------------------------------ #
    #  Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _settle(self, request_id: int) -> PendingRequest | None:
        """Remove *request_id* from the table and disarm its timer."""
        pending = self._pending.pop(request_id, None)
        if pending is not None and pending.timer is not None:
            pending.timer.cancel()
            pending.timer = None
        return pending
