# tests/apps/test_correlator.py
"""Tests for request/response correlation and timeouts."""

from __future__ import annotations

import asyncio

import pytest

from mcp_app_bridge.apps.correlator import RequestCorrelator
from mcp_app_bridge.apps.errors import (
    BridgeClosedError,
    RemoteError,
    RequestTimeoutError,
)
from mcp_app_bridge.apps.models import Envelope
from mcp_app_bridge.config.defaults import DEFAULT_REQUEST_TIMEOUT


# ── Fakes ──────────────────────────────────────────────────────────────────


class RecordingSend:
    """Captures outbound envelopes."""

    def __init__(self):
        self.sent: list[Envelope] = []

    async def __call__(self, envelope: Envelope) -> None:
        self.sent.append(envelope)


def _response(request_id, **members) -> Envelope:
    return Envelope.model_validate({"jsonrpc": "2.0", "id": request_id, **members})


async def _start(correlator: RequestCorrelator, method: str = "test/method", **kw):
    task = asyncio.create_task(correlator.send(method, {"x": 1}, **kw))
    await asyncio.sleep(0)
    return task


# ── Tests ──────────────────────────────────────────────────────────────────


class TestIds:
    def test_default_timeout(self):
        assert RequestCorrelator(RecordingSend()).timeout_seconds == 5.0
        assert DEFAULT_REQUEST_TIMEOUT == 5.0

    def test_ids_strictly_increase(self):
        correlator = RequestCorrelator(RecordingSend())
        ids = [correlator.issue() for _ in range(5)]
        assert ids == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_ids_not_reused_after_completion(self):
        send = RecordingSend()
        correlator = RequestCorrelator(send, timeout=1.0)
        first = await _start(correlator)
        correlator.handle_response(_response(1, result="a"))
        assert await first == "a"
        second = await _start(correlator)
        assert send.sent[1].id == 2
        correlator.handle_response(_response(2, result="b"))
        assert await second == "b"


class TestSend:
    @pytest.mark.asyncio
    async def test_envelope_shape(self):
        send = RecordingSend()
        correlator = RequestCorrelator(send, timeout=1.0)
        task = await _start(correlator, "ui/request-display-mode")
        wire = send.sent[0].to_wire()
        assert wire == {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "ui/request-display-mode",
            "params": {"x": 1},
        }
        correlator.handle_response(_response(1, result={}))
        await task

    @pytest.mark.asyncio
    async def test_result_resolves(self):
        correlator = RequestCorrelator(RecordingSend(), timeout=1.0)
        task = await _start(correlator)
        assert correlator.handle_response(_response(1, result={"mode": "fullscreen"}))
        assert await task == {"mode": "fullscreen"}
        assert len(correlator) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("falsy", [0, "", None, False, []])
    async def test_falsy_result_still_resolves(self, falsy):
        correlator = RequestCorrelator(RecordingSend(), timeout=1.0)
        task = await _start(correlator)
        correlator.handle_response(_response(1, result=falsy))
        assert await task == falsy

    @pytest.mark.asyncio
    async def test_error_rejects_with_message(self):
        correlator = RequestCorrelator(RecordingSend(), timeout=1.0)
        task = await _start(correlator)
        correlator.handle_response(
            _response(1, error={"code": -32000, "message": "denied"})
        )
        with pytest.raises(RemoteError) as exc_info:
            await task
        assert str(exc_info.value) == "denied"
        assert exc_info.value.code == -32000

    @pytest.mark.asyncio
    async def test_error_without_message(self):
        correlator = RequestCorrelator(RecordingSend(), timeout=1.0)
        task = await _start(correlator)
        correlator.handle_response(_response(1, error={}))
        with pytest.raises(RemoteError, match="Unknown error"):
            await task

    @pytest.mark.asyncio
    async def test_string_id_echo_is_matched(self):
        correlator = RequestCorrelator(RecordingSend(), timeout=1.0)
        task = await _start(correlator)
        assert correlator.handle_response(_response("1", result="ok"))
        assert await task == "ok"

    @pytest.mark.asyncio
    async def test_unknown_id_ignored(self):
        correlator = RequestCorrelator(RecordingSend(), timeout=1.0)
        task = await _start(correlator)
        assert correlator.handle_response(_response(99, result="x")) is False
        assert 1 in correlator
        correlator.handle_response(_response(1, result="y"))
        assert await task == "y"


class TestTimeout:
    @pytest.mark.asyncio
    async def test_timeout_rejects_and_deregisters(self):
        correlator = RequestCorrelator(RecordingSend(), timeout=0.05)
        task = await _start(correlator)
        assert correlator.pending_ids == [1]
        with pytest.raises(RequestTimeoutError, match="Request timeout") as exc_info:
            await task
        assert exc_info.value.request_id == 1
        assert exc_info.value.method == "test/method"
        assert 1 not in correlator
        assert len(correlator) == 0

    @pytest.mark.asyncio
    async def test_per_call_timeout(self):
        correlator = RequestCorrelator(RecordingSend(), timeout=10.0)
        task = await _start(correlator, timeout=0.05)
        with pytest.raises(RequestTimeoutError):
            await asyncio.wait_for(task, 1.0)

    @pytest.mark.asyncio
    async def test_late_response_after_timeout_is_noop(self):
        correlator = RequestCorrelator(RecordingSend(), timeout=0.05)
        task = await _start(correlator)
        with pytest.raises(RequestTimeoutError):
            await task
        assert correlator.handle_response(_response(1, result="late")) is False

    @pytest.mark.asyncio
    async def test_timer_after_response_is_noop(self):
        correlator = RequestCorrelator(RecordingSend(), timeout=0.05)
        task = await _start(correlator)
        correlator.handle_response(_response(1, result="first"))
        assert await task == "first"
        # The timer was cancelled; firing it by hand must not double-settle
        assert correlator.timeout(1) is False
        await asyncio.sleep(0.1)


class TestLowLevel:
    @pytest.mark.asyncio
    async def test_register_resolve_once(self):
        correlator = RequestCorrelator(RecordingSend(), timeout=1.0)
        request_id = correlator.issue()
        future = correlator.register(request_id, "m")
        assert correlator.resolve(request_id, 1) is True
        assert correlator.resolve(request_id, 2) is False
        assert correlator.reject(request_id, RuntimeError("x")) is False
        assert await future == 1

    @pytest.mark.asyncio
    async def test_cancel_all(self):
        correlator = RequestCorrelator(RecordingSend(), timeout=1.0)
        first = await _start(correlator)
        second = await _start(correlator)
        assert correlator.cancel_all(BridgeClosedError()) == 2
        for task in (first, second):
            with pytest.raises(BridgeClosedError):
                await task
        assert len(correlator) == 0

    @pytest.mark.asyncio
    async def test_cancelled_caller_cleans_up(self):
        correlator = RequestCorrelator(RecordingSend(), timeout=1.0)
        task = await _start(correlator)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert len(correlator) == 0
