# tests/apps/test_hooks.py
"""Tests for render hook invocation."""

from __future__ import annotations

import asyncio

import pytest

from mcp_app_bridge.apps.hooks import HookRunner, RenderHooks


class TestHookRunner:
    def test_unset_hook(self):
        assert HookRunner().call("render", None, 1) is False

    def test_sync_hook(self):
        seen = []
        assert HookRunner().call("render", seen.append, 1) is True
        assert seen == [1]

    def test_sync_error_logged(self, caplog):
        def broken(_):
            raise ValueError("bad")

        with caplog.at_level("ERROR"):
            assert HookRunner().call("render", broken, 1) is True
        assert "render hook failed" in caplog.text

    @pytest.mark.asyncio
    async def test_async_hook_tracked_and_drained(self):
        runner = HookRunner()
        seen = []

        async def hook(value):
            await asyncio.sleep(0.01)
            seen.append(value)

        runner.call("render", hook, "x")
        assert runner.pending == 1
        await runner.drain()
        assert seen == ["x"]
        assert runner.pending == 0

    @pytest.mark.asyncio
    async def test_async_error_logged(self, caplog):
        runner = HookRunner()

        async def broken():
            raise RuntimeError("async boom")

        with caplog.at_level("ERROR"):
            runner.call("empty", broken)
            await runner.drain()
        assert "empty hook failed" in caplog.text

    @pytest.mark.asyncio
    async def test_cancel(self):
        runner = HookRunner()

        async def slow():
            await asyncio.sleep(10)

        runner.call("render", slow)
        runner.call("render", slow)
        assert runner.cancel() == 2
        await runner.drain()
        assert runner.pending == 0


class TestRenderHooks:
    def test_all_optional(self):
        hooks = RenderHooks()
        assert hooks.render is None
        assert hooks.teardown is None
