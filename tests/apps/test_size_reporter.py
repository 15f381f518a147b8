# tests/apps/test_size_reporter.py
"""Tests for debounced size reporting."""

from __future__ import annotations

import asyncio

import pytest

from mcp_app_bridge.apps.document import VirtualDocument
from mcp_app_bridge.apps.models import SizeSample
from mcp_app_bridge.apps.size_reporter import SizeReporter
from mcp_app_bridge.config.defaults import DEFAULT_SIZE_DEBOUNCE


# ── Fakes ──────────────────────────────────────────────────────────────────


class Emissions:
    """Records emitted samples with their loop timestamps."""

    def __init__(self):
        self.samples: list[tuple[float, SizeSample]] = []

    def __call__(self, sample: SizeSample) -> None:
        self.samples.append((asyncio.get_running_loop().time(), sample))

    def __len__(self) -> int:
        return len(self.samples)


# An initial delay long enough to stay out of the way of debounce tests
QUIET_START = 10.0


# ── Tests ──────────────────────────────────────────────────────────────────


class TestDebounce:
    @pytest.mark.asyncio
    async def test_five_events_one_emission(self):
        emit = Emissions()
        reporter = SizeReporter(emit, initial_delay=QUIET_START)
        doc = VirtualDocument(320, 200)
        reporter.start(doc)
        loop = asyncio.get_running_loop()

        for i in range(5):
            if i:
                await asyncio.sleep(0.01)
            doc.resize(height=200 + i)
        last_event = loop.time()

        await asyncio.sleep(DEFAULT_SIZE_DEBOUNCE + 0.1)
        reporter.stop()

        assert len(emit) == 1
        emitted_at, sample = emit.samples[0]
        assert emitted_at - last_event >= DEFAULT_SIZE_DEBOUNCE - 0.01
        assert sample == SizeSample(width=320, height=204)

    @pytest.mark.asyncio
    async def test_separate_bursts_emit_separately(self):
        emit = Emissions()
        reporter = SizeReporter(emit, debounce=0.03, initial_delay=QUIET_START)
        doc = VirtualDocument(10, 10)
        reporter.start(doc)

        doc.resize(height=11)
        await asyncio.sleep(0.08)
        doc.resize(height=12)
        await asyncio.sleep(0.08)
        reporter.stop()

        assert [s.height for _, s in emit.samples] == [11, 12]

    @pytest.mark.asyncio
    async def test_no_emission_after_stop(self):
        emit = Emissions()
        reporter = SizeReporter(emit, debounce=0.02, initial_delay=0.01)
        doc = VirtualDocument(1, 1)
        reporter.start(doc)
        doc.resize(height=2)
        reporter.stop()

        doc.resize(height=3)
        doc.mutate()
        await asyncio.sleep(0.08)
        assert len(emit) == 0
        assert doc.observer_count == 0


class TestObservers:
    @pytest.mark.asyncio
    async def test_native_observer_preferred(self):
        reporter = SizeReporter(Emissions(), initial_delay=QUIET_START)
        doc = VirtualDocument()
        reporter.start(doc)
        assert len(doc._resize_observers) == 1
        assert doc._resize_listeners == []
        assert doc._mutation_observers == []
        reporter.stop()

    @pytest.mark.asyncio
    async def test_fallback_pair_without_native_observer(self):
        emit = Emissions()
        reporter = SizeReporter(emit, debounce=0.02, initial_delay=QUIET_START)
        doc = VirtualDocument(5, 5, resize_observer=False)
        reporter.start(doc)
        assert len(doc._resize_listeners) == 1
        assert len(doc._mutation_observers) == 1

        doc.mutate("attributes", attribute="style")
        await asyncio.sleep(0.06)
        assert len(emit) == 1

        doc.mutate("attributes", attribute="data-id")
        await asyncio.sleep(0.06)
        assert len(emit) == 1

        reporter.stop()
        assert doc.observer_count == 0

    @pytest.mark.asyncio
    async def test_no_observers_at_all(self):
        emit = Emissions()
        reporter = SizeReporter(emit, debounce=0.02, initial_delay=QUIET_START)
        doc = VirtualDocument(resize_observer=False, mutation_observer=False)
        reporter.start(doc)
        doc.resize(7, 8)
        await asyncio.sleep(0.06)
        assert [s for _, s in emit.samples] == [SizeSample(width=7, height=8)]
        reporter.stop()


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_initial_report(self):
        emit = Emissions()
        reporter = SizeReporter(emit, initial_delay=0.02)
        reporter.start(VirtualDocument(100, 50))
        await asyncio.sleep(0.06)
        assert [s for _, s in emit.samples] == [SizeSample(width=100, height=50)]
        reporter.stop()

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self):
        reporter = SizeReporter(Emissions(), initial_delay=QUIET_START)
        doc = VirtualDocument()
        reporter.start(doc)
        reporter.start(doc)
        assert doc.observer_count == 1
        reporter.stop()

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self):
        reporter = SizeReporter(Emissions(), initial_delay=QUIET_START)
        reporter.stop()
        reporter.start(VirtualDocument())
        reporter.stop()
        reporter.stop()
        assert not reporter.running

    @pytest.mark.asyncio
    async def test_report_later_cancelled_by_stop(self):
        emit = Emissions()
        reporter = SizeReporter(emit, initial_delay=QUIET_START)
        reporter.start(VirtualDocument())
        reporter.report_later(0.01)
        reporter.stop()
        await asyncio.sleep(0.04)
        assert len(emit) == 0

    @pytest.mark.asyncio
    async def test_async_emit_is_awaited(self):
        samples = []

        async def emit(sample):
            samples.append(sample)

        reporter = SizeReporter(emit, initial_delay=QUIET_START)
        reporter.start(VirtualDocument(3, 4))
        assert reporter.report_now() == SizeSample(width=3, height=4)
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert samples == [SizeSample(width=3, height=4)]
        reporter.stop()

    @pytest.mark.asyncio
    async def test_stop_cancels_unsent_async_reports(self):
        samples = []

        async def emit(sample):
            samples.append(sample)

        reporter = SizeReporter(emit, initial_delay=QUIET_START)
        reporter.start(VirtualDocument(1, 1))
        reporter.report_now()
        reporter.stop()
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert samples == []

    def test_report_now_when_stopped(self):
        reporter = SizeReporter(Emissions())
        assert reporter.report_now() is None
