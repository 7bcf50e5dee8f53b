"""Tests for the continuous scheduler."""

from __future__ import annotations

import asyncio

from deepscan.scanner.scheduler import CancellationToken, ContinuousScheduler


def run_async(coro):
    """Helper to run async functions in sync tests."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


class TestCancellationToken:
    def test_sleep_times_out(self):
        token = CancellationToken()
        assert run_async(token.sleep(0.01)) is False
        assert not token.cancelled

    def test_cancel_wakes_sleeper(self):
        async def scenario():
            token = CancellationToken()
            sleeper = asyncio.ensure_future(token.sleep(10))
            await asyncio.sleep(0)
            token.cancel()
            return await sleeper

        assert run_async(scenario()) is True


class TestContinuousScheduler:
    def test_ticks_until_cancelled(self):
        calls = []

        async def tick():
            calls.append(1)

        async def scenario():
            scheduler = ContinuousScheduler(tick, 0.01)
            scheduler.start()
            assert scheduler.running
            await asyncio.sleep(0.1)
            scheduler.cancel()
            await scheduler.wait_closed()
            return scheduler

        scheduler = run_async(scenario())
        assert len(calls) >= 2
        assert not scheduler.running

    def test_first_tick_waits_one_interval(self):
        calls = []

        async def tick():
            calls.append(1)

        async def scenario():
            scheduler = ContinuousScheduler(tick, 10)
            scheduler.start()
            await asyncio.sleep(0.05)
            scheduler.cancel()
            await scheduler.wait_closed()

        run_async(scenario())
        assert calls == []

    def test_ticks_never_overlap(self):
        active = []
        overlaps = []

        async def tick():
            if active:
                overlaps.append(1)
            active.append(1)
            await asyncio.sleep(0.03)
            active.pop()

        async def scenario():
            scheduler = ContinuousScheduler(tick, 0.001)
            scheduler.start()
            await asyncio.sleep(0.15)
            scheduler.cancel()
            await scheduler.wait_closed()

        run_async(scenario())
        assert overlaps == []

    def test_in_flight_tick_finishes_after_cancel(self):
        finished = []

        async def tick():
            await asyncio.sleep(0.05)
            finished.append(1)

        async def scenario():
            scheduler = ContinuousScheduler(tick, 0.001)
            scheduler.start()
            await asyncio.sleep(0.02)
            scheduler.cancel()
            await scheduler.wait_closed()

        run_async(scenario())
        assert finished == [1]

    def test_errors_reported_and_loop_continues(self):
        errors = []
        calls = []

        async def tick():
            calls.append(1)
            raise RuntimeError("boom")

        async def scenario():
            scheduler = ContinuousScheduler(tick, 0.01, on_error=errors.append)
            scheduler.start()
            await asyncio.sleep(0.1)
            scheduler.cancel()
            await scheduler.wait_closed()

        run_async(scenario())
        assert len(calls) >= 2
        assert len(errors) == len(calls)
        assert str(errors[0]) == "boom"
