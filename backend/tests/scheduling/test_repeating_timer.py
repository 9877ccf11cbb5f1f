"""Tests for RepeatingTimer."""

import asyncio
from unittest.mock import patch

import pytest

from venuehub.scheduling.timer import RepeatingTimer

pytestmark = pytest.mark.unit


async def test_fires_immediately_then_repeats():
    calls = []

    async def tick():
        calls.append(asyncio.get_running_loop().time())

    timer = RepeatingTimer(0.01, tick)
    timer.start()
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert len(calls) >= 1

    await asyncio.sleep(0.05)
    timer.cancel()
    assert len(calls) >= 3


async def test_cancel_stops_future_firings():
    calls = 0

    async def tick():
        nonlocal calls
        calls += 1

    timer = RepeatingTimer(0.01, tick)
    timer.start()
    await asyncio.sleep(0.03)
    timer.cancel()
    await asyncio.sleep(0)
    seen = calls

    await asyncio.sleep(0.05)
    assert calls == seen
    assert timer.active is False


async def test_cancel_leaves_running_callback_alone():
    release = asyncio.Event()
    finished = asyncio.Event()

    async def slow():
        await release.wait()
        finished.set()

    timer = RepeatingTimer(3600, slow)
    timer.start()
    await asyncio.sleep(0)
    timer.cancel()

    release.set()
    await asyncio.wait_for(finished.wait(), timeout=1.0)


async def test_hung_callback_does_not_block_next_firing():
    release = asyncio.Event()
    started = 0

    async def maybe_hang():
        nonlocal started
        started += 1
        await release.wait()

    timer = RepeatingTimer(0.01, maybe_hang)
    timer.start()
    await asyncio.sleep(0.05)
    timer.cancel()
    release.set()

    assert started >= 2


async def test_callback_error_is_logged_not_raised():
    async def boom():
        raise RuntimeError("kaput")

    with patch("venuehub.scheduling.timer.logger") as mock_logger:
        timer = RepeatingTimer(3600, boom, name="boom-timer")
        timer.start()
        await asyncio.sleep(0.01)
        timer.cancel()

    mock_logger.error.assert_called_once()
    assert mock_logger.error.call_args.kwargs["timer"] == "boom-timer"
    assert mock_logger.error.call_args.kwargs["error_type"] == "RuntimeError"


def test_rejects_non_positive_interval():
    async def noop():
        pass

    with pytest.raises(ValueError):
        RepeatingTimer(0, noop)


def test_cancel_before_start_is_safe():
    async def noop():
        pass

    timer = RepeatingTimer(1, noop)
    timer.cancel()
    assert timer.active is False
