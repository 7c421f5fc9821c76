"""Tests for the trailing debounce timer."""
import asyncio
import logging

import pytest

from daybook.core.debounce import Debouncer


def _recorder():
    calls = []

    async def callback():
        calls.append(asyncio.get_running_loop().time())

    return calls, callback


@pytest.mark.asyncio
async def test_fires_once_after_last_trigger():
    calls, callback = _recorder()
    debouncer = Debouncer(0.05, callback)

    debouncer.trigger()
    await asyncio.sleep(0.02)
    debouncer.trigger()
    await asyncio.sleep(0.02)
    debouncer.trigger()
    assert debouncer.pending
    assert calls == []

    await asyncio.sleep(0.15)
    assert len(calls) == 1
    assert not debouncer.pending


@pytest.mark.asyncio
async def test_cancel_drops_pending_callback():
    calls, callback = _recorder()
    debouncer = Debouncer(0.03, callback)
    debouncer.trigger()
    debouncer.cancel()
    await asyncio.sleep(0.08)
    assert calls == []


@pytest.mark.asyncio
async def test_flush_fires_immediately():
    calls, callback = _recorder()
    debouncer = Debouncer(0.05, callback)
    debouncer.trigger()
    assert await debouncer.flush() is True
    assert len(calls) == 1
    await asyncio.sleep(0.1)
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_flush_without_pending_timer_does_nothing():
    calls, callback = _recorder()
    debouncer = Debouncer(0.05, callback)
    assert await debouncer.flush() is False
    assert calls == []


@pytest.mark.asyncio
async def test_callback_failure_is_logged(caplog):
    async def boom():
        raise RuntimeError("store down")

    debouncer = Debouncer(0.01, boom, name="test.debounce")
    with caplog.at_level(logging.ERROR, logger="daybook"):
        debouncer.trigger()
        await asyncio.sleep(0.05)
    assert any("debounced callback failed" in r.getMessage() for r in caplog.records)


def test_delay_must_be_positive():
    async def noop():
        return None

    with pytest.raises(ValueError):
        Debouncer(0, noop)
