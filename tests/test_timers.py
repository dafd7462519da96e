from __future__ import annotations

import asyncio

import pytest

from inkwell.editor.timers import PendingTimer


@pytest.mark.asyncio
async def test_rescheduling_replaces_pending_callback() -> None:
    calls: list[str] = []
    timer = PendingTimer(lambda: calls.append("fired"))

    timer.schedule()
    timer.schedule()
    assert timer.pending
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert calls == ["fired"]
    assert not timer.pending


@pytest.mark.asyncio
async def test_cancel_drops_callback() -> None:
    calls: list[str] = []
    timer = PendingTimer(lambda: calls.append("fired"), delay=0.01)
    timer.schedule()

    assert timer.cancel()
    await asyncio.sleep(0.03)

    assert calls == []
    assert not timer.cancel()


@pytest.mark.asyncio
async def test_flush_runs_pending_callback_immediately() -> None:
    calls: list[str] = []
    timer = PendingTimer(lambda: calls.append("fired"), delay=10)
    assert not timer.flush()

    timer.schedule()
    assert timer.flush()

    assert calls == ["fired"]
    assert not timer.pending


@pytest.mark.asyncio
async def test_callback_errors_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    def _boom() -> None:
        raise RuntimeError("boom")

    timer = PendingTimer(_boom, name="explode")
    timer.schedule()
    await asyncio.sleep(0)

    assert "explode" in caplog.text


def test_scheduling_without_a_loop_is_an_error() -> None:
    timer = PendingTimer(lambda: None, name="autosave")
    with pytest.raises(RuntimeError, match="autosave"):
        timer.schedule()
    assert not timer.pending


def test_explicit_loop_is_used_outside_a_running_loop() -> None:
    loop = asyncio.new_event_loop()
    calls: list[str] = []
    try:
        timer = PendingTimer(lambda: calls.append("fired"), loop=loop)
        timer.schedule()
        assert timer.pending
        loop.run_until_complete(asyncio.sleep(0))
    finally:
        loop.close()
    assert calls == ["fired"]
