"""Tests for generation-based cancellation."""

import asyncio

import pytest

from editcomplete.completion.task import TaskController, cancelable


def test_restart_cancels_previous_handle():
    controller = TaskController()
    first = controller.restart()

    second = controller.restart()

    assert first.is_canceled()
    assert not second.is_canceled()
    assert controller.is_running()


def test_cancel():
    controller = TaskController()
    handle = controller.restart()

    controller.cancel()

    assert handle.is_canceled()
    assert not controller.is_running()


def test_cancel_without_handle_is_noop():
    controller = TaskController()
    controller.cancel()

    assert not controller.is_running()


@pytest.mark.asyncio
async def test_canceled_wakes_up_on_restart():
    controller = TaskController()
    handle = controller.restart()
    waiter = asyncio.create_task(handle.canceled())
    await asyncio.sleep(0)
    assert not waiter.done()

    controller.restart()

    await asyncio.wait_for(waiter, 1)


@pytest.mark.asyncio
async def test_cancelable_returns_result():
    handle = TaskController().restart()

    async def work():
        return 42

    assert await cancelable(work(), handle) == (True, 42)


@pytest.mark.asyncio
async def test_cancelable_abandons_work_on_cancel():
    controller = TaskController()
    handle = controller.restart()
    cleaned_up = False

    async def work():
        nonlocal cleaned_up
        try:
            await asyncio.sleep(10)
        finally:
            cleaned_up = True

    running = asyncio.create_task(cancelable(work(), handle))
    await asyncio.sleep(0.01)
    controller.cancel()

    assert await asyncio.wait_for(running, 1) == (False, None)
    assert cleaned_up


@pytest.mark.asyncio
async def test_cancelable_propagates_failure():
    handle = TaskController().restart()

    async def work():
        raise RuntimeError("provider bug")

    with pytest.raises(RuntimeError, match="provider bug"):
        await cancelable(work(), handle)
