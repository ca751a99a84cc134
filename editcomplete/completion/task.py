"""
Generation-based cooperative cancellation.

A ``TaskController`` hands out one ``TaskHandle`` per generation of
background work. Restarting or canceling the controller bumps the
generation, which makes every outstanding handle report itself canceled.
Nothing is interrupted: results are compared against the generation where
they are applied.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

T = TypeVar("T")


class _Generation:
    """Counter shared by a controller and all of its handles."""

    def __init__(self) -> None:
        self.value = 0
        self._changed: asyncio.Event | None = None

    def bump(self) -> None:
        self.value += 1
        if self._changed is not None:
            self._changed.set()
            self._changed = None

    def changed(self) -> asyncio.Event:
        if self._changed is None:
            self._changed = asyncio.Event()
        return self._changed


class TaskHandle:
    """Cancellation token for one generation of background work."""

    def __init__(self, generation: _Generation, value: int) -> None:
        self._generation = generation
        self.generation = value

    def is_canceled(self) -> bool:
        return self._generation.value != self.generation

    async def canceled(self) -> None:
        """Wait until this handle's generation is superseded."""
        while not self.is_canceled():
            await self._generation.changed().wait()

    def __repr__(self) -> str:
        state = "canceled" if self.is_canceled() else "live"
        return f"TaskHandle(generation={self.generation}, {state})"


class TaskController:
    """Issues handles and supersedes them."""

    def __init__(self) -> None:
        self._generation = _Generation()
        self._current: TaskHandle | None = None

    def restart(self) -> TaskHandle:
        """Cancel the current generation and start a new one."""
        self._generation.bump()
        self._current = TaskHandle(self._generation, self._generation.value)
        return self._current

    def cancel(self) -> None:
        if self._current is None:
            return
        self._generation.bump()
        self._current = None

    def is_running(self) -> bool:
        return self._current is not None and not self._current.is_canceled()


async def cancelable(aw: Awaitable[T], handle: TaskHandle) -> tuple[bool, T | None]:
    """
    Run ``aw`` until it finishes or ``handle`` is canceled.

    Returns ``(True, result)`` when it finished and ``(False, None)`` when it
    was abandoned. Failures of ``aw`` propagate.
    """
    task = asyncio.ensure_future(aw)
    waiter = asyncio.ensure_future(handle.canceled())
    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        waiter.cancel()

    if task.done():
        return True, task.result()

    # Let the abandoned work run its cleanup before returning.
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    return False, None
