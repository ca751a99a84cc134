"""
Closure queue consumed on the owner loop.

Background work never touches editor or UI state directly. It queues a
callback with ``dispatch`` and the single ``run`` loop executes callbacks one
at a time, which gives the same exclusive access a UI thread would.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING

from lsprotocol.types import LogMessageParams, MessageType

if TYPE_CHECKING:
    from editcomplete.editor.editor import Editor
    from editcomplete.ui.compositor import Compositor


Job = Callable[["Editor", "Compositor"], None]


class Jobs:
    """Queue of callbacks to run against the editor and compositor."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[tuple[Job, asyncio.Future[None] | None]] = (
            asyncio.Queue()
        )

    async def dispatch(self, job: Job) -> None:
        """
        Queue a callback and wait until the owner loop has run it.

        A failure of the callback is re-raised here.
        """
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        await self._queue.put((job, future))
        await future

    def dispatch_blocking(self, job: Job) -> None:
        """Queue a callback without waiting for it."""
        self._queue.put_nowait((job, None))

    def pending(self) -> int:
        return self._queue.qsize()

    def run_pending(self, editor: Editor, compositor: Compositor) -> int:
        """Run every queued callback now. Returns how many ran."""
        count = 0
        while not self._queue.empty():
            job, future = self._queue.get_nowait()
            self._run_job(job, future, editor, compositor)
            count += 1
        return count

    async def run(self, editor: Editor, compositor: Compositor) -> None:
        """Owner loop: execute callbacks in queue order, forever."""
        while True:
            job, future = await self._queue.get()
            self._run_job(job, future, editor, compositor)

    def _run_job(
        self,
        job: Job,
        future: asyncio.Future[None] | None,
        editor: Editor,
        compositor: Compositor,
    ) -> None:
        try:
            job(editor, compositor)
        except Exception as e:
            if future is not None and not future.done():
                future.set_exception(e)
                return
            editor.window_log_message(
                LogMessageParams(
                    type=MessageType.Error,
                    message=f"Error in dispatched job: {type(e).__name__}: {e}",
                )
            )
            return

        if future is not None and not future.done():
            future.set_result(None)
