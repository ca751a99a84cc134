"""
Response race collector.

Drains a wave of concurrent provider requests in completion order and
forwards each informative reply to the owner loop, one at a time. A failing
provider task is a defect and fails the collecting loop.
"""

from __future__ import annotations

import asyncio
import traceback
from collections import deque
from collections.abc import Awaitable, Coroutine
from typing import TYPE_CHECKING, Any

from lsprotocol.types import LogMessageParams, MessageType

from editcomplete.completion.reconciler import apply_response
from editcomplete.completion.task import TaskHandle, cancelable
from editcomplete.completion.types import CompletionResponse

if TYPE_CHECKING:
    from editcomplete.editor.editor import Editor
    from editcomplete.ui.compositor import Compositor
    from editcomplete.ui.job import Jobs


class PendingRequests:
    """In-flight provider requests, joined in the order they finish."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[CompletionResponse]] = set()
        self._finished: deque[asyncio.Task[CompletionResponse]] = deque()

    def spawn(
        self, coro: Coroutine[Any, Any, CompletionResponse]
    ) -> asyncio.Task[CompletionResponse]:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[CompletionResponse]) -> None:
        if task in self._tasks and task not in self._finished:
            self._finished.append(task)

    def __len__(self) -> int:
        return len(self._tasks)

    def is_empty(self) -> bool:
        return not self._tasks

    async def join_next(self, timeout: float | None = None) -> CompletionResponse | None:
        """
        Wait for the next request to finish and return its response.

        Returns None once no request is left. Re-raises the failure of a
        request that failed. Raises ``asyncio.TimeoutError`` when nothing
        finished within ``timeout``; every request is then still pending.
        """
        if not self._tasks:
            return None

        if not self._finished:
            done, _ = await asyncio.wait(
                self._tasks, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
            if not done:
                raise asyncio.TimeoutError
            # Done callbacks may not have run yet.
            for task in done:
                self._on_done(task)

        task = self._finished.popleft()
        self._tasks.discard(task)
        return task.result()

    def abort_all(self) -> None:
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()
        self._finished.clear()


async def handle_response(
    requests: PendingRequests, incomplete: bool, timeout: float | None = None
) -> CompletionResponse | None:
    """
    Next response worth showing, or None when the wave is exhausted.

    Empty complete replies carry no information and are skipped. With
    ``incomplete`` set every reply is forwarded, since even an empty page
    updates the provider's incomplete list. ``timeout`` bounds the whole
    call, skipped replies included.
    """
    loop = asyncio.get_running_loop()
    deadline = None if timeout is None else loop.time() + timeout
    while True:
        remaining = None if deadline is None else max(0.0, deadline - loop.time())
        response = await requests.join_next(remaining)
        if response is None:
            return None
        if not incomplete and not response.is_informative():
            continue
        return response


async def replace_completions(
    handle: TaskHandle,
    requests: PendingRequests,
    incomplete: bool,
    jobs: Jobs,
) -> None:
    """Apply every remaining response of a wave to the open popup."""
    try:
        while (response := await handle_response(requests, incomplete)) is not None:

            def job(editor: Editor, compositor: Compositor, response=response) -> None:
                apply_response(editor, compositor, response, handle)

            await jobs.dispatch(job)
    finally:
        requests.abort_all()


def spawn_completion_task(
    editor: Editor, aw: Awaitable[Any], handle: TaskHandle
) -> asyncio.Task[Any]:
    """Run a wave in the background until it finishes or ``handle`` is canceled."""
    task = editor.handlers.spawn(cancelable(aw, handle))
    task.add_done_callback(lambda task: _report_failure(editor, task))
    return task


def _report_failure(editor: Editor, task: asyncio.Task[Any]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is None:
        return
    details = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    editor.window_log_message(
        LogMessageParams(
            type=MessageType.Error,
            message=f"Completion request failed: {type(exc).__name__}: {exc}\n{details}",
        )
    )
