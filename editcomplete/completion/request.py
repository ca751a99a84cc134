"""
Completion request handler.

Consumes ``CompletionEvent`` values, debounces them and fires a wave of
requests: one per completion provider of the document, plus path
completion. The first informative replies open the popup; the rest are
merged into it as they arrive.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import TYPE_CHECKING

from lsprotocol.types import (
    CompletionContext,
    CompletionItem,
    CompletionParams,
    CompletionTriggerKind,
    TextDocumentIdentifier,
)

from editcomplete.completion.collector import (
    PendingRequests,
    handle_response,
    replace_completions,
    spawn_completion_task,
)
from editcomplete.completion.path import path_completion
from editcomplete.completion.reconciler import show_completion
from editcomplete.completion.task import TaskHandle
from editcomplete.completion.types import (
    AutoTrigger,
    Cancel,
    CompletionEvent,
    CompletionProvider,
    CompletionResponse,
    DeleteText,
    ManualTrigger,
    Trigger,
    TriggerChar,
    TriggerKind,
)
from editcomplete.editor.document import SavePoint
from editcomplete.editor.editor import Mode

if TYPE_CHECKING:
    from editcomplete.editor.document import Document
    from editcomplete.editor.editor import Editor
    from editcomplete.lsp.source import CompletionSource
    from editcomplete.ui.completion import Completion
    from editcomplete.ui.compositor import Compositor
    from editcomplete.ui.job import Job, Jobs


class CompletionHandler:
    """
    Debounces completion events and issues request waves.

    Attributes:
        trigger: Trigger waiting for its debounce to expire.
        in_flight: Trigger of the wave currently running.
    """

    def __init__(self, editor: Editor) -> None:
        self.editor = editor
        self.trigger: Trigger | None = None
        self.in_flight: Trigger | None = None
        self.task_controller = editor.handlers.completion_tasks

    def handle_event(self, event: CompletionEvent) -> float | None:
        """
        Update the pending trigger.

        Returns the debounce deadline (event loop time), or None when no
        request is pending.
        """
        if self.in_flight is not None and not self.task_controller.is_running():
            self.in_flight = None

        if isinstance(event, AutoTrigger):
            if (
                self.trigger is None
                or self.trigger.view != event.view
                or self.trigger.doc != event.doc
            ):
                self.trigger = Trigger(
                    view=event.view, doc=event.doc, pos=event.cursor, kind=TriggerKind.AUTO
                )
        elif isinstance(event, TriggerChar):
            # Request right away and drop any pending auto trigger.
            self.task_controller.cancel()
            self.trigger = Trigger(
                view=event.view,
                doc=event.doc,
                pos=event.cursor,
                kind=TriggerKind.TRIGGER_CHAR,
            )
        elif isinstance(event, ManualTrigger):
            self.trigger = Trigger(
                view=event.view, doc=event.doc, pos=event.cursor, kind=TriggerKind.MANUAL
            )
            self.in_flight = None
            self.finish_debounce()
            return None
        elif isinstance(event, Cancel):
            self.trigger = None
            self.task_controller.cancel()
        elif isinstance(event, DeleteText):
            # Deleting the text that triggered the request voids it.
            pending = self.trigger or self.in_flight
            if pending is not None and event.cursor < pending.pos:
                self.trigger = None
                self.task_controller.cancel()

        if self.trigger is None:
            return None
        if self.trigger.kind is TriggerKind.AUTO:
            timeout = self.editor.config.completion_timeout
        else:
            timeout = self.editor.config.trigger_char_timeout
        return asyncio.get_running_loop().time() + timeout

    def finish_debounce(self) -> None:
        trigger = self.trigger
        self.trigger = None
        if trigger is None:
            return

        self.in_flight = trigger
        handle = self.task_controller.restart()

        def job(editor: Editor, compositor: Compositor) -> None:
            request_completions(trigger, handle, editor, compositor)

        self.editor.handlers.jobs.dispatch_blocking(job)

    async def run(self) -> None:
        """Consume events forever, firing requests when debounces expire."""
        events = self.editor.handlers.completions
        loop = asyncio.get_running_loop()
        deadline: float | None = None

        while True:
            if deadline is None:
                event = await events.get()
            else:
                try:
                    event = await asyncio.wait_for(
                        events.get(), max(0.0, deadline - loop.time())
                    )
                except asyncio.TimeoutError:
                    deadline = None
                    self.finish_debounce()
                    continue
            deadline = self.handle_event(event)


def _completion_params(
    doc: Document, cursor: int, context: CompletionContext
) -> CompletionParams:
    return CompletionParams(
        text_document=TextDocumentIdentifier(uri=doc.uri),
        position=doc.position_at(cursor),
        context=context,
    )


def _completion_context(
    source: CompletionSource, trigger: Trigger, trigger_text: str
) -> CompletionContext:
    if trigger.kind is not TriggerKind.MANUAL:
        for trigger_char in source.trigger_characters:
            if trigger_char and trigger_text.endswith(trigger_char):
                return CompletionContext(
                    trigger_kind=CompletionTriggerKind.TriggerCharacter,
                    trigger_character=trigger_char,
                )
    return CompletionContext(trigger_kind=CompletionTriggerKind.Invoked)


def request_completions(
    trigger: Trigger,
    handle: TaskHandle,
    editor: Editor,
    compositor: Compositor,
) -> None:
    """Issue a wave of requests for ``trigger`` (runs on the owner loop)."""
    if handle.is_canceled():
        return

    view, doc = editor.current()
    if compositor.editor_view.completion is not None or editor.mode != Mode.INSERT:
        return

    cursor = doc.selection(view.id)
    if trigger.view != view.id or trigger.doc != doc.id or cursor < trigger.pos:
        return

    # Request at the current cursor: whatever was typed since the trigger is
    # narrowed down by the popup filter.
    trigger = replace(trigger, pos=cursor)
    trigger_text = doc.text[:cursor]

    requests = PendingRequests()
    for source in doc.completion_sources():
        context = _completion_context(source, trigger, trigger_text)
        requests.spawn(source.complete(_completion_params(doc, cursor, context)))

    if doc.path_completion_enabled():
        path_request = path_completion(doc, cursor)
        if path_request is not None:
            requests.spawn(path_request)

    if requests.is_empty():
        return

    savepoint = doc.savepoint(view.id)
    spawn_completion_task(
        editor,
        collect_completions(
            requests,
            trigger,
            handle,
            savepoint,
            editor.handlers.jobs,
            editor.config.completion_collect_window,
        ),
        handle,
    )


async def collect_completions(
    requests: PendingRequests,
    trigger: Trigger,
    handle: TaskHandle,
    savepoint: SavePoint,
    jobs: Jobs,
    collect_window: float,
) -> None:
    """
    Drive one wave: open the popup from the first batch, then merge the rest.

    The first informative reply starts a short window during which further
    replies are gathered into the same batch.
    """
    items: dict[CompletionProvider, list[CompletionItem]] = {}
    incomplete: dict[CompletionProvider, int] = {}
    shown = False

    def take(response: CompletionResponse) -> None:
        items[response.provider] = list(response.items)
        if response.incomplete:
            incomplete[response.provider] = 0
        else:
            incomplete.pop(response.provider, None)

    try:
        first = await handle_response(requests, False)
        if first is None:
            return
        take(first)

        loop = asyncio.get_running_loop()
        deadline = loop.time() + collect_window
        while not requests.is_empty():
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            try:
                response = await handle_response(requests, False, remaining)
            except asyncio.TimeoutError:
                break
            if response is None:
                break
            take(response)

        def job(editor: Editor, compositor: Compositor) -> None:
            if handle.is_canceled():
                _release_savepoint(savepoint)(editor, compositor)
                return
            show_completion(editor, compositor, items, incomplete, trigger, savepoint)

        shown = True
        await jobs.dispatch(job)

        if not requests.is_empty():
            await replace_completions(handle, requests, False, jobs)
    finally:
        requests.abort_all()
        if not shown:
            jobs.dispatch_blocking(_release_savepoint(savepoint))


def _release_savepoint(savepoint: SavePoint) -> Job:
    def job(editor: Editor, compositor: Compositor) -> None:
        doc = editor.documents.get(savepoint.doc)
        if doc is not None:
            doc.release_savepoint(savepoint)

    return job


def request_incomplete_completion_list(
    editor: Editor, ui: Completion, handle: TaskHandle
) -> None:
    """
    Re-query providers whose lists are incomplete.

    A provider is skipped once it has delivered ``max_incomplete_requeries``
    incremental pages. Path completion lists are never incomplete.
    """
    view, doc = editor.current()
    limit = editor.config.max_incomplete_requeries

    sources = []
    for provider, pages in ui.incomplete_completion_lists.items():
        if provider.is_path or pages >= limit:
            continue
        source = editor.completion_source(doc, provider)
        if source is not None:
            sources.append(source)
    if not sources:
        return

    cursor = doc.selection(view.id)
    context = CompletionContext(
        trigger_kind=CompletionTriggerKind.TriggerForIncompleteCompletions
    )
    requests = PendingRequests()
    for source in sources:
        requests.spawn(source.complete(_completion_params(doc, cursor, context)))

    spawn_completion_task(
        editor,
        replace_completions(handle, requests, True, editor.handlers.jobs),
        handle,
    )
