from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Coroutine, Sequence
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from lsprotocol.types import LogMessageParams, MessageType

from editcomplete.completion.task import TaskController
from editcomplete.completion.types import (
    CompletionEvent,
    CompletionProvider,
    ManualTrigger,
)
from editcomplete.config import CompletionConfig
from editcomplete.editor.document import Document, DocumentId
from editcomplete.editor.graphics import Rect
from editcomplete.editor.view import View, ViewId
from editcomplete.errors import EditcompleteError
from editcomplete.ui.job import Jobs

if TYPE_CHECKING:
    from editcomplete.lsp.source import CompletionSource


logger = logging.getLogger("editcomplete")

MAX_MESSAGES = 256

_LOG_LEVELS = {
    MessageType.Error: logging.ERROR,
    MessageType.Warning: logging.WARNING,
    MessageType.Info: logging.INFO,
    MessageType.Log: logging.DEBUG,
}


class Mode(Enum):
    NORMAL = "normal"
    SELECT = "select"
    INSERT = "insert"


class Handlers:
    """
    Channels between the editor and its background handlers.

    Attributes:
        completions: Bounded queue of completion events for the
            request handler. Sending never blocks the owner loop.
        completion_tasks: Controller whose generation identifies the
            current wave of completion requests.
        jobs: Closures queued for the owner loop.
    """

    def __init__(self, editor: Editor, queue_size: int) -> None:
        self._editor = editor
        self.completions: asyncio.Queue[CompletionEvent] = asyncio.Queue(
            maxsize=queue_size
        )
        self.completion_tasks = TaskController()
        self.jobs = Jobs()
        self._tasks: set[asyncio.Task[Any]] = set()

    def send_completion_event(self, event: CompletionEvent) -> bool:
        """Queue an event for the request handler; drop it if the queue is full."""
        try:
            self.completions.put_nowait(event)
        except asyncio.QueueFull:
            self._editor.window_log_message(
                LogMessageParams(
                    type=MessageType.Warning,
                    message=f"Completion event queue full, dropping {event!r}",
                )
            )
            return False
        return True

    def trigger_completions(self, cursor: int, doc: DocumentId, view: ViewId) -> None:
        self.send_completion_event(ManualTrigger(cursor=cursor, doc=doc, view=view))

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        """Run background work, keeping a reference until it finishes."""
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def background_tasks(self) -> frozenset[asyncio.Task[Any]]:
        return frozenset(self._tasks)


class Editor:
    """
    Documents, views, mode and configuration.

    Attributes:
        config: Current completion configuration. Replace it to reload.
        messages: Most recent log messages, oldest first.
    """

    def __init__(self, config: CompletionConfig | None = None) -> None:
        self.config = config or CompletionConfig()
        self.mode = Mode.NORMAL
        self.documents: dict[DocumentId, Document] = {}
        self.views: dict[ViewId, View] = {}
        self.focused: ViewId | None = None
        self.handlers = Handlers(self, self.config.event_queue_size)
        self.messages: deque[LogMessageParams] = deque(maxlen=MAX_MESSAGES)

        self._next_document_id = 1
        self._next_view_id = 1

    def open(
        self,
        text: str = "",
        path: Path | None = None,
        language_id: str = "plaintext",
        language_servers: Sequence[CompletionSource] | None = None,
        area: Rect = Rect(0, 0, 80, 24),
    ) -> View:
        """Open a document in a new focused view."""
        doc_id = DocumentId(self._next_document_id)
        self._next_document_id += 1
        doc = Document(
            doc_id,
            text,
            path=path,
            language_id=language_id,
            language_servers=language_servers,
            config=lambda: self.config,
        )
        self.documents[doc_id] = doc
        return self.new_view(doc_id, area)

    def new_view(self, doc_id: DocumentId, area: Rect = Rect(0, 0, 80, 24)) -> View:
        view_id = ViewId(self._next_view_id)
        self._next_view_id += 1
        view = View(id=view_id, doc=doc_id, area=area)
        self.views[view_id] = view
        self.documents[doc_id].set_selection(view_id, 0)
        self.focused = view_id
        return view

    def current(self) -> tuple[View, Document]:
        """The focused view and its document."""
        if self.focused is None:
            raise EditcompleteError("no view is focused")
        view = self.views[self.focused]
        return view, self.documents[view.doc]

    def completion_source(
        self, doc: Document, provider: CompletionProvider
    ) -> CompletionSource | None:
        for source in doc.completion_sources():
            if source.provider == provider:
                return source
        return None

    def window_log_message(self, params: LogMessageParams) -> None:
        """Record a message in the editor log."""
        self.messages.append(params)
        logger.log(_LOG_LEVELS.get(params.type, logging.DEBUG), params.message)
