"""
Application wiring.

Creates the editor, compositor, hook registry and completion handler, and
runs the owner loop (the job queue) next to the request handler.
"""

from __future__ import annotations

import asyncio
from typing import Any

from editcomplete.completion.hooks import register_hooks
from editcomplete.completion.request import CompletionHandler
from editcomplete.config import CompletionConfig
from editcomplete.editor.commands import Command, Context
from editcomplete.editor.editor import Editor, Mode
from editcomplete.editor.graphics import Rect
from editcomplete.editor.hooks import HookRegistry, PostCommand, PostInsertChar
from editcomplete.ui.completion import Completion
from editcomplete.ui.compositor import Compositor
from editcomplete.ui.signature_help import SignatureHelp


class Application:
    """
    An editor session with completion.

    Usage:
        app = Application()
        app.editor.open("fn main", language_servers=[source])
        app.start()
        app.execute(Command.APPEND_MODE)
        app.insert_char("(")
        popup = await app.wait_for_completion()
        await app.stop()
    """

    def __init__(
        self,
        editor: Editor | None = None,
        size: Rect = Rect(0, 0, 80, 24),
        config: CompletionConfig | None = None,
    ) -> None:
        self.editor = editor or Editor(config)
        self.compositor = Compositor(size)
        self.hooks = HookRegistry(self.editor)
        register_hooks(self.hooks)
        self.handler = CompletionHandler(self.editor)
        self._tasks: list[asyncio.Task[Any]] = []

    @property
    def completion(self) -> Completion | None:
        """The open completion popup, if any."""
        return self.compositor.editor_view.completion

    def start(self) -> None:
        """Start the owner loop and the request handler on the running loop."""
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(
                self.editor.handlers.jobs.run(self.editor, self.compositor),
                name="editcomplete-jobs",
            ),
            asyncio.create_task(self.handler.run(), name="editcomplete-completion"),
        ]

    async def stop(self) -> None:
        tasks = self._tasks + list(self.editor.handlers.background_tasks)
        self._tasks = []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def execute(self, command: Command) -> None:
        """Run an editor command, then the hooks and UI callbacks it caused."""
        cx = Context(self.editor, self.hooks)
        command.execute(cx)
        self.hooks.broadcast_post_command(
            PostCommand(command, cx, completion_active=self.completion is not None)
        )
        self._run_callbacks(cx)

    def insert_char(self, c: str) -> None:
        """Type a character. Outside insert mode this does nothing."""
        if self.editor.mode != Mode.INSERT:
            return
        view, doc = self.editor.current()
        doc.insert(view.id, c)

        cx = Context(self.editor, self.hooks)
        self.hooks.broadcast_post_insert_char(
            PostInsertChar(c, cx, completion_active=self.completion is not None)
        )
        self._run_callbacks(cx)

    def type_text(self, text: str) -> None:
        for c in text:
            self.insert_char(c)

    def set_mode(self, mode: Mode) -> None:
        cx = Context(self.editor, self.hooks)
        cx.switch_mode(mode)
        self._run_callbacks(cx)

    def show_signature_help(self, popup: SignatureHelp) -> None:
        self.compositor.push(popup)

    def _run_callbacks(self, cx: Context) -> None:
        while cx.callback:
            callback = cx.callback.pop(0)
            callback(self.compositor, cx)

    async def wait_for_completion(self, timeout: float = 1.0) -> Completion | None:
        """Wait until a completion popup is open; None on timeout."""

        async def poll() -> Completion:
            while self.completion is None:
                await asyncio.sleep(0.005)
            return self.completion

        try:
            return await asyncio.wait_for(poll(), timeout)
        except asyncio.TimeoutError:
            return None
