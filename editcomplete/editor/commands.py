"""
Editor commands.

Commands form a closed set. The completion handlers only care about a few
of them; ``Command.kind`` folds every other command into
``CommandKind.OTHER``.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING

from editcomplete.editor.editor import Editor, Mode
from editcomplete.editor.hooks import HookRegistry, OnModeSwitch

if TYPE_CHECKING:
    from editcomplete.ui.compositor import Compositor


Callback = Callable[["Compositor", "Context"], None]


class Context:
    """
    What a command (or a hook reacting to it) gets to work with.

    Attributes:
        callback: UI updates to run once the command and its hooks finished.
    """

    def __init__(self, editor: Editor, hooks: HookRegistry) -> None:
        self.editor = editor
        self.hooks = hooks
        self.callback: list[Callback] = []

    def switch_mode(self, mode: Mode) -> None:
        old_mode = self.editor.mode
        if old_mode == mode:
            return
        self.editor.mode = mode
        self.hooks.broadcast_on_mode_switch(OnModeSwitch(old_mode, mode, self))


class CommandKind(Enum):
    """How the completion handlers classify a command."""

    DELETE_CHAR_BACKWARD = "delete_char_backward"
    DELETE_CHAR_FORWARD = "delete_char_forward"
    DELETE_WORD_FORWARD = "delete_word_forward"
    COMPLETION = "completion"
    INSERT_MODE = "insert_mode"
    APPEND_MODE = "append_mode"
    OTHER = "other"


# ===== Command implementations =====
def move_char_left(cx: Context) -> None:
    view, doc = cx.editor.current()
    doc.set_selection(view.id, doc.selection(view.id) - 1)


def move_char_right(cx: Context) -> None:
    view, doc = cx.editor.current()
    doc.set_selection(view.id, doc.selection(view.id) + 1)


def _move_line(cx: Context, delta: int) -> None:
    view, doc = cx.editor.current()
    lines = doc.text.split("\n")
    line, col = doc.line_col_at(doc.selection(view.id))
    target = max(0, min(line + delta, len(lines) - 1))
    offset = sum(len(text) + 1 for text in lines[:target])
    doc.set_selection(view.id, offset + min(col, len(lines[target])))


def move_line_up(cx: Context) -> None:
    _move_line(cx, -1)


def move_line_down(cx: Context) -> None:
    _move_line(cx, 1)


def goto_line_start(cx: Context) -> None:
    view, doc = cx.editor.current()
    cursor = doc.selection(view.id)
    doc.set_selection(view.id, doc.text.rfind("\n", 0, cursor) + 1)


def goto_line_end(cx: Context) -> None:
    view, doc = cx.editor.current()
    end = doc.text.find("\n", doc.selection(view.id))
    doc.set_selection(view.id, len(doc.text) if end == -1 else end)


def delete_char_backward(cx: Context) -> None:
    view, doc = cx.editor.current()
    doc.delete_char_backward(view.id)


def delete_char_forward(cx: Context) -> None:
    view, doc = cx.editor.current()
    doc.delete_char_forward(view.id)


def delete_word_forward(cx: Context) -> None:
    view, doc = cx.editor.current()
    doc.delete_word_forward(view.id)


def insert_newline(cx: Context) -> None:
    view, doc = cx.editor.current()
    doc.insert(view.id, "\n")


def completion(cx: Context) -> None:
    if cx.editor.mode != Mode.INSERT:
        return
    view, doc = cx.editor.current()
    cx.editor.handlers.trigger_completions(doc.selection(view.id), doc.id, view.id)


def insert_mode(cx: Context) -> None:
    cx.switch_mode(Mode.INSERT)


def append_mode(cx: Context) -> None:
    move_char_right(cx)
    cx.switch_mode(Mode.INSERT)


def normal_mode(cx: Context) -> None:
    if cx.editor.mode == Mode.INSERT:
        move_char_left(cx)
    cx.switch_mode(Mode.NORMAL)


class Command(Enum):
    MOVE_CHAR_LEFT = "move_char_left"
    MOVE_CHAR_RIGHT = "move_char_right"
    MOVE_LINE_UP = "move_line_up"
    MOVE_LINE_DOWN = "move_line_down"
    GOTO_LINE_START = "goto_line_start"
    GOTO_LINE_END = "goto_line_end"
    DELETE_CHAR_BACKWARD = "delete_char_backward"
    DELETE_CHAR_FORWARD = "delete_char_forward"
    DELETE_WORD_FORWARD = "delete_word_forward"
    INSERT_NEWLINE = "insert_newline"
    COMPLETION = "completion"
    INSERT_MODE = "insert_mode"
    APPEND_MODE = "append_mode"
    NORMAL_MODE = "normal_mode"

    @property
    def kind(self) -> CommandKind:
        return _COMMAND_KINDS.get(self, CommandKind.OTHER)

    def execute(self, cx: Context) -> None:
        _COMMANDS[self](cx)


_COMMANDS: dict[Command, Callable[[Context], None]] = {
    Command.MOVE_CHAR_LEFT: move_char_left,
    Command.MOVE_CHAR_RIGHT: move_char_right,
    Command.MOVE_LINE_UP: move_line_up,
    Command.MOVE_LINE_DOWN: move_line_down,
    Command.GOTO_LINE_START: goto_line_start,
    Command.GOTO_LINE_END: goto_line_end,
    Command.DELETE_CHAR_BACKWARD: delete_char_backward,
    Command.DELETE_CHAR_FORWARD: delete_char_forward,
    Command.DELETE_WORD_FORWARD: delete_word_forward,
    Command.INSERT_NEWLINE: insert_newline,
    Command.COMPLETION: completion,
    Command.INSERT_MODE: insert_mode,
    Command.APPEND_MODE: append_mode,
    Command.NORMAL_MODE: normal_mode,
}

_COMMAND_KINDS: dict[Command, CommandKind] = {
    Command.DELETE_CHAR_BACKWARD: CommandKind.DELETE_CHAR_BACKWARD,
    Command.DELETE_CHAR_FORWARD: CommandKind.DELETE_CHAR_FORWARD,
    Command.DELETE_WORD_FORWARD: CommandKind.DELETE_WORD_FORWARD,
    Command.COMPLETION: CommandKind.COMPLETION,
    Command.INSERT_MODE: CommandKind.INSERT_MODE,
    Command.APPEND_MODE: CommandKind.APPEND_MODE,
}
