"""
Completion session state machine.

Interprets every executed command, mode switch and inserted character while
in insert mode. A session is active while the completion popup is open.

Commands that lower-level input handling already takes care of are
allow-listed; any other command is treated as an unknown edit and ends the
session (or cancels pending requests when no session is open).
"""

from __future__ import annotations

from enum import Enum

from editcomplete.completion.request import request_incomplete_completion_list
from editcomplete.completion.trigger import trigger_auto_completion
from editcomplete.completion.types import Cancel, DeleteText
from editcomplete.editor.commands import CommandKind, Context
from editcomplete.editor.document import char_is_word
from editcomplete.editor.editor import Mode
from editcomplete.editor.hooks import (
    HookRegistry,
    OnModeSwitch,
    PostCommand,
    PostInsertChar,
)
from editcomplete.ui.compositor import Compositor


class SessionAction(Enum):
    NONE = "none"
    UPDATE_FILTER = "update_filter"
    CLEAR = "clear"
    DELETE_TEXT = "delete_text"
    CANCEL = "cancel"


_ACTIVE_IGNORED = frozenset(
    {
        CommandKind.DELETE_CHAR_FORWARD,
        CommandKind.DELETE_WORD_FORWARD,
        CommandKind.COMPLETION,
    }
)
_INACTIVE_DELETES = frozenset(
    {
        CommandKind.DELETE_CHAR_BACKWARD,
        CommandKind.DELETE_WORD_FORWARD,
        CommandKind.DELETE_CHAR_FORWARD,
    }
)
# Handled elsewhere; canceling here would undo their own triggering.
_INACTIVE_IGNORED = frozenset(
    {CommandKind.COMPLETION, CommandKind.INSERT_MODE, CommandKind.APPEND_MODE}
)


def completion_action(kind: CommandKind, session_active: bool) -> SessionAction:
    """Transition for a command executed in insert mode."""
    if session_active:
        if kind in _ACTIVE_IGNORED:
            return SessionAction.NONE
        if kind is CommandKind.DELETE_CHAR_BACKWARD:
            return SessionAction.UPDATE_FILTER
        return SessionAction.CLEAR

    if kind in _INACTIVE_DELETES:
        return SessionAction.DELETE_TEXT
    if kind in _INACTIVE_IGNORED:
        return SessionAction.NONE
    return SessionAction.CANCEL


def update_completion_filter(cx: Context, c: str | None) -> None:
    """Narrow (typed ``c``) or widen (``None``, a deletion) the open popup."""

    def callback(compositor: Compositor, cx: Context) -> None:
        editor_view = compositor.editor_view
        ui = editor_view.completion
        if ui is None:
            return

        ui.update_filter(c)
        if c is not None:
            closes = ui.is_empty() or not char_is_word(c)
        else:
            closes = ui.is_empty() or not ui.filter
        if closes:
            editor_view.clear_completion(cx.editor)
            # The closing keystroke may itself start a new session, e.g. a
            # trigger character typed right after a word.
            trigger_auto_completion(cx.editor, trigger_char_only=False)
            return

        handle = ui.incomplete_list_controller.restart()
        request_incomplete_completion_list(cx.editor, ui, handle)

    cx.callback.append(callback)


def clear_completions(cx: Context) -> None:
    def callback(compositor: Compositor, cx: Context) -> None:
        compositor.editor_view.clear_completion(cx.editor)

    cx.callback.append(callback)


def completion_post_command_hook(event: PostCommand) -> None:
    cx = event.cx
    if cx.editor.mode != Mode.INSERT:
        return

    action = completion_action(event.command.kind, event.completion_active)
    if action is SessionAction.UPDATE_FILTER:
        update_completion_filter(cx, None)
    elif action is SessionAction.CLEAR:
        clear_completions(cx)
    elif action is SessionAction.DELETE_TEXT:
        view, doc = cx.editor.current()
        cx.editor.handlers.send_completion_event(
            DeleteText(cursor=doc.selection(view.id))
        )
    elif action is SessionAction.CANCEL:
        cx.editor.handlers.send_completion_event(Cancel())


def completion_mode_switch_hook(event: OnModeSwitch) -> None:
    editor = event.cx.editor
    if event.old_mode == Mode.INSERT:
        editor.handlers.send_completion_event(Cancel())
        clear_completions(event.cx)
    elif event.new_mode == Mode.INSERT:
        trigger_auto_completion(editor, trigger_char_only=False)


def completion_post_insert_char_hook(event: PostInsertChar) -> None:
    if event.cx.editor.mode != Mode.INSERT:
        return
    if event.completion_active:
        update_completion_filter(event.cx, event.c)
    else:
        trigger_auto_completion(event.cx.editor, trigger_char_only=False)


def register_hooks(hooks: HookRegistry) -> None:
    hooks.add_post_command_hook(completion_post_command_hook)
    hooks.add_on_mode_switch_hook(completion_mode_switch_hook)
    hooks.add_post_insert_char_hook(completion_post_insert_char_hook)
