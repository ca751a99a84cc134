"""Tests for the completion session state machine."""

import pytest

from editcomplete.completion.hooks import SessionAction, completion_action
from editcomplete.completion.types import AutoTrigger, Cancel, DeleteText, TriggerChar
from editcomplete.editor.commands import Command, CommandKind
from editcomplete.editor.editor import Mode

from tests.helpers import FakeSource, make_app


def drain(app):
    events = []
    queue = app.editor.handlers.completions
    while not queue.empty():
        events.append(queue.get_nowait())
    return events


# ============================================================================
# Transition table
# ============================================================================


@pytest.mark.parametrize(
    "kind",
    [
        CommandKind.DELETE_CHAR_FORWARD,
        CommandKind.DELETE_WORD_FORWARD,
        CommandKind.COMPLETION,
    ],
)
def test_active_ignored(kind):
    assert completion_action(kind, session_active=True) is SessionAction.NONE


def test_active_backward_delete_updates_filter():
    assert (
        completion_action(CommandKind.DELETE_CHAR_BACKWARD, True)
        is SessionAction.UPDATE_FILTER
    )


@pytest.mark.parametrize(
    "kind", [CommandKind.OTHER, CommandKind.INSERT_MODE, CommandKind.APPEND_MODE]
)
def test_active_anything_else_clears(kind):
    assert completion_action(kind, True) is SessionAction.CLEAR


@pytest.mark.parametrize(
    "kind",
    [
        CommandKind.DELETE_CHAR_BACKWARD,
        CommandKind.DELETE_CHAR_FORWARD,
        CommandKind.DELETE_WORD_FORWARD,
    ],
)
def test_inactive_deletes_emit_delete_text(kind):
    assert completion_action(kind, False) is SessionAction.DELETE_TEXT


@pytest.mark.parametrize(
    "kind", [CommandKind.COMPLETION, CommandKind.INSERT_MODE, CommandKind.APPEND_MODE]
)
def test_inactive_ignored(kind):
    assert completion_action(kind, False) is SessionAction.NONE


def test_inactive_anything_else_cancels():
    assert completion_action(CommandKind.OTHER, False) is SessionAction.CANCEL


def test_command_kinds():
    assert Command.MOVE_CHAR_LEFT.kind is CommandKind.OTHER
    assert Command.INSERT_NEWLINE.kind is CommandKind.OTHER
    assert Command.DELETE_CHAR_BACKWARD.kind is CommandKind.DELETE_CHAR_BACKWARD
    assert Command.APPEND_MODE.kind is CommandKind.APPEND_MODE


# ============================================================================
# Hooks
# ============================================================================


@pytest.mark.asyncio
async def test_hooks_ignore_normal_mode():
    app = make_app("hello", [FakeSource(trigger_characters=["."])])

    for command in Command:
        if command in (Command.INSERT_MODE, Command.APPEND_MODE):
            continue
        app.execute(command)
    app.insert_char(".")

    assert app.editor.mode == Mode.NORMAL
    assert drain(app) == []


@pytest.mark.asyncio
async def test_entering_insert_mode_runs_trigger_evaluator():
    app = make_app("hello", [FakeSource()])

    app.execute(Command.INSERT_MODE)

    assert [type(e) for e in drain(app)] == [AutoTrigger]


@pytest.mark.asyncio
async def test_leaving_insert_mode_cancels():
    app = make_app("", [FakeSource()])
    app.execute(Command.INSERT_MODE)
    drain(app)

    app.execute(Command.NORMAL_MODE)

    assert drain(app) == [Cancel()]


@pytest.mark.asyncio
async def test_movement_without_session_cancels():
    app = make_app("", [FakeSource()])
    app.execute(Command.INSERT_MODE)
    drain(app)

    app.execute(Command.MOVE_CHAR_LEFT)

    assert drain(app) == [Cancel()]


@pytest.mark.asyncio
async def test_delete_without_session_sends_delete_text():
    app = make_app("ab", [FakeSource()])
    app.execute(Command.INSERT_MODE)
    drain(app)

    app.execute(Command.DELETE_CHAR_BACKWARD)

    assert drain(app) == [DeleteText(cursor=1)]


@pytest.mark.asyncio
async def test_inserted_character_runs_trigger_evaluator():
    app = make_app("foo", [FakeSource(trigger_characters=["."])])
    app.execute(Command.INSERT_MODE)
    drain(app)

    app.insert_char(".")

    events = drain(app)
    assert [type(e) for e in events] == [TriggerChar]
    assert events[0].cursor == 4
