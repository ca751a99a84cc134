"""Tests for the staleness guard and popup reconciliation."""

import pytest
from lsprotocol.types import MessageType, SignatureInformation

from editcomplete.completion.reconciler import apply_response, show_completion
from editcomplete.completion.types import (
    AutoTrigger,
    CompletionProvider,
    CompletionResponse,
    Trigger,
    TriggerKind,
)
from editcomplete.editor.editor import Mode
from editcomplete.editor.graphics import Rect
from editcomplete.ui.signature_help import SignatureHelp

from tests.helpers import FakeSource, items, labels, make_app

A = CompletionProvider.lsp(1)
B = CompletionProvider.lsp(2)


@pytest.fixture
def app():
    app = make_app("x = ", [FakeSource(1), FakeSource(2)])
    app.editor.mode = Mode.INSERT
    return app


def trigger_for(app, kind=TriggerKind.AUTO):
    view, doc = app.editor.current()
    return Trigger(view=view.id, doc=doc.id, pos=doc.selection(view.id), kind=kind)


def show(app, provider_items, incomplete=None, trigger=None):
    view, doc = app.editor.current()
    savepoint = doc.savepoint(view.id)
    shown = show_completion(
        app.editor,
        app.compositor,
        provider_items,
        incomplete or {},
        trigger or trigger_for(app),
        savepoint,
    )
    return shown, savepoint


def test_show_opens_popup(app):
    shown, savepoint = show(app, {A: items("alpha", "beta")})

    assert shown
    popup = app.compositor.editor_view.completion
    assert labels(popup.matches) == ["alpha", "beta"]
    assert popup.savepoint is savepoint


def test_show_rejected_outside_insert_mode(app):
    app.editor.mode = Mode.NORMAL

    shown, _ = show(app, {A: items("alpha")})

    assert not shown
    assert app.compositor.editor_view.completion is None
    _, doc = app.editor.current()
    assert doc.savepoints == ()


def test_show_rejected_for_other_view(app):
    trigger = trigger_for(app)
    _, doc = app.editor.current()
    app.editor.new_view(doc.id)

    shown, _ = show(app, {A: items("alpha")}, trigger=trigger)

    assert not shown
    assert any("stale" in m.message for m in app.editor.messages)


def test_show_accepts_moved_cursor(app):
    trigger = trigger_for(app)
    view, doc = app.editor.current()
    doc.insert(view.id, "al")

    shown, _ = show(app, {A: items("alpha", "other")}, trigger=trigger)

    assert shown
    assert labels(app.compositor.editor_view.completion.matches) == ["alpha"]


def test_first_writer_wins(app):
    show(app, {A: items("first")})

    shown, second = show(app, {B: items("second")})

    assert not shown
    popup = app.compositor.editor_view.completion
    assert labels(popup.matches) == ["first"]
    _, doc = app.editor.current()
    assert second not in doc.savepoints


def test_show_removes_overlapping_signature_help(app):
    app.show_signature_help(
        SignatureHelp([SignatureInformation(label="f(a, b)")])
    )
    view, doc = app.editor.current()
    # Cursor on the top row: signature help goes below, where the popup opens.
    assert view.screen_coords_at(doc, doc.selection(view.id))[0] == 0

    show(app, {A: items("alpha")})

    assert app.compositor.find_id(SignatureHelp.ID) is None


def test_show_keeps_distant_signature_help(app):
    view, doc = app.editor.current()
    doc.insert(view.id, "\n\n\n\n")
    app.show_signature_help(
        SignatureHelp([SignatureInformation(label="f(a, b)")])
    )

    show(app, {A: items("alpha")}, trigger=trigger_for(app))

    assert app.compositor.editor_view.completion is not None
    assert app.compositor.find_id(SignatureHelp.ID) is not None


def test_apply_merges_provider_contribution(app):
    show(app, {A: items("a1", "a2")})
    handle = app.editor.handlers.completion_tasks.restart()

    apply_response(
        app.editor,
        app.compositor,
        CompletionResponse(B, items("b1", "b2", "b3"), incomplete=True),
        handle,
    )

    popup = app.compositor.editor_view.completion
    assert len(popup.matches) == 5
    assert popup.incomplete_completion_lists == {B: 0}


def test_apply_replaces_previous_contribution(app):
    show(app, {A: items("a1", "a2")}, incomplete={A: 0})
    handle = app.editor.handlers.completion_tasks.restart()

    apply_response(
        app.editor, app.compositor, CompletionResponse(A, items("a3"), True), handle
    )

    popup = app.compositor.editor_view.completion
    assert labels(popup.matches) == ["a3"]
    assert popup.incomplete_completion_lists == {A: 1}


def test_apply_complete_reply_drops_incomplete_entry(app):
    show(app, {A: items("a1")}, incomplete={A: 0})
    handle = app.editor.handlers.completion_tasks.restart()

    apply_response(
        app.editor, app.compositor, CompletionResponse(A, items("a2")), handle
    )

    assert app.compositor.editor_view.completion.incomplete_completion_lists == {}


def test_apply_with_canceled_handle_is_noop(app):
    show(app, {A: items("a1")})
    controller = app.editor.handlers.completion_tasks
    handle = controller.restart()
    controller.restart()
    popup = app.compositor.editor_view.completion

    for _ in range(2):
        apply_response(
            app.editor, app.compositor, CompletionResponse(B, items("late")), handle
        )

    assert app.compositor.editor_view.completion is popup
    assert labels(popup.matches) == ["a1"]
    dropped = [m for m in app.editor.messages if "outdated" in m.message]
    assert len(dropped) == 2
    assert all(m.type == MessageType.Log for m in dropped)


@pytest.mark.asyncio
async def test_apply_emptying_popup_closes_and_retriggers(app):
    view, doc = app.editor.current()
    doc.insert(view.id, "ab")
    show(app, {A: items("abc")})
    handle = app.editor.handlers.completion_tasks.restart()

    apply_response(app.editor, app.compositor, CompletionResponse(A), handle)

    assert app.compositor.editor_view.completion is None
    assert doc.savepoints == ()
    event = app.editor.handlers.completions.get_nowait()
    assert isinstance(event, AutoTrigger)


def test_apply_without_popup_is_noop(app):
    handle = app.editor.handlers.completion_tasks.restart()

    apply_response(app.editor, app.compositor, CompletionResponse(A, items("a")), handle)

    assert app.compositor.editor_view.completion is None


def test_popup_area_flips_above_at_bottom():
    app = make_app("x")
    app.compositor.size = Rect(0, 0, 80, 3)
    app.editor.mode = Mode.INSERT
    view, doc = app.editor.current()
    doc.insert(view.id, "\n\n")

    show(app, {A: items("a", "b")})

    popup = app.compositor.editor_view.completion
    area = popup.area(view.screen_coords_at(doc, doc.selection(view.id)), Rect(0, 0, 80, 3))
    assert area == Rect(0, 0, 3, 2)
