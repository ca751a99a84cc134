"""
Staleness guard and popup reconciliation.

Everything here runs on the owner loop. Replies are re-validated against the
current editor state before they touch the popup: a canceled handle, another
view or document, or a mode other than insert means the reply is stale.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from lsprotocol.types import CompletionItem, LogMessageParams, MessageType

from editcomplete.completion.task import TaskHandle
from editcomplete.completion.trigger import trigger_auto_completion
from editcomplete.completion.types import CompletionProvider, CompletionResponse, Trigger
from editcomplete.editor.document import SavePoint
from editcomplete.editor.editor import Mode
from editcomplete.ui.signature_help import SignatureHelp

if TYPE_CHECKING:
    from editcomplete.editor.editor import Editor
    from editcomplete.ui.compositor import Compositor


def apply_response(
    editor: Editor,
    compositor: Compositor,
    response: CompletionResponse,
    handle: TaskHandle,
) -> None:
    """Merge a late reply into the open popup."""
    if handle.is_canceled():
        editor.window_log_message(
            LogMessageParams(
                type=MessageType.Log,
                message=f"Dropping outdated completion response from {response.provider}",
            )
        )
        return

    editor_view = compositor.editor_view
    completion = editor_view.completion
    if completion is None:
        return

    completion.replace_provider_completions(response)
    if completion.is_empty():
        editor_view.clear_completion(editor)
        # Real results can remove the only reason the session existed;
        # re-evaluate so a trigger character typed meanwhile still counts.
        trigger_auto_completion(editor, trigger_char_only=False)


def show_completion(
    editor: Editor,
    compositor: Compositor,
    items: Mapping[CompletionProvider, Sequence[CompletionItem]],
    incomplete_completion_lists: Mapping[CompletionProvider, int],
    trigger: Trigger,
    savepoint: SavePoint,
) -> bool:
    """
    Open a session from the first batch of replies.

    Returns False when the batch was rejected: the user left insert mode,
    switched view or document, or another session is already open.
    """
    view, doc = editor.current()
    # Compare identities only; the cursor may have legitimately moved on.
    if editor.mode != Mode.INSERT or view.id != trigger.view or doc.id != trigger.doc:
        editor.window_log_message(
            LogMessageParams(
                type=MessageType.Log,
                message="Discarding stale completion results",
            )
        )
        _release(editor, savepoint)
        return False

    size = compositor.size
    editor_view = compositor.editor_view
    if editor_view.completion is not None:
        _release(editor, savepoint)
        return False

    completion_area = editor_view.set_completion(
        editor,
        savepoint,
        items,
        incomplete_completion_lists,
        trigger.pos,
        size,
    )

    signature_help = compositor.find_id(SignatureHelp.ID)
    signature_help_area = (
        signature_help.area(size, editor)
        if isinstance(signature_help, SignatureHelp)
        else None
    )
    if (
        completion_area is not None
        and signature_help_area is not None
        and completion_area.intersects(signature_help_area)
    ):
        compositor.remove(SignatureHelp.ID)

    return editor_view.completion is not None


def _release(editor: Editor, savepoint: SavePoint) -> None:
    doc = editor.documents.get(savepoint.doc)
    if doc is not None:
        doc.release_savepoint(savepoint)
