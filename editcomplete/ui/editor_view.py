from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from lsprotocol.types import CompletionItem

from editcomplete.completion.types import CompletionProvider
from editcomplete.editor.document import SavePoint, char_is_word
from editcomplete.editor.graphics import Rect
from editcomplete.ui.completion import Completion

if TYPE_CHECKING:
    from editcomplete.editor.editor import Editor


class EditorView:
    """
    The main editing surface. Owns the completion session.

    Attributes:
        completion: The open completion popup, if any.
    """

    def __init__(self) -> None:
        self.completion: Completion | None = None

    def set_completion(
        self,
        editor: Editor,
        savepoint: SavePoint,
        items: Mapping[CompletionProvider, Sequence[CompletionItem]],
        incomplete_completion_lists: Mapping[CompletionProvider, int],
        trigger_offset: int,
        size: Rect,
    ) -> Rect | None:
        """
        Open the completion popup.

        The initial filter is the word typed up to the cursor. Returns the
        popup area, or None when nothing matched and no popup was opened.
        """
        view, doc = editor.current()
        cursor = doc.selection(view.id)

        start = min(trigger_offset, cursor)
        while start > 0 and char_is_word(doc.text[start - 1]):
            start -= 1

        completion = Completion(
            items,
            incomplete_completion_lists,
            trigger_offset,
            doc.text[start:cursor],
            savepoint,
        )
        if completion.is_empty():
            doc.release_savepoint(savepoint)
            return None

        self.completion = completion
        return completion.area(view.screen_coords_at(doc, cursor), size)

    def clear_completion(self, editor: Editor) -> None:
        """Close the popup and cancel outstanding completion work."""
        completion = self.completion
        self.completion = None
        editor.handlers.completion_tasks.cancel()
        if completion is None:
            return

        completion.incomplete_list_controller.cancel()
        doc = editor.documents.get(completion.savepoint.doc)
        if doc is not None:
            doc.release_savepoint(completion.savepoint)
