from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from lsprotocol.types import SignatureInformation

from editcomplete.editor.graphics import Rect

if TYPE_CHECKING:
    from editcomplete.editor.editor import Editor


class SignatureHelp:
    """
    Advisory popup listing the signatures of the call under the cursor.

    Sits on the line above the cursor, or below it on the first screen line.
    """

    ID = "signature-help"

    def __init__(
        self, signatures: Sequence[SignatureInformation], active_signature: int = 0
    ) -> None:
        self.id = self.ID
        self.signatures = list(signatures)
        self.active_signature = active_signature

    @property
    def label(self) -> str:
        if not self.signatures:
            return ""
        index = min(self.active_signature, len(self.signatures) - 1)
        return self.signatures[index].label

    def area(self, viewport: Rect, editor: Editor) -> Rect | None:
        view, doc = editor.current()
        cursor = view.screen_coords_at(doc, doc.selection(view.id))
        if cursor is None or not self.label:
            return None

        row, col = cursor
        width = min(len(self.label) + 2, viewport.width)
        x = max(viewport.x, min(col, viewport.right - width))
        y = row - 1 if row > viewport.y else row + 1
        if y >= viewport.bottom:
            return None
        return Rect(x, y, width, 1)
