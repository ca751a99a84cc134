from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, NewType

from editcomplete.editor.graphics import Rect

if TYPE_CHECKING:
    from editcomplete.editor.document import Document, DocumentId


ViewId = NewType("ViewId", int)


@dataclass
class View:
    """A window onto a document."""

    id: ViewId
    doc: DocumentId
    area: Rect
    # First visible line.
    offset: int = 0

    def screen_coords_at(self, doc: Document, pos: int) -> tuple[int, int] | None:
        """Screen row and column of a character offset, None if off screen."""
        line, col = doc.line_col_at(pos)
        row = line - self.offset
        if row < 0 or row >= self.area.height or col >= self.area.width:
            return None
        return self.area.y + row, self.area.x + col
