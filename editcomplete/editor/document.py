"""
Documents held by the editor.

A document owns its text and the primary cursor of every view showing it.
Cursors are character offsets into the text; they are converted to LSP
positions (UTF-16 columns) only when a request goes out.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, NewType

from lsprotocol.types import Position

from editcomplete.config import CompletionConfig

if TYPE_CHECKING:
    from editcomplete.editor.view import ViewId
    from editcomplete.lsp.source import CompletionSource


DocumentId = NewType("DocumentId", int)


def char_is_word(c: str) -> bool:
    """Word characters are alphanumerics and the underscore."""
    return c.isalnum() or c == "_"


@dataclass(eq=False)
class SavePoint:
    """Snapshot of a document's text and one view's cursor."""

    doc: DocumentId
    view: ViewId
    text: str
    cursor: int


class Document:
    """An open text buffer."""

    def __init__(
        self,
        doc_id: DocumentId,
        text: str = "",
        path: Path | None = None,
        language_id: str = "plaintext",
        language_servers: Sequence[CompletionSource] | None = None,
        path_completion: bool | None = None,
        config: Callable[[], CompletionConfig] | None = None,
    ) -> None:
        self.id = doc_id
        self.text = text
        self.path = path
        self.language_id = language_id
        self.language_servers: list[CompletionSource] = list(language_servers or [])
        # None defers to the editor-wide setting.
        self.path_completion = path_completion
        self.version = 0

        self._config = config or CompletionConfig
        self._selections: dict[ViewId, int] = {}
        self._savepoints: list[SavePoint] = []

    @property
    def uri(self) -> str:
        if self.path is not None:
            return self.path.resolve().as_uri()
        return f"untitled:document-{self.id}"

    # ===== Selections =====
    def selection(self, view_id: ViewId) -> int:
        """Primary cursor of the given view."""
        return self._selections.get(view_id, 0)

    def set_selection(self, view_id: ViewId, cursor: int) -> None:
        self._selections[view_id] = max(0, min(cursor, len(self.text)))

    # ===== Capabilities =====
    def completion_sources(self) -> list[CompletionSource]:
        """Attached providers with the completion feature, without duplicates."""
        seen = set()
        sources = []
        for source in self.language_servers:
            if not source.supports_completion or source.provider in seen:
                continue
            seen.add(source.provider)
            sources.append(source)
        return sources

    def path_completion_enabled(self) -> bool:
        if self.path_completion is not None:
            return self.path_completion
        return self._config().path_completion

    # ===== Editing =====
    def insert(self, view_id: ViewId, text: str) -> None:
        """Insert text at the view's cursor and move the cursor after it."""
        at = self.selection(view_id)
        self._replace(at, at, text)
        self._selections[view_id] = at + len(text)

    def delete_char_backward(self, view_id: ViewId) -> str | None:
        at = self.selection(view_id)
        if at == 0:
            return None
        removed = self.text[at - 1]
        self._replace(at - 1, at, "")
        return removed

    def delete_char_forward(self, view_id: ViewId) -> str | None:
        at = self.selection(view_id)
        if at >= len(self.text):
            return None
        removed = self.text[at]
        self._replace(at, at + 1, "")
        return removed

    def delete_word_forward(self, view_id: ViewId) -> str | None:
        """Delete the word after the cursor, or a single character if none."""
        at = self.selection(view_id)
        end = at
        while end < len(self.text) and char_is_word(self.text[end]):
            end += 1
        if end == at:
            return self.delete_char_forward(view_id)
        removed = self.text[at:end]
        self._replace(at, end, "")
        return removed

    def _replace(self, start: int, end: int, text: str) -> None:
        self.text = self.text[:start] + text + self.text[end:]
        self.version += 1

        delta = len(text) - (end - start)
        for view_id, cursor in self._selections.items():
            if cursor >= end:
                self._selections[view_id] = cursor + delta
            elif cursor > start:
                self._selections[view_id] = start

    # ===== Save points =====
    def savepoint(self, view_id: ViewId) -> SavePoint:
        """Snapshot the text and the view's cursor."""
        savepoint = SavePoint(
            doc=self.id,
            view=view_id,
            text=self.text,
            cursor=self.selection(view_id),
        )
        self._savepoints.append(savepoint)
        return savepoint

    def release_savepoint(self, savepoint: SavePoint) -> None:
        if savepoint in self._savepoints:
            self._savepoints.remove(savepoint)

    @property
    def savepoints(self) -> tuple[SavePoint, ...]:
        return tuple(self._savepoints)

    # ===== Positions =====
    def position_at(self, offset: int) -> Position:
        """Convert a character offset to an LSP position."""
        offset = max(0, min(offset, len(self.text)))
        line = self.text.count("\n", 0, offset)
        line_start = self.text.rfind("\n", 0, offset) + 1
        prefix = self.text[line_start:offset]
        return Position(line=line, character=len(prefix.encode("utf-16-le")) // 2)

    def line_col_at(self, offset: int) -> tuple[int, int]:
        """Line and column (in characters) of an offset."""
        line = self.text.count("\n", 0, offset)
        line_start = self.text.rfind("\n", 0, offset) + 1
        return line, offset - line_start
