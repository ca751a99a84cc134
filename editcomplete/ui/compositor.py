from __future__ import annotations

from typing import Protocol

from editcomplete.editor.graphics import Rect
from editcomplete.ui.editor_view import EditorView


class Layer(Protocol):
    id: str


class Compositor:
    """
    Stack of UI layers above the editor view.

    Popups are identified by their ``id``; at most one layer per id.
    """

    def __init__(self, size: Rect, editor_view: EditorView | None = None) -> None:
        self.size = size
        self.editor_view = editor_view or EditorView()
        self._layers: list[Layer] = []

    def push(self, layer: Layer) -> None:
        self.remove(layer.id)
        self._layers.append(layer)

    def find_id(self, layer_id: str) -> Layer | None:
        for layer in self._layers:
            if layer.id == layer_id:
                return layer
        return None

    def remove(self, layer_id: str) -> Layer | None:
        layer = self.find_id(layer_id)
        if layer is not None:
            self._layers.remove(layer)
        return layer
