"""
Completion popup state.

The popup keeps each provider's latest contribution separately so a later
reply from one provider replaces only that provider's items. The visible
list is the concatenation of all contributions, narrowed by the filter.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from lsprotocol.types import CompletionItem

from editcomplete.completion.task import TaskController
from editcomplete.completion.types import CompletionProvider, CompletionResponse
from editcomplete.editor.document import SavePoint
from editcomplete.editor.graphics import Rect

MAX_POPUP_HEIGHT = 10
# Cells around the label: one padding cell on each side.
POPUP_PADDING = 2


def filter_text(item: CompletionItem) -> str:
    return item.filter_text or item.label


def matches_filter(item: CompletionItem, pattern: str) -> bool:
    """Case-insensitive subsequence match."""
    if not pattern:
        return True
    chars = iter(filter_text(item).lower())
    return all(c in chars for c in pattern.lower())


class Completion:
    """
    An open completion session.

    Attributes:
        filter: Text typed since the completed word started.
        incomplete_completion_lists: Providers whose latest list was
            incomplete, mapped to the number of incremental pages accepted.
        savepoint: Document snapshot owned while the session is open.
        incomplete_list_controller: Generation of the incremental
            re-queries issued for this session.
    """

    def __init__(
        self,
        items: Mapping[CompletionProvider, Sequence[CompletionItem]],
        incomplete_completion_lists: Mapping[CompletionProvider, int],
        trigger_offset: int,
        filter: str,
        savepoint: SavePoint,
    ) -> None:
        self._items: dict[CompletionProvider, list[CompletionItem]] = {
            provider: list(provider_items) for provider, provider_items in items.items()
        }
        self.incomplete_completion_lists = dict(incomplete_completion_lists)
        self.trigger_offset = trigger_offset
        self.filter = filter
        self.savepoint = savepoint
        self.incomplete_list_controller = TaskController()
        self._matches: list[CompletionItem] = []
        self._refilter()

    @property
    def matches(self) -> list[CompletionItem]:
        """Items visible under the current filter."""
        return list(self._matches)

    def provider_items(self, provider: CompletionProvider) -> list[CompletionItem]:
        return list(self._items.get(provider, []))

    @property
    def providers(self) -> list[CompletionProvider]:
        return list(self._items)

    def is_empty(self) -> bool:
        return not self._matches

    def update_filter(self, c: str | None) -> None:
        """Append a typed character, or drop the last one for ``None``."""
        if c is None:
            self.filter = self.filter[:-1]
        else:
            self.filter += c
        self._refilter()

    def replace_provider_completions(self, response: CompletionResponse) -> None:
        """Replace one provider's contribution with its latest reply."""
        self._items[response.provider] = list(response.items)

        provider = response.provider
        if response.incomplete:
            self.incomplete_completion_lists[provider] = (
                self.incomplete_completion_lists.get(provider, -1) + 1
            )
        else:
            self.incomplete_completion_lists.pop(provider, None)

        self._refilter()

    def area(self, cursor: tuple[int, int] | None, viewport: Rect) -> Rect | None:
        """
        Screen area of the popup for a cursor at ``(row, col)``.

        Opens below the cursor line, or above it when there is no room.
        """
        if cursor is None or not self._matches:
            return None

        row, col = cursor
        height = min(len(self._matches), MAX_POPUP_HEIGHT)
        width = min(
            max(len(item.label) for item in self._matches) + POPUP_PADDING,
            viewport.width,
        )
        x = max(viewport.x, min(col, viewport.right - width))

        if row + 1 + height <= viewport.bottom:
            y = row + 1
        else:
            height = min(height, row - viewport.y)
            y = row - height
        if height <= 0:
            return None
        return Rect(x, y, width, height)

    def _refilter(self) -> None:
        self._matches = [
            item
            for provider_items in self._items.values()
            for item in provider_items
            if matches_filter(item, self.filter)
        ]
