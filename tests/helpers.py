"""Shared fakes for the completion tests."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from lsprotocol.types import CompletionItem, CompletionParams

from editcomplete.application import Application
from editcomplete.completion.types import CompletionProvider, CompletionResponse
from editcomplete.config import CompletionConfig
from editcomplete.lsp.source import CompletionSource


def items(*labels: str) -> list[CompletionItem]:
    return [CompletionItem(label=label) for label in labels]


def labels(completion_items: Sequence[CompletionItem]) -> list[str]:
    return [item.label for item in completion_items]


class FakeSource(CompletionSource):
    """
    Completion source answering from a script.

    Every request answers with ``labels`` unless ``pages`` is given, in which
    case successive requests take successive ``(labels, incomplete)`` pages
    (the last page repeats). While ``gate`` is clear, replies wait, which lets
    a test decide the order in which providers answer.
    """

    def __init__(
        self,
        server_id: int = 1,
        labels: Sequence[str] = (),
        incomplete: bool = False,
        trigger_characters: Sequence[str] = (),
        gated: bool = False,
        error: Exception | None = None,
        pages: Sequence[tuple[Sequence[str], bool]] | None = None,
    ) -> None:
        super().__init__()
        self.pages = [(tuple(p), inc) for p, inc in (pages or [(labels, incomplete)])]
        self._provider = CompletionProvider.lsp(server_id)
        self._trigger_characters = tuple(trigger_characters)
        self.gate = asyncio.Event()
        if not gated:
            self.gate.set()
        self.error = error
        self.requests: list[CompletionParams] = []

    @property
    def name(self) -> str:
        return f"fake-{self._provider.server_id}"

    @property
    def provider(self) -> CompletionProvider:
        return self._provider

    @property
    def trigger_characters(self) -> Sequence[str]:
        return self._trigger_characters

    async def complete(self, params: CompletionParams) -> CompletionResponse:
        self.requests.append(params)
        page, incomplete = self.pages.pop(0) if len(self.pages) > 1 else self.pages[0]
        await self.gate.wait()
        if self.error is not None:
            raise self.error
        return CompletionResponse(
            provider=self.provider, items=items(*page), incomplete=incomplete
        )


def fast_config(**overrides) -> CompletionConfig:
    """Config with debounces short enough for tests."""
    values = dict(
        completion_timeout=0.01,
        trigger_char_timeout=0.001,
        completion_collect_window=0.01,
        path_completion=False,
    )
    values.update(overrides)
    return CompletionConfig(**values)


def make_app(
    text: str = "",
    sources: Sequence[CompletionSource] = (),
    cursor: int | None = None,
    **config,
) -> Application:
    """Application with one open document, cursor at the end of ``text``."""
    app = Application(config=fast_config(**config))
    view = app.editor.open(text, language_servers=list(sources))
    doc = app.editor.documents[view.doc]
    doc.set_selection(view.id, len(text) if cursor is None else cursor)
    return app


async def settle(delay: float = 0.05) -> None:
    """Give background waves time to run."""
    await asyncio.sleep(delay)


async def wait_until(predicate, timeout: float = 1.0) -> None:
    """Poll ``predicate`` until it holds."""

    async def poll():
        while not predicate():
            await asyncio.sleep(0.002)

    await asyncio.wait_for(poll(), timeout)
