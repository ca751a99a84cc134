"""
Values exchanged between the completion hooks, the request handler and the
popup.

Events are immutable; a background request only ever holds a ``Trigger``
snapshot and a ``TaskHandle``, never a reference into live UI state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from lsprotocol.types import CompletionItem

from editcomplete.editor.document import DocumentId
from editcomplete.editor.view import ViewId


class TriggerKind(Enum):
    AUTO = "auto"
    TRIGGER_CHAR = "trigger_char"
    MANUAL = "manual"


@dataclass(frozen=True)
class Trigger:
    """Where and how a completion request was issued."""

    view: ViewId
    doc: DocumentId
    pos: int
    kind: TriggerKind


# ===== Events =====
@dataclass(frozen=True)
class TriggerChar:
    """A provider-declared trigger character (or path separator) was typed."""

    cursor: int
    doc: DocumentId
    view: ViewId


@dataclass(frozen=True)
class AutoTrigger:
    """Enough consecutive word characters were typed."""

    cursor: int
    doc: DocumentId
    view: ViewId


@dataclass(frozen=True)
class ManualTrigger:
    """Completion was requested explicitly."""

    cursor: int
    doc: DocumentId
    view: ViewId


@dataclass(frozen=True)
class DeleteText:
    cursor: int


@dataclass(frozen=True)
class Cancel:
    pass


CompletionEvent = Union[TriggerChar, AutoTrigger, ManualTrigger, DeleteText, Cancel]


# ===== Responses =====
@dataclass(frozen=True)
class CompletionProvider:
    """Identifies who produced a set of completion items."""

    server_id: int | None = None

    @classmethod
    def lsp(cls, server_id: int) -> CompletionProvider:
        return cls(server_id)

    @property
    def is_path(self) -> bool:
        return self.server_id is None

    def __str__(self) -> str:
        return "path" if self.is_path else f"lsp:{self.server_id}"


PATH_PROVIDER = CompletionProvider()


@dataclass
class CompletionResponse:
    """One provider's reply to one request."""

    provider: CompletionProvider
    items: list[CompletionItem] = field(default_factory=list)
    # The provider may hold more items than it returned.
    incomplete: bool = False

    def is_informative(self) -> bool:
        return bool(self.items) or self.incomplete
