"""
Completion sources.

A completion source is anything a document can ask for completion items.
The language-server source speaks LSP through a pygls client.

Design Principles:
1. One source per provider (the provider id keys its popup contribution)
2. Protocol errors become empty replies; they are logged, not raised
3. Anything else a source raises is a defect and fails the request wave
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

from lsprotocol.types import (
    CompletionItem,
    CompletionList,
    CompletionParams,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    InitializedParams,
    InitializeParams,
    LogMessageParams,
    MessageType,
    ServerCapabilities,
    TextDocumentContentChangeWholeDocument,
    TextDocumentItem,
    VersionedTextDocumentIdentifier,
)
from pygls.exceptions import JsonRpcException
from pygls.lsp.client import LanguageClient

from editcomplete import __version__
from editcomplete.completion.types import CompletionProvider, CompletionResponse
from editcomplete.lsp.capabilities import (
    client_capabilities,
    completion_trigger_characters,
    describe_context,
    supports_completion,
)

if TYPE_CHECKING:
    from editcomplete.editor.document import Document
    from editcomplete.editor.editor import Editor


class CompletionSource(ABC):
    """
    Base class for completion providers.

    Each source reports the provider id its items are filed under and the
    characters that should trigger a request by themselves.
    """

    def __init__(self, editor: Editor | None = None) -> None:
        self.editor = editor

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of this source."""
        pass

    @property
    @abstractmethod
    def provider(self) -> CompletionProvider:
        pass

    @property
    def trigger_characters(self) -> Sequence[str]:
        return ()

    @property
    def supports_completion(self) -> bool:
        """Whether requests should be sent to this source at all."""
        return True

    @abstractmethod
    async def complete(self, params: CompletionParams) -> CompletionResponse:
        """Request completion items at ``params.position``."""
        pass

    def log(self, type: MessageType, message: str) -> None:
        if self.editor is not None:
            self.editor.window_log_message(LogMessageParams(type=type, message=message))


def completion_response(
    provider: CompletionProvider,
    result: CompletionList | Sequence[CompletionItem] | None,
) -> CompletionResponse:
    """Normalize the three shapes of a ``textDocument/completion`` result."""
    if result is None:
        return CompletionResponse(provider=provider)
    if isinstance(result, CompletionList):
        return CompletionResponse(
            provider=provider,
            items=list(result.items),
            incomplete=result.is_incomplete,
        )
    return CompletionResponse(provider=provider, items=list(result))


class LanguageServerSource(CompletionSource):
    """
    Completion from a language server.

    Usage:
        source = LanguageServerSource(1, "pylsp", editor=editor)
        await source.start(["pylsp"], root_uri=project.as_uri())
        source.did_open(doc)
    """

    def __init__(
        self,
        server_id: int,
        name: str,
        editor: Editor | None = None,
        client: LanguageClient | None = None,
    ) -> None:
        super().__init__(editor)
        self._name = name
        self._provider = CompletionProvider.lsp(server_id)
        self.client = client or LanguageClient("editcomplete", __version__)
        self.capabilities: ServerCapabilities | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def provider(self) -> CompletionProvider:
        return self._provider

    @property
    def trigger_characters(self) -> Sequence[str]:
        return completion_trigger_characters(self.capabilities)

    @property
    def supports_completion(self) -> bool:
        return supports_completion(self.capabilities)

    async def start(self, command: Sequence[str], root_uri: str | None = None) -> None:
        """Spawn the server and run the initialize handshake."""
        await self.client.start_io(*command)
        result = await self.client.initialize_async(
            InitializeParams(
                process_id=os.getpid(),
                root_uri=root_uri,
                capabilities=client_capabilities(),
            )
        )
        self.capabilities = result.capabilities
        self.client.initialized(InitializedParams())
        self.log(MessageType.Info, f"{self.name} initialized")

    async def stop(self) -> None:
        await self.client.shutdown_async(None)
        self.client.exit(None)
        await self.client.stop()

    def did_open(self, doc: Document) -> None:
        self.client.text_document_did_open(
            DidOpenTextDocumentParams(
                text_document=TextDocumentItem(
                    uri=doc.uri,
                    language_id=doc.language_id,
                    version=doc.version,
                    text=doc.text,
                )
            )
        )

    def did_change(self, doc: Document) -> None:
        self.client.text_document_did_change(
            DidChangeTextDocumentParams(
                text_document=VersionedTextDocumentIdentifier(
                    uri=doc.uri, version=doc.version
                ),
                content_changes=[TextDocumentContentChangeWholeDocument(text=doc.text)],
            )
        )

    async def complete(self, params: CompletionParams) -> CompletionResponse:
        try:
            result = await self.client.text_document_completion_async(params)
        except JsonRpcException as e:
            self.log(
                MessageType.Warning,
                f"{self.name}: completion request failed "
                f"({describe_context(params.context)}): {e}",
            )
            return CompletionResponse(provider=self.provider)

        response = completion_response(self.provider, result)
        self.log(
            MessageType.Log,
            f"{self.name}: {len(response.items)} items "
            f"({describe_context(params.context)}, incomplete={response.incomplete})",
        )
        return response
