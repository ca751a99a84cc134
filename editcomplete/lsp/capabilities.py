"""
LSP capabilities relevant to completion.

The client announces what it can consume during ``initialize``; the server
answers with its own capabilities, among them the characters that trigger
completion on their own (``.``, ``::``, ``(``, ...).
"""

from __future__ import annotations

from lsprotocol.types import (
    ClientCapabilities,
    ClientCompletionItemOptions,
    CompletionClientCapabilities,
    CompletionContext,
    CompletionTriggerKind,
    MarkupKind,
    ServerCapabilities,
    TextDocumentClientCapabilities,
    TextDocumentSyncClientCapabilities,
)


def client_capabilities() -> ClientCapabilities:
    """Capabilities announced to completion servers."""
    return ClientCapabilities(
        text_document=TextDocumentClientCapabilities(
            synchronization=TextDocumentSyncClientCapabilities(
                dynamic_registration=False,
            ),
            completion=CompletionClientCapabilities(
                dynamic_registration=False,
                context_support=True,
                completion_item=ClientCompletionItemOptions(
                    snippet_support=False,
                    documentation_format=[MarkupKind.PlainText, MarkupKind.Markdown],
                ),
            ),
        ),
    )


def completion_trigger_characters(
    capabilities: ServerCapabilities | None,
) -> tuple[str, ...]:
    """Trigger characters declared by a server, empty if it declares none."""
    if capabilities is None or capabilities.completion_provider is None:
        return ()
    return tuple(capabilities.completion_provider.trigger_characters or ())


def supports_completion(capabilities: ServerCapabilities | None) -> bool:
    return capabilities is not None and capabilities.completion_provider is not None


def describe_context(context: CompletionContext | None) -> str:
    """Short label of a completion context, for log messages."""
    if context is None:
        return "invoked"
    if context.trigger_kind == CompletionTriggerKind.TriggerCharacter:
        return f"trigger character {context.trigger_character!r}"
    if context.trigger_kind == CompletionTriggerKind.TriggerForIncompleteCompletions:
        return "incomplete list"
    return "invoked"
