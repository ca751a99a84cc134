"""
Path completion.

Completes file and directory names when the text before the cursor ends
in something that looks like a path. Relative paths resolve against the
document's directory, or the working directory for unsaved documents.
"""

from __future__ import annotations

import asyncio
import os
import re
from collections.abc import Coroutine
from pathlib import Path
from typing import Any

from lsprotocol.types import CompletionItem, CompletionItemKind

from editcomplete.completion.trigger import PATH_SEPARATORS
from editcomplete.completion.types import PATH_PROVIDER, CompletionResponse
from editcomplete.editor.document import Document

_PATH_TOKEN = re.compile(r"""[^\s'"`()<>\[\]{},;=]*$""")


def path_completion(
    doc: Document, cursor: int
) -> Coroutine[Any, Any, CompletionResponse] | None:
    """Request for the path ending at ``cursor``, or None if there is none."""
    match = _PATH_TOKEN.search(doc.text[:cursor])
    token = match.group() if match else ""
    if not any(sep in token for sep in PATH_SEPARATORS):
        return None

    split = max(token.rfind(sep) for sep in PATH_SEPARATORS)
    directory = Path(token[: split + 1] or os.sep).expanduser()
    if not directory.is_absolute():
        base = doc.path.parent if doc.path is not None else Path.cwd()
        directory = base / directory

    return complete_directory(directory)


async def complete_directory(directory: Path) -> CompletionResponse:
    entries = await asyncio.to_thread(_read_dir, directory)
    items = [
        CompletionItem(
            label=name + "/" if is_dir else name,
            kind=CompletionItemKind.Folder if is_dir else CompletionItemKind.File,
            filter_text=name,
            insert_text=name,
        )
        for name, is_dir in entries
    ]
    return CompletionResponse(provider=PATH_PROVIDER, items=items, incomplete=False)


def _read_dir(directory: Path) -> list[tuple[str, bool]]:
    # A directory that does not exist (yet) simply has nothing to offer.
    try:
        with os.scandir(directory) as it:
            return sorted((entry.name, entry.is_dir()) for entry in it)
    except OSError:
        return []
