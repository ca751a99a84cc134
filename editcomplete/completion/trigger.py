"""
Decides whether the text before the cursor warrants a completion request.

In priority order:
1. nothing when auto completion is disabled
2. ``TriggerChar`` when the text ends with a provider's trigger character
3. ``TriggerChar`` when the last character is a path separator and path
   completion is enabled for the document
4. ``AutoTrigger`` when the ``completion_trigger_len`` characters before the
   cursor are all word characters (skipped for ``trigger_char_only``)
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from editcomplete.completion.types import AutoTrigger, CompletionEvent, TriggerChar
from editcomplete.editor.document import char_is_word

if TYPE_CHECKING:
    from editcomplete.editor.editor import Editor


if sys.platform == "win32":
    PATH_SEPARATORS: tuple[str, ...] = ("/", "\\")
else:
    PATH_SEPARATORS = ("/",)


def decide(editor: Editor, trigger_char_only: bool) -> CompletionEvent | None:
    """Evaluate the focused view without sending anything."""
    config = editor.config
    if not config.auto_completion:
        return None

    view, doc = editor.current()
    cursor = doc.selection(view.id)
    text = doc.text[:cursor]

    is_trigger_char = any(
        text.endswith(trigger)
        for source in doc.completion_sources()
        for trigger in source.trigger_characters
        if trigger
    )
    is_path_completion_trigger = (
        text[-1:] in PATH_SEPARATORS and doc.path_completion_enabled()
    )
    if is_trigger_char or is_path_completion_trigger:
        return TriggerChar(cursor=cursor, doc=doc.id, view=view.id)

    if trigger_char_only:
        return None

    trigger_len = config.completion_trigger_len
    preceding = text[-trigger_len:]
    if len(preceding) == trigger_len and all(char_is_word(c) for c in preceding):
        return AutoTrigger(cursor=cursor, doc=doc.id, view=view.id)

    return None


def trigger_auto_completion(editor: Editor, trigger_char_only: bool) -> None:
    """Evaluate the focused view and send the resulting event, if any."""
    event = decide(editor, trigger_char_only)
    if event is not None:
        editor.handlers.send_completion_event(event)
