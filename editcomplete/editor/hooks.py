"""
Editor hook registry.

Broadcasts editor events (command executed, mode switched, character
inserted) to registered hooks so handlers such as completion can react to
them without the command implementations knowing about those handlers.

Design Principles:
- Hooks run synchronously on the owner loop, in registration order
- Errors are isolated (one hook failure doesn't affect others)
- Hooks mutate UI state only through ``cx.callback``
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from lsprotocol.types import LogMessageParams, MessageType

if TYPE_CHECKING:
    from editcomplete.editor.commands import Command, Context
    from editcomplete.editor.editor import Editor, Mode


@dataclass
class PostCommand:
    command: Command
    cx: Context
    # Whether a completion popup was open when the command ran.
    completion_active: bool


@dataclass
class OnModeSwitch:
    old_mode: Mode
    new_mode: Mode
    cx: Context


@dataclass
class PostInsertChar:
    c: str
    cx: Context
    completion_active: bool


# Type aliases for hook signatures
PostCommandHook = Callable[[PostCommand], None]
OnModeSwitchHook = Callable[[OnModeSwitch], None]
PostInsertCharHook = Callable[[PostInsertChar], None]


class HookRegistry:
    """
    Registry of editor hooks.

    Usage:
        hooks = HookRegistry(editor)
        hooks.add_post_insert_char_hook(on_insert)

        # after the editor inserted a character
        hooks.broadcast_post_insert_char(PostInsertChar(c, cx, active))
    """

    def __init__(self, editor: Editor) -> None:
        self.editor = editor

        self._post_command_hooks: list[PostCommandHook] = []
        self._on_mode_switch_hooks: list[OnModeSwitchHook] = []
        self._post_insert_char_hooks: list[PostInsertCharHook] = []

    def add_post_command_hook(self, hook: PostCommandHook) -> None:
        """
        Register a hook that runs after every executed command.

        Example:
            def on_command(event: PostCommand):
                if event.command is Command.NORMAL_MODE:
                    ...

            hooks.add_post_command_hook(on_command)
        """
        self._post_command_hooks.append(hook)

    def add_on_mode_switch_hook(self, hook: OnModeSwitchHook) -> None:
        """Register a hook that runs when the editor mode changes."""
        self._on_mode_switch_hooks.append(hook)

    def add_post_insert_char_hook(self, hook: PostInsertCharHook) -> None:
        """
        Register a hook that runs after a character was typed in insert mode.

        Runs on every keystroke. Keep it fast.
        """
        self._post_insert_char_hooks.append(hook)

    def broadcast_post_command(self, event: PostCommand) -> None:
        self._broadcast("post_command", self._post_command_hooks, event)

    def broadcast_on_mode_switch(self, event: OnModeSwitch) -> None:
        self._broadcast("on_mode_switch", self._on_mode_switch_hooks, event)

    def broadcast_post_insert_char(self, event: PostInsertChar) -> None:
        self._broadcast("post_insert_char", self._post_insert_char_hooks, event)

    def _broadcast(self, kind: str, hooks: list[Callable[[Any], None]], event: Any) -> None:
        for hook in hooks:
            try:
                hook(event)
            except Exception as e:
                name = getattr(hook, "__name__", repr(hook))
                self.editor.window_log_message(
                    LogMessageParams(
                        type=MessageType.Error,
                        message=f"Error in {kind} hook {name}: "
                                f"{type(e).__name__}: {e}"
                    )
                )
