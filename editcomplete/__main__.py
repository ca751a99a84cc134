"""
Command-line driver.

This file is executed when running: python -m editcomplete

Opens a file, starts a language server through pygls, types text at the end
of the file in insert mode and prints the completion popup that opens.

    python -m editcomplete main.py --server pylsp --type "os.pa"
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import shlex
import sys
from pathlib import Path

from editcomplete.application import Application
from editcomplete.config import load_config
from editcomplete.editor.commands import Command
from editcomplete.errors import EditcompleteError
from editcomplete.lsp.source import LanguageServerSource

LOG_LEVEL_ENV_VAR = "EDITCOMPLETE_LOG_LEVEL"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="editcomplete",
        description="Type into a file and show the completions a language server offers.",
    )
    parser.add_argument("file", type=Path)
    parser.add_argument(
        "--server", required=True, help="language server command line, e.g. 'pylsp'"
    )
    parser.add_argument("--language-id", default=None)
    parser.add_argument("--type", dest="text", default="", help="text to type")
    parser.add_argument("--config", type=Path, default=None)
    parser.add_argument(
        "--timeout", type=float, default=5.0, help="seconds to wait for the popup"
    )
    return parser.parse_args(argv)


def setup_logging() -> None:
    level = os.getenv(LOG_LEVEL_ENV_VAR, "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _language_id(path: Path) -> str:
    return path.suffix.lstrip(".") or "plaintext"


async def run(args: argparse.Namespace) -> list[str]:
    """Drive one completion session and return the visible labels."""
    config = load_config(args.config)
    app = Application(config=config)

    path = args.file.resolve()
    text = path.read_text() if path.exists() else ""
    source = LanguageServerSource(1, shlex.split(args.server)[0], editor=app.editor)
    await source.start(shlex.split(args.server), root_uri=path.parent.as_uri())

    try:
        app.editor.open(
            text,
            path=path,
            language_id=args.language_id or _language_id(path),
            language_servers=[source],
        )
        source.did_open(app.editor.current()[1])

        app.start()
        app.execute(Command.INSERT_MODE)
        view, doc = app.editor.current()
        doc.set_selection(view.id, len(doc.text))
        for c in args.text:
            app.insert_char(c)
            source.did_change(doc)

        # Auto triggers only fire once the debounce expires; ask explicitly
        # when the typed text did not end in a trigger.
        popup = await app.wait_for_completion(config.completion_timeout * 2)
        if popup is None:
            app.execute(Command.COMPLETION)
            popup = await app.wait_for_completion(args.timeout)
        return [] if popup is None else [item.label for item in popup.matches]
    finally:
        await app.stop()
        await source.stop()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging()
    try:
        labels = asyncio.run(run(args))
    except EditcompleteError as e:
        print(f"editcomplete: {e}", file=sys.stderr)
        return 1
    for label in labels:
        print(label)
    return 0


if __name__ == "__main__":
    sys.exit(main())
