"""
Completion configuration.

Settings live in the ``completion:`` section of a YAML file:

    completion:
      auto_completion: true
      completion_trigger_len: 2
      completion_timeout: 0.25

The file named by ``EDITCOMPLETE_CONFIG`` is used when no path is given.
A missing file yields the defaults.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from editcomplete.errors import ConfigError

CONFIG_ENV_VAR = "EDITCOMPLETE_CONFIG"


@dataclass(frozen=True)
class CompletionConfig:
    """Completion settings read by the trigger evaluator and the handler."""

    auto_completion: bool = True
    completion_trigger_len: int = 2
    # Debounce for auto triggers, in seconds.
    completion_timeout: float = 0.25
    trigger_char_timeout: float = 0.005
    # How long to keep gathering replies after the first one before the
    # popup opens.
    completion_collect_window: float = 0.1
    path_completion: bool = True
    max_incomplete_requeries: int = 8
    event_queue_size: int = 128


def config_from_mapping(values: Mapping[str, Any]) -> CompletionConfig:
    """Build a config from a mapping of option names to values."""
    defaults = CompletionConfig()
    known = {f.name for f in fields(CompletionConfig)}
    overrides: dict[str, Any] = {}

    for key, value in values.items():
        if key not in known:
            raise ConfigError(f"Unknown completion option: {key}")

        expected = type(getattr(defaults, key))
        if expected is float and type(value) is int:
            value = float(value)
        if type(value) is not expected:
            raise ConfigError(
                f"Option {key} must be {expected.__name__}, "
                f"got {type(value).__name__}"
            )
        overrides[key] = value

    config = replace(defaults, **overrides)
    if config.completion_trigger_len < 1:
        raise ConfigError("completion_trigger_len must be at least 1")
    if config.event_queue_size < 1:
        raise ConfigError("event_queue_size must be at least 1")
    return config


def load_config(path: Path | str | None = None) -> CompletionConfig:
    """
    Load the completion configuration.

    Args:
        path: YAML file to read. Falls back to ``$EDITCOMPLETE_CONFIG``.

    Raises:
        ConfigError: The file is not valid YAML or holds invalid options.
    """
    if path is None:
        path = os.getenv(CONFIG_ENV_VAR)
        if not path:
            return CompletionConfig()

    config_path = Path(path).expanduser()
    if not config_path.is_file():
        return CompletionConfig()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping")

    section = data.get("completion") or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'completion' in {config_path} must be a mapping")

    return config_from_mapping(section)
