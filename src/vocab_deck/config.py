"""Settings for vocab-deck, read from a YAML file and the environment.

Example ``~/.vocab_deck/config.yaml``::

    db_path: ~/Dropbox/vocab.db
    save_delay: 0.5
    log_level: INFO
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from vocab_deck.db import STATE_KEY
from vocab_deck.exceptions import ConfigError
from vocab_deck.persistence import SAVE_DELAY

DEFAULT_HOME = Path.home() / ".vocab_deck"
DEFAULT_CONFIG_PATH = DEFAULT_HOME / "config.yaml"

ENV_PREFIX = "VOCAB_DECK_"


@dataclass
class Settings:
    """Runtime configuration."""
    db_path: Path = field(default_factory=lambda: DEFAULT_HOME / "vocab.db")
    namespace_key: str = STATE_KEY
    save_delay: float = SAVE_DELAY
    log_level: str = "WARNING"

    def __post_init__(self):
        self.db_path = Path(self.db_path).expanduser()
        try:
            self.save_delay = float(self.save_delay)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"save_delay must be a number, got {self.save_delay!r}") from e
        if self.save_delay < 0:
            raise ConfigError("save_delay cannot be negative")
        self.log_level = str(self.log_level).upper()


def load_settings(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Dict[str, str]] = None,
) -> Settings:
    """Load settings from a YAML file, then apply environment overrides.

    Args:
        path: Settings file. When omitted the default location is used if
            it exists.
        environ: Environment mapping (defaults to ``os.environ``).

    Raises:
        ConfigError: If the file cannot be parsed or has unknown keys.
        FileNotFoundError: If an explicit ``path`` does not exist.
    """
    environ = os.environ if environ is None else environ
    data: Dict[str, Any] = {}

    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        data = _load_yaml_file(path)
    elif DEFAULT_CONFIG_PATH.exists():
        data = _load_yaml_file(DEFAULT_CONFIG_PATH)

    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown setting(s): {', '.join(unknown)}")

    overrides = {
        "db_path": environ.get(f"{ENV_PREFIX}DB"),
        "save_delay": environ.get(f"{ENV_PREFIX}SAVE_DELAY"),
        "log_level": environ.get(f"{ENV_PREFIX}LOG_LEVEL"),
    }
    data.update({k: v for k, v in overrides.items() if v})

    return Settings(**data)


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load a YAML mapping from a file; an empty file is an empty mapping."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        where = f" (line {mark.line + 1})" if mark else ""
        raise ConfigError(f"Invalid YAML in {path}{where}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("YAML root must be a mapping (dictionary)")
    return data
