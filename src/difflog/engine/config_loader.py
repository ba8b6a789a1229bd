"""Load and validate difflog.toml configuration."""

from __future__ import annotations

import tomllib
from pathlib import Path

from pydantic import ValidationError

from difflog.core.config import DifflogConfig
from difflog.exceptions import ConfigurationError

CONFIG_FILENAME = "difflog.toml"


def load_config(config_path: Path) -> DifflogConfig:
    """Load difflog.toml from the given path and return a validated DifflogConfig.

    A relative ``root`` is resolved against the config file's directory.
    Raises ConfigurationError on any parsing or validation failure.
    """
    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file: {exc}") from exc

    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML: {exc}") from exc

    raw_root = data.get("root", ".")
    if isinstance(raw_root, str):
        root = Path(raw_root).expanduser()
        if not root.is_absolute():
            data["root"] = str((config_path.parent / root).resolve())

    try:
        return DifflogConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Config validation error: {exc}") from exc


def find_config(start: Path | None = None) -> Path:
    """Search for difflog.toml starting from `start` (default: cwd) upward."""
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            raise ConfigurationError(
                f"No {CONFIG_FILENAME} found in current directory or any parent"
            )
        current = parent
