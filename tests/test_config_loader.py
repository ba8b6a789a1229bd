"""Tests for difflog.toml loading."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from difflog.engine.config_loader import find_config, load_config
from difflog.exceptions import ConfigurationError


def test_load_valid(tmp_path: Path):
    path = tmp_path / "difflog.toml"
    path.write_text(textwrap.dedent("""\
        root = "project"
        changelog_file = "CHANGELOG.md"
        debounce_seconds = 3.0
        poll_interval = 0.25
        prune_deleted = true

        [summarizer]
        model = "llama3"
        timeout_s = 10

        [logging]
        level = "debug"
    """))
    config = load_config(path)
    assert config.root == (tmp_path / "project").resolve()
    assert config.changelog_file == "CHANGELOG.md"
    assert config.debounce_seconds == 3.0
    assert config.prune_deleted is True
    assert config.summarizer.model == "llama3"
    assert config.summarizer.timeout_s == 10.0
    assert config.logging.level == "DEBUG"


def test_absolute_root_kept(tmp_path: Path):
    path = tmp_path / "difflog.toml"
    path.write_text(f'root = "{tmp_path.as_posix()}"\n')
    assert load_config(path).root == tmp_path


def test_missing_file(tmp_path: Path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_config(tmp_path / "difflog.toml")


def test_invalid_toml(tmp_path: Path):
    path = tmp_path / "difflog.toml"
    path.write_text("not valid {{")
    with pytest.raises(ConfigurationError, match="Invalid TOML"):
        load_config(path)


def test_validation_error(tmp_path: Path):
    path = tmp_path / "difflog.toml"
    path.write_text("debounce_seconds = 0.1\npoll_interval = 0.5\n")
    with pytest.raises(ConfigurationError, match="validation"):
        load_config(path)


def test_find_config_walks_up(tmp_path: Path):
    (tmp_path / "difflog.toml").write_text("")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    assert find_config(nested) == (tmp_path / "difflog.toml").resolve()
