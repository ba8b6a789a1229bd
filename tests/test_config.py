"""Tests for configuration models."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from difflog.core.config import DEFAULT_IGNORE, DifflogConfig, LoggingConfig, SummarizerConfig


class TestDifflogConfig:
    def test_defaults(self):
        config = DifflogConfig()
        assert config.debounce_seconds == 2.0
        assert config.poll_interval < config.debounce_seconds
        assert config.changelog_file == "README.md"
        assert config.rebuild_baseline_on_start is True
        assert config.prune_deleted is False
        assert config.ignore == DEFAULT_IGNORE
        assert config.summarizer.timeout_s == 30.0

    def test_ignore_tokens_include_own_files(self):
        config = DifflogConfig(changelog_file="CHANGELOG.md")
        tokens = config.ignore_tokens
        assert "CHANGELOG.md" in tokens
        assert ".difflog_cache.json" in tokens
        assert ".git" in tokens

    def test_paths_resolved_under_root(self, tmp_path: Path):
        config = DifflogConfig(root=tmp_path)
        assert config.changelog_path == tmp_path.resolve() / "README.md"
        assert config.cache_path == tmp_path.resolve() / ".difflog_cache.json"

    def test_poll_must_be_shorter_than_debounce(self):
        with pytest.raises(ValidationError, match="poll_interval"):
            DifflogConfig(debounce_seconds=0.5, poll_interval=0.5)

    def test_debounce_must_be_positive(self):
        with pytest.raises(ValidationError):
            DifflogConfig(debounce_seconds=0)

    @pytest.mark.parametrize("name", ["docs/README.md", "", "../x.json"])
    def test_own_files_must_be_plain_names(self, name: str):
        with pytest.raises(ValidationError):
            DifflogConfig(changelog_file=name)

    def test_frozen(self):
        config = DifflogConfig()
        with pytest.raises(ValidationError):
            config.debounce_seconds = 5.0  # type: ignore[misc]

    def test_max_bytes(self):
        assert DifflogConfig(max_file_size_mb=2).max_bytes == 2 * 1024 * 1024


class TestNestedConfig:
    def test_logging_level_normalized(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_logging_level_rejected(self):
        with pytest.raises(ValidationError, match="Invalid log level"):
            LoggingConfig(level="LOUD")

    def test_structured_file_cannot_be_directory(self, tmp_path: Path):
        with pytest.raises(ValidationError, match="directory"):
            LoggingConfig(structured_file=tmp_path)

    def test_summarizer_timeout_positive(self):
        with pytest.raises(ValidationError):
            SummarizerConfig(timeout_s=0)

    def test_nested_from_dict(self):
        config = DifflogConfig.model_validate(
            {"summarizer": {"model": "llama3"}, "logging": {"enable_structured": True}}
        )
        assert config.summarizer.model == "llama3"
        assert config.logging.enable_structured is True
