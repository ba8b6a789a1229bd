from __future__ import annotations

import logging
from pathlib import Path, PurePath
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_SYSTEM_PROMPT = (
    "You are an automated technical writer maintaining a project's changelog. "
    "You will receive a line-level diff of recent changes, grouped by file. "
    "Lines starting with '+' were added, lines starting with '-' were removed. "
    "Write a concise, engaging log entry for these changes. "
    "1. Use Markdown. "
    "2. Use emojis to categorize changes (e.g. a bug, a feature, a performance fix). "
    "3. Include short code snippets in backticks if relevant. "
    "4. Do NOT write introductions like 'Here is the summary'. Just write the content."
)

DEFAULT_IGNORE = [
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "target",
    "__pycache__",
    ".venv",
    "dist",
    "build",
]

_VALID_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _normalize_level(v: str) -> str:
    candidate = str(v).upper().strip()
    if candidate not in _VALID_LEVELS:
        raise ValueError(f"Invalid log level '{v}'. Choose one of: {', '.join(sorted(_VALID_LEVELS))}")
    return candidate


class SummarizerConfig(BaseModel):
    """Connection settings for the chat backend that turns diffs into prose."""

    url: str = Field(default="http://127.0.0.1:11434/api/chat", description="Ollama-compatible chat endpoint")
    model: str = Field(default="qwen2.5-coder:7b", min_length=1)
    timeout_s: float = Field(default=30.0, gt=0.0, description="Request timeout in seconds")
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT, min_length=1)

    model_config = ConfigDict(frozen=True)


class LoggingConfig(BaseModel):
    """Console log level plus the opt-in structured JSONL cycle log."""

    level: str = Field(default="INFO", description="Minimum level for console logs")
    enable_structured: bool = Field(default=False, description="Emit one JSON line per cycle outcome")
    structured_level: str = Field(default="INFO")
    structured_file: Optional[Path] = Field(
        default=None, description="Append JSONL records here. If None, write to stdout."
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("level", "structured_level")
    @classmethod
    def _validate_level(cls, v: str) -> str:
        return _normalize_level(v)

    @field_validator("structured_file")
    @classmethod
    def _normalize_structured_file(cls, v: Optional[Path]) -> Optional[Path]:
        if v is None:
            return None
        p = Path(v).expanduser()
        if p.exists() and p.is_dir():
            raise ValueError(f"structured_file points to a directory: {p}")
        return p


class DifflogConfig(BaseModel):
    """
    Global configuration for difflog.

    Covers the watched root, exclusion rules, debounce timing, baseline and
    deletion policies, and the nested summarizer and logging settings.
    """

    # --- Watched tree ---
    root: Path = Field(default=Path("."), description="Directory to watch recursively")
    changelog_file: str = Field(default="README.md", description="Document that receives generated entries")
    cache_file: str = Field(default=".difflog_cache.json", description="Persisted snapshot artifact")
    ignore: List[str] = Field(default_factory=lambda: list(DEFAULT_IGNORE))
    ignore_globs: List[str] = Field(default_factory=list)
    max_file_size_mb: int = Field(default=5, gt=0)

    # --- Timing ---
    debounce_seconds: float = Field(default=2.0, gt=0.0, description="Quiet period before a cycle runs")
    poll_interval: float = Field(default=0.1, gt=0.0, description="How often the control loop checks")
    watch_step_ms: int = Field(default=50, ge=1, description="watchfiles batching step")

    # --- Policies ---
    rebuild_baseline_on_start: bool = Field(default=True)
    prune_deleted: bool = Field(default=False)

    summarizer: SummarizerConfig = Field(default_factory=SummarizerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(frozen=True)

    # -------------------------
    # Validators
    # -------------------------

    @field_validator("changelog_file", "cache_file")
    @classmethod
    def _validate_plain_name(cls, v: str) -> str:
        name = str(v).strip()
        if not name or PurePath(name).name != name:
            raise ValueError(f"Expected a plain file name, got {v!r}")
        return name

    @field_validator("root")
    @classmethod
    def _expand_root(cls, v: Path) -> Path:
        return Path(v).expanduser()

    @model_validator(mode="after")
    def _validate_timing(self) -> DifflogConfig:
        if self.poll_interval >= self.debounce_seconds:
            raise ValueError(
                f"poll_interval ({self.poll_interval}s) must be shorter than "
                f"debounce_seconds ({self.debounce_seconds}s)"
            )
        return self

    # -------------------------
    # Convenience accessors
    # -------------------------

    @property
    def root_path(self) -> Path:
        return self.root.resolve()

    @property
    def changelog_path(self) -> Path:
        return self.root_path / self.changelog_file

    @property
    def cache_path(self) -> Path:
        return self.root_path / self.cache_file

    @property
    def max_bytes(self) -> int:
        """Max file size in bytes, derived from max_file_size_mb."""
        return int(self.max_file_size_mb) * 1024 * 1024

    @property
    def ignore_tokens(self) -> List[str]:
        """Configured tokens plus the two files difflog writes itself."""
        tokens = list(self.ignore)
        for own in (self.changelog_file, self.cache_file):
            if own not in tokens:
                tokens.append(own)
        return tokens

    # -------------------------
    # Lifecycle hooks
    # -------------------------

    def model_post_init(self, __context: object) -> None:
        logging.getLogger("difflog").debug(
            "DifflogConfig initialized",
            extra={
                "difflog": {
                    "root": str(self.root),
                    "debounce_seconds": self.debounce_seconds,
                    "poll_interval": self.poll_interval,
                    "rebuild_baseline_on_start": self.rebuild_baseline_on_start,
                    "prune_deleted": self.prune_deleted,
                }
            },
        )
