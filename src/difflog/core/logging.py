from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Sequence

from pydantic import BaseModel, Field

from .config import LoggingConfig


class DifflogLogger(BaseModel):
    """
    Structured JSONL logger for cycle outcomes.

    Behavior:
    - Only emits records if config.enable_structured is True.
    - Respects config.structured_level filtering.
    - Writes to config.structured_file (append) or stdout when None.
    - Emits one JSON object per line.
    JSON example:
    {
      "timestamp": "2025-01-15T10:00:00Z",
      "level": "INFO",
      "message": "cycle_completed",
      "paths": ["src/app.py"],
      "changed_files": 1,
      "summarized": true
    }
    """

    config: LoggingConfig
    logger: logging.Logger = Field(default_factory=lambda: logging.getLogger("difflog.jsonl"))

    model_config = dict(arbitrary_types_allowed=True)

    def model_post_init(self, __context: Any) -> None:
        self._setup_logger()

    # -------------------------
    # Public logging API
    # -------------------------

    def log_event(self, level: str, message: str, **context: Any) -> None:
        """Emit a structured JSON line with arbitrary contextual fields."""
        if not self.config.enable_structured:
            return

        lvl = self._level_to_int(level)
        if not self.logger.isEnabledFor(lvl):
            return

        payload = self._base_payload(level, message)
        payload.update(self._normalize_context(context))
        self._emit(payload, lvl)

    def log_cycle_completed(self, paths: Sequence[str], changed_files: int, summarized: bool) -> None:
        self.log_event(
            "INFO",
            "cycle_completed",
            paths=sorted(paths),
            changed_files=int(changed_files),
            summarized=bool(summarized),
        )

    def log_cycle_skipped(self, reason: str) -> None:
        self.log_event("DEBUG", "cycle_skipped", reason=reason)

    def log_summarizer_failed(self, error: Exception, diff_bytes: int) -> None:
        self.log_event(
            "ERROR",
            "summarizer_failed",
            error_type=error.__class__.__name__,
            details=str(error),
            diff_bytes=int(diff_bytes),
        )

    # -------------------------
    # Internal helpers
    # -------------------------

    def _setup_logger(self) -> None:
        """Attach a single handler at the configured level."""
        if self.logger.hasHandlers():
            self.logger.handlers.clear()
        self.logger.propagate = False

        desired_level = self._level_to_int(self.config.structured_level)
        self.logger.setLevel(desired_level)

        target_path = self.config.structured_file
        if target_path is not None:
            handler: logging.Handler = logging.FileHandler(Path(target_path), encoding="utf-8", mode="a")
        else:
            handler = logging.StreamHandler(stream=sys.stdout)
        handler.setLevel(desired_level)
        handler.setFormatter(logging.Formatter(fmt="%(message)s"))
        self.logger.addHandler(handler)

    @staticmethod
    def _level_to_int(level: str) -> int:
        value = getattr(logging, str(level).upper(), None)
        return value if isinstance(value, int) else logging.INFO

    @staticmethod
    def _utc_timestamp() -> str:
        return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

    def _base_payload(self, level: str, message: str) -> Dict[str, Any]:
        return {"timestamp": self._utc_timestamp(), "level": str(level).upper(), "message": message}

    @staticmethod
    def _normalize_context(ctx: Dict[str, Any]) -> Dict[str, Any]:
        normalized: Dict[str, Any] = {}
        for k, v in ctx.items():
            normalized[k] = str(v) if isinstance(v, Path) else v
        return normalized

    def _emit(self, payload: Dict[str, Any], level_int: int) -> None:
        line = json.dumps(payload, ensure_ascii=False, default=str)
        self.logger.log(level_int, line)
