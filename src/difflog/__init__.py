from __future__ import annotations

__version__ = "0.1.0"

from difflog.core.config import DifflogConfig, LoggingConfig, SummarizerConfig
from difflog.core.diffing import LineDiff, compute_line_diff
from difflog.core.ignore import IgnoreRules
from difflog.core.scanner import scan_directory
from difflog.core.snapshot import FileSnapshot, SnapshotStore
from difflog.engine.actions.changelog import ChangelogWriter
from difflog.engine.actions.summarizer import OllamaSummarizer, Summarizer
from difflog.engine.coalescer import EventCoalescer, PendingBatch
from difflog.engine.controller import ControllerState, CycleResult, DiffController
from difflog.engine.engine import Engine

__all__ = [
    "DifflogConfig",
    "LoggingConfig",
    "SummarizerConfig",
    "LineDiff",
    "compute_line_diff",
    "IgnoreRules",
    "scan_directory",
    "FileSnapshot",
    "SnapshotStore",
    "ChangelogWriter",
    "OllamaSummarizer",
    "Summarizer",
    "EventCoalescer",
    "PendingBatch",
    "ControllerState",
    "CycleResult",
    "DiffController",
    "Engine",
]
