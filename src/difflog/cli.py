"""CLI entry point for difflog."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from difflog import __version__
from difflog.core.config import DifflogConfig
from difflog.core.ignore import IgnoreRules
from difflog.core.scanner import scan_directory
from difflog.engine.config_loader import CONFIG_FILENAME, find_config, load_config
from difflog.engine.engine import Engine
from difflog.exceptions import ConfigurationError, DifflogError


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)8s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _resolve_config(args: argparse.Namespace) -> tuple[DifflogConfig, Path | None]:
    """Load the config named on the command line, the nearest difflog.toml, or defaults."""
    if getattr(args, "config", None):
        config_path = Path(args.config)
        config = load_config(config_path)
    else:
        try:
            config_path = find_config()
        except ConfigurationError:
            config_path = None
            config = DifflogConfig()
        else:
            config = load_config(config_path)

    root = getattr(args, "root", None)
    if root:
        config = DifflogConfig.model_validate({**config.model_dump(), "root": Path(root).resolve()})
    return config, config_path


def cmd_run(args: argparse.Namespace) -> int:
    """Start watching and summarizing."""
    try:
        config, config_path = _resolve_config(args)
    except ConfigurationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    _setup_logging(config.logging.level)

    logger = logging.getLogger("difflog.cli")
    logger.info("Config: %s", config_path or "(defaults)")
    logger.info("Root: %s", config.root_path)
    logger.info("Changelog: %s", config.changelog_path)
    logger.info("Summarizer: %s (model=%s)", config.summarizer.url, config.summarizer.model)

    engine = Engine(config)
    try:
        engine.run_forever()
    except DifflogError as exc:
        logger.error("difflog stopped: %s", exc)
        return 1
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Validate config and exit."""
    try:
        config, config_path = _resolve_config(args)
    except ConfigurationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    print(f"Config OK: {config_path or '(defaults)'}")
    print(f"  Root:       {config.root_path}")
    print(f"  Changelog:  {config.changelog_file}")
    print(f"  Cache:      {config.cache_file}")
    print(f"  Debounce:   {config.debounce_seconds}s (poll {config.poll_interval}s)")
    print(f"  Ignore:     {', '.join(config.ignore_tokens)}")
    print(f"  Summarizer: {config.summarizer.url} ({config.summarizer.model}, timeout {config.summarizer.timeout_s}s)")
    return 0


def cmd_scan(args: argparse.Namespace) -> int:
    """Print the files that would be tracked."""
    try:
        config, _ = _resolve_config(args)
    except ConfigurationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    if not config.root_path.is_dir():
        print(f"ERROR: root is not a directory: {config.root_path}", file=sys.stderr)
        return 1
    for rel in scan_directory(config.root_path, IgnoreRules.from_config(config)):
        print(rel)
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    """Generate a starter difflog.toml."""
    output = Path(args.output) if args.output else Path(CONFIG_FILENAME)
    if output.exists() and not args.force:
        print(f"ERROR: {output} already exists. Use --force to overwrite.", file=sys.stderr)
        return 1

    template = '''\
root = "."
changelog_file = "README.md"
cache_file = ".difflog_cache.json"
ignore = [".git", "node_modules", "target", "__pycache__", ".venv", "dist", "build"]
ignore_globs = ["**/*.lock"]
debounce_seconds = 2.0
poll_interval = 0.1
rebuild_baseline_on_start = true
prune_deleted = false

[summarizer]
url = "http://127.0.0.1:11434/api/chat"
model = "qwen2.5-coder:7b"
timeout_s = 30.0

[logging]
level = "INFO"
enable_structured = false
'''
    output.write_text(template)
    print(f"Created {output}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="difflog",
        description="Watch a directory and append generated summaries of changes to a changelog",
    )
    parser.add_argument(
        "--version", action="version", version=f"difflog {__version__}"
    )

    sub = parser.add_subparsers(dest="command")

    # run
    p_run = sub.add_parser("run", help="Start watching")
    p_run.add_argument("-c", "--config", help=f"Path to {CONFIG_FILENAME}")
    p_run.add_argument("-r", "--root", help="Directory to watch (overrides config)")
    p_run.set_defaults(func=cmd_run)

    # check
    p_check = sub.add_parser("check", help="Validate config and exit")
    p_check.add_argument("-c", "--config", help=f"Path to {CONFIG_FILENAME}")
    p_check.add_argument("-r", "--root", help="Directory to watch (overrides config)")
    p_check.set_defaults(func=cmd_check)

    # scan
    p_scan = sub.add_parser("scan", help="List tracked files and exit")
    p_scan.add_argument("-c", "--config", help=f"Path to {CONFIG_FILENAME}")
    p_scan.add_argument("-r", "--root", help="Directory to scan (overrides config)")
    p_scan.set_defaults(func=cmd_scan)

    # init
    p_init = sub.add_parser("init", help=f"Generate starter {CONFIG_FILENAME}")
    p_init.add_argument("-o", "--output", help=f"Output file (default: {CONFIG_FILENAME})")
    p_init.add_argument("-f", "--force", action="store_true", help="Overwrite existing file")
    p_init.set_defaults(func=cmd_init)

    parsed = parser.parse_args(argv)
    if not hasattr(parsed, "func"):
        parser.print_help()
        return 1

    return parsed.func(parsed)


if __name__ == "__main__":
    sys.exit(main())
