"""ripgrep-sync - Keep a ripgrep checkout, its toolchain and its build current.

Updates the Rust toolchain, brings the local checkout up to date with its
upstream branch and rebuilds the release executable only when one of those
changed, the executable is missing, or a rebuild is forced.

Usage:
    ripgrep-sync [options]

Options:
    -h                  Show this help message
    -v DIGIT            Verbosity 0-9 (default: 2)
    -f                  Force a rebuild
    -d PATH             Source directory (default: ~/git/ripgrep)
    -u REMOTE/BRANCH    Upstream to sync with (default: tracking branch)
    -p                  Keep debug symbols (do not strip)
    --config PATH       Path to configuration file
    --no-fetch          Skip 'git remote update'
    --dry-run           Preview changes without executing
    --version           Show version number

Exit status is 0 when the run completes, including when no rebuild was
needed, and non-zero when any required step fails.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import NoReturn

from ripgrep_sync import __version__
from ripgrep_sync.config import (
    ConfigDict,
    SyncConfig,
    load_config_file,
    load_env_config,
    merge_configs,
    parse_verbosity,
)
from ripgrep_sync.console import configure, logger
from ripgrep_sync.decision import Confirm, determine_rebuild, prompt_rebuild, sync_repository
from ripgrep_sync.errors import SyncError
from ripgrep_sync.pipeline import run_pipeline
from ripgrep_sync.preflight import target_needs_build, verify_preconditions, verify_source_dir
from ripgrep_sync.repository import remote_update, resolve_upstream, split_upstream
from ripgrep_sync.toolchain import update_toolchain


class ArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on usage errors."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = ArgumentParser(
        prog="ripgrep-sync",
        description="Keep a ripgrep checkout, its Rust toolchain and its release build up to date.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  ripgrep-sync                       Update toolchain and sources, rebuild if needed
  ripgrep-sync -f                    Rebuild even if nothing changed
  ripgrep-sync -d ~/src/rg -u upstream/master
  ripgrep-sync -p -v 3               Keep debug symbols, show debug output
  ripgrep-sync --dry-run             Show what would be done

Configuration file (.ripgrep-syncrc.yaml):
  source_dir: ~/git/ripgrep
  features: [pcre2]
  rustflags: -C target-cpu=native
  toolchain_failure: warn
        """,
    )

    parser.add_argument(
        "-v",
        dest="verbosity",
        metavar="DIGIT",
        help="Verbosity level 0-9 (default: 2)",
    )
    parser.add_argument(
        "-f",
        dest="force",
        action="store_true",
        help="Force a rebuild",
    )
    parser.add_argument(
        "-d",
        dest="source_dir",
        metavar="PATH",
        help="Source directory (default: ~/git/ripgrep)",
    )
    parser.add_argument(
        "-u",
        dest="upstream",
        metavar="REMOTE/BRANCH",
        help="Upstream to sync with (default: the branch's tracking branch)",
    )
    parser.add_argument(
        "-p",
        dest="keep_symbols",
        action="store_true",
        help="Keep debug symbols instead of stripping the executable",
    )
    parser.add_argument(
        "--config",
        type=Path,
        metavar="PATH",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--no-fetch",
        action="store_true",
        help="Do not run 'git remote update' before comparing with upstream",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Preview changes without executing",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def args_to_config(args: argparse.Namespace) -> ConfigDict:
    """Translate parsed flags into config overrides."""
    config: ConfigDict = {}
    if args.source_dir:
        config["source_dir"] = args.source_dir
    if args.upstream:
        config["upstream"] = args.upstream
    if args.keep_symbols:
        config["strip"] = False
    if args.no_fetch:
        config["remote_update"] = False
    if args.force:
        config["force"] = True
    if args.dry_run:
        config["dry_run"] = True
    return config


def run(config: SyncConfig, confirm: Confirm) -> int:
    """Run the sync steps for a loaded configuration."""
    verify_preconditions(config)
    config.source_dir = verify_source_dir(config.source_dir)
    cwd = config.source_dir

    forced = config.force
    if forced:
        logger.info("Rebuild forced")
    if target_needs_build(config.target):
        logger.warning(f"{config.target} is missing or not executable, forcing rebuild")
        forced = True

    upstream = config.upstream or resolve_upstream(cwd)
    split_upstream(upstream)

    if config.remote_update:
        remote_update(cwd, dry_run=config.dry_run)

    reasons = determine_rebuild(
        forced,
        lambda: update_toolchain(config),
        lambda: sync_repository(upstream, cwd=cwd, confirm=confirm, dry_run=config.dry_run),
    )

    if not reasons.required:
        logger.success("Rebuild not required")
        return 0

    logger.info(f"Rebuilding ({reasons.describe()})")
    run_pipeline(config)
    logger.success("Done")
    return 0


def main(argv: list[str] | None = None, confirm: Confirm | None = None) -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    verbosity = None
    if args.verbosity is not None:
        verbosity = parse_verbosity(args.verbosity)
        if verbosity is None:
            parser.print_usage(sys.stderr)
            logger.error(f"Invalid verbosity '{args.verbosity}': expected a single digit")
            return 1
        configure(verbosity)

    try:
        file_config = load_config_file(args.config)
    except FileNotFoundError as e:
        logger.error(str(e))
        return 1
    merged = merge_configs(file_config, load_env_config(), args_to_config(args))
    config = SyncConfig.from_dict(merged)

    if verbosity is None:
        configure(config.verbosity)
    else:
        config.verbosity = verbosity

    try:
        return run(config, confirm or prompt_rebuild)
    except SyncError as e:
        if e.severity == "abort":
            logger.abort(str(e))
        else:
            logger.fatal(str(e))
        logger.error(f"Stopped at stage: {e.stage}")
        return e.exit_code


if __name__ == "__main__":
    sys.exit(main())
