"""Build, test, strip and report on the release executable.

Build and test failures end the run. Everything after a successful test
run is cosmetic: the executable is already usable, so failures there are
logged and the run carries on.
"""

from __future__ import annotations

import hashlib
import os
import platform
import stat
from dataclasses import dataclass
from pathlib import Path

from ripgrep_sync.commands import format_command, run_command
from ripgrep_sync.config import SyncConfig
from ripgrep_sync.console import logger
from ripgrep_sync.errors import BuildError, TestFailure


@dataclass
class ExecutableReport:
    """What is known about the executable after the run."""

    path: Path
    checksum: str = ""
    version: str = ""
    listing: str = ""
    stripped: bool = False


def build_command(config: SyncConfig) -> list[str]:
    """Cargo invocation for an optimized release build."""
    cmd = ["cargo", "build", "--release"]
    if config.features:
        cmd += ["--features", ",".join(config.features)]
    return cmd


def build_env(config: SyncConfig) -> dict[str, str]:
    """Environment for the build, with RUSTFLAGS appended to any inherited value."""
    if not config.rustflags:
        return {}
    inherited = os.environ.get("RUSTFLAGS", "")
    flags = f"{inherited} {config.rustflags}".strip()
    return {"RUSTFLAGS": flags}


def cargo_test_command(config: SyncConfig) -> list[str]:
    """Cargo invocation that runs the whole test suite."""
    cmd = ["cargo", "test", "--all"]
    if config.features:
        cmd += ["--features", ",".join(config.features)]
    return cmd


def build(config: SyncConfig) -> None:
    """Compile the release executable."""
    cmd = build_command(config)
    env = build_env(config)

    if config.dry_run:
        logger.info(f"[DRY-RUN] Would run: {format_command(cmd)}")
        return

    logger.header("Building")
    logger.debug(f"RUSTFLAGS={env.get('RUSTFLAGS', '')}")
    result = run_command(cmd, cwd=config.source_dir, env=env, capture_output=False)
    if result.returncode != 0:
        raise BuildError(f"{format_command(cmd)} failed with exit code {result.returncode}")
    logger.success("Build finished")


def run_tests(config: SyncConfig) -> None:
    """Run the test suite against the fresh build."""
    cmd = cargo_test_command(config)

    if config.dry_run:
        logger.info(f"[DRY-RUN] Would run: {format_command(cmd)}")
        return

    logger.header("Testing")
    result = run_command(cmd, cwd=config.source_dir, env=build_env(config), capture_output=False)
    if result.returncode != 0:
        raise TestFailure(f"{format_command(cmd)} failed with exit code {result.returncode}")
    logger.success("All tests passed")


def list_executable(path: Path) -> str:
    """Return the ``ls -l`` line for ``path``, or an empty string."""
    result = run_command(["ls", "-l", str(path)])
    if result.returncode != 0:
        logger.warning(f"Could not list {path}: {result.stderr.strip()}")
        return ""
    return result.stdout.strip()


def strip_commands(path: Path, system: str | None = None) -> list[list[str]]:
    """Strip invocations to try in order: platform-specific, then generic."""
    system = system or platform.system()
    if system == "Darwin":
        specific = ["strip", "-S", "-x", str(path)]
    else:
        specific = ["strip", "--strip-debug", str(path)]
    return [specific, ["strip", str(path)]]


def ensure_executable(path: Path) -> None:
    """Set the executable bits on ``path``."""
    try:
        mode = path.stat().st_mode
        path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    except OSError as e:
        logger.error(f"Could not restore executable bit on {path}: {e}")


def strip_executable(path: Path, dry_run: bool = False) -> bool:
    """Remove debug symbols from ``path``. Returns True if an invocation succeeded."""
    if dry_run:
        logger.info(f"[DRY-RUN] Would run: {format_command(strip_commands(path)[0])}")
        return False

    logger.header("Stripping")
    before = list_executable(path)
    if before:
        logger.status_line("Before", before)

    stripped = False
    for cmd in strip_commands(path):
        result = run_command(cmd)
        if result.returncode == 0:
            stripped = True
            logger.debug(f"Stripped with {format_command(cmd)}")
            break
        logger.debug(f"{format_command(cmd)} failed: {result.stderr.strip()}")

    if not stripped:
        logger.error(f"Could not strip {path}; keeping debug symbols")

    ensure_executable(path)

    after = list_executable(path)
    if after:
        logger.status_line("After", after)
    return stripped


def compute_checksum(path: Path, algorithm: str = "sha256") -> str:
    """Compute hash of file contents."""
    hash_func = hashlib.new(algorithm)
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(8192), b""):
                hash_func.update(chunk)
        return hash_func.hexdigest()
    except OSError:
        return ""


def query_version(path: Path) -> str:
    """First line of ``<path> --version``, or an empty string."""
    result = run_command([str(path), "--version"])
    if result.returncode != 0:
        return ""
    lines = result.stdout.strip().splitlines()
    return lines[0] if lines else ""


def report_executable(path: Path) -> ExecutableReport:
    """Log checksum, version and listing of the executable."""
    report = ExecutableReport(path=path)
    logger.header("Executable")

    report.checksum = compute_checksum(path)
    if report.checksum:
        logger.status_line("sha256", report.checksum)
    else:
        logger.warning(f"Could not compute checksum of {path}")

    report.version = query_version(path)
    if report.version:
        logger.status_line("version", report.version)
    else:
        logger.warning(f"Could not query version of {path}")

    report.listing = list_executable(path)
    if report.listing:
        logger.status_line("file", report.listing)

    return report


def run_pipeline(config: SyncConfig) -> ExecutableReport | None:
    """Build, test, optionally strip, then report. Returns None on a dry run."""
    build(config)
    run_tests(config)

    if config.dry_run:
        if config.strip:
            strip_executable(config.target, dry_run=True)
        return None

    stripped = False
    if config.strip:
        stripped = strip_executable(config.target)
    else:
        logger.debug("Keeping debug symbols")

    report = report_executable(config.target)
    report.stripped = stripped
    return report
