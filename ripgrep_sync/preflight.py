"""Checks that must pass before anything is fetched, pulled or built."""

from __future__ import annotations

import os
import shutil
import sys
from pathlib import Path

from ripgrep_sync.commands import run_git
from ripgrep_sync.config import SyncConfig
from ripgrep_sync.console import logger
from ripgrep_sync.errors import NavigationError, PreconditionError

MINIMUM_PYTHON = (3, 9)

REQUIRED_EXECUTABLES = ["git", "rustup", "cargo", "ls"]
STRIP_EXECUTABLE = "strip"

# File that marks the root of the project checkout
PROJECT_MANIFEST = "Cargo.toml"


def check_python_version(
    minimum: tuple[int, ...] = MINIMUM_PYTHON,
    current: tuple[int, ...] | None = None,
) -> bool:
    """Return True if the running interpreter is at least ``minimum``."""
    if current is None:
        current = tuple(sys.version_info[:len(minimum)])
    return tuple(current) >= tuple(minimum)


def find_missing_executables(names: list[str]) -> list[str]:
    """Return the names that cannot be found on PATH."""
    return [name for name in names if shutil.which(name) is None]


def required_executables(config: SyncConfig) -> list[str]:
    """External tools this run depends on."""
    names = list(REQUIRED_EXECUTABLES)
    if config.toolchain_update_cmd and config.toolchain_update_cmd[0] not in names:
        names.append(config.toolchain_update_cmd[0])
    if config.strip:
        names.append(STRIP_EXECUTABLE)
    return names


def verify_preconditions(config: SyncConfig) -> None:
    """Fail fast if the interpreter or a required tool is unavailable."""
    if not check_python_version():
        wanted = ".".join(str(p) for p in MINIMUM_PYTHON)
        found = ".".join(str(p) for p in sys.version_info[:3])
        raise PreconditionError(f"Python {wanted} or newer is required, found {found}")

    missing = find_missing_executables(required_executables(config))
    if missing:
        raise PreconditionError(f"Required executable(s) not found on PATH: {', '.join(missing)}")

    logger.debug("Preconditions satisfied")


def verify_source_dir(path: Path) -> Path:
    """Check that ``path`` is the root of the project's git checkout.

    Returns the resolved directory.
    """
    if not path.is_dir():
        raise NavigationError(f"Source directory not found: {path}")

    resolved = path.resolve()
    result = run_git(["rev-parse", "--show-toplevel"], cwd=resolved)
    if result.returncode != 0:
        raise NavigationError(f"Not a git repository: {resolved}")

    toplevel = Path(result.stdout.strip()).resolve()
    if toplevel != resolved:
        raise NavigationError(f"{resolved} is not the top of its repository ({toplevel})")

    if not (resolved / PROJECT_MANIFEST).is_file():
        raise NavigationError(f"No {PROJECT_MANIFEST} in {resolved}, not the expected project root")

    logger.debug(f"Working in {resolved}")
    return resolved


def target_needs_build(target: Path) -> bool:
    """True when the executable is missing or not executable."""
    return not (target.is_file() and os.access(target, os.X_OK))
