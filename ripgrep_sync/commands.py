"""Subprocess helpers shared by the sync steps."""

from __future__ import annotations

import os
import shlex
import subprocess
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from ripgrep_sync.console import logger


@dataclass
class StageResult:
    """Outcome of one stage of a multi-stage command pipeline."""

    index: int
    name: str
    returncode: int
    ok: bool
    message: str = ""


def format_command(cmd: list[str]) -> str:
    """Render a command for display."""
    return " ".join(shlex.quote(part) for part in cmd)


def run_command(
    cmd: list[str],
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
    capture_output: bool = True,
    timeout: int | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run a command and return the result.

    Never raises for a failing, missing or timed-out command; those come
    back as return codes 124 (timeout), 126 (cannot be executed) and 127
    (not found), the way a shell reports them.
    """
    logger.trace(format_command(cmd))
    full_env = None
    if env:
        full_env = os.environ.copy()
        full_env.update(env)
    try:
        return subprocess.run(
            cmd,
            cwd=cwd,
            env=full_env,
            capture_output=capture_output,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return subprocess.CompletedProcess(
            cmd, 124, stdout="", stderr=f"Command timed out after {timeout}s"
        )
    except FileNotFoundError:
        return subprocess.CompletedProcess(
            cmd, 127, stdout="", stderr=f"{cmd[0]}: command not found"
        )
    except OSError as e:
        return subprocess.CompletedProcess(cmd, 126, stdout="", stderr=f"{cmd[0]}: {e}")


def run_git(args: list[str], cwd: Path | None = None) -> subprocess.CompletedProcess[str]:
    """Run a git command and return the result."""
    return run_command(["git"] + args, cwd=cwd)


def stream_command(
    cmd: list[str],
    sinks: Iterable[Callable[[str], None]],
    cwd: Path | None = None,
) -> int:
    """Run a command with stderr folded into stdout, feeding each line to every sink.

    Returns the command's exit status, 127 when it is not found, or 126 when
    it cannot be executed.
    Exceptions raised by a sink propagate to the caller after the child
    has been reaped.
    """
    logger.trace(format_command(cmd))
    sinks = list(sinks)
    try:
        proc = subprocess.Popen(
            cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            bufsize=1,
        )
    except FileNotFoundError:
        return 127
    except OSError:
        return 126

    try:
        for line in proc.stdout or ():
            for sink in sinks:
                sink(line)
    finally:
        if proc.stdout is not None:
            proc.stdout.close()
        returncode = proc.wait()
    return returncode


def first_failure(stages: Iterable[StageResult]) -> StageResult | None:
    """Return the earliest stage that did not succeed, if any."""
    for stage in sorted(stages, key=lambda s: s.index):
        if not stage.ok:
            return stage
    return None
