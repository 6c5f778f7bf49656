"""Rust toolchain update with live output and update detection.

``rustup update`` exits 0 whether or not anything changed, so the decision
is taken from its output instead. The output is split into two consumers,
one echoing each line to the console and one scanning for the marker that
rustup prints for an upgraded toolchain. Together with the command itself
that makes three stages, and each one is checked on its own:

    0 update   exit status of the update command
    1 display  0 unless echoing to the console failed
    2 scan     0 marker seen, 1 marker not seen, 2 scan could not run
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from ripgrep_sync.commands import StageResult, first_failure, format_command, stream_command
from ripgrep_sync.config import SyncConfig, ToolchainFailurePolicy
from ripgrep_sync.console import logger
from ripgrep_sync.errors import ToolchainError

STAGE_UPDATE = 0
STAGE_DISPLAY = 1
STAGE_SCAN = 2

SCAN_FOUND = 0
SCAN_NOT_FOUND = 1
SCAN_ERROR = 2


@dataclass
class ToolchainUpdate:
    """Result of a toolchain update run."""

    updated: bool
    stages: list[StageResult] = field(default_factory=list)
    failed_stage: StageResult | None = None

    @property
    def failed(self) -> bool:
        """Whether any stage failed."""
        return self.failed_stage is not None


class DisplaySink:
    """Echo output lines to the console, recording the first write error."""

    def __init__(self, write: Callable[[str], None] | None = None) -> None:
        self._write = write or logger.passthrough
        self.returncode = 0
        self.error = ""

    def __call__(self, line: str) -> None:
        if self.returncode:
            return
        try:
            self._write(line)
        except OSError as e:
            self.returncode = 1
            self.error = str(e)

    def result(self) -> StageResult:
        return StageResult(
            index=STAGE_DISPLAY,
            name="display",
            returncode=self.returncode,
            ok=self.returncode == 0,
            message=self.error,
        )


class MarkerScanner:
    """Look for a marker substring in output lines."""

    def __init__(self, marker: str) -> None:
        self.marker = marker
        self.found = False

    def __call__(self, line: str) -> None:
        if self.marker and not self.found and self.marker in line:
            self.found = True

    def result(self) -> StageResult:
        if not self.marker:
            return StageResult(
                index=STAGE_SCAN,
                name="scan",
                returncode=SCAN_ERROR,
                ok=False,
                message="no update marker configured",
            )
        code = SCAN_FOUND if self.found else SCAN_NOT_FOUND
        return StageResult(index=STAGE_SCAN, name="scan", returncode=code, ok=True)


def evaluate_stages(stages: list[StageResult]) -> ToolchainUpdate:
    """Combine stage results into a ``ToolchainUpdate``.

    Every stage is inspected, not just the last one: a failing update
    command is reported even when the scan stage finished normally.
    """
    failed = first_failure(stages)
    scan = next((s for s in stages if s.index == STAGE_SCAN), None)
    updated = failed is None and scan is not None and scan.returncode == SCAN_FOUND
    return ToolchainUpdate(updated=updated, stages=stages, failed_stage=failed)


def run_toolchain_update(
    cmd: list[str],
    marker: str,
    cwd: Path | None = None,
    display: Callable[[str], None] | None = None,
) -> ToolchainUpdate:
    """Run the toolchain update command and report whether it updated anything."""
    sink = DisplaySink(display)
    scanner = MarkerScanner(marker)
    returncode = stream_command(cmd, [sink, scanner], cwd=cwd)

    update_stage = StageResult(
        index=STAGE_UPDATE,
        name="update",
        returncode=returncode,
        ok=returncode == 0,
        message="" if returncode == 0 else f"{format_command(cmd)} exited with {returncode}",
    )
    return evaluate_stages([update_stage, sink.result(), scanner.result()])


def update_toolchain(config: SyncConfig) -> bool:
    """Update the toolchain and return True if a new version was installed.

    A failing stage is logged with its index. Under the ``warn`` policy it
    counts as "no update"; under ``abort`` it ends the run with the stage's
    exit code.
    """
    logger.header("Updating Rust toolchain")

    if config.dry_run:
        logger.info(f"[DRY-RUN] Would run: {format_command(config.toolchain_update_cmd)}")
        return False

    result = run_toolchain_update(config.toolchain_update_cmd, config.toolchain_marker)

    if result.failed_stage is not None:
        stage = result.failed_stage
        detail = f": {stage.message}" if stage.message else ""
        message = (
            f"Toolchain update pipeline failed at stage {stage.index} "
            f"({stage.name}) with status {stage.returncode}{detail}"
        )
        if config.toolchain_failure == ToolchainFailurePolicy.ABORT:
            raise ToolchainError(message, exit_code=stage.returncode or 1)
        logger.error(message)
        logger.warning("Treating toolchain as not updated")
        return False

    if result.updated:
        logger.success("Rust toolchain updated")
    else:
        logger.info("Rust toolchain already up to date")
    return result.updated
