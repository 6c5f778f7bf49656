"""Fatal conditions that end a sync run."""

from __future__ import annotations


class SyncError(Exception):
    """Base class for failures that terminate the run.

    ``stage`` names the step that failed and ends up in the final
    diagnostic line; ``exit_code`` is what the process exits with.
    """

    stage = "sync"
    severity = "fatal"

    def __init__(self, message: str, exit_code: int = 1, stage: str | None = None) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        if stage is not None:
            self.stage = stage


class PreconditionError(SyncError):
    """Interpreter too old or a required executable is missing."""

    stage = "preconditions"


class NavigationError(SyncError):
    """Source directory missing or not the expected project root."""

    stage = "navigation"


class UpstreamError(SyncError):
    """Upstream tracking branch could not be resolved or read."""

    stage = "upstream"


class DivergedError(SyncError):
    """Local and upstream histories both have unique commits."""

    stage = "repository"
    severity = "abort"


class PullError(SyncError):
    """``git pull --rebase`` failed."""

    stage = "pull"


class ToolchainError(SyncError):
    """A stage of the toolchain update failed under the abort policy."""

    stage = "toolchain"


class BuildError(SyncError):
    """``cargo build`` failed."""

    stage = "build"


class TestFailure(SyncError):
    """``cargo test`` failed."""

    __test__ = False
    stage = "test"
