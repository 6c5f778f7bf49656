"""Decide whether the executable has to be rebuilt."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from ripgrep_sync.console import Colors, logger
from ripgrep_sync.errors import DivergedError
from ripgrep_sync.repository import Relationship, inspect, pull_rebase

Confirm = Callable[[str], bool]


class SyncAction(Enum):
    """What to do for a given relationship to upstream."""

    NONE = "none"
    PULL = "pull"
    CONFIRM = "confirm"
    ABORT = "abort"


class Reason(Enum):
    """Why a rebuild is required."""

    FORCED = "forced"
    TOOLCHAIN_UPDATED = "toolchain updated"
    REPOSITORY_PULLED = "repository pulled"


ACTIONS = {
    Relationship.SAME: SyncAction.NONE,
    Relationship.BEHIND: SyncAction.PULL,
    Relationship.AHEAD: SyncAction.CONFIRM,
    Relationship.DIVERGED: SyncAction.ABORT,
}


@dataclass
class RebuildReasons:
    """Distinct reasons collected for rebuilding.

    Reasons are only ever added, so ``count`` never decreases.
    """

    reasons: list[Reason] = field(default_factory=list)

    def add(self, reason: Reason) -> None:
        if reason not in self.reasons:
            self.reasons.append(reason)
            logger.debug(f"Rebuild reason: {reason.value}")

    @property
    def count(self) -> int:
        return len(self.reasons)

    @property
    def required(self) -> bool:
        return self.count > 0

    def describe(self) -> str:
        return ", ".join(r.value for r in self.reasons)


def decide(relationship: Relationship) -> SyncAction:
    """Map a relationship to the action it calls for."""
    return ACTIONS[relationship]


def prompt_rebuild(question: str) -> bool:
    """Ask on the terminal whether to rebuild. EOF or Ctrl-C means skip."""
    print(f"\n{Colors.BOLD}{question}{Colors.RESET}")
    print(f"  {Colors.CYAN}1){Colors.RESET} Rebuild")
    print(f"  {Colors.CYAN}2){Colors.RESET} Skip")

    while True:
        try:
            response = input("#? ").strip().lower()
        except (EOFError, KeyboardInterrupt):
            print()
            return False
        if response in ("1", "rebuild", "y", "yes"):
            return True
        if response in ("2", "skip", "n", "no"):
            return False


def sync_repository(
    upstream: str,
    cwd: Path | None = None,
    confirm: Confirm = prompt_rebuild,
    dry_run: bool = False,
) -> bool:
    """Bring the checkout up to date with ``upstream``.

    Returns True when the sources changed (or the user asked to rebuild local
    commits) and the executable should be rebuilt. Divergent histories end
    the run without touching the working tree.
    """
    logger.header(f"Checking {upstream}")
    relationship = inspect(upstream, cwd=cwd)
    action = decide(relationship)
    logger.debug(f"Relationship to {upstream}: {relationship.value}")

    if action == SyncAction.NONE:
        logger.info(f"Already up to date with {upstream}")
        return False

    if action == SyncAction.PULL:
        logger.info(f"Behind {upstream}")
        pull_rebase(upstream, cwd=cwd, dry_run=dry_run)
        return True

    if action == SyncAction.CONFIRM:
        logger.warning(f"Local branch has commits that are not in {upstream}")
        if not confirm("Rebuild with the local commits?"):
            logger.info("Skipping rebuild for local commits")
            return False
        pull_rebase(upstream, cwd=cwd, dry_run=dry_run)
        return True

    raise DivergedError(
        f"Local branch and {upstream} have diverged; resolve manually before syncing"
    )


def determine_rebuild(
    forced: bool,
    toolchain_updated: Callable[[], bool],
    repository_changed: Callable[[], bool],
) -> RebuildReasons:
    """Collect rebuild reasons from the forced flag, the toolchain and the repository.

    Both checks always run, since each one updates something on disk.
    """
    reasons = RebuildReasons()
    if forced:
        reasons.add(Reason.FORCED)
    if toolchain_updated():
        reasons.add(Reason.TOOLCHAIN_UPDATED)
    if repository_changed():
        reasons.add(Reason.REPOSITORY_PULLED)
    return reasons
