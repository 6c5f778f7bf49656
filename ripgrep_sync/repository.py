"""Inspect how the local branch relates to its upstream, and pull from it."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ripgrep_sync.commands import format_command, run_git
from ripgrep_sync.console import logger
from ripgrep_sync.errors import PullError, UpstreamError


class Relationship(Enum):
    """Relationship of local HEAD to the upstream commit."""

    SAME = "same"
    BEHIND = "behind"
    AHEAD = "ahead"
    DIVERGED = "diverged"


@dataclass
class CommitTriple:
    """Local HEAD, upstream head and their merge-base."""

    local: str
    remote: str
    base: str


def classify(local: str, remote: str, base: str) -> Relationship:
    """Classify local vs. upstream from the three commit ids."""
    if local == remote:
        return Relationship.SAME
    if local == base:
        return Relationship.BEHIND
    if remote == base:
        return Relationship.AHEAD
    return Relationship.DIVERGED


def split_upstream(upstream: str) -> tuple[str, str]:
    """Split ``remote/branch`` on the first slash into pull arguments."""
    remote, sep, branch = upstream.partition("/")
    if not sep or not remote or not branch:
        raise UpstreamError(f"Upstream '{upstream}' is not of the form <remote>/<branch>")
    return remote, branch


def resolve_upstream(cwd: Path | None = None) -> str:
    """Return the tracking branch (``remote/branch``) of the checked-out branch."""
    head = run_git(["symbolic-ref", "-q", "HEAD"], cwd=cwd)
    if head.returncode != 0 or not head.stdout.strip():
        raise UpstreamError("HEAD is detached; pass an upstream explicitly")
    ref = head.stdout.strip()

    tracking = run_git(["for-each-ref", "--format=%(upstream:short)", ref], cwd=cwd)
    upstream = tracking.stdout.strip() if tracking.returncode == 0 else ""
    if not upstream:
        raise UpstreamError(f"No upstream configured for {ref}")

    logger.debug(f"Resolved upstream of {ref} to {upstream}")
    return upstream


def rev_parse(rev: str, cwd: Path | None = None) -> str:
    """Resolve a revision to a commit id."""
    result = run_git(["rev-parse", rev], cwd=cwd)
    if result.returncode != 0:
        raise UpstreamError(f"Cannot resolve {rev}: {result.stderr.strip()}")
    return result.stdout.strip()


def get_commits(upstream: str, cwd: Path | None = None) -> CommitTriple:
    """Read local HEAD, the upstream head and their merge-base."""
    local = rev_parse("@", cwd=cwd)
    remote = rev_parse(upstream, cwd=cwd)

    result = run_git(["merge-base", "@", upstream], cwd=cwd)
    if result.returncode != 0:
        raise UpstreamError(f"No merge-base between HEAD and {upstream}")
    base = result.stdout.strip()

    logger.debug(f"local={local[:12]} remote={remote[:12]} base={base[:12]}")
    return CommitTriple(local=local, remote=remote, base=base)


def inspect(upstream: str, cwd: Path | None = None) -> Relationship:
    """Classify the checkout at ``cwd`` against ``upstream``."""
    commits = get_commits(upstream, cwd=cwd)
    return classify(commits.local, commits.remote, commits.base)


def remote_update(cwd: Path | None = None, dry_run: bool = False) -> bool:
    """Fetch all remotes so the upstream ref is current."""
    if dry_run:
        logger.info("[DRY-RUN] Would run: git remote update")
        return True
    result = run_git(["remote", "update"], cwd=cwd)
    if result.returncode != 0:
        logger.warning(f"git remote update failed: {result.stderr.strip()}")
        return False
    logger.debug("Remotes updated")
    return True


def pull_rebase(upstream: str, cwd: Path | None = None, dry_run: bool = False) -> None:
    """Rebase the local branch onto ``upstream``; failure ends the run."""
    remote, branch = split_upstream(upstream)
    args = ["pull", "--rebase", remote, branch]

    if dry_run:
        logger.info(f"[DRY-RUN] Would run: {format_command(['git'] + args)}")
        return

    logger.info(f"Pulling {upstream}")
    result = run_git(args, cwd=cwd)
    if result.returncode != 0:
        output = (result.stderr or result.stdout).strip()
        for line in output.splitlines():
            logger.debug(line)
        raise PullError(f"git pull --rebase {remote} {branch} failed with exit code {result.returncode}")
    logger.success(f"Pulled {upstream}")
