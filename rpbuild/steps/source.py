# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Source synchronizer: `git pull --ff-only` in the checkout.

git reports every pull failure with the same exit status (1, or 128 for fatal
errors), so the only way to tell "the remote is unreachable" from "your local
changes are in the way" is the stderr text. We look for the handful of phrases
git and its transports print when the network is the problem; everything else
is treated as a local conflict.

HEAD is read before and after the pull so the log says how far the checkout
moved. Those reads are best effort and never fail the step.
"""

import subprocess
from pathlib import Path
from typing import Optional

from rpbuild.logging.logger import get_logger
from rpbuild.pipeline.errors import NetworkError, PipelineStepError, SyncConflictError
from rpbuild.pipeline.models import SyncResult
from rpbuild.steps.interfaces import SourceRepository
from rpbuild.steps.process import CommandRunner, run_command, tail

logger = get_logger(__name__)

UNKNOWN_COMMIT = "unknown"

# Lowercased fragments of git / curl / ssh messages that mean the remote
# was never reached.
_NETWORK_MARKERS: tuple[str, ...] = (
    "could not resolve host",
    "could not resolve hostname",
    "temporary failure in name resolution",
    "could not read from remote repository",
    "unable to access",
    "failed to connect",
    "couldn't connect to server",
    "connection refused",
    "connection timed out",
    "operation timed out",
    "network is unreachable",
    "no route to host",
    "the remote end hung up unexpectedly",
    "ssh: connect to host",
)


def is_network_failure(stderr: str) -> bool:
    """True if git's stderr says the remote could not be reached."""
    lowered = stderr.lower()
    return any(marker in lowered for marker in _NETWORK_MARKERS)


class GitRepository(SourceRepository):
    """A git working copy that tracks an upstream branch."""

    def __init__(
        self,
        checkout: Path,
        command: str = "git",
        remote: Optional[str] = None,
        branch: Optional[str] = None,
        fast_forward_only: bool = True,
        timeout_seconds: int = 600,
        runner: CommandRunner = subprocess.run,
    ) -> None:
        self._checkout = checkout
        self._command = command
        self._remote = remote
        self._branch = branch
        self._fast_forward_only = fast_forward_only
        self._timeout_seconds = timeout_seconds
        self._runner = runner

    @property
    def argv(self) -> list[str]:
        argv = [self._command, "pull"]
        if self._fast_forward_only:
            argv.append("--ff-only")
        if self._remote is not None:
            argv.append(self._remote)
            if self._branch is not None:
                argv.append(self._branch)
        return argv

    def describe(self) -> str:
        return f"{' '.join(self.argv)} (in {self._checkout})"

    def head(self) -> str:
        """Return the current HEAD commit, or "unknown" if git can't tell us."""
        result = run_command(
            [self._command, "rev-parse", "HEAD"],
            cwd=self._checkout,
            timeout_seconds=30,
            runner=self._runner,
        )
        if result.success and result.stdout.strip():
            return result.stdout.strip()
        return UNKNOWN_COMMIT

    def _count_commits(self, before: str, after: str) -> Optional[int]:
        if UNKNOWN_COMMIT in (before, after):
            return None
        if before == after:
            return 0
        result = run_command(
            [self._command, "rev-list", "--count", f"{before}..{after}"],
            cwd=self._checkout,
            timeout_seconds=30,
            runner=self._runner,
        )
        if not result.success:
            return None
        try:
            return int(result.stdout.strip())
        except ValueError:
            return None

    def sync(self) -> SyncResult:
        before = self.head()

        result = run_command(
            self.argv,
            cwd=self._checkout,
            timeout_seconds=self._timeout_seconds,
            runner=self._runner,
        )

        if not result.launched:
            raise PipelineStepError(
                f"Source-control client unavailable: {result.stderr}",
                stderr=result.stderr,
                step="sync",
            )
        if result.timed_out:
            raise NetworkError(
                f"Pull timed out after {self._timeout_seconds}s",
                stderr=result.stderr,
            )
        if not result.success:
            stderr_tail = tail(result.stderr)
            if is_network_failure(result.stderr):
                raise NetworkError(
                    f"Remote unreachable (exit code {result.exit_code})",
                    exit_code=result.exit_code,
                    stderr=stderr_tail,
                )
            raise SyncConflictError(
                f"Working copy could not be fast-forwarded (exit code {result.exit_code})",
                exit_code=result.exit_code,
                stderr=stderr_tail,
            )

        after = self.head()
        sync_result = SyncResult(
            before=before,
            after=after,
            commits_pulled=self._count_commits(before, after),
        )

        logger.info(
            "Working copy synchronized",
            extra={
                "before": before,
                "after": after,
                "changed": sync_result.changed,
                "commits_pulled": sync_result.commits_pulled,
            },
        )
        return sync_result
