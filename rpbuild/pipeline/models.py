# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Data types passed between pipeline steps and returned to the CLI.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from rpbuild.pipeline.errors import PipelineStepError


@dataclass(frozen=True)
class Artifact:
    """
    The compiled shared library, once published.

    source_path stays where cargo put it; destination_path is the copy next to
    the checkout. Both files have the same sha256 when this object exists.
    """

    source_path: Path
    destination_path: Path
    sha256: str
    size_bytes: int


@dataclass(frozen=True)
class SyncResult:
    """HEAD of the working copy before and after the pull."""

    before: str
    after: str
    commits_pulled: Optional[int] = None

    @property
    def changed(self) -> bool:
        return self.before != self.after


@dataclass(frozen=True)
class CommandResult:
    """What came back from running one external command."""

    argv: tuple[str, ...]
    exit_code: int
    stdout: str
    stderr: str
    elapsed_seconds: float
    timed_out: bool = False
    launched: bool = True

    @property
    def success(self) -> bool:
        return self.launched and not self.timed_out and self.exit_code == 0


@dataclass(frozen=True)
class StepResult:
    """Outcome of a single pipeline step."""

    name: str
    success: bool
    elapsed_seconds: float
    error: Optional[str] = None


@dataclass
class PipelineResult:
    """
    Outcome of a whole run.

    A run is successful only if every step ran and passed. On failure, steps
    holds the results up to and including the failing one, and error is the
    exception that stopped the run.
    """

    steps: list[StepResult] = field(default_factory=list)
    artifact: Optional[Artifact] = None
    sync: Optional[SyncResult] = None
    error: Optional[PipelineStepError] = None
    dry_run: bool = False

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def failed_step(self) -> Optional[str]:
        return self.error.step if self.error is not None else None

    @property
    def exit_status(self) -> Optional[int]:
        """
        The status this run should exit with, if it has one.

        0 on success. On failure, the failed command's own status when it fits
        in a process exit code; None when there is no usable status (missing
        executable, timeout, I/O error). The CLI decides what None becomes.
        """
        if self.error is None:
            return 0
        code = self.error.exit_code
        if code is not None and 0 < code < 256:
            return code
        return None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "dry_run": self.dry_run,
            "failed_step": self.failed_step,
            "error": str(self.error) if self.error is not None else None,
            "steps": [
                {
                    "name": s.name,
                    "success": s.success,
                    "elapsed_seconds": round(s.elapsed_seconds, 3),
                    "error": s.error,
                }
                for s in self.steps
            ],
            "artifact": (
                {
                    "source": str(self.artifact.source_path),
                    "destination": str(self.artifact.destination_path),
                    "sha256": self.artifact.sha256,
                    "size_bytes": self.artifact.size_bytes,
                }
                if self.artifact is not None
                else None
            ),
        }
