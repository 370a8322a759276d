# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Error taxonomy for the build-and-publish pipeline.

Every step failure is a PipelineStepError subclass that knows which step it
came from and, when an external command was involved, that command's exit
status. The CLI turns the exit status into the process exit code, so a failed
`cargo build` that exited 101 makes rpbuild exit 101 as well.

Nothing here is ever caught and retried inside the pipeline.
"""

from typing import Optional


class PipelineError(Exception):
    """Base for everything the pipeline raises on purpose."""


class PipelineLockedError(PipelineError):
    """Raised when another live rpbuild process holds the run lock."""

    def __init__(self, lock_path: str, owner_pid: Optional[int]) -> None:
        self.lock_path = lock_path
        self.owner_pid = owner_pid
        owner = f"pid {owner_pid}" if owner_pid is not None else "an unknown process"
        super().__init__(f"Pipeline already running ({owner} holds {lock_path})")


class PipelineStepError(PipelineError):
    """
    A step failed. Carries the step name, the command's exit status (if a
    command ran to completion) and the tail of its stderr.
    """

    step: str = "pipeline"

    def __init__(
        self,
        message: str,
        exit_code: Optional[int] = None,
        stderr: str = "",
        step: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        if step is not None:
            self.step = step
        self.exit_code = exit_code
        self.stderr = stderr


class ToolchainUpdateError(PipelineStepError):
    """The toolchain updater is missing, timed out, or exited non-zero."""

    step = "toolchain"


class SyncConflictError(PipelineStepError):
    """The working copy could not be fast-forwarded (local changes, diverged history)."""

    step = "sync"


class NetworkError(PipelineStepError):
    """The source remote could not be reached."""

    step = "sync"


class CompileError(PipelineStepError):
    """The release build failed: source error, missing dependency, or link failure."""

    step = "compile"


class PublishIOError(PipelineStepError):
    """The build output is missing or could not be copied to its destination."""

    step = "publish"


class ArtifactImportError(PipelineStepError):
    """The published extension module failed to import."""

    step = "import_check"
