# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Abstract base classes for the four pipeline collaborators.

The toolchain installation and the working copy are host-global state. The
pipeline only ever reaches them through these narrow contracts, so the
sequencing logic can be exercised with fakes and no real rustup, git or cargo:

    ToolchainManager.update()            -> None
    SourceRepository.sync()              -> SyncResult
    ReleaseCompiler.compile()            -> Path (build output)
    ArtifactPublisher.publish(Path)      -> Artifact

Each method either returns or raises its step's PipelineStepError subclass.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from rpbuild.pipeline.models import Artifact, SyncResult


class _Describable(ABC):
    def describe(self) -> str:
        """One-line summary of what this collaborator would do. Used by --dry-run."""
        return type(self).__name__


class ToolchainManager(_Describable):
    """Keeps the host's build toolchain at its latest version."""

    @abstractmethod
    def update(self) -> None:
        """
        Upgrade the toolchain if a newer one exists; no-op success otherwise.

        Raises:
            ToolchainUpdateError: Updater missing, failed, or timed out.
        """
        ...


class SourceRepository(_Describable):
    """The local working copy and its upstream."""

    @abstractmethod
    def sync(self) -> SyncResult:
        """
        Fast-forward the working copy from its remote.

        Raises:
            NetworkError: Remote unreachable.
            SyncConflictError: Local state prevents the fast-forward.
        """
        ...


class ReleaseCompiler(_Describable):
    """Builds the crate in release configuration."""

    @abstractmethod
    def compile(self) -> Path:
        """
        Run the release build and return where the shared library should be.

        The returned path is the compiler's declared output location. It is
        not checked for existence here; the publisher does that.

        Raises:
            CompileError: The build failed.
        """
        ...


class ArtifactPublisher(_Describable):
    """Copies the build output to its fixed destination."""

    @abstractmethod
    def publish(self, build_output: Path) -> Artifact:
        """
        Copy build_output to the destination, overwriting what was there.

        Raises:
            PublishIOError: Source missing, destination unwritable, or the copy
                doesn't match the source.
        """
        ...
