# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Artifact publisher: copy the built library to its fixed destination.

The destination is always overwritten. There is no versioning and no backup;
the previous library is simply replaced. The copy is atomic, so a failed
publish leaves the previous library intact rather than truncated.

Cargo exiting 0 is not taken as proof that the library exists. If the
declared output file is missing we fail loudly instead of publishing nothing.
After the copy, both files are hashed and must match.
"""

from pathlib import Path

from rpbuild.logging.logger import get_logger
from rpbuild.pipeline.errors import PublishIOError
from rpbuild.pipeline.models import Artifact
from rpbuild.steps.interfaces import ArtifactPublisher
from rpbuild.utils.filesystem import atomic_copy
from rpbuild.utils.hashing import compute_sha256, verify_checksum

logger = get_logger(__name__)


class FilePublisher(ArtifactPublisher):
    """Publishes by copying onto a fixed path on the local filesystem."""

    def __init__(self, destination: Path) -> None:
        self._destination = destination

    @property
    def destination(self) -> Path:
        return self._destination

    def describe(self) -> str:
        return f"copy build output to {self._destination}"

    def _check_paths(self, build_output: Path) -> None:
        if not build_output.is_file():
            raise PublishIOError(
                f"Build output not found: {build_output} "
                "(the compiler reported success but produced no library)"
            )
        if not self._destination.parent.is_dir():
            raise PublishIOError(
                f"Destination directory does not exist: {self._destination.parent}"
            )
        if self._destination.is_dir():
            raise PublishIOError(
                f"Destination is a directory, not a file: {self._destination}"
            )

    def publish(self, build_output: Path) -> Artifact:
        self._check_paths(build_output)

        try:
            source_hash = compute_sha256(build_output)
            atomic_copy(build_output, self._destination)
            matches = verify_checksum(self._destination, source_hash)
        except OSError as err:
            raise PublishIOError(
                f"Could not publish {build_output} to {self._destination}: {err}"
            ) from err

        if not matches:
            raise PublishIOError(
                f"Published file does not match build output "
                f"(expected sha256 {source_hash[:16]}...)"
            )

        artifact = Artifact(
            source_path=build_output,
            destination_path=self._destination,
            sha256=source_hash,
            size_bytes=self._destination.stat().st_size,
        )

        logger.info(
            "Artifact published",
            extra={
                "source": str(build_output),
                "destination": str(self._destination),
                "sha256": source_hash,
                "size_bytes": artifact.size_bytes,
            },
        )
        return artifact
