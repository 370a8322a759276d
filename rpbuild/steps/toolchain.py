# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Toolchain updater: `rustup update`.

rustup exits 0 both when it installed something new and when everything was
already current, so there is nothing to distinguish on success. Any non-zero
exit (no network, a broken component, a locked installation) is fatal.
"""

import subprocess
from typing import Optional

from rpbuild.logging.logger import get_logger
from rpbuild.pipeline.errors import ToolchainUpdateError
from rpbuild.steps.interfaces import ToolchainManager
from rpbuild.steps.process import CommandRunner, run_command, tail

logger = get_logger(__name__)


class RustupToolchain(ToolchainManager):
    """Updates Rust toolchains through rustup."""

    def __init__(
        self,
        command: str = "rustup",
        channel: Optional[str] = None,
        timeout_seconds: int = 1800,
        runner: CommandRunner = subprocess.run,
    ) -> None:
        self._command = command
        self._channel = channel
        self._timeout_seconds = timeout_seconds
        self._runner = runner

    @property
    def argv(self) -> list[str]:
        argv = [self._command, "update"]
        if self._channel is not None:
            argv.append(self._channel)
        return argv

    def describe(self) -> str:
        return " ".join(self.argv)

    def update(self) -> None:
        result = run_command(
            self.argv,
            timeout_seconds=self._timeout_seconds,
            runner=self._runner,
        )

        if not result.launched:
            raise ToolchainUpdateError(
                f"Toolchain updater unavailable: {result.stderr}",
                stderr=result.stderr,
            )
        if result.timed_out:
            raise ToolchainUpdateError(
                f"Toolchain update timed out after {self._timeout_seconds}s",
                stderr=result.stderr,
            )
        if not result.success:
            raise ToolchainUpdateError(
                f"Toolchain update failed with exit code {result.exit_code}",
                exit_code=result.exit_code,
                stderr=tail(result.stderr),
            )

        logger.info(
            "Toolchain up to date",
            extra={"channel": self._channel or "all"},
        )
