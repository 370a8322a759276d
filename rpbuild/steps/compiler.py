# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Release compiler: `cargo build --release`.

The crate is a cdylib, so cargo drops exactly one shared library into
<target_dir>/<profile dir>/. Its file name is derived from the crate name with
the platform's conventions:

    Linux    lib<crate>.so
    macOS    lib<crate>.dylib
    Windows  <crate>.dll

Dashes in the crate name become underscores, as cargo does for library
targets. The profile directory is the profile name, except that cargo's `dev`
profile writes to `debug/`.

The build itself is opaque to us. The only contract is the exit code, plus the
file it is supposed to leave behind. Whether that file actually appeared is the
publisher's problem.
"""

import platform
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from rpbuild.logging.logger import get_logger
from rpbuild.pipeline.errors import CompileError
from rpbuild.steps.interfaces import ReleaseCompiler
from rpbuild.steps.process import CommandRunner, run_command, tail

logger = get_logger(__name__)

RELEASE_PROFILE = "release"


def library_file_name(crate_name: str, system: Optional[str] = None) -> str:
    """
    File name cargo gives a cdylib built from crate_name.

    Args:
        crate_name: The library's crate name.
        system: platform.system() value; defaults to the running platform.
    """
    system = system or platform.system()
    stem = crate_name.replace("-", "_")
    if system == "Windows":
        return f"{stem}.dll"
    if system == "Darwin":
        return f"lib{stem}.dylib"
    return f"lib{stem}.so"


def profile_output_dir(profile: str) -> str:
    """Directory under the target dir that a profile writes into."""
    return "debug" if profile == "dev" else profile


class CargoCompiler(ReleaseCompiler):
    """Builds a cargo crate and reports where its shared library lands."""

    def __init__(
        self,
        checkout: Path,
        crate_name: str,
        command: str = "cargo",
        profile: str = RELEASE_PROFILE,
        features: Sequence[str] = (),
        target_dir: Optional[Path] = None,
        timeout_seconds: int = 3600,
        system: Optional[str] = None,
        runner: CommandRunner = subprocess.run,
    ) -> None:
        self._checkout = checkout
        self._crate_name = crate_name
        self._command = command
        self._profile = profile
        self._features = list(features)
        self._target_dir = target_dir if target_dir is not None else checkout / "target"
        self._timeout_seconds = timeout_seconds
        self._system = system
        self._runner = runner

    @property
    def manifest_path(self) -> Path:
        return self._checkout / "Cargo.toml"

    @property
    def output_path(self) -> Path:
        return (
            self._target_dir
            / profile_output_dir(self._profile)
            / library_file_name(self._crate_name, self._system)
        )

    @property
    def argv(self) -> list[str]:
        argv = [self._command, "build"]
        if self._profile == RELEASE_PROFILE:
            argv.append("--release")
        else:
            argv.extend(["--profile", self._profile])
        argv.extend(["--manifest-path", str(self.manifest_path)])
        argv.extend(["--target-dir", str(self._target_dir)])
        if self._features:
            argv.extend(["--features", ",".join(self._features)])
        return argv

    def describe(self) -> str:
        return f"{' '.join(self.argv)} -> {self.output_path}"

    def compile(self) -> Path:
        if not self.manifest_path.is_file():
            raise CompileError(f"No Cargo.toml in checkout: {self.manifest_path}")

        result = run_command(
            self.argv,
            cwd=self._checkout,
            timeout_seconds=self._timeout_seconds,
            runner=self._runner,
        )

        if not result.launched:
            raise CompileError(
                f"Compiler unavailable: {result.stderr}",
                stderr=result.stderr,
            )
        if result.timed_out:
            raise CompileError(
                f"Build timed out after {self._timeout_seconds}s",
                stderr=result.stderr,
            )
        if not result.success:
            raise CompileError(
                f"Build failed with exit code {result.exit_code}",
                exit_code=result.exit_code,
                stderr=tail(result.stderr),
            )

        logger.info(
            "Build finished",
            extra={
                "profile": self._profile,
                "output": str(self.output_path),
                "elapsed_seconds": round(result.elapsed_seconds, 3),
            },
        )
        return self.output_path
