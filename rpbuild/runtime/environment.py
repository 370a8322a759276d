# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Environment checks for rpbuild.

Python itself is checked hard: we refuse to start on anything older than 3.11.
The external tools are only reported. A missing rustup, git or cargo is the
failing step's job to diagnose, with its own error type and exit code.
"""

import platform
import shutil
import sys
from typing import NamedTuple, Sequence

MINIMUM_PYTHON_MAJOR = 3
MINIMUM_PYTHON_MINOR = 11


class SystemInfo(NamedTuple):
    """Snapshot of the current system environment."""

    python_version: str
    platform: str
    architecture: str
    hostname: str


class ToolStatus(NamedTuple):
    """Whether an external executable resolves on PATH, and to where."""

    name: str
    found: bool
    path: str


def get_python_version() -> tuple[int, int, int]:
    """Return the current Python version as a (major, minor, micro) tuple."""
    return sys.version_info[:3]


def check_minimum_python() -> None:
    """
    Verify we're running Python 3.11+.

    Raises:
        RuntimeError: If Python version is below 3.11.
    """
    major, minor, _ = get_python_version()
    if major < MINIMUM_PYTHON_MAJOR or (
        major == MINIMUM_PYTHON_MAJOR and minor < MINIMUM_PYTHON_MINOR
    ):
        raise RuntimeError(
            f"rpbuild requires Python >= {MINIMUM_PYTHON_MAJOR}.{MINIMUM_PYTHON_MINOR}, "
            f"but you're running {major}.{minor}. Please upgrade."
        )


def get_system_info() -> SystemInfo:
    """Collect basic system information for logging and diagnostics."""
    return SystemInfo(
        python_version=platform.python_version(),
        platform=platform.system(),
        architecture=platform.machine(),
        hostname=platform.node(),
    )


def locate_tools(names: Sequence[str]) -> list[ToolStatus]:
    """Resolve each executable name on PATH."""
    statuses: list[ToolStatus] = []
    for name in names:
        resolved = shutil.which(name)
        statuses.append(ToolStatus(name=name, found=resolved is not None, path=resolved or ""))
    return statuses
