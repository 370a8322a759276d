# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
External command execution shared by every pipeline step.

Run the subprocess, capture everything, enforce a timeout, return the result.
Never raises for the command's own failures: a missing executable, a timeout
and a non-zero exit all come back as a CommandResult. Each step decides which
of its own errors that turns into.

Commands are always argv lists. No shell=True anywhere.

The `runner` argument exists so tests can stand in for subprocess.run without
touching a real toolchain, checkout or compiler.
"""

import subprocess
import time
from pathlib import Path
from typing import Callable, Optional, Sequence

from rpbuild.logging.logger import get_logger
from rpbuild.pipeline.models import CommandResult

logger = get_logger(__name__)

CommandRunner = Callable[..., "subprocess.CompletedProcess[str]"]


def tail(text: str, max_lines: int = 40, max_chars: int = 4000) -> str:
    """Return the last few lines of command output, for logs and error messages."""
    if not text:
        return ""
    joined = "\n".join(text.strip().splitlines()[-max_lines:])
    if len(joined) > max_chars:
        joined = joined[-max_chars:]
    return joined


def run_command(
    argv: Sequence[str],
    cwd: Optional[Path] = None,
    timeout_seconds: int = 600,
    env: Optional[dict[str, str]] = None,
    runner: CommandRunner = subprocess.run,
) -> CommandResult:
    """
    Run one external command to completion and capture its output.

    Args:
        argv: Executable followed by its arguments.
        cwd: Working directory, or None for the current one.
        timeout_seconds: Hard wall-clock limit.
        env: Full environment for the child, or None to inherit ours.
        runner: Stand-in for subprocess.run.

    Returns:
        A CommandResult. `launched` is False if the executable could not be
        started at all; `timed_out` is True if the limit was hit.
    """
    argv_tuple = tuple(argv)
    logger.info(
        "Running command",
        extra={"argv": list(argv_tuple), "cwd": str(cwd) if cwd else None},
    )
    start = time.monotonic()

    # subprocess reports a missing cwd as FileNotFoundError too.
    if cwd is not None and not cwd.is_dir():
        logger.error(
            "Working directory not found",
            extra={"argv": list(argv_tuple), "cwd": str(cwd)},
        )
        return CommandResult(
            argv=argv_tuple,
            exit_code=-1,
            stdout="",
            stderr=f"Working directory not found: {cwd}",
            elapsed_seconds=0.0,
            launched=False,
        )

    try:
        completed = runner(
            list(argv_tuple),
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            text=True,
            timeout=timeout_seconds,
            env=env,
            check=False,
        )
    except subprocess.TimeoutExpired:
        elapsed = time.monotonic() - start
        logger.warning(
            "Command timed out",
            extra={"argv": list(argv_tuple), "timeout_seconds": timeout_seconds},
        )
        return CommandResult(
            argv=argv_tuple,
            exit_code=-1,
            stdout="",
            stderr=f"{argv_tuple[0]} timed out after {timeout_seconds}s",
            elapsed_seconds=elapsed,
            timed_out=True,
        )
    except FileNotFoundError:
        elapsed = time.monotonic() - start
        logger.error(
            "Executable not found",
            extra={"executable": argv_tuple[0]},
        )
        return CommandResult(
            argv=argv_tuple,
            exit_code=-1,
            stdout="",
            stderr=f"{argv_tuple[0]} executable not found",
            elapsed_seconds=elapsed,
            launched=False,
        )
    except OSError as err:
        elapsed = time.monotonic() - start
        logger.error(
            "Could not start command",
            extra={"executable": argv_tuple[0], "error": str(err)},
        )
        return CommandResult(
            argv=argv_tuple,
            exit_code=-1,
            stdout="",
            stderr=f"Could not start {argv_tuple[0]}: {err}",
            elapsed_seconds=elapsed,
            launched=False,
        )

    elapsed = time.monotonic() - start
    result = CommandResult(
        argv=argv_tuple,
        exit_code=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
        elapsed_seconds=elapsed,
    )

    logger.info(
        "Command finished",
        extra={
            "argv": list(argv_tuple),
            "exit_code": result.exit_code,
            "elapsed_seconds": round(elapsed, 3),
        },
    )
    if not result.success and result.stderr:
        logger.warning(
            "Command stderr (tail)",
            extra={"argv": list(argv_tuple), "stderr": tail(result.stderr)},
        )

    return result
