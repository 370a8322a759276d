# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Optional post-publish smoke test: import the published extension module.

The library is published one directory above the checkout under a bare module
file name so that Python code living there can `import rectangular_promotion`.
This check does exactly that in a child interpreter, with the destination
directory first on the path. A library that links but fails to initialise
(missing symbol, ABI mismatch with the interpreter) is caught here instead of
by whoever imports it next.

It runs in a subprocess because importing a broken extension into our own
process can crash it outright.
"""

import os
import subprocess
import sys
from pathlib import Path
from typing import Optional

from rpbuild.logging.logger import get_logger
from rpbuild.pipeline.errors import ArtifactImportError
from rpbuild.steps.process import CommandRunner, run_command, tail

logger = get_logger(__name__)


def module_name_for(published: Path) -> str:
    """
    Module name Python will look for when importing this file.

    Everything before the first dot: `rectangular_promotion.so` and
    `rectangular_promotion.cpython-312-x86_64-linux-gnu.so` both give
    `rectangular_promotion`.

    Raises:
        ArtifactImportError: If the name is not a valid Python identifier.
    """
    name = published.name.split(".", 1)[0]
    if not name.isidentifier():
        raise ArtifactImportError(
            f"Published file name {published.name!r} is not importable as a module"
        )
    return name


class ImportChecker:
    """Imports a published extension module in a fresh interpreter."""

    def __init__(
        self,
        python: Optional[str] = None,
        timeout_seconds: int = 60,
        runner: CommandRunner = subprocess.run,
    ) -> None:
        self._python = python or sys.executable
        self._timeout_seconds = timeout_seconds
        self._runner = runner

    def describe(self) -> str:
        return f"{self._python} -c 'import <module>'"

    def check(self, published: Path) -> None:
        module = module_name_for(published)
        directory = published.parent

        env = dict(os.environ)
        existing = env.get("PYTHONPATH")
        env["PYTHONPATH"] = (
            str(directory) if not existing else f"{directory}{os.pathsep}{existing}"
        )

        result = run_command(
            [self._python, "-c", f"import {module}"],
            cwd=directory,
            timeout_seconds=self._timeout_seconds,
            env=env,
            runner=self._runner,
        )

        if not result.success:
            raise ArtifactImportError(
                f"Importing {module} from {directory} failed",
                exit_code=result.exit_code if result.launched and not result.timed_out else None,
                stderr=tail(result.stderr),
            )

        logger.info(
            "Published module imports cleanly",
            extra={"module_name": module, "directory": str(directory)},
        )
