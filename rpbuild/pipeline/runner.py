# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Fail-fast step sequencing.

A pipeline is an ordered list of named steps. Each step reads and writes a
shared RunState (what the previous steps produced) and either returns or raises
a PipelineStepError. The runner walks the list in order and stops at the first
error; later steps never run.

The four standard steps are wired up by `build_steps`. Adding a step means
adding one entry to that list, nothing else.
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, NamedTuple, Optional

from rpbuild.logging.logger import get_logger
from rpbuild.pipeline.errors import PipelineStepError, PublishIOError
from rpbuild.pipeline.models import Artifact, PipelineResult, StepResult, SyncResult
from rpbuild.steps.import_check import ImportChecker
from rpbuild.steps.interfaces import (
    ArtifactPublisher,
    ReleaseCompiler,
    SourceRepository,
    ToolchainManager,
)

logger = get_logger(__name__)


@dataclass
class RunState:
    """What the steps have produced so far in this run."""

    sync: Optional[SyncResult] = None
    build_output: Optional[Path] = None
    artifact: Optional[Artifact] = None


class PipelineStep(NamedTuple):
    name: str
    run: Callable[[RunState], None]


def build_steps(
    toolchain: ToolchainManager,
    repository: SourceRepository,
    compiler: ReleaseCompiler,
    publisher: ArtifactPublisher,
    import_checker: Optional[ImportChecker] = None,
) -> list[PipelineStep]:
    """Wire the collaborators into the standard step order."""

    def update_toolchain(state: RunState) -> None:
        toolchain.update()

    def sync_source(state: RunState) -> None:
        state.sync = repository.sync()

    def compile_release(state: RunState) -> None:
        state.build_output = compiler.compile()

    def publish_artifact(state: RunState) -> None:
        if state.build_output is None:
            raise PublishIOError("Nothing to publish: the compile step produced no output path")
        state.artifact = publisher.publish(state.build_output)

    steps = [
        PipelineStep("toolchain", update_toolchain),
        PipelineStep("sync", sync_source),
        PipelineStep("compile", compile_release),
        PipelineStep("publish", publish_artifact),
    ]

    if import_checker is not None:

        def check_import(state: RunState) -> None:
            if state.artifact is None:
                raise PublishIOError("Nothing to import: no artifact was published")
            import_checker.check(state.artifact.destination_path)

        steps.append(PipelineStep("import_check", check_import))

    return steps


def run_pipeline(steps: list[PipelineStep]) -> PipelineResult:
    """
    Run steps in order, stopping at the first PipelineStepError.

    Only PipelineStepError is turned into a failed result. Anything else is a
    bug and propagates to the caller untouched.
    """
    state = RunState()
    results: list[StepResult] = []

    for step in steps:
        logger.info("Step started", extra={"step": step.name})
        start = time.monotonic()

        try:
            step.run(state)
        except PipelineStepError as err:
            elapsed = time.monotonic() - start
            results.append(
                StepResult(name=step.name, success=False, elapsed_seconds=elapsed, error=str(err))
            )
            logger.error(
                "Step failed",
                extra={
                    "step": step.name,
                    "error": str(err),
                    "exit_code": err.exit_code,
                    "stderr": err.stderr,
                },
            )
            return PipelineResult(
                steps=results,
                artifact=state.artifact,
                sync=state.sync,
                error=err,
            )

        elapsed = time.monotonic() - start
        results.append(StepResult(name=step.name, success=True, elapsed_seconds=elapsed))
        logger.info(
            "Step finished",
            extra={"step": step.name, "elapsed_seconds": round(elapsed, 3)},
        )

    return PipelineResult(steps=results, artifact=state.artifact, sync=state.sync)
