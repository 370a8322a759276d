# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Turns a PipelineConfig and a checkout directory into a finished run.

This is where config values become concrete collaborators and paths:
  1. Resolve the checkout, the target dir and the destination
  2. Build RustupToolchain, GitRepository, CargoCompiler, FilePublisher
  3. Dry run: log what each step would do and stop
  4. Otherwise take the run lock and execute the steps fail-fast
"""

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from rpbuild.config.schema import PipelineConfig
from rpbuild.logging.logger import get_logger
from rpbuild.pipeline.errors import PublishIOError
from rpbuild.pipeline.lock import RunLock, lock_path_for
from rpbuild.pipeline.models import PipelineResult
from rpbuild.pipeline.runner import build_steps, run_pipeline
from rpbuild.steps.compiler import CargoCompiler
from rpbuild.steps.import_check import ImportChecker
from rpbuild.steps.process import CommandRunner
from rpbuild.steps.publisher import FilePublisher
from rpbuild.steps.source import GitRepository
from rpbuild.steps.toolchain import RustupToolchain
from rpbuild.utils.paths import resolve_destination, resolve_under

logger = get_logger(__name__)


@dataclass(frozen=True)
class PipelinePlan:
    """Everything a run needs, fully resolved, before anything executes."""

    checkout: Path
    destination: Path
    lock_path: Optional[Path]
    toolchain: RustupToolchain
    repository: GitRepository
    compiler: CargoCompiler
    publisher: FilePublisher
    import_checker: Optional[ImportChecker]


def plan_pipeline(
    config: PipelineConfig,
    checkout: Path,
    runner: CommandRunner = subprocess.run,
    system: Optional[str] = None,
) -> PipelinePlan:
    """
    Resolve paths and build the step collaborators from config.

    Args:
        config: Validated pipeline config.
        checkout: Absolute path of the working copy.
        runner: Stand-in for subprocess.run, passed to every step.
        system: platform.system() override for the library file name.
    """
    destination = resolve_destination(
        checkout, config.publish.destination_dir, config.publish.file_name
    )

    toolchain = RustupToolchain(
        command=config.toolchain.command,
        channel=config.toolchain.channel,
        timeout_seconds=config.toolchain.timeout_seconds,
        runner=runner,
    )
    repository = GitRepository(
        checkout,
        command=config.source.command,
        remote=config.source.remote,
        branch=config.source.branch,
        fast_forward_only=config.source.fast_forward_only,
        timeout_seconds=config.source.timeout_seconds,
        runner=runner,
    )
    compiler = CargoCompiler(
        checkout,
        crate_name=config.build.crate_name,
        command=config.build.command,
        profile=config.build.profile,
        features=config.build.features,
        target_dir=resolve_under(checkout, config.build.target_dir),
        timeout_seconds=config.build.timeout_seconds,
        system=system,
        runner=runner,
    )
    import_checker = None
    if config.publish.verify_import:
        import_checker = ImportChecker(
            python=config.publish.python,
            timeout_seconds=config.publish.import_timeout_seconds,
            runner=runner,
        )

    return PipelinePlan(
        checkout=checkout,
        destination=destination,
        lock_path=lock_path_for(destination) if config.lock.enabled else None,
        toolchain=toolchain,
        repository=repository,
        compiler=compiler,
        publisher=FilePublisher(destination),
        import_checker=import_checker,
    )


def _log_plan(plan: PipelinePlan) -> None:
    planned = [
        ("toolchain", plan.toolchain.describe()),
        ("sync", plan.repository.describe()),
        ("compile", plan.compiler.describe()),
        ("publish", plan.publisher.describe()),
    ]
    if plan.import_checker is not None:
        planned.append(("import_check", plan.import_checker.describe()))

    for step, action in planned:
        logger.info("Dry run: would run step", extra={"step": step, "action": action})


def execute(
    config: PipelineConfig,
    checkout: Path,
    dry_run: bool = False,
    runner: CommandRunner = subprocess.run,
    system: Optional[str] = None,
) -> PipelineResult:
    """
    Run the full build-and-publish pipeline for one checkout.

    Returns:
        PipelineResult describing every step that ran.

    Raises:
        PipelineLockedError: Another live run holds the lock.
        ValueError: The configured file name is not a bare file name.
    """
    plan = plan_pipeline(config, checkout, runner=runner, system=system)

    logger.info(
        "Pipeline starting",
        extra={
            "checkout": str(plan.checkout),
            "destination": str(plan.destination),
            "dry_run": dry_run,
        },
    )

    if dry_run:
        _log_plan(plan)
        return PipelineResult(dry_run=True)

    steps = build_steps(
        plan.toolchain,
        plan.repository,
        plan.compiler,
        plan.publisher,
        import_checker=plan.import_checker,
    )

    run_lock = RunLock(plan.lock_path) if plan.lock_path is not None else None
    if run_lock is not None:
        try:
            run_lock.acquire()
        except PublishIOError as err:
            # Destination directory missing or unwritable: fail before building.
            result = PipelineResult(error=err)
            logger.error("Pipeline failed", extra=result.to_dict())
            return result

    try:
        result = run_pipeline(steps)
    finally:
        if run_lock is not None:
            run_lock.release()

    if result.success:
        logger.info("Pipeline succeeded", extra=result.to_dict())
    else:
        logger.error("Pipeline failed", extra=result.to_dict())
    return result
