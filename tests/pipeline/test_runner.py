# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for fail-fast step sequencing, with in-memory collaborators.

No subprocesses here: each collaborator records that it was called and either
returns or raises what the test told it to.
"""

from pathlib import Path
from typing import Optional

import pytest

from rpbuild.pipeline.errors import (
    CompileError,
    NetworkError,
    PublishIOError,
    ToolchainUpdateError,
)
from rpbuild.pipeline.models import Artifact, SyncResult
from rpbuild.pipeline.runner import PipelineStep, RunState, build_steps, run_pipeline
from rpbuild.steps.interfaces import (
    ArtifactPublisher,
    ReleaseCompiler,
    SourceRepository,
    ToolchainManager,
)


class FakeToolchain(ToolchainManager):
    def __init__(self, calls: list[str], error: Optional[Exception] = None) -> None:
        self.calls = calls
        self.error = error

    def update(self) -> None:
        self.calls.append("toolchain")
        if self.error:
            raise self.error


class FakeRepository(SourceRepository):
    def __init__(self, calls: list[str], error: Optional[Exception] = None) -> None:
        self.calls = calls
        self.error = error

    def sync(self) -> SyncResult:
        self.calls.append("sync")
        if self.error:
            raise self.error
        return SyncResult(before="a", after="b", commits_pulled=1)


class FakeCompiler(ReleaseCompiler):
    def __init__(self, calls: list[str], output: Path, error: Optional[Exception] = None) -> None:
        self.calls = calls
        self.output = output
        self.error = error

    def compile(self) -> Path:
        self.calls.append("compile")
        if self.error:
            raise self.error
        return self.output


class FakePublisher(ArtifactPublisher):
    def __init__(self, calls: list[str], error: Optional[Exception] = None) -> None:
        self.calls = calls
        self.error = error
        self.published: list[Path] = []

    def publish(self, build_output: Path) -> Artifact:
        self.calls.append("publish")
        if self.error:
            raise self.error
        self.published.append(build_output)
        return Artifact(
            source_path=build_output,
            destination_path=Path("/dest/rectangular_promotion.so"),
            sha256="0" * 64,
            size_bytes=4,
        )


def _steps(
    calls: list[str],
    toolchain_error: Optional[Exception] = None,
    sync_error: Optional[Exception] = None,
    compile_error: Optional[Exception] = None,
    publish_error: Optional[Exception] = None,
) -> tuple[list[PipelineStep], FakePublisher]:
    publisher = FakePublisher(calls, publish_error)
    steps = build_steps(
        FakeToolchain(calls, toolchain_error),
        FakeRepository(calls, sync_error),
        FakeCompiler(calls, Path("/build/librectangular_promotion.so"), compile_error),
        publisher,
    )
    return steps, publisher


class TestHappyPath:
    def test_runs_all_steps_in_order(self) -> None:
        calls: list[str] = []
        steps, publisher = _steps(calls)

        result = run_pipeline(steps)

        assert calls == ["toolchain", "sync", "compile", "publish"]
        assert result.success is True
        assert result.exit_status == 0
        assert [s.name for s in result.steps] == ["toolchain", "sync", "compile", "publish"]
        assert all(s.success for s in result.steps)
        assert publisher.published == [Path("/build/librectangular_promotion.so")]
        assert result.artifact is not None
        assert result.sync == SyncResult(before="a", after="b", commits_pulled=1)


class TestFailFast:
    def test_toolchain_failure_stops_everything(self) -> None:
        calls: list[str] = []
        steps, _ = _steps(calls, toolchain_error=ToolchainUpdateError("no net", exit_code=1))

        result = run_pipeline(steps)

        assert calls == ["toolchain"]
        assert result.success is False
        assert result.failed_step == "toolchain"
        assert result.exit_status == 1

    def test_network_failure_skips_build(self) -> None:
        calls: list[str] = []
        steps, _ = _steps(calls, sync_error=NetworkError("unreachable", exit_code=128))

        result = run_pipeline(steps)

        assert calls == ["toolchain", "sync"]
        assert result.failed_step == "sync"
        assert result.exit_status == 128

    def test_compile_failure_never_publishes(self) -> None:
        calls: list[str] = []
        steps, publisher = _steps(calls, compile_error=CompileError("E0308", exit_code=101))

        result = run_pipeline(steps)

        assert "publish" not in calls
        assert publisher.published == []
        assert result.artifact is None
        assert result.exit_status == 101
        assert [s.success for s in result.steps] == [True, True, False]
        assert result.steps[-1].error == "E0308"

    def test_publish_failure_without_exit_code(self) -> None:
        calls: list[str] = []
        steps, _ = _steps(calls, publish_error=PublishIOError("disk full"))

        result = run_pipeline(steps)

        assert result.failed_step == "publish"
        assert result.exit_status is None

    def test_unexpected_errors_propagate(self) -> None:
        calls: list[str] = []
        steps, _ = _steps(calls, sync_error=KeyError("bug"))

        with pytest.raises(KeyError):
            run_pipeline(steps)


class TestImportCheckStep:
    def test_appended_when_checker_given(self) -> None:
        class RecordingChecker:
            def __init__(self) -> None:
                self.checked: list[Path] = []

            def check(self, published: Path) -> None:
                self.checked.append(published)

        calls: list[str] = []
        checker = RecordingChecker()
        steps = build_steps(
            FakeToolchain(calls),
            FakeRepository(calls),
            FakeCompiler(calls, Path("/build/lib.so")),
            FakePublisher(calls),
            import_checker=checker,  # type: ignore[arg-type]
        )

        result = run_pipeline(steps)

        assert [s.name for s in result.steps][-1] == "import_check"
        assert checker.checked == [Path("/dest/rectangular_promotion.so")]


class TestCustomSteps:
    def test_state_flows_between_steps(self) -> None:
        seen: list[Optional[Path]] = []

        def produce(state: RunState) -> None:
            state.build_output = Path("/x")

        def consume(state: RunState) -> None:
            seen.append(state.build_output)

        run_pipeline([PipelineStep("produce", produce), PipelineStep("consume", consume)])

        assert seen == [Path("/x")]
