# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the git synchronizer.

The interesting part is the failure split: an unreachable remote must come
back as NetworkError and a blocked fast-forward as SyncConflictError, even
though git exits 1 in both cases.
"""

import subprocess
from pathlib import Path
from typing import Any

import pytest

from rpbuild.pipeline.errors import NetworkError, PipelineStepError, SyncConflictError
from rpbuild.steps.source import GitRepository, is_network_failure


def heads(*commits: str) -> Any:
    """rev-parse response that returns each commit in turn."""
    remaining = list(commits)

    def _respond(argv: list[str], kwargs: dict[str, Any]) -> "subprocess.CompletedProcess[str]":
        return subprocess.CompletedProcess(argv, 0, stdout=remaining.pop(0) + "\n", stderr="")

    return _respond


class TestArgv:
    def test_default_is_fast_forward_pull(self, checkout: Path) -> None:
        assert GitRepository(checkout).argv == ["git", "pull", "--ff-only"]

    def test_remote_and_branch(self, checkout: Path) -> None:
        repo = GitRepository(checkout, remote="origin", branch="main")
        assert repo.argv == ["git", "pull", "--ff-only", "origin", "main"]

    def test_plain_pull(self, checkout: Path) -> None:
        assert GitRepository(checkout, fast_forward_only=False).argv == ["git", "pull"]


class TestSync:
    def test_already_up_to_date(self, checkout: Path, fake_runner: Any, proc: Any) -> None:
        fake_runner.on("git", "rev-parse", response=heads("abc123", "abc123"))
        fake_runner.on("git", "pull", response=proc(["git"], 0, stdout="Already up to date.\n"))

        result = GitRepository(checkout, runner=fake_runner).sync()

        assert result.changed is False
        assert result.commits_pulled == 0
        assert "git rev-list" not in fake_runner.commands()

    def test_new_commits(self, checkout: Path, fake_runner: Any, proc: Any) -> None:
        fake_runner.on("git", "rev-parse", response=heads("aaa", "bbb"))
        fake_runner.on("git", "rev-list", response=proc(["git"], 0, stdout="3\n"))

        result = GitRepository(checkout, runner=fake_runner).sync()

        assert result.before == "aaa"
        assert result.after == "bbb"
        assert result.changed is True
        assert result.commits_pulled == 3
        assert ["git", "rev-list", "--count", "aaa..bbb"] in fake_runner.calls

    def test_runs_in_checkout(self, checkout: Path, fake_runner: Any) -> None:
        GitRepository(checkout, runner=fake_runner).sync()
        assert all(kwargs["cwd"] == str(checkout) for kwargs in fake_runner.kwargs)

    def test_unreadable_head_does_not_fail(
        self, checkout: Path, fake_runner: Any, proc: Any
    ) -> None:
        fake_runner.on("git", "rev-parse", response=proc(["git"], 128, stderr="fatal"))

        result = GitRepository(checkout, runner=fake_runner).sync()

        assert result.before == "unknown"
        assert result.commits_pulled is None

    def test_unreachable_remote(self, checkout: Path, fake_runner: Any, proc: Any) -> None:
        fake_runner.on(
            "git",
            "pull",
            response=proc(
                ["git"],
                1,
                stderr="fatal: unable to access 'https://example.com/r.git/': "
                "Could not resolve host: example.com\n",
            ),
        )

        with pytest.raises(NetworkError) as excinfo:
            GitRepository(checkout, runner=fake_runner).sync()

        assert excinfo.value.exit_code == 1
        assert excinfo.value.step == "sync"

    def test_local_changes_block_pull(self, checkout: Path, fake_runner: Any, proc: Any) -> None:
        fake_runner.on(
            "git",
            "pull",
            response=proc(
                ["git"],
                1,
                stderr="error: Your local changes to the following files would be "
                "overwritten by merge:\n\tsrc/lib.rs\nAborting\n",
            ),
        )

        with pytest.raises(SyncConflictError) as excinfo:
            GitRepository(checkout, runner=fake_runner).sync()

        assert "src/lib.rs" in excinfo.value.stderr

    def test_diverged_history(self, checkout: Path, fake_runner: Any, proc: Any) -> None:
        fake_runner.on(
            "git",
            "pull",
            response=proc(["git"], 128, stderr="fatal: Not possible to fast-forward, aborting.\n"),
        )

        with pytest.raises(SyncConflictError) as excinfo:
            GitRepository(checkout, runner=fake_runner).sync()

        assert excinfo.value.exit_code == 128

    def test_timeout_is_network(self, checkout: Path, fake_runner: Any) -> None:
        fake_runner.on("git", "pull", response=subprocess.TimeoutExpired(["git"], 1))

        with pytest.raises(NetworkError, match="timed out"):
            GitRepository(checkout, timeout_seconds=1, runner=fake_runner).sync()

    def test_git_missing(self, checkout: Path, fake_runner: Any) -> None:
        fake_runner.on("git", response=FileNotFoundError(2, "No such file"))

        with pytest.raises(PipelineStepError) as excinfo:
            GitRepository(checkout, runner=fake_runner).sync()

        assert excinfo.value.step == "sync"
        assert not isinstance(excinfo.value, (NetworkError, SyncConflictError))


class TestNetworkClassification:
    @pytest.mark.parametrize(
        "stderr",
        [
            "ssh: connect to host github.com port 22: Connection refused",
            "fatal: Could not read from remote repository.",
            "fatal: unable to access 'https://x/': Failed to connect to x port 443",
            "ssh: Could not resolve hostname github.com: Temporary failure in name resolution",
        ],
    )
    def test_network_messages(self, stderr: str) -> None:
        assert is_network_failure(stderr) is True

    @pytest.mark.parametrize(
        "stderr",
        [
            "CONFLICT (content): Merge conflict in src/lib.rs",
            "fatal: Not possible to fast-forward, aborting.",
            "",
        ],
    )
    def test_local_messages(self, stderr: str) -> None:
        assert is_network_failure(stderr) is False
