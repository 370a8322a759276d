# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for rpbuild tests.

Nothing here runs a real rustup, git or cargo. Steps take a `runner` in place
of subprocess.run, and FakeRunner answers by matching the start of the argv.
A response can be a CompletedProcess, an exception to raise, or a callable
that gets to act first (e.g. drop a fake library where cargo would).
"""

import subprocess
import textwrap
from pathlib import Path
from typing import Any

import pytest


def completed(
    argv: list[str] | None = None, returncode: int = 0, stdout: str = "", stderr: str = ""
) -> "subprocess.CompletedProcess[str]":
    return subprocess.CompletedProcess(argv or [], returncode, stdout=stdout, stderr=stderr)


class FakeRunner:
    """Stand-in for subprocess.run that records every call."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.kwargs: list[dict[str, Any]] = []
        self._responses: list[tuple[tuple[str, ...], Any]] = []

    def on(self, *prefix: str, response: Any) -> "FakeRunner":
        self._responses.append((tuple(prefix), response))
        return self

    def _match(self, argv: list[str]) -> Any:
        best: tuple[int, Any] | None = None
        for prefix, response in self._responses:
            if tuple(argv[: len(prefix)]) == prefix:
                if best is None or len(prefix) > best[0]:
                    best = (len(prefix), response)
        return best[1] if best is not None else None

    def __call__(self, argv: list[str], **kwargs: Any) -> "subprocess.CompletedProcess[str]":
        self.calls.append(list(argv))
        self.kwargs.append(kwargs)
        response = self._match(list(argv))
        if response is None:
            return completed(argv)
        if isinstance(response, BaseException):
            raise response
        if callable(response):
            return response(list(argv), kwargs)
        return response

    def commands(self) -> list[str]:
        """The first two argv words of each call, e.g. 'cargo build'."""
        return [" ".join(call[:2]) for call in self.calls]


@pytest.fixture()
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture()
def checkout(tmp_path: Path) -> Path:
    """
    A fake crate checkout inside tmp_path/work, so `..` is tmp_path/work.

    Only Cargo.toml is needed; the compiler step checks it exists before
    calling cargo.
    """
    root = tmp_path / "work" / "rectangular-promotion"
    (root / "src").mkdir(parents=True)
    (root / "Cargo.toml").write_text(
        textwrap.dedent("""\
            [package]
            name = "rectangular-promotion"
            version = "0.1.0"

            [lib]
            name = "rectangular_promotion"
            crate-type = ["cdylib"]
        """),
        encoding="utf-8",
    )
    (root / "src" / "lib.rs").write_text("// empty\n", encoding="utf-8")
    return root


def cargo_that_writes(content: bytes, system_lib: str = "librectangular_promotion.so"):
    """A FakeRunner response that behaves like a successful release build."""

    def _respond(argv: list[str], kwargs: dict[str, Any]) -> "subprocess.CompletedProcess[str]":
        target_dir = Path(argv[argv.index("--target-dir") + 1])
        profile = "release"
        if "--profile" in argv:
            profile = argv[argv.index("--profile") + 1]
            profile = "debug" if profile == "dev" else profile
        out_dir = target_dir / profile
        out_dir.mkdir(parents=True, exist_ok=True)
        (out_dir / system_lib).write_bytes(content)
        return completed(argv, 0, stderr="    Finished release [optimized] target(s)\n")

    return _respond


@pytest.fixture()
def config_file(tmp_path: Path) -> Path:
    """A small valid config that overrides a couple of defaults."""
    config_content = textwrap.dedent("""\
        global:
          log_level: DEBUG
        toolchain:
          channel: nightly
        lock:
          enabled: false
    """)
    path = tmp_path / "rpbuild.yaml"
    path.write_text(config_content, encoding="utf-8")
    return path


@pytest.fixture()
def invalid_config_file(tmp_path: Path) -> Path:
    """Valid YAML that fails schema validation (unknown key)."""
    path = tmp_path / "invalid.yaml"
    path.write_text("build:\n  optimise: true\n", encoding="utf-8")
    return path


@pytest.fixture()
def broken_yaml_file(tmp_path: Path) -> Path:
    """A file that isn't valid YAML at all."""
    path = tmp_path / "broken.yaml"
    path.write_text("{{not: yaml: at: all:::", encoding="utf-8")
    return path


@pytest.fixture()
def proc() -> Any:
    """Builds CompletedProcess responses: proc(argv, returncode, stdout, stderr)."""
    return completed


@pytest.fixture()
def cargo_writes() -> Any:
    """Builds a cargo response that leaves a library behind: cargo_writes(b"...")."""
    return cargo_that_writes
