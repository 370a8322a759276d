# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for rpbuild.

Each pipeline step gets its own frozen pydantic model. Every field has a
default, and the defaults reproduce the fixed behaviour the pipeline has always
had: `rustup update`, `git pull`, `cargo build --release`, then a copy of
`target/release/librectangular_promotion.so` to `../rectangular_promotion.so`.
A config file only needs to mention what it changes.

The models use pydantic v2's ConfigDict with:
  - frozen=True: immutability after construction
  - extra="forbid": unknown fields cause immediate failure
  - validate_default=True: even defaults get type-checked
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class GlobalConfig(BaseModel):
    """Cross-cutting settings: observability only."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    log_level: str = Field(
        default="INFO",
        description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional path for JSON-lines log output, relative to the checkout",
    )

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        upper = value.upper()
        if upper not in _VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_VALID_LOG_LEVELS)}")
        return upper


class ToolchainConfig(BaseModel):
    """
    How the Rust toolchain gets refreshed.

    With no channel, `rustup update` refreshes every installed toolchain. The
    crate relies on nightly-only features, so hosts that only care about
    nightly can set `channel: nightly` and skip the stable download.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    command: str = Field(default="rustup", description="Toolchain manager executable")
    channel: Optional[str] = Field(
        default=None, description="Update only this toolchain channel, e.g. 'nightly'"
    )
    timeout_seconds: int = Field(default=1800, ge=1)


class SourceConfig(BaseModel):
    """How the working copy is brought up to date with its upstream."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    command: str = Field(default="git", description="Source-control client executable")
    remote: Optional[str] = Field(
        default=None, description="Remote to pull from; None uses the tracking remote"
    )
    branch: Optional[str] = Field(
        default=None, description="Branch to pull; requires remote"
    )
    fast_forward_only: bool = Field(
        default=True,
        description="Refuse to create merge commits; diverged history fails the sync",
    )
    timeout_seconds: int = Field(default=600, ge=1)

    @field_validator("branch")
    @classmethod
    def _branch_needs_remote(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        if value is not None and info.data.get("remote") is None:
            raise ValueError("branch can only be set together with remote")
        return value


class BuildConfig(BaseModel):
    """
    The cargo release build.

    crate_name must match the `[lib] name` in Cargo.toml, since cargo derives
    the shared library's file name from it.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    command: str = Field(default="cargo", description="Build tool executable")
    crate_name: str = Field(default="rectangular_promotion", min_length=1)
    profile: str = Field(
        default="release", min_length=1, description="Cargo profile; 'release' uses --release"
    )
    features: list[str] = Field(default_factory=list)
    target_dir: str = Field(
        default="target", description="Cargo target directory, relative to the checkout"
    )
    timeout_seconds: int = Field(default=3600, ge=1)


class PublishConfig(BaseModel):
    """Where the compiled library ends up, and whether to smoke-test it."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    destination_dir: str = Field(
        default="..", description="Directory to publish into, relative to the checkout"
    )
    file_name: str = Field(default="rectangular_promotion.so", min_length=1)
    verify_import: bool = Field(
        default=False,
        description="Import the published module in a child interpreter after copying",
    )
    python: Optional[str] = Field(
        default=None,
        description="Interpreter for the import check; defaults to the running one",
    )
    import_timeout_seconds: int = Field(default=60, ge=1)


class LockConfig(BaseModel):
    """Run-level lock against two pipelines racing on the same checkout."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    enabled: bool = Field(default=True)


class PipelineConfig(BaseModel):
    """
    Top-level config container.

    Every section is optional. A YAML file containing just
    `build: {profile: dev}` is a complete, valid config.
    """

    model_config = ConfigDict(
        frozen=True, extra="forbid", validate_default=True, populate_by_name=True
    )

    global_config: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    toolchain: ToolchainConfig = Field(default_factory=ToolchainConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)
    lock: LockConfig = Field(default_factory=LockConfig)
