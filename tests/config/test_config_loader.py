# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the config loader.

Covers the happy path, the "no file means defaults" rule, and every failure
mode: missing file, directory instead of file, broken YAML, non-mapping YAML,
and schema violations.
"""

from pathlib import Path

import pytest

from rpbuild.config.exceptions import ConfigError, ConfigLoadError, ConfigValidationError
from rpbuild.config.loader import default_config, load_config
from rpbuild.config.schema import PipelineConfig


class TestLoadConfig:
    def test_loads_valid_file(self, config_file: Path) -> None:
        config = load_config(config_file)

        assert isinstance(config, PipelineConfig)
        assert config.global_config.log_level == "DEBUG"
        assert config.toolchain.channel == "nightly"
        assert config.lock.enabled is False

    def test_unmentioned_sections_keep_defaults(self, config_file: Path) -> None:
        config = load_config(config_file)

        assert config.build.profile == "release"
        assert config.publish.file_name == "rectangular_promotion.so"

    def test_empty_file_means_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert load_config(path) == default_config()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_directory_is_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError, match="not a file"):
            load_config(tmp_path)

    def test_broken_yaml(self, broken_yaml_file: Path) -> None:
        with pytest.raises(ConfigLoadError, match="Invalid YAML"):
            load_config(broken_yaml_file)

    def test_yaml_list_is_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="mapping"):
            load_config(path)

    def test_schema_violation(self, invalid_config_file: Path) -> None:
        with pytest.raises(ConfigValidationError, match="validation failed"):
            load_config(invalid_config_file)

    def test_all_errors_share_a_base(self, invalid_config_file: Path) -> None:
        with pytest.raises(ConfigError):
            load_config(invalid_config_file)
