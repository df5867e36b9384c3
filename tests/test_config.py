# This file is part of Relstack, a tool for orchestrating multi-project .NET releases.
#
# Copyright 2025 Canonical Ltd.
#
# SPDX-License-Identifier: GPL-3.0-only
#
# Relstack is free software: you can redistribute it and/or modify it under
# the terms of the GNU General Public License version 3, as published by the
# Free Software Foundation.
#
# Relstack is distributed in the hope that it will be useful, but WITHOUT
# ANY WARRANTY; without even the implied warranties of MERCHANTABILITY,
# SATISFACTORY QUALITY, or FITNESS FOR A PARTICULAR PURPOSE. See the GNU
# General Public License for more details.
#
# You should have received a copy of the GNU General Public License along with
# Relstack. If not, see <http://www.gnu.org/licenses/>.

"""Tests for relstack.config module."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest
import yaml

from relstack import config
from relstack.core.exceptions import ConfigError


class TestMergeConfig:
    """Tests for merge_config function."""

    def test_empty_mapping_gives_defaults(self) -> None:
        assert config.merge_config({}) == config.DEFAULT_CONFIG

    def test_section_values_override_defaults(self) -> None:
        merged = config.merge_config({"github": {"user": "acme"}})
        assert merged["github"]["user"] == "acme"
        assert merged["github"]["branches"] == ["main"]

    def test_defaults_are_not_mutated(self) -> None:
        merged = config.merge_config({})
        merged["github"]["branches"].append("dev")
        assert config.DEFAULT_CONFIG["github"]["branches"] == ["main"]

    def test_non_mapping_section_raises(self) -> None:
        with pytest.raises(ConfigError, match="`msbuild` must be a mapping"):
            config.merge_config({"msbuild": ["a.csproj"]})


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_values(self, write_config: Callable[..., Path], tmp_path: Path) -> None:
        path = write_config(
            """
msbuild:
  projects: [src/Acme.sln]
  configuration: Debug
  restore: false
  parallel: 3
github:
  user: acme
  repo: widgets
  branches: [main, release]
  version_prefix: "v"
nuget:
  publish: false
changelog:
  disable_draft_for_build: true
"""
        )
        cfg = config.load_config(path)

        assert cfg.path == path.resolve()
        assert cfg.root == path.resolve().parent
        assert cfg.msbuild.projects == (Path(os.path.normpath(tmp_path.resolve() / "src" / "Acme.sln")),)
        assert cfg.msbuild.configuration == "Debug"
        assert cfg.msbuild.restore is False
        assert cfg.msbuild.parallel == 3
        assert cfg.github.branches == ("main", "release")
        assert cfg.github.get_url() == "https://github.com/acme/widgets"
        assert cfg.nuget.publish is False
        assert cfg.changelog.disable_draft_for_build is True

    def test_defaults(self, write_config: Callable[..., Path]) -> None:
        cfg = config.load_config(write_config("msbuild:\n  projects: [App.csproj]\n"))

        assert cfg.msbuild.configuration == "Release"
        assert cfg.msbuild.restore is True
        assert cfg.msbuild.parallel == (os.cpu_count() or 1)
        assert cfg.github.branches == ("main",)
        assert cfg.github.version_prefix == "v"
        assert cfg.github.publish is True
        assert cfg.github.get_url() == ""
        assert cfg.nuget.publish is True
        assert cfg.changelog.disable_draft_for_build is False

    def test_single_project_string(self, write_config: Callable[..., Path]) -> None:
        cfg = config.load_config(write_config("msbuild:\n  projects: App.csproj\n"))
        assert [p.name for p in cfg.msbuild.projects] == ["App.csproj"]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            config.load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, write_config: Callable[..., Path]) -> None:
        with pytest.raises(ConfigError, match="Unable to read"):
            config.load_config(write_config("msbuild: [unclosed\n"))

    def test_non_mapping_document(self, write_config: Callable[..., Path]) -> None:
        with pytest.raises(ConfigError, match="must contain a mapping"):
            config.load_config(write_config("- a\n- b\n"))

    def test_no_projects(self, write_config: Callable[..., Path]) -> None:
        with pytest.raises(ConfigError, match="No projects listed"):
            config.load_config(write_config("github:\n  user: acme\n"))

    def test_invalid_bool(self, write_config: Callable[..., Path]) -> None:
        with pytest.raises(ConfigError, match="github.publish"):
            config.load_config(write_config("msbuild:\n  projects: [A.csproj]\ngithub:\n  publish: maybe\n"))

    def test_invalid_parallel(self, write_config: Callable[..., Path]) -> None:
        with pytest.raises(ConfigError, match="msbuild.parallel` must be a non-negative integer"):
            config.load_config(write_config("msbuild:\n  projects: [A.csproj]\n  parallel: -2\n"))


class TestWriteDefaultConfig:
    """Tests for write_default_config function."""

    def test_writes_loadable_config(self, tmp_path: Path) -> None:
        path = tmp_path / "relstack.yaml"
        config.write_default_config(path, ["Acme.sln"])

        raw = yaml.safe_load(path.read_text())
        assert raw["msbuild"]["projects"] == ["Acme.sln"]
        assert raw["github"]["branches"] == ["main"]

        cfg = config.load_config(path)
        assert [p.name for p in cfg.msbuild.projects] == ["Acme.sln"]
