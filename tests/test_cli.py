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

"""Tests for the relstack command line."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import git
import pytest
import yaml
from typer.testing import CliRunner

from relstack.cli import app

runner = CliRunner()

CONFIG = """\
msbuild:
  projects: [Core/Core.csproj]
  restore: false
github:
  user: acme
  repo: widgets
"""


@pytest.fixture
def use_fake_extractor(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, fake_extractor: type
) -> Callable[..., Any]:
    """Replace the dotnet extractor with a FakeExtractor for the Core project."""

    def _install(**values: Any) -> Any:
        extractor = fake_extractor({tmp_path.resolve() / "Core" / "Core.csproj": {"version": "1.4.0", **values}})
        monkeypatch.setattr(
            "relstack.release.configure.DotnetMSBuildExtractor", lambda configuration="Release": extractor
        )
        return extractor

    return _install


def _summary(root: Path) -> dict[str, Any]:
    [summary_file] = (root / ".relstack" / "runs").glob("*/summary.json")
    return json.loads(summary_file.read_text())


class TestCliHelp:
    """Tests for CLI help output."""

    def test_main_help(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("new", "build", "publish", "run"):
            assert command in result.output

    @pytest.mark.parametrize("command", ["build", "publish", "run"])
    def test_release_command_options(self, command: str) -> None:
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0
        for option in ("--github-token", "--nuget-token", "--publish-webapp", "--no-spinner"):
            assert option in result.output


class TestNewCommand:
    """Tests for `relstack new`."""

    def test_creates_config_listing_solutions(self, tmp_path: Path) -> None:
        (tmp_path / "Acme.sln").write_text("")
        (tmp_path / "Tool.csproj").write_text("")
        path = tmp_path / "relstack.yaml"

        result = runner.invoke(app, ["new", str(path)])

        assert result.exit_code == 0
        raw = yaml.safe_load(path.read_text())
        assert raw["msbuild"]["projects"] == ["Acme.sln"]

    def test_lists_projects_without_solution(self, tmp_path: Path) -> None:
        (tmp_path / "B.fsproj").write_text("")
        (tmp_path / "A.csproj").write_text("")
        path = tmp_path / "relstack.yaml"

        runner.invoke(app, ["new", str(path)])

        assert yaml.safe_load(path.read_text())["msbuild"]["projects"] == ["A.csproj", "B.fsproj"]

    def test_refuses_to_overwrite(self, tmp_path: Path) -> None:
        path = tmp_path / "relstack.yaml"
        path.write_text("keep: me\n")

        result = runner.invoke(app, ["new", str(path)])

        assert result.exit_code == 1
        assert path.read_text() == "keep: me\n"

    def test_force_overwrites(self, tmp_path: Path) -> None:
        path = tmp_path / "relstack.yaml"
        path.write_text("keep: me\n")

        result = runner.invoke(app, ["new", str(path), "--force"])

        assert result.exit_code == 0
        assert "msbuild" in yaml.safe_load(path.read_text())


class TestReleaseCommands:
    """Tests for `relstack build`, `publish` and `run`."""

    def test_missing_config(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["build", str(tmp_path / "missing.yaml"), "--no-spinner"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_build(self, write_config: Callable[..., Path], tmp_path: Path, use_fake_extractor: Callable) -> None:
        use_fake_extractor()
        config_path = write_config(CONFIG)

        result = runner.invoke(app, ["build", str(config_path), "--no-spinner"])

        assert result.exit_code == 0, result.output
        assert "Packages and Projects" in result.output
        assert "Release mode: build" in result.output
        summary = _summary(tmp_path)
        assert summary["status"] == "success"
        assert summary["release"]["version"] == "1.4.0"

    def test_version_error_exit_code(
        self, write_config: Callable[..., Path], tmp_path: Path, use_fake_extractor: Callable
    ) -> None:
        use_fake_extractor(version="")
        config_path = write_config(CONFIG)

        result = runner.invoke(app, ["build", str(config_path), "--no-spinner"])

        assert result.exit_code == 4
        assert "No version found from all projects" in result.output
        summary = _summary(tmp_path)
        assert summary["status"] == "failed"
        assert summary["exit_code"] == 4

    def test_publish_without_token(
        self, write_config: Callable[..., Path], git_repo: git.Repo, use_fake_extractor: Callable
    ) -> None:
        use_fake_extractor()
        config_path = write_config(CONFIG)

        result = runner.invoke(app, ["publish", str(config_path), "--no-spinner"])

        assert result.exit_code == 5
        assert "requires to pass --github-token" in result.output

    def test_publish(
        self, write_config: Callable[..., Path], git_repo: git.Repo, use_fake_extractor: Callable
    ) -> None:
        use_fake_extractor()
        config_path = write_config(CONFIG)

        result = runner.invoke(
            app,
            ["publish", str(config_path), "--github-token", "gh", "--nuget-token", "nuget", "--no-spinner"],
        )

        assert result.exit_code == 0, result.output
        assert "Release mode: publish" in result.output
        assert "Git branch: main" in result.output

    def test_tokens_from_environment(
        self,
        write_config: Callable[..., Path],
        git_repo: git.Repo,
        use_fake_extractor: Callable,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        use_fake_extractor()
        config_path = write_config(CONFIG)

        result = runner.invoke(
            app,
            ["publish", str(config_path), "--no-spinner"],
            env={"GITHUB_TOKEN": "gh", "NUGET_TOKEN": "nuget"},
        )

        assert result.exit_code == 0, result.output

    def test_run_outside_ci(
        self, write_config: Callable[..., Path], git_repo: git.Repo, use_fake_extractor: Callable
    ) -> None:
        use_fake_extractor()
        config_path = write_config(CONFIG)

        result = runner.invoke(app, ["run", str(config_path), "--github-token", "gh", "--no-spinner"])

        assert result.exit_code == 5
        assert "Invalid usage of command `run`" in result.output

    def test_invalid_publish_profile(self, write_config: Callable[..., Path], use_fake_extractor: Callable) -> None:
        use_fake_extractor()
        config_path = write_config(CONFIG)

        result = runner.invoke(
            app, ["build", str(config_path), "--publish-webapp", "Core", "--no-spinner"]
        )

        assert result.exit_code == 6
        assert "Expecting an equal" in result.output
