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

"""Configuration utilities for Relstack.

The release configuration is a YAML file that sits next to the projects it
describes. Values found on disk are merged section by section over
DEFAULT_CONFIG and exposed as immutable dataclasses.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from relstack.core.exceptions import ConfigError

DEFAULT_CONFIG_NAME = "relstack.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "msbuild": {
        "projects": [],
        "configuration": "Release",
        "restore": True,
        "parallel": 0,
    },
    "github": {
        "user": "",
        "repo": "",
        "branches": ["main"],
        "version_prefix": "v",
        "publish": True,
    },
    "nuget": {"publish": True},
    "changelog": {"disable_draft_for_build": False},
}


@dataclass(frozen=True)
class MSBuildConfig:
    """MSBuild settings.

    Attributes:
        projects: Absolute project or solution paths, in configuration order.
        configuration: MSBuild configuration used for metadata queries.
        restore: Whether to restore projects before loading them.
        parallel: Number of concurrent metadata queries.
    """

    projects: tuple[Path, ...]
    configuration: str = "Release"
    restore: bool = True
    parallel: int = 1


@dataclass(frozen=True)
class GitHubConfig:
    """Hosting settings for the GitHub repository that receives releases."""

    user: str = ""
    repo: str = ""
    branches: tuple[str, ...] = ("main",)
    version_prefix: str = "v"
    publish: bool = True

    @property
    def provider(self) -> str:
        return "GitHub"

    def get_url(self) -> str:
        """Return the repository URL used when a project declares none."""
        if not self.user or not self.repo:
            return ""
        return f"https://github.com/{self.user}/{self.repo}"


@dataclass(frozen=True)
class NuGetConfig:
    publish: bool = True


@dataclass(frozen=True)
class ChangelogConfig:
    disable_draft_for_build: bool = False


@dataclass(frozen=True)
class ReleaserConfig:
    """Complete release configuration loaded from disk."""

    path: Path
    msbuild: MSBuildConfig
    github: GitHubConfig
    nuget: NuGetConfig
    changelog: ChangelogConfig

    @property
    def root(self) -> Path:
        """Folder containing the configuration file."""
        return self.path.parent


def merge_config(raw: dict[str, Any]) -> dict[str, Any]:
    """Merge a raw mapping over DEFAULT_CONFIG, one section at a time."""
    merged: dict[str, Any] = {}
    for key, val in DEFAULT_CONFIG.items():
        section = raw.get(key)
        if section is None:
            merged[key] = copy.deepcopy(val)
        elif isinstance(section, dict):
            merged[key] = {**copy.deepcopy(val), **section}
        else:
            raise ConfigError(message=f"Configuration section `{key}` must be a mapping")
    return merged


def _as_bool(section: str, key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    raise ConfigError(message=f"Configuration value `{section}.{key}` must be true or false, got `{value}`")


def _as_str_list(section: str, key: str, value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise ConfigError(message=f"Configuration value `{section}.{key}` must be a list of strings")


def _resolve_parallel(value: Any) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ConfigError(
            message=f"Configuration value `msbuild.parallel` must be a non-negative integer (0 for CPU count), got `{value}`"
        )
    if value == 0:
        return os.cpu_count() or 1
    return value


def parse_config(path: Path, raw: dict[str, Any]) -> ReleaserConfig:
    """Build a ReleaserConfig from a raw mapping read from `path`."""
    merged = merge_config(raw)
    root = path.parent

    msbuild = merged["msbuild"]
    project_entries = _as_str_list("msbuild", "projects", msbuild["projects"])
    if not project_entries:
        raise ConfigError(message=f"No projects listed in `msbuild.projects` of {path}")
    projects = tuple(
        Path(os.path.normpath(root / Path(entry).expanduser()))
        for entry in project_entries
    )

    github = merged["github"]
    return ReleaserConfig(
        path=path,
        msbuild=MSBuildConfig(
            projects=projects,
            configuration=str(msbuild["configuration"]),
            restore=_as_bool("msbuild", "restore", msbuild["restore"]),
            parallel=_resolve_parallel(msbuild["parallel"]),
        ),
        github=GitHubConfig(
            user=str(github["user"] or ""),
            repo=str(github["repo"] or ""),
            branches=_as_str_list("github", "branches", github["branches"]),
            version_prefix=str(github["version_prefix"] or ""),
            publish=_as_bool("github", "publish", github["publish"]),
        ),
        nuget=NuGetConfig(publish=_as_bool("nuget", "publish", merged["nuget"]["publish"])),
        changelog=ChangelogConfig(
            disable_draft_for_build=_as_bool(
                "changelog", "disable_draft_for_build", merged["changelog"]["disable_draft_for_build"]
            ),
        ),
    )


def load_config(path: Path) -> ReleaserConfig:
    """Load the release configuration from `path`.

    Raises:
        ConfigError: If the file is missing, is not valid YAML, or holds
            invalid values.
    """
    path = path.expanduser().resolve()
    if not path.is_file():
        raise ConfigError(message=f"Configuration file {path} not found")

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (yaml.YAMLError, OSError) as e:
        raise ConfigError(message=f"Unable to read configuration file {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(message=f"Configuration file {path} must contain a mapping")

    return parse_config(path, raw)


def write_default_config(path: Path, projects: list[str]) -> None:
    """Write a configuration file with defaults and the given project list."""
    data = copy.deepcopy(DEFAULT_CONFIG)
    data["msbuild"]["projects"] = list(projects)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
