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

"""Project records and collections produced by the project graph loader."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


def normalize_project_path(path: str | Path) -> Path:
    """Return the normalized absolute form of a project path."""
    return Path(os.path.normpath(os.path.abspath(os.fspath(path))))


def path_key(path: str | Path) -> str:
    """Return the comparison key of a path.

    Case-insensitive where the platform filesystem is (os.path.normcase),
    case-sensitive elsewhere.
    """
    return os.path.normcase(os.fspath(normalize_project_path(path)))


@dataclass(frozen=True, eq=False)
class ProjectDescriptor:
    """A filesystem path to a buildable project, compared by `key`."""

    path: Path

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", normalize_project_path(self.path))

    @property
    def key(self) -> str:
        return path_key(self.path)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProjectDescriptor):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        return str(self.path)


@dataclass
class SolutionGrouping:
    """Discovered projects grouped by the solution that introduced them.

    The empty-string key holds projects listed directly. Every descriptor
    appears in exactly one group.
    """

    groups: dict[str, list[ProjectDescriptor]] = field(default_factory=dict)
    known: set[str] = field(default_factory=set)

    def add(self, solution: str, descriptor: ProjectDescriptor) -> bool:
        """Add a descriptor; return False if its path was already seen."""
        if descriptor.key in self.known:
            return False
        self.known.add(descriptor.key)
        self.groups.setdefault(solution, []).append(descriptor)
        return True

    def contains(self, path: str | Path) -> bool:
        return path_key(path) in self.known

    def items(self) -> list[tuple[str, ProjectDescriptor]]:
        """Flatten into (solution, descriptor) pairs in discovery order."""
        return [(solution, d) for solution, descriptors in self.groups.items() for d in descriptors]

    def __len__(self) -> int:
        return len(self.known)


class OutputKind(Enum):
    """Kind of output a project produces."""

    EXE = "Exe"
    WIN_EXE = "WinExe"
    APP_CONTAINER_EXE = "AppContainerExe"
    LIBRARY = "Library"

    @classmethod
    def parse(cls, value: str) -> OutputKind | None:
        """Parse an MSBuild OutputType value, ignoring case."""
        wanted = value.strip().lower()
        for kind in cls:
            if kind.value.lower() == wanted:
                return kind
        return None


@dataclass(frozen=True)
class TargetFrameworkInfo:
    is_multi_targeting: bool
    target_frameworks: tuple[str, ...]

    @property
    def last_framework(self) -> str:
        return self.target_frameworks[-1]


@dataclass(eq=False)
class ProjectRecord:
    """Package metadata loaded for one project.

    Records compare and hash by project path. Apart from the web app publish
    profile, which is assigned after loading, a record is never modified.
    """

    path: Path
    package_id: str
    assembly_name: str
    output_kind: OutputKind
    version: str | None
    description: str
    license: str
    project_url: str
    is_packable: bool
    is_test_project: bool
    project_references: tuple[Path, ...]
    target_framework_info: TargetFrameworkInfo
    is_web_app: bool = False
    web_app_publish_profile: str | None = None

    @property
    def key(self) -> str:
        return path_key(self.path)

    @property
    def project_name(self) -> str:
        """MSBuild project name (file name without extension)."""
        return self.path.stem

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProjectRecord):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __repr__(self) -> str:
        return f"ProjectRecord({self.assembly_name!r}, path={str(self.path)!r})"


@dataclass(frozen=True)
class ProjectCollection:
    """Records of one solution grouping, in build order."""

    solution: str
    projects: tuple[ProjectRecord, ...]

    @property
    def is_direct(self) -> bool:
        return self.solution == ""


@dataclass
class BuildOutputs:
    """Outputs accumulated for a project while building."""

    nuget_packages: list[str] = field(default_factory=list)
    app_packages: list[str] = field(default_factory=list)
