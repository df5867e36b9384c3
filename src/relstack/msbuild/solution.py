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

"""Visual Studio solution file parsing.

Supports the classic text format (.sln) and the XML format (.slnx). Only
entries that are MSBuild project files are returned; solution folders and
other project kinds are skipped.
"""

from __future__ import annotations

import os
import re
import xml.etree.ElementTree as ET
from pathlib import Path, PureWindowsPath

SOLUTION_SUFFIXES = (".sln", ".slnx")

# Type GUIDs of entries that are not buildable projects
SOLUTION_FOLDER_GUID = "2150E333-8FDC-42A3-9474-1A3956D46DE8"
SHARED_PROJECT_GUID = "D954291E-2A0B-460D-934E-DC6B0785DB48"

# Legacy Visual C++ and shared projects have no MSBuild build of their own.
_NON_MSBUILD_SUFFIXES = (".vcproj", ".shproj")

# Project("{TYPE-GUID}") = "Name", "relative\path.csproj", "{PROJECT-GUID}"
_PROJECT_LINE_RE = re.compile(
    r'^Project\("\{(?P<type>[0-9A-Fa-f-]+)\}"\)\s*=\s*'
    r'"(?P<name>[^"]*)"\s*,\s*"(?P<path>[^"]*)"\s*,\s*"\{(?P<guid>[0-9A-Fa-f-]+)\}"'
)


class SolutionParseError(Exception):
    """Raised when a solution file cannot be read or parsed."""


def is_solution_file(path: str | Path) -> bool:
    """Return True if the path names a solution file."""
    return str(path).lower().endswith(SOLUTION_SUFFIXES)


def is_msbuild_project_file(path: str | Path) -> bool:
    """Return True if the path looks like an MSBuild project (*.csproj, *.fsproj...).

    Legacy Visual C++ (.vcproj) and shared (.shproj) projects are excluded.
    """
    suffix = Path(str(path)).suffix.lower()
    return suffix.endswith("proj") and suffix not in _NON_MSBUILD_SUFFIXES


def _to_absolute(solution_path: Path, relative: str) -> Path:
    # Solution files always use Windows separators.
    parts = PureWindowsPath(relative).parts
    return Path(os.path.normpath(os.path.abspath(solution_path.parent.joinpath(*parts))))


def _parse_sln(solution_path: Path, text: str) -> list[Path]:
    if "Microsoft Visual Studio Solution File" not in text:
        raise SolutionParseError(f"{solution_path} is not a Visual Studio solution file")

    projects: list[Path] = []
    for line in text.splitlines():
        match = _PROJECT_LINE_RE.match(line.strip())
        if not match:
            continue
        if match.group("type").upper() in (SOLUTION_FOLDER_GUID, SHARED_PROJECT_GUID):
            continue
        relative = match.group("path")
        if not is_msbuild_project_file(relative):
            continue
        projects.append(_to_absolute(solution_path, relative))
    return projects


def _parse_slnx(solution_path: Path, text: str) -> list[Path]:
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise SolutionParseError(f"{solution_path} is not valid XML: {e}") from e

    if root.tag != "Solution":
        raise SolutionParseError(f"{solution_path} has no <Solution> root element")

    projects: list[Path] = []
    for element in root.iter("Project"):
        relative = element.get("Path", "")
        if relative and is_msbuild_project_file(relative):
            projects.append(_to_absolute(solution_path, relative))
    return projects


def parse_solution(solution_path: Path) -> list[Path]:
    """Return the absolute paths of the MSBuild projects in a solution, in file order.

    Raises:
        SolutionParseError: If the file cannot be read or is malformed.
    """
    try:
        text = solution_path.read_text(encoding="utf-8-sig")
    except OSError as e:
        raise SolutionParseError(f"Unable to read {solution_path}: {e}") from e

    if solution_path.suffix.lower() == ".slnx":
        return _parse_slnx(solution_path, text)
    return _parse_sln(solution_path, text)
