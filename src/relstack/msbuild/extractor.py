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

"""MSBuild metadata extraction.

The project graph loader only depends on the MetadataExtractor protocol.
DotnetMSBuildExtractor implements it on top of `dotnet msbuild`, using the
`-getProperty` and `-getItem` switches that print evaluation results as
JSON.

Extraction failures are never raised: they are recorded on the shared
Diagnostics collector and the call returns None.
"""

from __future__ import annotations

import json
import logging
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol

from relstack.core.diagnostics import DiagnosticKind, Diagnostics

logger = logging.getLogger(__name__)

# Fact names
TARGET_FRAMEWORK = "TargetFramework"
TARGET_FRAMEWORKS = "TargetFrameworks"
PACKAGE_ID = "PackageId"
ASSEMBLY_NAME = "AssemblyName"
PACKAGE_VERSION = "PackageVersion"
PACKAGE_DESCRIPTION = "PackageDescription"
PACKAGE_LICENSE_EXPRESSION = "PackageLicenseExpression"
PACKAGE_OUTPUT_TYPE = "PackageOutputType"
PACKAGE_PROJECT_URL = "PackageProjectUrl"
USING_WEB_SDK = "UsingWebSdk"
IS_PACKABLE = "IsPackable"
IS_TEST_PROJECT = "IsTestProject"
PROJECT_REFERENCE = "ProjectReference"

# MSBuild property queried for each package info fact
PACKAGE_INFO_PROPERTIES: dict[str, str] = {
    PACKAGE_ID: "PackageId",
    ASSEMBLY_NAME: "AssemblyName",
    PACKAGE_VERSION: "PackageVersion",
    PACKAGE_DESCRIPTION: "Description",
    PACKAGE_LICENSE_EXPRESSION: "PackageLicenseExpression",
    PACKAGE_OUTPUT_TYPE: "OutputType",
    PACKAGE_PROJECT_URL: "PackageProjectUrl",
    USING_WEB_SDK: "UsingMicrosoftNETSdkWeb",
    IS_PACKABLE: "IsPackable",
    IS_TEST_PROJECT: "IsTestProject",
}

FRAMEWORK_PROPERTIES: dict[str, str] = {
    TARGET_FRAMEWORK: "TargetFramework",
    TARGET_FRAMEWORKS: "TargetFrameworks",
}

DEFAULT_TIMEOUT = 600


class QueryKind(Enum):
    """Metadata queries issued by the loader."""

    TARGET_FRAMEWORKS = "target-frameworks"
    PACKAGE_INFO = "package-info"


@dataclass(frozen=True)
class FactSet:
    """Ordered (name, value) facts returned by an extraction.

    A name may repeat (ProjectReference); empty values are not stored.
    """

    facts: tuple[tuple[str, str], ...] = field(default_factory=tuple)

    @classmethod
    def of(cls, *facts: tuple[str, str]) -> FactSet:
        return cls(tuple((name, value) for name, value in facts if value))

    def first(self, name: str) -> str | None:
        for fact_name, value in self.facts:
            if fact_name == name:
                return value
        return None

    def all(self, name: str) -> list[str]:
        return [value for fact_name, value in self.facts if fact_name == name]

    def flag(self, name: str) -> bool:
        """Return True if the fact holds `true`, ignoring case and whitespace."""
        value = self.first(name)
        return value is not None and value.strip().lower() == "true"

    def __len__(self) -> int:
        return len(self.facts)


class MetadataExtractor(Protocol):
    """Black-box access to the project build tool."""

    def restore(self, path: Path, diagnostics: Diagnostics) -> bool:
        """Restore a project or solution; return False on failure."""
        ...

    def extract(
        self,
        project: Path,
        query: QueryKind,
        diagnostics: Diagnostics,
        properties: Mapping[str, str] | None = None,
    ) -> FactSet | None:
        """Return the facts for `query`, or None after recording a diagnostic."""
        ...


class DotnetMSBuildExtractor:
    """MetadataExtractor implemented with the dotnet CLI."""

    def __init__(
        self,
        configuration: str = "Release",
        dotnet: str = "dotnet",
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        self.configuration = configuration
        self.dotnet = dotnet
        self.timeout = timeout

    def _run(self, cmd: list[str], project: Path, diagnostics: Diagnostics) -> str | None:
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                cwd=project.parent,
            )
        except FileNotFoundError:
            diagnostics.error(
                DiagnosticKind.EXTRACTION_FAILURE,
                f"Unable to run `{self.dotnet}`. Is the .NET SDK installed?",
                project=str(project),
            )
            return None
        except subprocess.TimeoutExpired:
            diagnostics.error(
                DiagnosticKind.EXTRACTION_FAILURE,
                f"Timed out after {self.timeout}s while running `{' '.join(cmd)}`",
                project=str(project),
            )
            return None

        if result.returncode != 0:
            output = (result.stdout + result.stderr).strip()
            diagnostics.error(
                DiagnosticKind.EXTRACTION_FAILURE,
                f"MSBuild failed for `{project}` (exit {result.returncode}): {output}",
                project=str(project),
            )
            return None
        return result.stdout

    def restore(self, path: Path, diagnostics: Diagnostics) -> bool:
        cmd = [self.dotnet, "restore", str(path), "-nologo", f"-property:Configuration={self.configuration}"]
        return self._run(cmd, path, diagnostics) is not None

    def build_command(
        self,
        project: Path,
        query: QueryKind,
        properties: Mapping[str, str] | None = None,
    ) -> list[str]:
        """Return the dotnet msbuild command line for a query."""
        cmd = [self.dotnet, "msbuild", str(project), "-nologo", f"-property:Configuration={self.configuration}"]
        for name, value in (properties or {}).items():
            cmd.append(f"-property:{name}={value}")

        if query is QueryKind.TARGET_FRAMEWORKS:
            wanted = FRAMEWORK_PROPERTIES.values()
        else:
            wanted = PACKAGE_INFO_PROPERTIES.values()
        cmd.extend(f"-getProperty:{name}" for name in wanted)
        if query is QueryKind.PACKAGE_INFO:
            cmd.append(f"-getItem:{PROJECT_REFERENCE}")
        return cmd

    def extract(
        self,
        project: Path,
        query: QueryKind,
        diagnostics: Diagnostics,
        properties: Mapping[str, str] | None = None,
    ) -> FactSet | None:
        output = self._run(self.build_command(project, query, properties), project, diagnostics)
        if output is None:
            return None

        try:
            payload = json.loads(output)
        except json.JSONDecodeError as e:
            diagnostics.error(
                DiagnosticKind.EXTRACTION_FAILURE,
                f"Unable to read MSBuild results for `{project}` ({query.value}): {e}",
                project=str(project),
            )
            return None

        return parse_msbuild_json(payload, query)


def parse_msbuild_json(payload: dict, query: QueryKind) -> FactSet:
    """Convert `dotnet msbuild -getProperty/-getItem` JSON output into facts."""
    props: dict[str, str] = payload.get("Properties", {}) or {}
    mapping = FRAMEWORK_PROPERTIES if query is QueryKind.TARGET_FRAMEWORKS else PACKAGE_INFO_PROPERTIES
    facts = [(fact, str(props.get(msbuild_name, "")).strip()) for fact, msbuild_name in mapping.items()]

    if query is QueryKind.PACKAGE_INFO:
        items = (payload.get("Items", {}) or {}).get(PROJECT_REFERENCE, []) or []
        for item in items:
            facts.append((PROJECT_REFERENCE, str(item.get("Identity", "")).strip()))

    return FactSet.of(*facts)
