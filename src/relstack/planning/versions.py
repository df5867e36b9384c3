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

"""Release version verification across packable projects."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from relstack.core.diagnostics import Diagnostic, DiagnosticKind, Diagnostics

if TYPE_CHECKING:
    from collections.abc import Sequence

    from relstack.planning.model import ProjectCollection, ProjectRecord


@dataclass
class VersionReport:
    """Outcome of version verification.

    Attributes:
        version: Unified release version, empty when no packable project
            declares one.
        invalid_projects: Packable projects whose version differs from the
            unified version.
        diagnostics: VERSION_MISMATCH / MISSING_VERSION errors.
    """

    version: str = ""
    invalid_projects: list[ProjectRecord] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.diagnostics)

    def is_invalid(self, project: ProjectRecord) -> bool:
        return project in self.invalid_projects


def verify_versions(
    collections: Sequence[ProjectCollection],
    diagnostics: Diagnostics | None = None,
) -> VersionReport:
    """Determine the release version and flag packable projects that disagree.

    The first packable project in build order sets the version. Records are
    never modified and verification always covers every collection.
    """
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    recorded: list[Diagnostic] = []
    version: str | None = None
    invalid: list[ProjectRecord] = []
    packable_count = 0

    for collection in collections:
        for project in collection.projects:
            if not project.is_packable:
                continue
            packable_count += 1
            if version is None:
                version = project.version
            if project.version != version:
                invalid.append(project)

    for project in invalid:
        recorded.append(
            diagnostics.error(
                DiagnosticKind.VERSION_MISMATCH,
                f"Invalid version {project.version or '(none)'} for package {project.assembly_name}",
                project=str(project.path),
            )
        )

    # Only an error when packable projects exist without a version
    if not version and packable_count > 0:
        recorded.append(diagnostics.error(DiagnosticKind.MISSING_VERSION, "No version found from all projects"))

    return VersionReport(version=version or "", invalid_projects=invalid, diagnostics=recorded)
