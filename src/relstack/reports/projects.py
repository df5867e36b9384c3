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

"""Rich table of loaded projects, grouped per solution in build order."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    from collections.abc import Sequence

    from relstack.planning.model import ProjectCollection, ProjectRecord
    from relstack.planning.versions import VersionReport

# Common SPDX identifiers shown in green
KNOWN_LICENSES = frozenset({
    "MIT",
    "Apache-2.0",
    "BSD-2-Clause",
    "BSD-3-Clause",
    "GPL-2.0-only",
    "GPL-2.0-or-later",
    "GPL-3.0-only",
    "GPL-3.0-or-later",
    "LGPL-2.1-only",
    "LGPL-2.1-or-later",
    "LGPL-3.0-only",
    "LGPL-3.0-or-later",
    "MPL-2.0",
    "MS-PL",
    "Unlicense",
    "0BSD",
    "ISC",
    "Zlib",
})

_LICENSE_EXPRESSION_RE = re.compile(r"^[A-Za-z0-9.\-+]+(\s+(AND|OR|WITH)\s+[A-Za-z0-9.\-+]+)*$")


def license_style(license_expression: str) -> str:
    """Return the rich style for a license: known, defined but unknown, or missing."""
    if license_expression in KNOWN_LICENSES:
        return "green"
    if _LICENSE_EXPRESSION_RE.match(license_expression):
        return "black on red"
    return "yellow"


def _license_cell(project: ProjectRecord) -> Text:
    if not project.is_packable:
        return Text(project.license)
    return Text(project.license, style=license_style(project.license))


def build_projects_table(
    collections: Sequence[ProjectCollection],
    report: VersionReport | None = None,
) -> Table:
    """Build the projects table.

    A solution row precedes each solution's projects, and a "Direct Projects"
    row precedes the direct projects when solutions are also present.
    """
    projects = [p for c in collections for p in c.projects]
    has_web_apps = any(p.is_web_app for p in projects)
    has_solutions = any(not c.is_direct for c in collections)

    table = Table(title="Packages and Projects")
    table.add_column("Project")
    table.add_column("Kind")
    table.add_column("Version")
    table.add_column("TargetFramework(s)")
    table.add_column("License")
    table.add_column("Packable?", justify="center")
    table.add_column("Test?", justify="center")
    if has_web_apps:
        table.add_column("WebApp?", justify="center")

    for collection in collections:
        if not collection.is_direct:
            table.add_row(Text(collection.solution, style="bold"))
        elif has_solutions:
            table.add_row(Text("Direct Projects", style="bold"))

        for project in collection.projects:
            invalid = report is not None and report.is_invalid(project)
            version = project.version or ""
            row: list[Text | str] = [
                project.assembly_name,
                project.output_kind.value.lower(),
                Text(f"{version} (invalid)", style="red") if invalid else version,
                "\n".join(project.target_framework_info.target_frameworks),
                _license_cell(project),
                "x" if project.is_packable else "",
                "x" if project.is_test_project else "",
            ]
            if has_web_apps:
                row.append("x" if project.is_web_app else "")
            table.add_row(*row)

    return table
