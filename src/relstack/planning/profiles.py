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

"""Assignment of web app publish profiles to loaded projects."""

from __future__ import annotations

from typing import TYPE_CHECKING

from relstack.core.diagnostics import DiagnosticKind, Diagnostics

if TYPE_CHECKING:
    from collections.abc import Sequence

    from relstack.planning.model import ProjectRecord


def assign_web_app_profiles(
    projects: Sequence[ProjectRecord],
    profiles: Sequence[str],
    diagnostics: Diagnostics,
) -> int:
    """Assign `<ProjectName>=<PublishProfile>` entries to matching projects.

    Every entry is checked; malformed entries and unknown project names are
    recorded on `diagnostics`.

    Returns:
        Number of profiles assigned.
    """
    assigned = 0
    for index, entry in enumerate(profiles):
        name, sep, profile = entry.partition("=")
        if not sep:
            diagnostics.error(
                DiagnosticKind.INVALID_PUBLISH_PROFILE,
                f"Invalid publish profile at {index}. Expecting an equal `=` between <ProjectName>=<PublishProfile>.",
            )
            continue

        name = name.strip()
        profile = profile.strip()
        if not profile:
            diagnostics.error(
                DiagnosticKind.INVALID_PUBLISH_PROFILE,
                f"Invalid empty publish profile at {index}. "
                "Expecting a publish profile after the ProjectName: <ProjectName>=<PublishProfile>.",
            )
            continue

        project = next((p for p in projects if p.project_name == name), None)
        if project is None:
            known = ", ".join(p.project_name for p in projects)
            diagnostics.error(
                DiagnosticKind.INVALID_PUBLISH_PROFILE,
                f"Invalid publish profile at {index}. The ProjectName `{name}` was not found "
                f"in the MSBuild project name list [{known}]",
            )
            continue

        project.web_app_publish_profile = profile
        assigned += 1

    return assigned
