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

"""The BuildInformation aggregate and its builder.

BuildInformation is produced once every loading, verification and decision
step has succeeded. The builder receives the output of each step in order,
so a half-configured aggregate never exists outside this module.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from relstack.planning.model import BuildOutputs, ProjectCollection, ProjectRecord
from relstack.release.actions import ReleaseAction

if TYPE_CHECKING:
    from collections.abc import Sequence

    from relstack.release.git_info import GitInformation
    from relstack.release.mode import ReleaseDecision


@dataclass(frozen=True)
class BuildInformation:
    """Everything known about a release once it has been configured."""

    version: str
    collections: tuple[ProjectCollection, ...]
    git_information: GitInformation | None = None
    allow_publish_draft: bool = False
    action: ReleaseAction = ReleaseAction.UNSET
    build_outputs: dict[ProjectRecord, BuildOutputs] = field(default_factory=dict, compare=False)

    def all_projects(self) -> list[ProjectRecord]:
        return [p for c in self.collections for p in c.projects]

    def packable_projects(self) -> list[ProjectRecord]:
        return [p for p in self.all_projects() if p.is_packable]

    def web_app_projects(self) -> list[ProjectRecord]:
        return [p for p in self.all_projects() if p.is_web_app]

    def get_or_create_outputs(self, project: ProjectRecord) -> BuildOutputs:
        """Return the output accumulator of a project, creating it on first use."""
        outputs = self.build_outputs.get(project)
        if outputs is None:
            outputs = BuildOutputs()
            self.build_outputs[project] = outputs
        return outputs

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/summary."""
        return {
            "version": self.version,
            "action": self.action.value,
            "allow_publish_draft": self.allow_publish_draft,
            "branch": self.git_information.branch_name if self.git_information else None,
            "commit": self.git_information.commit_sha if self.git_information else None,
            "collections": [
                {"solution": c.solution, "projects": [p.assembly_name for p in c.projects]}
                for c in self.collections
            ],
        }


class BuildInformationBuilder:
    """Assembles a BuildInformation from the results of each configure step."""

    def __init__(self, version: str, collections: Sequence[ProjectCollection]) -> None:
        self._version = version
        self._collections = tuple(collections)
        self._git_information: GitInformation | None = None
        self._decision: ReleaseDecision | None = None

    def with_git_information(self, git_information: GitInformation | None) -> BuildInformationBuilder:
        self._git_information = git_information
        return self

    def with_decision(self, decision: ReleaseDecision) -> BuildInformationBuilder:
        if not decision.action.is_terminal:
            raise ValueError(f"Release action `{decision.action}` must be resolved before it is stored")
        self._decision = decision
        return self

    def build(self) -> BuildInformation:
        if self._decision is None:
            raise ValueError("A release decision is required to build a BuildInformation")
        return BuildInformation(
            version=self._version,
            collections=self._collections,
            git_information=self._git_information,
            allow_publish_draft=self._decision.allow_publish_draft,
            action=self._decision.action,
        )
