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

"""Project discovery from configured project and solution paths."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from relstack.core.diagnostics import DiagnosticKind, Diagnostics
from relstack.msbuild.solution import SolutionParseError, is_solution_file, parse_solution
from relstack.planning.model import ProjectDescriptor, SolutionGrouping

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

logger = logging.getLogger(__name__)

# Grouping key of projects listed directly
DIRECT_PROJECTS = ""


def discover_projects(
    inputs: Sequence[Path],
    diagnostics: Diagnostics,
    solution_parser: Callable[[Path], list[Path]] = parse_solution,
) -> SolutionGrouping:
    """Discover the projects named by `inputs`, grouped by solution.

    Solution entries contribute their MSBuild member projects; other entries
    are taken as projects. A path seen a second time, directly or through a
    solution, is recorded as a DUPLICATE_INPUT diagnostic and skipped.
    Discovery always goes through all inputs; errors accumulate on
    `diagnostics`.

    Args:
        inputs: Project or solution paths in configuration order.
        diagnostics: Shared collector for errors.
        solution_parser: Solution file parser.

    Returns:
        SolutionGrouping of every unique project found.
    """
    grouping = SolutionGrouping()

    def _add(solution: str, path: Path) -> None:
        descriptor = ProjectDescriptor(path)
        if not grouping.add(solution, descriptor):
            diagnostics.error(
                DiagnosticKind.DUPLICATE_INPUT,
                f"The project `{descriptor}` is duplicated in the list of input projects.",
                project=str(descriptor),
            )

    for entry in inputs:
        if is_solution_file(entry):
            try:
                members = solution_parser(entry)
            except SolutionParseError as e:
                diagnostics.error(
                    DiagnosticKind.EXTRACTION_FAILURE,
                    f"Error while parsing solution {entry}. Reason: {e}",
                    project=str(entry),
                )
                continue
            logger.debug("Solution %s lists %d projects", entry, len(members))
            for member in members:
                _add(str(entry), member)
        else:
            _add(DIRECT_PROJECTS, entry)

    return grouping
