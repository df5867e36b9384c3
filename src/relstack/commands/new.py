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

"""Implementation of `relstack new` command.

Writes a release configuration with default values. Projects and solutions
found directly in the configuration folder are listed as inputs.

Exit codes:
  0 - Success
  1 - Configuration file already exists (without --force)
"""

from __future__ import annotations

import sys
from pathlib import Path

import typer

from relstack.config import DEFAULT_CONFIG_NAME, write_default_config
from relstack.core.run import activity
from relstack.msbuild.solution import is_msbuild_project_file, is_solution_file

EXIT_SUCCESS = 0
EXIT_CONFIG_EXISTS = 1


def find_project_inputs(folder: Path) -> list[str]:
    """Return solutions in `folder`, or its project files when it has none."""
    if not folder.is_dir():
        return []
    files = sorted(p for p in folder.iterdir() if p.is_file())
    solutions = [p.name for p in files if is_solution_file(p)]
    if solutions:
        return solutions
    return [p.name for p in files if is_msbuild_project_file(p)]


def new(
    config: Path = typer.Argument(Path(DEFAULT_CONFIG_NAME), help="Release configuration file to create"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing configuration file"),
) -> None:
    """Create a release configuration file with default values."""
    if config.exists() and not force:
        typer.echo(f"ERROR: The configuration file {config} already exists. Use --force to overwrite it.", err=True)
        sys.exit(EXIT_CONFIG_EXISTS)

    projects = find_project_inputs(config.parent)
    write_default_config(config, projects)
    activity("new", f"Configuration written to {config}")
    typer.echo(f"Created {config}")
    if not projects:
        typer.echo("No solution or project file found; edit msbuild.projects before running a release.")
    sys.exit(EXIT_SUCCESS)
